"""Reusable FastAPI dependencies for auth and per-user task sessions.

Routes never reach for module-level state: the `TaskServices` bundle is
created by the application lifespan, stored on `app.state`, and handed to
handlers through `get_task_services`.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from taskhub.core.auth import AuthContext, get_auth_context
from taskhub.schemas.tasks import TaskRead
from taskhub.services.context import TaskServices
from taskhub.services.task_collection import TaskCollection

AUTH_DEP = Depends(get_auth_context)


def get_task_services(request: Request) -> TaskServices:
    """Return the task services bundle attached at startup."""
    services = getattr(request.app.state, "task_services", None)
    if not isinstance(services, TaskServices):
        raise RuntimeError("Task services are not initialised; is the lifespan running?")
    return services


TASK_SERVICES_DEP = Depends(get_task_services)


def require_user_id(auth: AuthContext = AUTH_DEP) -> str:
    """Owner id of the authenticated caller."""
    if auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return str(auth.user.id)


USER_ID_DEP = Depends(require_user_id)


async def get_task_collection(
    owner_id: str = USER_ID_DEP,
    services: TaskServices = TASK_SERVICES_DEP,
) -> TaskCollection:
    """Open (loading on first use) the caller's task collection."""
    return await services.sessions.open(owner_id)


TASK_COLLECTION_DEP = Depends(get_task_collection)


def get_task_or_404(
    task_id: str,
    collection: TaskCollection = TASK_COLLECTION_DEP,
) -> TaskRead:
    """Load a task from the caller's own collection or raise 404."""
    task = collection.get(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task
