"""Session bootstrap and sign-out endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from taskhub.api.deps import TASK_SERVICES_DEP
from taskhub.core.auth import AuthContext, get_auth_context
from taskhub.schemas.common import OkResponse
from taskhub.schemas.users import UserRead
from taskhub.services.context import TaskServices

router = APIRouter(prefix="/auth", tags=["auth"])
AUTH_CONTEXT_DEP = Depends(get_auth_context)


@router.post(
    "/bootstrap",
    response_model=UserRead,
    summary="Bootstrap Authenticated User Context",
    description=(
        "Resolve caller identity from auth headers, load the caller's tasks and "
        "return the user profile. This endpoint does not accept a request body."
    ),
)
async def bootstrap_user(
    auth: AuthContext = AUTH_CONTEXT_DEP,
    services: TaskServices = TASK_SERVICES_DEP,
) -> UserRead:
    """Return the authenticated user profile and open their task session."""
    if auth.actor_type != "user" or auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    await services.sessions.open(str(auth.user.id))
    return UserRead.model_validate(auth.user, from_attributes=True)


@router.post("/sign-out", response_model=OkResponse)
async def sign_out(
    auth: AuthContext = AUTH_CONTEXT_DEP,
    services: TaskServices = TASK_SERVICES_DEP,
) -> OkResponse:
    """Drop the caller's in-memory task collection."""
    if auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    await services.sessions.close(str(auth.user.id))
    return OkResponse()
