"""FastAPI application entrypoint and router wiring for the task API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskhub.api.auth import router as auth_router
from taskhub.api.deps import get_task_services
from taskhub.api.tasks import router as tasks_router
from taskhub.api.users import router as users_router
from taskhub.core.config import settings
from taskhub.core.error_handling import install_error_handling
from taskhub.core.logging import configure_logging, get_logger
from taskhub.db.session import async_session_maker, init_db
from taskhub.schemas.health import HealthStatusResponse
from taskhub.services.context import TaskServices
from taskhub.services.document_store import SQLDocumentStore, StoreError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "auth",
        "description": "Resolve caller identity and open or close the caller's task session.",
    },
    {
        "name": "health",
        "description": "Service liveness/readiness probes used by infrastructure checks.",
    },
    {
        "name": "tasks",
        "description": "Personal task CRUD with filtered/sorted listing and statistics.",
    },
    {
        "name": "users",
        "description": "Read the authenticated user's profile.",
    },
]


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
    """Initialize the database and the task services before serving requests."""
    logger.info(
        "app.lifecycle.starting environment=%s db_auto_migrate=%s",
        settings.environment,
        settings.db_auto_migrate,
    )
    await init_db()
    services = TaskServices.build(
        SQLDocumentStore(async_session_maker),
        collection=settings.task_collection,
        idle_seconds=settings.task_session_idle_seconds,
    )
    fastapi_app.state.task_services = services
    logger.info("app.lifecycle.started")
    try:
        yield
    finally:
        services.close()
        logger.info("app.lifecycle.stopped")


app = FastAPI(
    title="TaskHub API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("app.cors.enabled origins_count=%s", len(origins))
else:
    logger.info("app.cors.disabled")

install_error_handling(app)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Check",
    description="Lightweight liveness probe endpoint.",
)
def health() -> HealthStatusResponse:
    """Lightweight liveness probe endpoint."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/healthz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Alias Check",
    description="Alias liveness probe endpoint for platform compatibility.",
)
def healthz() -> HealthStatusResponse:
    """Alias liveness probe endpoint for platform compatibility."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/readyz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Readiness Check",
    description="Readiness probe that round-trips the task document store.",
    responses={
        status.HTTP_503_SERVICE_UNAVAILABLE: {
            "description": "The document store is unreachable.",
            "content": {"application/json": {"example": {"ok": False}}},
        },
    },
)
async def readyz(request: Request) -> HealthStatusResponse | JSONResponse:
    """Readiness probe that round-trips the task document store."""
    services = get_task_services(request)
    try:
        await services.store.ping()
    except StoreError as exc:
        logger.warning("app.readyz.store_unavailable error=%s", exc.message)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False},
        )
    return HealthStatusResponse(ok=True)


api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(auth_router)
api_v1.include_router(users_router)
api_v1.include_router(tasks_router)
app.include_router(api_v1)
