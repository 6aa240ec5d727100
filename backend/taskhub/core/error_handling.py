"""Request-id middleware and uniform JSON error responses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskhub.core.logging import get_logger
from taskhub.services.task_collection import NoActiveOwnerError
from taskhub.services.task_repository import TaskPersistenceError

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
_MAX_REQUEST_ID_LENGTH = 128


class RequestIdMiddleware:
    """Attach a request id to `scope["state"]` and echo it on every response."""

    def __init__(self, app: ASGIApp) -> None:
        self._app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope) or uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id
        header = (REQUEST_ID_HEADER.lower().encode("latin-1"), request_id.encode("latin-1"))

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if name.lower() != header[0]
                ]
                headers.append(header)
                message["headers"] = headers
            await send(message)

        await self._app(scope, receive, send_with_request_id)


def _incoming_request_id(scope: Scope) -> str | None:
    wanted = REQUEST_ID_HEADER.lower().encode("latin-1")
    for name, value in scope.get("headers", []):
        if name.lower() != wanted:
            continue
        text = value.decode("latin-1").strip()
        if text and len(text) <= _MAX_REQUEST_ID_LENGTH and text.isprintable():
            return text
    return None


def _get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    request_id = uuid4().hex
    request.state.request_id = request_id
    return request_id


def _error_payload(
    *,
    detail: Any,
    request_id: str,
    code: str | None = None,
    retryable: bool | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail, "request_id": request_id}
    if code is not None:
        payload["code"] = code
    if retryable is not None:
        payload["retryable"] = retryable
    return payload


def _json_error(
    request: Request,
    *,
    status_code: int,
    detail: Any,
    code: str | None = None,
    retryable: bool | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    response_headers = {REQUEST_ID_HEADER: request_id, **(headers or {})}
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            _error_payload(detail=detail, request_id=request_id, code=code, retryable=retryable),
        ),
        headers=response_headers,
    )


def _safe_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    errors: list[dict[str, Any]] = []
    for error in exc.errors():
        cleaned = {key: value for key, value in error.items() if key not in {"input", "ctx"}}
        ctx = error.get("ctx")
        if isinstance(ctx, dict):
            cleaned["ctx"] = {key: str(value) for key, value in ctx.items()}
        errors.append(cleaned)
    return errors


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):  # pragma: no cover
        raise exc
    return _json_error(
        request,
        status_code=422,
        detail=_safe_validation_errors(exc),
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error(
        "http.response_validation_failed path=%s request_id=%s",
        request.url.path,
        _get_request_id(request),
        exc_info=exc,
    )
    return _json_error(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):  # pragma: no cover
        raise exc
    return _json_error(
        request,
        status_code=exc.status_code,
        detail=exc.detail,
        headers=exc.headers,
    )


async def _task_persistence_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    message = exc.message if isinstance(exc, TaskPersistenceError) else str(exc)
    return _json_error(
        request,
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=message,
        code="task_persistence_error",
        retryable=False,
    )


async def _no_active_owner_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    message = exc.message if isinstance(exc, NoActiveOwnerError) else str(exc)
    return _json_error(
        request,
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        code="unauthorized",
        retryable=False,
    )


async def _unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error(
        "http.unhandled_exception path=%s request_id=%s",
        request.url.path,
        _get_request_id(request),
        exc_info=exc,
    )
    return _json_error(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


def install_error_handling(app: FastAPI) -> None:
    """Register request-id middleware and all JSON error handlers on `app`."""
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(TaskPersistenceError, _task_persistence_exception_handler)
    app.add_exception_handler(NoActiveOwnerError, _no_active_owner_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
