"""Resolve the signed-in user from bearer tokens (Clerk sessions or a local token).

Sign-up, sign-in screens and password resets are owned by the identity
provider; this module only answers "who is calling" and keeps a local `User`
row for each identity it sees.
"""

from __future__ import annotations

from dataclasses import dataclass
from hmac import compare_digest
from typing import TYPE_CHECKING, Literal

import httpx
from clerk_backend_api import Clerk
from clerk_backend_api.security.types import AuthenticateRequestOptions, AuthStatus, RequestState
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from taskhub.core.auth_mode import AuthMode
from taskhub.core.config import settings
from taskhub.core.logging import get_logger
from taskhub.core.time import utcnow
from taskhub.db import crud
from taskhub.db.session import get_session
from taskhub.models.users import User

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)
SESSION_DEP = Depends(get_session)
LOCAL_AUTH_USER_ID = "local-auth-user"
LOCAL_AUTH_EMAIL = "me@home.local"
LOCAL_AUTH_NAME = "Local User"


class ClerkTokenPayload(BaseModel):
    """JWT claims payload shape required from Clerk tokens."""

    sub: str


@dataclass
class AuthContext:
    """Authenticated user context resolved from inbound auth headers."""

    actor_type: Literal["user"]
    user: User | None = None


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", maxsplit=1)[1].strip()
    return token or None


def _non_empty_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _claim_email(claims: dict[str, object]) -> str | None:
    for key in ("email", "email_address", "primary_email_address"):
        email = _non_empty_str(claims.get(key))
        if email:
            return email.lower()
    return None


def _claim_name(claims: dict[str, object]) -> str | None:
    for key in ("name", "full_name"):
        name = _non_empty_str(claims.get(key))
        if name:
            return name
    parts = [
        part
        for part in (
            _non_empty_str(claims.get("given_name")) or _non_empty_str(claims.get("first_name")),
            _non_empty_str(claims.get("family_name")) or _non_empty_str(claims.get("last_name")),
        )
        if part
    ]
    return " ".join(parts) or None


async def _authenticate_clerk_request(request: Request) -> RequestState:
    # The SDK authenticates an httpx.Request; build one from the ASGI request.
    httpx_request = httpx.Request(
        request.method,
        str(request.url),
        headers=dict(request.headers),
    )
    options = AuthenticateRequestOptions(
        secret_key=settings.clerk_secret_key.strip(),
        clock_skew_in_ms=int(settings.clerk_leeway * 1000),
        accepts_token=["session_token"],
    )
    sdk = Clerk(bearer_auth=options.secret_key or "")
    return await run_in_threadpool(sdk.authenticate_request, httpx_request, options)


async def _sync_user(
    session: AsyncSession,
    *,
    subject: str,
    email: str | None,
    name: str | None,
) -> User:
    user, created = await crud.get_or_create(
        session,
        User,
        clerk_user_id=subject,
        defaults={"email": email, "name": name},
    )
    changed = False
    if email and user.email != email:
        user.email = email
        changed = True
    if name and not user.name:
        user.name = name
        changed = True
    if changed:
        user.updated_at = utcnow()
        session.add(user)
        await session.commit()
        await session.refresh(user)
    if created or changed:
        logger.info(
            "auth.user.sync subject=%s created=%s updated=%s",
            subject[-6:],
            created,
            changed,
        )
    return user


async def _resolve_local_user(request: Request, session: AsyncSession) -> User | None:
    token = _extract_bearer_token(request.headers.get("Authorization"))
    expected = settings.local_auth_token.strip()
    if token is None or not expected or not compare_digest(token, expected):
        return None
    return await _sync_user(
        session,
        subject=LOCAL_AUTH_USER_ID,
        email=LOCAL_AUTH_EMAIL,
        name=LOCAL_AUTH_NAME,
    )


async def _resolve_clerk_user(request: Request, session: AsyncSession) -> User | None:
    request_state = await _authenticate_clerk_request(request)
    if request_state.status != AuthStatus.SIGNED_IN or not isinstance(request_state.payload, dict):
        return None
    claims: dict[str, object] = {str(k): v for k, v in request_state.payload.items()}
    try:
        subject = ClerkTokenPayload.model_validate(claims).sub
    except ValidationError:
        return None
    if not subject:
        return None
    return await _sync_user(
        session,
        subject=subject,
        email=_claim_email(claims),
        name=_claim_name(claims),
    )


async def _resolve_user(request: Request, session: AsyncSession) -> User | None:
    if settings.auth_mode == AuthMode.LOCAL:
        return await _resolve_local_user(request, session)
    return await _resolve_clerk_user(request, session)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext:
    """Resolve the required authenticated user for the configured auth mode."""
    user = await _resolve_user(request, session)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return AuthContext(actor_type="user", user=user)