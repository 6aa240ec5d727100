"""Current-user profile endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from taskhub.core.auth import AuthContext, get_auth_context
from taskhub.schemas.users import UserRead

router = APIRouter(prefix="/users", tags=["users"])
AUTH_CONTEXT_DEP = Depends(get_auth_context)


@router.get("/me", response_model=UserRead)
async def get_me(auth: AuthContext = AUTH_CONTEXT_DEP) -> UserRead:
    """Return the authenticated user's profile."""
    if auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return UserRead.model_validate(auth.user, from_attributes=True)
