# app/routers/auth.py
from typing import Any

from fastapi import APIRouter, Depends, status

from app.core.auth import require_access_token
from app.core.identity_provider import IdentityProvider, get_identity_provider
from app.schemas.auth import LoginRequest, RegisterRequest

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> dict[str, Any]:
    """
    Create an account on Supabase Auth.

    username and role are stored as user metadata (role defaults to "user").
    Returns the provider's user and, if email confirmation is off, a session.
    """
    return provider.sign_up(
        payload.email,
        payload.password,
        metadata={"username": payload.username, "role": payload.role},
    )


@router.post("/login")
def login(
    payload: LoginRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> dict[str, Any]:
    """Sign in with email + password; returns user and session tokens."""
    return provider.sign_in(payload.email, payload.password)


@router.get("/user")
def current_user(
    token: str = Depends(require_access_token),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> dict[str, Any] | None:
    """
    Return the provider's view of the user behind the Bearer token.
    """
    return provider.get_user(token)


@router.post("/logout")
def logout(
    token: str = Depends(require_access_token),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> dict[str, str]:
    """Revoke the session behind the Bearer token."""
    provider.sign_out(token)
    return {"message": "Logged out"}
