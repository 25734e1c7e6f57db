# app/core/auth.py
import uuid
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel

from app.core.config import get_settings
from app.core.errors import Unauthorized

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so routes decide between "guest" and 401 themselves.
bearer_scheme = HTTPBearer(auto_error=False)


class Identity(BaseModel):
    """
    Authenticated caller, resolved per request from the access token.

    id is the Supabase auth user id ("sub"); nothing about the identity
    is stored by this service.
    """

    id: uuid.UUID
    email: str | None = None


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        Unauthorized: if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise Unauthorized("Invalid or expired token")


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity | None:
    """
    Resolve the caller from a Supabase JWT.

    Flow:
      1. If no Authorization header => unauthenticated => return None.
      2. Decode JWT => extract 'sub' (auth user id) and 'email'.
      3. Convert 'sub' to UUID.

    Raises:
        Unauthorized: if the token is present but invalid or has no usable sub.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise Unauthorized("Token missing sub")

    try:
        sub_uuid = uuid.UUID(str(sub))
    except ValueError:
        raise Unauthorized("Invalid sub in token")

    return Identity(id=sub_uuid, email=payload.get("email"))


def require_identity(identity: Identity | None = Depends(get_current_identity)) -> Identity:
    """
    Enforce authentication.

    Raises:
        Unauthorized: if there is no Authorization header.
    """
    if identity is None:
        raise Unauthorized()
    return identity


def require_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """
    Raw Bearer token, for calls forwarded to the identity provider
    (which verifies it itself).
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return credentials.credentials
