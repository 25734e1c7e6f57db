# app/core/identity_provider.py
import logging
from typing import Any

from supabase import Client

from app.core.errors import IdentityProviderError
from app.core.supabase_client import supabase_public

logger = logging.getLogger(__name__)


def _provider_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc) or "Identity provider error"


def _dump(model: Any) -> Any:
    if model is None:
        return None
    if hasattr(model, "model_dump"):
        return model.model_dump(mode="json")
    return model


class IdentityProvider:
    """
    Pass-through to Supabase Auth.

    Users, passwords and sessions live in Supabase; this class only
    forwards calls and turns provider failures into IdentityProviderError.
    """

    def __init__(self, client: Client):
        self.client = client

    def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            res = self.client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": metadata or {}},
                }
            )
        except Exception as exc:
            logger.warning("Sign-up failed for %s: %s", email, exc)
            raise IdentityProviderError(_provider_message(exc)) from exc
        return {"user": _dump(res.user), "session": _dump(res.session)}

    def sign_in(self, email: str, password: str) -> dict[str, Any]:
        try:
            res = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as exc:
            logger.warning("Sign-in failed for %s: %s", email, exc)
            raise IdentityProviderError(_provider_message(exc)) from exc
        return {"user": _dump(res.user), "session": _dump(res.session)}

    def get_user(self, access_token: str) -> dict[str, Any] | None:
        try:
            res = self.client.auth.get_user(access_token)
        except Exception as exc:
            raise IdentityProviderError(_provider_message(exc)) from exc
        if res is None:
            return None
        return _dump(res.user)

    def sign_out(self, access_token: str) -> None:
        """Revoke the session behind `access_token` on the provider."""
        try:
            self.client.auth.admin.sign_out(access_token)
        except Exception as exc:
            raise IdentityProviderError(_provider_message(exc)) from exc


def get_identity_provider() -> IdentityProvider:
    """FastAPI dependency: Auth pass-through on the shared anon client."""
    return IdentityProvider(supabase_public())
