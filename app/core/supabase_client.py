# app/core/supabase_client.py
from functools import lru_cache
from supabase import create_client, Client
from supabase.client import ClientOptions

from app.core.config import get_settings

settings = get_settings()


@lru_cache
def supabase_public() -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - Auth pass-through (sign up, sign in, get user, sign out)

    The client is shared by every request, so it must not remember the
    session of whoever signed in last: persistence and token refresh
    are turned off.

    Note: This client still respects RLS.
    """
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_KEY,
        options=ClientOptions(persist_session=False, auto_refresh_token=False),
    )


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - uploading food images to Storage
      - admin Auth operations (server-side sign out)

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
