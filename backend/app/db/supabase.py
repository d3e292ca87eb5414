"""
Supabase Clients
================
Two flavours of client, mirroring how the keys are meant to be used:

- ``get_supabase_client()`` uses the service_role key. It backs table
  access, access-token verification and admin operations (account
  deletion). Cached for the process lifetime.
- ``get_supabase_auth_client()`` uses the anon key and is built fresh per
  call. Password sign-in, sign-up and recovery store the resulting session
  on the client instance, so sharing one across requests would leak
  sessions between users.
"""

from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from app.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_service_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )


def get_supabase_auth_client() -> Client:
    settings = get_settings()
    if not settings.supabase_anon_key:
        raise RuntimeError("SUPABASE_ANON_KEY must be set to use auth routes")
    return create_client(
        settings.supabase_url,
        settings.supabase_anon_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )
