from typing import Callable
from supabase import create_client, Client, ClientOptions
from postgrest.exceptions import APIError
from app.config.settings import settings

# PostgREST / Postgres error codes the services branch on
UNIQUE_VIOLATION = "23505"
UNDEFINED_TABLE = "PGRST106"


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Use for readiness checks."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()


def create_auth_client() -> Client:
    """Fresh client for one sign-in or sign-up.

    Signing in rewrites the Authorization header of the client that did it,
    so the shared client must never hold a user session.
    """
    return create_client(
        settings.supabase_url,
        settings.supabase_key,
        options=ClientOptions(persist_session=False, auto_refresh_token=False),
    )


def get_auth_client_factory() -> Callable[[], Client]:
    return create_auth_client


def is_unique_violation(error: Exception) -> bool:
    return isinstance(error, APIError) and error.code == UNIQUE_VIOLATION


def first_row(result):
    """Return the single row of a maybe_single()/single() response, or None."""
    if result is None or not result.data:
        return None
    if isinstance(result.data, list):
        return result.data[0]
    return result.data
