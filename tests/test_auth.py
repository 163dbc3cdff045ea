import json

import httpx
import pytest
from supabase import create_client

from app.config.settings import settings
from app.core.errors import ErrorKind
from app.core.session import SessionContext
from app.modules.auth.service import AuthService, AuthenticationError
from app.modules.users.service import UserService


@pytest.fixture
def auth_service(supabase) -> AuthService:
    return AuthService(supabase, lambda: supabase)


def gotrue_session(email: str, access_token: str) -> dict:
    return {
        "access_token": access_token,
        "refresh_token": f"refresh-{access_token}",
        "expires_in": 3600,
        "token_type": "bearer",
        "user": {
            "id": "00000000-0000-0000-0000-00000000000b",
            "aud": "authenticated",
            "role": "authenticated",
            "email": email,
            "app_metadata": {},
            "user_metadata": {},
            "created_at": "2024-06-01T12:00:00Z",
        },
    }


@pytest.fixture
def supabase_http(monkeypatch) -> list:
    """Answer every Supabase HTTP call locally and record the requests"""
    sent = []

    def send(client, request, **kwargs):
        sent.append(request)
        path = request.url.path
        if path.endswith("/auth/v1/token"):
            email = json.loads(request.content)["email"]
            return httpx.Response(200, json=gotrue_session(email, f"jwt-{email}"), request=request)
        if path.endswith("/auth/v1/logout"):
            return httpx.Response(204, request=request)
        return httpx.Response(200, json=[], request=request)

    monkeypatch.setattr(httpx.Client, "send", send)
    return sent


def test_sign_up_stores_display_name_in_users_table(supabase, auth_service) -> None:
    result = auth_service.sign_up("a@example.com", "pw", "Alice")

    assert result.success
    assert result.data.display_name == "Alice"
    assert result.data.access_token
    rows = supabase.rows("users")
    assert [(r["id"], r["name"]) for r in rows] == [(result.data.user_id, "Alice")]


def test_sign_up_name_failure_is_warning(supabase, auth_service) -> None:
    supabase.fail_on("users", "upsert")
    result = auth_service.sign_up("a@example.com", "pw", "Alice")
    assert result.success
    assert result.data.display_name is None
    assert result.warnings


def test_sign_up_duplicate_passes_message_through(auth_service) -> None:
    auth_service.sign_up("a@example.com", "pw")
    result = auth_service.sign_up("a@example.com", "pw")
    assert result.kind == ErrorKind.REMOTE
    assert result.error.message == "User already registered"


def test_sign_in_reports_missing_name(auth_service) -> None:
    auth_service.sign_up("a@example.com", "pw")

    result = auth_service.sign_in("a@example.com", "pw")

    assert result.success
    assert result.data.needs_name
    assert result.data.display_name is None


def test_sign_in_with_name(auth_service) -> None:
    auth_service.sign_up("a@example.com", "pw", "Alice")
    result = auth_service.sign_in("a@example.com", "pw")
    assert result.data.display_name == "Alice"
    assert not result.data.needs_name


def test_sign_in_bad_password(auth_service) -> None:
    auth_service.sign_up("a@example.com", "pw")
    result = auth_service.sign_in("a@example.com", "wrong")
    assert result.kind == ErrorKind.REMOTE
    assert result.error.message == "Invalid login credentials"


def test_sign_in_requires_credentials(supabase, auth_service) -> None:
    assert auth_service.sign_in("", "").kind == ErrorKind.VALIDATION
    assert supabase.auth.accounts == {}


def test_each_sign_in_uses_its_own_client(supabase) -> None:
    created = []

    def factory():
        created.append(supabase)
        return supabase

    service = AuthService(supabase, factory)
    service.sign_up("a@example.com", "pw")
    service.sign_in("a@example.com", "pw")
    service.sign_in("a@example.com", "pw")
    assert len(created) == 3


def test_get_current_user_and_sign_out(supabase, auth_service) -> None:
    token = auth_service.sign_up("a@example.com", "pw").data.access_token

    assert auth_service.get_current_user(token)["email"] == "a@example.com"
    assert auth_service.sign_out(token).success
    assert supabase.auth.admin.revoked == [token]
    with pytest.raises(AuthenticationError):
        auth_service.get_current_user(token)
    with pytest.raises(AuthenticationError):
        auth_service.get_current_user("bogus")


def test_sign_out_only_revokes_the_callers_session(supabase, auth_service) -> None:
    token_a = auth_service.sign_up("a@example.com", "pw").data.access_token
    token_b = auth_service.sign_up("b@example.com", "pw").data.access_token

    assert auth_service.sign_out(token_a).success

    assert supabase.auth.admin.revoked == [token_a]
    assert auth_service.get_current_user(token_b)["email"] == "b@example.com"


def test_sign_out_with_unknown_token_is_remote_error(auth_service) -> None:
    assert auth_service.sign_out("bogus").kind == ErrorKind.REMOTE


def test_sign_out_requires_token(auth_service) -> None:
    assert auth_service.sign_out("").kind == ErrorKind.VALIDATION


def test_sign_in_leaves_shared_client_anonymous(supabase_http) -> None:
    shared = create_client(settings.supabase_url, settings.supabase_key)
    service = AuthService(shared)

    result = service.sign_in("b@example.com", "pw")
    assert result.success
    assert result.data.access_token == "jwt-b@example.com"

    shared.table("groups").select("*").execute()
    assert service.sign_out("jwt-a@example.com").success

    group_reads = [r for r in supabase_http if r.url.path.endswith("/rest/v1/groups")]
    assert [r.headers["Authorization"] for r in group_reads] == [f"Bearer {settings.supabase_key}"]
    logouts = [r for r in supabase_http if r.url.path.endswith("/auth/v1/logout")]
    assert [r.headers["Authorization"] for r in logouts] == ["Bearer jwt-a@example.com"]


def test_set_display_name_overwrites(supabase) -> None:
    users = UserService(supabase)
    assert users.set_display_name("u-1", " Al ").data.name == "Al"
    assert users.set_display_name("u-1", "Alice").data.name == "Alice"
    assert users.get_display_name("u-1").data == "Alice"
    assert len(supabase.rows("users")) == 1


def test_set_display_name_requires_name(supabase) -> None:
    assert UserService(supabase).set_display_name("u-1", "  ").kind == ErrorKind.VALIDATION
    assert supabase.calls == []


def test_session_context_start(supabase) -> None:
    UserService(supabase).set_display_name("u-1", "Alice")
    session = SessionContext(UserService(supabase)).start("u-1", "a@example.com", "tok")
    assert session.is_authenticated
    assert session.display_name == "Alice"
    assert not session.needs_name


def test_session_context_needs_name_when_lookup_fails(supabase) -> None:
    supabase.fail_on("users", "select")
    session = SessionContext(UserService(supabase)).start("u-1")
    assert session.needs_name
    assert session.display_name is None


def test_session_context_follows_client_auth_events(supabase, auth_service) -> None:
    auth_service.sign_up("a@example.com", "pw", "Alice")
    session = SessionContext(UserService(supabase))
    session.attach(supabase)

    supabase.auth.sign_in_with_password({"email": "a@example.com", "password": "pw"})
    assert session.email == "a@example.com"
    assert session.display_name == "Alice"
    assert session.access_token

    supabase.auth.sign_out()
    assert not session.is_authenticated
    assert session.display_name is None
    assert not session.needs_name

    session.detach()
    assert supabase.auth.listeners == []


def test_session_context_set_display_name(supabase) -> None:
    session = SessionContext(UserService(supabase)).start("u-1")
    assert session.needs_name
    assert session.set_display_name("Bob").success
    assert session.display_name == "Bob"
    assert not session.needs_name
