import asyncio
from types import SimpleNamespace

import httpx
import pytest

from coastalconnect.backends import AuthBackend, RestAuthBackend, SupabaseAuthBackend, build_auth_backend
from coastalconnect.exceptions import AuthRejectedError, AuthUnavailableError
from coastalconnect.schemas.auth import RegisterPayload

USER_PAYLOAD = {
    "id": 7,
    "email": "stay@example.com",
    "name": "Coastal Stay",
    "role": "vendor",
    "is_verified": True,
    "vendor_status": "approved",
    "business_name": "Coastal Stay",
    "business_type": "homestay",
}


def _backend(settings, handler) -> RestAuthBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=settings.API_BASE_URL)
    return RestAuthBackend(settings, client=client)


def test_verify_sends_bearer_token_and_returns_user(settings) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "data": {"user": USER_PAYLOAD}})

    user = asyncio.run(_backend(settings, handler).verify("tok123"))

    assert seen == {"path": "/api/auth/verify", "auth": "Bearer tok123"}
    assert user.id == 7
    assert user.role == "vendor"
    assert user.business_type == "homestay"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"success": False, "message": "Invalid token"}),
        httpx.Response(200, json={"success": False}),
        httpx.Response(200, json={"success": True, "data": {}}),
        httpx.Response(200, json={"success": True, "data": {"user": {**USER_PAYLOAD, "role": "root"}}}),
        httpx.Response(200, text="<html>oops</html>"),
    ],
)
def test_verify_rejects_failure_shapes(settings, response) -> None:
    backend = _backend(settings, lambda request: response)

    with pytest.raises(AuthRejectedError):
        asyncio.run(backend.verify("tok123"))


def test_network_errors_are_unavailable(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    backend = _backend(settings, handler)

    with pytest.raises(AuthUnavailableError):
        asyncio.run(backend.verify("tok123"))
    with pytest.raises(AuthUnavailableError):
        asyncio.run(backend.logout("tok123"))


def test_logout_ignores_response_body(settings) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.headers.get("Authorization")))
        return httpx.Response(500, text="boom")

    asyncio.run(_backend(settings, handler).logout("tok123"))

    assert seen == [("POST", "/api/auth/logout", "Bearer tok123")]


def test_email_login_normalizes_email(settings) -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.read())
        return httpx.Response(200, json={"success": True, "data": {"token": "jwt", "user": USER_PAYLOAD}})

    result = asyncio.run(_backend(settings, handler).login_with_email("  Stay@Example.com ", "secret1"))

    assert result.token == "jwt"
    assert result.user.email == "stay@example.com"
    assert b'"email":"stay@example.com"' in bodies[0].replace(b" ", b"")


def test_email_login_surfaces_server_message(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"success": False, "message": "Invalid email or password"})

    with pytest.raises(AuthRejectedError) as excinfo:
        asyncio.run(_backend(settings, handler).login_with_email("a@b.co", "wrong"))

    assert excinfo.value.message == "Invalid email or password"
    assert excinfo.value.status_code == 401


def test_register_posts_payload(settings) -> None:
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(201, json={"success": True, "data": {"token": "jwt", "user": {**USER_PAYLOAD, "role": "customer"}}})

    payload = RegisterPayload(email="new@example.com", password="secret1", name=" Asha ")
    result = asyncio.run(_backend(settings, handler).register(payload))

    assert paths == ["/api/auth/register"]
    assert result.user.role == "customer"
    assert payload.name == "Asha"


def test_oauth_login_uses_provider_path(settings) -> None:
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"success": True, "data": {"token": "jwt", "user": USER_PAYLOAD}})

    asyncio.run(_backend(settings, handler).login_with_oauth("google", "google-token"))

    assert paths == ["/api/auth/google"]


def test_oauth_login_rejects_unknown_provider(settings) -> None:
    backend = _backend(settings, lambda request: httpx.Response(500))

    with pytest.raises(AuthRejectedError):
        asyncio.run(backend.login_with_oauth("myspace", "token"))


def test_build_auth_backend_defaults_to_rest(settings) -> None:
    backend = build_auth_backend(settings)

    assert isinstance(backend, RestAuthBackend)
    asyncio.run(backend.aclose())


def test_backend_subclass_must_implement_every_call() -> None:
    class VerifyOnlyBackend(AuthBackend):
        async def verify(self, token):
            return None

    with pytest.raises(TypeError):
        VerifyOnlyBackend()


class _FakeQuery:
    def __init__(self, rows):
        self.rows = rows

    def select(self, *_args):
        return self

    def eq(self, _column, value):
        self.rows = [row for row in self.rows if row["id"] == value]
        return self

    def single(self):
        return self

    def execute(self):
        if len(self.rows) != 1:
            raise RuntimeError("JSON object requested, multiple (or no) rows returned")
        return SimpleNamespace(data=self.rows[0])


class _FakeSupabase:
    def __init__(self, profiles=None, get_user=None, sign_out=None, sign_in=None):
        self.profiles = profiles or []
        self.signed_out = []
        self.auth = SimpleNamespace(
            get_user=get_user or (lambda token: None),
            admin=SimpleNamespace(sign_out=sign_out or self.signed_out.append),
            sign_in_with_password=sign_in,
        )

    def table(self, name):
        assert name == "users"
        return _FakeQuery(list(self.profiles))


def _supa_user(**overrides):
    data = {
        "id": "uuid-1",
        "email": "organizer@example.com",
        "phone": None,
        "user_metadata": {"name": "Meera"},
        "email_confirmed_at": "2024-01-01T00:00:00Z",
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def test_supabase_verify_uses_profile_role() -> None:
    client = _FakeSupabase(
        profiles=[{"id": "uuid-1", "role": "event_organizer", "name": "Meera K"}],
        get_user=lambda token: SimpleNamespace(user=_supa_user()),
    )

    user = asyncio.run(SupabaseAuthBackend(client).verify("jwt"))

    assert user.id == "uuid-1"
    assert user.role == "event_organizer"
    assert user.name == "Meera K"
    assert user.is_verified is True


def test_supabase_verify_without_profile_defaults_to_customer() -> None:
    client = _FakeSupabase(get_user=lambda token: SimpleNamespace(user=_supa_user()))

    user = asyncio.run(SupabaseAuthBackend(client).verify("jwt"))

    assert user.role == "customer"
    assert user.name == "Meera"


def test_supabase_verify_rejects_expired_token() -> None:
    def get_user(token):
        raise ValueError("invalid JWT")

    client = _FakeSupabase(get_user=get_user)

    with pytest.raises(AuthRejectedError):
        asyncio.run(SupabaseAuthBackend(client).verify("jwt"))


def test_supabase_logout_signs_out_token() -> None:
    client = _FakeSupabase()

    asyncio.run(SupabaseAuthBackend(client).logout("jwt"))

    assert client.signed_out == ["jwt"]


def test_supabase_email_login_returns_session_token() -> None:
    def sign_in(credentials):
        assert credentials == {"email": "organizer@example.com", "password": "secret1"}
        return SimpleNamespace(session=SimpleNamespace(access_token="access"), user=_supa_user())

    client = _FakeSupabase(sign_in=sign_in)

    result = asyncio.run(SupabaseAuthBackend(client).login_with_email("Organizer@example.com", "secret1"))

    assert result.token == "access"
    assert result.user.email == "organizer@example.com"


def test_supabase_backend_requires_credentials(monkeypatch) -> None:
    from coastalconnect.config import Settings, get_settings

    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    monkeypatch.setenv("AUTH_BACKEND", "supabase")
    get_settings.cache_clear()
    try:
        with pytest.raises(RuntimeError):
            build_auth_backend(Settings(_env_file=None, AUTH_BACKEND="supabase"))
    finally:
        get_settings.cache_clear()
