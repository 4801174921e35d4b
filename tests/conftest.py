import pytest

from coastalconnect.backends import AuthBackend
from coastalconnect.config import Settings
from coastalconnect.schemas.auth import AuthResult, User
from coastalconnect.storage import MemoryStorage


class FakeBackend(AuthBackend):
    """Records calls and answers from canned results or raises canned errors."""

    def __init__(self, user=None, verify_error=None, logout_error=None, login_result=None, login_error=None):
        self.user = user
        self.verify_error = verify_error
        self.logout_error = logout_error
        self.login_result = login_result
        self.login_error = login_error
        self.calls = []
        self.closed = False

    async def verify(self, token):
        self.calls.append(("verify", token))
        if self.verify_error is not None:
            raise self.verify_error
        return self.user

    async def logout(self, token):
        self.calls.append(("logout", token))
        if self.logout_error is not None:
            raise self.logout_error

    async def _login(self, *call):
        self.calls.append(call)
        if self.login_error is not None:
            raise self.login_error
        return self.login_result

    async def login_with_email(self, email, password):
        return await self._login("login_with_email", email, password)

    async def register(self, payload):
        return await self._login("register", payload.email)

    async def login_with_oauth(self, provider, token, user_info=None):
        return await self._login("login_with_oauth", provider, token)

    async def aclose(self):
        self.closed = True


def make_user(role="customer", **overrides):
    data = {"id": 1, "email": f"{role}@example.com", "name": role.title(), "role": role, "is_verified": True}
    data.update(overrides)
    return User(**data)


@pytest.fixture
def settings():
    return Settings(_env_file=None, AUTH_BACKEND="rest", API_BASE_URL="http://auth.test")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def auth_result_factory():
    def _make(role="customer", token="tok123", **overrides):
        return AuthResult(token=token, user=make_user(role, **overrides))

    return _make
