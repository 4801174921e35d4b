"""
Clients for the external auth API.

Nothing here keeps session state: a backend checks credentials and issues or
revokes tokens, the session store decides what to do with the outcome.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from supabase import Client

from .config import Settings
from .exceptions import AuthRejectedError, AuthUnavailableError
from .schemas.auth import AuthEnvelope, AuthResult, RegisterPayload, User, VerifyData

logger = logging.getLogger(__name__)

OAUTH_PROVIDERS = ("google", "apple")


class AuthBackend(ABC):
    @abstractmethod
    async def verify(self, token: str) -> User:
        raise NotImplementedError

    @abstractmethod
    async def logout(self, token: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def login_with_email(self, email: str, password: str) -> AuthResult:
        raise NotImplementedError

    @abstractmethod
    async def register(self, payload: RegisterPayload) -> AuthResult:
        raise NotImplementedError

    @abstractmethod
    async def login_with_oauth(self, provider: str, token: str, user_info: dict | None = None) -> AuthResult:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class RestAuthBackend(AuthBackend):
    """
    Talks to the marketplace REST API. Every endpoint answers with the
    {success, message, data} envelope.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.API_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    async def _request(self, method: str, path: str, token: str | None = None, json: Any = None) -> httpx.Response:
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            return await self._client.request(method, path, headers=headers, json=json)
        except httpx.HTTPError as exc:
            raise AuthUnavailableError(f"Auth API unreachable: {exc}") from exc

    def _envelope(self, response: httpx.Response) -> AuthEnvelope:
        try:
            envelope = AuthEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise AuthRejectedError(
                f"Malformed response from auth API ({response.status_code})",
                status_code=response.status_code,
            ) from exc

        if not response.is_success or not envelope.success:
            raise AuthRejectedError(
                envelope.message or f"Auth API responded with {response.status_code}",
                status_code=response.status_code,
            )
        return envelope

    def _auth_result(self, response: httpx.Response) -> AuthResult:
        envelope = self._envelope(response)
        try:
            return AuthResult.model_validate(envelope.data)
        except ValidationError as exc:
            raise AuthRejectedError("Auth API returned no token or user", status_code=response.status_code) from exc

    async def verify(self, token: str) -> User:
        response = await self._request("GET", self.settings.AUTH_VERIFY_PATH, token=token)
        envelope = self._envelope(response)
        try:
            return VerifyData.model_validate(envelope.data).user
        except ValidationError as exc:
            raise AuthRejectedError("Verify response has no user", status_code=response.status_code) from exc

    async def logout(self, token: str) -> None:
        # Body is irrelevant, only reachability matters.
        await self._request("POST", self.settings.AUTH_LOGOUT_PATH, token=token)

    async def login_with_email(self, email: str, password: str) -> AuthResult:
        response = await self._request(
            "POST",
            self.settings.AUTH_EMAIL_PATH,
            json={"email": email.strip().lower(), "password": password},
        )
        return self._auth_result(response)

    async def register(self, payload: RegisterPayload) -> AuthResult:
        response = await self._request(
            "POST",
            self.settings.AUTH_REGISTER_PATH,
            json=payload.model_dump(exclude_none=True),
        )
        return self._auth_result(response)

    async def login_with_oauth(self, provider: str, token: str, user_info: dict | None = None) -> AuthResult:
        if provider not in OAUTH_PROVIDERS:
            raise AuthRejectedError(f"Unsupported sign-in provider: {provider}", status_code=400)
        body: dict[str, Any] = {"token": token}
        if user_info:
            body["userInfo"] = user_info
        response = await self._request("POST", self.settings.AUTH_OAUTH_PATH.format(provider=provider), json=body)
        return self._auth_result(response)

    async def aclose(self) -> None:
        await self._client.aclose()


class SupabaseAuthBackend(AuthBackend):
    """
    Uses Supabase Auth directly. The supabase client is synchronous, so every
    call runs in the threadpool.
    """

    def __init__(self, service_client: Client, anon_client: Client | None = None):
        self.supabase = service_client
        self.anon = anon_client or service_client

    async def _call(self, func, *args, **kwargs):
        try:
            return await run_in_threadpool(func, *args, **kwargs)
        except httpx.TransportError as exc:
            raise AuthUnavailableError(f"Supabase unreachable: {exc}") from exc
        except Exception as exc:
            raise AuthRejectedError(str(exc) or "Supabase auth request failed", status_code=getattr(exc, "status", None)) from exc

    def _fetch_profile(self, user_id: str) -> dict:
        try:
            profile_res = self.supabase.table("users").select("*").eq("id", user_id).single().execute()
        except Exception:
            # Users without a profile row are still valid accounts.
            logger.debug("No profile row for user %s", user_id)
            return {}
        return profile_res.data or {}

    def _build_user(self, supa_user) -> User:
        profile = self._fetch_profile(supa_user.id)
        metadata = supa_user.user_metadata or {}
        email = supa_user.email or profile.get("email") or ""
        try:
            return User(
                id=supa_user.id,
                email=email,
                name=profile.get("name") or metadata.get("name") or email.split("@")[0],
                phone=profile.get("phone") or supa_user.phone or None,
                role=profile.get("role") or metadata.get("role") or "customer",
                avatar_url=profile.get("avatar_url") or metadata.get("avatar_url"),
                is_verified=profile.get("is_verified", supa_user.email_confirmed_at is not None),
                vendor_status=profile.get("vendor_status"),
                business_name=profile.get("business_name"),
                business_type=profile.get("business_type"),
            )
        except ValidationError as exc:
            raise AuthRejectedError(f"Invalid profile for user {supa_user.id}") from exc

    async def _auth_result(self, res) -> AuthResult:
        if not res.session or not res.user:
            raise AuthRejectedError("Supabase returned no session", status_code=401)
        user = await run_in_threadpool(self._build_user, res.user)
        return AuthResult(token=res.session.access_token, user=user)

    async def verify(self, token: str) -> User:
        user_response = await self._call(self.supabase.auth.get_user, token)
        if not user_response or not user_response.user:
            raise AuthRejectedError("Session expired. Please sign in again.", status_code=401)
        return await run_in_threadpool(self._build_user, user_response.user)

    async def logout(self, token: str) -> None:
        await self._call(self.supabase.auth.admin.sign_out, token)

    async def login_with_email(self, email: str, password: str) -> AuthResult:
        res = await self._call(
            self.anon.auth.sign_in_with_password,
            {"email": email.strip().lower(), "password": password},
        )
        return await self._auth_result(res)

    async def register(self, payload: RegisterPayload) -> AuthResult:
        res = await self._call(
            self.anon.auth.sign_up,
            {
                "email": payload.email,
                "password": payload.password,
                "options": {
                    "data": {
                        "name": payload.name,
                        "phone": payload.phone,
                        "role": payload.role,
                    }
                },
            },
        )
        return await self._auth_result(res)

    async def login_with_oauth(self, provider: str, token: str, user_info: dict | None = None) -> AuthResult:
        if provider not in OAUTH_PROVIDERS:
            raise AuthRejectedError(f"Unsupported sign-in provider: {provider}", status_code=400)
        res = await self._call(self.anon.auth.sign_in_with_id_token, {"provider": provider, "token": token})
        return await self._auth_result(res)


def build_auth_backend(settings: Settings) -> AuthBackend:
    if settings.AUTH_BACKEND == "supabase":
        from .supabase_client import get_supabase_anon_client, get_supabase_client

        return SupabaseAuthBackend(get_supabase_client(), get_supabase_anon_client())
    return RestAuthBackend(settings)
