from typing import Literal
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from ..backends import AuthBackend
from ..dependencies import get_auth_backend, get_current_user, get_session_store
from ..exceptions import AuthBackendError, AuthUnavailableError
from ..permissions import home_path_for_role
from ..schemas.auth import (
    AuthResult,
    EmailLoginPayload,
    OAuthLoginPayload,
    RegisterPayload,
    SessionState,
    User,
)
from ..session import SessionStore

router = APIRouter(prefix="/auth", tags=["auth"])


def _failure(exc: AuthBackendError, default_status: int, message: str) -> JSONResponse:
    if isinstance(exc, AuthUnavailableError):
        status_code = 503
        message = "Service temporarily unavailable. Please try again."
    elif exc.status_code and 400 <= exc.status_code < 600:
        status_code = exc.status_code
        message = exc.message or message
    else:
        status_code = default_status
        message = exc.message or message
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _is_local_path(path: str | None) -> bool:
    if not path or not path.startswith("/") or path.startswith("//"):
        return False
    # Browsers read "\" as "/" and drop tabs and newlines inside URLs.
    if "\\" in path or any(ord(char) < 32 or ord(char) == 127 for char in path):
        return False
    parts = urlsplit(path)
    return not parts.scheme and not parts.netloc


def _complete_login(store: SessionStore, result: AuthResult, redirect: str | None, message: str) -> dict:
    """
    Starts the session and works out where the user goes next: on to finish
    a booking they started while signed out, to the page that sent them to
    login, or to their role's dashboard.
    """
    user = store.login(result.token, result.user)

    if store.has_pending_booking() and store.has_permission("booking:create"):
        # The booking stays stashed until the resume endpoint reads it.
        target = "/bookings/continue"
    elif _is_local_path(redirect):
        target = redirect
    else:
        target = home_path_for_role(user.role)

    return {
        "success": True,
        "message": message,
        "data": {"user": user.model_dump(), "redirect": target},
    }


@router.post("/email")
async def email_login(
    payload: EmailLoginPayload,
    redirect: str | None = None,
    store: SessionStore = Depends(get_session_store),
    backend: AuthBackend = Depends(get_auth_backend),
):
    try:
        result = await backend.login_with_email(payload.email, payload.password)
    except AuthBackendError as exc:
        return _failure(exc, 401, "Invalid email or password")
    return _complete_login(store, result, redirect, "Email authentication successful")


@router.post("/register", status_code=201)
async def register(
    payload: RegisterPayload,
    redirect: str | None = None,
    store: SessionStore = Depends(get_session_store),
    backend: AuthBackend = Depends(get_auth_backend),
):
    try:
        result = await backend.register(payload)
    except AuthBackendError as exc:
        return _failure(exc, 400, "Registration failed. Please try again.")
    return _complete_login(store, result, redirect, "User registered successfully")


@router.get("/session", response_model=SessionState)
def session_state(store: SessionStore = Depends(get_session_store)):
    return store.snapshot()


@router.get("/me", response_model=User)
def me(user: User = Depends(get_current_user)):
    return user


@router.post("/logout")
async def logout(store: SessionStore = Depends(get_session_store)):
    await store.logout()
    # Full page navigation, not a client-side route change.
    return RedirectResponse(url=store.settings.ROOT_PATH, status_code=303)


@router.post("/{provider}")
async def oauth_login(
    provider: Literal["google", "apple"],
    payload: OAuthLoginPayload,
    redirect: str | None = None,
    store: SessionStore = Depends(get_session_store),
    backend: AuthBackend = Depends(get_auth_backend),
):
    try:
        result = await backend.login_with_oauth(provider, payload.token, payload.user_info)
    except AuthBackendError as exc:
        return _failure(exc, 401, f"{provider.capitalize()} authentication failed")
    return _complete_login(store, result, redirect, f"{provider.capitalize()} authentication successful")
