from urllib.parse import urlencode

from fastapi import Depends, HTTPException, Request

from .backends import AuthBackend
from .permissions import PENDING_VENDOR_REDIRECT, home_path_for_role, is_pending_vendor_path
from .schemas.auth import User
from .session import SessionStore


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_auth_backend(request: Request) -> AuthBackend:
    return request.app.state.auth_backend


def _redirect(location: str, status_code: int = 303, detail: str = "Redirect") -> HTTPException:
    return HTTPException(status_code=status_code, detail=detail, headers={"Location": location})


def _signed_in_user(request: Request, store: SessionStore) -> User:
    """
    Returns the session user, or raises: 503 while the session is still being
    restored, and a redirect to the login page when nobody is signed in.
    """
    if store.loading:
        raise HTTPException(status_code=503, detail="Session is still loading")
    if store.user is None:
        query = urlencode({"redirect": request.url.path})
        raise _redirect(f"{store.settings.LOGIN_PATH}?{query}", status_code=307, detail="Sign in required")
    return store.user


def get_current_user(store: SessionStore = Depends(get_session_store)) -> User:
    if store.loading:
        raise HTTPException(status_code=503, detail="Session is still loading")
    if store.user is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return store.user


def get_current_user_optional(store: SessionStore = Depends(get_session_store)) -> User | None:
    """
    Returns the user if signed in, otherwise None.
    Does NOT raise, and reports nobody while the session is loading.
    """
    if store.loading:
        return None
    return store.user


def require_roles(*roles: str):
    """Builds a guard that only lets the given roles through."""

    def dependency(request: Request, store: SessionStore = Depends(get_session_store)) -> User:
        user = _signed_in_user(request, store)
        if not store.has_role(roles):
            # Send the user to their own dashboard instead.
            raise _redirect(home_path_for_role(user.role), detail="Insufficient role")
        return user

    return dependency


def require_section(request: Request, store: SessionStore = Depends(get_session_store)) -> User:
    """
    Guards the requested path with the section access table.
    Vendors awaiting approval are kept on their status page.
    """
    path = request.url.path
    user = _signed_in_user(request, store)
    if not store.can_access(path):
        raise _redirect(home_path_for_role(user.role), detail="Section not available for this role")
    if user.role == "vendor" and user.vendor_status == "pending" and not is_pending_vendor_path(path):
        raise _redirect(PENDING_VENDOR_REDIRECT, detail="Vendor approval pending")
    return user


def require_permission(permission: str):
    def dependency(request: Request, store: SessionStore = Depends(get_session_store)) -> User:
        user = _signed_in_user(request, store)
        if not store.has_permission(permission):
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission}")
        return user

    return dependency


require_admin = require_roles("admin")
require_vendor_admin = require_roles("vendor", "admin")
