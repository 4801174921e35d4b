"""
Process-wide session: who is signed in and what they may do.

The store owns the current user, the persisted bearer token and the
pending-booking stash. It delegates every credential check to an
AuthBackend and never raises on backend failures: a failed restore or a
failed server logout leaves the session signed out and is only logged.
"""

import asyncio
import enum
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from .backends import AuthBackend
from .config import Settings, get_settings
from .exceptions import AuthUnavailableError
from .permissions import allowed_roles_for, permissions_for_role
from .schemas.auth import SessionState, User
from .schemas.booking import PendingBooking
from .storage import LocalStorage
from .utils.logging import log_session_event

logger = logging.getLogger(__name__)


class RestoreError(str, enum.Enum):
    NO_CREDENTIAL = "no_credential"
    UNREACHABLE = "unreachable"
    REJECTED = "rejected"


@dataclass(frozen=True)
class RestoreResult:
    user: User | None = None
    error: RestoreError | None = None

    @property
    def ok(self) -> bool:
        return self.user is not None


def with_permissions(user: User) -> User:
    return user.model_copy(update={"permissions": permissions_for_role(user.role)})


class SessionStore:
    def __init__(
        self,
        backend: AuthBackend,
        storage: LocalStorage,
        settings: Settings | None = None,
        navigate: Callable[[str], Any] | None = None,
    ):
        self.backend = backend
        self.storage = storage
        self.settings = settings or get_settings()
        self._navigate = navigate
        self._user: User | None = None
        self._loading = True
        self._restore_result: RestoreResult | None = None
        self._restore_lock = asyncio.Lock()

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def token(self) -> str | None:
        return self.storage.get_item(self.settings.AUTH_TOKEN_KEY)

    def _discard_token(self) -> None:
        self.storage.remove_item(self.settings.AUTH_TOKEN_KEY)

    async def restore(self) -> RestoreResult:
        """
        Tries to resume the previous session from the persisted token.
        Runs once; later calls return the first outcome without network I/O.
        """
        async with self._restore_lock:
            if self._restore_result is not None:
                return self._restore_result
            try:
                result = await self._restore()
            except Exception as exc:
                logger.error("Auth check failed: %s", exc)
                result = RestoreResult(error=RestoreError.REJECTED)
            finally:
                self._loading = False
            self._restore_result = result
            return result

    async def _restore(self) -> RestoreResult:
        token = self.token
        if not token:
            return RestoreResult(error=RestoreError.NO_CREDENTIAL)

        try:
            user = await self.backend.verify(token)
        except AuthUnavailableError as exc:
            logger.error("Auth check failed, auth API unreachable: %s", exc)
            self._discard_token()
            return RestoreResult(error=RestoreError.UNREACHABLE)
        except Exception as exc:
            logger.error("Auth check failed: %s", exc)
            self._discard_token()
            return RestoreResult(error=RestoreError.REJECTED)

        self._user = with_permissions(user)
        log_session_event(self._user, "restore")
        return RestoreResult(user=self._user)

    def login(self, token: str, user_data: User | Mapping[str, Any]) -> User:
        """
        Starts a session for a user the caller already authenticated against
        the API. Invalid user data raises ValidationError before anything changes.
        """
        if isinstance(user_data, User):
            user = user_data
        else:
            user = User.model_validate(dict(user_data))
        user = with_permissions(user)

        self.storage.set_item(self.settings.AUTH_TOKEN_KEY, token)
        self._user = user
        log_session_event(user, "login")
        return user

    async def logout(self) -> None:
        previous = self._user
        try:
            token = self.token
            if token:
                await self.backend.logout(token)
        except Exception as exc:
            # Client sign out proceeds regardless of the server.
            logger.error("Server logout failed: %s", exc)
        finally:
            self._user = None
            for key in (self.settings.AUTH_TOKEN_KEY, self.settings.PENDING_BOOKING_KEY):
                try:
                    self.storage.remove_item(key)
                except Exception as exc:
                    logger.error("Could not clear %s from storage: %s", key, exc)
            if previous is not None:
                log_session_event(previous, "logout")
            if self._navigate is not None:
                self._navigate(self.settings.ROOT_PATH)

    def has_permission(self, permission: str) -> bool:
        if self._user is None:
            return False
        return permission in self._user.permissions

    def has_role(self, roles: str | Iterable[str]) -> bool:
        if self._user is None:
            return False
        if isinstance(roles, str):
            roles = (roles,)
        return self._user.role in set(roles)

    def can_access(self, section: str) -> bool:
        if self._user is None:
            return False
        allowed_roles = allowed_roles_for(section)
        if allowed_roles is None:
            # Unlisted sections are open to any signed-in user.
            return True
        return self._user.role in allowed_roles

    def stash_pending_booking(self, booking: PendingBooking) -> None:
        self.storage.set_item(self.settings.PENDING_BOOKING_KEY, booking.model_dump_json())

    def has_pending_booking(self) -> bool:
        return self.storage.get_item(self.settings.PENDING_BOOKING_KEY) is not None

    def consume_pending_booking(self) -> PendingBooking | None:
        raw = self.storage.get_item(self.settings.PENDING_BOOKING_KEY)
        if raw is None:
            return None
        self.storage.remove_item(self.settings.PENDING_BOOKING_KEY)
        try:
            return PendingBooking.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            logger.warning("Discarding unreadable pending booking")
            return None

    def snapshot(self) -> SessionState:
        return SessionState(
            loading=self._loading,
            is_authenticated=self.is_authenticated,
            user=self._user,
        )
