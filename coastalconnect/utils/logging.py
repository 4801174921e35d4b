import logging
from typing import Any, Optional

logger = logging.getLogger("coastalconnect.session")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def log_session_event(
    user: Any,
    action: str,
    details: Optional[Any] = None,
    level: int = logging.INFO,
):
    """
    Records a session lifecycle event (login, logout, restore...).
    'user' is the session User, a plain dict, or None when nobody is signed in.
    """
    try:
        if user is not None and not isinstance(user, dict):
            user = user.model_dump()
        user = user or {}
        entry = {
            "user_id": user.get("id"),
            "user_name": user.get("name") or user.get("email"),
            "user_role": user.get("role"),
            "action": action,
            "details": details,
        }
        logger.log(
            level,
            "session %s user_id=%s role=%s details=%s",
            action,
            entry["user_id"],
            entry["user_role"],
            details,
            extra={"session_event": entry},
        )
    except Exception as e:
        # Diagnostics must never break the session flow.
        logger.warning("Failed to record session event %s: %s", action, e)
