"""
Static authorization tables for the marketplace.

Role permissions and section access are plain data: the session store looks
them up once per login/restore and per guard check, nothing is computed here.
"""

from types import MappingProxyType

ROLE_PERMISSIONS = MappingProxyType({
    "admin": frozenset({
        "admin:dashboard",
        "admin:users",
        "admin:vendors",
        "admin:bookings",
        "admin:payments",
        "admin:analytics",
        "admin:settings",
        "vendor:approve",
        "vendor:reject",
        "event:approve",
        "event:reject",
        "system:manage",
    }),
    "vendor": frozenset({
        "vendor:dashboard",
        "vendor:profile",
        "vendor:bookings",
        "vendor:earnings",
        "vendor:availability",
        "vendor:reviews",
        "booking:manage",
    }),
    "customer": frozenset({
        "customer:dashboard",
        "customer:profile",
        "customer:bookings",
        "customer:reviews",
        "booking:create",
        "booking:cancel",
    }),
    "event_organizer": frozenset({
        "event:dashboard",
        "event:create",
        "event:manage",
        "event:bookings",
        "event:analytics",
        "customer:profile",
        "customer:bookings",
    }),
})

SECTION_ACCESS = MappingProxyType({
    "/admin": frozenset({"admin"}),
    "/vendor": frozenset({"vendor", "admin"}),
    "/dashboard": frozenset({"customer", "vendor", "event_organizer", "admin"}),
    "/business": frozenset({"vendor", "admin"}),
    "/events": frozenset({"event_organizer", "admin"}),
    "/analytics": frozenset({"admin", "vendor", "event_organizer"}),
})

ROLE_HOME_PATHS = MappingProxyType({
    "admin": "/admin",
    "vendor": "/vendor",
    "event_organizer": "/organizer-dashboard",
    "customer": "/dashboard",
})

# Vendors awaiting approval may only reach these sections.
PENDING_VENDOR_PATHS = ("/vendor", "/dashboard", "/profile")
PENDING_VENDOR_REDIRECT = "/vendor?status=pending"


def permissions_for_role(role: str) -> list[str]:
    return sorted(ROLE_PERMISSIONS.get(role, frozenset()))


def _matches_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def allowed_roles_for(path: str) -> frozenset | None:
    """
    Returns the roles allowed on 'path', or None when no rule covers it.
    The longest matching prefix wins; prefixes only match whole segments.
    """
    matches = [prefix for prefix in SECTION_ACCESS if _matches_prefix(path, prefix)]
    if not matches:
        return None
    return SECTION_ACCESS[max(matches, key=len)]


def home_path_for_role(role: str | None) -> str:
    return ROLE_HOME_PATHS.get(role, "/dashboard")


def is_pending_vendor_path(path: str) -> bool:
    if path == "/":
        return True
    return any(_matches_prefix(path, prefix) for prefix in PENDING_VENDOR_PATHS)
