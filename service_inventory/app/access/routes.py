"""
Route guard table for the inventory console and its APIs.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .permissions import Role, parse_role

ALL_ROLES: Tuple[Role, ...] = (Role.ADMIN, Role.MANAGER, Role.USER)
STAFF_ROLES: Tuple[Role, ...] = (Role.ADMIN, Role.MANAGER)
ADMIN_ONLY: Tuple[Role, ...] = (Role.ADMIN,)

LOGIN_PATH = "/login"
DEFAULT_REDIRECT = "/dashboard"


@dataclass(frozen=True)
class RouteConfig:
    """Access requirements for a path and everything below it."""
    path: str
    require_auth: bool
    allowed_roles: Optional[Tuple[Role, ...]] = None
    redirect_to: Optional[str] = None
    description: str = ""


ROUTE_CONFIG: Tuple[RouteConfig, ...] = (
    # Public
    RouteConfig("/login", False, description="Login page"),
    RouteConfig("/api/auth/login", False, description="Login API"),
    RouteConfig("/api/auth/refresh", False, description="Token refresh API"),

    # Console pages
    RouteConfig("/dashboard", True, ALL_ROLES, description="Main dashboard"),
    RouteConfig("/employees", True, STAFF_ROLES, DEFAULT_REDIRECT, "Employee management"),
    RouteConfig("/hardware", True, STAFF_ROLES, DEFAULT_REDIRECT, "Hardware asset management"),
    RouteConfig("/software", True, STAFF_ROLES, DEFAULT_REDIRECT, "Software inventory"),
    RouteConfig("/assignments", True, STAFF_ROLES, DEFAULT_REDIRECT, "Asset assignments"),
    RouteConfig("/users", True, ADMIN_ONLY, DEFAULT_REDIRECT, "User management"),

    # Backend APIs
    RouteConfig("/api/employees", True, STAFF_ROLES, description="Employee API"),
    RouteConfig("/api/hardware", True, STAFF_ROLES, description="Hardware API"),
    RouteConfig("/api/software", True, STAFF_ROLES, description="Software API"),
    RouteConfig("/api/assignments", True, ALL_ROLES, description="Assignments API"),
    RouteConfig("/api/admin", True, ADMIN_ONLY, description="Admin APIs"),

    # Toolkit APIs
    RouteConfig("/api/records", True, ALL_ROLES, description="Record filter and sort"),
    RouteConfig("/api/imports", True, STAFF_ROLES, description="File import preview and validation"),
    RouteConfig("/api/exports", True, STAFF_ROLES, description="Data export"),
    RouteConfig("/api/reports", True, STAFF_ROLES, description="Custom reports"),
    RouteConfig("/api/assignments/eligibility", True, STAFF_ROLES, description="Assignment eligibility"),
    RouteConfig("/api/assignments/return-check", True, STAFF_ROLES, description="Return inspection"),
    RouteConfig("/api/validation", True, ALL_ROLES, description="Form validation"),
)


def _is_prefix(prefix: str, path: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def get_route_config(path: str) -> Optional[RouteConfig]:
    """Exact match first, then the longest matching path prefix."""
    for config in ROUTE_CONFIG:
        if config.path == path:
            return config

    candidates = [config for config in ROUTE_CONFIG
                  if config.path != "/" and _is_prefix(config.path, path)]
    if not candidates:
        return None
    return max(candidates, key=lambda config: len(config.path))


def requires_authentication(path: str) -> bool:
    config = get_route_config(path)
    return config.require_auth if config else True


def is_role_allowed(path: str, user_role) -> bool:
    """Unknown paths deny; public or unrestricted routes allow any role."""
    config = get_route_config(path)
    if config is None:
        return False
    if not config.require_auth or config.allowed_roles is None:
        return True
    role = parse_role(user_role)
    return role is not None and role in config.allowed_roles


def get_redirect_url(path: str, is_authenticated: bool, user_role=None) -> Optional[str]:
    """Where to send a visitor who may not open ``path``, or None."""
    if not requires_authentication(path):
        return None
    if not is_authenticated:
        return LOGIN_PATH
    if user_role and not is_role_allowed(path, user_role):
        config = get_route_config(path)
        return (config.redirect_to if config else None) or DEFAULT_REDIRECT
    return None


def is_public_route(path: str) -> bool:
    return not requires_authentication(path)


def is_admin_only_route(path: str) -> bool:
    config = get_route_config(path)
    return bool(config and config.allowed_roles == ADMIN_ONLY)


def allows_manager_role(path: str) -> bool:
    config = get_route_config(path)
    return bool(config and config.allowed_roles and Role.MANAGER in config.allowed_roles)


def get_access_denied_message(path: str, user_role=None) -> str:
    config = get_route_config(path)
    roles = config.allowed_roles if config else None

    if not roles:
        return "You do not have permission to access this page."
    if Role.ADMIN in roles and Role.MANAGER not in roles:
        return "This page is available to administrators only."
    if Role.MANAGER in roles and Role.USER not in roles:
        return "This page is available to administrators and managers only."
    return "You do not have permission to access this page."


def get_protected_routes() -> List[str]:
    """Console (non-API) paths that require a signed-in user."""
    return [config.path for config in ROUTE_CONFIG
            if config.require_auth and not config.path.startswith("/api")]


def get_public_routes() -> List[str]:
    return [config.path for config in ROUTE_CONFIG
            if not config.require_auth and not config.path.startswith("/api")]
