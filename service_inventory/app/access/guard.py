"""
Request guard for the toolkit API: bearer token, then route table.
"""

from typing import Any, Dict, Optional

from inventory_shared.errors import AuthenticationError, AuthorizationError
from inventory_shared.logging import get_logger, set_user_context
from .routes import get_access_denied_message, is_role_allowed, requires_authentication
from .tokens import TokenVerifier


class AccessGuard:
    """Authenticates API requests and checks roles against the route table."""

    def __init__(self, verifier: TokenVerifier):
        self.verifier = verifier
        self.logger = get_logger("inventory.guard")

    def authenticate(self, authorization: Optional[str]) -> Dict[str, Any]:
        if not authorization:
            raise AuthenticationError("Authorization header required")
        if not authorization.startswith("Bearer "):
            raise AuthenticationError("Invalid authorization header format")

        user_info = self.verifier.get_user_info(authorization[7:])
        if user_info["role"] is None:
            raise AuthenticationError("Token carries no recognised role")

        set_user_context(
            str(user_info["user_id"]) if user_info["user_id"] is not None else None,
            user_info["role"],
        )
        return user_info

    def authorize(self, path: str, user_info: Dict[str, Any]) -> None:
        if not is_role_allowed(path, user_info.get("role")):
            self.logger.warning(
                "Request denied",
                path=path,
                user_id=user_info.get("user_id"),
                role=user_info.get("role"),
            )
            raise AuthorizationError(
                get_access_denied_message(path, user_info.get("role")),
                details={"path": path, "role": user_info.get("role")},
            )

    def check(self, path: str, authorization: Optional[str]) -> Optional[Dict[str, Any]]:
        """Guard one request; public paths pass without a token."""
        if not requires_authentication(path):
            return None
        user_info = self.authenticate(authorization)
        self.authorize(path, user_info)
        return user_info
