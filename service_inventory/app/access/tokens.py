"""
Bearer token verification for the toolkit API guard.
"""

from typing import Any, Dict, Optional

from jose import jwt
from jose.exceptions import JWTError
from pydantic import BaseModel

from inventory_shared.errors import AuthenticationError
from inventory_shared.logging import get_logger
from .permissions import parse_role

TOKEN_LIFETIME_SECONDS = 3 * 60 * 60


class TokenVerificationResponse(BaseModel):
    """Outcome of verifying a bearer token."""
    valid: bool
    claims: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def strip_bearer(token: str) -> str:
    token = (token or "").strip()
    if token[:7].lower() == "bearer ":
        return token[7:].strip()
    return token


class TokenVerifier:
    """Verifies HS256 tokens issued by the inventory backend."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm
        self.logger = get_logger("inventory.tokens")

    def verify_token(self, token: str) -> TokenVerificationResponse:
        """Verify signature and expiry of a token."""
        try:
            claims = jwt.decode(
                strip_bearer(token),
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_aud": False},
            )
            return TokenVerificationResponse(valid=True, claims=claims)
        except JWTError as e:
            self.logger.warning("Token verification failed", error=str(e))
            return TokenVerificationResponse(valid=False, error=str(e))

    def extract_claims(self, token: str) -> Dict[str, Any]:
        response = self.verify_token(token)

        if not response.valid:
            raise AuthenticationError(
                f"Invalid token: {response.error}",
                details={"token_error": response.error},
            )
        return response.claims

    def get_user_info(self, token: str) -> Dict[str, Any]:
        """Shape the claims of a valid token into the session user."""
        claims = self.extract_claims(token)
        role = parse_role(claims.get("role"))

        return {
            "user_id": claims.get("id", claims.get("sub")),
            "username": claims.get("username"),
            "role": role.value if role else None,
            "ldap": bool(claims.get("ldap", False)),
            "exp": claims.get("exp"),
            "iat": claims.get("iat"),
        }


def get_unverified_claims(token: str) -> Dict[str, Any]:
    """Read claims without checking the signature; malformed tokens give {}."""
    try:
        return jwt.get_unverified_claims(strip_bearer(token))
    except JWTError:
        return {}
