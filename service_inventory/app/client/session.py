"""
Client session: the bearer token, the signed-in user and when the token
expires, persisted through a pluggable store.
"""

import json
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from inventory_shared.logging import get_logger
from ..access.permissions import Role, parse_role
from ..access.tokens import TOKEN_LIFETIME_SECONDS, get_unverified_claims

DEFAULT_REFRESH_THRESHOLD_SECONDS = 5 * 60


class SessionUser(BaseModel):
    id: Optional[Union[int, str]] = None
    username: str
    full_name: str = ""
    email: str = ""
    role: str = "user"
    ldap: bool = False


class SessionData(BaseModel):
    token: str
    user: Optional[SessionUser] = None
    expires_at: float


class SessionStore:
    """Persistence for one session record."""

    def load(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data = dict(data) if data else None

    def load(self) -> Optional[Dict[str, Any]]:
        return dict(self.data) if self.data else None

    def save(self, data: Dict[str, Any]) -> None:
        self.data = dict(data)

    def clear(self) -> None:
        self.data = None


class FileSessionStore(SessionStore):
    """JSON file readable only by its owner."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = get_logger("inventory.session")

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self.logger.warning("Session file unreadable", path=str(self.path), error=str(e))
            return None
        return data if isinstance(data, dict) else None

    def save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # created owner-only; chmod covers a file left by an older run
        fd = os.open(self.path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(data))

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class Session:
    """Explicit session handed to the API client.

    Lifecycle: ``load()`` at start, ``login()`` after authenticating,
    ``clear()`` on logout or when the backend answers 401.
    """

    def __init__(self, store: Optional[SessionStore] = None,
                 clock: Callable[[], float] = time.time,
                 default_lifetime: int = TOKEN_LIFETIME_SECONDS,
                 refresh_threshold: float = DEFAULT_REFRESH_THRESHOLD_SECONDS):
        self.store = store or MemorySessionStore()
        self.clock = clock
        self.default_lifetime = default_lifetime
        self.refresh_threshold = refresh_threshold
        self.logger = get_logger("inventory.session")
        self._data: Optional[SessionData] = None

    @property
    def token(self) -> Optional[str]:
        return self._data.token if self._data else None

    @property
    def user(self) -> Optional[SessionUser]:
        return self._data.user if self._data else None

    @property
    def expires_at(self) -> Optional[float]:
        return self._data.expires_at if self._data else None

    @property
    def role(self) -> Optional[Role]:
        if self.user is None:
            return None
        return parse_role(self.user.role)

    def load(self) -> bool:
        """Restore the persisted session; returns True when one was found."""
        raw = self.store.load()
        if not raw:
            self._data = None
            return False
        try:
            self._data = SessionData.model_validate(raw)
        except PydanticValidationError as e:
            self.logger.warning("Discarding malformed session", error=str(e))
            self.clear()
            return False
        return True

    def login(self, token: str, user: Optional[Union[SessionUser, Dict[str, Any]]] = None,
              expires_at: Optional[float] = None) -> SessionData:
        if isinstance(user, dict):
            user = SessionUser.model_validate(user)
        self._data = SessionData(token=token, user=user, expires_at=self._resolve_expiry(token, expires_at))
        self.store.save(self._data.model_dump())
        self.logger.info("Session started", username=user.username if user else None)
        return self._data

    def update_token(self, token: str, expires_at: Optional[float] = None) -> None:
        """Swap in a refreshed token for the same user."""
        self.login(token, self.user, expires_at)

    def clear(self) -> None:
        had_session = self._data is not None
        self._data = None
        self.store.clear()
        if had_session:
            self.logger.info("Session cleared")

    def seconds_remaining(self) -> float:
        if self.expires_at is None:
            return 0.0
        return self.expires_at - self.clock()

    def is_expired(self) -> bool:
        """True when there is no token or it has run out."""
        if not self.token:
            return True
        return self.seconds_remaining() <= 0

    def is_expiring_soon(self, threshold: Optional[float] = None) -> bool:
        if not self.token:
            return True
        if threshold is None:
            threshold = self.refresh_threshold
        return self.seconds_remaining() <= threshold

    @property
    def is_authenticated(self) -> bool:
        return not self.is_expired()

    def auth_header(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _resolve_expiry(self, token: str, expires_at: Optional[float]) -> float:
        if expires_at is not None:
            return float(expires_at)
        exp = get_unverified_claims(token).get("exp")
        if isinstance(exp, (int, float)) and not isinstance(exp, bool):
            return float(exp)
        return self.clock() + self.default_lifetime
