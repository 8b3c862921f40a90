"""
Per-resource wrappers over ``ApiClient``.
"""

from typing import Any, Dict, Optional, Union

from inventory_shared.config import BaseConfig, get_client_config
from inventory_shared.errors import ApiError, AuthenticationError
from inventory_shared.logging import get_logger
from .api_client import ApiClient, ApiResponse
from .session import FileSessionStore, Session

RecordId = Union[int, str]


def _params(**filters) -> Optional[Dict[str, Any]]:
    params = {key: value for key, value in filters.items() if value is not None}
    return params or None


class ResourceClient:
    """CRUD and search for one backend collection."""

    path = ""

    def __init__(self, client: ApiClient):
        self.client = client

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def _item(self, record_id: RecordId, *suffix: str) -> str:
        return "/".join([self.path, str(record_id), *suffix])

    async def list(self, **filters) -> ApiResponse:
        return await self.client.get(self.path, params=_params(**filters))

    async def get(self, record_id: RecordId) -> ApiResponse:
        return await self.client.get(self._item(record_id))

    async def search(self, query: str) -> ApiResponse:
        return await self.client.get(f"{self.path}/search", params={"q": query})

    async def create(self, data: Dict[str, Any]) -> ApiResponse:
        return await self.client.submit(f"{self.name}:create", "POST", self.path, json=data)

    async def update(self, record_id: RecordId, data: Dict[str, Any]) -> ApiResponse:
        return await self.client.submit(f"{self.name}:update:{record_id}", "PUT", self._item(record_id), json=data)

    async def delete(self, record_id: RecordId) -> ApiResponse:
        return await self.client.submit(f"{self.name}:delete:{record_id}", "DELETE", self._item(record_id))


class EmployeeClient(ResourceClient):
    path = "/api/employees"

    async def by_department(self, department: str) -> ApiResponse:
        return await self.list(department=department)


class HardwareClient(ResourceClient):
    path = "/api/hardware"

    async def by_type(self, hardware_type: str) -> ApiResponse:
        return await self.list(type=hardware_type)

    async def available(self) -> ApiResponse:
        return await self.list(status="available")


class SoftwareClient(ResourceClient):
    path = "/api/software"


class AssignmentClient(ResourceClient):
    path = "/api/assignments"

    async def return_asset(self, record_id: RecordId, return_data: Dict[str, Any]) -> ApiResponse:
        return await self.client.submit(
            f"{self.name}:return:{record_id}", "PUT", self._item(record_id, "return"), json=return_data,
        )

    async def for_employee(self, employee_id: RecordId) -> ApiResponse:
        return await self.list(employee_id=employee_id)

    async def active(self) -> ApiResponse:
        return await self.list(status="active")

    async def overdue(self) -> ApiResponse:
        return await self.list(status="overdue")


class UserClient(ResourceClient):
    path = "/api/users"

    async def activate(self, record_id: RecordId) -> ApiResponse:
        return await self.client.submit(f"users:activate:{record_id}", "PUT", self._item(record_id, "activate"))

    async def deactivate(self, record_id: RecordId) -> ApiResponse:
        return await self.client.submit(f"users:deactivate:{record_id}", "PUT", self._item(record_id, "deactivate"))

    async def change_password(self, record_id: RecordId, current_password: str, new_password: str) -> ApiResponse:
        return await self.client.submit(
            f"users:password:{record_id}", "PUT", self._item(record_id, "password"),
            json={"current_password": current_password, "new_password": new_password},
        )

    async def reset_password(self, record_id: RecordId, new_password: str) -> ApiResponse:
        return await self.client.submit(
            f"users:reset-password:{record_id}", "PUT", self._item(record_id, "reset-password"),
            json={"new_password": new_password},
        )


class ActivityClient(ResourceClient):
    path = "/api/activities"

    async def recent(self, limit: int = 10) -> ApiResponse:
        return await self.client.get(f"{self.path}/recent", params={"limit": limit})


class AuthClient:
    """Login, logout and token refresh; keeps the session in step."""

    path = "/api/auth"

    def __init__(self, client: ApiClient):
        self.client = client
        self.logger = get_logger("inventory.client.auth")

    @property
    def session(self) -> Session:
        return self.client.session

    async def login(self, username: str, password: str) -> ApiResponse:
        if self.session.is_expired():
            self.session.clear()
        response = await self.client.submit(
            "auth:login", "POST", f"{self.path}/login",
            json={"username": username, "password": password},
        )
        data = response.data or {}
        if not isinstance(data, dict) or not data.get("token"):
            raise ApiError(200, response.message or "Login failed", response.model_dump())
        self.session.login(data["token"], data.get("user"), data.get("expires_at"))
        return response

    async def logout(self) -> None:
        """Tell the backend, then always drop the local session."""
        try:
            await self.client.post(f"{self.path}/logout")
        except (ApiError, AuthenticationError) as e:
            self.logger.warning("Logout request failed", code=e.code, error=e.message)
        finally:
            self.session.clear()

    async def refresh(self) -> ApiResponse:
        response = await self.client.submit("auth:refresh", "POST", f"{self.path}/refresh")
        data = response.data or {}
        if isinstance(data, dict) and data.get("token"):
            self.session.update_token(data["token"], data.get("expires_at"))
        return response

    async def ensure_fresh(self) -> bool:
        """Refresh a live token that is inside the refresh window; True if refreshed."""
        if self.session.is_expired() or not self.session.is_expiring_soon():
            return False
        await self.refresh()
        return True

    async def me(self) -> ApiResponse:
        return await self.client.get(f"{self.path}/me")


class InventoryClient:
    """All resource clients over one session and HTTP connection pool."""

    def __init__(self, client: ApiClient):
        self.api = client
        self.employees = EmployeeClient(client)
        self.hardware = HardwareClient(client)
        self.software = SoftwareClient(client)
        self.assignments = AssignmentClient(client)
        self.users = UserClient(client)
        self.activities = ActivityClient(client)
        self.auth = AuthClient(client)

    @classmethod
    def from_config(cls, config: Optional[BaseConfig] = None, **kwargs) -> "InventoryClient":
        """Build a client whose session persists under the runtime directory."""
        config = config or get_client_config()
        session = Session(FileSessionStore(config.session_path),
                          refresh_threshold=config.token_refresh_threshold_seconds)
        session.load()
        return cls(ApiClient(session, config=config, **kwargs))

    async def aclose(self):
        await self.api.aclose()

    async def __aenter__(self) -> "InventoryClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
