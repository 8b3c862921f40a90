"""
Async client for the inventory REST backend.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict

from inventory_shared.config import BaseConfig, get_client_config
from inventory_shared.errors import ApiError, AuthenticationError
from inventory_shared.logging import get_logger
from inventory_shared.retry import RetryConfig, retry_on_exception
from ..access.routes import LOGIN_PATH
from .session import Session

T = TypeVar("T")

BINARY_CONTENT_TYPES = (
    "application/vnd.openxmlformats",
    "application/octet-stream",
    "application/pdf",
)


class ApiResponse(BaseModel):
    """Normalised ``{success, data, message, error}`` envelope."""
    model_config = ConfigDict(extra="allow")

    success: bool = True
    data: Any = None
    message: Optional[str] = None
    error: Any = None


def error_message(body: Any, status: int) -> str:
    """``message``, then ``error``, then ``HTTP <status>``."""
    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if error:
            return str(error)
    return f"HTTP {status}"


ENVELOPE_KEYS = ("data", "error", "message")


def is_envelope(body: Any) -> bool:
    """A ``{success, data|error|message}`` wrapper, not a payload that has a ``success`` field."""
    return (
        isinstance(body, dict)
        and isinstance(body.get("success"), bool)
        and any(key in body for key in ENVELOPE_KEYS)
    )


def normalize_envelope(body: Any) -> ApiResponse:
    if is_envelope(body):
        return ApiResponse.model_validate(body)
    return ApiResponse(success=True, data=body)


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, ApiError) and error.is_retryable


class SingleFlight:
    """Collapses concurrent calls with the same key onto one pending call."""

    def __init__(self):
        self._pending: Dict[str, "asyncio.Future[Any]"] = {}

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        pending = self._pending.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(factory())
        self._pending[key] = task
        try:
            return await asyncio.shield(task)
        finally:
            if self._pending.get(key) is task:
                del self._pending[key]


class ApiClient:
    """Bearer-authenticated JSON client with retries for transient failures."""

    def __init__(self, session: Session,
                 base_url: Optional[str] = None,
                 config: Optional[BaseConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 retry_config: Optional[RetryConfig] = None,
                 timeout: Optional[float] = None):
        config = config or get_client_config()
        self.session = session
        self.base_url = (base_url or config.api_url).rstrip("/")
        self.logger = get_logger("inventory.client")
        self.retry_config = retry_config or RetryConfig(
            max_attempts=config.max_retries + 1,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
            exponential_base=2.0,
            jitter=False,
            reraise=True,
        )
        self.single_flight = SingleFlight()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else config.request_timeout,
            transport=transport,
        )
        self._send_with_retry = retry_on_exception(
            (ApiError,), config=self.retry_config, should_retry=is_retryable
        )(self._send)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def request(self, method: str, endpoint: str, **kwargs) -> ApiResponse:
        if self.session.token and self.session.is_expired():
            self.session.clear()
            raise AuthenticationError("Token expired", redirect_to=LOGIN_PATH)
        return await self._send_with_retry(method, endpoint, **kwargs)

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, data: Any = None) -> ApiResponse:
        return await self.request("POST", endpoint, json=data)

    async def put(self, endpoint: str, data: Any = None) -> ApiResponse:
        return await self.request("PUT", endpoint, json=data)

    async def patch(self, endpoint: str, data: Any = None) -> ApiResponse:
        return await self.request("PATCH", endpoint, json=data)

    async def delete(self, endpoint: str) -> ApiResponse:
        return await self.request("DELETE", endpoint)

    async def upload(self, endpoint: str, filename: str, content: bytes,
                     field: str = "file", fields: Optional[Dict[str, str]] = None,
                     content_type: str = "application/octet-stream") -> ApiResponse:
        """Multipart upload of one file plus optional form fields."""
        return await self.request(
            "POST", endpoint,
            files={field: (filename, content, content_type)},
            data=fields,
        )

    async def submit(self, action: str, method: str, endpoint: str, **kwargs) -> ApiResponse:
        """Send a mutating request at most once per ``action`` at a time."""
        if self.single_flight.is_pending(action):
            self.logger.info("Joining pending request", action=action)
        return await self.single_flight.run(action, lambda: self.request(method, endpoint, **kwargs))

    async def _send(self, method: str, endpoint: str, **kwargs) -> ApiResponse:
        try:
            response = await self._client.request(method, endpoint, headers=self.session.auth_header(), **kwargs)
        except httpx.TimeoutException as e:
            raise ApiError(408, "Request timed out", retryable=True) from e
        except httpx.RequestError as e:
            self.logger.warning("Backend request failed", method=method, endpoint=endpoint, error=str(e))
            raise ApiError(0, str(e) or "Network error occurred", retryable=True) from e

        body = self._decode(response)

        if response.status_code == 401:
            self.session.clear()
            raise AuthenticationError("Unauthorized", details={"status": 401}, redirect_to=LOGIN_PATH)

        if not response.is_success:
            status = response.status_code
            raise ApiError(status, error_message(body, status), body,
                           retryable=status >= 500 or status == 408)

        if is_envelope(body) and body["success"] is False:
            raise ApiError(response.status_code, error_message(body, response.status_code), body)

        return normalize_envelope(body)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError:
                return {"success": response.is_success, "message": response.text}
        if any(kind in content_type for kind in BINARY_CONTENT_TYPES):
            return response.content
        return {"success": response.is_success, "message": response.text}
