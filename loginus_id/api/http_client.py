"""
Async HTTP client for the Loginus API.

Provides a clean interface for making API requests with bearer auth,
response-envelope unwrapping, error mapping and a single token refresh.
"""

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from loginus_id.config import LoginusConfig
from loginus_id.exceptions import (
    APIError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    SessionExpiredError,
)

logger = structlog.get_logger(__name__)

SENSITIVE_KEYS = frozenset(
    {
        "accessToken",
        "refreshToken",
        "token",
        "password",
        "oldPassword",
        "newPassword",
        "invitationLink",
    }
)

DEFAULT_ERROR_MESSAGE = "Request failed"


def sanitize_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive fields from a dict before logging.

    Recursively sanitizes nested dictionaries and lists.

    Args:
        data: Dictionary that may contain sensitive values.

    Returns:
        Copy with sensitive values replaced by "***".
    """
    result = {}
    for key, value in data.items():
        if key in SENSITIVE_KEYS:
            result[key] = "***"
        elif isinstance(value, dict):
            result[key] = sanitize_for_log(value)
        elif isinstance(value, list):
            result[key] = [
                sanitize_for_log(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def extract_error_message(body: Any, fallback: str = DEFAULT_ERROR_MESSAGE) -> str:
    """
    Pull a human-readable message out of an error response body.

    The backend sends ``message`` (a string, or a list of validation messages)
    and sometimes ``error``. Anything else yields ``fallback``.
    """
    if not isinstance(body, dict):
        return fallback

    message = body.get("message")
    if isinstance(message, list):
        message = "; ".join(str(m) for m in message if m)
    if isinstance(message, str) and message:
        return message

    error = body.get("error")
    if isinstance(error, str) and error:
        return error

    return fallback


@dataclass(frozen=True, slots=True)
class Session:
    """Immutable session data for atomic updates."""

    access_token: str
    refresh_token: str | None = None


class AsyncHttpClient:
    """Async HTTP client for the Loginus API."""

    def __init__(
        self,
        config: LoginusConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            config: Client configuration.
            transport: Optional transport for testing (mock transport).
        """
        self._config = config
        self._transport = transport

        self._session: Session | None = None
        self._client: httpx.AsyncClient | None = None

        self._client_lock = asyncio.Lock()
        self._refresh_lock = asyncio.Lock()

    async def __aenter__(self) -> "AsyncHttpClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self._close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self._config.api_url,
                    timeout=self._config.timeout,
                    transport=self._transport,
                    headers={
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                        "User-Agent": self._config.user_agent,
                    },
                )
        return self._client

    async def _close(self) -> None:
        async with self._client_lock:
            if self._client is None:
                logger.debug("Client not open.")
                return
            await self._client.aclose()
            self._client = None

    async def set_session(self, access_token: str, refresh_token: str | None = None) -> None:
        """
        Set session tokens obtained from the auth service.

        Acquires ``_refresh_lock`` so this cannot race with
        ``_refresh_access_token`` writing ``self._session``.

        Args:
            access_token: Bearer access token.
            refresh_token: Token for refreshing access, if the caller has one.
        """
        async with self._refresh_lock:
            self._session = Session(access_token=access_token, refresh_token=refresh_token)

    async def clear_session(self) -> None:
        """Forget session tokens."""
        async with self._refresh_lock:
            self._session = None

    @property
    def is_authenticated(self) -> bool:
        """Check if we have session tokens."""
        return self._session is not None

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
        auto_refresh: bool = True,
    ) -> Any:
        """
        Make an API request.

        A single attempt is made; the only replay is after a successful token
        refresh on 401.

        Args:
            method: HTTP method (GET, POST, etc.).
            endpoint: API endpoint (e.g., "/family/invite").
            json: JSON body for POST/PUT requests.
            params: Query parameters.
            authenticated: Whether to include the bearer token.
            auto_refresh: Whether to refresh the token once on 401.

        Returns:
            The ``data`` member of a ``{"success": ..., "data": ...}`` envelope,
            or the decoded body when it is not enveloped. Empty bodies decode
            to an empty dict.

        Raises:
            APIError: If the API returns an error status.
            NetworkError: If the request fails at the transport level.
            SessionExpiredError: If token refresh fails.
        """
        session = self._session  # Capture atomically for consistent reads
        headers = {}
        if authenticated and session is not None:
            headers["Authorization"] = f"Bearer {session.access_token}"

        if self._client is None:
            msg = "HTTP client not initialized. Use 'async with' first."
            raise RuntimeError(msg)

        try:
            response = await self._client.request(
                method=method,
                url=endpoint,
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.TransportError as e:
            logger.error("Request failed", method=method, endpoint=endpoint, error=str(e))
            msg = f"Network error while calling {endpoint}"
            raise NetworkError(msg, endpoint=endpoint) from e

        if (
            response.status_code == httpx.codes.UNAUTHORIZED
            and auto_refresh
            and session is not None
            and session.refresh_token
        ):
            logger.debug("Token expired, attempting refresh")
            await self._refresh_access_token(stale_session=session)
            return await self.request(
                method,
                endpoint,
                json=json,
                params=params,
                authenticated=authenticated,
                auto_refresh=False,
            )

        data = self._decode(response, endpoint)

        if response.is_error:
            self._raise_api_error(response, data, endpoint)

        if isinstance(data, dict) and "success" in data:
            if not data["success"]:
                detail = extract_error_message(data, "") or None
                raise APIError(
                    detail or DEFAULT_ERROR_MESSAGE,
                    code=response.status_code,
                    endpoint=endpoint,
                    detail=detail,
                )
            payload = data.get("data")
            return {} if payload is None else payload

        return data

    async def _refresh_access_token(self, stale_session: Session) -> None:
        async with self._refresh_lock:
            if self._session is not stale_session:
                logger.debug("Token already refreshed by another coroutine")
                return

            if self._session is None or not self._session.refresh_token:
                msg = "No session available"
                raise SessionExpiredError(msg)

            refresh_token = self._session.refresh_token
            try:
                response = await self.request(
                    "POST",
                    "/auth/refresh",
                    json={"refreshToken": refresh_token},
                    authenticated=False,
                    auto_refresh=False,
                )
                access_token = response["accessToken"]
            except (APIError, NetworkError, KeyError, TypeError) as e:
                self._session = None
                logger.warning("Token refresh failed", error_type=type(e).__name__)
                msg = "Token refresh failed"
                raise SessionExpiredError(msg) from e

            self._session = Session(access_token=access_token, refresh_token=refresh_token)
            logger.debug("Token refreshed successfully")

    @staticmethod
    def _decode(response: httpx.Response, endpoint: str) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            if response.is_error:
                return {}
            raise APIError(
                "Invalid JSON response from API",
                code=response.status_code,
                endpoint=endpoint,
            ) from e

    @staticmethod
    def _raise_api_error(response: httpx.Response, data: Any, endpoint: str) -> None:
        status = response.status_code
        detail = extract_error_message(data, "") or None
        error_msg = detail or DEFAULT_ERROR_MESSAGE

        if isinstance(data, dict):
            logger.debug("API error body", endpoint=endpoint, body=sanitize_for_log(data))

        if status == httpx.codes.NOT_FOUND:
            raise NotFoundError(error_msg, endpoint=endpoint, detail=detail)
        if status == httpx.codes.TOO_MANY_REQUESTS:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                error_msg,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                detail=detail,
            )
        if status >= httpx.codes.INTERNAL_SERVER_ERROR:
            raise ServerError(error_msg, code=status, endpoint=endpoint, detail=detail)

        raise APIError(error_msg, code=status, endpoint=endpoint, detail=detail)
