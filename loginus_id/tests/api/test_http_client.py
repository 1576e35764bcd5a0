"""Tests for AsyncHttpClient."""

import httpx
import pytest

from loginus_id.api.http_client import AsyncHttpClient, extract_error_message, sanitize_for_log
from loginus_id.config import LoginusConfig
from loginus_id.exceptions import (
    APIError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    SessionExpiredError,
)
from loginus_id.tests.utils.mock_transport import MockTransport, make_success_response


@pytest.fixture
def config() -> LoginusConfig:
    """Create test config."""
    return LoginusConfig(api_url="https://api.test/api/v2")


@pytest.fixture
def mock_transport() -> MockTransport:
    """Create mock transport."""
    return MockTransport()


# Helpers


def test_sanitize_for_log_masks_nested_tokens() -> None:
    data = {
        "token": "secret",
        "nested": {"accessToken": "a", "keep": 1},
        "items": [{"refreshToken": "r"}, "plain"],
    }

    result = sanitize_for_log(data)

    assert result["token"] == "***"
    assert result["nested"] == {"accessToken": "***", "keep": 1}
    assert result["items"] == [{"refreshToken": "***"}, "plain"]


def test_extract_error_message_prefers_message() -> None:
    assert extract_error_message({"message": "Team not found", "error": "Not Found"}) == (
        "Team not found"
    )


def test_extract_error_message_joins_validation_list() -> None:
    body = {"message": ["method must be a string", "method should not be empty"]}

    assert extract_error_message(body) == "method must be a string; method should not be empty"


def test_extract_error_message_uses_fallback() -> None:
    assert extract_error_message({}, "fallback") == "fallback"
    assert extract_error_message("not a dict", "fallback") == "fallback"


# Session management tests


def test_is_authenticated_returns_false_initially(config: LoginusConfig) -> None:
    client = AsyncHttpClient(config)
    assert client.is_authenticated is False


@pytest.mark.asyncio
async def test_set_and_clear_session(config: LoginusConfig) -> None:
    client = AsyncHttpClient(config)

    await client.set_session("access", "refresh")
    assert client.is_authenticated is True

    await client.clear_session()
    assert client.is_authenticated is False


@pytest.mark.asyncio
async def test_request_without_context_raises(config: LoginusConfig) -> None:
    client = AsyncHttpClient(config)

    with pytest.raises(RuntimeError, match="not initialized"):
        await client.request("GET", "/test")


# Request headers tests


@pytest.mark.asyncio
async def test_request_includes_bearer_token_when_authenticated(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(json_data=make_success_response({}))

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        await client.set_session("test-token")
        await client.request("GET", "/test")

    request = mock_transport.requests[0]
    assert request.headers.get("authorization") == "Bearer test-token"


@pytest.mark.asyncio
async def test_request_excludes_auth_header_when_not_authenticated(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(json_data=make_success_response({}))

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        await client.set_session("test-token")
        await client.request("GET", "/test", authenticated=False)

    assert "authorization" not in mock_transport.requests[0].headers


@pytest.mark.asyncio
async def test_request_uses_base_url_and_default_headers(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(json_data=make_success_response({}))

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        await client.request("GET", "/family/members", authenticated=False)

    request = mock_transport.requests[0]
    assert str(request.url) == "https://api.test/api/v2/family/members"
    assert request.headers.get("user-agent") == config.user_agent
    assert request.headers.get("accept") == "application/json"


# Request/response handling tests


@pytest.mark.asyncio
async def test_request_unwraps_success_envelope(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(json_data=make_success_response({"token": "abc"}))

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        result = await client.request("POST", "/family/invite")

    assert result == {"token": "abc"}


@pytest.mark.asyncio
async def test_request_returns_empty_dict_for_null_data(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(json_data={"success": True, "data": None})

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        result = await client.request("DELETE", "/auth/user-additional-factors/sms-code")

    assert result == {}


@pytest.mark.asyncio
async def test_request_returns_plain_body_without_envelope(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(json_data={"invitationLink": "https://x/invitation?token=t"})

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        result = await client.request("POST", "/family/invite")

    assert result == {"invitationLink": "https://x/invitation?token=t"}


@pytest.mark.asyncio
async def test_request_returns_empty_dict_for_empty_body(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(status_code=httpx.codes.NO_CONTENT)

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        result = await client.request("DELETE", "/auth/user-additional-factors/x")

    assert result == {}


@pytest.mark.asyncio
async def test_request_sends_json_body(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(json_data=make_success_response({}))

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        await client.request("POST", "/auth/user-additional-factors", json={"method": "sms-code"})

    assert mock_transport.request_json(0) == {"method": "sms-code"}


@pytest.mark.asyncio
async def test_request_raises_on_invalid_json(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(content=b"<html>not json</html>")

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(APIError, match="Invalid JSON"):
            await client.request("GET", "/test")


@pytest.mark.asyncio
async def test_request_raises_when_envelope_reports_failure(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(json_data={"success": False, "message": "Nope"})

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(APIError, match="Nope"):
            await client.request("GET", "/test")


# Error mapping tests


@pytest.mark.asyncio
async def test_request_raises_not_found_error(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(
        status_code=httpx.codes.NOT_FOUND,
        json_data={"statusCode": 404, "message": "Team not found"},
    )

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(NotFoundError) as exc_info:
            await client.request("POST", "/teams/t1/invite-link")

    assert exc_info.value.message == "Team not found"
    assert exc_info.value.endpoint == "/teams/t1/invite-link"


@pytest.mark.asyncio
async def test_request_raises_rate_limit_error_with_retry_after(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(
        status_code=httpx.codes.TOO_MANY_REQUESTS,
        json_data={"message": "Slow down"},
        headers={"Retry-After": "30"},
    )

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(RateLimitError) as exc_info:
            await client.request("GET", "/test")

    assert exc_info.value.retry_after == 30


@pytest.mark.asyncio
async def test_request_raises_server_error_on_5xx(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(status_code=httpx.codes.BAD_GATEWAY)

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(ServerError) as exc_info:
            await client.request("GET", "/test")

    assert exc_info.value.code == 502
    assert exc_info.value.message == "Request failed"


@pytest.mark.asyncio
async def test_request_raises_api_error_with_body_message(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(
        status_code=httpx.codes.FORBIDDEN,
        json_data={"message": "Insufficient rights to create an invitation"},
    )

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(APIError) as exc_info:
            await client.request("POST", "/teams/t1/invite-link")

    assert exc_info.value.code == 403
    assert exc_info.value.message == "Insufficient rights to create an invitation"


@pytest.mark.asyncio
async def test_request_wraps_transport_failure_in_network_error(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_error(httpx.ConnectError("connection refused"))

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(NetworkError):
            await client.request("GET", "/test")


# Token refresh tests


@pytest.mark.asyncio
async def test_request_refreshes_token_on_401_and_replays(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(status_code=httpx.codes.UNAUTHORIZED, json_data={})
    mock_transport.add_response(json_data=make_success_response({"accessToken": "new-access"}))
    mock_transport.add_response(json_data=make_success_response({"ok": True}))

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        await client.set_session("old-access", "refresh")
        result = await client.request("GET", "/test")

    assert result == {"ok": True}
    assert len(mock_transport.requests) == 3
    refresh_request = mock_transport.requests[1]
    assert refresh_request.url.path.endswith("/auth/refresh")
    assert mock_transport.request_json(1) == {"refreshToken": "refresh"}
    assert mock_transport.requests[2].headers["authorization"] == "Bearer new-access"


@pytest.mark.asyncio
async def test_request_raises_session_expired_when_refresh_fails(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(status_code=httpx.codes.UNAUTHORIZED, json_data={})
    mock_transport.add_response(status_code=httpx.codes.UNAUTHORIZED, json_data={})

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        await client.set_session("old-access", "refresh")
        with pytest.raises(SessionExpiredError):
            await client.request("GET", "/test")

        assert client.is_authenticated is False


@pytest.mark.asyncio
async def test_request_does_not_refresh_without_refresh_token(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(
        status_code=httpx.codes.UNAUTHORIZED, json_data={"message": "Unauthorized"}
    )

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        await client.set_session("access")
        with pytest.raises(APIError) as exc_info:
            await client.request("GET", "/test")

    assert exc_info.value.code == 401
    assert len(mock_transport.requests) == 1


@pytest.mark.asyncio
async def test_error_detail_is_none_for_empty_body(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(status_code=httpx.codes.INTERNAL_SERVER_ERROR)

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(ServerError) as exc_info:
            await client.request("DELETE", "/auth/user-additional-factors/sms-code")

    assert exc_info.value.detail is None
    assert exc_info.value.message == "Request failed"


@pytest.mark.asyncio
async def test_error_detail_carries_body_message(
    config: LoginusConfig,
    mock_transport: MockTransport,
) -> None:
    mock_transport.add_response(
        status_code=httpx.codes.BAD_REQUEST,
        json_data={"message": ["method must be a string"]},
    )

    async with AsyncHttpClient(config, transport=mock_transport) as client:
        with pytest.raises(APIError) as exc_info:
            await client.request("POST", "/auth/user-additional-factors", json={"method": 1})

    assert exc_info.value.detail == "method must be a string"
