from collections.abc import Callable
from unittest.mock import Mock

import pytest

from loginus_id.config import LoginusConfig
from loginus_id.exceptions import ClipboardError, ShareCancelledError, ShareError
from loginus_id.models.auth import AuthFactor, AuthFactorType, AuthPath, get_factor_spec

FRONTEND_ORIGIN = "https://id.test"
USER_ID = "user-1"
TEAM_ID = "team-1"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeClipboard:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.writes: list[str] = []

    async def write_text(self, text: str) -> None:
        if self.fail:
            raise ClipboardError("Clipboard write denied")
        self.writes.append(text)


class FakeShareTarget:
    def __init__(self, error: ShareError | None = None) -> None:
        self.error = error
        self.calls: list[dict[str, str]] = []

    async def share(self, *, title: str, text: str, url: str) -> None:
        self.calls.append({"title": title, "text": text, "url": url})
        if self.error is not None:
            raise self.error


@pytest.fixture
def mock_http() -> Mock:
    return Mock()


@pytest.fixture
def config() -> LoginusConfig:
    return LoginusConfig(frontend_url=FRONTEND_ORIGIN, copy_feedback_delay=3.0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def cancelled_share() -> FakeShareTarget:
    return FakeShareTarget(error=ShareCancelledError("AbortError"))


@pytest.fixture
def make_factor() -> Callable[..., AuthFactor]:
    def _make(
        factor_type: AuthFactorType | str,
        *,
        enabled: bool = True,
        required: bool = False,
    ) -> AuthFactor:
        return AuthFactor.from_spec(
            get_factor_spec(factor_type), enabled=enabled, required=required
        )

    return _make


@pytest.fixture
def base_path(make_factor: Callable[..., AuthFactor]) -> AuthPath:
    """Required password followed by two optional factors."""
    return (
        make_factor(AuthFactorType.PASSWORD, required=True),
        make_factor(AuthFactorType.EMAIL_CODE),
        make_factor(AuthFactorType.SMS_CODE),
    )
