"""
Loginus ID client configuration.
"""

import os
from dataclasses import dataclass
from typing import Self


@dataclass(frozen=True, kw_only=True)
class LoginusConfig:
    """
    Attributes:
        api_url: Base URL for the Loginus REST API.
        frontend_url: Public origin used to build invitation links.
        timeout: Request timeout in seconds.
        user_agent: User-Agent header value.
        copy_feedback_delay: Seconds the "copied" acknowledgement stays visible.
    """

    api_url: str = "https://loginus.startapus.com/api/v2"
    frontend_url: str = "https://loginus.startapus.com"
    timeout: float = 30.0
    user_agent: str = "LoginusID-Python/0.1"
    copy_feedback_delay: float = 3.0

    def __post_init__(self) -> None:
        if not self.api_url:
            msg = "api_url must not be empty"
            raise ValueError(msg)
        if not self.frontend_url:
            msg = "frontend_url must not be empty"
            raise ValueError(msg)
        if self.timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        if self.copy_feedback_delay < 0:
            msg = "copy_feedback_delay must be non-negative"
            raise ValueError(msg)

    @property
    def origin(self) -> str:
        """Frontend origin without a trailing slash."""
        return self.frontend_url.rstrip("/")

    @classmethod
    def from_env(cls) -> Self:
        """
        Build a config from ``LOGINUS_*`` environment variables.

        Unset variables keep their defaults.
        """
        overrides: dict[str, object] = {}
        if api_url := os.getenv("LOGINUS_API_URL"):
            overrides["api_url"] = api_url
        if frontend_url := os.getenv("LOGINUS_FRONTEND_URL"):
            overrides["frontend_url"] = frontend_url
        if timeout := os.getenv("LOGINUS_TIMEOUT"):
            overrides["timeout"] = float(timeout)
        return cls(**overrides)
