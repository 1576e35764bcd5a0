"""
Loginus ID client facade.

This is the main entry point for users of the library. It owns the HTTP
client and hands out editors and invite flows wired to it.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Self

import httpx
import structlog

from loginus_id.api.http_client import AsyncHttpClient
from loginus_id.config import LoginusConfig
from loginus_id.models.invitation import InvitationLinkInfo
from loginus_id.services.auth_path_editor import AuthPathEditor, SaveCallback
from loginus_id.services.invitation_service import (
    FamilyInvitationGenerator,
    TeamInvitationGenerator,
    parse_invitation_link,
)
from loginus_id.services.platform import Clipboard, ShareTarget

logger = structlog.get_logger(__name__)


class LoginusClient:
    """
    Async client for the Loginus ID account backend.

    Example:
        ```python
        async with LoginusClient() as client:
            await client.set_session(access_token, refresh_token)

            editor = client.auth_path_editor(on_save=store_path, user_id=user_id)
            editor.open(current_path, connected_accounts={"github"})
            await editor.add("email-code")
            await editor.save()

            invites = client.team_invitations(team_id)
            link = await invites.generate()
        ```

    Args:
        config: Client configuration. Uses defaults if not provided.
        transport: Optional httpx transport for testing (mock transport).
    """

    def __init__(
        self,
        config: LoginusConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clipboard: Clipboard | None = None,
        share_target: ShareTarget | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Client configuration. Uses defaults if not provided.
            transport: Optional httpx transport for testing.
            clipboard: Clipboard handed to invite flows.
            share_target: Native share sheet handed to invite flows.
            clock: Clock handed to invite flows for the "copied" acknowledgement.
        """
        self._config = config or LoginusConfig()
        self._transport = transport
        self._clipboard = clipboard
        self._share_target = share_target
        self._clock = clock

        self._http: AsyncHttpClient | None = None
        self._init_lock = asyncio.Lock()

    @property
    def config(self) -> LoginusConfig:
        return self._config

    async def __aenter__(self) -> Self:
        """Enter async context."""
        await self._ensure_initialized()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        """Exit async context."""
        await self.close()

    async def _ensure_initialized(self) -> None:
        async with self._init_lock:
            if self._http is not None:
                return
            self._http = AsyncHttpClient(self._config, transport=self._transport)
            await self._http.__aenter__()
            logger.debug("Client initialized")

    async def close(self) -> None:
        """Close the client and release resources."""
        async with self._init_lock:
            if self._http is not None:
                await self._http.__aexit__(None, None, None)
                self._http = None
                logger.debug("Client closed")

    async def set_session(self, access_token: str, refresh_token: str | None = None) -> None:
        """
        Use tokens issued by the auth service for subsequent calls.

        Args:
            access_token: Bearer access token.
            refresh_token: Refresh token, enabling one refresh on 401.
        """
        await self._ensure_initialized()
        await self._require_http().set_session(access_token, refresh_token)

    async def clear_session(self) -> None:
        if self._http is not None:
            await self._http.clear_session()

    @property
    def is_authenticated(self) -> bool:
        return self._http is not None and self._http.is_authenticated

    def auth_path_editor(
        self,
        on_save: SaveCallback,
        *,
        user_id: str | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> AuthPathEditor:
        """
        Create an editor for a user's sign-in path.

        Args:
            on_save: Receives the final factor list on save.
            user_id: When set, add/remove go through the API.
            on_close: Called whenever the editor closes.
        """
        return AuthPathEditor(self._require_http(), on_save, user_id=user_id, on_close=on_close)

    def family_invitations(self) -> FamilyInvitationGenerator:
        """Create an invite flow for the caller's family group."""
        return FamilyInvitationGenerator(
            self._require_http(),
            self._config,
            clipboard=self._clipboard,
            share_target=self._share_target,
            clock=self._clock,
        )

    def team_invitations(self, team_id: str) -> TeamInvitationGenerator:
        """Create a reusable-link invite flow for ``team_id``."""
        return TeamInvitationGenerator(
            self._require_http(),
            self._config,
            team_id,
            clipboard=self._clipboard,
            share_target=self._share_target,
            clock=self._clock,
        )

    @staticmethod
    def parse_invitation_link(url: str) -> InvitationLinkInfo:
        """Read token and relation fields from an incoming invitation URL."""
        return parse_invitation_link(url)

    def _require_http(self) -> AsyncHttpClient:
        if self._http is None:
            msg = "Client not initialized. Use 'async with' first."
            raise RuntimeError(msg)
        return self._http
