"""
Invitation link generation for families and teams.

Requests a token from the backend, turns the response into a shareable link,
and offers copy/share actions with a transient "copied" acknowledgement.
"""

import re
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

import structlog

from loginus_id.api.endpoints.family import invite_family_member
from loginus_id.api.endpoints.teams import generate_team_invite_link
from loginus_id.api.http_client import AsyncHttpClient
from loginus_id.config import LoginusConfig
from loginus_id.core.busy import BusyFlag
from loginus_id.exceptions import (
    APIError,
    AuthenticationError,
    ClipboardError,
    InvitationError,
    InvitationLinkError,
    NetworkError,
    ShareCancelledError,
    ShareError,
    ValidationError,
    display_message,
)
from loginus_id.models.invitation import Invitation, InvitationLinkInfo, InvitationRole
from loginus_id.services.platform import Clipboard, ShareTarget

logger = structlog.get_logger(__name__)

GENERATE_FAILED_MESSAGE = "Failed to generate the invitation link"
CLIPBOARD_UNAVAILABLE_MESSAGE = "Clipboard is not available"
COPY_FAILED_MESSAGE = "Failed to copy the link"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_TOKEN_PARAMS = ("token", "invitation", "invite-id", "inviteId")


class ShareResult(StrEnum):
    """How a share request ended."""

    SHARED = "shared"
    COPIED = "copied"
    CANCELLED = "cancelled"
    FAILED = "failed"


def with_relation(link: str, relation: str) -> str:
    """
    Set the ``relation`` query parameter on an absolute URL.

    An existing ``relation`` is overridden in place; other parameters keep
    their order. A link that does not parse as an absolute URL is returned
    unchanged.
    """
    try:
        parts = urlsplit(link)
    except ValueError:
        parts = None
    if parts is None or not parts.scheme or not parts.netloc:
        logger.warning("Invitation link is not an absolute URL, relation not applied")
        return link

    query: list[tuple[str, str]] = []
    replaced = False
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key != "relation":
            query.append((key, value))
        elif not replaced:
            query.append((key, relation))
            replaced = True
    if not replaced:
        query.append(("relation", relation))

    return urlunsplit(parts._replace(query=urlencode(query)))


def extract_invitation_link(
    payload: Mapping[str, Any] | Any,
    origin: str,
    relation: str | None = None,
) -> str:
    """
    Turn an invite response into a shareable link.

    Tried in order:
    1. ``invitationLink``, with ``relation`` merged into its query when given;
    2. ``{origin}/invitation?token=...[&relation=...]`` built from ``token``.

    Args:
        payload: Unwrapped response data.
        origin: Frontend origin for synthesized links.
        relation: Optional relation hint to carry in the link.

    Returns:
        The invitation link.

    Raises:
        InvitationLinkError: If the payload has neither field.
    """
    if isinstance(payload, Mapping):
        link = payload.get("invitationLink")
        if isinstance(link, str) and link:
            return with_relation(link, relation) if relation else link

        token = payload.get("token")
        if isinstance(token, str) and token:
            query = {"token": token}
            if relation:
                query["relation"] = relation
            return f"{origin.rstrip('/')}/invitation?{urlencode(query)}"

    msg = "Invitation response has neither an invitation link nor a token"
    raise InvitationLinkError(msg)


def parse_invitation_link(url: str) -> InvitationLinkInfo:
    """
    Read the invitation fields carried by an incoming link.

    The token is looked up under ``token`` first, then the older
    ``invitation``, ``invite-id`` and ``inviteId`` names.

    Raises:
        ValidationError: If ``url`` cannot be parsed.
    """
    try:
        query = parse_qs(urlsplit(url).query)
    except ValueError as e:
        msg = "Malformed invitation URL"
        raise ValidationError(msg, field="url") from e

    def first(*names: str) -> str | None:
        for name in names:
            values = query.get(name)
            if values and values[0]:
                return values[0]
        return None

    return InvitationLinkInfo(
        token=first(*_TOKEN_PARAMS),
        relation=first("relation"),
        type=first("type"),
        team_id=first("teamId"),
        role_name=first("roleName"),
    )


def validate_email(email: str) -> str:
    """
    Check an invitee email and return it stripped.

    Raises:
        ValidationError: If the email is empty or malformed.
    """
    value = email.strip()
    if not value:
        msg = "Email is required"
        raise ValidationError(msg, field="email")
    if not _EMAIL_RE.match(value):
        msg = "Invalid email"
        raise ValidationError(msg, field="email")
    return value


class CopyFeedback:
    """
    Transient "copied" acknowledgement.

    Reads true from :meth:`mark` until ``delay`` seconds have passed on
    ``clock``. Driven by the clock rather than a timer task, so nothing is
    left running when the owner goes away.
    """

    def __init__(self, delay: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._delay = delay
        self._clock = clock
        self._until: float | None = None

    @property
    def copied(self) -> bool:
        return self._until is not None and self._clock() < self._until

    def mark(self) -> None:
        self._until = self._clock() + self._delay

    def clear(self) -> None:
        self._until = None


class InvitationLinkGenerator(ABC):
    """
    Base for one open invite flow.

    Subclasses implement ``_request`` for their invite endpoint.

    A link is generated at most once per open; later ``generate()`` calls
    return the stored invitation until ``close()`` is called.
    """

    default_role = InvitationRole.MEMBER
    allowed_roles: frozenset[InvitationRole] = frozenset(InvitationRole)
    share_title = "Invitation"
    share_text = "Join me"

    def __init__(
        self,
        http: AsyncHttpClient,
        config: LoginusConfig,
        *,
        clipboard: Clipboard | None = None,
        share_target: ShareTarget | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            http: HTTP client for the invite call.
            config: Provides the frontend origin and copy feedback delay.
            clipboard: Clipboard access, or None where there is none.
            share_target: Native share sheet, or None where there is none.
            clock: Monotonic clock driving the "copied" acknowledgement.
        """
        self._http = http
        self._config = config
        self._clipboard = clipboard
        self._share_target = share_target
        self._feedback = CopyFeedback(config.copy_feedback_delay, clock)

        self._invitation: Invitation | None = None
        self._error: str | None = None
        self._busy = BusyFlag("invitation request")
        self._generation = 0

    @property
    def invitation(self) -> Invitation | None:
        return self._invitation

    @property
    def link(self) -> str | None:
        return self._invitation.invitation_link if self._invitation else None

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_loading(self) -> bool:
        return self._busy.active

    @property
    def copied(self) -> bool:
        return self._feedback.copied

    def dismiss_error(self) -> None:
        self._error = None

    def close(self) -> None:
        """Forget the link and any state; a pending request's result is dropped."""
        self._generation += 1
        self._invitation = None
        self._error = None
        self._feedback.clear()

    @abstractmethod
    async def _request(self, role: InvitationRole, **kwargs: Any) -> Any:
        """Call the invite endpoint and return its unwrapped payload."""

    def _check_role(self, role: InvitationRole | str) -> InvitationRole:
        try:
            checked = InvitationRole(role)
        except ValueError as e:
            msg = f"Unknown invitation role: {role}"
            raise ValidationError(msg, field="role") from e
        if checked not in self.allowed_roles:
            msg = f"Role {checked.value} is not allowed here"
            raise ValidationError(msg, field="role")
        return checked

    async def _generate(
        self,
        role: InvitationRole | str,
        relation: str | None,
        **kwargs: Any,
    ) -> str:
        if self._invitation is not None:
            return self._invitation.invitation_link

        checked_role = self._check_role(role)
        generation = self._generation
        async with self._busy:
            self._error = None
            try:
                payload = await self._request(checked_role, **kwargs)
                link = extract_invitation_link(payload, self._config.origin, relation)
            except (APIError, NetworkError, AuthenticationError, InvitationError) as e:
                logger.error("Invitation generation failed", error_type=type(e).__name__)
                if generation == self._generation:
                    self._error = display_message(e, GENERATE_FAILED_MESSAGE)
                raise

        if generation != self._generation:
            logger.debug("Dropping invitation for closed flow")
            return link

        token = payload.get("token") if isinstance(payload, Mapping) else None
        self._invitation = Invitation(
            token=token if isinstance(token, str) else None,
            invitation_link=link,
            role=checked_role,
            relation=relation,
        )
        logger.info("Invitation generated", role=checked_role.value, has_relation=bool(relation))
        return link

    async def _ensure_link(self) -> str | None:
        """Stored link, generated with ``default_role`` if missing; None if that failed."""
        if self.link:
            return self.link
        try:
            return await self._generate(self.default_role, None)
        except (APIError, NetworkError, AuthenticationError, InvitationError):
            return None

    async def copy(self) -> bool:
        """
        Copy the link to the clipboard, generating it first if needed.

        Returns:
            True if copied. On failure ``error`` is set and False is returned.
        """
        link = await self._ensure_link()
        if link is None:
            return False

        if self._clipboard is None:
            logger.warning("Clipboard unavailable")
            self._error = CLIPBOARD_UNAVAILABLE_MESSAGE
            return False

        try:
            await self._clipboard.write_text(link)
        except ClipboardError as e:
            logger.warning("Copy to clipboard failed", error=str(e))
            self._error = e.message or COPY_FAILED_MESSAGE
            return False

        self._feedback.mark()
        return True

    async def share(self, title: str | None = None, text: str | None = None) -> ShareResult:
        """
        Offer the link through the native share sheet, else copy it.

        A dismissed share sheet is not an error: nothing else happens.
        A missing or failing share sheet falls back to :meth:`copy`.
        """
        link = await self._ensure_link()
        if link is None:
            return ShareResult.FAILED

        if self._share_target is None:
            return ShareResult.COPIED if await self.copy() else ShareResult.FAILED

        try:
            await self._share_target.share(
                title=title or self.share_title,
                text=text or self.share_text,
                url=link,
            )
        except ShareCancelledError:
            logger.debug("Share cancelled by user")
            return ShareResult.CANCELLED
        except ShareError as e:
            logger.warning("Native share failed, copying instead", error=str(e))
            return ShareResult.COPIED if await self.copy() else ShareResult.FAILED

        return ShareResult.SHARED


class FamilyInvitationGenerator(InvitationLinkGenerator):
    """Invite flow for the caller's family group."""

    allowed_roles = frozenset({InvitationRole.MEMBER, InvitationRole.CHILD})
    share_title = "Family invitation"
    share_text = "Join my family"

    async def generate(
        self,
        role: InvitationRole | str = InvitationRole.MEMBER,
        relation: str | None = None,
        email: str | None = None,
    ) -> str:
        """
        Create a family invitation link.

        Args:
            role: "member" or "child".
            relation: Relation hint to carry in the link.
            email: Optional invitee email, validated before any request.

        Returns:
            The invitation link.

        Raises:
            ValidationError: If the role or email is invalid.
            InvitationLinkError: If the response carries no link or token.
            APIError: If the backend rejected the request.
        """
        if email is not None:
            email = validate_email(email)
        return await self._generate(role, relation, email=email)

    async def _request(self, role: InvitationRole, **kwargs: Any) -> Any:
        return await invite_family_member(self._http, role, kwargs.get("email"))


class TeamInvitationGenerator(InvitationLinkGenerator):
    """Reusable invite link for one team."""

    default_role = InvitationRole.VIEWER
    allowed_roles = frozenset({InvitationRole.MEMBER, InvitationRole.VIEWER})
    share_title = "Team invitation"
    share_text = "Join our team"

    def __init__(
        self,
        http: AsyncHttpClient,
        config: LoginusConfig,
        team_id: str,
        **kwargs: Any,
    ) -> None:
        if not team_id:
            msg = "team_id is required"
            raise ValidationError(msg, field="team_id")
        super().__init__(http, config, **kwargs)
        self._team_id = team_id

    @property
    def team_id(self) -> str:
        return self._team_id

    async def generate(
        self,
        role: InvitationRole | str = InvitationRole.VIEWER,
        relation: str | None = None,
    ) -> str:
        """
        Create a reusable team invitation link.

        Raises:
            ValidationError: If the role is not a team role.
            InvitationLinkError: If the response carries no link or token.
            APIError: If the backend rejected the request.
        """
        return await self._generate(role, relation)

    async def _request(self, role: InvitationRole, **kwargs: Any) -> Any:
        return await generate_team_invite_link(self._http, self._team_id, role)
