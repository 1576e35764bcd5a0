"""
Invitation domain models.
"""

from dataclasses import dataclass
from enum import StrEnum


class InvitationRole(StrEnum):
    """Coarse role granted by an invitation."""

    MEMBER = "member"
    CHILD = "child"
    VIEWER = "viewer"


@dataclass(frozen=True, kw_only=True)
class Invitation:
    """
    A generated invitation.

    Attributes:
        token: Opaque token issued by the backend (None if only a link came back).
        invitation_link: Fully qualified URL to hand to the invitee.
        role: Role fixed at generation time.
        relation: Relation hint carried in the link query, if any.
    """

    token: str | None
    invitation_link: str
    role: InvitationRole
    relation: str | None = None


@dataclass(frozen=True, kw_only=True)
class InvitationLinkInfo:
    """
    Fields recovered from an incoming invitation URL.

    Attributes:
        token: Invitation token, or None if the URL carries none.
        relation: Family relation hint (e.g. "child").
        type: Invitation kind for team links (e.g. "team").
        team_id: Team identifier for team links.
        role_name: Role name for team links.
    """

    token: str | None
    relation: str | None = None
    type: str | None = None
    team_id: str | None = None
    role_name: str | None = None

    @property
    def has_token(self) -> bool:
        return bool(self.token)
