"""Team endpoints."""

from typing import Any

from loginus_id.api.http_client import AsyncHttpClient
from loginus_id.models.invitation import InvitationRole


async def generate_team_invite_link(
    http: AsyncHttpClient,
    team_id: str,
    role_name: InvitationRole | str = InvitationRole.MEMBER,
) -> dict[str, Any]:
    """
    Generate a reusable team invitation link.

    Args:
        http: Configured async HTTP client.
        team_id: Team to invite into.
        role_name: Team role granted to whoever follows the link.

    Returns:
        Payload with ``invitationLink`` and ``token``.
    """
    return await http.request(
        "POST",
        f"/teams/{team_id}/invite-link",
        json={"roleName": str(role_name) or InvitationRole.MEMBER.value},
    )
