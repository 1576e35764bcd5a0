"""Family-group endpoints."""

from typing import Any

from loginus_id.api.http_client import AsyncHttpClient
from loginus_id.models.invitation import InvitationRole


async def invite_family_member(
    http: AsyncHttpClient,
    role: InvitationRole | str,
    email: str | None = None,
) -> dict[str, Any]:
    """
    Create a family-group invitation.

    The backend creates the caller's family group on first use.

    Args:
        http: Configured async HTTP client.
        role: "member" or "child".
        email: Optional invitee email.

    Returns:
        Payload with at least one of ``token`` / ``invitationLink``.
    """
    body: dict[str, Any] = {"role": str(role)}
    if email:
        body["email"] = email
    return await http.request("POST", "/family/invite", json=body)
