"""
Loginus ID Python Client.

Framework-agnostic core of the Loginus ID account dashboard: the sign-in
path editor and the family/team invitation flows.

Example:
    ```python
    from loginus_id import LoginusClient

    async with LoginusClient() as client:
        await client.set_session(access_token, refresh_token)

        editor = client.auth_path_editor(on_save=print, user_id="42")
        editor.open(current_path, connected_accounts={"github"})
        await editor.add("github")
        editor.reorder("github", "email-code")
        await editor.save()

        invites = client.family_invitations()
        link = await invites.generate("child", relation="child")
        await invites.share()
    ```
"""

from loginus_id.client import LoginusClient
from loginus_id.config import LoginusConfig
from loginus_id.exceptions import (
    APIError,
    AuthenticationError,
    ClipboardError,
    InvitationError,
    InvitationLinkError,
    LoginusError,
    NetworkError,
    NotFoundError,
    OperationInProgressError,
    PlatformError,
    RateLimitError,
    ServerError,
    SessionExpiredError,
    ShareCancelledError,
    ShareError,
    ValidationError,
)
from loginus_id.models.auth import AuthFactor, AuthFactorType, AuthPath
from loginus_id.models.invitation import Invitation, InvitationLinkInfo, InvitationRole
from loginus_id.services.auth_path_editor import AuthPathEditor, EditorState, Intent, Outcome
from loginus_id.services.invitation_service import (
    FamilyInvitationGenerator,
    ShareResult,
    TeamInvitationGenerator,
)

__version__ = "0.1.0"

__all__ = [
    # Main client
    "LoginusClient",
    "LoginusConfig",
    # Models
    "AuthFactor",
    "AuthFactorType",
    "AuthPath",
    "Invitation",
    "InvitationLinkInfo",
    "InvitationRole",
    # Services
    "AuthPathEditor",
    "EditorState",
    "Intent",
    "Outcome",
    "FamilyInvitationGenerator",
    "TeamInvitationGenerator",
    "ShareResult",
    # Exceptions
    "LoginusError",
    "ValidationError",
    "AuthenticationError",
    "SessionExpiredError",
    "APIError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "NetworkError",
    "OperationInProgressError",
    "InvitationError",
    "InvitationLinkError",
    "PlatformError",
    "ClipboardError",
    "ShareError",
    "ShareCancelledError",
]
