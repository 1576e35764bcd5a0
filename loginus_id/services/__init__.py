"""
Business logic services for Loginus ID.
"""

from loginus_id.services.auth_path_editor import AuthPathEditor, EditorState, Intent, Outcome
from loginus_id.services.invitation_service import (
    FamilyInvitationGenerator,
    InvitationLinkGenerator,
    ShareResult,
    TeamInvitationGenerator,
)

__all__ = [
    "AuthPathEditor",
    "EditorState",
    "FamilyInvitationGenerator",
    "Intent",
    "InvitationLinkGenerator",
    "Outcome",
    "ShareResult",
    "TeamInvitationGenerator",
]
