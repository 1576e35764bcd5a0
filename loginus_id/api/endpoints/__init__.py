"""
Typed endpoint functions, one module per backend area.
"""

from loginus_id.api.endpoints.family import invite_family_member
from loginus_id.api.endpoints.security import add_auth_factor, remove_auth_factor
from loginus_id.api.endpoints.teams import generate_team_invite_link

__all__ = [
    "add_auth_factor",
    "generate_team_invite_link",
    "invite_family_member",
    "remove_auth_factor",
]
