"""
Domain models for Loginus ID.

These are immutable (frozen) dataclasses representing the core domain concepts.
"""

from loginus_id.models.auth import (
    FACTOR_CATALOG,
    AuthFactor,
    AuthFactorType,
    AuthPath,
    FactorSpec,
    get_factor_spec,
)
from loginus_id.models.invitation import Invitation, InvitationLinkInfo, InvitationRole

__all__ = [
    # Auth factors
    "AuthFactor",
    "AuthFactorType",
    "AuthPath",
    "FactorSpec",
    "FACTOR_CATALOG",
    "get_factor_spec",
    # Invitations
    "Invitation",
    "InvitationLinkInfo",
    "InvitationRole",
]
