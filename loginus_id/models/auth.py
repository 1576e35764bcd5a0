"""
Authentication-factor domain models.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Self


class AuthFactorType(StrEnum):
    """Closed set of login steps a user can put in their auth path."""

    PASSWORD = "password"
    EMAIL_CODE = "email-code"
    SMS_CODE = "sms-code"
    TELEGRAM = "telegram"
    GITHUB = "github"
    GOSUSLUGI = "gosuslugi"
    TINKOFF = "tinkoff"
    YANDEX = "yandex"
    SABER = "saber"
    BIOMETRIC = "biometric"


@dataclass(frozen=True, kw_only=True)
class FactorSpec:
    """
    Catalog entry describing a factor that can be added to a path.

    Attributes:
        type: Factor variant.
        name: Display name.
        description: One-line description for the picker.
        icon: Icon identifier.
        account: Connected-account key that must be linked before the factor
            can be added, or None when no external account is needed.
    """

    type: AuthFactorType
    name: str
    description: str
    icon: str
    account: str | None = None


FACTOR_CATALOG: tuple[FactorSpec, ...] = (
    FactorSpec(
        type=AuthFactorType.PASSWORD,
        name="Password",
        description="Primary sign-in method",
        icon="key",
    ),
    FactorSpec(
        type=AuthFactorType.EMAIL_CODE,
        name="Email code",
        description="A one-time code sent to your email",
        icon="mail",
    ),
    FactorSpec(
        type=AuthFactorType.SMS_CODE,
        name="SMS code",
        description="A one-time code sent by SMS",
        icon="smartphone",
    ),
    FactorSpec(
        type=AuthFactorType.TELEGRAM,
        name="Telegram",
        description="Confirm in Telegram",
        icon="message-circle",
        account="telegram",
    ),
    FactorSpec(
        type=AuthFactorType.GITHUB,
        name="Github",
        description="Sign in with your Github account",
        icon="github",
        account="github",
    ),
    FactorSpec(
        type=AuthFactorType.GOSUSLUGI,
        name="Gosuslugi",
        description="Confirm via Gosuslugi",
        icon="shield",
        account="gosuslugi",
    ),
    FactorSpec(
        type=AuthFactorType.TINKOFF,
        name="Tinkoff ID",
        description="Confirm via Tinkoff",
        icon="credit-card",
        account="tinkoff",
    ),
    FactorSpec(
        type=AuthFactorType.YANDEX,
        name="Yandex ID",
        description="Confirm via Yandex",
        icon="globe",
        account="yandex",
    ),
    FactorSpec(
        type=AuthFactorType.SABER,
        name="Saber ID",
        description="Confirm via Saber",
        icon="shield",
        account="saber",
    ),
    FactorSpec(
        type=AuthFactorType.BIOMETRIC,
        name="Biometrics",
        description="Confirm on a registered device",
        icon="fingerprint",
        account="biometric",
    ),
)

_CATALOG_BY_TYPE: dict[AuthFactorType, FactorSpec] = {spec.type: spec for spec in FACTOR_CATALOG}


def get_factor_spec(factor_type: AuthFactorType | str) -> FactorSpec:
    """
    Look up the catalog entry for a factor type.

    Raises:
        ValueError: If the type is not part of the catalog.
    """
    return _CATALOG_BY_TYPE[AuthFactorType(factor_type)]


@dataclass(frozen=True, kw_only=True)
class AuthFactor:
    """
    One step of a user's login sequence.

    Attributes:
        id: Stable identifier, equal to ``type`` for catalog factors.
        type: Factor variant.
        name: Display name.
        description: Display description.
        icon: Icon identifier.
        enabled: Whether the step is active in the login path.
        required: Baseline factor that cannot be disabled, removed or moved.
        available: Whether the user can currently add this factor.
    """

    id: str
    type: AuthFactorType
    name: str = ""
    description: str = ""
    icon: str = ""
    enabled: bool = True
    required: bool = False
    available: bool = True

    @classmethod
    def from_spec(
        cls,
        spec: FactorSpec,
        *,
        enabled: bool = True,
        required: bool = False,
        available: bool = True,
    ) -> Self:
        """Build a factor from its catalog entry."""
        return cls(
            id=spec.type.value,
            type=spec.type,
            name=spec.name,
            description=spec.description,
            icon=spec.icon,
            enabled=enabled,
            required=required,
            available=available,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """
        Build a factor from its JSON form.

        Presentation fields missing from ``data`` are filled from the catalog.

        Raises:
            ValueError: If ``type`` is missing or unknown.
        """
        if "type" not in data:
            msg = "Auth factor is missing 'type'"
            raise ValueError(msg)
        factor_type = AuthFactorType(data["type"])
        spec = _CATALOG_BY_TYPE[factor_type]
        return cls(
            id=str(data.get("id") or factor_type.value),
            type=factor_type,
            name=data.get("name") or spec.name,
            description=data.get("description") or spec.description,
            icon=data.get("icon") or spec.icon,
            enabled=bool(data.get("enabled", True)),
            required=bool(data.get("required", False)),
            available=bool(data.get("available", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "enabled": self.enabled,
            "required": self.required,
            "available": self.available,
        }

    def with_enabled(self, enabled: bool) -> Self:
        """Return a copy with ``enabled`` replaced."""
        return replace(self, enabled=enabled)


AuthPath = tuple[AuthFactor, ...]
"""Ordered login sequence; order is the attempt order during sign-in."""
