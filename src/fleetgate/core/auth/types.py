"""Auth domain types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fleetgate.core.rbac.types import Role, coerce_role


@dataclass(frozen=True)
class Identity:
    """An authenticated user as reported by the auth provider.

    Read-only to this package; destroyed on sign-out.
    """

    id: str
    email: str
    email_confirmed_at: datetime | None = None

    @property
    def is_email_verified(self) -> bool:
        """Has the user confirmed their email address?"""
        return self.email_confirmed_at is not None


@dataclass(frozen=True)
class Profile:
    """Application profile for an identity (id equals the identity id).

    Role changes replace the whole value; a profile never holds more
    than one role at a time.
    """

    id: str
    email: str
    role: Role | None
    full_name: str | None = None
    company_id: str | None = None
    phone_number: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Profile:
        """Build a profile from a platform row, coercing the role."""
        return cls(
            id=str(record["id"]),
            email=record["email"],
            role=coerce_role(record.get("role")),
            full_name=record.get("full_name"),
            company_id=str(record["company_id"]) if record.get("company_id") else None,
            phone_number=record.get("phone_number"),
        )


@dataclass(frozen=True)
class SignUpMetadata:
    """User metadata attached to a new identity at sign-up."""

    full_name: str
    role: Role
    company_name: str | None = None
    subscription_type: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Serialise for the auth provider's metadata payload."""
        return {
            "full_name": self.full_name,
            "role": self.role.value,
            "company_name": self.company_name,
            "subscription_type": self.subscription_type,
            **self.extra,
        }


@dataclass(frozen=True)
class TokenPayload:
    """Decoded access token claims."""

    sub: str
    email: str
    exp: int
    iat: int
    email_confirmed_at: str | None = None
