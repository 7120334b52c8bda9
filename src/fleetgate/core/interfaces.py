"""Protocol definitions for all external dependencies.

The remote data platform (auth, profiles, companies, memberships), the
client-local key/value state, and the user-facing notice, navigation and
reload channels are all collaborators of the core. The core only depends
on these protocols, never on concrete implementations.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fleetgate.core.auth.types import Identity, Profile
    from fleetgate.core.rbac.types import Role
    from fleetgate.core.tenancy.types import Company, CompanyMembership, NewCompany


class NoticeLevel(str, Enum):
    """Severity of a user-visible notice."""

    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A user-visible message (a toast in the dashboard)."""

    title: str
    description: str
    level: NoticeLevel = NoticeLevel.INFO


@runtime_checkable
class AuthProvider(Protocol):
    """Interface for the platform's authentication API.

    All methods raise AuthError for credential problems and RemoteError
    for transport or platform failures.
    """

    async def authenticate(self, email: str, password: str) -> Identity:
        """Verify credentials and return the identity."""
        ...

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> Identity:
        """Create a new identity with the given metadata."""
        ...

    async def sign_out(self) -> None:
        """End the current remote session."""
        ...

    async def current_identity(self) -> Identity | None:
        """Return the identity of an existing session, if any."""
        ...

    async def confirm_email(self, token: str) -> Identity:
        """Mark the email behind a confirmation token as verified."""
        ...


@runtime_checkable
class ProfileRepository(Protocol):
    """Interface for profile records."""

    async def get_profile(self, user_id: str) -> Profile | None:
        """Fetch a profile by user id, None if it does not exist."""
        ...

    async def update_profile(
        self,
        user_id: str,
        role: Role | None = None,
        company_id: str | None = None,
        full_name: str | None = None,
    ) -> None:
        """Update profile fields. Role is replaced as a whole value."""
        ...


@runtime_checkable
class CompanyRepository(Protocol):
    """Interface for company records."""

    async def create_company(self, fields: NewCompany) -> Company:
        """Create a company."""
        ...

    async def get_company(self, company_id: str) -> Company | None:
        """Fetch a company by id."""
        ...


@runtime_checkable
class MembershipRepository(Protocol):
    """Interface for user-company memberships and per-company roles."""

    async def get_user_companies(self, user_id: str) -> list[CompanyMembership]:
        """Fetch all memberships of a user in data-source order."""
        ...

    async def get_role_for_company(self, user_id: str, company_id: str) -> Role | None:
        """Fetch a user's role in one company."""
        ...

    async def get_user_role(self, user_id: str) -> Role | None:
        """Fetch a user's current role, uncached."""
        ...

    async def replace_user_role(self, user_id: str, role: Role, company_id: str | None) -> None:
        """Atomically replace a user's role in a company.

        Implementations must never leave a window in which the user holds
        no role.
        """
        ...


@runtime_checkable
class LocalStateStore(Protocol):
    """Client-local persisted key/value state (one writer at a time)."""

    def get(self, key: str) -> str | None:
        """Read a value."""
        ...

    def set(self, key: str, value: str) -> None:
        """Write a value."""
        ...

    def delete(self, key: str) -> None:
        """Remove a value if present."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Channel for user-visible notices."""

    def notify(self, notice: Notice) -> None:
        """Show a notice to the user."""
        ...


@runtime_checkable
class Navigator(Protocol):
    """Channel for client navigation."""

    def navigate(self, path: str) -> None:
        """Send the user to a path."""
        ...


@runtime_checkable
class Reloader(Protocol):
    """Channel for a full reload of tenant-scoped application state."""

    def reload(self) -> None:
        """Discard all tenant-scoped state and reload."""
        ...


@runtime_checkable
class ConfirmationSender(Protocol):
    """Delivers email confirmation links to new users."""

    async def send_confirmation(self, email: str, confirm_url: str) -> None:
        """Send the confirmation link for ``email``."""
        ...
