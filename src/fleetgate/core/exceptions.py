"""Domain-specific exceptions.

All exceptions in the fleetgate system inherit from FleetgateError,
making it easy to catch all system errors while still being able
to handle specific error types.

Authorization failures are deliberately absent from this module: a
failed role or permission check is a normal outcome of the access guard,
never an exception.
"""

from __future__ import annotations


class FleetgateError(Exception):
    """Base exception for all fleetgate errors."""

    pass


class AuthError(FleetgateError):
    """Authentication failed.

    Raised for bad credentials, an expired session, or a sign-up the
    auth provider rejected. Surfaced to the user as a notice; the session
    falls back to unauthenticated.
    """

    pass


class ProfileMissingError(FleetgateError):
    """An identity exists but its profile could not be loaded.

    Indicates a provisioning inconsistency upstream. The access guard
    treats this state as not fully authenticated.
    """

    def __init__(self, user_id: str, message: str | None = None) -> None:
        self.user_id = user_id
        super().__init__(message or f"Profile not found for user {user_id}")


class MembershipNotFound(FleetgateError):
    """The requested company is not among the user's memberships."""

    def __init__(self, company_id: str) -> None:
        self.company_id = company_id
        super().__init__(f"Company {company_id} not found in memberships")


class RemoteError(FleetgateError):
    """A call to the remote data platform failed.

    Wraps network errors and platform error responses so that callers
    only need to handle one type at the service boundary.
    """

    pass


class ValidationError(FleetgateError):
    """Form input failed validation before reaching the platform."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)
