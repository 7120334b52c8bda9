"""Core domain - access control and tenant context, no infrastructure."""

from fleetgate.core.exceptions import (
    AuthError,
    FleetgateError,
    MembershipNotFound,
    ProfileMissingError,
    RemoteError,
    ValidationError,
)
from fleetgate.core.interfaces import Notice, NoticeLevel

__all__ = [
    "AuthError",
    "FleetgateError",
    "MembershipNotFound",
    "Notice",
    "NoticeLevel",
    "ProfileMissingError",
    "RemoteError",
    "ValidationError",
]
