"""Remote platform adapters."""

from .console import ConsoleConfirmationSender
from .postgres import (
    PasswordAuthProvider,
    PostgresCompanyRepository,
    PostgresMembershipRepository,
    PostgresProfileRepository,
)

__all__ = [
    "ConsoleConfirmationSender",
    "PasswordAuthProvider",
    "PostgresCompanyRepository",
    "PostgresMembershipRepository",
    "PostgresProfileRepository",
]
