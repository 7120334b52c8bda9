"""PostgreSQL implementations of the platform protocols."""

from __future__ import annotations

from typing import Any

import asyncpg
import structlog

from fleetgate.adapters.db.app_db import AppDatabase
from fleetgate.core.auth.password import hash_password, verify_password
from fleetgate.core.auth.tokens import (
    generate_confirmation_token,
    get_token_expiry,
    hash_token,
    is_token_expired,
)
from fleetgate.core.auth.types import Identity, Profile
from fleetgate.core.exceptions import AuthError, RemoteError
from fleetgate.core.interfaces import ConfirmationSender
from fleetgate.core.rbac.types import Role, coerce_role
from fleetgate.core.tenancy.types import (
    Company,
    CompanyMembership,
    NewCompany,
    SubscriptionType,
)

logger = structlog.get_logger()


def _row_to_identity(row: dict[str, Any]) -> Identity:
    """Convert database row to Identity."""
    return Identity(
        id=str(row["id"]),
        email=row["email"],
        email_confirmed_at=row.get("email_confirmed_at"),
    )


def _row_to_company(row: dict[str, Any]) -> Company:
    """Convert database row to Company."""
    return Company(
        id=str(row["id"]),
        name=row["name"],
        subscription_type=SubscriptionType(row["subscription_type"]),
        trial_start_date=row.get("trial_start_date"),
        trial_end_date=row.get("trial_end_date"),
        is_active=row.get("is_active", True),
        created_at=row.get("created_at"),
    )


def _row_to_membership(row: dict[str, Any]) -> CompanyMembership:
    """Convert joined user_roles/companies row to CompanyMembership."""
    subscription = row.get("subscription_type")
    return CompanyMembership(
        user_id=str(row["user_id"]),
        company_id=str(row["company_id"]),
        company_name=row["company_name"],
        role=coerce_role(row.get("role")),
        subscription_type=SubscriptionType(subscription) if subscription else None,
    )


class PasswordAuthProvider:
    """Email/password auth backed by the users table.

    One provider instance serves one client session. ``identity`` is the
    identity the client already proved (for instance through a bearer
    token); ``current_identity`` re-checks it against the users table so
    deactivated users lose their session.

    Sign-up issues a confirmation token through ``confirmations``; users
    cannot sign in until the link has been followed.
    """

    def __init__(
        self,
        db: AppDatabase,
        identity: Identity | None = None,
        confirmations: ConfirmationSender | None = None,
        frontend_url: str = "",
    ) -> None:
        self._db = db
        self._identity = identity
        self._confirmations = confirmations
        self._frontend_url = frontend_url.rstrip("/")

    async def authenticate(self, email: str, password: str) -> Identity:
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE lower(email) = lower($1)",
            email,
        )
        if not row or not verify_password(password, row.get("password_hash")):
            raise AuthError("Invalid login credentials")
        if not row.get("is_active", True):
            raise AuthError("Account is disabled")
        if row.get("email_confirmed_at") is None:
            raise AuthError("Email not confirmed")
        self._identity = _row_to_identity(row)
        return self._identity

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> Identity:
        """Create the user, their profile and a confirmation token in one transaction."""
        role = coerce_role(metadata.get("role")) or Role.DRIVER
        token = generate_confirmation_token()
        try:
            async with self._db.transaction() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO users (email, password_hash)
                    VALUES ($1, $2)
                    RETURNING *
                    """,
                    email,
                    hash_password(password),
                )
                assert row is not None, "INSERT RETURNING should always return a row"
                await conn.execute(
                    """
                    INSERT INTO profiles (id, email, full_name, role)
                    VALUES ($1, $2, $3, $4)
                    """,
                    row["id"],
                    email,
                    metadata.get("full_name"),
                    role.value,
                )
                await conn.execute(
                    """
                    INSERT INTO email_confirmations (token_hash, user_id, expires_at)
                    VALUES ($1, $2, $3)
                    """,
                    hash_token(token),
                    row["id"],
                    get_token_expiry(),
                )
        except RemoteError as e:
            if isinstance(e.__cause__, asyncpg.UniqueViolationError):
                raise AuthError("User already registered") from None
            raise

        identity = _row_to_identity(dict(row))
        if self._confirmations is not None:
            await self._confirmations.send_confirmation(
                email, f"{self._frontend_url}/confirm-email?token={token}"
            )
        logger.info("email_confirmation_issued", user_id=identity.id)
        return identity

    async def confirm_email(self, token: str) -> Identity:
        """Stamp ``email_confirmed_at`` for the user a token was issued to.

        Raises:
            AuthError: If the token is unknown, used or expired.
        """
        async with self._db.transaction() as conn:
            confirmation = await conn.fetchrow(
                "DELETE FROM email_confirmations WHERE token_hash = $1 RETURNING *",
                hash_token(token),
            )
            if confirmation is None or is_token_expired(confirmation["expires_at"]):
                raise AuthError("Invalid or expired confirmation link")
            row = await conn.fetchrow(
                """
                UPDATE users
                SET email_confirmed_at = COALESCE(email_confirmed_at, NOW())
                WHERE id = $1
                RETURNING *
                """,
                confirmation["user_id"],
            )
            if row is None:
                raise AuthError("Invalid or expired confirmation link")

        identity = _row_to_identity(dict(row))
        logger.info("email_confirmed", user_id=identity.id)
        return identity

    async def sign_out(self) -> None:
        self._identity = None

    async def current_identity(self) -> Identity | None:
        if self._identity is None:
            return None
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE id = $1 AND is_active = true",
            self._identity.id,
        )
        if row is None:
            logger.info("session_identity_gone", user_id=self._identity.id)
            self._identity = None
            return None
        self._identity = _row_to_identity(row)
        return self._identity


class PostgresProfileRepository:
    """Profiles table."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Platform database instance.
        """
        self._db = db

    async def get_profile(self, user_id: str) -> Profile | None:
        row = await self._db.fetch_one(
            "SELECT * FROM profiles WHERE id = $1",
            user_id,
        )
        return Profile.from_record(row) if row else None

    async def update_profile(
        self,
        user_id: str,
        role: Role | None = None,
        company_id: str | None = None,
        full_name: str | None = None,
    ) -> None:
        """Update the given profile fields."""
        updates = []
        params: list[Any] = []
        param_idx = 1

        if role is not None:
            updates.append(f"role = ${param_idx}")
            params.append(role.value)
            param_idx += 1

        if company_id is not None:
            updates.append(f"company_id = ${param_idx}")
            params.append(company_id)
            param_idx += 1

        if full_name is not None:
            updates.append(f"full_name = ${param_idx}")
            params.append(full_name)
            param_idx += 1

        if not updates:
            return

        updates.append("updated_at = NOW()")
        params.append(user_id)
        await self._db.execute(
            f"UPDATE profiles SET {', '.join(updates)} WHERE id = ${param_idx}",
            *params,
        )


class PostgresCompanyRepository:
    """Companies table."""

    def __init__(self, db: AppDatabase) -> None:
        self._db = db

    async def create_company(self, fields: NewCompany) -> Company:
        row = await self._db.execute_returning(
            """
            INSERT INTO companies
            (name, subscription_type, trial_start_date, trial_end_date, is_active)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
            """,
            fields.name,
            fields.subscription_type.value,
            fields.trial_start_date,
            fields.trial_end_date,
            fields.is_active,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        logger.info("company_created", company_id=str(row["id"]), name=fields.name)
        return _row_to_company(row)

    async def get_company(self, company_id: str) -> Company | None:
        row = await self._db.fetch_one(
            "SELECT * FROM companies WHERE id = $1",
            company_id,
        )
        return _row_to_company(row) if row else None


class PostgresMembershipRepository:
    """Per-company roles in the user_roles table.

    The profile row mirrors the role for the user's home company, so role
    replacement writes both in a single statement.
    """

    def __init__(self, db: AppDatabase) -> None:
        self._db = db

    async def get_user_companies(self, user_id: str) -> list[CompanyMembership]:
        rows = await self._db.fetch_all(
            """
            SELECT ur.user_id, ur.company_id, ur.role,
                   c.name AS company_name, c.subscription_type
            FROM user_roles ur
            JOIN companies c ON c.id = ur.company_id
            WHERE ur.user_id = $1
            ORDER BY ur.created_at, c.name
            """,
            user_id,
        )
        return [_row_to_membership(row) for row in rows]

    async def get_role_for_company(self, user_id: str, company_id: str) -> Role | None:
        row = await self._db.fetch_one(
            "SELECT role FROM user_roles WHERE user_id = $1 AND company_id = $2",
            user_id,
            company_id,
        )
        return coerce_role(row["role"]) if row else None

    async def get_user_role(self, user_id: str) -> Role | None:
        row = await self._db.fetch_one(
            "SELECT role FROM profiles WHERE id = $1",
            user_id,
        )
        return coerce_role(row["role"]) if row else None

    async def replace_user_role(self, user_id: str, role: Role, company_id: str | None) -> None:
        if company_id is None:
            await self._db.execute(
                "UPDATE profiles SET role = $1, updated_at = NOW() WHERE id = $2",
                role.value,
                user_id,
            )
            return

        await self._db.execute(
            """
            WITH upserted AS (
                INSERT INTO user_roles (user_id, company_id, role)
                VALUES ($1, $2, $3)
                ON CONFLICT (user_id, company_id) DO UPDATE SET role = EXCLUDED.role
                RETURNING user_id, company_id, role
            )
            UPDATE profiles p
            SET role = u.role, updated_at = NOW()
            FROM upserted u
            WHERE p.id = u.user_id
              AND (p.company_id IS NULL OR p.company_id = u.company_id)
            """,
            user_id,
            company_id,
            role.value,
        )
