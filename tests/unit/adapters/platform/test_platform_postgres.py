"""Tests for the PostgreSQL platform adapters."""

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest
from fleetgate.adapters.platform.postgres import (
    PasswordAuthProvider,
    PostgresCompanyRepository,
    PostgresMembershipRepository,
    PostgresProfileRepository,
)
from fleetgate.core.auth.password import hash_password
from fleetgate.core.auth.tokens import hash_token
from fleetgate.core.exceptions import AuthError, RemoteError
from fleetgate.core.interfaces import (
    AuthProvider,
    CompanyRepository,
    MembershipRepository,
    ProfileRepository,
)
from fleetgate.core.rbac.types import Role
from fleetgate.core.tenancy.types import NewCompany, SubscriptionType

from tests.fixtures.domain_objects import make_identity


class _AsyncContext:
    """Async context manager yielding a fixed value."""

    def __init__(self, value: Any) -> None:
        self.value = value

    async def __aenter__(self) -> Any:
        return self.value

    async def __aexit__(self, *exc: Any) -> bool:
        return False


@pytest.fixture
def mock_db() -> MagicMock:
    """Create mock database."""
    db = MagicMock()
    db.fetch_one = AsyncMock(return_value=None)
    db.fetch_all = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="UPDATE 1")
    db.execute_returning = AsyncMock(return_value=None)
    return db


class TestPasswordAuthProvider:
    """Test the users-table auth provider."""

    @pytest.fixture
    def provider(self, mock_db: MagicMock) -> PasswordAuthProvider:
        """Create provider with mock database."""
        return PasswordAuthProvider(mock_db)

    def test_implements_protocol(self, provider: PasswordAuthProvider) -> None:
        """Provider should implement AuthProvider protocol."""
        assert isinstance(provider, AuthProvider)

    @pytest.mark.asyncio
    async def test_authenticate(self, provider: PasswordAuthProvider, mock_db: MagicMock) -> None:
        """Should return the identity for correct credentials."""
        confirmed = datetime.now(UTC)
        mock_db.fetch_one.return_value = {
            "id": "user-1",
            "email": "a@example.com",
            "password_hash": hash_password("correct-pass", rounds=4),
            "email_confirmed_at": confirmed,
            "is_active": True,
        }

        identity = await provider.authenticate("A@example.com", "correct-pass")

        assert identity.id == "user-1"
        assert identity.email_confirmed_at == confirmed

    @pytest.mark.asyncio
    async def test_authenticate_wrong_password(
        self, provider: PasswordAuthProvider, mock_db: MagicMock
    ) -> None:
        """Should raise AuthError for a wrong password."""
        mock_db.fetch_one.return_value = {
            "id": "user-1",
            "email": "a@example.com",
            "password_hash": hash_password("correct-pass", rounds=4),
        }

        with pytest.raises(AuthError, match="Invalid login credentials"):
            await provider.authenticate("a@example.com", "wrong-pass")

    @pytest.mark.asyncio
    async def test_authenticate_unknown_user(self, provider: PasswordAuthProvider) -> None:
        """Should not reveal whether the email exists."""
        with pytest.raises(AuthError, match="Invalid login credentials"):
            await provider.authenticate("nobody@example.com", "whatever-pass")

    @pytest.mark.asyncio
    async def test_authenticate_unconfirmed_email(
        self, provider: PasswordAuthProvider, mock_db: MagicMock
    ) -> None:
        """Should refuse sign-in until the email is confirmed."""
        mock_db.fetch_one.return_value = {
            "id": "u1",
            "email": "a@example.com",
            "password_hash": hash_password("correct-pass", rounds=4),
            "email_confirmed_at": None,
            "is_active": True,
        }

        with pytest.raises(AuthError, match="Email not confirmed"):
            await provider.authenticate("a@example.com", "correct-pass")

    @pytest.mark.asyncio
    async def test_authenticate_disabled(
        self, provider: PasswordAuthProvider, mock_db: MagicMock
    ) -> None:
        """Should reject deactivated accounts."""
        mock_db.fetch_one.return_value = {
            "id": "user-1",
            "email": "a@example.com",
            "password_hash": hash_password("correct-pass", rounds=4),
            "is_active": False,
        }

        with pytest.raises(AuthError, match="disabled"):
            await provider.authenticate("a@example.com", "correct-pass")

    @pytest.mark.asyncio
    async def test_sign_up_creates_user_and_profile(
        self, provider: PasswordAuthProvider, mock_db: MagicMock
    ) -> None:
        """Should insert the user and a profile holding the requested role."""
        conn = MagicMock()
        conn.fetchrow = AsyncMock(
            return_value={"id": "user-9", "email": "new@example.com", "email_confirmed_at": None}
        )
        conn.execute = AsyncMock()
        mock_db.transaction = MagicMock(return_value=_AsyncContext(conn))

        identity = await provider.sign_up(
            "new@example.com", "s3cret-pass", {"full_name": "New Driver", "role": "supervisor"}
        )

        assert identity.id == "user-9"
        assert identity.is_email_verified is False
        stored_hash = conn.fetchrow.await_args.args[2]
        assert stored_hash != "s3cret-pass"
        profile_args = conn.execute.await_args_list[0].args
        assert "INSERT INTO profiles" in profile_args[0]
        assert profile_args[1:] == ("user-9", "new@example.com", "New Driver", "supervisor")

    @pytest.mark.asyncio
    async def test_sign_up_issues_confirmation(self, mock_db: MagicMock) -> None:
        """Should store only the token hash and send the plaintext link."""
        conn = MagicMock()
        conn.fetchrow = AsyncMock(
            return_value={"id": "user-9", "email": "new@example.com", "email_confirmed_at": None}
        )
        conn.execute = AsyncMock()
        mock_db.transaction = MagicMock(return_value=_AsyncContext(conn))
        sender = AsyncMock()
        provider = PasswordAuthProvider(
            mock_db, confirmations=sender, frontend_url="https://fleet.example.com/"
        )

        await provider.sign_up("new@example.com", "s3cret-pass", {"role": "driver"})

        email, url = sender.send_confirmation.await_args.args
        assert email == "new@example.com"
        assert url.startswith("https://fleet.example.com/confirm-email?token=")
        token = url.split("token=", 1)[1]
        confirmation_args = conn.execute.await_args_list[1].args
        assert "INSERT INTO email_confirmations" in confirmation_args[0]
        assert confirmation_args[1] == hash_token(token)
        assert confirmation_args[2] == "user-9"

    @pytest.mark.asyncio
    async def test_confirm_email(self, provider: PasswordAuthProvider, mock_db: MagicMock) -> None:
        """Should consume the token and stamp the confirmation time."""
        confirmed = datetime.now(UTC)
        conn = MagicMock()
        conn.fetchrow = AsyncMock(
            side_effect=[
                {"user_id": "user-9", "expires_at": datetime.now(UTC) + timedelta(hours=1)},
                {"id": "user-9", "email": "new@example.com", "email_confirmed_at": confirmed},
            ]
        )
        mock_db.transaction = MagicMock(return_value=_AsyncContext(conn))

        identity = await provider.confirm_email("plain-token")

        assert identity.is_email_verified
        delete_args = conn.fetchrow.await_args_list[0].args
        assert "DELETE FROM email_confirmations" in delete_args[0]
        assert delete_args[1] == hash_token("plain-token")
        assert conn.fetchrow.await_args_list[1].args[1] == "user-9"

    @pytest.mark.asyncio
    async def test_confirm_email_unknown_token(
        self, provider: PasswordAuthProvider, mock_db: MagicMock
    ) -> None:
        """Should reject a token that was never issued or already used."""
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value=None)
        mock_db.transaction = MagicMock(return_value=_AsyncContext(conn))

        with pytest.raises(AuthError, match="Invalid or expired"):
            await provider.confirm_email("plain-token")

    @pytest.mark.asyncio
    async def test_confirm_email_expired(
        self, provider: PasswordAuthProvider, mock_db: MagicMock
    ) -> None:
        """Should reject an expired token without touching the user."""
        conn = MagicMock()
        conn.fetchrow = AsyncMock(
            return_value={
                "user_id": "user-9",
                "expires_at": datetime.now(UTC) - timedelta(hours=1),
            }
        )
        mock_db.transaction = MagicMock(return_value=_AsyncContext(conn))

        with pytest.raises(AuthError, match="Invalid or expired"):
            await provider.confirm_email("plain-token")
        assert conn.fetchrow.await_count == 1

    @pytest.mark.asyncio
    async def test_sign_up_duplicate_email(
        self, provider: PasswordAuthProvider, mock_db: MagicMock
    ) -> None:
        """Should turn a unique violation into AuthError."""
        error = RemoteError("duplicate key")
        error.__cause__ = asyncpg.UniqueViolationError("duplicate key value")
        conn = MagicMock()
        conn.fetchrow = AsyncMock(side_effect=error)
        mock_db.transaction = MagicMock(return_value=_AsyncContext(conn))

        with pytest.raises(AuthError, match="already registered"):
            await provider.sign_up("a@example.com", "s3cret-pass", {"role": "driver"})

    @pytest.mark.asyncio
    async def test_current_identity_rechecks_user(
        self, mock_db: MagicMock
    ) -> None:
        """Should drop an identity whose user no longer exists."""
        provider = PasswordAuthProvider(mock_db, make_identity())

        assert await provider.current_identity() is None
        mock_db.fetch_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_current_identity_without_session(
        self, provider: PasswordAuthProvider, mock_db: MagicMock
    ) -> None:
        """Should not query without an identity."""
        assert await provider.current_identity() is None
        mock_db.fetch_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_sign_out_forgets_identity(self, mock_db: MagicMock) -> None:
        """Should end the session locally."""
        provider = PasswordAuthProvider(mock_db, make_identity())

        await provider.sign_out()

        assert await provider.current_identity() is None


class TestPostgresProfileRepository:
    """Test the profiles repository."""

    @pytest.fixture
    def repo(self, mock_db: MagicMock) -> PostgresProfileRepository:
        """Create repository with mock database."""
        return PostgresProfileRepository(mock_db)

    def test_implements_protocol(self, repo: PostgresProfileRepository) -> None:
        """Repository should implement ProfileRepository protocol."""
        assert isinstance(repo, ProfileRepository)

    @pytest.mark.asyncio
    async def test_get_profile(self, repo: PostgresProfileRepository, mock_db: MagicMock) -> None:
        """Should build a profile with a coerced role."""
        mock_db.fetch_one.return_value = {
            "id": "user-1",
            "email": "a@example.com",
            "role": "company_admin",
            "company_id": "company-1",
        }

        profile = await repo.get_profile("user-1")

        assert profile is not None
        assert profile.role is Role.COMPANY_ADMIN
        assert profile.company_id == "company-1"

    @pytest.mark.asyncio
    async def test_unknown_role_becomes_none(
        self, repo: PostgresProfileRepository, mock_db: MagicMock
    ) -> None:
        """Should not trust role strings outside the enum."""
        mock_db.fetch_one.return_value = {"id": "user-1", "email": "a@example.com", "role": "root"}

        profile = await repo.get_profile("user-1")

        assert profile.role is None

    @pytest.mark.asyncio
    async def test_update_only_given_fields(
        self, repo: PostgresProfileRepository, mock_db: MagicMock
    ) -> None:
        """Should update the given fields and nothing else."""
        await repo.update_profile("user-1", role=Role.COMPANY_ADMIN, company_id="company-1")

        query, *params = mock_db.execute.await_args.args
        assert "role = $1" in query
        assert "company_id = $2" in query
        assert "full_name" not in query
        assert query.endswith("WHERE id = $3")
        assert params == ["company_admin", "company-1", "user-1"]

    @pytest.mark.asyncio
    async def test_update_nothing(
        self, repo: PostgresProfileRepository, mock_db: MagicMock
    ) -> None:
        """Should not issue a query without changes."""
        await repo.update_profile("user-1")

        mock_db.execute.assert_not_called()


class TestPostgresCompanyRepository:
    """Test the companies repository."""

    @pytest.fixture
    def repo(self, mock_db: MagicMock) -> PostgresCompanyRepository:
        """Create repository with mock database."""
        return PostgresCompanyRepository(mock_db)

    def test_implements_protocol(self, repo: PostgresCompanyRepository) -> None:
        """Repository should implement CompanyRepository protocol."""
        assert isinstance(repo, CompanyRepository)

    @pytest.mark.asyncio
    async def test_create_company(
        self, repo: PostgresCompanyRepository, mock_db: MagicMock
    ) -> None:
        """Should insert the company with its trial window."""
        start = datetime(2024, 3, 1, tzinfo=UTC)
        end = start + timedelta(days=25)
        mock_db.execute_returning.return_value = {
            "id": "company-1",
            "name": "Acme",
            "subscription_type": "trial",
            "trial_start_date": start,
            "trial_end_date": end,
            "is_active": True,
            "created_at": start,
        }

        company = await repo.create_company(
            NewCompany("Acme", SubscriptionType.TRIAL, start, end)
        )

        assert company.id == "company-1"
        assert company.is_trial
        assert mock_db.execute_returning.await_args.args[1:] == ("Acme", "trial", start, end, True)

    @pytest.mark.asyncio
    async def test_get_company_missing(self, repo: PostgresCompanyRepository) -> None:
        """Should return None when not found."""
        assert await repo.get_company("company-x") is None


class TestPostgresMembershipRepository:
    """Test the membership repository."""

    @pytest.fixture
    def repo(self, mock_db: MagicMock) -> PostgresMembershipRepository:
        """Create repository with mock database."""
        return PostgresMembershipRepository(mock_db)

    def test_implements_protocol(self, repo: PostgresMembershipRepository) -> None:
        """Repository should implement MembershipRepository protocol."""
        assert isinstance(repo, MembershipRepository)

    @pytest.mark.asyncio
    async def test_get_user_companies(
        self, repo: PostgresMembershipRepository, mock_db: MagicMock
    ) -> None:
        """Should keep data-source order."""
        mock_db.fetch_all.return_value = [
            {
                "user_id": "user-1",
                "company_id": "company-2",
                "company_name": "Blue Line",
                "role": "supervisor",
                "subscription_type": "full",
            },
            {
                "user_id": "user-1",
                "company_id": "company-1",
                "company_name": "Acme",
                "role": "driver",
                "subscription_type": None,
            },
        ]

        memberships = await repo.get_user_companies("user-1")

        assert [m.company_id for m in memberships] == ["company-2", "company-1"]
        assert memberships[0].role is Role.SUPERVISOR
        assert memberships[1].subscription_type is None

    @pytest.mark.asyncio
    async def test_get_role_for_company(
        self, repo: PostgresMembershipRepository, mock_db: MagicMock
    ) -> None:
        """Should return the role in one company."""
        mock_db.fetch_one.return_value = {"role": "company_admin"}

        assert await repo.get_role_for_company("user-1", "company-1") is Role.COMPANY_ADMIN

    @pytest.mark.asyncio
    async def test_get_user_role_missing(self, repo: PostgresMembershipRepository) -> None:
        """Should return None for an unknown user."""
        assert await repo.get_user_role("user-x") is None

    @pytest.mark.asyncio
    async def test_replace_role_is_single_upsert(
        self, repo: PostgresMembershipRepository, mock_db: MagicMock
    ) -> None:
        """Should replace the role in one statement without deleting first."""
        await repo.replace_user_role("user-1", Role.SUPERVISOR, "company-1")

        mock_db.execute.assert_awaited_once()
        query, *params = mock_db.execute.await_args.args
        assert "ON CONFLICT (user_id, company_id) DO UPDATE" in query
        assert "DELETE" not in query
        assert params == ["user-1", "company-1", "supervisor"]

    @pytest.mark.asyncio
    async def test_replace_role_without_company(
        self, repo: PostgresMembershipRepository, mock_db: MagicMock
    ) -> None:
        """Should update the profile role directly."""
        await repo.replace_user_role("user-1", Role.DRIVER, None)

        query, *params = mock_db.execute.await_args.args
        assert query.startswith("UPDATE profiles")
        assert params == ["driver", "user-1"]
