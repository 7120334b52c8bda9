"""Auth service - sign-up, sign-in, sign-out and profile loading.

This is the only writer of the session store. Every remote failure is
caught here and turned into a notice; nothing raised by the platform
reaches the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from fleetgate.core.auth.forms import SignInForm, SignUpForm, validate_form
from fleetgate.core.auth.types import Identity, Profile, SignUpMetadata
from fleetgate.core.exceptions import (
    AuthError,
    FleetgateError,
    ProfileMissingError,
    RemoteError,
    ValidationError,
)
from fleetgate.core.interfaces import (
    AuthProvider,
    CompanyRepository,
    Navigator,
    Notice,
    NoticeLevel,
    Notifier,
    ProfileRepository,
)
from fleetgate.core.rbac.policy import SIGN_IN_ROUTE, get_default_route_for_role
from fleetgate.core.rbac.types import Role
from fleetgate.core.session import SessionStore
from fleetgate.core.tenancy.types import new_company_fields

logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AuthService:
    """Service for authentication workflows."""

    def __init__(
        self,
        provider: AuthProvider,
        profiles: ProfileRepository,
        companies: CompanyRepository,
        store: SessionStore,
        notifier: Notifier,
        navigator: Navigator,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the service.

        Args:
            provider: Remote authentication API.
            profiles: Profile records.
            companies: Company records.
            store: Session store this service owns.
            notifier: User-visible notice channel.
            navigator: Client navigation channel.
            clock: Source of the current time, used for trial dates.
        """
        self._provider = provider
        self._profiles = profiles
        self._companies = companies
        self._store = store
        self._notifier = notifier
        self._navigator = navigator
        self._clock = clock

    async def sign_up(
        self,
        email: str,
        password: str,
        role: Role | str,
        full_name: str,
        company_name: str | None = None,
        subscription_type: str | None = None,
    ) -> bool:
        """Create an account, and a company for company administrators.

        On success the user is sent to sign-in; email verification is
        required before the first sign-in.

        Returns:
            True if the whole flow succeeded.
        """
        values: dict[str, object] = {
            "email": email,
            "password": password,
            "role": role,
            "full_name": full_name,
            "company_name": company_name,
        }
        if subscription_type is not None:
            values["subscription_type"] = subscription_type

        try:
            form = validate_form(SignUpForm, **values)
        except ValidationError as e:
            self._error("Invalid sign-up details", str(e))
            return False

        self._store.set_loading(True)
        try:
            metadata = SignUpMetadata(
                full_name=form.full_name,
                role=form.role,
                company_name=form.company_name,
                subscription_type=form.subscription_type.value,
            )
            identity = await self._provider.sign_up(form.email, form.password, metadata.as_dict())

            if form.role is Role.COMPANY_ADMIN and form.company_name:
                fields = new_company_fields(
                    form.company_name, form.subscription_type, self._clock()
                )
                company = await self._companies.create_company(fields)
                await self._profiles.update_profile(
                    identity.id,
                    role=Role.COMPANY_ADMIN,
                    company_id=company.id,
                )
                logger.info(
                    "company_created_at_signup",
                    user_id=identity.id,
                    company_id=company.id,
                    subscription_type=fields.subscription_type.value,
                )

            logger.info("user_signed_up", user_id=identity.id, role=form.role.value)
            self._notifier.notify(
                Notice(
                    "Success!",
                    "Account created successfully. Please verify your email and sign in.",
                )
            )
            self._navigator.navigate(SIGN_IN_ROUTE)
            return True
        except FleetgateError as e:
            logger.error("signup_failed", email=form.email, error=str(e))
            self._store.set_identity(None)
            self._store.set_profile(None)
            self._error("Error", str(e) or "Failed to create account")
            return False
        finally:
            self._store.set_loading(False)

    async def sign_in(self, email: str, password: str, return_to: str | None = None) -> bool:
        """Authenticate and load the profile.

        Navigates to ``return_to`` when given, otherwise to the default
        route of the user's role.

        Returns:
            True if credentials were accepted.
        """
        try:
            form = validate_form(SignInForm, email=email, password=password)
        except ValidationError as e:
            self._error("Invalid sign-in details", str(e))
            return False

        self._store.set_loading(True)
        try:
            identity = await self._provider.authenticate(form.email, form.password)
        except (AuthError, RemoteError) as e:
            logger.warning("signin_failed", email=form.email, error=str(e))
            self._store.reset()
            self._error("Sign in failed", str(e) or "Invalid email or password")
            return False

        self._store.set_identity(identity)
        profile = await self._load_profile(identity.id)
        logger.info("user_signed_in", user_id=identity.id)

        role = profile.role if profile else None
        self._navigator.navigate(return_to or get_default_route_for_role(role))
        return True

    async def confirm_email(self, token: str) -> bool:
        """Verify an email address from a confirmation link.

        The user is sent to sign-in either way; no session is started.
        """
        try:
            identity = await self._provider.confirm_email(token)
        except (AuthError, RemoteError) as e:
            logger.warning("email_confirmation_failed", error=str(e))
            self._error("Confirmation failed", str(e) or "Could not confirm your email")
            return False

        logger.info("user_email_confirmed", user_id=identity.id)
        self._notifier.notify(Notice("Email confirmed", "You can now sign in."))
        self._navigator.navigate(SIGN_IN_ROUTE)
        return True

    async def sign_out(self) -> None:
        """End the session and return to sign-in.

        Loading is cleared afterwards regardless of the outcome.
        """
        self._store.set_loading(True)
        try:
            await self._provider.sign_out()
            self._store.reset()
            logger.info("user_signed_out")
            self._notifier.notify(Notice("Signed out", "Successfully signed out."))
            self._navigator.navigate(SIGN_IN_ROUTE)
        except FleetgateError as e:
            logger.error("signout_failed", error=str(e))
            self._error("Error", str(e) or "Failed to sign out")
        finally:
            self._store.set_loading(False)

    async def get_profile(self, user_id: str) -> Profile | None:
        """Fetch and store the profile for ``user_id``.

        On failure the error is logged, loading is cleared and the profile
        is left unset.
        """
        return await self._load_profile(user_id)

    async def initialize(self) -> None:
        """Hydrate the store from an existing remote session.

        The store is marked initialized once this resolves, whether or not
        a session was found.
        """
        self._store.set_loading(True)
        try:
            identity = await self._provider.current_identity()
            if identity is None:
                logger.debug("no_existing_session")
            else:
                self._store.set_identity(identity)
                await self._load_profile(identity.id)
        except FleetgateError as e:
            logger.error("session_initialization_failed", error=str(e))
        finally:
            self._store.set_loading(False)
            self._store.mark_initialized()

    async def handle_auth_change(self, identity: Identity | None) -> None:
        """React to the provider reporting a new (or no) identity."""
        self._store.set_loading(True)
        self._store.set_identity(identity)
        if identity is None:
            self._store.set_profile(None)
            self._store.set_loading(False)
            return
        await self._load_profile(identity.id)

    async def _load_profile(self, user_id: str) -> Profile | None:
        ticket = self._store.begin_fetch(user_id)
        try:
            profile = await self._profiles.get_profile(user_id)
            if profile is None:
                raise ProfileMissingError(user_id)
        except (ProfileMissingError, RemoteError) as e:
            logger.error("profile_load_failed", user_id=user_id, error=str(e))
            if self._store.is_current(ticket):
                self._store.set_loading(False)
            return None

        if self._store.apply_profile(ticket, profile):
            self._store.set_loading(False)
        return profile

    def _error(self, title: str, description: str) -> None:
        self._notifier.notify(Notice(title, description, NoticeLevel.ERROR))
