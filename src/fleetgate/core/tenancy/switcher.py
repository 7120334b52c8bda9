"""Company membership resolution and active-company switching."""

from __future__ import annotations

import structlog

from fleetgate.core.exceptions import FleetgateError, MembershipNotFound
from fleetgate.core.interfaces import (
    LocalStateStore,
    MembershipRepository,
    Notice,
    NoticeLevel,
    Notifier,
    Reloader,
)
from fleetgate.core.rbac.policy import get_role_display_name
from fleetgate.core.tenancy.types import CompanyMembership

logger = structlog.get_logger()

CURRENT_COMPANY_KEY = "current_company_id"


class CompanySwitcher:
    """Tracks a user's memberships and which company is active.

    The active company id is client-local state persisted under
    CURRENT_COMPANY_KEY. Switching triggers a full reload so that no
    tenant-scoped state survives into the new company.
    """

    def __init__(
        self,
        user_id: str | None,
        memberships: MembershipRepository,
        state: LocalStateStore,
        notifier: Notifier,
        reloader: Reloader,
    ) -> None:
        self.user_id = user_id
        self.companies: list[CompanyMembership] = []
        self.current_company_id: str | None = None
        self.loading = True
        self._memberships = memberships
        self._state = state
        self._notifier = notifier
        self._reloader = reloader

    @property
    def current_company(self) -> CompanyMembership | None:
        return self._find(self.current_company_id)

    async def load_companies(self, user_id: str | None = None) -> list[CompanyMembership]:
        """Load memberships and settle the active company.

        A persisted company id is kept if it is among the fresh
        memberships; otherwise the first membership in data-source order
        becomes active and is persisted. Failures are reported to the user
        and leave the membership list empty.
        """
        if user_id is not None:
            self.user_id = user_id
        if not self.user_id:
            self.loading = False
            return []

        self.loading = True
        try:
            companies = await self._memberships.get_user_companies(self.user_id)
        except FleetgateError as e:
            logger.error("load_companies_failed", user_id=self.user_id, error=str(e))
            self.companies = []
            self._notifier.notify(
                Notice("Error", "Failed to load your companies", NoticeLevel.ERROR)
            )
            return []
        finally:
            self.loading = False

        self.companies = list(companies)
        if self.companies:
            saved = self._state.get(CURRENT_COMPANY_KEY)
            if self._find(saved) is not None:
                self.current_company_id = saved
            else:
                self.current_company_id = self.companies[0].company_id
                self._state.set(CURRENT_COMPANY_KEY, self.current_company_id)
                logger.debug(
                    "active_company_defaulted",
                    user_id=self.user_id,
                    company_id=self.current_company_id,
                )
        return self.companies

    async def refetch(self) -> list[CompanyMembership]:
        return await self.load_companies()

    async def switch_company(self, company_id: str) -> bool:
        """Make ``company_id`` the active company and reload.

        Returns:
            True if the switch happened. An unknown company or a failed
            role lookup leaves the active company unchanged.
        """
        if not self.user_id:
            return False

        try:
            target = self._require(company_id)
            role = await self._memberships.get_role_for_company(self.user_id, company_id)
        except MembershipNotFound:
            logger.warning("switch_company_not_found", user_id=self.user_id, company_id=company_id)
            self._notifier.notify(Notice("Error", "Company not found", NoticeLevel.ERROR))
            return False
        except FleetgateError as e:
            logger.error(
                "switch_company_failed",
                user_id=self.user_id,
                company_id=company_id,
                error=str(e),
            )
            self._notifier.notify(Notice("Error", "Failed to switch company", NoticeLevel.ERROR))
            return False

        self.current_company_id = company_id
        self._state.set(CURRENT_COMPANY_KEY, company_id)
        logger.info(
            "company_switched",
            user_id=self.user_id,
            company_id=company_id,
            role=role.value if role else None,
        )
        self._notifier.notify(
            Notice(
                "Company Switched",
                f"Now viewing {target.company_name} as {get_role_display_name(role)}",
            )
        )
        self._reloader.reload()
        return True

    def _find(self, company_id: str | None) -> CompanyMembership | None:
        if company_id is None:
            return None
        return next((c for c in self.companies if c.company_id == company_id), None)

    def _require(self, company_id: str) -> CompanyMembership:
        membership = self._find(company_id)
        if membership is None:
            raise MembershipNotFound(company_id)
        return membership
