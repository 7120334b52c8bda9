"""Tenancy domain - companies, memberships and the active company."""

from fleetgate.core.tenancy.onboarding import OnboardingFlags
from fleetgate.core.tenancy.switcher import CURRENT_COMPANY_KEY, CompanySwitcher
from fleetgate.core.tenancy.types import (
    TRIAL_PERIOD_DAYS,
    Company,
    CompanyMembership,
    NewCompany,
    SubscriptionType,
    new_company_fields,
)

__all__ = [
    "CURRENT_COMPANY_KEY",
    "Company",
    "CompanyMembership",
    "CompanySwitcher",
    "NewCompany",
    "OnboardingFlags",
    "SubscriptionType",
    "TRIAL_PERIOD_DAYS",
    "new_company_fields",
]
