"""Tenancy domain types."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from fleetgate.core.rbac.types import Role

TRIAL_PERIOD_DAYS = 25


class SubscriptionType(str, Enum):
    """Company subscription types."""

    TRIAL = "trial"
    FULL = "full"


@dataclass(frozen=True)
class Company:
    """A tenant company.

    Trial dates are set iff the subscription type is trial. They are
    fixed at creation and not re-validated afterwards.
    """

    id: str
    name: str
    subscription_type: SubscriptionType
    trial_start_date: datetime | None
    trial_end_date: datetime | None
    is_active: bool = True
    created_at: datetime | None = None

    @property
    def is_trial(self) -> bool:
        """Is this company on a trial subscription?"""
        return self.subscription_type is SubscriptionType.TRIAL

    def trial_days_remaining(self, now: datetime) -> int | None:
        """Whole days left in the trial, rounded up; None when not on trial."""
        if not self.is_trial or self.trial_end_date is None:
            return None
        remaining = (self.trial_end_date - now).total_seconds() / 86400
        return max(0, math.ceil(remaining))


@dataclass(frozen=True)
class NewCompany:
    """Fields for creating a company."""

    name: str
    subscription_type: SubscriptionType
    trial_start_date: datetime | None
    trial_end_date: datetime | None
    is_active: bool = True


@dataclass(frozen=True)
class CompanyMembership:
    """A user's membership in a company with their role there."""

    user_id: str
    company_id: str
    company_name: str
    role: Role | None
    subscription_type: SubscriptionType | None = None


def new_company_fields(
    name: str,
    subscription_type: SubscriptionType | str,
    now: datetime,
) -> NewCompany:
    """Build the creation fields for a company.

    A trial starts at ``now`` and ends exactly TRIAL_PERIOD_DAYS later.
    """
    subscription = SubscriptionType(subscription_type)
    if subscription is SubscriptionType.TRIAL:
        return NewCompany(
            name=name,
            subscription_type=subscription,
            trial_start_date=now,
            trial_end_date=now + timedelta(days=TRIAL_PERIOD_DAYS),
        )
    return NewCompany(
        name=name,
        subscription_type=subscription,
        trial_start_date=None,
        trial_end_date=None,
    )
