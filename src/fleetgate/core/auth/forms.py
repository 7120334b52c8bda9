"""Sign-in and sign-up form validation."""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, EmailStr, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from fleetgate.core.exceptions import ValidationError
from fleetgate.core.rbac.types import Role
from fleetgate.core.tenancy.types import SubscriptionType

FormT = TypeVar("FormT", bound=BaseModel)


class SignUpForm(BaseModel):
    """Sign-up form values."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2)
    role: Role
    company_name: str | None = Field(None, min_length=2)
    subscription_type: SubscriptionType = SubscriptionType.TRIAL

    @model_validator(mode="after")
    def company_name_required_for_company_admin(self) -> SignUpForm:
        """Company administrators must name the company they create."""
        if self.role is Role.COMPANY_ADMIN and not self.company_name:
            raise ValueError("Company name is required for company administrators")
        return self


class SignInForm(BaseModel):
    """Sign-in form values."""

    email: EmailStr
    password: str = Field(..., min_length=6)


def validate_form(model: type[FormT], **values: object) -> FormT:
    """Validate form values, translating the first pydantic error.

    Raises:
        ValidationError: With the offending field and a readable message.
    """
    try:
        return model(**values)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "form"
        raise ValidationError(field, first["msg"]) from None
