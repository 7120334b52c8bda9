"""Tests for sign-in and sign-up form validation."""

import pytest
from fleetgate.core.auth.forms import SignInForm, SignUpForm, validate_form
from fleetgate.core.exceptions import ValidationError
from fleetgate.core.rbac.types import Role
from fleetgate.core.tenancy.types import SubscriptionType


def test_sign_up_defaults_to_trial() -> None:
    """Should default the subscription to trial."""
    form = validate_form(
        SignUpForm,
        email="admin@acme.com",
        password="s3cret-pass",  # pragma: allowlist secret
        full_name="Ada Admin",
        role="company_admin",
        company_name="Acme",
    )

    assert isinstance(form, SignUpForm)
    assert form.role is Role.COMPANY_ADMIN
    assert form.subscription_type is SubscriptionType.TRIAL


def test_company_admin_requires_company_name() -> None:
    """Should reject a company admin sign-up without a company."""
    with pytest.raises(ValidationError) as exc_info:
        validate_form(
            SignUpForm,
            email="admin@acme.com",
            password="s3cret-pass",  # pragma: allowlist secret
            full_name="Ada Admin",
            role=Role.COMPANY_ADMIN,
            company_name=None,
        )

    assert "Company name is required" in str(exc_info.value)


def test_driver_needs_no_company() -> None:
    """Should accept a driver without a company name."""
    form = validate_form(
        SignUpForm,
        email="driver@acme.com",
        password="s3cret-pass",  # pragma: allowlist secret
        full_name="Dan Driver",
        role=Role.DRIVER,
    )
    assert isinstance(form, SignUpForm)


@pytest.mark.parametrize(
    ("field", "value"),
    [("email", "not-an-email"), ("password", "short"), ("full_name", "A"), ("role", "owner")],
)
def test_sign_up_field_errors(field: str, value: str) -> None:
    """Should report the offending field."""
    values = {
        "email": "driver@acme.com",
        "password": "s3cret-pass",  # pragma: allowlist secret
        "full_name": "Dan Driver",
        "role": "driver",
    }
    values[field] = value

    with pytest.raises(ValidationError) as exc_info:
        validate_form(SignUpForm, **values)

    assert exc_info.value.field == field


def test_sign_in_password_minimum() -> None:
    """Should require at least six characters."""
    with pytest.raises(ValidationError) as exc_info:
        validate_form(SignInForm, email="driver@acme.com", password="12345")
    assert exc_info.value.field == "password"


def test_returns_requested_form_type() -> None:
    """Should return an instance of the model it was asked to validate."""
    form = validate_form(SignInForm, email="driver@acme.com", password="secret1")

    assert type(form) is SignInForm
    assert form.password == "secret1"
