"""Tests for onboarding flags."""

from fleetgate.adapters.state import InMemoryStateStore
from fleetgate.core.tenancy.onboarding import (
    TOUR_COMPLETED_KEY,
    WELCOME_DISMISSED_KEY,
    OnboardingFlags,
)


def test_flags_default_off(local_state: InMemoryStateStore) -> None:
    """Should start with the tour pending and the banner shown."""
    flags = OnboardingFlags(local_state)

    assert flags.tour_completed is False
    assert flags.welcome_dismissed is False


def test_complete_and_reset_tour(local_state: InMemoryStateStore) -> None:
    """Should persist tour completion and allow restarting it."""
    flags = OnboardingFlags(local_state)

    flags.complete_tour()
    assert local_state.get(TOUR_COMPLETED_KEY) == "true"
    assert flags.tour_completed

    flags.reset_tour()
    assert local_state.get(TOUR_COMPLETED_KEY) is None
    assert not flags.tour_completed


def test_dismiss_welcome(local_state: InMemoryStateStore) -> None:
    """Should remember the banner was dismissed."""
    OnboardingFlags(local_state).dismiss_welcome()

    assert local_state.get(WELCOME_DISMISSED_KEY) == "true"
    assert OnboardingFlags(local_state).welcome_dismissed
