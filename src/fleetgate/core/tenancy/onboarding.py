"""Client-local onboarding flags (product tour, welcome banner)."""

from __future__ import annotations

from fleetgate.core.interfaces import LocalStateStore

TOUR_COMPLETED_KEY = "tour-completed"
WELCOME_DISMISSED_KEY = "welcome-banner-dismissed"


class OnboardingFlags:
    """Read and write the onboarding flags in local state."""

    def __init__(self, state: LocalStateStore) -> None:
        self._state = state

    @property
    def tour_completed(self) -> bool:
        return self._state.get(TOUR_COMPLETED_KEY) == "true"

    def complete_tour(self) -> None:
        self._state.set(TOUR_COMPLETED_KEY, "true")

    def reset_tour(self) -> None:
        self._state.delete(TOUR_COMPLETED_KEY)

    @property
    def welcome_dismissed(self) -> bool:
        return self._state.get(WELCOME_DISMISSED_KEY) == "true"

    def dismiss_welcome(self) -> None:
        self._state.set(WELCOME_DISMISSED_KEY, "true")
