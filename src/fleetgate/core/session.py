"""Session store - who is signed in, and how sure we are about it.

One store exists per client session. It is created when the client
starts, handed to whatever needs it, and reset to unauthenticated
defaults on sign-out. Only the auth service writes to it; everything
else reads snapshots.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, replace

import structlog

from fleetgate.core.auth.types import Identity, Profile

logger = structlog.get_logger()


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of the session.

    While ``loading`` is true, identity and profile may be stale or
    missing and no access decision should be finalized from them.
    """

    identity: Identity | None = None
    profile: Profile | None = None
    loading: bool = True
    initialized: bool = False

    @property
    def is_authenticated(self) -> bool:
        """Is there an identity?"""
        return self.identity is not None

    @property
    def profile_missing(self) -> bool:
        """Identity resolved but no profile to go with it."""
        return self.identity is not None and self.profile is None and not self.loading


@dataclass(frozen=True)
class FetchTicket:
    """Stamp for one profile fetch.

    A response is only applied if its ticket is still the newest one and
    was issued for the identity currently in the store.
    """

    request_id: int
    identity_id: str


Listener = Callable[[SessionState], None]


class SessionStore:
    """Holds the current session state and notifies listeners on change."""

    def __init__(self) -> None:
        self._state = SessionState()
        self._listeners: list[Listener] = []
        self._request_ids = itertools.count(1)
        self._latest_request_id = 0

    def read(self) -> SessionState:
        """Return the current snapshot."""
        return self._state

    def set_loading(self, loading: bool) -> None:
        self._update(loading=loading)

    def set_identity(self, identity: Identity | None) -> None:
        # A different identity invalidates any profile fetch still in flight.
        current = self._state.identity
        if current is None or identity is None or current.id != identity.id:
            self._latest_request_id = next(self._request_ids)
            self._update(identity=identity, profile=None)
            return
        self._update(identity=identity)

    def set_profile(self, profile: Profile | None) -> None:
        self._update(profile=profile)

    def mark_initialized(self) -> None:
        """Record that the first load attempt resolved. Never reverts."""
        if not self._state.initialized:
            self._update(initialized=True)

    def reset(self) -> None:
        """Tear down to unauthenticated defaults, keeping ``initialized``."""
        self._latest_request_id = next(self._request_ids)
        self._update(identity=None, profile=None, loading=False)

    def begin_fetch(self, identity_id: str) -> FetchTicket:
        """Issue a ticket for a profile fetch for ``identity_id``."""
        self._latest_request_id = next(self._request_ids)
        return FetchTicket(request_id=self._latest_request_id, identity_id=identity_id)

    def is_current(self, ticket: FetchTicket) -> bool:
        """Is this ticket the newest one, for the identity in the store?"""
        identity = self._state.identity
        return (
            ticket.request_id == self._latest_request_id
            and identity is not None
            and identity.id == ticket.identity_id
        )

    def apply_profile(self, ticket: FetchTicket, profile: Profile | None) -> bool:
        """Apply a fetched profile if the ticket is still current.

        Returns:
            True if applied, False if the response was stale and discarded.
        """
        if not self.is_current(ticket):
            logger.warning(
                "stale_profile_response_discarded",
                request_id=ticket.request_id,
                identity_id=ticket.identity_id,
            )
            return False
        self.set_profile(profile)
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for new snapshots.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes: object) -> None:
        new_state = replace(self._state, **changes)  # type: ignore[arg-type]
        if new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
