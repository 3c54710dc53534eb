"""State machine for one pass through the public review form."""

import enum
from typing import Optional

from app.services.routing import RoutingDecision


class FunnelState(str, enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS_PUBLIC = "success_public"
    SUCCESS_PRIVATE = "success_private"
    REDIRECTING_EXTERNAL = "redirecting_external"
    REDIRECTING_INTERNAL = "redirecting_internal"
    TERMINAL = "terminal"


class InvalidTransition(Exception):
    """Raised when the funnel is driven out of order."""

    def __init__(self, current: FunnelState, target: FunnelState):
        self.message = f"Cannot move review funnel from {current.value} to {target.value}"
        super().__init__(self.message)


_TRANSITIONS: dict[FunnelState, set[FunnelState]] = {
    FunnelState.IDLE: {FunnelState.SUBMITTING},
    FunnelState.SUBMITTING: {
        FunnelState.IDLE,
        FunnelState.SUCCESS_PUBLIC,
        FunnelState.SUCCESS_PRIVATE,
    },
    FunnelState.SUCCESS_PUBLIC: {FunnelState.REDIRECTING_EXTERNAL, FunnelState.IDLE},
    FunnelState.SUCCESS_PRIVATE: {FunnelState.REDIRECTING_INTERNAL},
    FunnelState.REDIRECTING_EXTERNAL: {FunnelState.TERMINAL},
    FunnelState.REDIRECTING_INTERNAL: {FunnelState.TERMINAL},
    FunnelState.TERMINAL: set(),
}


class ReviewFunnel:
    """Tracks submit -> success -> redirect for one form submission.

    Any failure returns the funnel to IDLE with an error message and clears
    the navigation target, so no redirect happens on error.
    """

    def __init__(self) -> None:
        self.state = FunnelState.IDLE
        self.error: Optional[str] = None
        self.decision: Optional[RoutingDecision] = None

    def _move(self, target: FunnelState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        self.state = target

    def submit(self) -> None:
        self._move(FunnelState.SUBMITTING)
        self.error = None
        self.decision = None

    def succeed(self, decision: RoutingDecision) -> None:
        """Record a persisted review and its routing decision."""
        target = (
            FunnelState.SUCCESS_PUBLIC
            if decision.destination == "external"
            else FunnelState.SUCCESS_PRIVATE
        )
        self._move(target)
        self.decision = decision

    def fail(self, message: str) -> None:
        """Return to IDLE with an error; valid while submitting or before redirecting."""
        self._move(FunnelState.IDLE)
        self.error = message
        self.decision = None

    def redirect(self) -> str:
        """Enter the redirecting state and return the navigation target."""
        if self.decision is None:
            raise InvalidTransition(self.state, FunnelState.TERMINAL)
        target = (
            FunnelState.REDIRECTING_EXTERNAL
            if self.state == FunnelState.SUCCESS_PUBLIC
            else FunnelState.REDIRECTING_INTERNAL
        )
        self._move(target)
        return self.decision.url

    def finish(self) -> None:
        self._move(FunnelState.TERMINAL)

    @property
    def navigation_target(self) -> Optional[str]:
        """URL to navigate to, only once redirecting."""
        if self.state in (
            FunnelState.REDIRECTING_EXTERNAL,
            FunnelState.REDIRECTING_INTERNAL,
            FunnelState.TERMINAL,
        ) and self.decision is not None:
            return self.decision.url
        return None
