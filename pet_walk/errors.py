"""Exceptions raised by the walk tracker."""

from __future__ import annotations

from pet_walk.models import TrackState


class TrackerError(Exception):
    """Base class for walk tracker errors."""


class UnsupportedCapabilityError(TrackerError):
    """The environment cannot provide location updates."""


class InvalidStateError(TrackerError):
    """An operation was invoked in a state that does not permit it."""

    def __init__(self, operation: str, state: TrackState) -> None:
        super().__init__(f"cannot {operation}() while {state.value}")
        self.operation = operation
        self.state = state


class LocationFixError(TrackerError):
    """A position could not be obtained this cycle. Tracking continues."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"location unavailable: {reason}")
        self.reason = reason
