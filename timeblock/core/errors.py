"""Scheduling error taxonomy.

Every failure the engine raises derives from SchedulingError so callers can
catch the whole family at once, or pick out the recoverable kinds
(NoCapacityError, ConflictError) and offer the user another time.
"""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""


class InvalidIntervalError(SchedulingError, ValueError):
    """Raised when end <= start, or a non-positive duration is requested."""


class NoCapacityError(SchedulingError):
    """Raised when no free interval of the requested duration exists."""


class ConflictError(SchedulingError):
    """Raised when a proposed interval overlaps an existing commitment."""

    def __init__(self, message: str, conflicts: list | None = None) -> None:
        super().__init__(message)
        self.conflicts = conflicts or []


class NotReschedulableError(SchedulingError):
    """Raised when a work unit cannot be moved (completed or locked)."""


class WorkUnitNotFoundError(SchedulingError):
    """Raised when updating or completing a work unit the store doesn't know."""


class UpstreamUnavailableError(SchedulingError):
    """Raised when the persistence or external-calendar collaborator fails."""


class InvalidLinkError(SchedulingError, ValueError):
    """Raised when a work unit is linked to both a task and a project."""
