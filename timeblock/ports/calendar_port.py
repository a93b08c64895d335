"""Calendar port — abstract interface for the external calendar collaborator.

Core modules depend on this protocol, never on a specific provider. The
engine only reads from it: external events are busy time, never rewritten.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Protocol

from timeblock.core.errors import UpstreamUnavailableError

if TYPE_CHECKING:
    from timeblock.data.models import BusyInterval


class CalendarError(UpstreamUnavailableError):
    """Raised when any calendar provider operation fails."""


class CalendarPort(Protocol):
    """Abstract read-only calendar interface used by core modules."""

    async def get_busy_intervals(self, target_date: date) -> list[BusyInterval]: ...
