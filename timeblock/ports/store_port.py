"""Store port — abstract interface for work-unit persistence.

The engine treats the store as a key-addressed interval store. Work units
link to tasks/projects by id only; resolving those ids is the caller's job.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from timeblock.core.errors import UpstreamUnavailableError

if TYPE_CHECKING:
    from timeblock.data.models import WorkUnit


class StoreError(UpstreamUnavailableError):
    """Raised when the persistence backend fails."""


class WorkUnitStore(Protocol):
    """Abstract work-unit storage used by core modules."""

    async def fetch_range(self, start: datetime, end: datetime) -> list[WorkUnit]:
        """Work units whose start falls in [start, end), ordered by start."""
        ...

    async def fetch_by_id(self, unit_id: str) -> WorkUnit | None: ...

    async def save(self, unit: WorkUnit) -> None: ...

    async def update(self, unit: WorkUnit) -> None: ...

    async def delete(self, unit_id: str) -> bool: ...
