"""
Remote entry API contract.

The reconciler and the paginated view talk to the server only through
this interface, so tests and alternative transports can plug in freely.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..models import EntryData, EntryType


class RemoteEntryAPI(ABC):
    """Abstract client for the canonical entry resource."""

    @abstractmethod
    async def create(self, entry: EntryData) -> int:
        """Create an entry.

        Args:
            entry: Entry content (the id is ignored)

        Returns:
            Server id of the new entry
        """
        ...

    @abstractmethod
    async def update(self, entry_id: int, fields: dict[str, Any]) -> None:
        """Update an entry with API-shaped fields."""
        ...

    @abstractmethod
    async def delete(self, entry_id: int) -> None:
        """Delete an entry."""
        ...

    @abstractmethod
    async def list(
        self,
        entry_type: EntryType | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[EntryData]:
        """List entries, newest first.

        Args:
            entry_type: Optional type filter
            limit: Page size, or None for the server's maximum
            offset: Number of entries to skip
        """
        ...

    @abstractmethod
    async def search(
        self,
        query: str,
        entry_type: EntryType | None = None,
    ) -> list[EntryData]:
        """Full-text search over entries."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        pass
