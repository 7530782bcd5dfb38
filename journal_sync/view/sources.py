"""
Entry sources for the accumulating view.

A source answers "give me this slice of entries matching this filter",
either from the remote API or from the offline store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..models import EntryData, EntryType, OfflineRecord, SyncAction
from ..offline.store import OfflineEntryStore
from ..remote.base import RemoteEntryAPI


@dataclass(frozen=True)
class EntryFilter:
    """Active list filter: an optional type and an optional search query."""

    entry_type: EntryType | None = None
    search_query: str | None = None

    @property
    def query(self) -> str:
        """Search query without surrounding whitespace."""
        return (self.search_query or "").strip()

    @property
    def is_search(self) -> bool:
        """True when a non-blank search query is set."""
        return bool(self.query)


def _slice(entries: list[EntryData], limit: int | None, offset: int) -> list[EntryData]:
    if limit is None:
        return entries[offset:]
    return entries[offset : offset + limit]


class EntrySource(ABC):
    """Abstract source of entries."""

    @abstractmethod
    async def fetch(
        self,
        entry_filter: EntryFilter,
        limit: int | None,
        offset: int,
    ) -> list[EntryData]:
        """Fetch one slice of entries.

        Args:
            entry_filter: Active filter
            limit: Maximum number of entries, or None for all
            offset: Number of matching entries to skip
        """
        ...


class RemoteEntrySource(EntrySource):
    """Reads straight from the remote entry API.

    Listing is paginated by the server. Search results come back in one
    piece and are sliced locally.
    """

    def __init__(self, api: RemoteEntryAPI) -> None:
        self.api = api

    async def fetch(
        self,
        entry_filter: EntryFilter,
        limit: int | None,
        offset: int,
    ) -> list[EntryData]:
        if entry_filter.is_search:
            results = await self.api.search(entry_filter.query, entry_filter.entry_type)
            return _slice(results, limit, offset)
        return await self.api.list(entry_filter.entry_type, limit, offset)


class OfflineEntrySource(EntrySource):
    """Reads from the offline store's merged view.

    Entries with a pending delete are hidden.
    """

    def __init__(self, store: OfflineEntryStore) -> None:
        self.store = store

    async def fetch(
        self,
        entry_filter: EntryFilter,
        limit: int | None,
        offset: int,
    ) -> list[EntryData]:
        records: list[OfflineRecord]
        if entry_filter.is_search:
            records = await self.store.search(entry_filter.query)
            if entry_filter.entry_type is not None:
                records = [r for r in records if r.entry_type == entry_filter.entry_type]
        else:
            records = await self.store.list_by_type(entry_filter.entry_type)

        visible = [
            r.to_entry()
            for r in records
            if not (r.is_pending and r.action == SyncAction.DELETE)
        ]
        return _slice(visible, limit, offset)
