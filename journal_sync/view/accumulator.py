"""
Accumulating paginated entry view.

Builds the de-duplicated, append-only list of entries shown to the user.
Two strategies, chosen once from the platform capability:

- Non-paginating (native platforms): one full fetch per filter change
- Paginating (browsers): fixed-size pages, appended on "load more"

Every fetch is tagged with the filter generation it was issued under;
responses arriving after a filter change are dropped instead of merged.
"""

from __future__ import annotations

import logging

from ..models import EntryData
from ..storage.platform import PlatformProbe
from .sources import EntryFilter, EntrySource

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 30


def _dedupe(entries: list[EntryData]) -> list[EntryData]:
    seen: set[int | str] = set()
    unique: list[EntryData] = []
    for entry in entries:
        if entry.id not in seen:
            seen.add(entry.id)
            unique.append(entry)
    return unique


class AccumulatingView:
    """Stable, de-duplicated list of entries for one active filter.

    Example:
        >>> view = AccumulatingView.for_platform(RemoteEntrySource(api), probe)
        >>> await view.set_filter(EntryFilter(entry_type=EntryType.NOTE))
        >>> while view.has_more:
        ...     await view.load_more()
        >>> len(view.entries)
        72
    """

    def __init__(
        self,
        source: EntrySource,
        paginate: bool = True,
        page_size: int = DEFAULT_PAGE_SIZE,
        entry_filter: EntryFilter | None = None,
    ) -> None:
        """Initialize the view.

        Args:
            source: Where entries come from
            paginate: Use fixed-size pages (False fetches everything at once)
            page_size: Entries per page when paginating
            entry_filter: Initial filter
        """
        if page_size < 1:
            raise ValueError("page_size must be positive")

        self.source = source
        self.paginate = paginate
        self.page_size = page_size

        self._filter = entry_filter or EntryFilter()
        self._generation = 0
        self._entries: list[EntryData] = []
        self._offset = 0
        self._has_more = False
        self._has_loaded_initial = False
        self._in_flight = 0
        self._loading_more = False

    @classmethod
    def for_platform(
        cls,
        source: EntrySource,
        probe: PlatformProbe,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> AccumulatingView:
        """Create a view whose strategy follows the platform capability."""
        return cls(source, paginate=not probe.is_native(), page_size=page_size)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def entries(self) -> list[EntryData]:
        """Accumulated entries, in display order."""
        return list(self._entries)

    @property
    def entry_filter(self) -> EntryFilter:
        """Active filter."""
        return self._filter

    @property
    def generation(self) -> int:
        """Counter bumped on every reset; tags in-flight fetches."""
        return self._generation

    @property
    def offset(self) -> int:
        """Offset of the last applied page."""
        return self._offset

    @property
    def has_more(self) -> bool:
        """Whether another page may exist."""
        return self._has_more

    @property
    def has_loaded_initial(self) -> bool:
        """Whether the first page for the active filter has arrived."""
        return self._has_loaded_initial

    @property
    def is_loading(self) -> bool:
        """Whether any fetch is in flight."""
        return self._in_flight > 0

    # =========================================================================
    # Operations
    # =========================================================================

    def reset(self, entry_filter: EntryFilter | None = None) -> None:
        """Clear accumulated state, optionally switching filter.

        Fetches issued before the reset are discarded on arrival.
        """
        if entry_filter is not None:
            self._filter = entry_filter
        self._generation += 1
        self._entries = []
        self._offset = 0
        self._has_more = False
        self._has_loaded_initial = False
        self._loading_more = False

    async def set_filter(self, entry_filter: EntryFilter) -> list[EntryData]:
        """Switch filter, reset, and fetch the first page."""
        self.reset(entry_filter)
        logger.debug(f"View filter changed: {entry_filter}")
        return await self.load_initial()

    async def load_initial(self) -> list[EntryData]:
        """Fetch the first page (or everything, when not paginating)."""
        return await self._fetch(0)

    async def refresh(self) -> list[EntryData]:
        """Drop accumulated entries and reload under the same filter."""
        self.reset()
        return await self.load_initial()

    async def load_more(self) -> list[EntryData]:
        """Fetch and append the next page.

        Returns:
            The fetched page, or [] when there is nothing more to load,
            another page is already loading, or the response went stale
        """
        if not self.paginate or not self._has_more or self._loading_more:
            return []

        self._loading_more = True
        generation = self._generation
        try:
            return await self._fetch(self._offset + self.page_size)
        finally:
            if generation == self._generation:
                self._loading_more = False

    async def _fetch(self, offset: int) -> list[EntryData]:
        generation = self._generation
        entry_filter = self._filter

        self._in_flight += 1
        try:
            if self.paginate:
                page = await self.source.fetch(entry_filter, self.page_size, offset)
            else:
                page = await self.source.fetch(entry_filter, None, 0)
        finally:
            self._in_flight -= 1

        if generation != self._generation:
            logger.debug(f"Discarding stale page for {entry_filter} at offset {offset}")
            return []

        self._apply(page, offset)
        return page

    def _apply(self, page: list[EntryData], offset: int) -> None:
        if not self.paginate:
            self._entries = _dedupe(page)
            self._has_more = False
        elif offset == 0:
            self._entries = _dedupe(page)
            self._has_more = len(page) == self.page_size
        else:
            known = {entry.id for entry in self._entries}
            self._entries.extend(e for e in _dedupe(page) if e.id not in known)
            self._has_more = len(page) == self.page_size

        self._offset = offset
        self._has_loaded_initial = True
