"""
Tests for the accumulating entry view and its entry sources.
"""

import asyncio

import pytest

from journal_sync.models import EntryData, EntryType
from journal_sync.storage import StaticPlatformProbe
from journal_sync.view import (
    AccumulatingView,
    EntryFilter,
    EntrySource,
    OfflineEntrySource,
    RemoteEntrySource,
)

from .conftest import make_entry, make_server_entry


class ListSource(EntrySource):
    """Entry source over a plain list, newest first."""

    def __init__(self, entries: list[EntryData]):
        self.entries = entries
        self.calls: list[tuple[EntryFilter, int | None, int]] = []
        self.gates: dict[EntryFilter, asyncio.Event] = {}

    async def fetch(self, entry_filter, limit, offset):
        self.calls.append((entry_filter, limit, offset))
        gate = self.gates.get(entry_filter)
        if gate is not None:
            await gate.wait()
        matching = [e for e in self.entries if entry_filter.entry_type in (None, e.type)]
        if limit is None:
            return matching[offset:]
        return matching[offset : offset + limit]


def ids(view: AccumulatingView) -> list:
    return [entry.id for entry in view.entries]


class TestPagination:
    """Tests for paginated entry views."""

    @pytest.mark.asyncio
    async def test_pages_accumulate_until_short_page(self):
        """Pages accumulate until a short page ends the list."""
        source = ListSource([make_server_entry(i) for i in (3, 2, 1)])
        view = AccumulatingView(source, page_size=2)

        await view.load_initial()
        assert ids(view) == [3, 2]
        assert view.has_more is True
        assert view.has_loaded_initial is True

        await view.load_more()
        assert ids(view) == [3, 2, 1]
        assert view.has_more is False
        assert view.offset == 2

        assert await view.load_more() == []
        assert len(source.calls) == 2

    @pytest.mark.asyncio
    async def test_full_last_page_still_reports_more(self):
        """A full final page still reports more available."""
        source = ListSource([make_server_entry(i) for i in (4, 3, 2, 1)])
        view = AccumulatingView(source, page_size=2)

        await view.load_initial()
        await view.load_more()

        assert view.has_more is True
        assert await view.load_more() == []
        assert view.has_more is False
        assert ids(view) == [4, 3, 2, 1]

    @pytest.mark.asyncio
    async def test_redelivered_entries_are_not_duplicated(self):
        """Entries delivered again on a later page appear once."""
        source = ListSource([make_server_entry(i) for i in (5, 4, 3, 2, 1)])
        view = AccumulatingView(source, page_size=2)
        await view.load_initial()

        # A new entry shifts every later page by one
        source.entries.insert(0, make_server_entry(6))
        await view.load_more()

        assert ids(view) == [5, 4, 3]

    @pytest.mark.asyncio
    async def test_duplicates_within_a_page_are_dropped(self):
        """Duplicate ids within one page appear once."""
        source = ListSource([make_server_entry(1), make_server_entry(1), make_server_entry(2)])
        view = AccumulatingView(source, page_size=3)

        await view.load_initial()

        assert ids(view) == [1, 2]

    @pytest.mark.asyncio
    async def test_refresh_replaces_entries(self):
        """Refresh starts the list over."""
        source = ListSource([make_server_entry(i) for i in (3, 2, 1)])
        view = AccumulatingView(source, page_size=2)
        await view.load_initial()
        await view.load_more()

        source.entries = [make_server_entry(9)]
        await view.refresh()

        assert ids(view) == [9]
        assert view.offset == 0
        assert view.has_more is False

    @pytest.mark.asyncio
    async def test_load_more_before_initial_load_does_nothing(self):
        """Load more before the first load is ignored."""
        source = ListSource([make_server_entry(1)])
        view = AccumulatingView(source, page_size=2)

        assert await view.load_more() == []
        assert source.calls == []

    def test_page_size_must_be_positive(self):
        """Zero page size raises ValueError."""
        with pytest.raises(ValueError):
            AccumulatingView(ListSource([]), page_size=0)


class TestFilters:
    """Tests for filter changes and stale responses."""

    @pytest.mark.asyncio
    async def test_filter_change_resets_list(self):
        """Changing the filter reloads from the first page."""
        source = ListSource(
            [
                make_server_entry(3, entry_type=EntryType.NOTE),
                make_server_entry(2, entry_type=EntryType.PLACE),
                make_server_entry(1, entry_type=EntryType.NOTE),
            ]
        )
        view = AccumulatingView(source, page_size=30)
        await view.load_initial()
        generation = view.generation

        await view.set_filter(EntryFilter(entry_type=EntryType.PLACE))

        assert ids(view) == [2]
        assert view.generation == generation + 1
        assert view.entry_filter.entry_type == EntryType.PLACE

    @pytest.mark.asyncio
    async def test_stale_response_is_discarded(self):
        """Response for an old filter is discarded."""
        source = ListSource(
            [
                make_server_entry(2, entry_type=EntryType.NOTE),
                make_server_entry(1, entry_type=EntryType.PERSON),
            ]
        )
        old_filter = EntryFilter(entry_type=EntryType.NOTE)
        new_filter = EntryFilter(entry_type=EntryType.PERSON)
        source.gates[old_filter] = asyncio.Event()
        view = AccumulatingView(source, page_size=30)

        stale = asyncio.create_task(view.set_filter(old_filter))
        await asyncio.sleep(0)
        assert view.is_loading is True

        await view.set_filter(new_filter)
        source.gates[old_filter].set()

        assert await stale == []
        assert ids(view) == [1]
        assert view.is_loading is False

    @pytest.mark.asyncio
    async def test_concurrent_load_more_is_ignored(self):
        """Load more while loading is ignored."""
        source = ListSource([make_server_entry(i) for i in (4, 3, 2, 1)])
        view = AccumulatingView(source, page_size=2)
        await view.load_initial()
        source.gates[EntryFilter()] = asyncio.Event()

        first = asyncio.create_task(view.load_more())
        await asyncio.sleep(0)
        second = await view.load_more()
        source.gates[EntryFilter()].set()
        await first

        assert second == []
        assert ids(view) == [4, 3, 2, 1]

    def test_entry_filter_query(self):
        """Search query is stripped and a blank one is no search."""
        assert EntryFilter(search_query="  river ").query == "river"
        assert EntryFilter(search_query="   ").is_search is False
        assert EntryFilter().is_search is False


class TestNonPaginating:
    """Tests for views that load everything at once."""

    @pytest.mark.asyncio
    async def test_fetches_everything_at_once(self):
        """Whole listing arrives in one fetch."""
        source = ListSource([make_server_entry(i) for i in range(40, 0, -1)])
        view = AccumulatingView(source, paginate=False, page_size=30)

        await view.load_initial()

        assert len(view.entries) == 40
        assert view.has_more is False
        assert source.calls == [(EntryFilter(), None, 0)]
        assert await view.load_more() == []

    def test_for_platform(self):
        """View kind follows the platform."""
        source = ListSource([])

        assert AccumulatingView.for_platform(source, StaticPlatformProbe(True)).paginate is False
        assert AccumulatingView.for_platform(source, StaticPlatformProbe(False)).paginate is True


class TestRemoteEntrySource:
    """Tests for the remote entry source."""

    @pytest.mark.asyncio
    async def test_listing_is_delegated(self, remote):
        """Listing goes straight to the remote API."""
        for i in (1, 2, 3):
            remote.entries[i] = make_server_entry(i)
        source = RemoteEntrySource(remote)

        page = await source.fetch(EntryFilter(entry_type=EntryType.NOTE), 2, 0)

        assert [e.id for e in page] == [3, 2]
        assert remote.calls == [("list", (EntryType.NOTE, 2, 0))]

    @pytest.mark.asyncio
    async def test_search_results_are_sliced(self, remote):
        """Search results are sliced to the requested page."""
        for i in (1, 2, 3):
            remote.entries[i] = make_server_entry(i, title=f"River {i}")
        source = RemoteEntrySource(remote)

        page = await source.fetch(EntryFilter(search_query=" river "), 2, 2)

        assert [e.id for e in page] == [3]
        assert remote.calls == [("search", "river")]


class TestOfflineEntrySource:
    """Tests for the offline entry source."""

    @pytest.mark.asyncio
    async def test_merged_view_without_pending_deletes(self, store):
        """Merged view hides entries pending deletion."""
        await store.cache_server_snapshot([make_server_entry(1), make_server_entry(2)])
        await store.stage_delete(2)
        temp_id = await store.create_local(make_entry(title="Local only"))
        source = OfflineEntrySource(store)

        page = await source.fetch(EntryFilter(), None, 0)

        assert sorted(str(e.id) for e in page) == sorted(["1", temp_id])

    @pytest.mark.asyncio
    async def test_search_with_type(self, store):
        """Search is narrowed by entry type."""
        await store.create_local(make_entry(title="River journal", entry_type=EntryType.JOURNAL))
        await store.create_local(make_entry(title="River place", entry_type=EntryType.PLACE))
        source = OfflineEntrySource(store)

        page = await source.fetch(
            EntryFilter(entry_type=EntryType.PLACE, search_query="river"), 30, 0
        )

        assert [e.title for e in page] == ["River place"]

    @pytest.mark.asyncio
    async def test_paginated_view_over_store(self, store):
        """Paginated view pages through the store."""
        for i in range(5):
            await store.create_local(make_entry(title=f"entry {i}"))
        view = AccumulatingView(OfflineEntrySource(store), page_size=2)

        await view.load_initial()
        while view.has_more:
            await view.load_more()

        assert [e.title for e in view.entries] == [f"entry {i}" for i in range(4, -1, -1)]
