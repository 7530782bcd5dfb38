"""
Shared test configuration and fixtures.

Provides key-value backends on temporary directories, an offline store
driven by a controllable clock, and an in-memory remote entry API with
failure injection.
"""

from __future__ import annotations

import tempfile
from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from journal_sync.models import EntryData, EntryType, NewEntry
from journal_sync.offline import OfflineEntryStore
from journal_sync.remote import RemoteEntryAPI
from journal_sync.storage import BrowserStorageBackend, PreferencesBackend


class FakeClock:
    """Deterministic epoch-millisecond clock.

    Each call returns the current value and then advances by one, so
    consecutive writes get strictly increasing timestamps unless a test
    sets the value explicitly.
    """

    def __init__(self, start: int = 1_000):
        self.value = start

    def __call__(self) -> int:
        current = self.value
        self.value += 1
        return current


class InMemoryEntryAPI(RemoteEntryAPI):
    """
    In-memory remote entry API for testing without a server.

    Tests can make create/update/delete fail for specific titles or
    server ids via the ``fail_titles`` and ``fail_ids`` sets.
    """

    def __init__(self) -> None:
        self.entries: dict[int, EntryData] = {}
        self.next_id = 1
        self.calls: list[tuple[str, Any]] = []
        self.fail_titles: set[str] = set()
        self.fail_ids: set[int] = set()

    async def create(self, entry: EntryData) -> int:
        self.calls.append(("create", entry.title))
        if entry.title in self.fail_titles:
            raise ConnectionError(f"create failed for {entry.title}")
        server_id = self.next_id
        self.next_id += 1
        self.entries[server_id] = EntryData(
            id=server_id,
            title=entry.title,
            content=entry.content,
            type=entry.type,
            date=entry.date,
            structured_data=entry.structured_data,
        )
        return server_id

    async def update(self, entry_id: int, fields: dict[str, Any]) -> None:
        self.calls.append(("update", entry_id))
        if entry_id in self.fail_ids:
            raise ConnectionError(f"update failed for {entry_id}")
        entry = self.entries[entry_id]
        entry.title = fields.get("title", entry.title)
        entry.content = fields.get("content", entry.content)

    async def delete(self, entry_id: int) -> None:
        self.calls.append(("delete", entry_id))
        if entry_id in self.fail_ids:
            raise ConnectionError(f"delete failed for {entry_id}")
        self.entries.pop(entry_id, None)

    async def list(
        self,
        entry_type: EntryType | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[EntryData]:
        self.calls.append(("list", (entry_type, limit, offset)))
        entries = [e for e in self.entries.values() if entry_type in (None, e.type)]
        entries.sort(key=lambda e: e.id, reverse=True)
        end = None if limit is None else offset + limit
        return entries[offset:end]

    async def search(self, query: str, entry_type: EntryType | None = None) -> list[EntryData]:
        self.calls.append(("search", query))
        needle = query.lower()
        return [
            e
            for e in self.entries.values()
            if entry_type in (None, e.type)
            and (needle in e.title.lower() or needle in e.content.lower())
        ]


def make_entry(
    title: str = "Morning pages",
    content: str = "Wrote three pages before breakfast",
    entry_type: EntryType = EntryType.JOURNAL,
) -> NewEntry:
    """Create a new entry for tests."""
    return NewEntry(
        title=title,
        content=content,
        entry_type=entry_type,
        occurs_on=datetime(2024, 5, 1, 8, 30, tzinfo=UTC),
        structured_data={"mood": "calm"},
    )


def make_server_entry(
    entry_id: int,
    title: str | None = None,
    entry_type: EntryType = EntryType.NOTE,
) -> EntryData:
    """Create a server-side entry for tests."""
    return EntryData(
        id=entry_id,
        title=title or f"Server entry {entry_id}",
        content=f"Content of entry {entry_id}",
        type=entry_type,
        date=datetime(2024, 4, 1, tzinfo=UTC),
        owner_id="user-1",
    )


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def browser_backend(temp_dir: Path) -> BrowserStorageBackend:
    """Browser-scoped backend on a temporary directory."""
    return BrowserStorageBackend(temp_dir / "local-storage")


@pytest.fixture
async def preferences_backend(temp_dir: Path) -> AsyncIterator[PreferencesBackend]:
    """Native preference backend on a temporary database."""
    backend = PreferencesBackend(temp_dir / "preferences.db")
    yield backend
    await backend.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(browser_backend: BrowserStorageBackend, clock: FakeClock) -> OfflineEntryStore:
    """Offline store over the browser-scoped backend."""
    return OfflineEntryStore(browser_backend, clock=clock)


@pytest.fixture
def remote() -> InMemoryEntryAPI:
    return InMemoryEntryAPI()
