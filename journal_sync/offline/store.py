"""
Offline entry store.

Owns the local record lifecycle on top of a key-value backend:
- Unsynced partition: pending local mutations, keyed by temporary id
- Cached partition: last known server state, keyed by server id
- Reserved keys: sync queue marker and last sync timestamp

Reads merge both partitions into one view. Writes never touch the
network.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from ..exceptions import RecordDecodeError
from ..id_utils import (
    CACHED_ENTRY_PREFIX,
    LAST_SYNC_KEY,
    OFFLINE_ENTRY_PREFIX,
    SYNC_QUEUE_KEY,
    cached_key,
    new_temp_id,
    now_ms,
    offline_key,
)
from ..models import EntryData, EntryType, NewEntry, OfflineRecord, StoreStats, SyncAction
from ..storage.base import KeyValueBackend
from .partition import KeyedPartition

logger = logging.getLogger(__name__)


def merge_partitions(
    local: list[OfflineRecord],
    cached: list[OfflineRecord],
) -> list[OfflineRecord]:
    """Merge unsynced-partition and cached records into one view.

    Records sharing a server id collapse into one: a pending local
    mutation always wins, otherwise the most recent local_timestamp wins.
    """
    merged: list[OfflineRecord] = []
    by_server_id: dict[int, OfflineRecord] = {}

    for record in [*local, *cached]:
        if record.server_id is None:
            merged.append(record)
            continue

        current = by_server_id.get(record.server_id)
        if current is None:
            by_server_id[record.server_id] = record
        elif current.is_pending != record.is_pending:
            if record.is_pending:
                by_server_id[record.server_id] = record
        elif record.local_timestamp > current.local_timestamp:
            by_server_id[record.server_id] = record

    merged.extend(by_server_id.values())
    return merged


class OfflineEntryStore:
    """Local persistence for journal entries.

    Concurrency: every read-modify-write of a single record runs under a
    per-record asyncio lock, and replacing the cached partition runs under
    a cache lock that cached-partition readers also take. Readers therefore
    never observe a half-replaced cache generation within one process.

    Example:
        >>> store = OfflineEntryStore(BackendSelector.from_config(config))
        >>> temp_id = await store.create_local(NewEntry(
        ...     title="Walk", content="Long walk by the river",
        ...     entry_type=EntryType.JOURNAL, occurs_on=datetime.now(UTC),
        ... ))
        >>> [r.temp_id for r in await store.list_unsynced()]
        ['offline_...']
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize the store.

        Args:
            backend: Key-value backend (usually a BackendSelector)
            clock: Source of local timestamps in epoch milliseconds
        """
        self.backend = backend
        self.unsynced = KeyedPartition(backend, OFFLINE_ENTRY_PREFIX, offline_key)
        self.cached = KeyedPartition(backend, CACHED_ENTRY_PREFIX, cached_key)
        self._clock = clock
        # Held weakly: a lock lives only while someone holds or awaits it
        self._record_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._cache_lock = asyncio.Lock()

    def _lock_for(self, temp_id: str) -> asyncio.Lock:
        lock = self._record_locks.get(temp_id)
        if lock is None:
            lock = asyncio.Lock()
            self._record_locks[temp_id] = lock
        return lock

    async def _read_local(self, temp_id: str) -> OfflineRecord | None:
        try:
            return await self.unsynced.get(temp_id)
        except RecordDecodeError as e:
            logger.warning(f"Ignoring malformed record {e.key}: {e.reason}")
            return None

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_local(self, entry: NewEntry) -> str:
        """Persist a new entry as a pending create.

        Args:
            entry: Entry content without identity

        Returns:
            The temporary id assigned to the entry
        """
        timestamp = self._clock()
        temp_id = new_temp_id(timestamp)
        while await self.backend.get(self.unsynced.key_for(temp_id)) is not None:
            temp_id = new_temp_id(timestamp)

        record = OfflineRecord.from_new_entry(temp_id, entry, timestamp)
        await self.unsynced.put(temp_id, record)
        logger.info(f"Created offline entry: {temp_id}")
        return temp_id

    async def cache_server_snapshot(self, entries: list[EntryData]) -> None:
        """Replace the cached partition with a fresh server listing.

        The previous generation is fully removed before the new one is
        written, and the whole swap holds the cache lock.

        Args:
            entries: Authoritative server entries
        """
        async with self._cache_lock:
            removed = await self.cached.clear()
            timestamp = self._clock()
            for entry in entries:
                record = OfflineRecord.cached(entry, timestamp)
                await self.cached.put(record.server_id, record)

        logger.info(f"Cached {len(entries)} server entries (replaced {removed})")

    async def mark_synced(
        self,
        temp_id: str,
        server_id: int | None = None,
        *,
        if_unchanged_since: int | None = None,
    ) -> bool:
        """Mark a pending record as confirmed by the remote API.

        Missing or already synced records are left untouched, so
        reconciliation can be re-run safely.

        When if_unchanged_since is given and the record was edited after
        that timestamp, the newer edit has not reached the server: the
        server id is still attached (a create becomes an update) but the
        record stays pending for the next run.

        Args:
            temp_id: Temporary id of the record
            server_id: Server id assigned on create, if any
            if_unchanged_since: local_timestamp the replayed mutation had

        Returns:
            True if a record changed state to synced
        """
        async with self._lock_for(temp_id):
            record = await self._read_local(temp_id)
            if record is None or record.synced:
                logger.debug(f"Nothing to mark synced for {temp_id}")
                return False

            if server_id is not None:
                record.server_id = server_id

            if if_unchanged_since is not None and record.local_timestamp != if_unchanged_since:
                if server_id is not None and record.action == SyncAction.CREATE:
                    record.action = SyncAction.UPDATE
                await self.unsynced.put(temp_id, record)
                logger.info(f"Entry {temp_id} changed during sync, keeping it pending")
                return False

            record.synced = True
            await self.unsynced.put(temp_id, record)

        logger.info(f"Marked as synced: {temp_id} -> {server_id or 'same ID'}")
        return True

    async def update_local(self, temp_id: str, fields: dict[str, Any]) -> bool:
        """Apply a local edit to a record.

        The record becomes pending again. A confirmed record turns into a
        pending update; a create that never reached the server stays a
        create. Passing "action" in fields overrides this.

        Args:
            temp_id: Temporary id of the record
            fields: Editable fields to replace

        Returns:
            True if the record exists and was updated

        Raises:
            ValidationError: If fields name a non-editable attribute
        """
        async with self._lock_for(temp_id):
            record = await self._read_local(temp_id)
            if record is None:
                logger.debug(f"Nothing to update for {temp_id}")
                return False

            updated = record.with_changes(fields)
            if "action" not in fields and record.synced:
                updated.action = SyncAction.UPDATE
            updated.synced = False
            updated.local_timestamp = self._clock()
            await self.unsynced.put(temp_id, updated)

        logger.info(f"Updated offline entry: {temp_id} ({updated.action.value})")
        return True

    async def delete_local(self, temp_id: str) -> None:
        """Remove a record from the unsynced partition."""
        async with self._lock_for(temp_id):
            await self.unsynced.remove(temp_id)
        logger.info(f"Deleted offline entry: {temp_id}")

    async def stage_update(self, server_id: int, fields: dict[str, Any]) -> str | None:
        """Queue an edit to a server entry.

        Reuses the local record already tracking the server id, otherwise
        starts a new pending update seeded from the cached copy.

        Returns:
            Temporary id of the pending record, or None if the server id
            is unknown locally
        """
        existing = await self._find_local(server_id)
        if existing is not None:
            await self.update_local(existing.temp_id, fields)
            return existing.temp_id

        return await self._stage_from_cache(server_id, SyncAction.UPDATE, fields)

    async def stage_delete(self, server_id: int) -> str | None:
        """Queue deletion of a server entry.

        Returns:
            Temporary id of the pending record, or None if the server id
            is unknown locally
        """
        existing = await self._find_local(server_id)
        if existing is not None:
            await self.update_local(existing.temp_id, {"action": SyncAction.DELETE})
            return existing.temp_id

        return await self._stage_from_cache(server_id, SyncAction.DELETE, {})

    async def _find_local(self, server_id: int) -> OfflineRecord | None:
        for record in await self.unsynced.all():
            if record.server_id == server_id:
                return record
        return None

    async def _stage_from_cache(
        self,
        server_id: int,
        action: SyncAction,
        fields: dict[str, Any],
    ) -> str | None:
        try:
            cached = await self.cached.get(server_id)
        except RecordDecodeError as e:
            logger.warning(f"Ignoring malformed record {e.key}: {e.reason}")
            cached = None
        if cached is None:
            logger.warning(f"Cannot stage {action.value} for unknown server entry {server_id}")
            return None

        timestamp = self._clock()
        temp_id = new_temp_id(timestamp)
        record = cached.with_changes(fields)
        record.temp_id = temp_id
        record.synced = False
        record.action = action
        record.local_timestamp = timestamp
        await self.unsynced.put(temp_id, record)
        logger.info(f"Staged {action.value} for server entry {server_id}: {temp_id}")
        return temp_id

    async def prune_synced(self) -> int:
        """Drop confirmed records whose server copy is cached.

        Returns:
            Number of records removed
        """
        async with self._cache_lock:
            cached_keys = set(await self.cached.keys())

        removed = 0
        for record in await self.unsynced.all():
            if not record.synced or record.server_id is None:
                continue
            if self.cached.key_for(record.server_id) in cached_keys:
                await self.delete_local(record.temp_id)
                removed += 1
        return removed

    async def clear_all(self) -> int:
        """Wipe both partitions and the reserved keys.

        Only meant for a full local reset such as signing out.

        Returns:
            Number of records removed
        """
        removed = await self.unsynced.clear()
        async with self._cache_lock:
            removed += await self.cached.clear()
        await self.backend.remove(SYNC_QUEUE_KEY)
        await self.backend.remove(LAST_SYNC_KEY)
        self._record_locks.clear()
        logger.info("Cleared all offline data")
        return removed

    async def touch_last_sync(self, when: datetime | None = None) -> None:
        """Record the time of the last reconciliation run."""
        when = when or datetime.now(UTC)
        await self.backend.set(LAST_SYNC_KEY, when.isoformat())

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, temp_id: str) -> OfflineRecord | None:
        """Read one unsynced-partition record, or None."""
        return await self._read_local(temp_id)

    async def list_all(self) -> list[OfflineRecord]:
        """Every locally known entry, most recently changed first."""
        local = await self.unsynced.all()
        async with self._cache_lock:
            cached = await self.cached.all()

        records = merge_partitions(local, cached)
        records.sort(key=lambda r: r.local_timestamp, reverse=True)
        return records

    async def list_unsynced(self) -> list[OfflineRecord]:
        """Pending records in the order their mutations were made."""
        records = [r for r in await self.unsynced.all() if not r.synced]
        records.sort(key=lambda r: r.local_timestamp)
        return records

    async def list_by_type(self, entry_type: EntryType | None = None) -> list[OfflineRecord]:
        """Entries of one type, or all entries when type is None."""
        records = await self.list_all()
        if entry_type is None:
            return records
        return [r for r in records if r.entry_type == entry_type]

    async def search(self, query: str) -> list[OfflineRecord]:
        """Case-insensitive substring search over title and content.

        A blank query matches nothing.
        """
        if not query.strip():
            return []

        needle = query.lower()
        return [
            r
            for r in await self.list_all()
            if needle in r.title.lower() or needle in r.content.lower()
        ]

    async def counts_by_type(self) -> dict[str, int]:
        """Entry count per type, plus a "total" key."""
        records = await self.list_all()
        counts = {entry_type.value: 0 for entry_type in EntryType}
        for record in records:
            counts[record.entry_type.value] += 1
        counts["total"] = len(records)
        return counts

    async def pending_count(self) -> int:
        """Number of records awaiting reconciliation."""
        return len(await self.list_unsynced())

    async def last_sync(self) -> datetime | None:
        """Time of the last reconciliation run, if any."""
        raw = await self.backend.get(LAST_SYNC_KEY)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed {LAST_SYNC_KEY}: {raw!r}")
            return None

    async def stats(self) -> StoreStats:
        """Summary of local contents and sync state."""
        return StoreStats(
            total=len(await self.list_all()),
            unsynced=await self.pending_count(),
            last_sync=await self.last_sync(),
        )
