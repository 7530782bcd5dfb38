"""
Reconciliation of offline mutations with the remote entry API.

Replays pending records oldest-first:
- create: POST, then attach the server id and mark synced
- update: PUT, then mark synced
- delete: DELETE, then drop the local record

A failing record stays pending and the batch carries on. Failures are
aggregated into the run result and the pending count, never raised.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from ..exceptions import SyncError
from ..models import OfflineRecord, SyncAction
from ..offline.store import OfflineEntryStore
from ..remote.base import RemoteEntryAPI

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """Current state of the reconciler."""

    IDLE = "idle"
    SYNCING = "syncing"
    PAUSED = "paused"
    OFFLINE = "offline"
    ERROR = "error"


@dataclass
class ReconcileResult:
    """Result of one reconciliation run."""

    success: bool
    synced: int = 0
    failed: int = 0
    pending: int = 0
    errors: list[str] = field(default_factory=list)
    failures: list[SyncError] = field(default_factory=list)
    duration_ms: int = 0


@dataclass
class SyncStatus:
    """Snapshot of sync state for the presentation layer."""

    is_online: bool
    in_progress: bool
    pending_count: int
    last_sync: datetime | None = None
    last_error: str | None = None

    @property
    def show_indicator(self) -> bool:
        """Whether the offline/pending indicator should be visible."""
        return not self.is_online or self.pending_count > 0


@dataclass
class SyncConfig:
    """Configuration for the reconciler."""

    # Background sync
    auto_sync_interval_ms: int = 30000  # 30 seconds

    # Reconnect behavior
    sync_on_reconnect: bool = True
    reconnect_delay_ms: int = 1000

    # Cache refresh: None asks the server for everything
    refresh_limit: int | None = None


class SyncReconciler:
    """Replays pending local mutations against the remote entry API.

    Handles:
    - Oldest-first replay of pending records
    - Per-record failure isolation
    - Connectivity transitions and reconnect sync
    - Cache refresh from a full server listing
    - Optional periodic background runs

    Example:
        >>> reconciler = SyncReconciler(store, HttpEntryAPI.from_config(config))
        >>> result = await reconciler.reconcile()
        >>> result.pending
        0
    """

    def __init__(
        self,
        store: OfflineEntryStore,
        remote: RemoteEntryAPI,
        config: SyncConfig | None = None,
        online: bool = True,
    ):
        """Initialize the reconciler.

        Args:
            store: Offline entry store holding pending records
            remote: Remote entry API client
            config: Reconciler configuration
            online: Initial connectivity
        """
        self.store = store
        self.remote = remote
        self.config = config or SyncConfig()

        self._state = SyncState.IDLE if online else SyncState.OFFLINE
        self._is_online = online
        self._last_sync: datetime | None = None
        self._last_error: str | None = None
        self._sync_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SyncState:
        """Get current reconciler state."""
        return self._state

    @property
    def is_online(self) -> bool:
        """Check if we're currently online."""
        return self._is_online

    async def status(self) -> SyncStatus:
        """Get current sync status."""
        return SyncStatus(
            is_online=self._is_online,
            in_progress=self._state == SyncState.SYNCING,
            pending_count=await self.store.pending_count(),
            last_sync=self._last_sync or await self.store.last_sync(),
            last_error=self._last_error,
        )

    async def reconcile(self) -> ReconcileResult:
        """Replay every pending record once.

        Returns:
            Result of the run. Runs refused because another run is active,
            sync is paused, or we are offline report success=False.
        """
        if self._state == SyncState.SYNCING:
            return self._refused("Sync already in progress")

        if self._state == SyncState.PAUSED:
            return self._refused("Sync is paused")

        if not self._is_online:
            self._state = SyncState.OFFLINE
            return self._refused("No network connectivity", await self.store.pending_count())

        self._state = SyncState.SYNCING
        start_time = datetime.now(UTC)
        result = ReconcileResult(success=True)

        try:
            records = await self.store.list_unsynced()
            logger.info(f"Starting sync for {len(records)} entries")

            for record in records:
                try:
                    await self._replay(record)
                    result.synced += 1
                except Exception as e:
                    failure = SyncError(
                        f"Failed to sync {record.temp_id}: {e}", record.temp_id, e
                    )
                    result.failed += 1
                    result.failures.append(failure)
                    result.errors.append(failure.message)
                    logger.warning(f"Failed to sync entry {record.temp_id}: {e}")

            result.pending = await self.store.pending_count()
            self._last_sync = datetime.now(UTC)
            await self.store.touch_last_sync(self._last_sync)
            self._state = SyncState.IDLE

        except asyncio.CancelledError:
            # Cancelled mid-run: records not yet confirmed stay pending
            self._state = SyncState.IDLE if self._is_online else SyncState.OFFLINE
            logger.info("Sync cancelled")
            raise

        except Exception as e:
            self._state = SyncState.ERROR
            result.errors.append(f"Sync failed: {e}")
            logger.error(f"Sync failed: {e}")

        result.success = not result.errors
        result.duration_ms = int((datetime.now(UTC) - start_time).total_seconds() * 1000)
        self._last_error = result.errors[-1] if result.errors else None

        logger.info(
            f"Sync complete: {result.synced} success, {result.failed} errors, "
            f"{result.pending} pending"
        )
        return result

    def _refused(self, reason: str, pending: int = 0) -> ReconcileResult:
        self._last_error = reason
        logger.debug(f"Sync not started: {reason}")
        return ReconcileResult(success=False, pending=pending, errors=[reason])

    async def _replay(self, record: OfflineRecord) -> None:
        """Replay one pending record and update its local state."""
        replayed_at = record.local_timestamp

        if record.action == SyncAction.DELETE:
            if record.server_id is not None:
                await self.remote.delete(record.server_id)
            await self.store.delete_local(record.temp_id)
            return

        if record.action == SyncAction.CREATE or record.server_id is None:
            # An update to an entry the server never saw is still a create
            server_id = await self.remote.create(record.to_entry())
            await self.store.mark_synced(
                record.temp_id, server_id, if_unchanged_since=replayed_at
            )
            return

        fields = record.to_entry().to_api(include_identity=False)
        await self.remote.update(record.server_id, fields)
        await self.store.mark_synced(record.temp_id, if_unchanged_since=replayed_at)

    async def refresh_cache(self) -> int:
        """Replace the cached partition with a fresh server listing.

        Confirmed local records now mirrored by the cache are pruned.

        Returns:
            Number of entries cached

        Raises:
            JournalSyncError: If the listing cannot be fetched
        """
        entries = await self.remote.list(limit=self.config.refresh_limit)
        await self.store.cache_server_snapshot(entries)
        pruned = await self.store.prune_synced()
        if pruned:
            logger.debug(f"Pruned {pruned} synced records now covered by the cache")
        return len(entries)

    async def set_online(self, online: bool) -> ReconcileResult | None:
        """Report a connectivity change.

        Coming back online with pending records triggers a run when
        sync_on_reconnect is enabled.

        Returns:
            Result of the reconnect run, if one happened
        """
        was_online = self._is_online
        self._is_online = online

        if not online:
            logger.info("Device went offline")
            if self._state in (SyncState.IDLE, SyncState.ERROR):
                self._state = SyncState.OFFLINE
            return None

        if was_online:
            return None

        logger.info("Device came online")
        if self._state == SyncState.OFFLINE:
            self._state = SyncState.IDLE

        if not self.config.sync_on_reconnect or await self.store.pending_count() == 0:
            return None

        if self.config.reconnect_delay_ms > 0:
            await asyncio.sleep(self.config.reconnect_delay_ms / 1000)
        return await self.reconcile()

    async def start_auto_sync(self) -> None:
        """Start periodic background reconciliation."""
        if self._sync_task is not None:
            return

        async def sync_loop() -> None:
            while True:
                try:
                    await asyncio.sleep(self.config.auto_sync_interval_ms / 1000)
                    if self._is_online and self._state != SyncState.PAUSED:
                        await self.reconcile()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error(f"Background sync error: {e}")

        self._sync_task = asyncio.create_task(sync_loop())

    async def stop_auto_sync(self) -> None:
        """Stop periodic background reconciliation."""
        if self._sync_task is not None:
            self._sync_task.cancel()
            try:
                await self._sync_task
            except asyncio.CancelledError:
                pass
            self._sync_task = None

    def pause(self) -> None:
        """Pause sync operations."""
        self._state = SyncState.PAUSED

    def resume(self) -> None:
        """Resume sync operations."""
        if self._state == SyncState.PAUSED:
            self._state = SyncState.IDLE if self._is_online else SyncState.OFFLINE
