"""
Journal Sync

Offline-first entry storage and synchronization for a personal
journaling client.

Provides:
- Dual local backends (native SQLite preference store, browser-scoped file store)
- Offline entry store with unsynced and cached partitions
- Reconciliation of pending local mutations against the remote entry API
- Platform-adaptive, de-duplicated paginated entry views

Usage:

    >>> from journal_sync import (
    ...     BackendSelector, HttpEntryAPI, OfflineEntryStore, StorageConfig, SyncReconciler,
    ... )
    >>> config = StorageConfig.from_environment()
    >>> store = OfflineEntryStore(BackendSelector.from_config(config))
    >>> temp_id = await store.create_local(new_entry)
    >>> reconciler = SyncReconciler(store, HttpEntryAPI.from_config(config))
    >>> result = await reconciler.reconcile()

Views:

    >>> view = AccumulatingView.for_platform(RemoteEntrySource(api), probe)
    >>> await view.set_filter(EntryFilter(search_query="river"))
    >>> await view.load_more()
"""

# Exceptions
from .exceptions import (
    AuthenticationError,
    JournalSyncError,
    RecordDecodeError,
    RemoteAPIError,
    StorageConnectionError,
    StorageIOError,
    SyncError,
    ValidationError,
)

# Data model
from .models import EntryData, EntryType, NewEntry, OfflineRecord, StoreStats, SyncAction

# Offline store
from .offline import OfflineEntryStore

# Remote API
from .remote import HttpEntryAPI, RemoteEntryAPI

# Storage backends
from .storage import (
    BackendSelector,
    BrowserStorageBackend,
    EnvironmentPlatformProbe,
    KeyValueBackend,
    PlatformProbe,
    PreferencesBackend,
    StaticPlatformProbe,
    StorageConfig,
)

# Reconciliation
from .sync import ReconcileResult, SyncConfig, SyncReconciler, SyncState, SyncStatus

# Views
from .view import AccumulatingView, EntryFilter, OfflineEntrySource, RemoteEntrySource

__all__ = [
    # Storage
    "StorageConfig",
    "KeyValueBackend",
    "PreferencesBackend",
    "BrowserStorageBackend",
    "BackendSelector",
    "PlatformProbe",
    "StaticPlatformProbe",
    "EnvironmentPlatformProbe",
    # Data model
    "EntryType",
    "SyncAction",
    "EntryData",
    "NewEntry",
    "OfflineRecord",
    "StoreStats",
    # Offline store
    "OfflineEntryStore",
    # Remote API
    "RemoteEntryAPI",
    "HttpEntryAPI",
    # Reconciliation
    "SyncReconciler",
    "SyncConfig",
    "SyncState",
    "SyncStatus",
    "ReconcileResult",
    # Views
    "AccumulatingView",
    "EntryFilter",
    "RemoteEntrySource",
    "OfflineEntrySource",
    # Exceptions
    "JournalSyncError",
    "StorageIOError",
    "RecordDecodeError",
    "SyncError",
    "RemoteAPIError",
    "StorageConnectionError",
    "AuthenticationError",
    "ValidationError",
]

__version__ = "0.1.0"
