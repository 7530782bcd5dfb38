"""Identifier and storage-key utilities for offline entries.

Centralizes the key format knowledge so callers never need to
construct or parse storage keys directly.

Temporary IDs: offline_{epoch_ms}_{random_suffix}
Unsynced keys: offline_entry_{temp_id}
Cached keys:   cached_entry_{server_id}
"""

from __future__ import annotations

import secrets
import string
import time

OFFLINE_ENTRY_PREFIX = "offline_entry_"
CACHED_ENTRY_PREFIX = "cached_entry_"
SYNC_QUEUE_KEY = "sync_queue"
LAST_SYNC_KEY = "last_sync_timestamp"

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH = 9


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def new_temp_id(timestamp_ms: int | None = None) -> str:
    """Generate a temporary ID for a locally created entry."""
    if timestamp_ms is None:
        timestamp_ms = now_ms()
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"offline_{timestamp_ms}_{suffix}"


def offline_key(temp_id: str) -> str:
    """Storage key of an unsynced-partition record."""
    return f"{OFFLINE_ENTRY_PREFIX}{temp_id}"


def cached_key(server_id: int) -> str:
    """Storage key of a cached-partition record."""
    return f"{CACHED_ENTRY_PREFIX}{server_id}"
