"""
Keyed partitions over a shared key-value backend.

A partition behaves like a separate map of record id -> OfflineRecord.
The backend underneath is a single flat key space; the partition owns
the key prefix and the JSON encoding so nothing else has to.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from ..exceptions import RecordDecodeError
from ..models import OfflineRecord
from ..storage.base import KeyValueBackend

logger = logging.getLogger(__name__)


def encode_record(record: OfflineRecord) -> str:
    """Serialize a record for storage."""
    return json.dumps(record.to_dict())


def decode_record(key: str, raw: str) -> OfflineRecord:
    """Deserialize a stored record.

    Raises:
        RecordDecodeError: If the payload is not valid JSON or lacks required fields
    """
    try:
        return OfflineRecord.from_dict(json.loads(raw))
    except json.JSONDecodeError as e:
        raise RecordDecodeError(key, f"invalid JSON: {e.msg}") from e
    except (KeyError, ValueError, TypeError) as e:
        raise RecordDecodeError(key, f"{type(e).__name__}: {e}") from e


class KeyedPartition:
    """One logical record map inside the backend."""

    def __init__(
        self,
        backend: KeyValueBackend,
        prefix: str,
        make_key: Callable[[Any], str],
    ) -> None:
        """Initialize the partition.

        Args:
            backend: Shared key-value backend
            prefix: Key prefix reserved for this partition
            make_key: Builds the storage key of a record id; must use prefix
        """
        self.backend = backend
        self.prefix = prefix
        self._make_key = make_key

    def key_for(self, record_id: str | int) -> str:
        """Storage key for a record id."""
        return self._make_key(record_id)

    async def keys(self) -> list[str]:
        """Storage keys belonging to this partition."""
        all_keys = await self.backend.list_keys()
        return sorted(key for key in all_keys if key.startswith(self.prefix))

    async def _read(self, key: str) -> str | None:
        try:
            return await self.backend.get(key)
        except UnicodeDecodeError as e:
            raise RecordDecodeError(key, f"invalid text encoding: {e.reason}") from e

    async def get(self, record_id: str | int) -> OfflineRecord | None:
        """Read one record.

        Returns:
            The record, or None if absent

        Raises:
            RecordDecodeError: If the stored payload is malformed
        """
        key = self.key_for(record_id)
        raw = await self._read(key)
        if raw is None:
            return None
        return decode_record(key, raw)

    async def put(self, record_id: str | int, record: OfflineRecord) -> None:
        """Write one record, replacing any previous value."""
        await self.backend.set(self.key_for(record_id), encode_record(record))

    async def remove(self, record_id: str | int) -> None:
        """Remove one record. Absent records are ignored."""
        await self.backend.remove(self.key_for(record_id))

    async def all(self) -> list[OfflineRecord]:
        """Read every record, skipping and logging malformed payloads."""
        records: list[OfflineRecord] = []
        for key in await self.keys():
            try:
                raw = await self._read(key)
                if raw is None:
                    # Removed between listing and reading
                    continue
                records.append(decode_record(key, raw))
            except RecordDecodeError as e:
                logger.warning(f"Skipping malformed record {key}: {e.reason}")
        return records

    async def clear(self) -> int:
        """Remove every record in this partition.

        Returns:
            Number of keys removed
        """
        keys = await self.keys()
        for key in keys:
            await self.backend.remove(key)
        return len(keys)
