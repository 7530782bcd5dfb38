"""
Offline entry persistence.

Key classes:
- OfflineEntryStore: Record lifecycle over the unsynced and cached partitions
- KeyedPartition: One prefix-scoped record map inside a key-value backend
"""

from .partition import KeyedPartition, decode_record, encode_record
from .store import OfflineEntryStore, merge_partitions

__all__ = [
    "OfflineEntryStore",
    "KeyedPartition",
    "merge_partitions",
    "encode_record",
    "decode_record",
]
