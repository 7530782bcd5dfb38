"""
Platform-adaptive entry views.

Key classes:
- AccumulatingView: De-duplicated, appendable entry list with pagination
- EntryFilter: Active type/search filter
- RemoteEntrySource / OfflineEntrySource: Where entries are read from
"""

from .accumulator import DEFAULT_PAGE_SIZE, AccumulatingView
from .sources import EntryFilter, EntrySource, OfflineEntrySource, RemoteEntrySource

__all__ = [
    "AccumulatingView",
    "DEFAULT_PAGE_SIZE",
    "EntryFilter",
    "EntrySource",
    "RemoteEntrySource",
    "OfflineEntrySource",
]
