"""
Core data types for offline journal storage.

Defines the locally persisted record shape, the remote entry shape,
and the conversions between them. The structured data blob carried by
every entry is kept as opaque JSON; nothing here interprets it.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .exceptions import ValidationError

# =============================================================================
# Enumerations
# =============================================================================


class EntryType(Enum):
    """Kinds of entries a journal can hold."""

    JOURNAL = "journal"
    NOTE = "note"
    PERSON = "person"
    PLACE = "place"
    THING = "thing"


class SyncAction(Enum):
    """Mutation a pending record represents."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


# Fields callers may change through update_local()
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"title", "content", "entry_type", "occurs_on", "structured_data", "owner", "action"}
)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise TypeError(f"Expected ISO timestamp, got {type(value).__name__}")


def _parse_optional_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    return _parse_datetime(value)


# =============================================================================
# Remote entry shape
# =============================================================================


@dataclass
class EntryData:
    """An entry as the remote API and the presentation layer see it.

    ``id`` is the server identifier for confirmed entries. Entries that only
    exist locally carry their temporary identifier instead.
    """

    id: int | str
    title: str
    content: str
    type: EntryType
    date: datetime
    structured_data: dict[str, Any] = field(default_factory=dict)
    owner_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> EntryData:
        """Create from a remote API payload (camelCase keys)."""
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            content=data.get("content") or "",
            type=EntryType(data["type"]),
            date=_parse_datetime(data["date"]),
            structured_data=data.get("structuredData") or {},
            owner_id=data.get("ownerId", data.get("userId")),
            created_at=_parse_optional_datetime(data.get("createdAt")),
            updated_at=_parse_optional_datetime(data.get("updatedAt")),
        )

    def to_api(self, include_identity: bool = True) -> dict[str, Any]:
        """Convert to a remote API payload.

        Args:
            include_identity: Include id, owner and server timestamps.
                Create and update requests send only the writable fields.
        """
        payload: dict[str, Any] = {
            "title": self.title,
            "content": self.content,
            "type": self.type.value,
            "date": self.date.isoformat(),
            "structuredData": self.structured_data,
        }
        if include_identity:
            payload["id"] = self.id
            payload["ownerId"] = self.owner_id
            payload["createdAt"] = self.created_at.isoformat() if self.created_at else None
            payload["updatedAt"] = self.updated_at.isoformat() if self.updated_at else None
        return payload


@dataclass
class NewEntry:
    """Entry content without any identity, as handed to create_local()."""

    title: str
    content: str
    entry_type: EntryType
    occurs_on: datetime
    structured_data: dict[str, Any] = field(default_factory=dict)
    owner: str | None = None


# =============================================================================
# Locally persisted record
# =============================================================================


@dataclass
class OfflineRecord:
    """The unit of local persistence.

    Records in the unsynced partition are keyed by ``temp_id``. Cached
    records mirror server state, are always ``synced`` and use
    ``cached_<server_id>`` as their ``temp_id``.

    Attributes:
        temp_id: Device-unique identifier, assigned once and never changed
        server_id: Identifier assigned by the remote store, once confirmed
        title: Entry title
        content: Entry body
        entry_type: Kind of entry
        occurs_on: Date the entry is about
        structured_data: Opaque per-type JSON payload
        synced: False while a local mutation awaits confirmation
        action: Mutation to replay while unsynced
        local_timestamp: Epoch milliseconds of the last local mutation
        owner: Opaque account identifier
        created_at: Server creation time, when known
        updated_at: Server update time, when known
    """

    temp_id: str
    title: str
    content: str
    entry_type: EntryType
    occurs_on: datetime
    local_timestamp: int
    server_id: int | None = None
    structured_data: dict[str, Any] = field(default_factory=dict)
    synced: bool = False
    action: SyncAction = SyncAction.CREATE
    owner: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def identity(self) -> int | str:
        """Server identifier when known, otherwise the temporary one."""
        return self.server_id if self.server_id is not None else self.temp_id

    @property
    def is_pending(self) -> bool:
        """True while this record holds an unconfirmed local mutation."""
        return not self.synced

    def to_entry(self) -> EntryData:
        """Convert to the display/remote entry shape."""
        return EntryData(
            id=self.identity,
            title=self.title,
            content=self.content,
            type=self.entry_type,
            date=self.occurs_on,
            structured_data=self.structured_data,
            owner_id=self.owner,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def with_changes(self, fields: dict[str, Any]) -> OfflineRecord:
        """Return a copy with editable fields replaced.

        Raises:
            ValidationError: If a field is not editable
        """
        changes: dict[str, Any] = {}
        for name, value in fields.items():
            if name not in EDITABLE_FIELDS:
                raise ValidationError(name, "field is not editable")
            if name == "entry_type" and not isinstance(value, EntryType):
                value = EntryType(value)
            elif name == "action" and not isinstance(value, SyncAction):
                value = SyncAction(value)
            elif name == "occurs_on":
                value = _parse_datetime(value)
            changes[name] = value
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "temp_id": self.temp_id,
            "server_id": self.server_id,
            "title": self.title,
            "content": self.content,
            "entry_type": self.entry_type.value,
            "occurs_on": self.occurs_on.isoformat(),
            "structured_data": self.structured_data,
            "synced": self.synced,
            "action": self.action.value,
            "local_timestamp": self.local_timestamp,
            "owner": self.owner,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OfflineRecord:
        """Create from dictionary.

        Raises KeyError, ValueError or TypeError on malformed input.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected object, got {type(data).__name__}")

        server_id = data.get("server_id")
        local_timestamp = data["local_timestamp"]
        if isinstance(local_timestamp, bool) or not isinstance(local_timestamp, int):
            raise TypeError("local_timestamp must be an integer")
        for name in ("title", "content"):
            if not isinstance(data[name], str):
                raise TypeError(f"{name} must be a string")

        return cls(
            temp_id=str(data["temp_id"]),
            server_id=int(server_id) if server_id is not None else None,
            title=data["title"],
            content=data["content"],
            entry_type=EntryType(data["entry_type"]),
            occurs_on=_parse_datetime(data["occurs_on"]),
            structured_data=data.get("structured_data") or {},
            synced=bool(data.get("synced", False)),
            action=SyncAction(data.get("action", SyncAction.CREATE.value)),
            local_timestamp=local_timestamp,
            owner=data.get("owner"),
            created_at=_parse_optional_datetime(data.get("created_at")),
            updated_at=_parse_optional_datetime(data.get("updated_at")),
        )

    @classmethod
    def from_new_entry(cls, temp_id: str, entry: NewEntry, local_timestamp: int) -> OfflineRecord:
        """Build a pending create from caller-supplied content."""
        return cls(
            temp_id=temp_id,
            title=entry.title,
            content=entry.content,
            entry_type=entry.entry_type,
            occurs_on=entry.occurs_on,
            structured_data=dict(entry.structured_data),
            owner=entry.owner,
            local_timestamp=local_timestamp,
            synced=False,
            action=SyncAction.CREATE,
        )

    @classmethod
    def cached(cls, entry: EntryData, local_timestamp: int) -> OfflineRecord:
        """Build a cached record mirroring a server entry."""
        server_id = int(entry.id)
        return cls(
            temp_id=f"cached_{server_id}",
            server_id=server_id,
            title=entry.title,
            content=entry.content,
            entry_type=entry.type,
            occurs_on=entry.date,
            structured_data=dict(entry.structured_data),
            owner=entry.owner_id,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            local_timestamp=local_timestamp,
            synced=True,
            action=SyncAction.CREATE,
        )


@dataclass
class StoreStats:
    """Summary of what is held locally."""

    total: int
    unsynced: int
    last_sync: datetime | None = None
