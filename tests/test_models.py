"""Tests for the entry and record data types."""

from datetime import UTC, datetime

import pytest

from journal_sync.exceptions import ValidationError
from journal_sync.models import EntryData, EntryType, OfflineRecord, SyncAction

from .conftest import make_entry, make_server_entry


def make_record(**overrides) -> OfflineRecord:
    record = OfflineRecord.from_new_entry("offline_1000_abcdefghi", make_entry(), 1000)
    for name, value in overrides.items():
        setattr(record, name, value)
    return record


class TestEntryData:
    """Tests for EntryData API conversion."""

    def test_from_api(self):
        """Server payload maps onto entry fields."""
        entry = EntryData.from_api(
            {
                "id": 7,
                "title": "Lunch with Sam",
                "content": "Talked about the trip",
                "type": "person",
                "date": "2024-05-01T12:00:00+00:00",
                "structuredData": {"relationship": "friend"},
                "userId": "user-1",
                "createdAt": "2024-05-01T13:00:00+00:00",
            }
        )

        assert entry.id == 7
        assert entry.type == EntryType.PERSON
        assert entry.date == datetime(2024, 5, 1, 12, tzinfo=UTC)
        assert entry.structured_data == {"relationship": "friend"}
        assert entry.owner_id == "user-1"
        assert entry.updated_at is None

    def test_from_api_tolerates_missing_optional_fields(self):
        """Missing optional fields get empty defaults."""
        entry = EntryData.from_api(
            {"id": 1, "title": None, "type": "note", "date": "2024-05-01T00:00:00"}
        )

        assert entry.title == ""
        assert entry.content == ""
        assert entry.structured_data == {}

    def test_to_api_round_trips_through_from_api(self):
        """Entry survives a trip through its API form."""
        entry = make_server_entry(3)

        assert EntryData.from_api(entry.to_api()) == entry

    def test_to_api_without_identity(self):
        """Write payload carries only the writable fields."""
        payload = make_server_entry(3).to_api(include_identity=False)

        assert set(payload) == {"title", "content", "type", "date", "structuredData"}
        assert payload["type"] == "note"


class TestOfflineRecord:
    """Tests for OfflineRecord construction and serialization."""

    def test_from_new_entry_is_pending_create(self):
        """New record is an unsynced pending create."""
        record = make_record()

        assert record.synced is False
        assert record.action == SyncAction.CREATE
        assert record.server_id is None
        assert record.is_pending

    def test_identity_prefers_server_id(self):
        """Identity is the server id once one is known."""
        assert make_record().identity == "offline_1000_abcdefghi"
        assert make_record(server_id=12).identity == 12

    def test_to_entry(self):
        """Record converts back to entry data."""
        entry = make_record(server_id=12).to_entry()

        assert entry.id == 12
        assert entry.title == "Morning pages"
        assert entry.type == EntryType.JOURNAL
        assert entry.structured_data == {"mood": "calm"}

    def test_cached(self):
        """Cached record mirrors a server entry."""
        record = OfflineRecord.cached(make_server_entry(9), 5000)

        assert record.temp_id == "cached_9"
        assert record.server_id == 9
        assert record.synced is True
        assert record.local_timestamp == 5000
        assert record.owner == "user-1"

    def test_dict_round_trip(self):
        """Record survives a trip through its stored form."""
        record = make_record(server_id=4, synced=True, action=SyncAction.UPDATE)

        assert OfflineRecord.from_dict(record.to_dict()) == record

    def test_from_dict_defaults(self):
        """Missing action and synced fall back to defaults."""
        data = make_record().to_dict()
        del data["action"]
        del data["synced"]

        record = OfflineRecord.from_dict(data)

        assert record.action == SyncAction.CREATE
        assert record.synced is False

    def test_from_dict_missing_field_raises(self):
        """Missing required field raises KeyError."""
        data = make_record().to_dict()
        del data["title"]

        with pytest.raises(KeyError):
            OfflineRecord.from_dict(data)

    def test_from_dict_unknown_type_raises(self):
        """Unknown entry type raises ValueError."""
        data = make_record().to_dict()
        data["entry_type"] = "recipe"

        with pytest.raises(ValueError):
            OfflineRecord.from_dict(data)

    def test_from_dict_rejects_non_integer_timestamp(self):
        """Non-integer timestamp raises TypeError."""
        data = make_record().to_dict()
        data["local_timestamp"] = "yesterday"

        with pytest.raises(TypeError):
            OfflineRecord.from_dict(data)

    @pytest.mark.parametrize("field", ["title", "content"])
    def test_from_dict_rejects_non_string_text(self, field):
        """Non-string title or content raises TypeError."""
        data = make_record().to_dict()
        data[field] = None

        with pytest.raises(TypeError):
            OfflineRecord.from_dict(data)

    def test_from_dict_rejects_non_object(self):
        """Stored value that is not an object raises TypeError."""
        with pytest.raises(TypeError):
            OfflineRecord.from_dict(["not", "a", "record"])


class TestWithChanges:
    """Tests for applying field changes to a record."""

    def test_replaces_fields_and_leaves_original(self):
        """Changes produce a new record and leave the original."""
        record = make_record()

        changed = record.with_changes({"title": "Evening pages"})

        assert changed.title == "Evening pages"
        assert record.title == "Morning pages"
        assert changed.temp_id == record.temp_id

    def test_coerces_enum_and_date_values(self):
        """String values are coerced to enums and datetimes."""
        changed = make_record().with_changes(
            {"entry_type": "place", "action": "delete", "occurs_on": "2024-06-01T00:00:00+00:00"}
        )

        assert changed.entry_type == EntryType.PLACE
        assert changed.action == SyncAction.DELETE
        assert changed.occurs_on == datetime(2024, 6, 1, tzinfo=UTC)

    def test_rejects_identity_fields(self):
        """Identity fields cannot be changed."""
        with pytest.raises(ValidationError) as exc_info:
            make_record().with_changes({"temp_id": "offline_2_zzzzzzzzz"})

        assert exc_info.value.field == "temp_id"

    def test_rejects_sync_flag(self):
        """Sync flag cannot be changed directly."""
        with pytest.raises(ValidationError):
            make_record().with_changes({"synced": True})
