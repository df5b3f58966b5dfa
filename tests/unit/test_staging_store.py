"""
Unit tests for StagingStore and Record.apply().

Run: pytest tests/unit/test_staging_store.py -v
"""

import pytest

from services.staging_store import StagingStore
from models.record import Platform, Record
from exceptions import RecordNotFoundError, ValidationError


@pytest.fixture
def record() -> Record:
    return Record(
        id="s1",
        natural_key="SKU-A",
        platform=Platform.NETSUITE,
        name="Widget A",
        price=10.0,
        quantity=5,
        extensions={"vendor": "ACME"},
        raw_payload={"internalId": "s1", "itemId": "SKU-A"},
    )


class TestRecordApply:
    """Tests for Record.apply()"""

    def test_overwrites_core_fields(self, record):
        """Should change only the patched core fields."""
        patched = record.apply({"price": 12.0})

        assert patched.price == 12.0
        assert patched.name == "Widget A"
        assert record.price == 10.0

    def test_unknown_keys_go_to_extensions(self, record):
        """Should keep unknown keys in the open extensions map."""
        patched = record.apply({"compareAtPrice": 15.0, "extensions": {"vendor": "Other"}})

        assert patched.extensions == {"vendor": "Other", "compareAtPrice": 15.0}

    def test_raw_payload_preserved_verbatim(self, record):
        """Should carry the raw payload through unchanged."""
        patched = record.apply({"name": "Renamed"})

        assert patched.raw_payload == {"internalId": "s1", "itemId": "SKU-A"}

    def test_identity_change_rejected(self, record):
        """Should refuse to change the record id or platform."""
        with pytest.raises(ValidationError) as exc_info:
            record.apply({"id": "other"})

        assert exc_info.value.code == "RECORD_IDENTITY_CHANGE"

    @pytest.mark.parametrize("changes", [
        {"price": -5},
        {"price": "cheap"},
        {"extensions": "oops"},
    ])
    def test_invalid_values_rejected(self, record, changes):
        """Should turn a patch the record cannot hold into a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            record.apply(changes)

        assert exc_info.value.code == "RECORD_PATCH_INVALID"
        assert exc_info.value.status_code == 422


class TestStagingStoreEffective:
    """Tests for StagingStore.get_effective()"""

    def test_unstaged_returns_base(self, record):
        """Should return the base record when nothing is staged."""
        store = StagingStore([record])

        assert store.get_effective("s1") == record

    def test_staged_merges_patch(self, record):
        """Should return the patch merged over the base."""
        store = StagingStore()
        store.stage(record, {"price": 12.0})

        effective = store.get_effective("s1")

        assert effective.price == 12.0
        assert effective.quantity == 5

    def test_unknown_record_raises(self):
        """Should raise RecordNotFoundError for an id never loaded."""
        store = StagingStore()

        with pytest.raises(RecordNotFoundError) as exc_info:
            store.get_effective("nope")

        assert exc_info.value.status_code == 404

    def test_reload_keeps_pending_changes_over_fresh_base(self, record):
        """Should merge the pending patch over the newly fetched base."""
        store = StagingStore()
        store.stage(record, {"price": 12.0})

        store.load([record.model_copy(update={"quantity": 9})])
        effective = store.get_effective("s1")

        assert effective.price == 12.0
        assert effective.quantity == 9


class TestStagingStoreStage:
    """Tests for stage() / unstage() / clear()"""

    def test_stage_replaces_whole_patch(self, record):
        """Should not accumulate partial edits across stage calls."""
        store = StagingStore()
        store.stage(record, {"price": 12.0})
        store.stage(record, {"name": "Renamed"})

        effective = store.get_effective("s1")

        assert effective.name == "Renamed"
        assert effective.price == 10.0
        assert len(store) == 1

    def test_invalid_patch_not_staged(self, record):
        """Should reject an identity change without touching the overlay."""
        store = StagingStore()

        with pytest.raises(ValidationError):
            store.stage(record, {"platform": "shopify"})

        assert "s1" not in store

    def test_unstage(self, record):
        """Should drop the overlay and report whether one existed."""
        store = StagingStore()
        store.stage(record, {"price": 1.0})

        assert store.unstage("s1") is True
        assert store.unstage("s1") is False
        assert store.get_effective("s1") == record

    def test_list_staged_in_staging_order(self):
        """Should list staged records in the order they were staged."""
        store = StagingStore()
        for rid in ("b", "a", "c"):
            store.stage(Record(id=rid, platform=Platform.SHOPIFY), {"status": "draft"})

        assert [s.record_id for s in store.list_staged()] == ["b", "a", "c"]

    def test_clear_returns_only_staged_ids(self, record):
        """Should clear given ids and report which ones had an overlay."""
        store = StagingStore()
        store.stage(record, {"price": 1.0})

        cleared = store.clear(["s1", "unknown"])

        assert cleared == ["s1"]
        assert not store.is_staged("s1")

    def test_get_record_returns_base(self, record):
        """Should return the base without pending changes."""
        store = StagingStore()
        store.stage(record, {"price": 1.0})

        assert store.get_record("s1").price == 10.0
