"""
Tests for the record <-> dynamic entity codec.
"""

import logging
from datetime import datetime, timezone

import pytest

from dynamodb_crud import DynamicEntity, EntityProperty, RecordCodec, ValidationError


@pytest.fixture
def codec():
    return RecordCodec()


class TestToEntity:

    def test_lifts_id_and_etag(self, codec):
        entity = codec.to_entity({"Id": "42", "ETag": 'W/"1"', "Name": "Erik", "Age": 32})

        assert entity.row_key == "42"
        assert entity.etag == 'W/"1"'
        assert list(entity.properties) == ["Name", "Age"]
        assert entity.get("Age") == 32

    def test_record_without_id(self, codec):
        entity = codec.to_entity({"Name": "Erik"})

        assert entity.row_key is None
        assert entity.etag is None

    def test_does_not_modify_record(self, codec):
        record = {"Id": "42", "ETag": 'W/"1"', "Name": "Erik", "Tags": ["a"]}
        original = dict(record)

        codec.to_entity(record)

        assert record == original

    def test_drops_non_primitive_fields(self, codec, caplog):
        with caplog.at_level(logging.WARNING):
            entity = codec.to_entity({"Name": "Erik", "Address": {"City": "Oslo"}, "Tags": ["a"], "Note": None})

        assert list(entity.properties) == ["Name"]
        assert "Dropping record fields" in caplog.text

    def test_strict_rejects_non_primitive_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            RecordCodec(strict=True).to_entity({"Name": "Erik", "Address": {"City": "Oslo"}})

        assert exc_info.value.errors == {"Address": "dict"}

    def test_id_is_stringified(self, codec):
        assert codec.to_entity({"Id": 7}).row_key == "7"

    def test_timestamp_is_not_stored(self, codec):
        entity = codec.to_entity({"Id": "42", "Timestamp": datetime(2024, 1, 1, tzinfo=timezone.utc), "Name": "Erik"})

        assert list(entity.properties) == ["Name"]
        assert entity.timestamp is None


class TestToRecord:

    def test_synthesized_fields_come_first(self, codec):
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entity = DynamicEntity(
            partition_key="Ralston",
            row_key="42",
            etag='W/"1"',
            timestamp=stamp,
            properties={"Name": EntityProperty.from_value("Erik"), "Age": EntityProperty.from_value(32)},
        )

        record = codec.to_record(entity)

        assert list(record) == ["Id", "Timestamp", "ETag", "Name", "Age"]
        assert record["Timestamp"] == stamp
        assert "PartitionKey" not in record

    def test_unset_system_values_are_skipped(self, codec):
        record = codec.to_record(DynamicEntity(row_key="42", properties={"Name": EntityProperty.from_value("Erik")}))

        assert record == {"Id": "42", "Name": "Erik"}

    def test_property_named_like_system_field_is_not_duplicated(self, codec):
        user_stamp = datetime(2000, 1, 1, tzinfo=timezone.utc)
        entity = DynamicEntity(
            row_key="42",
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            properties={"Timestamp": EntityProperty.from_value(user_stamp)},
        )

        record = codec.to_record(entity)

        assert record["Timestamp"] == user_stamp
        assert list(record).count("Timestamp") == 1

    def test_round_trip(self, codec):
        record = {"Id": "42", "ETag": 'W/"1"', "Name": "Erik", "Age": 32, "Active": True}

        assert codec.to_record(codec.to_entity(record)) == record
