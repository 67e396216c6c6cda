"""
Tests for entity models and typed properties.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest

from dynamodb_crud import DynamicEntity, EdmType, EntityProperty, TableEntity, ValidationError
from dynamodb_crud.models.entity import EntityBase
from dynamodb_crud.utils import INT32_MAX, INT32_MIN, to_single, to_utc
from tests.helpers import Person


class TestEntityProperty:

    @pytest.mark.parametrize("value,edm_type", [
        (True, EdmType.BOOLEAN),
        ("Erik", EdmType.STRING),
        (32, EdmType.INT32),
        (1.5, EdmType.SINGLE),
        (datetime(2024, 1, 1, tzinfo=timezone.utc), EdmType.DATETIME),
    ])
    def test_primitive_values(self, value, edm_type):
        prop = EntityProperty.from_value(value)

        assert prop.edm_type == edm_type
        assert prop.value == value

    def test_bool_is_not_int(self):
        assert EntityProperty.from_value(False).edm_type == EdmType.BOOLEAN

    @pytest.mark.parametrize("value", [None, {"a": 1}, [1, 2], b"bytes", Decimal("1.5")])
    def test_unsupported_values(self, value):
        assert EntityProperty.from_value(value) is None

    def test_int32_bounds(self):
        assert EntityProperty.from_value(INT32_MAX).value == INT32_MAX
        assert EntityProperty.from_value(INT32_MIN).value == INT32_MIN

    @pytest.mark.parametrize("value", [INT32_MAX + 1, INT32_MIN - 1, 10 ** 12])
    def test_int32_overflow(self, value):
        with pytest.raises(ValidationError, match="does not fit in a 32-bit property"):
            EntityProperty.from_value(value)

    def test_float_rounded_to_single_precision(self):
        prop = EntityProperty.from_value(0.1)

        assert prop.value != 0.1
        assert prop.value == to_single(0.1)
        assert abs(prop.value - 0.1) < 1e-7

    def test_datetime_converted_to_utc(self):
        eastern = timezone(timedelta(hours=-5))

        prop = EntityProperty.from_value(datetime(2024, 1, 1, 10, 0, tzinfo=eastern))

        assert prop.value == datetime(2024, 1, 1, 15, 0, tzinfo=timezone.utc)
        assert prop.value.tzinfo == timezone.utc

    def test_naive_datetime_assumed_utc(self):
        prop = EntityProperty.from_value(datetime(2024, 1, 1, 10, 0))

        assert prop.value == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_attribute_values_are_dynamodb_safe(self):
        assert EntityProperty.from_value(32).to_attribute() == {'Type': 'Edm.Int32', 'Value': Decimal(32)}
        assert isinstance(EntityProperty.from_value(1.5).to_attribute()['Value'], Decimal)
        assert EntityProperty.from_value(datetime(2024, 1, 1, tzinfo=timezone.utc)).to_attribute() == {
            'Type': 'Edm.DateTime',
            'Value': '2024-01-01T00:00:00+00:00',
        }

    def test_from_attribute_restores_python_types(self):
        assert EntityProperty.from_attribute('Edm.Int32', Decimal(32)).value == 32
        assert isinstance(EntityProperty.from_attribute('Edm.Int32', Decimal(32)).value, int)
        assert EntityProperty.from_attribute('Edm.Single', Decimal('1.5')).value == 1.5
        assert EntityProperty.from_attribute('Edm.DateTime', '2024-01-01T00:00:00Z').value == datetime(
            2024, 1, 1, tzinfo=timezone.utc
        )

    def test_from_attribute_unknown_type(self):
        with pytest.raises(ValueError):
            EntityProperty.from_attribute('Edm.Guid', 'abc')


class TestDynamicEntity:

    def make(self):
        return DynamicEntity(
            partition_key="Ralston",
            row_key="Erik",
            etag='W/"1"',
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            properties={
                "Name": EntityProperty.from_value("Erik"),
                "Age": EntityProperty.from_value(32),
                "Active": EntityProperty.from_value(True),
                "Height": EntityProperty.from_value(1.8),
                "Born": EntityProperty.from_value(datetime(1992, 5, 1, tzinfo=timezone.utc)),
            },
        )

    def test_to_item_layout(self):
        item = self.make().to_item()

        assert item['PartitionKey'] == "Ralston"
        assert item['RowKey'] == "Erik"
        assert item['ETag'] == 'W/"1"'
        assert item['Timestamp'] == '2024-01-01T00:00:00+00:00'
        assert [entry['Name'] for entry in item['Properties']] == ["Name", "Age", "Active", "Height", "Born"]

    def test_item_round_trip_keeps_order_and_types(self):
        entity = self.make()

        restored = DynamicEntity.from_item(entity.to_item())

        assert restored == entity
        assert list(restored.properties) == list(entity.properties)

    def test_to_item_requires_keys(self):
        with pytest.raises(ValidationError, match="partition key and a row key"):
            DynamicEntity(row_key="Erik").to_item()

    def test_to_item_omits_unset_system_values(self):
        item = DynamicEntity(partition_key="p", row_key="r").to_item()

        assert 'ETag' not in item
        assert 'Timestamp' not in item

    def test_from_item_malformed(self):
        with pytest.raises(ValidationError, match="Failed to convert item"):
            DynamicEntity.from_item({'PartitionKey': 'p', 'RowKey': 'r', 'Properties': [{'Type': 'Edm.String'}]})

    def test_get(self):
        entity = self.make()

        assert entity.get("Name") == "Erik"
        assert entity.get("Missing") is None
        assert entity.get("Missing", 7) == 7


class TestTableEntity:

    def test_to_dynamic_entity_skips_none(self):
        person = Person(partition_key="Ralston", row_key="Evee", name="Evelyn", age=3)

        entity = person.to_dynamic_entity()

        assert list(entity.properties) == ["name", "age"]
        assert entity.row_key == "Evee"
        assert entity.get("age") == 3

    def test_dynamic_round_trip(self):
        person = Person(partition_key="Ralston", row_key="Evee", etag='W/"1"', name="Evelyn", nickname="Evee")

        assert Person.from_dynamic_entity(person.to_dynamic_entity()) == person

    def test_from_dynamic_entity_ignores_unknown_properties(self):
        entity = DynamicEntity(
            row_key="Evee",
            properties={"name": EntityProperty.from_value("Evelyn"), "shoe_size": EntityProperty.from_value(5)},
        )

        person = Person.from_dynamic_entity(entity)

        assert person.name == "Evelyn"
        assert not hasattr(person, "shoe_size")

    def test_from_dynamic_entity_type_mismatch(self):
        entity = DynamicEntity(row_key="Evee", properties={"age": EntityProperty.from_value("three")})

        with pytest.raises(ValidationError, match="Failed to convert entity to Person"):
            Person.from_dynamic_entity(entity)

    def test_unsupported_field_type(self):
        class Tagged(TableEntity):
            tags: Optional[list] = None

        with pytest.raises(ValidationError, match="unsupported type list"):
            Tagged(row_key="1", tags=["a"]).to_dynamic_entity()

    def test_int_field_overflow(self):
        with pytest.raises(ValidationError):
            Person(row_key="Evee", age=2 ** 40).to_dynamic_entity()

    def test_property_fields_exclude_system_fields(self):
        assert Person.property_fields() == ("name", "age", "signup_source", "birth_name", "nickname")

    def test_system_field_policy_rejected(self):
        from dynamodb_crud import Merge

        with pytest.raises(TypeError):
            class Broken(TableEntity):
                merge_policies = (("etag", Merge(allow_update=False)),)


class TestEntityBase:

    def test_entity_base_is_abstract(self):
        with pytest.raises(TypeError):
            EntityBase(row_key="1")


class TestUtc:

    def test_none(self):
        assert to_utc(None) is None
