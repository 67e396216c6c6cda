"""
Entity models

Two entity shapes are stored in the same tables:

- DynamicEntity: an ordered bag of typed properties with no declared schema.
  This is the shape the gateway reads and writes.
- TableEntity: a pydantic model whose fields are the properties. Subclasses
  convert to and from DynamicEntity and may declare merge annotations.

Both carry the system fields PartitionKey, RowKey, ETag and Timestamp. The
ETag and Timestamp are assigned by the store on every write.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError
from ..utils import parse_utc, to_utc
from .merge import Merge
from .properties import EntityProperty

logger = logging.getLogger(__name__)

SYSTEM_FIELDS = ('partition_key', 'row_key', 'etag', 'timestamp')

# Item attribute names
PARTITION_KEY = 'PartitionKey'
ROW_KEY = 'RowKey'
ETAG = 'ETag'
TIMESTAMP = 'Timestamp'
PROPERTIES = 'Properties'


class EntityBase(BaseModel, ABC):
    """System fields shared by every entity shape.

    Concrete shapes convert to and from DynamicEntity, the form the gateway
    reads and writes.
    """

    partition_key: Optional[str] = Field(default=None, description="Partition the entity lives in")
    row_key: Optional[str] = Field(default=None, description="Unique key within the partition")
    etag: Optional[str] = Field(default=None, description="Opaque version token, changes on every write")
    timestamp: Optional[datetime] = Field(default=None, description="UTC time of the last write")

    model_config = ConfigDict(extra='ignore')

    @abstractmethod
    def to_dynamic_entity(self) -> 'DynamicEntity':
        ...

    @classmethod
    @abstractmethod
    def from_dynamic_entity(cls, entity: 'DynamicEntity'):
        ...

    def system_values(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in SYSTEM_FIELDS}


class DynamicEntity(EntityBase):
    """Schema-less entity: system fields plus ordered typed properties."""

    properties: Dict[str, EntityProperty] = Field(default_factory=dict)

    def to_dynamic_entity(self) -> 'DynamicEntity':
        return self

    @classmethod
    def from_dynamic_entity(cls, entity: 'DynamicEntity') -> 'DynamicEntity':
        return entity

    def to_item(self) -> Dict[str, Any]:
        """
        Convert to a DynamoDB item.

        Properties are stored as an ordered list of ``{Name, Type, Value}``
        maps so that both the declared order and the exact primitive type
        survive a round trip.

        Raises:
            ValidationError: If the partition or row key is missing
        """
        if not self.partition_key or not self.row_key:
            raise ValidationError(
                "Entity requires both a partition key and a row key to be stored",
                errors={'partition_key': self.partition_key, 'row_key': self.row_key}
            )

        item = {
            PARTITION_KEY: self.partition_key,
            ROW_KEY: self.row_key,
            PROPERTIES: [
                {'Name': name, **prop.to_attribute()}
                for name, prop in self.properties.items()
            ],
        }
        if self.etag is not None:
            item[ETAG] = self.etag
        if self.timestamp is not None:
            item[TIMESTAMP] = to_utc(self.timestamp).isoformat()
        return item

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'DynamicEntity':
        """Create an entity from a DynamoDB item (reverse of to_item)."""
        try:
            properties = {
                entry['Name']: EntityProperty.from_attribute(entry['Type'], entry.get('Value'))
                for entry in item.get(PROPERTIES, [])
            }
            timestamp = item.get(TIMESTAMP)
            return cls(
                partition_key=item.get(PARTITION_KEY),
                row_key=item.get(ROW_KEY),
                etag=item.get(ETAG),
                timestamp=parse_utc(timestamp) if timestamp else None,
                properties=properties,
            )
        except (KeyError, ValueError) as e:
            logger.error(f"Failed to convert item to {cls.__name__}: {e}")
            raise ValidationError(f"Failed to convert item to {cls.__name__}: {e}", original_error=e) from e

    def get(self, name: str, default: Any = None) -> Any:
        """Value of a named property, or default when absent."""
        prop = self.properties.get(name)
        return prop.value if prop is not None else default


class TableEntity(EntityBase):
    """
    Base class for typed entities.

    Every non-system field is stored as a property of the same name. Field
    values must be bool, str, int (32-bit), float or datetime; None values
    are not stored.

    Merge annotations are declared with ``merge_policies``, a tuple of
    ``(field_name, Merge(...))`` pairs. Annotations are inherited and a
    subclass may override the rule of a base class field.
    """

    merge_policies: ClassVar[Tuple[Tuple[str, Merge], ...]] = ()

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs):
        super().__pydantic_init_subclass__(**kwargs)
        for field_name, _ in cls.__dict__.get('merge_policies', ()):
            if field_name not in cls.model_fields or field_name in SYSTEM_FIELDS:
                raise TypeError(f"{cls.__name__} declares a merge policy for unknown field '{field_name}'")

    @classmethod
    def get_merge_policies(cls) -> Dict[str, Merge]:
        """Merge annotations for every annotated field, base classes first."""
        policies: Dict[str, Merge] = {}
        for klass in reversed(cls.__mro__):
            policies.update(dict(klass.__dict__.get('merge_policies', ())))
        return policies

    @classmethod
    def property_fields(cls) -> Tuple[str, ...]:
        return tuple(name for name in cls.model_fields if name not in SYSTEM_FIELDS)

    def to_dynamic_entity(self) -> DynamicEntity:
        """Convert to the store shape.

        Raises:
            ValidationError: If a field holds a value of an unsupported type
        """
        properties = {}
        for name in self.property_fields():
            value = getattr(self, name)
            if value is None:
                continue
            prop = EntityProperty.from_value(value)
            if prop is None:
                raise ValidationError(
                    f"Field '{name}' of {type(self).__name__} has unsupported type {type(value).__name__}",
                    errors={name: type(value).__name__}
                )
            properties[name] = prop
        return DynamicEntity(**self.system_values(), properties=properties)

    @classmethod
    def from_dynamic_entity(cls, entity: DynamicEntity):
        """Build the typed entity from the store shape, ignoring unknown properties."""
        fields = cls.property_fields()
        data = {name: prop.value for name, prop in entity.properties.items() if name in fields}
        try:
            return cls(**entity.system_values(), **data)
        except PydanticValidationError as e:
            logger.error(f"Failed to convert entity to {cls.__name__}: {e}")
            raise ValidationError(f"Failed to convert entity to {cls.__name__}: {e}", original_error=e) from e


class PersistentTableEntity(TableEntity):
    """Typed entity with lifecycle timestamps.

    ``created_utc`` is frozen after creation and ``updated_utc`` cannot be
    changed through an update either; ``deleted_utc`` is freely writable.
    """

    merge_policies = (
        ("updated_utc", Merge(allow_create=False)),
        ("created_utc", Merge(allow_update=False)),
    )

    updated_utc: Optional[datetime] = None
    created_utc: Optional[datetime] = None
    deleted_utc: Optional[datetime] = None

    @property
    def id(self) -> Optional[str]:
        """The row key under its record-facing name."""
        return self.row_key


class UniversalPersistentTableEntity(PersistentTableEntity):
    """Persistent entity carrying a cross-system id that can be assigned once."""

    merge_policies = (
        ("universal_id", Merge(allow_once=True)),
    )

    universal_id: Optional[str] = None
