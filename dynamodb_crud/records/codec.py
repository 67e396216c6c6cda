"""
Mapping between schema-less records and dynamic entities.

A record is a plain ``dict`` of field name to primitive value. Three names are
reserved: ``Id`` carries the row key, ``ETag`` the concurrency token and
``Timestamp`` the time of the last write. On the way in ``Id`` and ``ETag``
are lifted out of the property set and ``Timestamp`` is discarded, since the
store assigns it; all three are synthesized back on the way out:

    {"Id": ..., "Timestamp": ..., "ETag": ..., <properties in stored order>}
"""

import logging
from typing import Any, Dict

from ..exceptions import ValidationError
from ..models.entity import DynamicEntity
from ..models.properties import EntityProperty

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

ID_FIELD = "Id"
ETAG_FIELD = "ETag"
TIMESTAMP_FIELD = "Timestamp"


class RecordCodec:
    """Converts records to dynamic entities and back.

    Fields whose value is not a bool, str, int, float or datetime (nested
    dicts, lists, None, ...) cannot be stored. By default they are dropped
    with a warning; with ``strict=True`` they raise ValidationError.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def to_entity(self, record: Record) -> DynamicEntity:
        """Build a dynamic entity from a record. The record is not modified."""
        fields = dict(record)
        row_key = fields.pop(ID_FIELD, None)
        etag = fields.pop(ETAG_FIELD, None)
        fields.pop(TIMESTAMP_FIELD, None)

        properties = {}
        dropped = []
        for name, value in fields.items():
            prop = EntityProperty.from_value(value)
            if prop is None:
                dropped.append(name)
                continue
            properties[name] = prop

        if dropped:
            if self.strict:
                raise ValidationError(
                    f"Record fields {dropped} have no primitive value and cannot be stored",
                    errors={name: type(fields[name]).__name__ for name in dropped}
                )
            logger.warning(f"Dropping record fields without a primitive value: {dropped}")

        return DynamicEntity(
            row_key=str(row_key) if row_key is not None else None,
            etag=str(etag) if etag is not None else None,
            properties=properties,
        )

    def to_record(self, entity: DynamicEntity) -> Record:
        """Build a record from a dynamic entity.

        ``Id``, ``Timestamp`` and ``ETag`` come first, unless the entity
        already has a property of that name or the value is unset (an entity
        that was never stored has no Timestamp).
        """
        record: Record = {}
        synthesized = (
            (ID_FIELD, entity.row_key),
            (TIMESTAMP_FIELD, entity.timestamp),
            (ETAG_FIELD, entity.etag),
        )
        for name, value in synthesized:
            if value is not None and name not in entity.properties:
                record[name] = value

        for name, prop in entity.properties.items():
            record[name] = prop.value
        return record
