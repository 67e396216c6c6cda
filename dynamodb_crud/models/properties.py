"""
Typed entity properties.

A property is a primitive value tagged with its store type. Only five types
exist; every other value shape is rejected by ``EntityProperty.from_value``
(it returns None and the caller decides whether that is an error).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

from ..exceptions import ValidationError
from ..utils import is_int32, parse_utc, to_single, to_utc

PropertyValue = Union[bool, str, int, float, datetime]


class EdmType(str, Enum):
    """Store type tag of a property."""
    BOOLEAN = "Edm.Boolean"
    STRING = "Edm.String"
    INT32 = "Edm.Int32"
    SINGLE = "Edm.Single"
    DATETIME = "Edm.DateTime"


class EntityProperty(BaseModel):
    """A single typed property value."""

    edm_type: EdmType
    value: Any

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_value(cls, value: Any) -> Optional['EntityProperty']:
        """Coerce a Python value into a typed property.

        bool → Boolean, str → String, int → Int32, float → Single,
        datetime → DateTime (converted to UTC). Returns None for any other
        shape, including None, dicts and lists.

        Raises:
            ValidationError: If an integer does not fit in 32 bits
        """
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls(edm_type=EdmType.BOOLEAN, value=value)
        if isinstance(value, str):
            return cls(edm_type=EdmType.STRING, value=value)
        if isinstance(value, int):
            if not is_int32(value):
                raise ValidationError(
                    f"Integer value {value} does not fit in a 32-bit property",
                    errors={'value': value}
                )
            return cls(edm_type=EdmType.INT32, value=value)
        if isinstance(value, float):
            return cls(edm_type=EdmType.SINGLE, value=to_single(value))
        if isinstance(value, datetime):
            return cls(edm_type=EdmType.DATETIME, value=to_utc(value))
        return None

    def to_attribute(self) -> Dict[str, Any]:
        """Serialize to the ``{Type, Value}`` part of a stored property entry."""
        if self.edm_type == EdmType.DATETIME:
            value = self.value.isoformat()
        elif self.edm_type in (EdmType.INT32, EdmType.SINGLE):
            # boto3 rejects floats; repr keeps the exact double
            value = Decimal(repr(self.value)) if self.edm_type == EdmType.SINGLE else Decimal(self.value)
        else:
            value = self.value
        return {'Type': self.edm_type.value, 'Value': value}

    @classmethod
    def from_attribute(cls, edm_type: str, value: Any) -> 'EntityProperty':
        """Rebuild a property from its stored type tag and value."""
        edm_type = EdmType(edm_type)
        if edm_type == EdmType.DATETIME:
            value = parse_utc(value)
        elif edm_type == EdmType.INT32:
            value = int(value)
        elif edm_type == EdmType.SINGLE:
            value = float(value)
        elif edm_type == EdmType.BOOLEAN:
            value = bool(value)
        return cls(edm_type=edm_type, value=value)
