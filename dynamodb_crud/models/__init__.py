from .entity import (
    DynamicEntity,
    EntityBase,
    PersistentTableEntity,
    TableEntity,
    UniversalPersistentTableEntity,
)
from .merge import Merge, MergeStrategy
from .properties import EdmType, EntityProperty, PropertyValue

__all__ = [
    # Entity shapes
    "EntityBase",
    "DynamicEntity",
    "TableEntity",
    "PersistentTableEntity",
    "UniversalPersistentTableEntity",

    # Properties
    "EdmType",
    "EntityProperty",
    "PropertyValue",

    # Merge annotations
    "Merge",
    "MergeStrategy",
]
