"""
Merge of an update against the stored entity.

Two strategies:

- FULL_REPLACE: the incoming entity is written as-is, only the identity
  (PartitionKey, RowKey, ETag, Timestamp) comes from the stored entity.
- FIELD_MERGE: every declared field goes through its merge annotation.
  A DynamicEntity has no declared fields and so no annotations; it is
  always fully replaced, whichever strategy is asked for.

In both cases the ETag the caller supplied wins over the stored one, so a
caller holding a stale copy gets a concurrency conflict on write.
"""

from typing import Any, Dict, TypeVar

from ..models.entity import DynamicEntity, EntityBase, TableEntity
from ..models.merge import MergeStrategy

E = TypeVar('E', bound=EntityBase)


def merge_entities(existing: E, incoming: E, strategy: MergeStrategy = MergeStrategy.FIELD_MERGE) -> E:
    """Combine the stored entity with an update.

    Args:
        existing: Entity currently in the store
        incoming: Entity the caller wants to write
        strategy: FULL_REPLACE or FIELD_MERGE

    Returns:
        The entity to write, carrying the ETag the write must match
    """
    if strategy == MergeStrategy.FULL_REPLACE or isinstance(existing, DynamicEntity):
        merged = incoming.model_copy(update=existing.system_values())
    elif isinstance(existing, TableEntity):
        merged = existing.model_copy(update=_merge_fields(existing, incoming))
    else:
        raise TypeError(f"Cannot field-merge entities of type {type(existing).__name__}")

    return merged.model_copy(update={'etag': incoming.etag or existing.etag})


def _merge_fields(existing: TableEntity, incoming: TableEntity) -> Dict[str, Any]:
    policies = type(existing).get_merge_policies()
    values: Dict[str, Any] = {}

    for name in type(existing).property_fields():
        existing_value = getattr(existing, name)
        incoming_value = getattr(incoming, name, existing_value)
        policy = policies.get(name)

        if policy is not None and policy.keeps_existing:
            values[name] = existing_value
        elif policy is not None and policy.allow_once:
            values[name] = incoming_value if _is_default(existing, name) else existing_value
        else:
            values[name] = incoming_value

    return values


def _is_default(entity: TableEntity, name: str) -> bool:
    value = getattr(entity, name)
    if value is None or value == "":
        return True
    default = type(entity).model_fields[name].get_default(call_default_factory=True)
    return value == default
