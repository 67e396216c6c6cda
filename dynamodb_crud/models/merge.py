"""
Merge annotations for typed entities.

A typed entity declares its field-level update rules next to its fields:

```python
class Customer(TableEntity):
    merge_policies = (
        ("signup_source", Merge(allow_create=False)),
        ("external_id", Merge(allow_once=True)),
    )

    signup_source: Optional[str] = None
    external_id: Optional[str] = None
    name: Optional[str] = None
```

Unannotated fields are always overwritten by the incoming value on update.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Merge(BaseModel):
    """Update rule for a single field.

    - allow_create=False: the stored value always wins on update
    - allow_update=False: immutable after creation (same effect on update)
    - allow_once=True: may move from its default/empty value once, then frozen
    """

    allow_create: bool = True
    allow_update: bool = True
    allow_once: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def keeps_existing(self) -> bool:
        return not self.allow_create or not self.allow_update


class MergeStrategy(str, Enum):
    """How an update combines the stored entity with the incoming one."""
    FULL_REPLACE = "full_replace"
    FIELD_MERGE = "field_merge"
