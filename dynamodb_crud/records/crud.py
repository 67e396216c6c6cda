import logging
from typing import List, Optional

from ..core.row_keys import RowKeyGenerator, default_row_key_generator
from ..core.table_factory import TableFactory
from ..exceptions import ItemNotFoundError, ValidationError
from ..models.entity import DynamicEntity
from ..models.merge import MergeStrategy
from ..repositories.base import EntityCrud
from .codec import ID_FIELD, Record, RecordCodec

logger = logging.getLogger(__name__)


class RecordCrud:
    """CRUD of schema-less records in one table partition.

    Records created without an ``Id`` get a descending time-based row key,
    so ``read_all`` lists the newest records first. Updates replace the whole
    record; only the identity and the ETag check are kept from the store.

    Example:
        crud = RecordCrud(TableFactory(config), "humans", "ralston")
        erik = crud.create({"Name": "Erik", "Age": 32})
        erik["Age"] = 33
        crud.update(erik)
    """

    def __init__(
        self,
        table_factory: TableFactory,
        table_name: str,
        partition_name: str,
        codec: Optional[RecordCodec] = None,
        row_key_generator: Optional[RowKeyGenerator] = None
    ):
        self.codec = codec or RecordCodec()
        self.entities: EntityCrud[DynamicEntity] = EntityCrud(
            table_factory,
            table_name,
            partition_name,
            entity_class=DynamicEntity,
            merge_strategy=MergeStrategy.FULL_REPLACE,
            row_key_generator=row_key_generator or default_row_key_generator,
        )

    @property
    def table_name(self) -> str:
        return self.entities.table_name

    @property
    def partition_name(self) -> str:
        return self.entities.partition_name

    def create(self, record: Record) -> Record:
        """Store a new record and return it with Id, Timestamp and ETag."""
        entity = self.entities.create(self.codec.to_entity(record))
        return self.codec.to_record(entity)

    def read_all(self) -> List[Record]:
        return [self.codec.to_record(entity) for entity in self.entities.read_all()]

    def read(self, id: str) -> Record:
        """
        Raises:
            ItemNotFoundError: If no record has this id
        """
        entity = self.entities.read(id)
        if entity is None:
            raise ItemNotFoundError(
                self.table_name,
                {'PartitionKey': self.partition_name, 'RowKey': id},
                message=f"List item {id} cannot be found"
            )
        return self.codec.to_record(entity)

    def update(self, record: Record) -> Record:
        """Replace a stored record.

        The record must carry its ``Id``. When it also carries an ``ETag`` the
        write only succeeds if the stored record still has that ETag.

        Raises:
            ItemNotFoundError: If no record has this id
            ConcurrencyConflictError: If the ETag is stale
        """
        if record.get(ID_FIELD) is None:
            raise ValidationError("Record update requires an Id", errors={ID_FIELD: None})
        entity = self.entities.update(self.codec.to_entity(record))
        return self.codec.to_record(entity)

    def delete(self, id: str) -> None:
        """
        Raises:
            ItemNotFoundError: If no record has this id
        """
        self.entities.delete(id)
