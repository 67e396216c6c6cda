import logging
from typing import Generic, List, Optional, Type, TypeVar

from ..core.merge_policy import merge_entities
from ..core.row_keys import RowKeyGenerator
from ..core.scanner import scan_all
from ..core.table_factory import TableFactory
from ..core.table_gateway import TableGateway
from ..exceptions import ItemNotFoundError, ValidationError
from ..models.entity import DynamicEntity, EntityBase
from ..models.merge import MergeStrategy

E = TypeVar('E', bound=EntityBase)

logger = logging.getLogger(__name__)


class EntityCrud(Generic[E]):
    """Create/Read/Update/Delete of one entity type in one table partition.

    Every entity this instance writes lands in ``partition_name``. Updates
    re-read the stored entity, merge the incoming one into it with
    ``merge_strategy`` and replace it conditionally on the ETag, so
    concurrent writers get a ConcurrencyConflictError instead of a lost
    update.

    Example:
        crud = EntityCrud(TableFactory(config), "people", "ralston", Person)
        person = crud.create(Person(row_key="evee", name="Evelyn"))
        person.name = "Evelyn Ralston"
        crud.update(person)
    """

    def __init__(
        self,
        table_factory: TableFactory,
        table_name: str,
        partition_name: str,
        entity_class: Type[E] = DynamicEntity,
        merge_strategy: Optional[MergeStrategy] = None,
        row_key_generator: Optional[RowKeyGenerator] = None
    ):
        """Initialize the CRUD façade.

        Args:
            table_factory: Source of table handles
            table_name: Base name of the table
            partition_name: Partition every entity is written to and read from
            entity_class: DynamicEntity or a TableEntity subclass
            merge_strategy: How updates combine with the stored entity; defaults to
                FULL_REPLACE for DynamicEntity and FIELD_MERGE for typed entities
            row_key_generator: Supplies row keys for entities created without one;
                when None such entities are rejected
        """
        self.table_factory = table_factory
        self.table_name = table_name
        self.partition_name = partition_name
        self.entity_class = entity_class
        if merge_strategy is None:
            merge_strategy = MergeStrategy.FULL_REPLACE if entity_class is DynamicEntity else MergeStrategy.FIELD_MERGE
        self.merge_strategy = merge_strategy
        self.row_key_generator = row_key_generator

    @property
    def table(self) -> TableGateway:
        return self.table_factory.get_table(self.table_name)

    def _to_model(self, entity: DynamicEntity) -> E:
        return self.entity_class.from_dynamic_entity(entity)

    def create(self, model: E) -> E:
        """Insert a new entity into the configured partition.

        Args:
            model: Entity to insert

        Returns:
            The entity as stored, with ETag and Timestamp populated

        Raises:
            DuplicateKeyError: If the row key is already taken in the partition
            ValidationError: If the entity has no row key and no generator is set
        """
        entity = model.to_dynamic_entity()
        row_key = entity.row_key
        if not row_key:
            if self.row_key_generator is None:
                raise ValidationError(
                    f"{type(model).__name__} needs a row key to be created in {self.table_name}",
                    errors={'row_key': None}
                )
            row_key = self.row_key_generator.next_descending_key()

        entity = entity.model_copy(update={'partition_key': self.partition_name, 'row_key': row_key})
        stored = self.table.insert_entity(entity)
        logger.info(f"Created entity {row_key} in {self.table_name}/{self.partition_name}")
        return self._to_model(stored)

    def read_all(self) -> List[E]:
        """All entities of the partition, in ascending row key order."""
        entities = scan_all(self.table, self.partition_name)
        logger.info(f"Retrieved {len(entities)} entities from {self.table_name}/{self.partition_name}")
        return [self._to_model(entity) for entity in entities]

    def read(self, id: str) -> Optional[E]:
        """Entity with the given row key, or None if it does not exist."""
        entity = self.table.retrieve_entity(self.partition_name, id)
        if entity is None:
            return None
        return self._to_model(entity)

    def read_or_raise(self, id: str) -> E:
        """Entity with the given row key.

        Raises:
            ItemNotFoundError: If it does not exist
        """
        model = self.read(id)
        if model is None:
            raise ItemNotFoundError(self.table_name, self._key(id))
        return model

    def update(self, model: E) -> E:
        """Merge an update into the stored entity and replace it.

        The write is conditional on the merged ETag: the ETag of ``model``
        when it has one, else the one just read.

        Returns:
            The entity as stored, with a fresh ETag and Timestamp

        Raises:
            ItemNotFoundError: If no entity has the row key
            ConcurrencyConflictError: If the stored ETag no longer matches
        """
        if not model.row_key:
            raise ValidationError(
                f"{type(model).__name__} needs a row key to be updated in {self.table_name}",
                errors={'row_key': None}
            )

        existing = self.read(model.row_key)
        if existing is None:
            raise ItemNotFoundError(self.table_name, self._key(model.row_key))

        merged = merge_entities(existing, model, self.merge_strategy)
        stored = self.table.replace_entity(merged.to_dynamic_entity())
        logger.info(f"Updated entity {model.row_key} in {self.table_name}/{self.partition_name}")
        return self._to_model(stored)

    def delete(self, id: str) -> None:
        """Delete the entity with the given row key.

        Raises:
            ItemNotFoundError: If it does not exist, including on a repeated delete
            ConcurrencyConflictError: If it changed between the read and the delete
        """
        table = self.table
        existing = table.retrieve_entity(self.partition_name, id)
        if existing is None:
            raise ItemNotFoundError(self.table_name, self._key(id))

        table.delete_entity(self.partition_name, id, existing.etag)
        logger.info(f"Deleted entity {id} from {self.table_name}/{self.partition_name}")

    def _key(self, row_key: str) -> dict:
        return {'PartitionKey': self.partition_name, 'RowKey': row_key}
