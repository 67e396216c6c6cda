"""
DynamoDB Table Gateway

This module provides the store primitives the CRUD engine is built on:

- insert_entity   (fails with DuplicateKeyError)
- replace_entity  (fails with ConcurrencyConflictError on a stale ETag)
- retrieve_entity (returns None when absent)
- delete_entity   (fails with ConcurrencyConflictError on a stale ETag)
- scan_page       (one page of a partition or whole-table scan)
- create_if_not_exists / exists / delete for the table itself

DynamoDB has no server-side ETag or Timestamp, so the gateway stamps every
write with a fresh ETag and a UTC Timestamp and enforces the ETag with a
ConditionExpression. The check itself is evaluated by DynamoDB, so
concurrent writers race on the server and never in this process.

Retries are left to botocore's client configuration.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    NoRegionError,
    ParamValidationError,
    PartialCredentialsError,
    ReadTimeoutError,
)
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import (
    ConcurrencyConflictError,
    ConfigurationError,
    ConflictError,
    DuplicateKeyError,
    ItemNotFoundError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from ..models.entity import ETAG, PARTITION_KEY, ROW_KEY, DynamicEntity
from ..utils import utc_now

logger = logging.getLogger(__name__)

ContinuationToken = Dict[str, Any]

CONDITIONAL_CHECK_FAILED = 'ConditionalCheckFailedException'


def map_dynamodb_error(
    error: Exception,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None
) -> Exception:
    """Map a botocore error to a domain-specific exception.

    Args:
        error: The botocore ClientError or BotoCoreError
        operation: The operation that failed (e.g., "GetItem", "PutItem")
        table_name: The table name
        resource_id: Optional resource identifier (row key) for context

    Returns:
        Appropriate domain exception
    """
    if isinstance(error, BotoCoreError):
        return _map_botocore_error(error, operation, table_name)

    error_code = error.response['Error']['Code']
    error_message = error.response['Error']['Message']

    context = f"{operation} on {table_name}"
    if resource_id:
        context += f" (resource: {resource_id})"

    full_message = f"{context}: {error_message}"

    if error_code == CONDITIONAL_CHECK_FAILED:
        return ConflictError(f"Conditional check failed - {full_message}", resource_id, original_error=error)

    elif error_code == 'ResourceNotFoundException':
        if resource_id:
            return ItemNotFoundError(table_name, {'resource_id': resource_id}, original_error=error)
        return NotFoundError(f"Table not found - {full_message}", 'table', table_name, original_error=error)

    elif error_code == 'ResourceInUseException':
        return ConflictError(f"Resource in use - {full_message}", resource_id, original_error=error)

    elif error_code in ['ValidationException', 'ItemCollectionSizeLimitExceededException', 'LimitExceededException']:
        return ValidationError(f"Validation failed - {full_message}", original_error=error)

    elif error_code in ['TransactionConflictException']:
        return ConflictError(f"Transaction conflict - {full_message}", resource_id, original_error=error)

    elif error_code in [
        'UnrecognizedClientException', 'AccessDeniedException', 'InvalidEndpointException',
        'IncompleteSignatureException', 'InvalidSignatureException', 'MissingAuthenticationToken',
        'ExpiredTokenException', 'TokenRefreshRequiredException',
    ]:
        return ConfigurationError(f"Authentication/endpoint failure - {full_message}", original_error=error)

    elif error_code in [
        'ProvisionedThroughputExceededException', 'RequestLimitExceeded', 'ThrottlingException',
        'SlowDown', 'BandwidthLimitExceeded', 'RequestThrottledException', 'TooManyRequestsException',
    ]:
        return StorageUnavailableError(f"Throttling - {full_message}", original_error=error)

    elif error_code in [
        'InternalServerError', 'ServiceUnavailable', 'ServiceUnavailableException', 'ServiceException',
        'InternalFailure', 'ServiceFailureException', 'ServiceTimeout',
        'RequestTimeoutException', 'RequestExpiredException',
    ]:
        return StorageUnavailableError(f"Service unavailable - {full_message}", original_error=error)

    logger.warning(f"Unknown DynamoDB error code '{error_code}' mapped to StorageUnavailableError")
    return StorageUnavailableError(f"DynamoDB operation failed - {full_message}", original_error=error)


def _map_botocore_error(error: BotoCoreError, operation: str, table_name: str) -> Exception:
    full_message = f"{operation} on {table_name}: {error}"
    if isinstance(error, (NoCredentialsError, PartialCredentialsError, NoRegionError)):
        return ConfigurationError(f"Missing connection settings - {full_message}", original_error=error)
    if isinstance(error, ParamValidationError):
        return ValidationError(f"Invalid request parameters - {full_message}", original_error=error)
    if isinstance(error, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return StorageUnavailableError(f"Store unreachable - {full_message}", original_error=error)
    return StorageUnavailableError(f"DynamoDB operation failed - {full_message}", original_error=error)


class ScanPage(BaseModel):
    """One page of a scan and the token of the next page (None when exhausted)."""

    entities: List[DynamicEntity] = Field(default_factory=list)
    continuation_token: Optional[ContinuationToken] = None

    model_config = ConfigDict(frozen=True)


def new_etag() -> str:
    return f'W/"{uuid.uuid4().hex}"'


class TableGateway:
    """
    Handle on one DynamoDB table.

    Instances are created and cached by TableFactory; the table is
    guaranteed to exist once the factory hands the gateway out.
    """

    def __init__(self, dynamodb, table_name: str, config=None):
        """Initialize table gateway.

        Args:
            dynamodb: boto3 DynamoDB service resource
            table_name: Full name of the DynamoDB table
            config: StoreConfig used for table creation settings
        """
        self.dynamodb = dynamodb
        self.table_name = table_name
        self.config = config
        self._table = None

    @property
    def table(self):
        """boto3 Table resource, created on first access."""
        if self._table is None:
            self._table = self.dynamodb.Table(self.table_name)
        return self._table

    # ------------------------------------------------------------------
    # Table lifecycle
    # ------------------------------------------------------------------

    def create_if_not_exists(self) -> bool:
        """Create the table unless it already exists.

        Concurrent creators are tolerated: ResourceInUseException means some
        other caller got there first.

        Returns:
            True if this call created the table
        """
        create_kwargs = {
            'TableName': self.table_name,
            'KeySchema': [
                {'AttributeName': PARTITION_KEY, 'KeyType': 'HASH'},
                {'AttributeName': ROW_KEY, 'KeyType': 'RANGE'},
            ],
            'AttributeDefinitions': [
                {'AttributeName': PARTITION_KEY, 'AttributeType': 'S'},
                {'AttributeName': ROW_KEY, 'AttributeType': 'S'},
            ],
        }
        billing_mode = self.config.billing_mode if self.config else 'PAY_PER_REQUEST'
        create_kwargs['BillingMode'] = billing_mode
        if billing_mode == 'PROVISIONED':
            create_kwargs['ProvisionedThroughput'] = {
                'ReadCapacityUnits': self.config.read_capacity_units,
                'WriteCapacityUnits': self.config.write_capacity_units,
            }

        try:
            self._table = self.dynamodb.create_table(**create_kwargs)
            self._table.wait_until_exists()
            logger.info(f"Created table {self.table_name}")
            return True
        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceInUseException':
                # may still be CREATING under another caller
                logger.debug(f"Table {self.table_name} already exists, waiting for it to become active")
                try:
                    self.table.wait_until_exists()
                except (ClientError, BotoCoreError) as wait_error:
                    raise map_dynamodb_error(wait_error, "DescribeTable", self.table_name) from wait_error
                return False
            raise map_dynamodb_error(e, "CreateTable", self.table_name) from e
        except BotoCoreError as e:
            raise map_dynamodb_error(e, "CreateTable", self.table_name) from e

    def exists(self) -> bool:
        """Whether the table currently exists in the store."""
        try:
            self.dynamodb.meta.client.describe_table(TableName=self.table_name)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceNotFoundException':
                return False
            raise map_dynamodb_error(e, "DescribeTable", self.table_name) from e
        except BotoCoreError as e:
            raise map_dynamodb_error(e, "DescribeTable", self.table_name) from e

    def delete(self) -> None:
        """Delete the table and wait until it is gone."""
        try:
            self.table.delete()
            self.table.wait_until_not_exists()
            self._table = None
            logger.info(f"Deleted table {self.table_name}")
        except (ClientError, BotoCoreError) as e:
            raise map_dynamodb_error(e, "DeleteTable", self.table_name) from e

    # ------------------------------------------------------------------
    # Entity primitives
    # ------------------------------------------------------------------

    def _stamp(self, entity: DynamicEntity) -> DynamicEntity:
        return entity.model_copy(update={'etag': new_etag(), 'timestamp': utc_now()})

    def insert_entity(self, entity: DynamicEntity) -> DynamicEntity:
        """
        Insert a new entity.

        Returns:
            The entity as stored, with its ETag and Timestamp

        Raises:
            DuplicateKeyError: If (PartitionKey, RowKey) already exists
        """
        stored = self._stamp(entity)
        logger.debug(
            f"Inserting entity into table '{self.table_name}' with partition "
            f"'{entity.partition_key}' and row '{entity.row_key}'"
        )
        try:
            self.table.put_item(
                Item=stored.to_item(),
                ConditionExpression=Attr(ROW_KEY).not_exists()
            )
        except ClientError as e:
            if e.response['Error']['Code'] == CONDITIONAL_CHECK_FAILED:
                raise DuplicateKeyError(
                    f"Entity already exists in {self.table_name} "
                    f"(partition: {entity.partition_key}, row: {entity.row_key})",
                    entity.row_key,
                    original_error=e
                ) from e
            raise map_dynamodb_error(e, "PutItem", self.table_name, entity.row_key) from e
        except BotoCoreError as e:
            raise map_dynamodb_error(e, "PutItem", self.table_name, entity.row_key) from e

        logger.info(f"Inserted entity in {self.table_name}: {entity.partition_key}/{entity.row_key}")
        return stored

    def replace_entity(self, entity: DynamicEntity, if_match: Optional[str] = None) -> DynamicEntity:
        """
        Replace an existing entity if its stored ETag matches.

        Args:
            entity: Full new value of the entity
            if_match: ETag the stored entity must carry; defaults to entity.etag.
                '*' only requires the entity to exist.

        Returns:
            The entity as stored, with a fresh ETag and Timestamp

        Raises:
            ConcurrencyConflictError: If the stored ETag differs or the entity is gone
        """
        if_match = if_match or entity.etag
        if not if_match:
            raise ValidationError(f"Replace on {self.table_name} requires an ETag", errors={'row_key': entity.row_key})

        stored = self._stamp(entity)
        try:
            self.table.put_item(
                Item=stored.to_item(),
                ConditionExpression=self._if_match(if_match)
            )
        except ClientError as e:
            if e.response['Error']['Code'] == CONDITIONAL_CHECK_FAILED:
                raise ConcurrencyConflictError(
                    f"ETag mismatch replacing {entity.partition_key}/{entity.row_key} in {self.table_name}",
                    entity.row_key,
                    original_error=e
                ) from e
            raise map_dynamodb_error(e, "PutItem", self.table_name, entity.row_key) from e
        except BotoCoreError as e:
            raise map_dynamodb_error(e, "PutItem", self.table_name, entity.row_key) from e

        logger.info(f"Replaced entity in {self.table_name}: {entity.partition_key}/{entity.row_key}")
        return stored

    def retrieve_entity(self, partition_key: str, row_key: str) -> Optional[DynamicEntity]:
        """Point read of one entity; None when absent."""
        logger.debug(
            f"Retrieving entity from table '{self.table_name}' with partition '{partition_key}' and row '{row_key}'"
        )
        try:
            response = self.table.get_item(
                Key={PARTITION_KEY: partition_key, ROW_KEY: row_key},
                ConsistentRead=True
            )
        except (ClientError, BotoCoreError) as e:
            raise map_dynamodb_error(e, "GetItem", self.table_name, row_key) from e

        if 'Item' not in response:
            return None
        return DynamicEntity.from_item(response['Item'])

    def delete_entity(self, partition_key: str, row_key: str, if_match: str) -> None:
        """
        Delete an entity if its stored ETag matches.

        Raises:
            ConcurrencyConflictError: If the stored ETag differs or the entity is gone
        """
        try:
            self.table.delete_item(
                Key={PARTITION_KEY: partition_key, ROW_KEY: row_key},
                ConditionExpression=self._if_match(if_match)
            )
        except ClientError as e:
            if e.response['Error']['Code'] == CONDITIONAL_CHECK_FAILED:
                raise ConcurrencyConflictError(
                    f"ETag mismatch deleting {partition_key}/{row_key} in {self.table_name}",
                    row_key,
                    original_error=e
                ) from e
            raise map_dynamodb_error(e, "DeleteItem", self.table_name, row_key) from e
        except BotoCoreError as e:
            raise map_dynamodb_error(e, "DeleteItem", self.table_name, row_key) from e

        logger.info(f"Deleted entity from {self.table_name}: {partition_key}/{row_key}")

    def scan_page(
        self,
        partition_key: Optional[str] = None,
        continuation_token: Optional[ContinuationToken] = None,
        page_size: Optional[int] = None
    ) -> ScanPage:
        """
        Fetch one page of entities.

        Scoped to a partition this is a Query, so rows come back in ascending
        RowKey order. Without a partition it is a whole-table Scan.

        Args:
            partition_key: Partition to read, or None for the whole table
            continuation_token: Token returned by the previous page
            page_size: Maximum number of entities DynamoDB evaluates for the page
        """
        kwargs: Dict[str, Any] = {'ConsistentRead': True}
        if continuation_token:
            kwargs['ExclusiveStartKey'] = continuation_token
        if page_size:
            kwargs['Limit'] = page_size

        operation = "Query" if partition_key is not None else "Scan"
        try:
            if partition_key is not None:
                response = self.table.query(
                    KeyConditionExpression=Key(PARTITION_KEY).eq(partition_key),
                    **kwargs
                )
            else:
                response = self.table.scan(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise map_dynamodb_error(e, operation, self.table_name) from e

        entities = [DynamicEntity.from_item(item) for item in response.get('Items', [])]
        logger.debug(f"{operation} on {self.table_name} returned {len(entities)} entities")
        return ScanPage(entities=entities, continuation_token=response.get('LastEvaluatedKey'))

    @staticmethod
    def _if_match(etag: str):
        if etag == '*':
            return Attr(ROW_KEY).exists()
        return Attr(ETAG).eq(etag)
