"""
DynamoDB CRUD

Generic partitioned-table CRUD on DynamoDB: cached table handles, ETag-based
optimistic concurrency, field-level merge annotations, schema-less records
with descending time-based row keys, continuation-token scanning, and S3
blob storage on the same boto3 stack.
"""

from .blobs import BlobFile, BlobStore
from .config import StoreConfig
from .core import (
    RowKeyGenerator,
    ScanPage,
    TableFactory,
    TableGateway,
    merge_entities,
    scan_all,
)
from .exceptions import (
    ConcurrencyConflictError,
    ConfigurationError,
    ConflictError,
    DuplicateKeyError,
    DynamoCrudError,
    ItemNotFoundError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from .models import (
    DynamicEntity,
    EdmType,
    EntityProperty,
    Merge,
    MergeStrategy,
    PersistentTableEntity,
    TableEntity,
    UniversalPersistentTableEntity,
)
from .records import Record, RecordCodec, RecordCrud
from .repositories import EntityCrud

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "StoreConfig",

    # Exceptions
    "ConcurrencyConflictError",
    "ConfigurationError",
    "ConflictError",
    "DuplicateKeyError",
    "DynamoCrudError",
    "ItemNotFoundError",
    "NotFoundError",
    "StorageUnavailableError",
    "ValidationError",

    # Models
    "DynamicEntity",
    "EdmType",
    "EntityProperty",
    "Merge",
    "MergeStrategy",
    "PersistentTableEntity",
    "TableEntity",
    "UniversalPersistentTableEntity",

    # Core
    "RowKeyGenerator",
    "ScanPage",
    "TableFactory",
    "TableGateway",
    "merge_entities",
    "scan_all",

    # CRUD
    "EntityCrud",
    "Record",
    "RecordCodec",
    "RecordCrud",

    # Blobs
    "BlobFile",
    "BlobStore",
]
