"""
Core components of the CRUD engine:

- TableGateway: store primitives on one DynamoDB table
- TableFactory: cached, existence-guaranteed table handles
- scan_all: continuation-token scanning
- RowKeyGenerator: descending time-based row keys
- merge_entities: field-level merge of updates
"""

from .merge_policy import merge_entities
from .row_keys import RowKeyGenerator, default_row_key_generator, next_descending_key
from .scanner import scan_all
from .table_factory import TableFactory
from .table_gateway import ContinuationToken, ScanPage, TableGateway, map_dynamodb_error

__all__ = [
    "ContinuationToken",
    "RowKeyGenerator",
    "ScanPage",
    "TableFactory",
    "TableGateway",
    "default_row_key_generator",
    "map_dynamodb_error",
    "merge_entities",
    "next_descending_key",
    "scan_all",
]
