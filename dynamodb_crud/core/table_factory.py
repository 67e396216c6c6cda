"""
Table handle cache.

TableFactory turns a table name into a TableGateway whose table is known to
exist. Handles are cached per factory instance; the cache is a plain dict
with no locking, so two threads asking for an unseen table at the same time
may both issue a create request. Table creation tolerates that.
"""

import logging
from typing import Dict

import boto3
from botocore.config import Config

from ..config import StoreConfig
from ..exceptions import ConfigurationError
from .table_gateway import TableGateway

logger = logging.getLogger(__name__)


class TableFactory:
    """Resolves table names to live, existence-guaranteed gateways."""

    def __init__(self, config: StoreConfig):
        """Initialize the factory.

        Args:
            config: Store configuration (credentials, endpoint, naming)
        """
        self.config = config
        self._dynamodb = None
        self._tables: Dict[str, TableGateway] = {}
        config.configure_logging()

    @property
    def dynamodb(self):
        """Lazy initialization of DynamoDB resource."""
        if self._dynamodb is None:
            try:
                session = boto3.Session(
                    aws_access_key_id=self.config.aws_access_key_id,
                    aws_secret_access_key=self.config.aws_secret_access_key,
                    region_name=self.config.region_name
                )

                dynamodb_config = {
                    'region_name': self.config.region_name
                }

                if self.config.endpoint_url:
                    dynamodb_config['endpoint_url'] = self.config.endpoint_url

                # Retries are botocore's job, never this package's
                boto_config = Config(
                    retries={'max_attempts': self.config.retries},
                    max_pool_connections=self.config.max_pool_connections,
                    read_timeout=self.config.timeout_seconds,
                    connect_timeout=self.config.timeout_seconds
                )
                dynamodb_config['config'] = boto_config

                self._dynamodb = session.resource('dynamodb', **dynamodb_config)
            except Exception as e:
                logger.error(f"Failed to create DynamoDB resource: {e}")
                raise ConfigurationError(f"Failed to connect to DynamoDB: {e}", e) from e
        return self._dynamodb

    def resolve_table_name(self, table_name: str) -> str:
        """Full store name of a table (prefix and environment applied)."""
        return self.config.get_table_name(table_name)

    def get_table(self, table_name: str) -> TableGateway:
        """
        Get a gateway for the table, creating the table if it does not exist.

        Idempotent: calling it again for an existing table neither errors
        nor issues another create request.

        Args:
            table_name: Base table name

        Returns:
            Cached TableGateway
        """
        if table_name in self._tables:
            logger.debug(f"Table cache hit for {table_name}")
            return self._tables[table_name]

        gateway = TableGateway(self.dynamodb, self.resolve_table_name(table_name), self.config)
        gateway.create_if_not_exists()

        self._tables[table_name] = gateway
        return gateway

    def delete_table(self, table_name: str) -> None:
        """
        Evict the table from the cache and delete it from the store.

        Safe for names never seen before: the table is resolved (and so
        created) first, then deleted only if it exists.
        """
        gateway = self.get_table(table_name)
        self._tables.pop(table_name, None)
        if gateway.exists():
            gateway.delete()

    def is_cached(self, table_name: str) -> bool:
        return table_name in self._tables
