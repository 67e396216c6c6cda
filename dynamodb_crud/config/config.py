import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file if it exists
load_dotenv()


class StoreConfig(BaseModel):
    """Configuration for the DynamoDB table store and the S3 blob store."""

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key"
    )

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region name"
    )

    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL (for local development)"
    )

    s3_endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("S3_ENDPOINT_URL"),
        description="S3 endpoint URL used by the blob store (for local development)"
    )

    # Table configuration
    table_prefix: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE_PREFIX", ""),
        description="Prefix to add to all table names"
    )

    billing_mode: str = Field(
        default="PAY_PER_REQUEST",
        description="Billing mode for tables created on first reference"
    )

    read_capacity_units: int = Field(
        default=5,
        description="Read capacity for PROVISIONED tables"
    )

    write_capacity_units: int = Field(
        default=5,
        description="Write capacity for PROVISIONED tables"
    )

    # Connection settings
    max_pool_connections: int = Field(
        default=50,
        description="Maximum number of connections in the connection pool"
    )

    retries: int = Field(
        default=3,
        description="Number of retry attempts botocore makes for failed requests"
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Request timeout in seconds"
    )

    # Environment settings
    environment: str = Field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "dev"),
        description="Current environment (dev, test, staging, prod)"
    )

    # Logging settings
    enable_debug_logging: bool = Field(
        default_factory=lambda: os.getenv("DYNAMODB_DEBUG_LOGGING", "false").lower() == "true",
        description="Enable debug logging for table store operations"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region name."""
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        valid_environments = ['dev', 'test', 'staging', 'prod']
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v

    @field_validator('billing_mode')
    @classmethod
    def validate_billing_mode(cls, v):
        """Validate DynamoDB billing mode."""
        if v not in ('PAY_PER_REQUEST', 'PROVISIONED'):
            raise ValueError("Billing mode must be PAY_PER_REQUEST or PROVISIONED")
        return v

    def get_table_name(self, base_name: str) -> str:
        """Get the full table name with prefix and environment.

        Args:
            base_name: Base table name

        Returns:
            Full table name with prefix and environment
        """
        parts = []

        if self.table_prefix:
            parts.append(self.table_prefix)

        if self.environment != "prod":
            parts.append(self.environment)

        parts.append(base_name)

        return "_".join(parts)

    def configure_logging(self) -> None:
        """Switch the package logger to DEBUG when debug logging is enabled."""
        if self.enable_debug_logging:
            logging.getLogger("dynamodb_crud").setLevel(logging.DEBUG)

    @classmethod
    def from_env(cls) -> 'StoreConfig':
        """Create configuration from environment variables.

        Returns:
            StoreConfig instance
        """
        return cls()

    @classmethod
    def for_local_development(cls) -> 'StoreConfig':
        """Create configuration for DynamoDB Local / LocalStack development.

        Returns:
            StoreConfig instance configured for local development
        """
        return cls(
            aws_access_key_id="local",
            aws_secret_access_key="local",
            region_name="us-east-1",
            endpoint_url="http://localhost:8000",
            s3_endpoint_url="http://localhost:4566",
            environment="dev",
            enable_debug_logging=True
        )

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=True
    )
