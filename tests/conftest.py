"""
Test configuration and fixtures for the DynamoDB CRUD engine.

Provides a moto-backed DynamoDB/S3 environment and the typed entities used
across the CRUD tests.
"""

import os

import pytest
from moto import mock_aws

from dynamodb_crud import EntityCrud, RecordCrud, StoreConfig, TableFactory

from .helpers import Person


@pytest.fixture(autouse=True)
def aws_credentials():
    """Fake credentials so nothing can ever reach a real account."""
    env = {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SECURITY_TOKEN": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_DEFAULT_REGION": "us-east-1",
    }
    original = {key: os.environ.get(key) for key in env}
    os.environ.update(env)
    yield
    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def store_config():
    """Store configuration for mocked testing."""
    return StoreConfig(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name="us-east-1",
        endpoint_url=None,  # Use default AWS endpoint for moto
        s3_endpoint_url=None,
        environment="test",
        table_prefix="crud"
    )


@pytest.fixture
def mock_store():
    """Activate moto for DynamoDB and S3."""
    with mock_aws():
        yield


@pytest.fixture
def table_factory(store_config, mock_store):
    return TableFactory(store_config)


@pytest.fixture
def person_crud(table_factory):
    """Typed CRUD over the People table, partition 'Ralston'."""
    return EntityCrud(table_factory, "People", "Ralston", entity_class=Person)


@pytest.fixture
def record_crud(table_factory):
    """Schema-less CRUD over the Humans table, partition 'Ralston'."""
    return RecordCrud(table_factory, "Humans", "Ralston")
