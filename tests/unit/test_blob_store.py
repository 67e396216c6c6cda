"""
Tests for BlobStore against a moto S3.
"""

from datetime import timedelta
from io import BytesIO
from unittest.mock import Mock

import boto3
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from dynamodb_crud import BlobFile, BlobStore, StoreConfig
from dynamodb_crud.blobs.blob_store import map_s3_error
from dynamodb_crud.exceptions import ConfigurationError, NotFoundError, StorageUnavailableError, ValidationError


@pytest.fixture
def blob_store(store_config, mock_store):
    return BlobStore(store_config)


class TestBlobStore:

    def test_container_created_on_first_use(self, blob_store):
        blob_store.get_container("documents")

        buckets = [b['Name'] for b in boto3.client('s3', region_name='us-east-1').list_buckets()['Buckets']]
        assert "documents" in buckets

    def test_container_is_cached(self, blob_store):
        blob_store.get_container("documents")
        blob_store._s3 = Mock()

        assert blob_store.get_container("documents") == "documents"
        blob_store._s3.head_bucket.assert_not_called()

    def test_upload_and_download(self, blob_store):
        blob_store.upload_blob("documents", "hello.txt", BytesIO(b"hello"))

        stream = blob_store.download_blob("documents", "hello.txt")

        assert stream.read() == b"hello"

    def test_content_type_guessed(self, blob_store):
        blob_store.upload_blob("documents", "page.html", BytesIO(b"<p/>"))

        head = blob_store.s3.head_object(Bucket="documents", Key="page.html")
        assert head['ContentType'] == "text/html"

    def test_download_missing(self, blob_store):
        assert blob_store.download_blob("documents", "missing.txt") is None

    def test_exists_and_delete(self, blob_store):
        blob_store.upload_blob("documents", "hello.txt", BytesIO(b"hello"))
        assert blob_store.blob_exists("documents", "hello.txt")

        blob_store.delete_blob("documents", "hello.txt")

        assert not blob_store.blob_exists("documents", "hello.txt")
        blob_store.delete_blob("documents", "hello.txt")

    def test_upload_requires_stream(self, blob_store):
        with pytest.raises(ValidationError):
            blob_store.upload_blob("documents", "hello.txt", None)

    def test_signed_urls(self, blob_store):
        read_url = blob_store.issue_signed_url("documents", "hello.txt", timedelta(minutes=5))
        write_url = blob_store.issue_signed_url("documents", "hello.txt", permissions='w')

        assert "hello.txt" in read_url
        assert "Expires=300" in read_url or "X-Amz-Expires=300" in read_url
        assert "hello.txt" in write_url

    def test_signed_url_validation(self, blob_store):
        with pytest.raises(ValidationError):
            blob_store.issue_signed_url("documents", "hello.txt", permissions='x')
        with pytest.raises(ValidationError):
            blob_store.issue_signed_url("documents", "hello.txt", timedelta(0))

    def test_blob_url(self, blob_store):
        assert blob_store.get_blob_url("documents", "a.txt") == "https://documents.s3.us-east-1.amazonaws.com/a.txt"

    def test_blob_url_with_endpoint(self):
        store = BlobStore(StoreConfig(environment="test", s3_endpoint_url="http://localhost:4566/"))

        assert store.get_blob_url("documents", "a.txt") == "http://localhost:4566/documents/a.txt"

    def test_blob_file_round_trip(self, blob_store):
        blob_file = BlobFile(container_name="documents", file_name="report.pdf", name="Report")

        uploaded = blob_store.upload_file(blob_file, BytesIO(b"%PDF"))

        assert uploaded.url.endswith("/report.pdf")
        assert blob_store.download_file(uploaded).read() == b"%PDF"
        blob_store.delete_file(uploaded)
        assert blob_store.download_file(uploaded) is None


class TestS3ErrorMapping:

    def error(self, code):
        return ClientError({'Error': {'Code': code, 'Message': 'msg'}}, 'GetObject')

    def test_not_found(self):
        assert isinstance(map_s3_error(self.error('NoSuchKey'), "GetObject", "c", "b"), NotFoundError)

    def test_access_denied(self):
        assert isinstance(map_s3_error(self.error('AccessDenied'), "GetObject", "c"), ConfigurationError)

    def test_invalid_bucket(self):
        assert isinstance(map_s3_error(self.error('InvalidBucketName'), "CreateBucket", "c"), ValidationError)

    def test_unknown_code(self):
        assert isinstance(map_s3_error(self.error('SlowDown'), "PutObject", "c"), StorageUnavailableError)

    def test_connection_error(self):
        error = EndpointConnectionError(endpoint_url="http://localhost:4566")

        assert isinstance(map_s3_error(error, "PutObject", "c"), StorageUnavailableError)
