"""
S3 blob storage.

Blobs live in "containers", which map one-to-one to S3 buckets. Containers
are created on first reference and cached per BlobStore instance (plain dict,
no locking, same as the table cache).
"""

import logging
import mimetypes
from datetime import timedelta
from io import BytesIO
from typing import BinaryIO, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import Field

from ..config import StoreConfig
from ..exceptions import ConfigurationError, NotFoundError, StorageUnavailableError, ValidationError
from ..models.entity import TableEntity
from ..models.merge import Merge

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = ('404', 'NoSuchKey', 'NoSuchBucket', 'NotFound')
SIGNED_URL_METHODS = {'r': 'get_object', 'w': 'put_object'}


def map_s3_error(error: Exception, operation: str, container: str, blob_name: Optional[str] = None) -> Exception:
    """Map an S3 botocore error to a domain-specific exception."""
    target = f"{container}/{blob_name}" if blob_name else container
    if isinstance(error, BotoCoreError):
        return StorageUnavailableError(f"{operation} on {target} failed: {error}", original_error=error)

    code = error.response['Error']['Code']
    message = f"{operation} on {target}: {error.response['Error'].get('Message', code)}"
    if code in NOT_FOUND_CODES:
        return NotFoundError(f"Not found - {message}", 'blob' if blob_name else 'container', target, original_error=error)
    if code in ('AccessDenied', 'InvalidAccessKeyId', 'SignatureDoesNotMatch', 'ExpiredToken'):
        return ConfigurationError(f"Authentication failure - {message}", original_error=error)
    if code in ('InvalidBucketName', 'KeyTooLongError', 'InvalidArgument'):
        return ValidationError(f"Invalid request - {message}", original_error=error)

    logger.warning(f"Unknown S3 error code '{code}' mapped to StorageUnavailableError")
    return StorageUnavailableError(f"S3 operation failed - {message}", original_error=error)


class BlobFile(TableEntity):
    """Reference to a stored blob.

    Storable in a table like any typed entity; the container is fixed once
    the row exists.
    """

    merge_policies = (
        ("container_name", Merge(allow_update=False)),
    )

    container_name: str = Field(..., min_length=3, max_length=63)
    file_name: str = Field(..., min_length=1, max_length=1024)
    name: Optional[str] = Field(default=None, max_length=256)
    url: Optional[str] = None


class BlobStore:
    """Upload, download and delete blobs, and issue signed URLs for them."""

    def __init__(self, config: StoreConfig):
        self.config = config
        self._s3 = None
        self._containers: Dict[str, str] = {}

    @property
    def s3(self):
        """Lazy initialization of the S3 client."""
        if self._s3 is None:
            try:
                session = boto3.Session(
                    aws_access_key_id=self.config.aws_access_key_id,
                    aws_secret_access_key=self.config.aws_secret_access_key,
                    region_name=self.config.region_name
                )

                s3_config = {
                    'region_name': self.config.region_name,
                    'config': Config(
                        retries={'max_attempts': self.config.retries},
                        max_pool_connections=self.config.max_pool_connections,
                        read_timeout=self.config.timeout_seconds,
                        connect_timeout=self.config.timeout_seconds
                    )
                }
                if self.config.s3_endpoint_url:
                    s3_config['endpoint_url'] = self.config.s3_endpoint_url

                self._s3 = session.client('s3', **s3_config)
            except Exception as e:
                logger.error(f"Failed to create S3 client: {e}")
                raise ConfigurationError(f"Failed to connect to S3: {e}", e) from e
        return self._s3

    def get_container(self, container: str) -> str:
        """Bucket name of the container, creating the bucket if it does not exist."""
        if container in self._containers:
            return self._containers[container]

        try:
            self.s3.head_bucket(Bucket=container)
        except ClientError as e:
            if e.response['Error']['Code'] not in NOT_FOUND_CODES:
                raise map_s3_error(e, "HeadBucket", container) from e
            self._create_bucket(container)
        except BotoCoreError as e:
            raise map_s3_error(e, "HeadBucket", container) from e

        self._containers[container] = container
        return container

    def _create_bucket(self, container: str) -> None:
        kwargs = {'Bucket': container}
        if self.config.region_name != 'us-east-1':
            kwargs['CreateBucketConfiguration'] = {'LocationConstraint': self.config.region_name}
        try:
            self.s3.create_bucket(**kwargs)
            logger.info(f"Created container {container}")
        except ClientError as e:
            if e.response['Error']['Code'] in ('BucketAlreadyOwnedByYou',):
                return
            raise map_s3_error(e, "CreateBucket", container) from e
        except BotoCoreError as e:
            raise map_s3_error(e, "CreateBucket", container) from e

    def upload_blob(self, container: str, blob_name: str, stream: BinaryIO) -> None:
        """Upload a stream; the content type is guessed from the blob name."""
        if stream is None:
            raise ValidationError("Upload requires a stream", errors={'stream': None})

        bucket = self.get_container(container)
        content_type = mimetypes.guess_type(blob_name)[0] or 'application/octet-stream'
        logger.info(f"Uploading blob '{blob_name}' to container '{container}'")
        try:
            self.s3.upload_fileobj(stream, bucket, blob_name, ExtraArgs={'ContentType': content_type})
        except (ClientError, BotoCoreError) as e:
            raise map_s3_error(e, "PutObject", container, blob_name) from e

    def download_blob(self, container: str, blob_name: str) -> Optional[BytesIO]:
        """Download a blob into memory, positioned at the start; None if absent."""
        if not self.blob_exists(container, blob_name):
            return None

        stream = BytesIO()
        logger.info(f"Downloading blob '{blob_name}' from container '{container}'")
        try:
            self.s3.download_fileobj(self.get_container(container), blob_name, stream)
        except (ClientError, BotoCoreError) as e:
            raise map_s3_error(e, "GetObject", container, blob_name) from e
        stream.seek(0)
        return stream

    def blob_exists(self, container: str, blob_name: str) -> bool:
        bucket = self.get_container(container)
        try:
            self.s3.head_object(Bucket=bucket, Key=blob_name)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in NOT_FOUND_CODES:
                return False
            raise map_s3_error(e, "HeadObject", container, blob_name) from e
        except BotoCoreError as e:
            raise map_s3_error(e, "HeadObject", container, blob_name) from e

    def delete_blob(self, container: str, blob_name: str) -> None:
        """Delete a blob; deleting a missing blob is not an error."""
        bucket = self.get_container(container)
        logger.info(f"Deleting blob '{blob_name}' from container '{container}'")
        try:
            self.s3.delete_object(Bucket=bucket, Key=blob_name)
        except (ClientError, BotoCoreError) as e:
            raise map_s3_error(e, "DeleteObject", container, blob_name) from e

    def get_blob_url(self, container: str, blob_name: str) -> str:
        """Unsigned URL of a blob."""
        if self.config.s3_endpoint_url:
            return f"{self.config.s3_endpoint_url.rstrip('/')}/{container}/{blob_name}"
        return f"https://{container}.s3.{self.config.region_name}.amazonaws.com/{blob_name}"

    def issue_signed_url(
        self,
        container: str,
        blob_name: str,
        validity: timedelta = timedelta(hours=1),
        permissions: str = 'r'
    ) -> str:
        """
        Presigned URL granting time-boxed access to one blob.

        Args:
            container: Container of the blob
            blob_name: Blob name
            validity: How long the URL stays valid
            permissions: 'r' for download, 'w' for upload
        """
        if permissions not in SIGNED_URL_METHODS:
            raise ValidationError(
                f"Unsupported signed URL permissions '{permissions}'",
                errors={'permissions': permissions}
            )
        seconds = int(validity.total_seconds())
        if seconds <= 0:
            raise ValidationError("Signed URL validity must be positive", errors={'validity': str(validity)})

        bucket = self.get_container(container)
        try:
            return self.s3.generate_presigned_url(
                SIGNED_URL_METHODS[permissions],
                Params={'Bucket': bucket, 'Key': blob_name},
                ExpiresIn=seconds
            )
        except (ClientError, BotoCoreError) as e:
            raise map_s3_error(e, "GeneratePresignedUrl", container, blob_name) from e

    # BlobFile conveniences

    def upload_file(self, blob_file: BlobFile, stream: BinaryIO) -> BlobFile:
        self.upload_blob(blob_file.container_name, blob_file.file_name, stream)
        return blob_file.model_copy(update={'url': self.get_blob_url(blob_file.container_name, blob_file.file_name)})

    def download_file(self, blob_file: BlobFile) -> Optional[BytesIO]:
        return self.download_blob(blob_file.container_name, blob_file.file_name)

    def delete_file(self, blob_file: BlobFile) -> None:
        self.delete_blob(blob_file.container_name, blob_file.file_name)
