"""
S3-compatible object store provider backed by boto3.

Features:
- Managed uploads (boto3 handles multipart splitting above the threshold)
- MD5 stored as user metadata (x-amz-meta-md5)
- Streaming downloads
- Paginated listings
- Works against AWS S3, MinIO, LakeFS, Hetzner and other S3 endpoints
"""

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from boto3.s3.transfer import TransferConfig
from botocore.exceptions import ClientError

from ..errors import (
    BucketAlreadyExistsError,
    ObjectNotFoundError,
    StorageError,
    TransferCancelledError,
)
from ..models import ObjectInfo
from ..storage import ObjectStore

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}
BUCKET_EXISTS_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _is_not_found(error: ClientError) -> bool:
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return _error_code(error) in NOT_FOUND_CODES or status == 404


class S3ObjectStore(ObjectStore):
    """boto3 implementation of ObjectStore."""

    # Read size for streaming downloads
    DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024  # 5 MB

    def __init__(self, client, transfer_config: Optional[TransferConfig] = None):
        """
        Initialize the provider.

        Args:
            client: A boto3 S3 client. It is shared by every worker thread,
                so its max_pool_connections should cover the concurrency limit.
            transfer_config: Settings for managed uploads (multipart threshold,
                part size, per-upload threads)
        """
        self._client = client
        self.transfer_config = transfer_config or TransferConfig(max_concurrency=4)

    @property
    def client(self):
        return self._client

    def head_bucket(self, bucket: str) -> bool:
        try:
            self._client.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise StorageError(f"Failed to access bucket {bucket}: {e}") from e

    def create_bucket(self, bucket: str) -> None:
        region = self._client.meta.region_name
        try:
            if region and region != "us-east-1":
                self._client.create_bucket(
                    Bucket=bucket,
                    CreateBucketConfiguration={"LocationConstraint": region},
                )
            else:
                self._client.create_bucket(Bucket=bucket)
        except ClientError as e:
            if _error_code(e) in BUCKET_EXISTS_CODES:
                raise BucketAlreadyExistsError(bucket) from e
            raise StorageError(f"Failed to create bucket {bucket}: {e}") from e
        logger.info(f"Created S3 bucket: {bucket}")

    def put_object(
        self,
        bucket: str,
        key: str,
        local_path: Path,
        metadata: Optional[Dict[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """
        Upload a file through the boto3 managed uploader.

        The progress callback checks cancel_event and raises to abort the
        transfer, which also aborts any multipart upload in progress.
        """
        extra_args = {"Metadata": dict(metadata)} if metadata else None

        callback = None
        if cancel_event is not None:
            def callback(_bytes_transferred: int) -> None:
                if cancel_event.is_set():
                    raise TransferCancelledError(local_path)

        logger.debug(f"Uploading {local_path} to s3://{bucket}/{key}")
        try:
            with open(local_path, "rb") as f:
                self._client.upload_fileobj(
                    f,
                    bucket,
                    key,
                    ExtraArgs=extra_args,
                    Callback=callback,
                    Config=self.transfer_config,
                )
        except TransferCancelledError:
            raise
        except Exception as e:
            if cancel_event is not None and cancel_event.is_set():
                raise TransferCancelledError(local_path) from e
            raise

    def get_object(self, bucket: str, key: str, local_path: Path) -> Dict[str, str]:
        local_path = Path(local_path)
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(bucket, key) from e
            raise StorageError(f"Failed to get object {key} from bucket {bucket}: {e}") from e

        local_path.parent.mkdir(parents=True, exist_ok=True)
        bytes_downloaded = 0
        with response["Body"] as body, open(local_path, "wb") as local_file:
            for chunk in iter(lambda: body.read(self.DEFAULT_CHUNK_SIZE), b""):
                local_file.write(chunk)
                bytes_downloaded += len(chunk)

        logger.debug(f"Downloaded s3://{bucket}/{key} to {local_path} ({bytes_downloaded} bytes)")
        return dict(response.get("Metadata") or {})

    def head_object(self, bucket: str, key: str) -> Dict[str, str]:
        try:
            response = self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(bucket, key) from e
            raise StorageError(f"Failed to read metadata for {key} in bucket {bucket}: {e}") from e
        # boto3 returns user metadata with lowercased keys and the prefix stripped
        return dict(response.get("Metadata") or {})

    def list_objects(self, bucket: str, prefix: str = "") -> List[ObjectInfo]:
        objects = []
        paginator = self._client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    if obj["Key"].endswith("/"):
                        continue
                    objects.append(ObjectInfo(
                        key=obj["Key"],
                        size=obj["Size"],
                        last_modified=obj.get("LastModified"),
                        etag=obj.get("ETag", "").strip('"') or None,
                    ))
        except ClientError as e:
            raise StorageError(f"Failed to list objects in bucket {bucket}: {e}") from e

        logger.debug(f"Found {len(objects)} objects in s3://{bucket}/{prefix}")
        return objects
