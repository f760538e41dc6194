"""
Exception hierarchy for bucket synchronization errors.

Errors fall into three groups:
- Fatal errors raised before any file work starts (enumeration, provisioning,
  configuration)
- Per-file errors captured into an UploadResult and never raised out of a batch
- Storage errors raised by ObjectStore implementations
"""

from pathlib import Path
from typing import Optional, Union


class BucketSyncError(Exception):
    """Base exception for all bucketsync errors."""

    pass


class ConfigurationError(BucketSyncError):
    """
    Raised when the engine or a provider is misconfigured.

    Reasons may include:
    - Missing bucket name
    - Non-positive concurrency limit
    - Invalid YAML configuration values
    """

    pass


class EnumerationError(BucketSyncError):
    """
    Raised when the local directory tree cannot be walked.

    This is fatal: no upload starts and partial listings are discarded.
    """

    def __init__(self, path: Union[str, Path], message: str):
        self.path = str(path)
        super().__init__(f"Failed to walk directory tree {self.path}: {message}")


class FileTransferError(BucketSyncError):
    """Base exception for errors isolated to a single file."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = str(path)
        super().__init__(message)


class KeyTranslationError(FileTransferError):
    """Raised when a file path cannot be made relative to the sync root."""

    pass


class HashError(FileTransferError):
    """Raised when a file cannot be opened or read while hashing."""

    pass


class ProbeError(FileTransferError):
    """Raised when a metadata probe fails for a reason other than 'not found'."""

    pass


class UploadError(FileTransferError):
    """Raised when the transfer of a file to the store fails."""

    pass


class TransferCancelledError(FileTransferError):
    """Raised when a task observes the cancellation signal."""

    def __init__(self, path: Union[str, Path], message: Optional[str] = None):
        super().__init__(path, message or f"Transfer of {path} cancelled")


class StorageError(BucketSyncError):
    """Base exception for errors raised by ObjectStore implementations."""

    pass


class ObjectNotFoundError(StorageError):
    """Raised when an object key does not exist in the bucket."""

    def __init__(self, bucket: str, key: str):
        self.bucket = bucket
        self.key = key
        super().__init__(f"Object {key} not found in bucket {bucket}")


class BucketAlreadyExistsError(StorageError):
    """Raised when creating a bucket that already exists."""

    def __init__(self, bucket: str):
        self.bucket = bucket
        super().__init__(f"Bucket {bucket} already exists")


class UnsafeKeyError(StorageError):
    """Raised when a remote key would map to a local path outside the destination."""

    def __init__(self, key: str, local_dir: Union[str, Path]):
        self.key = key
        self.local_dir = str(local_dir)
        super().__init__(f"Object key {key} resolves outside {self.local_dir}")


class ProvisioningError(BucketSyncError):
    """Raised when the target bucket can neither be found nor created."""

    def __init__(self, bucket: str, message: str):
        self.bucket = bucket
        super().__init__(f"Failed to provision bucket {bucket}: {message}")


class AggregationError(BucketSyncError):
    """Raised when the number of collected results does not match the batch size."""

    def __init__(self, expected: int, collected: int):
        self.expected = expected
        self.collected = collected
        super().__init__(
            f"Collected {collected} results for a batch of {expected} files"
        )


class PartialUploadError(BucketSyncError):
    """Raised by UploadSummary.raise_for_errors() when some files failed."""

    def __init__(self, summary):
        self.summary = summary
        super().__init__(
            f"{summary.error_count} of {summary.total_files} files failed; "
            f"first error: {summary.first_error}"
        )
