"""
Bulk upload of local directory trees to S3-compatible object storage.

Provides:
- Recursive file discovery and streaming MD5 digests
- Bounded-concurrency uploads with per-file failure isolation
- MD5-based sync that skips unchanged files
- Idempotent bucket provisioning
- boto3 provider, YAML configuration and a CLI
"""

from .aggregator import aggregate_results, drain_queue
from .config import (
    ConfigManager,
    S3ClientFactory,
    StorageConfig,
    SyncConfig,
    SyncEngineBuilder,
)
from .engine import BucketSyncEngine, upload_multiple_files
from .enumerator import get_all_local_files
from .errors import (
    AggregationError,
    BucketAlreadyExistsError,
    BucketSyncError,
    ConfigurationError,
    EnumerationError,
    FileTransferError,
    HashError,
    KeyTranslationError,
    ObjectNotFoundError,
    PartialUploadError,
    ProbeError,
    ProvisioningError,
    StorageError,
    TransferCancelledError,
    UnsafeKeyError,
    UploadError,
)
from .hashing import EMPTY_MD5, calculate_md5
from .keys import join_key, object_key_for
from .models import (
    MD5_METADATA_KEY,
    SKIP_REASON_UNCHANGED,
    ObjectInfo,
    TransferTask,
    UploadMode,
    UploadResult,
    UploadSummary,
)
from .prober import lookup_metadata, probe_remote_md5
from .provisioner import ensure_bucket_exists
from .providers.s3 import S3ObjectStore
from .scheduler import MAX_CONCURRENT_UPLOADS, UploadScheduler
from .storage import ObjectStore

__version__ = "0.1.0"

__all__ = [
    # Engine
    "BucketSyncEngine",
    "UploadScheduler",
    "upload_multiple_files",
    "MAX_CONCURRENT_UPLOADS",
    # Components
    "get_all_local_files",
    "calculate_md5",
    "EMPTY_MD5",
    "object_key_for",
    "join_key",
    "probe_remote_md5",
    "lookup_metadata",
    "ensure_bucket_exists",
    "aggregate_results",
    "drain_queue",
    # Data classes
    "TransferTask",
    "UploadResult",
    "UploadSummary",
    "UploadMode",
    "ObjectInfo",
    "MD5_METADATA_KEY",
    "SKIP_REASON_UNCHANGED",
    # Storage
    "ObjectStore",
    "S3ObjectStore",
    # Configuration
    "StorageConfig",
    "SyncConfig",
    "ConfigManager",
    "S3ClientFactory",
    "SyncEngineBuilder",
    # Errors
    "BucketSyncError",
    "ConfigurationError",
    "EnumerationError",
    "FileTransferError",
    "KeyTranslationError",
    "HashError",
    "ProbeError",
    "UploadError",
    "TransferCancelledError",
    "StorageError",
    "ObjectNotFoundError",
    "BucketAlreadyExistsError",
    "UnsafeKeyError",
    "ProvisioningError",
    "AggregationError",
    "PartialUploadError",
]
