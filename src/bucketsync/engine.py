"""
Bucket synchronization engine.

Ties the pieces together for a single bucket:
- Provision the bucket (idempotent)
- Enumerate the local tree
- Schedule uploads (unconditional or MD5 sync)
- Single-object helpers for upload, listing and download
"""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .enumerator import get_all_local_files
from .errors import ConfigurationError, TransferCancelledError, UnsafeKeyError, UploadError
from .hashing import calculate_md5
from .models import MD5_METADATA_KEY, ObjectInfo, UploadMode, UploadSummary
from .provisioner import ensure_bucket_exists
from .scheduler import MAX_CONCURRENT_UPLOADS, UploadScheduler
from .storage import ObjectStore

logger = logging.getLogger(__name__)


class BucketSyncEngine:
    """Uploads local directory trees to one bucket of an object store."""

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        max_concurrent: int = MAX_CONCURRENT_UPLOADS,
        create_bucket: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Object store client shared by all transfers
            bucket: Target bucket name
            max_concurrent: Maximum transfers in flight at once
            create_bucket: Create the bucket before uploading if it is missing
            cancel_event: Signal that aborts pending and in-flight transfers
        """
        if not bucket:
            raise ConfigurationError("bucket is required")

        self.store = store
        self.bucket = bucket
        self.max_concurrent = max_concurrent
        self.create_bucket = create_bucket
        self.cancel_event = cancel_event
        self.scheduler = UploadScheduler(
            store,
            bucket,
            max_concurrent=max_concurrent,
            cancel_event=cancel_event,
        )

    def ensure_bucket(self) -> bool:
        """Create the bucket if it does not exist. Returns True if created."""
        return ensure_bucket_exists(self.store, self.bucket)

    def upload_directory(
        self,
        local_dir: Union[str, Path],
        prefix: str = "",
        sync: bool = False,
        exclude_patterns: Optional[Sequence[str]] = None,
    ) -> UploadSummary:
        """
        Upload every file below local_dir to the bucket.

        Args:
            local_dir: Root of the local tree
            prefix: Remote key prefix
            sync: Skip files whose remote MD5 metadata matches
            exclude_patterns: Glob patterns of relative paths to leave out

        Returns:
            UploadSummary. Per-file failures do not raise; check
            summary.error_count or call summary.raise_for_errors().

        Raises:
            ProvisioningError: If the bucket cannot be created
            EnumerationError: If the local tree cannot be walked
        """
        local_dir = Path(local_dir)

        if self.create_bucket:
            self.ensure_bucket()

        files = get_all_local_files(local_dir, exclude_patterns)
        logger.info(f"Found {len(files)} files in {local_dir}")

        mode = UploadMode.SYNC if sync else UploadMode.UNCONDITIONAL
        return self.scheduler.run(files, local_dir, prefix, mode)

    def upload_file(self, local_path: Union[str, Path], key: str) -> str:
        """
        Upload a single file with its MD5 attached as metadata.

        Returns:
            The MD5 of the uploaded file

        Raises:
            HashError: If the file cannot be read
            UploadError: If the transfer fails
            TransferCancelledError: If the cancel signal is set
        """
        local_path = Path(local_path)
        md5 = calculate_md5(local_path, cancel_event=self.cancel_event)
        try:
            self.store.put_object(
                self.bucket,
                key,
                local_path,
                metadata={MD5_METADATA_KEY: md5},
                cancel_event=self.cancel_event,
            )
        except TransferCancelledError:
            raise
        except Exception as e:
            raise UploadError(local_path, f"Failed to upload {local_path} to {key}: {e}") from e

        logger.info(f"Uploaded {local_path} to {self.bucket}/{key}")
        return md5

    def list_objects(self, prefix: str = "") -> List[ObjectInfo]:
        """List objects in the bucket under a prefix."""
        return self.store.list_objects(self.bucket, prefix)

    def download_object(self, key: str, local_path: Union[str, Path]) -> Path:
        """
        Download one object to a local file, creating parent directories.

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        local_path = Path(local_path)
        self.store.get_object(self.bucket, key, local_path)
        return local_path

    def download_prefix(
        self,
        prefix: str,
        local_dir: Union[str, Path],
        exclude_suffixes: Optional[Sequence[str]] = None,
    ) -> List[Path]:
        """
        Download every object under a prefix into local_dir.

        Keys are made relative by stripping the prefix and any leading '/'.
        Objects whose key ends with one of exclude_suffixes (case-insensitive)
        are skipped. Stops at the first failed download.

        Every target path is checked before anything is written, so a key
        containing '..' segments aborts the whole download.

        Returns:
            Local paths written

        Raises:
            UnsafeKeyError: If a key resolves to a path outside local_dir
        """
        local_dir = Path(local_dir)
        suffixes = [s.lower() for s in (exclude_suffixes or []) if s]
        planned = []

        for obj in self.list_objects(prefix):
            key_lower = obj.key.lower()
            excluded = next((s for s in suffixes if key_lower.endswith(s)), None)
            if excluded:
                logger.info(f"Skipping excluded file {obj.key} ({excluded})")
                continue

            relative = obj.key[len(prefix):] if obj.key.startswith(prefix) else obj.key
            relative = relative.lstrip("/")
            if not relative:
                continue

            planned.append((obj.key, _safe_local_path(local_dir, relative, obj.key)))

        downloaded = [self.download_object(key, path) for key, path in planned]

        logger.info(f"Downloaded {len(downloaded)} objects from {self.bucket}/{prefix}")
        return downloaded


def _safe_local_path(local_dir: Path, relative: str, key: str) -> Path:
    root = local_dir.resolve()
    target = (root / relative).resolve()
    if root not in target.parents:
        raise UnsafeKeyError(key, local_dir)
    return local_dir / target.relative_to(root)


def upload_multiple_files(
    store: ObjectStore,
    bucket: str,
    root: Union[str, Path],
    prefix: str = "",
    sync: bool = False,
    max_concurrent: int = MAX_CONCURRENT_UPLOADS,
    cancel_event: Optional[threading.Event] = None,
) -> UploadSummary:
    """
    Enumerate root and upload it in one call.

    The bucket is assumed to exist; use BucketSyncEngine to provision it.
    """
    engine = BucketSyncEngine(
        store,
        bucket,
        max_concurrent=max_concurrent,
        create_bucket=False,
        cancel_event=cancel_event,
    )
    return engine.upload_directory(root, prefix, sync=sync)
