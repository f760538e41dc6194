"""
Data classes for bulk upload operations.

Provides:
- TransferTask: one unit of per-file work
- UploadResult: the immutable outcome of one task
- UploadSummary: aggregate report returned to the caller
- ObjectInfo: a listing entry from the remote store
"""

from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .errors import PartialUploadError

# Metadata key under which the content digest is stored (x-amz-meta-md5 on S3)
MD5_METADATA_KEY = "md5"

SKIP_REASON_UNCHANGED = "unchanged (MD5 match)"


class UploadMode(str, Enum):
    """Upload policy for a batch."""
    UNCONDITIONAL = "upload"  # Always transfer every file
    SYNC = "sync"             # Skip files whose remote MD5 matches


@dataclass(frozen=True)
class TransferTask:
    """A single file scheduled for transfer."""
    local_path: Path
    remote_key: str


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a single file upload."""
    file_path: str
    object_key: str = ""
    success: bool = False
    error: Optional[BaseException] = None
    skipped: bool = False
    skip_reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "file_path": self.file_path,
            "object_key": self.object_key,
            "success": self.success,
            "error": str(self.error) if self.error else None,
            "skipped": self.skipped,
            "skip_reason": self.skip_reason,
        }


@dataclass
class UploadSummary:
    """
    Aggregate results for a bulk upload.

    Invariants:
        success_count + error_count == total_files
        skipped_count <= success_count (a skip counts as a success)
    """
    total_files: int = 0
    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    results: List[UploadResult] = field(default_factory=list)
    first_error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        """True when every file succeeded or was skipped."""
        return self.error_count == 0

    @property
    def uploaded_count(self) -> int:
        """Number of files actually transferred."""
        return self.success_count - self.skipped_count

    @property
    def failed_results(self) -> List[UploadResult]:
        return [r for r in self.results if not r.success]

    def raise_for_errors(self) -> None:
        """Raise PartialUploadError if any file failed."""
        if self.error_count:
            raise PartialUploadError(self) from self.first_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_files": self.total_files,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "skipped_count": self.skipped_count,
            "first_error": str(self.first_error) if self.first_error else None,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class ObjectInfo:
    """An object returned by a bucket listing."""
    key: str
    size: int
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "size": self.size,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "etag": self.etag,
        }
