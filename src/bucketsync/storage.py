"""
Abstract object store interface.

The engine only needs a small capability surface from an S3-compatible
store. Implementations receive the bucket name on every call so a single
instance (and its connection pool) can be shared by all worker threads.
"""

import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from .models import ObjectInfo


class ObjectStore(ABC):
    """Abstract base class for S3-compatible object stores."""

    @abstractmethod
    def head_bucket(self, bucket: str) -> bool:
        """Return True if the bucket exists and is accessible."""
        pass

    @abstractmethod
    def create_bucket(self, bucket: str) -> None:
        """
        Create a bucket.

        Raises:
            BucketAlreadyExistsError: If the bucket already exists
        """
        pass

    @abstractmethod
    def put_object(
        self,
        bucket: str,
        key: str,
        local_path: Path,
        metadata: Optional[Dict[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """
        Upload a local file as an object.

        Args:
            bucket: Target bucket
            key: Object key
            local_path: File whose bytes become the object body
            metadata: User metadata attached to the object
            cancel_event: When set, an in-flight transfer should abort
        """
        pass

    @abstractmethod
    def get_object(self, bucket: str, key: str, local_path: Path) -> Dict[str, str]:
        """
        Stream an object body to a local file.

        Returns:
            The object's user metadata

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        pass

    @abstractmethod
    def head_object(self, bucket: str, key: str) -> Dict[str, str]:
        """
        Fetch an object's user metadata without its body.

        Raises:
            ObjectNotFoundError: If the key does not exist
        """
        pass

    @abstractmethod
    def list_objects(self, bucket: str, prefix: str = "") -> List[ObjectInfo]:
        """List objects under a prefix."""
        pass
