"""Object store provider implementations."""

from .s3 import S3ObjectStore

__all__ = [
    "S3ObjectStore",
]
