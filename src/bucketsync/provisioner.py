"""Idempotent bucket creation."""

import logging

from .errors import BucketAlreadyExistsError, ProvisioningError
from .storage import ObjectStore

logger = logging.getLogger(__name__)


def ensure_bucket_exists(store: ObjectStore, bucket: str) -> bool:
    """
    Make sure a bucket exists, creating it if needed.

    Safe to call repeatedly and concurrently: losing a creation race to
    another client counts as success.

    Returns:
        True if this call created the bucket

    Raises:
        ProvisioningError: If the bucket cannot be checked or created
    """
    try:
        if store.head_bucket(bucket):
            logger.debug(f"Bucket {bucket} exists")
            return False
    except Exception as e:
        raise ProvisioningError(bucket, f"head_bucket failed: {e}") from e

    logger.info(f"Creating bucket: {bucket}")
    try:
        store.create_bucket(bucket)
    except BucketAlreadyExistsError:
        logger.debug(f"Bucket {bucket} was created concurrently")
        return False
    except Exception as e:
        raise ProvisioningError(bucket, str(e)) from e

    return True
