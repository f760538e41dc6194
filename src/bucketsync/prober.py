"""Remote metadata lookups used by sync mode."""

import logging
from typing import Mapping, Optional

from .errors import ObjectNotFoundError, ProbeError
from .models import MD5_METADATA_KEY
from .storage import ObjectStore

logger = logging.getLogger(__name__)

AMZ_META_PREFIX = "x-amz-meta-"


def lookup_metadata(metadata: Optional[Mapping[str, str]], name: str) -> str:
    """
    Find a user metadata value regardless of key case or x-amz-meta- prefix.

    Returns:
        The value, or "" if absent
    """
    if not metadata:
        return ""

    wanted = name.lower()
    for key, value in metadata.items():
        normalized = key.lower()
        if normalized.startswith(AMZ_META_PREFIX):
            normalized = normalized[len(AMZ_META_PREFIX):]
        if normalized == wanted:
            return value or ""
    return ""


def probe_remote_md5(store: ObjectStore, bucket: str, key: str) -> Optional[str]:
    """
    Read the content digest stored on a remote object.

    Returns:
        The stored MD5, "" if the object has no md5 metadata, or None if
        the object does not exist

    Raises:
        ProbeError: For any failure other than "not found"
    """
    try:
        metadata = store.head_object(bucket, key)
    except ObjectNotFoundError:
        logger.debug(f"No remote object for {key}")
        return None
    except Exception as e:
        raise ProbeError(key, f"Failed to read metadata for {key}: {e}") from e

    return lookup_metadata(metadata, MD5_METADATA_KEY)
