"""Streaming MD5 digests for change detection."""

import hashlib
import threading
from pathlib import Path
from typing import Optional, Union

from .errors import HashError, TransferCancelledError

# MD5 of zero bytes
EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"

DEFAULT_CHUNK_SIZE = 64 * 1024  # 64 KB


def calculate_md5(
    path: Union[str, Path],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    cancel_event: Optional[threading.Event] = None,
) -> str:
    """
    Compute the MD5 hex digest of a file without reading it into memory.

    Args:
        path: File to hash
        chunk_size: Bytes read per iteration
        cancel_event: Checked between chunks; when set the hash is abandoned

    Returns:
        Lowercase 32-character hex digest

    Raises:
        HashError: If the file cannot be opened or read
        TransferCancelledError: If cancel_event is set mid-stream
    """
    hash_md5 = hashlib.md5()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                if cancel_event is not None and cancel_event.is_set():
                    raise TransferCancelledError(path)
                hash_md5.update(chunk)
    except OSError as e:
        raise HashError(path, f"Failed to calculate MD5 for {path}: {e}") from e
    return hash_md5.hexdigest()
