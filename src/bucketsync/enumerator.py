"""Recursive discovery of local files to transfer."""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .errors import EnumerationError

logger = logging.getLogger(__name__)


def _raise_walk_error(error: OSError) -> None:
    raise EnumerationError(error.filename or "", error.strerror or str(error)) from error


def get_all_local_files(
    root: Union[str, Path],
    exclude_patterns: Optional[Sequence[str]] = None,
) -> List[Path]:
    """
    Collect every regular file below a directory.

    Args:
        root: Directory to walk
        exclude_patterns: Glob patterns matched (Path.match) against each
            file's path relative to root; matching files are left out

    Returns:
        List of file paths in no particular order

    Raises:
        EnumerationError: If root is not a directory or any directory below
            it cannot be read. Nothing is returned in that case.
    """
    root = Path(root)
    if not root.is_dir():
        raise EnumerationError(root, "not a directory")

    exclude_patterns = [p for p in (exclude_patterns or []) if p]
    files = []

    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        for name in filenames:
            path = Path(dirpath) / name
            if not path.is_file():
                continue

            if exclude_patterns:
                relative = path.relative_to(root)
                if any(relative.match(pattern) for pattern in exclude_patterns):
                    logger.debug(f"Excluding {relative}")
                    continue

            files.append(path)

    logger.debug(f"Found {len(files)} files under {root}")
    return files
