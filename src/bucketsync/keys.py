"""Mapping of local paths to remote object keys."""

from pathlib import Path, PurePath
from typing import Union

from .errors import KeyTranslationError


def _as_path(path: Union[str, PurePath]) -> PurePath:
    return path if isinstance(path, PurePath) else Path(path)


def join_key(prefix: str, relative_key: str) -> str:
    """Join a key prefix and a relative key with exactly one '/'."""
    prefix = prefix.rstrip("/")
    if not prefix:
        return relative_key
    return f"{prefix}/{relative_key}"


def object_key_for(
    root: Union[str, PurePath],
    file_path: Union[str, PurePath],
    prefix: str = "",
) -> str:
    """
    Compute the remote key for a file below root.

    Example:
        >>> object_key_for("/data", "/data/b/c.txt", "backup/")
        'backup/b/c.txt'

    Raises:
        KeyTranslationError: If file_path is not under root
    """
    try:
        relative = _as_path(file_path).relative_to(_as_path(root))
    except ValueError as e:
        raise KeyTranslationError(
            file_path, f"Failed to get relative path for {file_path}: {e}"
        ) from e

    if not relative.parts:
        raise KeyTranslationError(file_path, f"{file_path} is the sync root itself")

    return join_key(prefix, relative.as_posix())
