"""Ignore policy applied before any classification."""

from pathlib import Path
from typing import Union

from app.models.schemas import IgnoreSpec

# Resource-fork / AppleDouble files, never user content
HIDDEN_PREFIX = "._"

OS_DEFAULT_FILES = frozenset({".DS_Store", "Thumbs.db", "desktop.ini"})


def should_ignore(path: Union[str, Path], spec: IgnoreSpec) -> bool:
    """
    Check if path must be skipped.

    Criteria are OR-ed; the ``._`` prefix applies regardless of settings.

    Args:
        path: Full path of the new file
        spec: Ignore configuration

    Returns:
        True if the file should be left alone
    """
    path_str = str(path)
    base = Path(path_str).name

    if base.startswith(HIDDEN_PREFIX):
        return True

    if spec.os_defaults and base in OS_DEFAULT_FILES:
        return True

    if base in spec.files:
        return True

    ext = Path(base).suffix.lower()
    if ext and any(ext == ignored.lower() for ignored in spec.extensions):
        return True

    # Substring match anywhere in the path, not just whole segments
    for folder in spec.folders:
        if folder and folder in path_str:
            return True

    return False
