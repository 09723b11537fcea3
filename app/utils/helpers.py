"""
Helper utilities for Entropy Sorter.

Common path and metadata functions used across the routing domain.
"""

from pathlib import Path
from typing import List, Optional


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""

    try:
        return path.expanduser().resolve()
    except (FileNotFoundError, RuntimeError):
        return path.expanduser().absolute()


def is_direct_child(path: Path, root: Path) -> bool:
    """Check whether ``path`` sits immediately inside ``root``."""
    return normalise_path(path.parent) == normalise_path(root)


def is_within(path: Path, root: Path) -> bool:
    """Check whether ``path`` is ``root`` or somewhere beneath it."""
    try:
        normalise_path(path).relative_to(normalise_path(root))
    except ValueError:
        return False
    return True


def get_file_metadata(path: Path) -> str:
    """
    Describe a file by extension and byte size.

    Args:
        path: File path

    Returns:
        Metadata string, or empty string if the file cannot be stat'ed
    """
    try:
        stats = path.stat()
    except OSError:
        return ""

    return f"Extension: {path.suffix}, Size: {stats.st_size} bytes"


def list_subdirectories(root: Path) -> List[str]:
    """List every directory beneath ``root`` as POSIX-style relative paths."""
    if not root.is_dir():
        return []

    folders = []
    for candidate in root.rglob("*"):
        try:
            if candidate.is_dir():
                folders.append(candidate.relative_to(root).as_posix())
        except OSError:
            # Vanished or unreadable while walking
            continue

    return sorted(folders)


def get_folder_structure(root: Path) -> str:
    """Newline-joined snapshot of the subdirectories under ``root``."""
    return "".join(f"{folder}\n" for folder in list_subdirectories(root))


def get_file_size(path: Path) -> Optional[int]:
    """Return the size of ``path`` or None if it cannot be read."""
    try:
        return path.stat().st_size
    except OSError:
        return None


def unique_path(path: Path) -> Path:
    """
    Return ``path`` or the first free ``<stem>_<n><suffix>`` sibling.

    Args:
        path: Desired target path

    Returns:
        A path that does not exist yet
    """
    if not path.exists():
        return path

    stem = path.stem
    suffix = path.suffix
    counter = 1
    while True:
        candidate = path.with_name(f"{stem}_{counter}{suffix}")
        if not candidate.exists():
            return candidate
        counter += 1
