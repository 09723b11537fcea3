"""Final placement of a classified file under the watched root."""

import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger

from app.utils.helpers import is_within, normalise_path, unique_path


class PlacementStatus(str, Enum):
    MOVED = "moved"
    REFUSED = "refused"  # preserve_structure and folder missing
    REJECTED = "rejected"  # destination outside the root
    SKIPPED = "skipped"  # name collision under the "skip" policy
    FAILED = "failed"


@dataclass(slots=True)
class Placement:
    """Outcome of a placement attempt."""

    status: PlacementStatus
    source: Path
    destination_dir: Path
    target: Optional[Path] = None

    @property
    def moved(self) -> bool:
        return self.status is PlacementStatus.MOVED


def place(
    source: Path,
    destination: str,
    root: Path,
    preserve_structure: bool = False,
    collision: str = "suffix",
) -> Placement:
    """
    Move ``source`` into ``root / destination``.

    The source file is never touched unless the move itself happens.

    Args:
        source: File to move
        destination: Folder relative to the watched root
        root: Watched root
        preserve_structure: Refuse to create folders that do not exist yet
        collision: "suffix", "skip" or "overwrite" when the target name is taken

    Returns:
        Placement describing what happened
    """
    source = Path(source)
    root = Path(root)
    base = source.name
    dest_dir = root / destination

    # The root itself is never a destination
    if not is_within(dest_dir, root) or normalise_path(dest_dir) == normalise_path(root):
        logger.warning(f"Rejecting {base} -> {destination} (outside {root})")
        return Placement(PlacementStatus.REJECTED, source, dest_dir)

    if preserve_structure:
        if not dest_dir.is_dir():
            logger.warning(f"Skipping {base} -> {dest_dir} (preserve_structure=true, folder doesn't exist)")
            return Placement(PlacementStatus.REFUSED, source, dest_dir)
    else:
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create dir {dest_dir}: {e}")
            return Placement(PlacementStatus.FAILED, source, dest_dir)

    target = dest_dir / base
    if target.exists():
        if collision == "skip":
            logger.warning(f"Skipping {base}: {target} already exists")
            return Placement(PlacementStatus.SKIPPED, source, dest_dir, target)
        if collision == "suffix":
            target = unique_path(target)
            logger.info(f"{base} already exists in {dest_dir}, using {target.name}")

    try:
        if collision == "overwrite":
            source.replace(target)
        else:
            shutil.move(str(source), str(target))
    except OSError as e:
        logger.error(f"Failed to move {base}: {e}")
        return Placement(PlacementStatus.FAILED, source, dest_dir, target)

    logger.success(f"Moved {base} -> {dest_dir}")
    return Placement(PlacementStatus.MOVED, source, dest_dir, target)
