"""
Per-event dispatch pipeline for the File Routing domain.

Each new path goes through:
    directory/parent filter -> settle -> ignore -> rules -> suggestion -> fallback -> move

Events are handled strictly one at a time. When a suggestion is needed the
dispatcher blocks on the worker's reply, so the whole pipeline is serialized
on suggestion latency.
"""

import queue
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Tuple

from loguru import logger

from app.models.schemas import RoutingConfig
from app.utils.helpers import get_file_size, is_direct_child, normalise_path
from domains.file_routing.ignore import should_ignore
from domains.file_routing.matcher import PatternMatcher
from domains.file_routing.mover import Placement, place
from domains.file_routing.worker import FALLBACK_FOLDER, SuggestionWorker


class DispatchStatus(str, Enum):
    DIRECTORY = "directory"
    NESTED = "nested"
    VANISHED = "vanished"
    IGNORED = "ignored"
    PLACED = "placed"


@dataclass(slots=True)
class DispatchResult:
    """What happened to one creation event."""

    status: DispatchStatus
    path: Path
    destination: Optional[str] = None
    placement: Optional[Placement] = None


class Dispatcher:
    """Routes new files in the watched root to their destination folders."""

    def __init__(
        self,
        root: Path,
        config: RoutingConfig,
        worker: Optional[SuggestionWorker] = None,
        matcher: Optional[PatternMatcher] = None,
        settle_delay: float = 0.5,
        stability_timeout: float = 0.0,
        fallback: str = FALLBACK_FOLDER,
        collision: str = "suffix",
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize dispatcher.

        Args:
            root: Watched root directory
            config: Validated rules file
            worker: Suggestion worker, required for suggestions to be used
            matcher: Precompiled rules; built from config if omitted
            settle_delay: Seconds to wait before inspecting a new file
            stability_timeout: Max extra seconds to wait for the size to stop changing
            fallback: Folder for files nothing else could place
            collision: Name collision policy handed to the mover
            sleep: Sleep function (tests pass a no-op)
        """
        self.root = normalise_path(Path(root))
        self.config = config
        self.worker = worker
        self.matcher = matcher or PatternMatcher(config.rules)
        self.settle_delay = settle_delay
        self.stability_timeout = stability_timeout
        self.fallback = fallback
        self.collision = collision
        self._sleep = sleep

        self.intake: "queue.Queue[Tuple[Path, bool]]" = queue.Queue()

    @property
    def suggestions_enabled(self) -> bool:
        return self.config.suggestions.enabled and self.worker is not None

    @property
    def preserve_structure(self) -> bool:
        return self.config.options.preserve_structure

    def enqueue(self, path: str, is_directory: bool = False) -> None:
        """Queue a creation event for serial processing."""
        self.intake.put((Path(path), is_directory))

    def process_next(self, timeout: Optional[float] = None) -> Optional[DispatchResult]:
        """
        Handle the next queued event, if one arrives within ``timeout``.

        Errors are logged and never propagate, so the watch loop keeps running.
        """
        try:
            path, is_directory = self.intake.get(timeout=timeout)
        except queue.Empty:
            return None

        try:
            return self.handle_created(path, is_directory)
        except Exception as e:
            logger.exception(f"Failed to dispatch {path}: {e}")
            return None
        finally:
            self.intake.task_done()

    def handle_created(self, path: Path, is_directory: bool = False) -> DispatchResult:
        """
        Run one creation event through the full pipeline.

        Args:
            path: Path reported by the watch source
            is_directory: Directory flag reported by the watch source

        Returns:
            DispatchResult describing the outcome
        """
        path = Path(path)

        # Directories are not classified yet
        if is_directory or path.is_dir():
            logger.debug(f"Skipping directory: {path}")
            return DispatchResult(DispatchStatus.DIRECTORY, path)

        # Only direct children of the root; our own moves land deeper
        if not is_direct_child(path, self.root):
            logger.debug(f"Skipping nested path: {path}")
            return DispatchResult(DispatchStatus.NESTED, path)

        if not self.wait_until_settled(path):
            logger.info(f"File disappeared before processing: {path}")
            return DispatchResult(DispatchStatus.VANISHED, path)

        logger.info(f"New file detected: {path}")
        name = path.name

        if should_ignore(path, self.config.ignore):
            logger.info(f"Ignored file/folder by config: {name}")
            return DispatchResult(DispatchStatus.IGNORED, path)

        destination = self.resolve_destination(path)
        placement = place(
            path,
            destination,
            self.root,
            preserve_structure=self.preserve_structure,
            collision=self.collision,
        )
        return DispatchResult(DispatchStatus.PLACED, path, destination, placement)

    def resolve_destination(self, path: Path) -> str:
        """
        Pick the destination folder for ``path``.

        Rules first, then the suggestion worker, then the fallback folder.
        The result is always trimmed and never empty.
        """
        destination = self.matcher.match(path.name)

        if destination:
            logger.info(f"Rule matched {path.name} -> {destination}")
        elif self.suggestions_enabled:
            destination = self.worker.suggest(path)
            logger.info(f"AI suggested folder: {destination}")

        destination = (destination or "").strip()
        if not destination:
            destination = self.fallback

        return destination

    def wait_until_settled(self, path: Path) -> bool:
        """
        Give the producing writer time to finish.

        Sleeps ``settle_delay``; with a stability timeout, keeps polling
        until two consecutive size reads agree. Best effort only.

        Returns:
            False if the file is gone
        """
        self._sleep(self.settle_delay)

        size = get_file_size(path)
        if size is None:
            return False

        if self.stability_timeout <= 0:
            return True

        interval = self.settle_delay if self.settle_delay > 0 else 0.1
        deadline = time.monotonic() + self.stability_timeout
        while time.monotonic() < deadline:
            self._sleep(interval)
            current = get_file_size(path)
            if current is None:
                return False
            if current == size:
                return True
            size = current

        logger.warning(f"{path.name} still changing after {self.stability_timeout}s, processing anyway")
        return True
