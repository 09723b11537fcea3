#!/usr/bin/env python3
"""
File routing watcher.

Monitors the watched root for new files and routes them into subfolders.
Uses watchdog library for cross-platform file system event monitoring.
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from app.models.schemas import RoutingConfig
from app.utils.config import Settings, get_settings
from app.utils.helpers import is_direct_child, normalise_path
from app.utils.log_setup import configure_logging
from app.utils.rules_loader import RulesConfigError, load_config, load_knowledge_base
from app.utils.suggestion_client import (
    SuggestionClient,
    SuggestionServiceError,
    get_suggestion_client,
)
from domains.file_routing.dispatcher import Dispatcher
from domains.file_routing.rate_limiter import RateLimiter
from domains.file_routing.worker import SuggestionWorker


class RoutingEventHandler(FileSystemEventHandler):
    """Feeds creation events into the dispatcher's intake queue."""

    def __init__(self, dispatcher: Dispatcher):
        """
        Initialize event handler.

        Args:
            dispatcher: Dispatcher that processes events serially
        """
        super().__init__()
        self.dispatcher = dispatcher

    def on_created(self, event: FileSystemEvent):
        """Handle file/directory creation."""
        self.dispatcher.enqueue(event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent):
        """A file moved into the root counts as a new file."""
        dest = getattr(event, "dest_path", None)
        if dest and is_direct_child(Path(dest), self.dispatcher.root):
            self.dispatcher.enqueue(dest, event.is_directory)


class FileRoutingWatcher:
    """File routing orchestrator: observer, dispatcher and suggestion worker."""

    def __init__(
        self,
        config: RoutingConfig,
        settings: Optional[Settings] = None,
        client: Optional[SuggestionClient] = None,
        knowledge: str = "",
    ):
        """
        Initialize file routing watcher.

        Args:
            config: Validated rules file
            settings: Settings instance (cached settings if omitted)
            client: Suggestion client; built from settings when suggestions are enabled
            knowledge: Knowledge base text for the suggestion prompt
        """
        self.settings = settings or get_settings()
        self.config = config
        self.root = normalise_path(self.settings.get_watch_root())
        self.root.mkdir(parents=True, exist_ok=True)

        self.worker: Optional[SuggestionWorker] = None
        if config.suggestions.enabled:
            client = client or get_suggestion_client(self.settings, config.suggestions.api_key)
            self.worker = SuggestionWorker(
                client=client,
                root=self.root,
                model=config.suggestions.model or self.settings.get_default_model(),
                instructions=config.suggestions.instructions,
                knowledge=knowledge,
                preserve_structure=config.options.preserve_structure,
                share_folder_structure=self.settings.share_folder_structure,
                limiter=RateLimiter(interval=self.settings.suggestion_interval),
                queue_size=self.settings.suggestion_queue_size,
                fallback=self.settings.fallback_folder,
            )

        self.dispatcher = Dispatcher(
            root=self.root,
            config=config,
            worker=self.worker,
            settle_delay=self.settings.settle_delay,
            stability_timeout=self.settings.stability_timeout,
            fallback=self.settings.fallback_folder,
            collision=self.settings.collision_policy,
        )

        self.event_handler = RoutingEventHandler(self.dispatcher)
        self.observer: Optional[Observer] = None
        self.stop_event = threading.Event()

        logger.info("File routing watcher initialized")
        logger.info(f"Watching directory: {self.root}")

    def _start_observer(self) -> None:
        self.observer = Observer()
        self.observer.schedule(self.event_handler, str(self.root), recursive=False)
        self.observer.daemon = True
        self.observer.start()

    def start_watching(self) -> None:
        """Start the suggestion worker and the observer."""
        if self.worker is not None:
            self.worker.start()

        self._start_observer()
        logger.success(f"Started watching: {self.root}")

    def stop_watching(self) -> None:
        """Stop observer and worker."""
        self.stop_event.set()

        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

        if self.worker is not None:
            self.worker.stop()

        logger.info("File routing watcher stopped")

    def check_observer(self) -> None:
        """Restart the observer if its thread died."""
        if self.stop_event.is_set() or self.observer is None or self.observer.is_alive():
            return

        logger.error("Watcher error: observer thread stopped, restarting")
        try:
            self._start_observer()
        except Exception as e:
            logger.error(f"Failed to restart observer: {e}")

    def run(self, poll: float = 1.0) -> None:
        """Process events until stop_event is set."""
        logger.info(f"Watching '{self.root}' folder...")

        self.start_watching()
        try:
            while not self.stop_event.is_set():
                self.dispatcher.process_next(timeout=poll)
                self.check_observer()
        finally:
            self.stop_watching()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Watch a folder and route new files into subfolders.",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Folder to watch (default: WATCH_ROOT or ./entropy).",
    )
    parser.add_argument(
        "--rules",
        type=Path,
        default=None,
        help="Rules file (default: RULES_FILE or ./rules.yaml).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LOG_LEVEL or INFO).",
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    settings = get_settings()
    overrides = {}
    if args.root is not None:
        overrides["watch_root"] = args.root
    if args.rules is not None:
        overrides["rules_file"] = args.rules
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level)
    logger.info("Entropy Sorter - File Routing Watcher")

    try:
        config = load_config(settings.rules_file)
    except RulesConfigError as e:
        logger.error(str(e))
        return 1

    knowledge = load_knowledge_base(
        config.options.knowledge_base,
        base_dir=settings.rules_file.expanduser().absolute().parent,
    )

    try:
        watcher = FileRoutingWatcher(config, settings=settings, knowledge=knowledge)
    except (SuggestionServiceError, OSError) as e:
        logger.error(f"File routing watcher failed to start: {e}")
        return 1

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, shutting down.")
        watcher.stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    watcher.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
