"""
Suggestion worker for the File Routing domain.

A single long-lived thread drains a bounded FIFO of jobs. For each job it:
1. Waits for a rate limiter permit
2. Collects file metadata and (optionally) the current folder tree
3. Builds the prompt and asks the suggestion service for a folder
4. Replies exactly once with the suggestion or the fallback folder

Jobs are handled one at a time so the rate limit holds for the service.
"""

import queue
import threading
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

from app.utils.helpers import get_file_metadata, get_folder_structure
from app.utils.suggestion_client import SuggestionClient, SuggestionServiceError
from domains.file_routing.rate_limiter import RateLimiter, RateLimiterCancelled

FALLBACK_FOLDER = "Unsorted"

PRESERVE_CONSTRAINT = "Do not suggest new folders. Only pick from existing ones."
FREE_CONSTRAINT = "You may suggest new folders if appropriate."


@dataclass
class Job:
    """One suggestion request and its single-use reply slot."""

    source_path: Path
    reply: Future = field(default_factory=Future)

    def resolve(self, destination: str) -> bool:
        """
        Deliver the destination to the waiting dispatcher.

        Returns:
            False if the job was already answered
        """
        try:
            self.reply.set_result(destination)
        except InvalidStateError:
            logger.warning(f"Job for {self.source_path} already resolved, dropping {destination!r}")
            return False
        return True

    def result(self, timeout: Optional[float] = None) -> str:
        return self.reply.result(timeout)


def build_prompt(
    instructions: str,
    knowledge: str,
    filename: str,
    metadata: str,
    folders: str,
    preserve_structure: bool,
) -> str:
    """Assemble the prompt sent to the suggestion service."""
    constraint = PRESERVE_CONSTRAINT if preserve_structure else FREE_CONSTRAINT

    return f"""{instructions}

Knowledge base:
{knowledge}

Filename: {filename}
Metadata: {metadata}
Existing folder structure: {folders}

Constraints:
- Respond only with a folder path.
- {constraint}"""


class SuggestionWorker:
    """Owns the job queue and rate limiter; answers every job exactly once."""

    def __init__(
        self,
        client: SuggestionClient,
        root: Path,
        model: str,
        instructions: str = "",
        knowledge: str = "",
        preserve_structure: bool = False,
        share_folder_structure: bool = True,
        limiter: Optional[RateLimiter] = None,
        queue_size: int = 100,
        fallback: str = FALLBACK_FOLDER,
    ):
        """
        Initialize suggestion worker.

        Args:
            client: Suggestion service client
            root: Watched root, used for the folder snapshot
            model: Model identifier passed to the client
            instructions: Fixed instructions placed at the top of the prompt
            knowledge: Knowledge base text (may be empty)
            preserve_structure: Forbid suggesting new folders
            share_folder_structure: Send the folder snapshot even when new folders are allowed
            limiter: Rate limiter (one request per 3 seconds if omitted); its
                cancel event is the worker's stop signal
            queue_size: Job queue capacity
            fallback: Folder used when no usable suggestion is obtained
        """
        self.client = client
        self.root = Path(root)
        self.model = model
        self.instructions = instructions
        self.knowledge = knowledge
        self.preserve_structure = preserve_structure
        self.share_folder_structure = share_folder_structure
        self.fallback = fallback

        self.limiter = limiter or RateLimiter(interval=3.0)
        # Shared with the limiter so stop() interrupts a pending wait
        self.cancel_event = self.limiter.cancel_event

        self.jobs: "queue.Queue[Optional[Job]]" = queue.Queue(maxsize=queue_size)
        self._thread: Optional[threading.Thread] = None
        self._current: Optional[Job] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread."""
        if self.running:
            return
        self._thread = threading.Thread(target=self._run, name="suggestion-worker", daemon=True)
        self._thread.start()
        logger.info(f"Suggestion worker started (model={self.model})")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Cancel the worker; in-flight and queued jobs resolve to the fallback."""
        self.cancel_event.set()
        try:
            self.jobs.put_nowait(None)
        except queue.Full:
            pass

        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

        # A client call still running past the join is answered here;
        # its late reply is refused by Job.resolve
        current = self._current
        if current is not None:
            current.resolve(self.fallback)

        self._drain()
        logger.info("Suggestion worker stopped")

    def submit(self, source_path: Path) -> Job:
        """
        Enqueue a job, blocking while the queue is full.

        Returns:
            The job; its result() blocks until the worker replies
        """
        job = Job(Path(source_path))

        if self.cancel_event.is_set():
            job.resolve(self.fallback)
            return job

        self.jobs.put(job)
        return job

    def suggest(self, source_path: Path) -> str:
        """Submit a job and wait for its reply."""
        return self.submit(source_path).result()

    def _run(self) -> None:
        while True:
            job = self.jobs.get()
            try:
                if job is None:
                    break
                self._current = job
                job.resolve(self.process(job))
            except Exception as e:
                logger.error(f"Suggestion worker failed on {job.source_path}: {e}")
                job.resolve(self.fallback)
            finally:
                self._current = None
                self.jobs.task_done()

            if self.cancel_event.is_set():
                break

    def _drain(self) -> None:
        while True:
            try:
                job = self.jobs.get_nowait()
            except queue.Empty:
                return
            if job is not None:
                job.resolve(self.fallback)
            self.jobs.task_done()

    def process(self, job: Job) -> str:
        """
        Produce a destination for one job.

        Args:
            job: Job to classify

        Returns:
            Trimmed suggestion, or the fallback folder
        """
        try:
            self.limiter.wait()
        except RateLimiterCancelled as e:
            logger.warning(f"Rate limiter error: {e}")
            return self.fallback

        metadata = get_file_metadata(job.source_path)

        folders = ""
        if self.preserve_structure or self.share_folder_structure:
            folders = get_folder_structure(self.root)

        prompt = build_prompt(
            self.instructions,
            self.knowledge,
            job.source_path.name,
            metadata,
            folders,
            self.preserve_structure,
        )
        logger.debug(f"Prompt:\n{prompt}")

        try:
            text = self.client.suggest(self.model, prompt)
        except SuggestionServiceError as e:
            logger.warning(f"Suggestion service error: {e}")
            return self.fallback

        if self.cancel_event.is_set():
            logger.info(f"Worker stopped during request, discarding suggestion for {job.source_path.name}")
            return self.fallback

        text = (text or "").strip()
        if not text:
            logger.warning(f"Empty suggestion for {job.source_path.name}")
            return self.fallback

        return text
