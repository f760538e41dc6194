"""
Bounded-concurrency upload scheduler.

Every file becomes one task submitted to a thread pool up front. A counting
admission gate (BoundedSemaphore) limits how many tasks perform I/O at once;
the rest wait on the gate. Each task emits exactly one UploadResult to a
queue sized to the batch, so producers never block, and the queue is drained
only after the pool has joined.

Failures are isolated per file: a task never raises, it records the error in
its result and the remaining tasks carry on.
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Optional, Union

from .aggregator import aggregate_results, drain_queue
from .errors import ConfigurationError, TransferCancelledError, UploadError
from .hashing import calculate_md5
from .keys import object_key_for
from .models import (
    MD5_METADATA_KEY,
    SKIP_REASON_UNCHANGED,
    TransferTask,
    UploadMode,
    UploadResult,
    UploadSummary,
)
from .prober import probe_remote_md5
from .storage import ObjectStore

logger = logging.getLogger(__name__)

# Default number of transfers allowed in flight at once
MAX_CONCURRENT_UPLOADS = 96

# How often a task blocked on the gate re-checks the cancel signal
GATE_POLL_SECONDS = 0.1


class UploadScheduler:
    """Fans a batch of files out to worker threads behind an admission gate."""

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        max_concurrent: int = MAX_CONCURRENT_UPLOADS,
        max_workers: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            store: Shared object store client, used read-only by all tasks
            bucket: Target bucket
            max_concurrent: Size of the admission gate
            max_workers: Worker threads in the pool (defaults to max_concurrent)
            cancel_event: Optional signal that makes pending and in-flight
                tasks stop and report TransferCancelledError

        Raises:
            ConfigurationError: If max_concurrent or max_workers is below 1
        """
        if max_concurrent < 1:
            raise ConfigurationError(f"max_concurrent must be >= 1, got {max_concurrent}")
        if max_workers is not None and max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")

        self.store = store
        self.bucket = bucket
        self.max_concurrent = max_concurrent
        self.max_workers = max_workers or max_concurrent
        self.cancel_event = cancel_event

    def upload_to_remote(
        self,
        files: Iterable[Union[str, Path]],
        root: Union[str, Path],
        prefix: str = "",
    ) -> UploadSummary:
        """Upload every file unconditionally."""
        return self.run(files, root, prefix, UploadMode.UNCONDITIONAL)

    def sync_to_remote(
        self,
        files: Iterable[Union[str, Path]],
        root: Union[str, Path],
        prefix: str = "",
    ) -> UploadSummary:
        """Upload only files whose remote MD5 differs or is missing."""
        return self.run(files, root, prefix, UploadMode.SYNC)

    def run(
        self,
        files: Iterable[Union[str, Path]],
        root: Union[str, Path],
        prefix: str = "",
        mode: UploadMode = UploadMode.UNCONDITIONAL,
    ) -> UploadSummary:
        """
        Transfer a batch of files and summarize the outcome.

        Args:
            files: Paths below root
            root: Directory the object keys are made relative to
            prefix: Remote key prefix
            mode: UNCONDITIONAL or SYNC

        Returns:
            UploadSummary with one result per file, in completion order
        """
        paths = [Path(f) for f in files]
        root = Path(root)
        mode = UploadMode(mode)

        # Sized to the batch so a put never waits on the consumer
        results_queue = queue.Queue(maxsize=len(paths))
        gate = threading.BoundedSemaphore(self.max_concurrent)

        logger.info(
            f"Starting {mode.value} of {len(paths)} files to {self.bucket} "
            f"(max {self.max_concurrent} concurrent)"
        )

        if paths:
            workers = min(self.max_workers, len(paths))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bucketsync") as executor:
                for path in paths:
                    executor.submit(self._run_task, path, root, prefix, mode, gate, results_queue)

        return aggregate_results(drain_queue(results_queue), len(paths))

    def _run_task(
        self,
        path: Path,
        root: Path,
        prefix: str,
        mode: UploadMode,
        gate: threading.BoundedSemaphore,
        results_queue: queue.Queue,
    ) -> None:
        result = self._process(path, root, prefix, mode, gate)
        results_queue.put_nowait(result)

    def _process(
        self,
        path: Path,
        root: Path,
        prefix: str,
        mode: UploadMode,
        gate: threading.BoundedSemaphore,
    ) -> UploadResult:
        key = ""
        try:
            key = object_key_for(root, path, prefix)
            self._acquire(gate, path)
            try:
                return self._transfer(TransferTask(local_path=path, remote_key=key), mode)
            finally:
                gate.release()
        except Exception as e:
            logger.warning(f"Failed to upload {path}: {e}")
            return UploadResult(file_path=str(path), object_key=key, error=e)

    def _acquire(self, gate: threading.BoundedSemaphore, path: Path) -> None:
        if self.cancel_event is None:
            gate.acquire()
            return
        while not gate.acquire(timeout=GATE_POLL_SECONDS):
            self._check_cancelled(path)

    def _check_cancelled(self, path: Path) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise TransferCancelledError(path)

    def _transfer(self, task: TransferTask, mode: UploadMode) -> UploadResult:
        path = task.local_path
        self._check_cancelled(path)

        local_md5 = calculate_md5(path, cancel_event=self.cancel_event)

        if mode is UploadMode.SYNC:
            self._check_cancelled(path)
            remote_md5 = probe_remote_md5(self.store, self.bucket, task.remote_key)
            if remote_md5 and remote_md5 == local_md5:
                logger.debug(f"Skipping {path}: {SKIP_REASON_UNCHANGED}")
                return UploadResult(
                    file_path=str(path),
                    object_key=task.remote_key,
                    success=True,
                    skipped=True,
                    skip_reason=SKIP_REASON_UNCHANGED,
                )

        self._check_cancelled(path)
        try:
            self.store.put_object(
                self.bucket,
                task.remote_key,
                path,
                metadata={MD5_METADATA_KEY: local_md5},
                cancel_event=self.cancel_event,
            )
        except TransferCancelledError:
            raise
        except Exception as e:
            raise UploadError(path, f"Failed to upload {path} to {task.remote_key}: {e}") from e

        logger.debug(f"Uploaded {path} -> {task.remote_key}")
        return UploadResult(file_path=str(path), object_key=task.remote_key, success=True)
