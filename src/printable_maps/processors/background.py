"""Runners that execute batch loops apart from the caller that starts them."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from ..core.exceptions import NotFoundError
from ..core.logging_config import get_logger
from ..core.protocols import BatchRunner


class BackgroundBatchRunner(BatchRunner):
    """
    Runs batch loops on a single worker thread.

    Jobs run one after another in submission order, so no two batches and
    no two members of a batch are ever processed at the same time.
    """

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="batch-worker")
        self._futures: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def submit(self, job_id: str, fn: Callable[[], Any]) -> Future:
        future = self._executor.submit(fn)
        future.add_done_callback(lambda done: _log_outcome(job_id, done))
        with self._lock:
            self._futures[job_id] = future
        return future

    def wait(self, job_id: str, timeout: Optional[float] = None) -> Any:
        """
        Block until the job's loop has finished and return its result.

        The finished future is released once its outcome has been returned
        or raised, so each job can be waited on once.
        """
        with self._lock:
            future = self._futures.get(job_id)
        if future is None:
            raise NotFoundError(f"Batch job {job_id} was never submitted")
        try:
            return future.result(timeout=timeout)
        finally:
            if future.done():
                self._release(job_id, future)

    def forget(self, job_id: str) -> None:
        with self._lock:
            self._futures.pop(job_id, None)

    def tracked_jobs(self) -> List[str]:
        """Ids of jobs whose futures are still held."""
        with self._lock:
            return list(self._futures)

    def _release(self, job_id: str, future: Future) -> None:
        with self._lock:
            if self._futures.get(job_id) is future:
                del self._futures[job_id]

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class InlineBatchRunner(BatchRunner):
    """Runs the batch loop in the calling thread (CLI and tests)."""

    def submit(self, job_id: str, fn: Callable[[], Any]) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn())
        except Exception as exc:  # noqa: BLE001
            future.set_exception(exc)
        _log_outcome(job_id, future)
        return future


def _log_outcome(job_id: str, future: Future) -> None:
    logger = get_logger("printable-maps.batch")
    exc = future.exception()
    if exc is not None:
        logger.error(f"Batch job {job_id} worker crashed: {exc}", exc_info=exc)
    else:
        logger.debug(f"Batch job {job_id} worker finished")
