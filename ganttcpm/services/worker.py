"""
Running computations off the calling thread.

A UI thread hands a snapshot to a ScheduleWorker and gets a handle back at
once. The handle's token cancels the computation cooperatively; a timeout on
result() is implemented the same way.
"""

import concurrent.futures
import logging

from ganttcpm.config import DEFAULT_CONFIG
from ganttcpm.services import scheduler
from ganttcpm.services.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class ComputationHandle:
    """A running computation: its future and its cancellation token."""

    def __init__(self, future, token):
        self.future = future
        self.token = token

    def cancel(self, reason="Computation was cancelled"):
        """Ask the computation to stop at its next step."""
        self.future.cancel()
        self.token.cancel(reason)

    def done(self):
        return self.future.done()

    def result(self, timeout=None):
        """
        Wait for the result.

        Raises:
            ComputationCancelledError: If the computation was cancelled, or
                                       did not finish within the timeout
            SchedulingError: Whatever the computation raised
        """
        try:
            return self.future.result(timeout)
        except concurrent.futures.TimeoutError:
            self.cancel(f"Computation timed out after {timeout} seconds")
            logger.warning("Computation timed out after %s seconds", timeout)
            self.token.raise_if_cancelled()
            raise
        except concurrent.futures.CancelledError:
            self.token.raise_if_cancelled()
            raise


class ScheduleWorker:
    """
    Thread pool for scheduling computations.

    Snapshots passed in must not be mutated while a computation runs; the
    DependencyRegistry.snapshot() output satisfies this.
    """

    def __init__(self, config=None, executor=None):
        self.config = config or DEFAULT_CONFIG
        self._owns_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="ganttcpm",
        )

    def submit(self, fn, *args, token=None, **kwargs):
        """Run fn(*args, cancel_token=token, **kwargs) in the pool."""
        token = token or CancellationToken()
        kwargs.setdefault("config", self.config)
        future = self._executor.submit(fn, *args, cancel_token=token, **kwargs)
        return ComputationHandle(future, token)

    def submit_compute_schedule(self, tasks, dependencies, token=None):
        return self.submit(scheduler.compute_schedule, tasks, dependencies, token=token)

    def submit_compute_floats(self, tasks, dependencies, token=None):
        return self.submit(scheduler.compute_floats, tasks, dependencies, token=token)

    def submit_compute_critical_path(self, tasks, dependencies, token=None):
        return self.submit(
            scheduler.compute_critical_path, tasks, dependencies, token=token
        )

    def submit_auto_schedule(
        self, tasks, dependencies, project_start, calendar=None, token=None
    ):
        return self.submit(
            scheduler.auto_schedule,
            tasks,
            dependencies,
            project_start,
            calendar=calendar,
            token=token,
        )

    def shutdown(self, wait=True):
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
        return False
