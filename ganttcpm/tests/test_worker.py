import time
import unittest
from datetime import datetime

from ganttcpm.domain.dependency import Dependency
from ganttcpm.domain.errors import ComputationCancelledError, CycleDetectedError
from ganttcpm.domain.task import Task
from ganttcpm.services.cancellation import CancellationToken
from ganttcpm.services.scheduler import auto_schedule, compute_floats, compute_schedule
from ganttcpm.services.worker import ScheduleWorker


def slow(cancel_token=None, config=None):
    """Poll the token until cancelled or about five seconds pass."""
    for _ in range(500):
        cancel_token.raise_if_cancelled()
        time.sleep(0.01)
    return "finished"


class ScheduleWorkerTestCase(unittest.TestCase):
    """Test cases for background computations."""

    def setUp(self):
        self.worker = ScheduleWorker()
        self.tasks = [Task("A", 2), Task("B", 3), Task("C", 1)]
        self.deps = [Dependency("A", "B"), Dependency("A", "C")]

    def tearDown(self):
        self.worker.shutdown()

    def test_results_match_direct_calls(self):
        handle = self.worker.submit_compute_schedule(self.tasks, self.deps)
        self.assertEqual(handle.result(timeout=5), compute_schedule(self.tasks, self.deps))

        handle = self.worker.submit_compute_floats(self.tasks, self.deps)
        self.assertEqual(handle.result(timeout=5), compute_floats(self.tasks, self.deps))

        handle = self.worker.submit_compute_critical_path(self.tasks, self.deps)
        self.assertEqual(handle.result(timeout=5), [("A", "B")])

        start = datetime(2025, 4, 1)
        handle = self.worker.submit_auto_schedule(self.tasks, self.deps, start)
        self.assertEqual(
            handle.result(timeout=5), auto_schedule(self.tasks, self.deps, start)
        )
        self.assertTrue(handle.done())

    def test_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel("user closed the chart")
        handle = self.worker.submit_compute_schedule(self.tasks, self.deps, token=token)

        with self.assertRaises(ComputationCancelledError) as ctx:
            handle.result(timeout=5)
        self.assertIn("user closed the chart", ctx.exception.message)

    def test_timeout_cancels_computation(self):
        handle = self.worker.submit(slow)
        with self.assertRaises(ComputationCancelledError):
            handle.result(timeout=0.05)
        self.assertTrue(handle.token.cancelled)

    def test_explicit_cancel(self):
        handle = self.worker.submit(slow)
        handle.cancel()
        with self.assertRaises(ComputationCancelledError):
            handle.result(timeout=5)

    def test_errors_propagate(self):
        deps = self.deps + [Dependency("B", "A")]
        handle = self.worker.submit_compute_schedule(self.tasks, deps)
        with self.assertRaises(CycleDetectedError):
            handle.result(timeout=5)


if __name__ == "__main__":
    unittest.main()
