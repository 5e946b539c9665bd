import unittest
from datetime import datetime

from ganttcpm.domain.dependency import Dependency
from ganttcpm.domain.errors import ComputationCancelledError
from ganttcpm.domain.task import Task
from ganttcpm.services.auto_scheduler import auto_schedule_tasks
from ganttcpm.services.cancellation import CancellationToken
from ganttcpm.services.cpm import backward_pass, forward_pass, run_cpm
from ganttcpm.services.critical_path import build_critical_graph, find_critical_paths
from ganttcpm.services.scheduler import compute_schedule
from ganttcpm.services.topology import topological_order
from ganttcpm.utils.graph import build_dependency_graph


def ladder(layers, width=2):
    """Equal parallel tasks per layer, each depending on the whole previous layer."""
    tasks = [
        Task(f"L{layer:02d}-{i}", 1) for layer in range(layers) for i in range(width)
    ]
    deps = [
        Dependency(f"L{layer:02d}-{i}", f"L{layer + 1:02d}-{j}")
        for layer in range(layers - 1)
        for i in range(width)
        for j in range(width)
    ]
    return tasks, deps


class CountdownToken(CancellationToken):
    """Cancels itself once it has been polled a given number of times."""

    def __init__(self, polls_allowed):
        super().__init__()
        self.polls_allowed = polls_allowed
        self.polls = 0

    def raise_if_cancelled(self):
        self.polls += 1
        if self.polls > self.polls_allowed:
            self.cancel("Countdown reached")
        super().raise_if_cancelled()


class StageCancellationTestCase(unittest.TestCase):
    """Every stage stops when handed a cancelled token."""

    def setUp(self):
        tasks = [Task("A", 2), Task("B", 3), Task("C", 1)]
        deps = [Dependency("A", "B"), Dependency("A", "C")]
        self.graph = build_dependency_graph(tasks, deps)
        self.order = topological_order(self.graph)
        self.token = CancellationToken()
        self.token.cancel()

    def test_forward_pass(self):
        with self.assertRaises(ComputationCancelledError):
            forward_pass(self.graph, self.order, self.token)

    def test_backward_pass(self):
        _, early_finish = forward_pass(self.graph, self.order)
        with self.assertRaises(ComputationCancelledError):
            backward_pass(self.graph, self.order, early_finish, self.token)

    def test_auto_schedule_without_calendar(self):
        early_start, early_finish = forward_pass(self.graph, self.order)
        with self.assertRaises(ComputationCancelledError):
            auto_schedule_tasks(
                self.graph,
                self.order,
                early_start,
                early_finish,
                datetime(2025, 4, 1),
                cancel_token=self.token,
            )

    def test_critical_graph(self):
        timings, _ = run_cpm(self.graph, self.order)
        with self.assertRaises(ComputationCancelledError):
            build_critical_graph(self.graph, timings, cancel_token=self.token)

    def test_critical_paths(self):
        timings, _ = run_cpm(self.graph, self.order)
        with self.assertRaises(ComputationCancelledError):
            find_critical_paths(self.graph, self.order, timings, cancel_token=self.token)


class LadderTestCase(unittest.TestCase):
    """Wide networks of equally long parallel routes."""

    def test_chain_count_bounded_by_driving_edges(self):
        tasks, deps = ladder(30)
        result = compute_schedule(tasks, deps)

        self.assertEqual(len(result.critical_task_ids), 60)
        self.assertLessEqual(len(result.critical_paths), len(deps))

        covered = set()
        for chain in result.critical_paths:
            self.assertEqual(len(chain), 30)
            self.assertTrue(chain[0].startswith("L00-"))
            self.assertTrue(chain[-1].startswith("L29-"))
            covered.update(zip(chain, chain[1:]))
        # Every driving link shows up in some chain
        self.assertEqual(
            covered, {(dep.predecessor_id, dep.successor_id) for dep in deps}
        )

    def test_cancelled_during_chain_extraction(self):
        tasks, deps = ladder(40)
        # Sorting and both passes poll once per task
        token = CountdownToken(polls_allowed=3 * len(tasks))

        with self.assertRaises(ComputationCancelledError) as ctx:
            compute_schedule(tasks, deps, cancel_token=token)
        self.assertEqual(ctx.exception.message, "Countdown reached")
        self.assertEqual(token.polls, 3 * len(tasks) + 1)


if __name__ == "__main__":
    unittest.main()
