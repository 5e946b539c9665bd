import unittest
from datetime import timedelta

from ganttcpm.config import EngineConfig
from ganttcpm.domain.dependency import Dependency, DependencyType
from ganttcpm.domain.task import Task
from ganttcpm.services.critical_path import build_critical_graph
from ganttcpm.services.scheduler import (
    compute_critical_path,
    compute_floats,
    compute_schedule,
)
from ganttcpm.utils.graph import build_dependency_graph


class CriticalPathTestCase(unittest.TestCase):
    """Test cases for assembling critical tasks into chains."""

    def test_parallel_chains_of_equal_length(self):
        """Two longest paths of the same length are both reported."""
        tasks = [Task("A", 1), Task("B", 2), Task("C", 2), Task("D", 1)]
        deps = [
            Dependency("A", "B"),
            Dependency("A", "C"),
            Dependency("B", "D"),
            Dependency("C", "D"),
        ]
        self.assertEqual(
            compute_critical_path(tasks, deps),
            [("A", "B", "D"), ("A", "C", "D")],
        )

    def test_disjoint_chains(self):
        tasks = [Task("A", 2), Task("B", 1), Task("C", 1), Task("D", 2)]
        deps = [Dependency("A", "B"), Dependency("C", "D")]
        self.assertEqual(compute_critical_path(tasks, deps), [("A", "B"), ("C", "D")])

    def test_non_driving_edge_splits_chain(self):
        """An edge between critical tasks that has slack is not followed."""
        tasks = [Task("X", 4), Task("Y", 5), Task("Z", 1)]
        deps = [
            Dependency("X", "Z"),
            Dependency("Y", "Z", type=DependencyType.START_TO_START),
        ]
        timings = compute_floats(tasks, deps)
        self.assertTrue(all(t.is_critical for t in timings.values()))
        self.assertEqual(compute_critical_path(tasks, deps), [("X", "Z"), ("Y",)])

    def test_tolerance_widens_critical_set(self):
        tasks = [Task("A", 2), Task("B", 3), Task("C", 1), Task("D", 2)]
        deps = [
            Dependency("A", "B"),
            Dependency("A", "C", lag=1),
            Dependency("B", "D"),
            Dependency("C", "D"),
        ]
        config = EngineConfig(critical_tolerance=timedelta(days=1))
        result = compute_schedule(tasks, deps, config=config)
        self.assertTrue(result["C"].is_critical)
        self.assertEqual(result.critical_paths, (("A", "B", "D"), ("A", "C", "D")))

    def test_critical_task_ids_in_order(self):
        tasks = [Task("A", 2), Task("B", 3), Task("C", 1)]
        deps = [Dependency("A", "B"), Dependency("A", "C")]
        result = compute_schedule(tasks, deps)
        self.assertEqual(result.critical_task_ids, ("A", "B"))

    def test_parallel_edges_collapse(self):
        """Two driving edges between the same pair give a single link."""
        tasks = [Task("A", 2), Task("B", 2)]
        deps = [
            Dependency("A", "B", id="fs"),
            Dependency("A", "B", type=DependencyType.FINISH_TO_FINISH, lag=2, id="ff"),
        ]
        graph = build_dependency_graph(tasks, deps)
        timings = compute_floats(tasks, deps)
        critical = build_critical_graph(graph, timings)
        self.assertEqual(critical.number_of_edges(), 1)
        self.assertEqual(critical["A"]["B"]["type"], DependencyType.FINISH_TO_START)
        self.assertEqual(compute_critical_path(tasks, deps), [("A", "B")])


if __name__ == "__main__":
    unittest.main()
