import unittest

from ganttcpm.domain.dependency import Dependency
from ganttcpm.domain.errors import (
    CircularDependencyError,
    CycleDetectedError,
    SelfDependencyError,
    TaskReferenceError,
)
from ganttcpm.domain.task import Task, TaskStore
from ganttcpm.services.cycle_detection import (
    check_candidate,
    find_cycle_members,
    find_path,
    validate_acyclic,
    would_create_cycle,
)
from ganttcpm.utils.graph import DependencyGraph, build_dependency_graph


def graph_with_cycle(tasks, pairs):
    """Build a graph edge by edge, bypassing candidate checks."""
    graph = DependencyGraph(TaskStore(tasks))
    for task in tasks:
        graph.nx_graph.add_node(task.id)
    for pred, succ in pairs:
        graph.add_edge(Dependency(pred, succ))
    return graph


class CandidateCheckTestCase(unittest.TestCase):
    """Test cases for validating a single new dependency."""

    def setUp(self):
        self.tasks = [Task(name, 1) for name in "ABCD"]
        self.graph = build_dependency_graph(
            self.tasks,
            [Dependency("A", "B"), Dependency("B", "C"), Dependency("C", "D")],
        )

    def test_find_path(self):
        self.assertEqual(find_path(self.graph, "A", "D"), ["A", "B", "C", "D"])
        self.assertIsNone(find_path(self.graph, "D", "A"))
        self.assertIsNone(find_path(self.graph, "A", "Z"))

    def test_acyclic_candidate_accepted(self):
        check_candidate(self.graph, Dependency("A", "D"))
        self.assertFalse(would_create_cycle(self.graph, Dependency("A", "C")))

    def test_back_edge_rejected_with_path(self):
        """The error reports the cycle the candidate would close."""
        candidate = Dependency("D", "A", id="da")
        with self.assertRaises(CircularDependencyError) as ctx:
            check_candidate(self.graph, candidate)
        self.assertEqual(ctx.exception.path, ["D", "A", "B", "C", "D"])
        self.assertEqual(ctx.exception.dependency_id, "da")
        self.assertTrue(would_create_cycle(self.graph, candidate))

    def test_check_does_not_mutate_graph(self):
        edges_before = len(self.graph.edges())
        with self.assertRaises(CircularDependencyError):
            check_candidate(self.graph, Dependency("C", "A"))
        check_candidate(self.graph, Dependency("A", "C"))
        self.assertEqual(len(self.graph.edges()), edges_before)

    def test_self_loop_rejected_first(self):
        with self.assertRaises(SelfDependencyError):
            check_candidate(self.graph, Dependency("B", "B"))
        self.assertTrue(would_create_cycle(self.graph, Dependency("B", "B")))

    def test_unknown_task_rejected(self):
        with self.assertRaises(TaskReferenceError):
            check_candidate(self.graph, Dependency("A", "Z"))

    def test_inactive_candidate_skips_cycle_search(self):
        """Inactive edges take no part in cycle detection."""
        check_candidate(self.graph, Dependency("D", "A", active=False))

    def test_inactive_edges_not_followed(self):
        graph = build_dependency_graph(
            self.tasks,
            [Dependency("A", "B", active=False), Dependency("B", "C")],
        )
        check_candidate(graph, Dependency("B", "A"))


class WholeGraphValidationTestCase(unittest.TestCase):
    """Test cases for Kahn's algorithm over the whole graph."""

    def test_acyclic_graph_passes(self):
        tasks = [Task(name, 1) for name in "ABC"]
        graph = build_dependency_graph(
            tasks, [Dependency("A", "B"), Dependency("A", "C")]
        )
        self.assertEqual(find_cycle_members(graph), [])
        validate_acyclic(graph)

    def test_cycle_members_reported(self):
        tasks = [Task(name, 1) for name in "ABCD"]
        graph = graph_with_cycle(tasks, [("A", "B"), ("B", "C"), ("C", "B")])
        self.assertEqual(find_cycle_members(graph), ["B", "C"])
        with self.assertRaises(CycleDetectedError) as ctx:
            validate_acyclic(graph)
        self.assertEqual(ctx.exception.task_ids, ["B", "C"])
        self.assertEqual(ctx.exception.kind, "cycle_detected")


if __name__ == "__main__":
    unittest.main()
