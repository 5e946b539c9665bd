import unittest
from datetime import datetime, timedelta

from ganttcpm.domain.dependency import Dependency, DependencyError, DependencyType
from ganttcpm.domain.task import Task, TaskError, TaskStore


class TaskTestCase(unittest.TestCase):
    """Test cases for the Task class."""

    def test_initialization_validation(self):
        """Test validation during task initialization."""
        # Invalid ID
        with self.assertRaises(TaskError):
            Task(id=None, duration=1)
        with self.assertRaises(TaskError):
            Task(id="  ", duration=1)
        with self.assertRaises(TaskError):
            Task(id=["not", "hashable"], duration=1)

        # Invalid duration
        with self.assertRaises(TaskError):
            Task(id="T1", duration=-1)
        with self.assertRaises(TaskError):
            Task(id="T1", duration="3 days")

        # End before start
        with self.assertRaises(TaskError):
            Task(
                id="T1",
                duration=1,
                start=datetime(2025, 4, 2),
                end=datetime(2025, 4, 1),
            )

    def test_duration_conversion(self):
        """Numbers are days, timedeltas are kept as they are."""
        self.assertEqual(Task("T1", 2).duration, timedelta(days=2))
        self.assertEqual(Task("T1", 0.5).duration, timedelta(hours=12))
        self.assertEqual(Task("T1", timedelta(hours=3)).duration, timedelta(hours=3))

    def test_milestone_and_defaults(self):
        milestone = Task("M1", 0)
        self.assertTrue(milestone.is_milestone)
        self.assertEqual(milestone.name, "M1")
        self.assertFalse(Task("T1", 1, name="Build").is_milestone)

    def test_end_derived_from_start(self):
        """Without an explicit end, the end anchor is start + duration."""
        task = Task("T1", 2, start=datetime(2025, 4, 1))
        self.assertEqual(task.end, datetime(2025, 4, 3))
        self.assertIsNone(Task("T2", 2).end)


class TaskStoreTestCase(unittest.TestCase):
    """Test cases for the TaskStore lookup."""

    def test_lookup_and_order(self):
        store = TaskStore([Task("B", 1), Task("A", 2)])
        self.assertEqual(list(store), ["B", "A"])
        self.assertEqual(len(store), 2)
        self.assertEqual(store.duration("A"), timedelta(days=2))
        self.assertIn("B", store)
        self.assertNotIn("C", store)

    def test_accepts_mapping(self):
        store = TaskStore({"A": Task("A", 1)})
        self.assertEqual(store["A"].id, "A")

    def test_duplicate_ids_rejected(self):
        with self.assertRaises(TaskError):
            TaskStore([Task("A", 1), Task("A", 2)])

    def test_non_task_rejected(self):
        with self.assertRaises(TaskError):
            TaskStore(["A"])


class DependencyTestCase(unittest.TestCase):
    """Test cases for the Dependency value type."""

    def test_defaults(self):
        dep = Dependency("A", "B")
        self.assertEqual(dep.type, DependencyType.FINISH_TO_START)
        self.assertEqual(dep.lag, timedelta(0))
        self.assertTrue(dep.active)
        self.assertEqual(dep.priority, 0)
        self.assertTrue(dep.id)

    def test_ids_are_unique(self):
        self.assertNotEqual(Dependency("A", "B").id, Dependency("A", "B").id)

    def test_type_from_string(self):
        dep = Dependency("A", "B", type="start_to_start")
        self.assertEqual(dep.type, DependencyType.START_TO_START)
        self.assertEqual(dep.type.short_name, "SS")

    def test_invalid_values(self):
        with self.assertRaises(DependencyError):
            Dependency("A", "B", type="later")
        with self.assertRaises(DependencyError):
            Dependency("A", None)
        with self.assertRaises(DependencyError):
            Dependency("A", "B", lag="1d")
        with self.assertRaises(DependencyError):
            Dependency("A", "B", priority=1.5)

    def test_negative_lag_allowed(self):
        dep = Dependency("A", "B", lag=-2)
        self.assertEqual(dep.lag, timedelta(days=-2))

    def test_replace_returns_copy(self):
        dep = Dependency("A", "B", id="d1")
        edited = dep.replace(lag=3)
        self.assertEqual(edited.id, "d1")
        self.assertEqual(edited.lag, timedelta(days=3))
        self.assertEqual(dep.lag, timedelta(0))
        self.assertFalse(dep.deactivated().active)
        self.assertTrue(dep.active)

    def test_self_loop_flag(self):
        self.assertTrue(Dependency("A", "A").is_self_loop)
        self.assertFalse(Dependency("A", "B").is_self_loop)


if __name__ == "__main__":
    unittest.main()
