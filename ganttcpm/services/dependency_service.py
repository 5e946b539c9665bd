import logging
import threading

from ganttcpm.domain.errors import SchedulingError
from ganttcpm.domain.task import TaskStore
from ganttcpm.services.cycle_detection import check_candidate, validate_acyclic
from ganttcpm.utils.graph import build_dependency_graph

logger = logging.getLogger(__name__)


class DependencyRegistry:
    """
    The caller's current tasks and dependencies, guarded for mutation.

    Each mutation validates the candidate and commits it while holding one
    lock, so check-then-commit is a single critical section. A rejected
    mutation leaves the registry exactly as it was. Computations should run
    on a snapshot() rather than on the registry itself.
    """

    def __init__(self, tasks=(), dependencies=()):
        self._lock = threading.RLock()
        self._tasks = TaskStore(tasks)
        self._dependencies = {}

        for dependency in dependencies:
            if dependency.id in self._dependencies:
                raise SchedulingError(f"Duplicate dependency ID: {dependency.id!r}")
            self._dependencies[dependency.id] = dependency

        # Refuse to start from an inconsistent set
        validate_acyclic(
            build_dependency_graph(self._tasks, self._dependencies.values())
        )

    @property
    def tasks(self):
        return self._tasks

    def set_tasks(self, tasks):
        """
        Replace the task set.

        Raises:
            TaskReferenceError: If an active dependency would be left
                                pointing at a removed task
        """
        store = TaskStore(tasks)
        with self._lock:
            build_dependency_graph(store, self._dependencies.values())
            self._tasks = store
        return self

    def add_dependency(self, dependency):
        """
        Validate and add a dependency.

        Raises:
            SchedulingError: If the id is already registered
            SelfDependencyError, TaskReferenceError, CircularDependencyError:
                If the dependency is rejected
        """
        with self._lock:
            if dependency.id in self._dependencies:
                raise SchedulingError(f"Duplicate dependency ID: {dependency.id!r}")
            self._check(dependency, exclude_id=None)
            self._dependencies[dependency.id] = dependency

        logger.debug("Added dependency %s", dependency)
        return dependency

    def update_dependency(self, dependency):
        """
        Replace the dependency with the same id.

        Returns:
            bool: False if no dependency has that id

        Raises:
            SelfDependencyError, TaskReferenceError, CircularDependencyError:
                If the edited dependency is rejected
        """
        with self._lock:
            if dependency.id not in self._dependencies:
                return False
            self._check(dependency, exclude_id=dependency.id)
            self._dependencies[dependency.id] = dependency

        logger.debug("Updated dependency %s", dependency)
        return True

    def remove_dependency(self, dependency_id):
        """
        Deactivate a dependency. The record is kept so it can be reactivated.

        Returns:
            bool: False if no dependency has that id
        """
        with self._lock:
            dependency = self._dependencies.get(dependency_id)
            if dependency is None:
                return False
            self._dependencies[dependency_id] = dependency.deactivated()

        logger.debug("Deactivated dependency %s", dependency_id)
        return True

    def reactivate_dependency(self, dependency_id):
        """
        Make an inactive dependency active again, subject to validation.

        Raises:
            CircularDependencyError: If reactivating would close a cycle
        """
        with self._lock:
            dependency = self._dependencies.get(dependency_id)
            if dependency is None:
                return False
            return self.update_dependency(dependency.replace(active=True))

    def purge_dependency(self, dependency_id):
        """Delete a dependency record outright."""
        with self._lock:
            return self._dependencies.pop(dependency_id, None) is not None

    def get_dependency(self, dependency_id):
        with self._lock:
            return self._dependencies.get(dependency_id)

    def get_dependencies(self, include_inactive=False):
        with self._lock:
            return [
                dep
                for dep in self._dependencies.values()
                if include_inactive or dep.active
            ]

    def get_task_dependencies(self, task_id):
        """Active dependencies in which the task is predecessor or successor."""
        with self._lock:
            return [
                dep
                for dep in self._dependencies.values()
                if dep.active and task_id in (dep.predecessor_id, dep.successor_id)
            ]

    def snapshot(self):
        """Immutable view of the current state for computations."""
        with self._lock:
            return self._tasks, tuple(self._dependencies.values())

    def _check(self, candidate, exclude_id):
        others = [
            dep for dep_id, dep in self._dependencies.items() if dep_id != exclude_id
        ]
        graph = build_dependency_graph(self._tasks, others)
        try:
            check_candidate(graph, candidate)
        except SchedulingError as exc:
            logger.warning("Rejected dependency %s: %s", candidate, exc.message)
            raise

    def __len__(self):
        with self._lock:
            return len(self._dependencies)
