import logging
from dataclasses import dataclass
from datetime import timedelta

import networkx as nx

from ganttcpm.domain.dependency import DependencyType
from ganttcpm.domain.errors import (
    SelfDependencyError,
    TaskReferenceError,
)
from ganttcpm.domain.task import TaskStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """One active dependency as stored in the graph."""

    dependency_id: str
    predecessor_id: object
    successor_id: object
    type: DependencyType
    lag: timedelta
    priority: int = 0


def task_sort_key(task_id):
    """
    Stable ordering key for task ids of mixed types.

    Numbers sort numerically before everything else, which then sorts by
    type name and string form.
    """
    if isinstance(task_id, (int, float)) and not isinstance(task_id, bool):
        return (0, "", task_id)
    return (1, type(task_id).__name__, str(task_id))


class DependencyGraph:
    """
    Directed multigraph of tasks keyed by task id.

    Nodes are task ids and every active dependency is one edge keyed by its
    dependency id, so several constraints between the same ordered pair are
    kept side by side. Edges hold ids only, never task objects.
    """

    def __init__(self, tasks, graph=None):
        self.tasks = tasks
        self._graph = graph if graph is not None else nx.MultiDiGraph()

    @property
    def nx_graph(self):
        return self._graph

    def add_edge(self, dependency):
        """
        Add an active dependency as an edge.

        Raises:
            SelfDependencyError: If predecessor and successor are the same task
            TaskReferenceError: If either end is not a known task
        """
        check_dependency_references(self.tasks, dependency)
        edge = Edge(
            dependency_id=dependency.id,
            predecessor_id=dependency.predecessor_id,
            successor_id=dependency.successor_id,
            type=dependency.type,
            lag=dependency.lag,
            priority=dependency.priority,
        )
        self._graph.add_edge(
            dependency.predecessor_id,
            dependency.successor_id,
            key=dependency.id,
            edge=edge,
        )
        return edge

    def remove_edge(self, dependency_id):
        for pred, succ, key in list(self._graph.edges(keys=True)):
            if key == dependency_id:
                self._graph.remove_edge(pred, succ, key=key)
                return True
        return False

    def successors(self, task_id):
        """Outgoing edges of a task, in a stable order."""
        return [
            data["edge"] for _, _, data in self._graph.out_edges(task_id, data=True)
        ]

    def predecessors(self, task_id):
        """Incoming edges of a task, in a stable order."""
        return [
            data["edge"] for _, _, data in self._graph.in_edges(task_id, data=True)
        ]

    def successor_ids(self, task_id):
        return list(self._graph.successors(task_id))

    def has_predecessors(self, task_id):
        return self._graph.in_degree(task_id) > 0

    def has_successors(self, task_id):
        return self._graph.out_degree(task_id) > 0

    def edges(self):
        return [data["edge"] for _, _, data in self._graph.edges(data=True)]

    def __len__(self):
        return self._graph.number_of_nodes()

    def __contains__(self, task_id):
        return task_id in self._graph


def check_dependency_references(tasks, dependency):
    """
    Reject self-loops and references to unknown tasks.

    Raises:
        SelfDependencyError: If predecessor and successor are the same task
        TaskReferenceError: If either end is not in the task store
    """
    if dependency.is_self_loop:
        raise SelfDependencyError(dependency.predecessor_id, dependency.id)

    missing = [
        task_id
        for task_id in (dependency.predecessor_id, dependency.successor_id)
        if task_id not in tasks
    ]
    if missing:
        raise TaskReferenceError(missing, dependency.id)


def build_dependency_graph(tasks, dependencies):
    """
    Build a directed graph representing task dependencies.

    Inactive dependencies are skipped. Duplicate edges between the same pair
    of tasks are kept; each is honoured independently.

    Args:
        tasks: TaskStore, iterable of Task objects or mapping of id -> Task
        dependencies: Dependency objects, active and inactive

    Returns:
        DependencyGraph: Graph with a node for every task

    Raises:
        SelfDependencyError: If an active dependency is a self-loop
        TaskReferenceError: If an active dependency names an unknown task
    """
    store = tasks if isinstance(tasks, TaskStore) else TaskStore(tasks)
    graph = DependencyGraph(store)

    # Add task nodes
    for task_id in store:
        graph.nx_graph.add_node(task_id)

    # Add active dependencies (edges)
    skipped = 0
    for dependency in dependencies:
        if not dependency.active:
            skipped += 1
            continue
        graph.add_edge(dependency)

    logger.debug(
        "Built dependency graph: %d tasks, %d edges (%d inactive skipped)",
        len(store),
        graph.nx_graph.number_of_edges(),
        skipped,
    )
    return graph
