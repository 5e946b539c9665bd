"""
Cycle detection for the dependency graph.

Two independent checks are provided: a reachability search that decides
whether one candidate edge would close a cycle, and a whole-graph check
(Kahn's algorithm) that reports every task stuck on a cycle.
"""

import logging
from collections import deque

from ganttcpm.domain.errors import CircularDependencyError, CycleDetectedError
from ganttcpm.utils.graph import (
    DependencyGraph,
    check_dependency_references,
    task_sort_key,
)

logger = logging.getLogger(__name__)


def find_path(graph, source, target):
    """
    Depth-first search along outgoing edges from source to target.

    Returns:
        list: Task ids from source to target inclusive, or None if target
              is unreachable
    """
    if source not in graph or target not in graph:
        return None
    if source == target:
        return [source]

    parents = {source: None}
    stack = [source]
    while stack:
        current = stack.pop()
        for next_id in graph.successor_ids(current):
            if next_id in parents:
                continue
            parents[next_id] = current
            if next_id == target:
                # Walk the parent links back to the source
                path = [target]
                while parents[path[-1]] is not None:
                    path.append(parents[path[-1]])
                path.reverse()
                return path
            stack.append(next_id)
    return None


def would_create_cycle(graph, dependency):
    """Return True if adding the dependency would close a cycle."""
    if dependency.is_self_loop:
        return True
    return find_path(graph, dependency.successor_id, dependency.predecessor_id) is not None


def check_candidate(graph, dependency):
    """
    Validate a candidate dependency against the current active graph.

    The graph is never modified. An inactive candidate is checked for valid
    references only, because inactive edges take no part in the search.

    Raises:
        SelfDependencyError: If the candidate is a self-loop
        TaskReferenceError: If the candidate names an unknown task
        CircularDependencyError: If the candidate would close a cycle
    """
    check_dependency_references(graph.tasks, dependency)

    if not dependency.active:
        return

    path = find_path(graph, dependency.successor_id, dependency.predecessor_id)
    if path is not None:
        cycle = [dependency.predecessor_id] + path
        logger.debug("Candidate %s closes cycle %s", dependency, cycle)
        raise CircularDependencyError(cycle, dependency.id)


def find_cycle_members(graph):
    """
    Run Kahn's algorithm and return the tasks that could not be removed.

    Returns:
        list: Ids of tasks on (or downstream of and trapped by) a cycle,
              sorted by id. Empty when the graph is acyclic.
    """
    nx_graph = graph.nx_graph
    in_degree = {task_id: nx_graph.in_degree(task_id) for task_id in nx_graph}

    queue = deque(task_id for task_id, degree in in_degree.items() if degree == 0)
    removed = 0
    while queue:
        task_id = queue.popleft()
        removed += 1
        for _, succ_id in nx_graph.out_edges(task_id):
            in_degree[succ_id] -= 1
            if in_degree[succ_id] == 0:
                queue.append(succ_id)

    if removed == len(in_degree):
        return []

    return sorted(
        (task_id for task_id, degree in in_degree.items() if degree > 0),
        key=task_sort_key,
    )


def validate_acyclic(graph):
    """
    Check that the whole active graph is acyclic.

    Raises:
        CycleDetectedError: Listing the tasks left over by Kahn's algorithm
    """
    remaining = find_cycle_members(graph)
    if remaining:
        logger.error("Dependency graph contains a cycle: %s", remaining)
        raise CycleDetectedError(remaining)
