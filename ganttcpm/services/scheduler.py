"""
Public computation API.

Every function here is stateless: it takes a snapshot of tasks and
dependencies, builds its own graph and returns a fresh result. Nothing is
cached between calls, so any number of computations may run at once.
"""

import logging

from ganttcpm.config import DEFAULT_CONFIG
from ganttcpm.domain.schedule import ScheduleResult
from ganttcpm.services.auto_scheduler import auto_schedule_tasks
from ganttcpm.services.cpm import forward_pass, run_cpm
from ganttcpm.services.critical_path import find_critical_paths
from ganttcpm.services.cycle_detection import check_candidate, validate_acyclic
from ganttcpm.services.topology import topological_order
from ganttcpm.utils.graph import build_dependency_graph

logger = logging.getLogger(__name__)


def prepare_graph(tasks, dependencies, cancel_token=None):
    """
    Build and validate the graph, then sort it.

    Returns:
        tuple: (graph, topological order)

    Raises:
        SelfDependencyError, TaskReferenceError: On invalid dependencies
        CycleDetectedError: If the active dependencies contain a cycle
    """
    graph = build_dependency_graph(tasks, dependencies)
    validate_acyclic(graph)
    return graph, topological_order(graph, cancel_token)


def validate_dependency(tasks, dependencies, candidate):
    """
    Check whether a candidate dependency may be added to the current set.

    A dependency already in the set with the candidate's id is ignored, so
    the same call validates edits of existing dependencies.

    Raises:
        SelfDependencyError: If the candidate is a self-loop
        TaskReferenceError: If the candidate names an unknown task
        CircularDependencyError: If the candidate would close a cycle
    """
    existing = [dep for dep in dependencies if dep.id != candidate.id]
    graph = build_dependency_graph(tasks, existing)
    check_candidate(graph, candidate)


def validate_dependencies(tasks, dependencies):
    """
    Validate the whole active dependency set.

    Raises:
        SelfDependencyError, TaskReferenceError: On invalid dependencies
        CycleDetectedError: If the set contains a cycle
    """
    validate_acyclic(build_dependency_graph(tasks, dependencies))


def compute_schedule(tasks, dependencies, config=None, cancel_token=None):
    """
    Run the full critical path calculation.

    Args:
        tasks: Tasks as TaskStore, iterable or mapping of id -> Task
        dependencies: Dependencies, inactive ones are ignored
        config: Engine settings, defaults to DEFAULT_CONFIG
        cancel_token: Optional CancellationToken

    Returns:
        ScheduleResult: Timings, topological order, project duration and
                        critical paths
    """
    config = config or DEFAULT_CONFIG
    graph, order = prepare_graph(tasks, dependencies, cancel_token)
    timings, project_finish = run_cpm(
        graph, order, config.critical_tolerance, cancel_token
    )
    critical_paths = find_critical_paths(
        graph, order, timings, config.critical_tolerance, cancel_token
    )

    logger.info(
        "Scheduled %d tasks: project duration %s, %d critical path(s)",
        len(order),
        project_finish,
        len(critical_paths),
    )
    return ScheduleResult(
        timings=timings,
        order=tuple(order),
        project_duration=project_finish,
        critical_paths=tuple(critical_paths),
    )


def compute_floats(tasks, dependencies, config=None, cancel_token=None):
    """
    Compute ES, EF, LS, LF, total float and free float for every task.

    Returns:
        dict: TaskTiming per task id, in topological order
    """
    config = config or DEFAULT_CONFIG
    graph, order = prepare_graph(tasks, dependencies, cancel_token)
    timings, _ = run_cpm(graph, order, config.critical_tolerance, cancel_token)
    return timings


def compute_critical_path(tasks, dependencies, config=None, cancel_token=None):
    """
    Find the critical path(s).

    Returns:
        list: One tuple of task ids per critical chain, each in topological
              order. Parallel chains of equal length are all returned.
    """
    return list(compute_schedule(tasks, dependencies, config, cancel_token).critical_paths)


def auto_schedule(
    tasks,
    dependencies,
    project_start,
    calendar=None,
    config=None,
    cancel_token=None,
):
    """
    Assign calendar start and end dates to every task.

    Args:
        tasks: Tasks as TaskStore, iterable or mapping of id -> Task
        dependencies: Dependencies, inactive ones are ignored
        project_start: Date and time the project starts
        calendar: Optional working calendar (is_working_instant and
                  next_working_instant)
        config: Engine settings, defaults to DEFAULT_CONFIG
        cancel_token: Optional CancellationToken

    Returns:
        dict: ScheduledTask per task id, in topological order
    """
    config = config or DEFAULT_CONFIG
    graph, order = prepare_graph(tasks, dependencies, cancel_token)
    early_start, early_finish = forward_pass(graph, order, cancel_token)
    schedule = auto_schedule_tasks(
        graph,
        order,
        early_start,
        early_finish,
        project_start,
        calendar=calendar,
        clamp_to_project_start=config.clamp_to_project_start,
        cancel_token=cancel_token,
    )
    logger.info("Auto-scheduled %d tasks from %s", len(schedule), project_start)
    return schedule
