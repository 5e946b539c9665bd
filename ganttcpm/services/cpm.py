"""
Critical Path Method passes.

The forward pass computes earliest start/finish, the backward pass latest
start/finish, and the float calculator derives total and free float from
both. All values are timedelta offsets from the project start.

Each dependency type maps to a pure constraint function. Keeping them in
lookup tables rather than branching inside the passes lets every formula be
tested on its own.
"""

import logging
from datetime import timedelta
from typing import Callable, Dict

from ganttcpm.domain.dependency import DependencyType
from ganttcpm.domain.errors import InvariantViolationError
from ganttcpm.domain.schedule import TaskTiming
from ganttcpm.services.cancellation import check_cancelled
from ganttcpm.utils.time_utils import ZERO

logger = logging.getLogger(__name__)

# (pred_es, pred_ef, lag, succ_duration) -> lower bound on successor ES
EarlyStartConstraint = Callable[[timedelta, timedelta, timedelta, timedelta], timedelta]

EARLY_START_CONSTRAINTS: Dict[DependencyType, EarlyStartConstraint] = {
    DependencyType.FINISH_TO_START: lambda es, ef, lag, dur: ef + lag,
    DependencyType.START_TO_START: lambda es, ef, lag, dur: es + lag,
    DependencyType.FINISH_TO_FINISH: lambda es, ef, lag, dur: ef + lag - dur,
    DependencyType.START_TO_FINISH: lambda es, ef, lag, dur: es + lag - dur,
}

# (succ_ls, succ_lf, lag, pred_duration) -> upper bound on predecessor LF
LateFinishConstraint = Callable[[timedelta, timedelta, timedelta, timedelta], timedelta]

LATE_FINISH_CONSTRAINTS: Dict[DependencyType, LateFinishConstraint] = {
    DependencyType.FINISH_TO_START: lambda ls, lf, lag, dur: ls - lag,
    DependencyType.START_TO_START: lambda ls, lf, lag, dur: ls - lag + dur,
    DependencyType.FINISH_TO_FINISH: lambda ls, lf, lag, dur: lf - lag,
    DependencyType.START_TO_FINISH: lambda ls, lf, lag, dur: lf - lag + dur,
}

# (pred_es, pred_ef, succ_es, succ_ef, lag) -> slack on this relationship
RelationshipSlack = Callable[
    [timedelta, timedelta, timedelta, timedelta, timedelta], timedelta
]

RELATIONSHIP_SLACK: Dict[DependencyType, RelationshipSlack] = {
    DependencyType.FINISH_TO_START: lambda pes, pef, ses, sef, lag: ses - lag - pef,
    DependencyType.START_TO_START: lambda pes, pef, ses, sef, lag: ses - lag - pes,
    DependencyType.FINISH_TO_FINISH: lambda pes, pef, ses, sef, lag: sef - lag - pef,
    DependencyType.START_TO_FINISH: lambda pes, pef, ses, sef, lag: sef - lag - pes,
}


def early_start_bound(edge, pred_es, pred_ef, succ_duration):
    """Earliest start the edge allows for its successor."""
    return EARLY_START_CONSTRAINTS[edge.type](pred_es, pred_ef, edge.lag, succ_duration)


def late_finish_bound(edge, succ_ls, succ_lf, pred_duration):
    """Latest finish the edge allows for its predecessor."""
    return LATE_FINISH_CONSTRAINTS[edge.type](succ_ls, succ_lf, edge.lag, pred_duration)


def relationship_slack(edge, pred_es, pred_ef, succ_es, succ_ef):
    """How far the predecessor can slip before this edge delays the successor."""
    return RELATIONSHIP_SLACK[edge.type](pred_es, pred_ef, succ_es, succ_ef, edge.lag)


def forward_pass(graph, order, cancel_token=None):
    """
    Calculate early start and early finish times.

    Tasks without active predecessors start at zero. Other tasks start at the
    largest bound over all incoming edges, which may be negative when leads
    outweigh everything else.

    Args:
        graph: Dependency graph
        order: Task ids in topological order
        cancel_token: Optional CancellationToken polled once per task

    Returns:
        tuple: (early_start, early_finish) dictionaries keyed by task id
    """
    tasks = graph.tasks
    early_start = {}
    early_finish = {}

    for task_id in order:
        check_cancelled(cancel_token)
        duration = tasks.duration(task_id)
        incoming = graph.predecessors(task_id)

        if not incoming:  # Start task
            start = ZERO
        else:
            start = max(
                early_start_bound(
                    edge,
                    early_start[edge.predecessor_id],
                    early_finish[edge.predecessor_id],
                    duration,
                )
                for edge in incoming
            )

        early_start[task_id] = start
        early_finish[task_id] = start + duration

    logger.debug("Forward pass done for %d tasks", len(order))
    return early_start, early_finish


def backward_pass(graph, order, early_finish, cancel_token=None):
    """
    Calculate late start and late finish times.

    Every task's late finish is bounded by the project finish (the largest
    early finish). Tasks with successors are further bounded by the smallest
    limit over all outgoing edges.

    Args:
        graph: Dependency graph
        order: Task ids in topological order
        early_finish: Early finish per task from the forward pass
        cancel_token: Optional CancellationToken polled once per task

    Returns:
        tuple: (late_start, late_finish, project_finish)
    """
    tasks = graph.tasks
    project_finish = max(early_finish.values()) if early_finish else ZERO
    late_start = {}
    late_finish = {}

    for task_id in reversed(order):
        check_cancelled(cancel_token)
        duration = tasks.duration(task_id)
        finish = project_finish

        for edge in graph.successors(task_id):
            bound = late_finish_bound(
                edge,
                late_start[edge.successor_id],
                late_finish[edge.successor_id],
                duration,
            )
            if bound < finish:
                finish = bound

        late_finish[task_id] = finish
        late_start[task_id] = finish - duration

    logger.debug(
        "Backward pass done for %d tasks, project finish %s", len(order), project_finish
    )
    return late_start, late_finish, project_finish


def calculate_floats(
    graph,
    order,
    early_start,
    early_finish,
    late_start,
    late_finish,
    tolerance=ZERO,
):
    """
    Derive total float, free float and criticality for every task.

    Free float is the smallest relationship slack over the task's outgoing
    edges, evaluated at the successors' early dates, and never exceeds total
    float. A task without successors has free float equal to total float.

    Returns:
        dict: TaskTiming per task id, in topological order

    Raises:
        InvariantViolationError: If a computed float is negative or a pass
                                 broke EF = ES + duration
    """
    tasks = graph.tasks
    timings = {}

    for task_id in order:
        duration = tasks.duration(task_id)
        es, ef = early_start[task_id], early_finish[task_id]
        ls, lf = late_start[task_id], late_finish[task_id]

        if ef - es != duration or lf - ls != duration:
            raise InvariantViolationError(
                f"Task {task_id!r} timings are inconsistent with its duration",
                [task_id],
            )

        total_float = ls - es
        if total_float < ZERO:
            raise InvariantViolationError(
                f"Task {task_id!r} has negative total float {total_float}", [task_id]
            )

        outgoing = graph.successors(task_id)
        if outgoing:
            free_float = min(
                relationship_slack(
                    edge,
                    es,
                    ef,
                    early_start[edge.successor_id],
                    early_finish[edge.successor_id],
                )
                for edge in outgoing
            )
            if free_float < ZERO:
                raise InvariantViolationError(
                    f"Task {task_id!r} has negative free float {free_float}", [task_id]
                )
            free_float = min(free_float, total_float)
        else:
            free_float = total_float

        timings[task_id] = TaskTiming(
            task_id=task_id,
            duration=duration,
            early_start=es,
            early_finish=ef,
            late_start=ls,
            late_finish=lf,
            total_float=total_float,
            free_float=free_float,
            is_critical=total_float <= tolerance,
        )

    return timings


def run_cpm(graph, order, tolerance=ZERO, cancel_token=None):
    """
    Run both passes and the float calculator.

    Returns:
        tuple: (timings, project_finish)
    """
    early_start, early_finish = forward_pass(graph, order, cancel_token)
    late_start, late_finish, project_finish = backward_pass(
        graph, order, early_finish, cancel_token
    )
    timings = calculate_floats(
        graph,
        order,
        early_start,
        early_finish,
        late_start,
        late_finish,
        tolerance,
    )
    return timings, project_finish
