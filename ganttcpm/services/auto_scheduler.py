"""
Auto-scheduling: turning CPM offsets into calendar dates.

Without a working calendar every task simply starts at project start + ES.
With one, starts and ends that land in non-working time are pushed forward
and the knock-on effect is propagated to successors, sweep after sweep,
until nothing moves.
"""

import logging
from datetime import timedelta

from ganttcpm.domain.errors import ScheduleNotConvergedError
from ganttcpm.domain.schedule import ScheduledTask
from ganttcpm.services.cancellation import check_cancelled
from ganttcpm.services.cpm import early_start_bound
from ganttcpm.utils.time_utils import ZERO

logger = logging.getLogger(__name__)

# An end lands in non-working time when the last instant the task occupies does
END_PROBE = timedelta(microseconds=1)


def place_task(
    required_start,
    duration,
    project_start,
    calendar=None,
    clamp_to_project_start=True,
):
    """
    Place one task no earlier than required_start.

    Returns:
        tuple: (start, end)
    """
    start = required_start
    if clamp_to_project_start and start < project_start:
        start = project_start

    if calendar is not None and not calendar.is_working_instant(start):
        start = calendar.next_working_instant(start)

    end = start + duration
    if (
        calendar is not None
        and duration > ZERO
        and not calendar.is_working_instant(end - END_PROBE)
    ):
        end = calendar.next_working_instant(end)

    return start, end


def raw_schedule(order, early_start, early_finish, project_start):
    """Map CPM offsets straight onto dates: Start = project start + ES."""
    return {
        task_id: ScheduledTask(
            task_id=task_id,
            start=project_start + early_start[task_id],
            end=project_start + early_finish[task_id],
        )
        for task_id in order
    }


def auto_schedule_tasks(
    graph,
    order,
    early_start,
    early_finish,
    project_start,
    calendar=None,
    clamp_to_project_start=True,
    cancel_token=None,
    max_sweeps=None,
):
    """
    Assign concrete start and end dates to every task.

    Args:
        graph: Dependency graph
        order: Task ids in topological order
        early_start: Early start offsets from the forward pass
        early_finish: Early finish offsets from the forward pass
        project_start: Date and time the project starts
        calendar: Optional working calendar
        clamp_to_project_start: Move tasks a lead would start before the
            project start up to the project start
        cancel_token: Optional CancellationToken polled once per task
        max_sweeps: Sweep limit, defaults to number of tasks + 1

    Returns:
        dict: ScheduledTask per task id, in topological order

    Raises:
        ScheduleNotConvergedError: If dates still move after max_sweeps sweeps
    """
    check_cancelled(cancel_token)
    schedule = raw_schedule(order, early_start, early_finish, project_start)

    needs_clamp = clamp_to_project_start and any(
        early_start[task_id] < ZERO for task_id in order
    )
    if calendar is None and not needs_clamp:
        return schedule

    tasks = graph.tasks
    limit = max_sweeps if max_sweeps is not None else len(order) + 1
    moved = []

    for sweep in range(1, limit + 1):
        moved = []
        for task_id in order:
            check_cancelled(cancel_token)
            duration = tasks.duration(task_id)
            incoming = graph.predecessors(task_id)

            if incoming:
                required = max(
                    early_start_bound(
                        edge,
                        schedule[edge.predecessor_id].start,
                        schedule[edge.predecessor_id].end,
                        duration,
                    )
                    for edge in incoming
                )
            else:
                required = project_start + early_start[task_id]

            start, end = place_task(
                required, duration, project_start, calendar, clamp_to_project_start
            )
            current = schedule[task_id]
            if start != current.start or end != current.end:
                schedule[task_id] = ScheduledTask(task_id, start, end)
                moved.append(task_id)

        logger.debug("Auto-schedule sweep %d moved %d task(s)", sweep, len(moved))
        if not moved:
            return schedule

    raise ScheduleNotConvergedError(limit, moved)
