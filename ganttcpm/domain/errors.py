"""
Structured errors raised by the scheduling engine.

Every error carries a ``kind`` string and the ids of the tasks involved so a
caller can surface it next to the offending tasks without parsing messages.
"""

from typing import Iterable, List, Optional


class SchedulingError(Exception):
    """Base class for all scheduling engine errors."""

    kind = "scheduling_error"

    def __init__(self, message: str, task_ids: Optional[Iterable] = None):
        super().__init__(message)
        self.message = message
        self.task_ids = list(task_ids) if task_ids is not None else []

    def to_dict(self):
        """Return the error as a plain dictionary."""
        return {"kind": self.kind, "message": self.message, "task_ids": self.task_ids}


class SelfDependencyError(SchedulingError):
    """A dependency names the same task as predecessor and successor."""

    kind = "self_dependency"

    def __init__(self, task_id, dependency_id=None):
        super().__init__(f"Task {task_id!r} cannot depend on itself", [task_id])
        self.dependency_id = dependency_id


class TaskReferenceError(SchedulingError):
    """A dependency references a task id that does not exist."""

    kind = "reference"

    def __init__(self, missing_ids, dependency_id=None):
        missing = list(missing_ids)
        super().__init__(
            f"Dependency {dependency_id!r} references unknown task(s): "
            f"{', '.join(repr(t) for t in missing)}",
            missing,
        )
        self.dependency_id = dependency_id


class CircularDependencyError(SchedulingError):
    """Adding a candidate dependency would close a cycle."""

    kind = "circular_dependency"

    def __init__(self, path: List, dependency_id=None):
        # path runs predecessor -> successor -> ... -> predecessor
        super().__init__(
            "Dependency would create a cycle: "
            + " -> ".join(repr(t) for t in path),
            path,
        )
        self.path = list(path)
        self.dependency_id = dependency_id


class CycleDetectedError(SchedulingError):
    """The active dependency set already contains a cycle."""

    kind = "cycle_detected"

    def __init__(self, task_ids):
        ids = list(task_ids)
        super().__init__(
            f"Dependency graph contains a cycle through {len(ids)} task(s): "
            f"{', '.join(repr(t) for t in ids)}",
            ids,
        )


class InvariantViolationError(SchedulingError):
    """An internal invariant failed. This is an engine defect, not bad input."""

    kind = "invariant_violation"


class ScheduleNotConvergedError(SchedulingError):
    """The working-calendar fix-up did not stabilise."""

    kind = "schedule_not_converged"

    def __init__(self, iterations: int, task_ids):
        super().__init__(
            f"Auto-schedule did not converge after {iterations} sweeps", task_ids
        )
        self.iterations = iterations


class ComputationCancelledError(SchedulingError):
    """The computation was cancelled through its cancellation token."""

    kind = "cancelled"

    def __init__(self, message: str = "Computation was cancelled"):
        super().__init__(message)


class CalendarError(SchedulingError):
    """A working calendar could not answer a query."""

    kind = "calendar"
