"""
GanttCPM Scheduling Engine
==========================

Task-dependency validation and Critical Path Method scheduling for Gantt
charts.

Available modules:
- domain: tasks, dependencies, results, errors and working calendars
- services.scheduler: the stateless computation API
- services.dependency_service: validated, thread-safe dependency edits
- services.worker: background computations with cooperative cancellation
"""

from ganttcpm.domain.calendar import CalendarException, WorkingCalendar
from ganttcpm.domain.dependency import Dependency, DependencyType
from ganttcpm.domain.errors import (
    CalendarError,
    CircularDependencyError,
    ComputationCancelledError,
    CycleDetectedError,
    InvariantViolationError,
    ScheduleNotConvergedError,
    SchedulingError,
    SelfDependencyError,
    TaskReferenceError,
)
from ganttcpm.domain.schedule import ScheduledTask, ScheduleResult, TaskTiming
from ganttcpm.domain.task import Task, TaskStore
from ganttcpm.services.cancellation import CancellationToken
from ganttcpm.services.dependency_service import DependencyRegistry
from ganttcpm.services.scheduler import (
    auto_schedule,
    compute_critical_path,
    compute_floats,
    compute_schedule,
    validate_dependencies,
    validate_dependency,
)
from ganttcpm.services.validation import find_dependency_violations
from ganttcpm.services.worker import ScheduleWorker

__version__ = "0.1.0"

__all__ = [
    "Task",
    "TaskStore",
    "Dependency",
    "DependencyType",
    "TaskTiming",
    "ScheduleResult",
    "ScheduledTask",
    "WorkingCalendar",
    "CalendarException",
    "CancellationToken",
    "DependencyRegistry",
    "ScheduleWorker",
    "validate_dependency",
    "validate_dependencies",
    "compute_schedule",
    "compute_floats",
    "compute_critical_path",
    "auto_schedule",
    "find_dependency_violations",
    "SchedulingError",
    "SelfDependencyError",
    "TaskReferenceError",
    "CircularDependencyError",
    "CycleDetectedError",
    "InvariantViolationError",
    "ScheduleNotConvergedError",
    "ComputationCancelledError",
    "CalendarError",
]
