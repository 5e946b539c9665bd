"""
Computed scheduling results.

Results are immutable and produced fresh by every computation; nothing in
this module is ever updated in place.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from ganttcpm.utils.time_utils import format_span


@dataclass(frozen=True)
class TaskTiming:
    """
    CPM timing of a single task.

    All values are offsets from the project start (elapsed time), never
    calendar dates.
    """

    task_id: object
    duration: timedelta
    early_start: timedelta
    early_finish: timedelta
    late_start: timedelta
    late_finish: timedelta
    total_float: timedelta
    free_float: timedelta
    is_critical: bool

    def as_dict(self) -> Dict:
        return {
            "ES": self.early_start,
            "EF": self.early_finish,
            "LS": self.late_start,
            "LF": self.late_finish,
            "TotalFloat": self.total_float,
            "FreeFloat": self.free_float,
            "IsCritical": self.is_critical,
        }


@dataclass(frozen=True)
class ScheduleResult:
    """Complete output of one CPM computation."""

    timings: Mapping
    order: Tuple
    project_duration: timedelta
    critical_paths: Tuple[Tuple, ...]

    def __post_init__(self):
        if not isinstance(self.timings, MappingProxyType):
            object.__setattr__(self, "timings", MappingProxyType(dict(self.timings)))

    def __getitem__(self, task_id) -> TaskTiming:
        return self.timings[task_id]

    @property
    def critical_task_ids(self) -> Tuple:
        """Critical tasks in topological order."""
        return tuple(tid for tid in self.order if self.timings[tid].is_critical)


@dataclass(frozen=True)
class ScheduledTask:
    """Concrete calendar placement produced by the auto-scheduler."""

    task_id: object
    start: datetime
    end: datetime

    @property
    def span(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class DependencyViolation:
    """A caller-supplied task date that breaks an active dependency."""

    dependency_id: str
    predecessor_id: object
    successor_id: object
    required: datetime
    actual: datetime
    field: str = "start"

    @property
    def shortfall(self) -> timedelta:
        return self.required - self.actual

    def describe(self, name: Optional[str] = None) -> str:
        who = name if name is not None else repr(self.successor_id)
        return (
            f"{who} {self.field} {self.actual:%Y-%m-%d %H:%M} is "
            f"{format_span(self.shortfall)} earlier than allowed by dependency "
            f"{self.dependency_id}"
        )
