from datetime import datetime, timedelta
from types import MappingProxyType
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, Optional, Union

from ganttcpm.utils.time_utils import TimeSpan, ZERO, to_timedelta


class TaskError(Exception):
    """Exception raised for errors in the Task class."""

    pass


class Task:
    """
    Represents a task as seen by the scheduling engine.

    Only the scheduling-relevant fields are kept: a stable identifier, a
    non-negative duration and optional caller-supplied start/end anchors.
    A zero-duration task is a milestone.
    """

    def __init__(
        self,
        id,
        duration: TimeSpan,
        name: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        description: str = "",
    ):
        """
        Initialize a new Task.

        Args:
            id: Unique, stable identifier (any hashable value)
            duration: Duration as a timedelta, or a number of days
            name: Display name, defaults to the string form of the id
            start: Optional caller-supplied start anchor
            end: Optional caller-supplied end anchor
            description: Free-form description

        Raises:
            TaskError: If any input validation fails
        """
        if id is None or (isinstance(id, str) and not id.strip()):
            raise TaskError("Task ID cannot be None or empty")
        try:
            hash(id)
        except TypeError:
            raise TaskError("Task ID must be hashable")
        self._id = id

        try:
            duration = to_timedelta(duration, "duration")
        except TypeError as exc:
            raise TaskError(str(exc))
        if duration < ZERO:
            raise TaskError(f"Task {id!r} duration must not be negative")
        self._duration = duration

        if name is not None and not isinstance(name, str):
            raise TaskError("Task name must be a string")
        self._name = name if name else str(id)

        if start is not None and not isinstance(start, datetime):
            raise TaskError("Task start must be a datetime")
        if end is not None and not isinstance(end, datetime):
            raise TaskError("Task end must be a datetime")
        if start is not None and end is not None and end < start:
            raise TaskError(f"Task {id!r} ends before it starts")
        self._start = start
        self._end = end

        self.description = description

    @property
    def id(self):
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def duration(self) -> timedelta:
        return self._duration

    @property
    def start(self) -> Optional[datetime]:
        return self._start

    @property
    def end(self) -> Optional[datetime]:
        """The end anchor, derived from start + duration when only start is set."""
        if self._end is None and self._start is not None:
            return self._start + self._duration
        return self._end

    @property
    def is_milestone(self) -> bool:
        return self._duration == ZERO

    def __repr__(self):
        return f"Task(id={self._id!r}, duration={self._duration!r})"


class TaskStore(Mapping):
    """
    Immutable lookup of tasks by id, taken once per calculation.

    Accepts an iterable of Task objects or a mapping of id -> Task. Iteration
    order is the order the tasks were supplied in.
    """

    def __init__(self, tasks: Union[Iterable[Task], Mapping, "TaskStore"]):
        if isinstance(tasks, TaskStore):
            self._tasks = tasks._tasks
            return

        items: Dict = {}
        values = tasks.values() if isinstance(tasks, Mapping) else tasks
        for task in values:
            if not isinstance(task, Task):
                raise TaskError(f"Expected a Task, got {type(task).__name__}")
            if task.id in items:
                raise TaskError(f"Duplicate task ID: {task.id!r}")
            items[task.id] = task
        self._tasks = MappingProxyType(items)

    def __getitem__(self, task_id) -> Task:
        return self._tasks[task_id]

    def __iter__(self) -> Iterator:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def duration(self, task_id) -> timedelta:
        return self._tasks[task_id].duration

    def __repr__(self):
        return f"TaskStore({len(self._tasks)} tasks)"
