import uuid
from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import Enum

from ganttcpm.utils.time_utils import ZERO, to_timedelta


class DependencyType(Enum):
    """
    Enum representing the relationship between a predecessor and a successor.
    """

    FINISH_TO_START = "finish_to_start"
    START_TO_START = "start_to_start"
    FINISH_TO_FINISH = "finish_to_finish"
    START_TO_FINISH = "start_to_finish"

    @property
    def short_name(self) -> str:
        return "".join(part[0] for part in self.value.split("_to_")).upper()


class DependencyError(Exception):
    """Exception raised for errors in the Dependency class."""

    pass


def _new_dependency_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Dependency:
    """
    A directed constraint between two tasks.

    Lag may be negative to express lead time. Inactive dependencies are kept
    for bookkeeping but ignored by every computation. Priority is a tie-break
    hint for callers and has no effect on CPM values.
    """

    predecessor_id: object
    successor_id: object
    type: DependencyType = DependencyType.FINISH_TO_START
    lag: timedelta = ZERO
    active: bool = True
    priority: int = 0
    description: str = ""
    id: str = field(default_factory=_new_dependency_id)

    def __post_init__(self):
        if self.predecessor_id is None or self.successor_id is None:
            raise DependencyError("Dependency must name a predecessor and a successor")

        if not isinstance(self.type, DependencyType):
            try:
                object.__setattr__(self, "type", DependencyType(self.type))
            except ValueError:
                valid_types = [t.value for t in DependencyType]
                raise DependencyError(
                    f"Invalid dependency type: {self.type}. Must be one of {valid_types}"
                )

        try:
            object.__setattr__(self, "lag", to_timedelta(self.lag, "lag"))
        except TypeError as exc:
            raise DependencyError(str(exc))

        if not isinstance(self.priority, int):
            raise DependencyError("Priority must be an integer")

        if self.id is None or str(self.id).strip() == "":
            object.__setattr__(self, "id", _new_dependency_id())

    @property
    def is_self_loop(self) -> bool:
        return self.predecessor_id == self.successor_id

    def replace(self, **changes) -> "Dependency":
        """Return a copy of this dependency with the given fields changed."""
        return replace(self, **changes)

    def deactivated(self) -> "Dependency":
        return replace(self, active=False)

    def __str__(self):
        return (
            f"{self.predecessor_id!r} -[{self.type.short_name} "
            f"{self.lag}]-> {self.successor_id!r}"
        )
