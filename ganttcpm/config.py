import os
from dataclasses import dataclass, replace
from datetime import timedelta

from ganttcpm.domain.calendar import DEFAULT_SEARCH_HORIZON_DAYS


@dataclass(frozen=True)
class EngineConfig:
    """
    Tunables for the scheduling engine.

    Args:
        critical_tolerance: Total float at or below which a task is critical
        clamp_to_project_start: Whether the auto-scheduler moves tasks that
            a lead would place before the project start up to the start
        calendar_search_horizon_days: How far calendars search for working time
        max_workers: Thread pool size for background computations
    """

    critical_tolerance: timedelta = timedelta(seconds=1)
    clamp_to_project_start: bool = True
    calendar_search_horizon_days: int = DEFAULT_SEARCH_HORIZON_DAYS
    max_workers: int = 2

    def __post_init__(self):
        if self.critical_tolerance < timedelta(0):
            raise ValueError("critical_tolerance must not be negative")
        if self.calendar_search_horizon_days < 1:
            raise ValueError("calendar_search_horizon_days must be at least 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @classmethod
    def from_env(cls, prefix: str = "GANTTCPM_") -> "EngineConfig":
        """Build a config from environment variables, falling back to defaults."""
        defaults = cls()

        tolerance = os.getenv(prefix + "CRITICAL_TOLERANCE_SECONDS")
        clamp = os.getenv(prefix + "CLAMP_TO_PROJECT_START")
        horizon = os.getenv(prefix + "CALENDAR_SEARCH_HORIZON_DAYS")
        workers = os.getenv(prefix + "MAX_WORKERS")

        return cls(
            critical_tolerance=(
                timedelta(seconds=float(tolerance))
                if tolerance
                else defaults.critical_tolerance
            ),
            clamp_to_project_start=(
                clamp.strip().lower() in ("1", "true", "yes", "on")
                if clamp
                else defaults.clamp_to_project_start
            ),
            calendar_search_horizon_days=(
                int(horizon) if horizon else defaults.calendar_search_horizon_days
            ),
            max_workers=int(workers) if workers else defaults.max_workers,
        )

    def with_changes(self, **changes) -> "EngineConfig":
        return replace(self, **changes)


DEFAULT_CONFIG = EngineConfig()
