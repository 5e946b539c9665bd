from datetime import datetime

from ganttcpm.domain.dependency import Dependency, DependencyType
from ganttcpm.domain.task import Task
from ganttcpm.services.dependency_service import DependencyRegistry
from ganttcpm.services.scheduler import auto_schedule, compute_schedule
from ganttcpm.services.validation import find_dependency_violations
from ganttcpm.utils.time_utils import format_span


def create_sample_project():
    """Build a small website project as a DependencyRegistry."""
    # Create tasks
    tasks = [
        Task("REQ", 3, name="Gather requirements"),
        Task("DES", 5, name="Design"),
        Task("API", 8, name="Build API"),
        Task("UI", 6, name="Build UI"),
        Task("DOC", 2, name="Write docs"),
        Task("QA", 4, name="Test"),
        Task("GO", 0, name="Go live"),
    ]

    registry = DependencyRegistry(tasks)

    # Add dependencies
    registry.add_dependency(Dependency("REQ", "DES"))
    registry.add_dependency(Dependency("DES", "API"))
    # UI work starts two days after design starts
    registry.add_dependency(
        Dependency("DES", "UI", type=DependencyType.START_TO_START, lag=2)
    )
    registry.add_dependency(
        Dependency("API", "DOC", type=DependencyType.FINISH_TO_FINISH, lag=1)
    )
    registry.add_dependency(Dependency("API", "QA"))
    registry.add_dependency(Dependency("UI", "QA", lag=1))
    registry.add_dependency(Dependency("QA", "GO"))
    registry.add_dependency(Dependency("DOC", "GO"))

    return registry


def print_report(registry, start_date=None, calendar=None):
    """Print the CPM timings, critical paths and dates of a registry."""
    start_date = start_date or datetime(2025, 4, 1, 9, 0)
    tasks, dependencies = registry.snapshot()

    result = compute_schedule(tasks, dependencies)
    schedule = auto_schedule(tasks, dependencies, start_date, calendar=calendar)

    print("CPM Schedule Report")
    print("===================")
    print(f"Project Start Date: {start_date:%Y-%m-%d %H:%M}")
    print(f"Project Duration: {format_span(result.project_duration)}")

    print(f"\n{'Task':<22}{'ES':>6}{'EF':>6}{'LS':>6}{'LF':>6}{'TF':>6}{'FF':>6}")
    for task_id in result.order:
        timing = result[task_id]
        marker = " *" if timing.is_critical else ""
        print(
            f"{tasks[task_id].name:<22}"
            f"{format_span(timing.early_start):>6}"
            f"{format_span(timing.early_finish):>6}"
            f"{format_span(timing.late_start):>6}"
            f"{format_span(timing.late_finish):>6}"
            f"{format_span(timing.total_float):>6}"
            f"{format_span(timing.free_float):>6}{marker}"
        )

    print("\nCritical Path(s):")
    for chain in result.critical_paths:
        print("  " + " -> ".join(tasks[task_id].name for task_id in chain))

    print("\nScheduled Dates:")
    for task_id, placed in schedule.items():
        print(
            f"  {tasks[task_id].name:<22}"
            f"{placed.start:%Y-%m-%d %H:%M}  ->  {placed.end:%Y-%m-%d %H:%M}"
        )

    # Re-check the placed dates against every dependency
    placed_tasks = [
        Task(task_id, task.duration, name=task.name, start=schedule[task_id].start)
        for task_id, task in tasks.items()
    ]
    violations = find_dependency_violations(placed_tasks, dependencies)
    print(f"\nDependency Check: {len(violations)} violation(s)")
    for violation in violations:
        print("  " + violation.describe(tasks[violation.successor_id].name))

    return result, schedule


if __name__ == "__main__":
    print_report(create_sample_project())
