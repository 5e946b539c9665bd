import logging

from ganttcpm.domain.dependency import DependencyType
from ganttcpm.domain.schedule import DependencyViolation
from ganttcpm.services.cpm import early_start_bound
from ganttcpm.utils.graph import build_dependency_graph

logger = logging.getLogger(__name__)

_FINISH_CONSTRAINED = (DependencyType.FINISH_TO_FINISH, DependencyType.START_TO_FINISH)


def find_dependency_violations(tasks, dependencies):
    """
    Check caller-supplied task dates against every active dependency.

    Tasks without a start anchor are skipped. Finish-constrained types are
    checked against the successor's end, the others against its start.

    Returns:
        list: DependencyViolation records, in dependency order

    Raises:
        SelfDependencyError: If an active dependency is a self-loop
        TaskReferenceError: If an active dependency names an unknown task
    """
    dependencies = list(dependencies)
    store = build_dependency_graph(tasks, dependencies).tasks
    violations = []

    for dependency in dependencies:
        if not dependency.active:
            continue
        pred = store[dependency.predecessor_id]
        succ = store[dependency.successor_id]
        if pred.start is None or succ.start is None:
            continue

        required_start = early_start_bound(
            dependency, pred.start, pred.end, succ.duration
        )
        if dependency.type in _FINISH_CONSTRAINED:
            required, actual, field = required_start + succ.duration, succ.end, "end"
        else:
            required, actual, field = required_start, succ.start, "start"

        if actual < required:
            violations.append(
                DependencyViolation(
                    dependency_id=dependency.id,
                    predecessor_id=dependency.predecessor_id,
                    successor_id=dependency.successor_id,
                    required=required,
                    actual=actual,
                    field=field,
                )
            )

    if violations:
        logger.info("Found %d dependency violation(s)", len(violations))
    return violations
