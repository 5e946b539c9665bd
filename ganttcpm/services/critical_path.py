import logging

import networkx as nx

from ganttcpm.domain.dependency import DependencyType
from ganttcpm.services.cancellation import check_cancelled
from ganttcpm.services.cpm import relationship_slack
from ganttcpm.utils.time_utils import ZERO

logger = logging.getLogger(__name__)


def build_critical_graph(graph, timings, tolerance=ZERO, cancel_token=None):
    """
    Build the subgraph of critical tasks joined by driving edges.

    An edge is driving when its relationship slack is zero, i.e. it is the
    constraint that actually fixes the successor's early dates. Parallel
    edges between the same pair collapse into one; the finish-to-start edge
    is recorded when present.
    """
    critical = nx.DiGraph()

    # Add critical task nodes
    for task_id, timing in timings.items():
        if timing.is_critical:
            critical.add_node(task_id)

    # Add driving edges between critical tasks
    for edge in graph.edges():
        check_cancelled(cancel_token)
        if edge.predecessor_id not in critical or edge.successor_id not in critical:
            continue
        pred = timings[edge.predecessor_id]
        succ = timings[edge.successor_id]
        slack = relationship_slack(
            edge,
            pred.early_start,
            pred.early_finish,
            succ.early_start,
            succ.early_finish,
        )
        if slack > tolerance:
            continue

        existing = critical.get_edge_data(edge.predecessor_id, edge.successor_id)
        if existing and existing["type"] == DependencyType.FINISH_TO_START:
            continue
        critical.add_edge(
            edge.predecessor_id,
            edge.successor_id,
            type=edge.type,
            dependency_id=edge.dependency_id,
        )

    return critical


def _extend(task_id, neighbours, covered, link, rank):
    """
    Walk from task_id until a task has no further neighbours.

    Uncovered links are preferred, then the lowest topological rank.
    """
    walk = []
    while True:
        candidates = sorted(neighbours(task_id), key=rank)
        if not candidates:
            return walk
        uncovered = [n for n in candidates if link(task_id, n) not in covered]
        task_id = (uncovered or candidates)[0]
        walk.append(task_id)


def find_critical_paths(graph, order, timings, tolerance=ZERO, cancel_token=None):
    """
    Assemble critical tasks into maximal chains.

    Each chain runs from a critical task without a driving critical
    predecessor to one without a driving critical successor. Chains are
    built one driving edge at a time: every driving edge lies on at least
    one reported chain, and each new chain covers an edge no earlier chain
    did, so there are never more chains than driving edges. Parallel
    routes through the network are therefore all reported without listing
    every combination of them.

    Args:
        graph: Dependency graph
        order: Task ids in topological order
        timings: TaskTiming per task id
        tolerance: Slack at or below which an edge counts as driving
        cancel_token: Optional CancellationToken polled once per task

    Returns:
        list: Tuples of task ids, each in topological order
    """
    critical = build_critical_graph(graph, timings, tolerance, cancel_token)
    if critical.number_of_nodes() == 0:
        return []

    position = {task_id: index for index, task_id in enumerate(order)}

    def rank(task_id):
        return position[task_id]

    covered = set()
    chains = []

    for task_id in sorted(critical.nodes, key=rank):
        check_cancelled(cancel_token)

        if critical.in_degree(task_id) == 0 and critical.out_degree(task_id) == 0:
            chains.append((task_id,))  # Isolated critical task
            continue

        for succ_id in sorted(critical.successors(task_id), key=rank):
            if (task_id, succ_id) in covered:
                continue
            check_cancelled(cancel_token)

            head = _extend(
                task_id, critical.predecessors, covered, lambda a, b: (b, a), rank
            )
            tail = _extend(
                succ_id, critical.successors, covered, lambda a, b: (a, b), rank
            )
            chain = tuple(reversed(head)) + (task_id, succ_id) + tuple(tail)
            covered.update(zip(chain, chain[1:]))
            chains.append(chain)

    chains.sort(key=lambda chain: [rank(task_id) for task_id in chain])
    logger.debug("Found %d critical chain(s)", len(chains))
    return chains
