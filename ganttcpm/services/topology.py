from typing import List

import networkx as nx

from ganttcpm.domain.errors import CycleDetectedError
from ganttcpm.services.cancellation import check_cancelled
from ganttcpm.services.cycle_detection import find_cycle_members
from ganttcpm.utils.graph import task_sort_key


def topological_order(graph, cancel_token=None):
    """
    Order tasks so that every predecessor comes before all of its successors.

    Tasks without an ordering constraint between them are ordered by id, so
    repeated runs on unchanged input return the same list.

    Raises:
        CycleDetectedError: If the graph is not acyclic
        ComputationCancelledError: If the token is cancelled mid-sort
    """
    order = []
    try:
        for task_id in nx.lexicographical_topological_sort(
            graph.nx_graph, key=task_sort_key
        ):
            check_cancelled(cancel_token)
            order.append(task_id)
    except nx.NetworkXUnfeasible:
        raise CycleDetectedError(find_cycle_members(graph))

    # The sort must never silently drop a task
    if len(order) != len(graph):
        raise CycleDetectedError(find_cycle_members(graph))
    return order
