"""
Reachability and readiness queries over the active dependency graph.

All functions take a GraphView (normally a snapshot) and only follow
active edges.
"""

from collections import Counter

import networkx as nx

from taskgraph.exceptions import NotFoundError
from taskgraph.models import DependencyEdge, DependencyType, Task
from taskgraph.services.store import GraphView


def _require(view: GraphView, task_id: str) -> None:
    if not view.has_task(task_id):
        raise NotFoundError("Task", task_id)


def direct_prerequisites(view: GraphView, task_id: str) -> list[str]:
    _require(view, task_id)
    return [edge.prerequisite_id for edge in view.get_edges_to(task_id)]


def direct_dependents(view: GraphView, task_id: str) -> list[str]:
    _require(view, task_id)
    return [edge.dependent_id for edge in view.get_edges_from(task_id)]


def all_prerequisites(view: GraphView, task_id: str) -> set[str]:
    """Every task the given task depends on through any chain."""
    _require(view, task_id)
    return set(nx.ancestors(view.active_graph, task_id))


def all_dependents(view: GraphView, task_id: str) -> set[str]:
    """Every task that depends on the given task through any chain."""
    _require(view, task_id)
    return set(nx.descendants(view.active_graph, task_id))


def is_satisfied(view: GraphView, edge: DependencyEdge) -> bool:
    """
    Whether an edge has stopped blocking its dependent.

    FS and FF wait for the prerequisite to complete; SS and SF only for it
    to start. Inactive edges and edges to unknown tasks never block.
    """
    if not edge.active or not view.has_task(edge.prerequisite_id):
        return True
    prerequisite = view.get_task(edge.prerequisite_id)
    if edge.dependency_type.anchors_on_prerequisite_finish:
        return prerequisite.completed
    return prerequisite.has_started


def blocking_dependencies(view: GraphView, task_id: str) -> list[DependencyEdge]:
    _require(view, task_id)
    return [edge for edge in view.get_edges_to(task_id) if not is_satisfied(view, edge)]


def can_start(view: GraphView, task_id: str) -> bool:
    return not blocking_dependencies(view, task_id)


def shortest_dependency_path(view: GraphView, from_task_id: str, to_task_id: str) -> list[str]:
    """
    Fewest-hop chain of dependents leading from one task to another.

    Returns [from] when both are the same task and [] when unreachable.
    """
    _require(view, from_task_id)
    _require(view, to_task_id)
    if from_task_id == to_task_id:
        return [from_task_id]
    try:
        return nx.shortest_path(view.active_graph, from_task_id, to_task_id)
    except nx.NetworkXNoPath:
        return []


def tasks_ready_to_start(view: GraphView) -> list[Task]:
    """Incomplete tasks with nothing blocking them."""
    return [
        task for task in view.tasks()
        if not task.completed and can_start(view, task.id)
    ]


def blocked_tasks(view: GraphView) -> dict[str, list[DependencyEdge]]:
    """Task ID -> the edges currently blocking it, for blocked tasks only."""
    result = {}
    for task in view.tasks():
        if task.completed:
            continue
        blocking = blocking_dependencies(view, task.id)
        if blocking:
            result[task.id] = blocking
    return result


def most_connected_tasks(view: GraphView, limit: int) -> list[tuple[str, int]]:
    """
    Rank tasks by in-degree + out-degree, highest first, ties by ID.

    Returns (task_id, degree) pairs.
    """
    graph = view.active_graph
    ranked = sorted(
        ((task_id, graph.degree(task_id)) for task_id in view.task_ids()),
        key=lambda item: (-item[1], item[0]),
    )
    return ranked[:max(limit, 0)]


def dependency_statistics(view: GraphView) -> dict[DependencyType, int]:
    """Count of active edges per dependency type, every type included."""
    counts = Counter(edge.dependency_type for edge in view.all_active_edges())
    return {dep_type: counts.get(dep_type, 0) for dep_type in DependencyType}
