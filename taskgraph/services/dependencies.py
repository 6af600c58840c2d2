"""
Dependency management operations for one project graph.

This is the surface the rest of the application calls. Mutations take the
project lock and pass through the cycle guard; queries run on a snapshot
so they never see a half-applied change.
"""

import dataclasses

from taskgraph.config import get_settings
from taskgraph.exceptions import NotFoundError
from taskgraph.logging_config import get_logger
from taskgraph.models import DependencyEdge, DependencySpec, DependencyType, Task
from taskgraph.services import cycles, critical_path, risk, traversal
from taskgraph.services.store import ProjectGraph

logger = get_logger(__name__)


# =============================================================================
# Basic dependency management
# =============================================================================

def create_dependency(
    graph: ProjectGraph,
    dependent_id: str,
    prerequisite_id: str,
    dependency_type: DependencyType = DependencyType.FINISH_TO_START,
    lag_hours: int = 0,
    notes: str | None = None,
) -> DependencyEdge:
    logger.info(f"Creating dependency: {prerequisite_id} -> {dependent_id} ({dependency_type.short_code})")
    with graph.lock:
        edge = cycles.create_dependency(graph, dependent_id, prerequisite_id, dependency_type, lag_hours, notes)
        # Callers get a copy; the stored edge keeps changing under later writes
        return dataclasses.replace(edge)


def update_dependency(
    graph: ProjectGraph,
    dependency_id: int,
    dependency_type: DependencyType | None = None,
    lag_hours: int | None = None,
    notes: str | None = None,
) -> DependencyEdge:
    """Change type, lag or notes in place. Shape is unchanged, so no cycle check."""
    with graph.lock:
        edge = graph.get_edge(dependency_id)
        cycles.validate_lag(
            graph,
            edge.prerequisite_id,
            dependency_type or edge.dependency_type,
            edge.lag_hours if lag_hours is None else lag_hours,
        )
        edge = dataclasses.replace(graph.update_edge(dependency_id, dependency_type, lag_hours, notes))
    logger.info(f"Updated dependency {dependency_id}: {edge.description}")
    return edge


def remove_dependency(graph: ProjectGraph, dependency_id: int) -> DependencyEdge:
    """Hard-delete a dependency."""
    edge = graph.remove_edge(dependency_id)
    logger.info(f"Deleted dependency: {edge.description}")
    return edge


def remove_dependency_between(graph: ProjectGraph, dependent_id: str, prerequisite_id: str) -> DependencyEdge:
    with graph.lock:
        edge = graph.find_edge(prerequisite_id, dependent_id)
        if edge is None:
            raise NotFoundError("Dependency", f"{prerequisite_id}/{dependent_id}")
        return remove_dependency(graph, edge.id)


def deactivate_dependency(graph: ProjectGraph, dependency_id: int) -> DependencyEdge:
    """Soft-remove: keep the edge for history but drop it from analysis."""
    edge = graph.set_edge_active(dependency_id, False)
    logger.info(f"Deactivated dependency: {edge.description}")
    return edge


def reactivate_dependency(graph: ProjectGraph, dependency_id: int) -> DependencyEdge:
    with graph.lock:
        edge = graph.get_edge(dependency_id)
        if edge.active:
            return edge
        cycles.check_dependency(
            graph, edge.dependent_id, edge.prerequisite_id, edge.dependency_type, edge.lag_hours
        )
        edge = graph.set_edge_active(dependency_id, True)
    logger.info(f"Reactivated dependency: {edge.description}")
    return edge


def find_dependency(graph: ProjectGraph, dependency_id: int) -> DependencyEdge:
    return graph.snapshot().get_edge(dependency_id)


# =============================================================================
# Dependency analysis and querying
# =============================================================================

def get_dependencies_for(graph: ProjectGraph, task_id: str) -> list[DependencyEdge]:
    """Active edges where the task is the dependent."""
    view = graph.snapshot()
    view.get_task(task_id)
    return view.get_edges_to(task_id)


def get_dependents_for(graph: ProjectGraph, task_id: str) -> list[DependencyEdge]:
    """Active edges where the task is the prerequisite."""
    view = graph.snapshot()
    view.get_task(task_id)
    return view.get_edges_from(task_id)


def get_project_dependencies(graph: ProjectGraph, active_only: bool = True) -> list[DependencyEdge]:
    view = graph.snapshot()
    return view.all_active_edges() if active_only else view.all_edges()


def get_direct_prerequisites(graph: ProjectGraph, task_id: str) -> list[str]:
    return traversal.direct_prerequisites(graph.snapshot(), task_id)


def get_direct_dependents(graph: ProjectGraph, task_id: str) -> list[str]:
    return traversal.direct_dependents(graph.snapshot(), task_id)


def get_all_prerequisites(graph: ProjectGraph, task_id: str) -> set[str]:
    return traversal.all_prerequisites(graph.snapshot(), task_id)


def get_all_dependents(graph: ProjectGraph, task_id: str) -> set[str]:
    return traversal.all_dependents(graph.snapshot(), task_id)


def can_start(graph: ProjectGraph, task_id: str) -> bool:
    return traversal.can_start(graph.snapshot(), task_id)


def get_blocking_dependencies(graph: ProjectGraph, task_id: str) -> list[DependencyEdge]:
    return traversal.blocking_dependencies(graph.snapshot(), task_id)


def get_tasks_ready_to_start(graph: ProjectGraph) -> list[Task]:
    return traversal.tasks_ready_to_start(graph.snapshot())


def get_blocked_tasks(graph: ProjectGraph) -> dict[str, list[DependencyEdge]]:
    return traversal.blocked_tasks(graph.snapshot())


def find_shortest_dependency_path(graph: ProjectGraph, from_task_id: str, to_task_id: str) -> list[str]:
    return traversal.shortest_dependency_path(graph.snapshot(), from_task_id, to_task_id)


def get_most_connected_tasks(graph: ProjectGraph, limit: int | None = None) -> list[tuple[str, int]]:
    if limit is None:
        limit = get_settings().most_connected_limit
    return traversal.most_connected_tasks(graph.snapshot(), limit)


def get_dependency_statistics(graph: ProjectGraph) -> dict[DependencyType, int]:
    return traversal.dependency_statistics(graph.snapshot())


# =============================================================================
# Cycle detection and validation
# =============================================================================

def would_create_cycle(graph: ProjectGraph, dependent_id: str, prerequisite_id: str) -> bool:
    """Raises NotFoundError if either task is unknown."""
    snap = graph.snapshot()
    snap.get_task(dependent_id)
    snap.get_task(prerequisite_id)
    return cycles.would_create_cycle(snap, dependent_id, prerequisite_id)


def detect_cycles(graph: ProjectGraph) -> list[list[str]]:
    return cycles.detect_all_cycles(graph.snapshot())


def validate_dependency_graph(graph: ProjectGraph) -> cycles.ValidationResult:
    return cycles.validate_graph(graph.snapshot())


# =============================================================================
# Critical path analysis
# =============================================================================

def calculate_critical_path(graph: ProjectGraph) -> critical_path.CriticalPathResult:
    return critical_path.calculate_critical_path(graph.snapshot())


def get_critical_path_tasks(graph: ProjectGraph) -> list[Task]:
    """Tasks on the critical path, in path order."""
    view = graph.snapshot()
    result = critical_path.calculate_critical_path(view)
    return [view.get_task(task_id) for task_id in result.ordered_critical_tasks]


def get_critical_path_dependencies(graph: ProjectGraph) -> list[DependencyEdge]:
    return critical_path.calculate_critical_path(graph.snapshot()).critical_edges


def calculate_task_float(graph: ProjectGraph, task_id: str) -> float:
    return critical_path.calculate_task_float(graph.snapshot(), task_id)


# =============================================================================
# Project-level operations
# =============================================================================

def remove_all_dependencies_for_task(graph: ProjectGraph, task_id: str) -> int:
    """
    Hard-delete every edge touching a task, active or not.

    Works for tasks already dropped from the store, so upstream deletes can
    clean up edges after the fact.
    """
    with graph.lock:
        edges = graph.edges_touching(task_id)
        if not edges and not graph.has_task(task_id):
            raise NotFoundError("Task", task_id)
        for edge in edges:
            graph.remove_edge(edge.id)
    logger.info(f"Removed {len(edges)} dependencies for task {task_id}")
    return len(edges)


def deactivate_dependencies_for_task(graph: ProjectGraph, task_id: str) -> int:
    with graph.lock:
        graph.get_task(task_id)
        edges = graph.edges_touching(task_id, active_only=True)
        for edge in edges:
            graph.set_edge_active(edge.id, False)
    logger.info(f"Deactivated {len(edges)} dependencies for task {task_id}")
    return len(edges)


def reactivate_dependencies_for_task(graph: ProjectGraph, task_id: str) -> int:
    """Restore every inactive edge touching a task, or none if any would cycle."""
    with graph.lock:
        graph.get_task(task_id)
        edges = [e for e in graph.edges_touching(task_id) if not e.active]
        cycles.validate_batch(graph, [
            DependencySpec(e.dependent_id, e.prerequisite_id, e.dependency_type, e.lag_hours)
            for e in edges
        ])
        for edge in edges:
            graph.set_edge_active(edge.id, True)
    logger.info(f"Reactivated {len(edges)} dependencies for task {task_id}")
    return len(edges)


# =============================================================================
# Bulk operations
# =============================================================================

def create_bulk_dependencies(graph: ProjectGraph, specs: list[DependencySpec]) -> list[DependencyEdge]:
    """All-or-nothing: one bad item rejects the whole batch."""
    return cycles.create_dependencies(graph, specs)


def update_dependency_types(
    graph: ProjectGraph,
    dependency_ids: list[int],
    dependency_type: DependencyType,
) -> int:
    with graph.lock:
        edges = [graph.get_edge(i) for i in dict.fromkeys(dependency_ids)]
        for edge in edges:
            cycles.validate_lag(graph, edge.prerequisite_id, dependency_type, edge.lag_hours)
        for edge in edges:
            graph.update_edge(edge.id, dependency_type=dependency_type)
    logger.info(f"Changed {len(edges)} dependencies to {dependency_type.short_code}")
    return len(edges)


def remove_bulk_dependencies(graph: ProjectGraph, dependency_ids: list[int]) -> int:
    with graph.lock:
        ids = list(dict.fromkeys(dependency_ids))
        for dependency_id in ids:
            graph.get_edge(dependency_id)
        for dependency_id in ids:
            graph.remove_edge(dependency_id)
    logger.info(f"Removed {len(ids)} dependencies in bulk (project={graph.project_id})")
    return len(ids)


# =============================================================================
# Risk and optimization
# =============================================================================

def identify_external_constraints(graph: ProjectGraph, min_lag_hours: int | None = None) -> list[DependencyEdge]:
    if min_lag_hours is None:
        min_lag_hours = get_settings().external_constraint_lag_hours
    return risk.identify_external_constraints(graph.snapshot(), min_lag_hours)


def assess_project_risk(graph: ProjectGraph) -> risk.ProjectRiskAssessment:
    return risk.assess_project_risk(graph.snapshot())


def optimize_schedule(graph: ProjectGraph) -> risk.ScheduleOptimizationResult:
    return risk.optimize_schedule(graph.snapshot())
