"""
Analysis routes for the taskgraph API.

Read-only views over a project graph: critical path, readiness, integrity,
risk and optimization reports. Each request works on its own snapshot.
"""

from fastapi import APIRouter, Depends, Query

from taskgraph.deps import get_project_graph
from taskgraph.logging_config import get_logger
from taskgraph.models import DependencyEdge, Task
from taskgraph.schemas import (
    BlockedTaskRead,
    ConnectedTaskRead,
    CriticalPathRead,
    CycleCheckRead,
    DependencyRead,
    OptimizationRead,
    PathRead,
    ReadinessRead,
    RiskAssessmentRead,
    StatisticsRead,
    TaskFloatRead,
    TaskRead,
    ValidationRead,
)
from taskgraph.services import dependencies as service
from taskgraph.services.store import ProjectGraph

logger = get_logger(__name__)

router = APIRouter()


@router.get("/critical-path", response_model=CriticalPathRead)
def get_critical_path(graph: ProjectGraph = Depends(get_project_graph)):
    """
    Run the forward/backward CPM passes over the active graph.

    A graph with cycles or dangling edges is rejected with 409.
    """
    return service.calculate_critical_path(graph)


@router.get("/critical-path/tasks", response_model=list[TaskRead])
def get_critical_path_tasks(graph: ProjectGraph = Depends(get_project_graph)) -> list[Task]:
    return service.get_critical_path_tasks(graph)


@router.get("/critical-path/dependencies", response_model=list[DependencyRead])
def get_critical_path_dependencies(graph: ProjectGraph = Depends(get_project_graph)) -> list[DependencyEdge]:
    return service.get_critical_path_dependencies(graph)


@router.get("/tasks/{task_id}/float", response_model=TaskFloatRead)
def get_task_float(task_id: str, graph: ProjectGraph = Depends(get_project_graph)) -> TaskFloatRead:
    return TaskFloatRead(task_id=task_id, total_float=service.calculate_task_float(graph, task_id))


@router.get("/tasks/{task_id}/readiness", response_model=ReadinessRead)
def get_task_readiness(task_id: str, graph: ProjectGraph = Depends(get_project_graph)) -> ReadinessRead:
    blocking = service.get_blocking_dependencies(graph, task_id)
    return ReadinessRead(task_id=task_id, can_start=not blocking, blocking_dependencies=blocking)


@router.get("/tasks/{task_id}/prerequisites", response_model=list[str])
def get_prerequisites(
    task_id: str,
    transitive: bool = False,
    graph: ProjectGraph = Depends(get_project_graph),
) -> list[str]:
    """Direct prerequisites, or every ancestor with ``?transitive=true``."""
    if transitive:
        return sorted(service.get_all_prerequisites(graph, task_id))
    return service.get_direct_prerequisites(graph, task_id)


@router.get("/tasks/{task_id}/dependents", response_model=list[str])
def get_dependents(
    task_id: str,
    transitive: bool = False,
    graph: ProjectGraph = Depends(get_project_graph),
) -> list[str]:
    if transitive:
        return sorted(service.get_all_dependents(graph, task_id))
    return service.get_direct_dependents(graph, task_id)


@router.get("/ready-tasks", response_model=list[TaskRead])
def get_ready_tasks(graph: ProjectGraph = Depends(get_project_graph)) -> list[Task]:
    return service.get_tasks_ready_to_start(graph)


@router.get("/blocked-tasks", response_model=list[BlockedTaskRead])
def get_blocked_tasks(graph: ProjectGraph = Depends(get_project_graph)) -> list[BlockedTaskRead]:
    blocked = service.get_blocked_tasks(graph)
    return [
        BlockedTaskRead(task_id=task_id, blocking_dependencies=edges)
        for task_id, edges in blocked.items()
    ]


@router.get("/validate", response_model=ValidationRead)
def validate(graph: ProjectGraph = Depends(get_project_graph)):
    result = service.validate_dependency_graph(graph)
    if not result.valid:
        logger.warning(f"Project {graph.project_id} failed validation: {'; '.join(result.issues)}")
    return result


@router.get("/risk", response_model=RiskAssessmentRead)
def get_risk(graph: ProjectGraph = Depends(get_project_graph)):
    return service.assess_project_risk(graph)


@router.get("/optimize-schedule", response_model=OptimizationRead)
def get_schedule_optimization(graph: ProjectGraph = Depends(get_project_graph)):
    return service.optimize_schedule(graph)


@router.get("/statistics", response_model=StatisticsRead)
def get_statistics(graph: ProjectGraph = Depends(get_project_graph)) -> StatisticsRead:
    counts = service.get_dependency_statistics(graph)
    return StatisticsRead(counts=counts, total=sum(counts.values()))


@router.get("/most-connected", response_model=list[ConnectedTaskRead])
def get_most_connected(
    limit: int | None = Query(default=None, ge=1),
    graph: ProjectGraph = Depends(get_project_graph),
) -> list[ConnectedTaskRead]:
    return [
        ConnectedTaskRead(task_id=task_id, degree=degree)
        for task_id, degree in service.get_most_connected_tasks(graph, limit)
    ]


@router.get("/external-constraints", response_model=list[DependencyRead])
def get_external_constraints(
    min_lag_hours: int | None = Query(default=None, ge=0),
    graph: ProjectGraph = Depends(get_project_graph),
) -> list[DependencyEdge]:
    return service.identify_external_constraints(graph, min_lag_hours)


@router.get("/path", response_model=PathRead)
def get_dependency_path(
    from_task: str,
    to_task: str,
    graph: ProjectGraph = Depends(get_project_graph),
) -> PathRead:
    """Shortest chain of active edges from one task to another; empty if none."""
    path = service.find_shortest_dependency_path(graph, from_task, to_task)
    return PathRead(from_task=from_task, to_task=to_task, path=path)


@router.get("/would-create-cycle", response_model=CycleCheckRead)
def check_would_create_cycle(
    dependent_id: str,
    prerequisite_id: str,
    graph: ProjectGraph = Depends(get_project_graph),
) -> CycleCheckRead:
    return CycleCheckRead(
        dependent_id=dependent_id,
        prerequisite_id=prerequisite_id,
        would_create_cycle=service.would_create_cycle(graph, dependent_id, prerequisite_id),
    )
