"""
Dependency routes for the taskgraph API.

Every write goes through the cycle guard; a rejected edge comes back as a
400 with the would-be cycle in the error details.
"""

from fastapi import APIRouter, Depends, Response, status

from taskgraph.deps import get_project_graph
from taskgraph.logging_config import get_logger
from taskgraph.models import DependencyEdge, DependencySpec
from taskgraph.schemas import (
    BulkDelete,
    BulkDependencyCreate,
    BulkResult,
    BulkTypeUpdate,
    DependencyCreate,
    DependencyRead,
    DependencyUpdate,
    TaskDependencies,
)
from taskgraph.services import dependencies as service
from taskgraph.services.store import ProjectGraph

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", response_model=list[DependencyRead])
def list_dependencies(
    active_only: bool = True,
    graph: ProjectGraph = Depends(get_project_graph),
) -> list[DependencyEdge]:
    dependencies = service.get_project_dependencies(graph, active_only=active_only)
    logger.debug(f"Listed {len(dependencies)} dependencies")
    return dependencies


@router.post("/", response_model=DependencyRead, status_code=status.HTTP_201_CREATED)
def create_dependency(
    dep_in: DependencyCreate,
    graph: ProjectGraph = Depends(get_project_graph),
) -> DependencyEdge:
    """
    Create a dependency (edge in the task DAG).

    Re-posting an existing pair updates its type, lag and notes.
    """
    return service.create_dependency(
        graph,
        dep_in.dependent_id,
        dep_in.prerequisite_id,
        dependency_type=dep_in.dependency_type,
        lag_hours=dep_in.lag_hours,
        notes=dep_in.notes,
    )


# Bulk routes are registered before /{dependency_id} so "bulk" is not read as an ID

@router.post("/bulk", response_model=list[DependencyRead], status_code=status.HTTP_201_CREATED)
def create_bulk_dependencies(
    payload: BulkDependencyCreate,
    graph: ProjectGraph = Depends(get_project_graph),
) -> list[DependencyEdge]:
    """Create all dependencies or none."""
    specs = [DependencySpec(**d.model_dump()) for d in payload.dependencies]
    return service.create_bulk_dependencies(graph, specs)


@router.patch("/bulk", response_model=BulkResult)
def update_dependency_types(
    payload: BulkTypeUpdate,
    graph: ProjectGraph = Depends(get_project_graph),
) -> BulkResult:
    count = service.update_dependency_types(graph, payload.dependency_ids, payload.dependency_type)
    return BulkResult(count=count)


@router.delete("/bulk", response_model=BulkResult)
def remove_bulk_dependencies(
    payload: BulkDelete,
    graph: ProjectGraph = Depends(get_project_graph),
) -> BulkResult:
    count = service.remove_bulk_dependencies(graph, payload.dependency_ids)
    return BulkResult(count=count)


@router.get("/tasks/{task_id}", response_model=TaskDependencies)
def get_task_dependencies(
    task_id: str,
    graph: ProjectGraph = Depends(get_project_graph),
) -> TaskDependencies:
    """Active edges on both sides of a task."""
    return TaskDependencies(
        task_id=task_id,
        dependencies=service.get_dependencies_for(graph, task_id),
        dependents=service.get_dependents_for(graph, task_id),
    )


@router.delete("/tasks/{task_id}", response_model=BulkResult)
def remove_all_dependencies_for_task(
    task_id: str,
    graph: ProjectGraph = Depends(get_project_graph),
) -> BulkResult:
    return BulkResult(count=service.remove_all_dependencies_for_task(graph, task_id))


@router.post("/tasks/{task_id}/deactivate", response_model=BulkResult)
def deactivate_dependencies_for_task(
    task_id: str,
    graph: ProjectGraph = Depends(get_project_graph),
) -> BulkResult:
    return BulkResult(count=service.deactivate_dependencies_for_task(graph, task_id))


@router.post("/tasks/{task_id}/reactivate", response_model=BulkResult)
def reactivate_dependencies_for_task(
    task_id: str,
    graph: ProjectGraph = Depends(get_project_graph),
) -> BulkResult:
    return BulkResult(count=service.reactivate_dependencies_for_task(graph, task_id))


@router.get("/{dependency_id}", response_model=DependencyRead)
def get_dependency(
    dependency_id: int,
    graph: ProjectGraph = Depends(get_project_graph),
) -> DependencyEdge:
    return service.find_dependency(graph, dependency_id)


@router.patch("/{dependency_id}", response_model=DependencyRead)
def update_dependency(
    dependency_id: int,
    dep_in: DependencyUpdate,
    graph: ProjectGraph = Depends(get_project_graph),
) -> DependencyEdge:
    return service.update_dependency(
        graph,
        dependency_id,
        dependency_type=dep_in.dependency_type,
        lag_hours=dep_in.lag_hours,
        notes=dep_in.notes,
    )


@router.delete("/{dependency_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dependency(
    dependency_id: int,
    graph: ProjectGraph = Depends(get_project_graph),
) -> Response:
    service.remove_dependency(graph, dependency_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{dependency_id}/deactivate", response_model=DependencyRead)
def deactivate_dependency(
    dependency_id: int,
    graph: ProjectGraph = Depends(get_project_graph),
) -> DependencyEdge:
    return service.deactivate_dependency(graph, dependency_id)


@router.post("/{dependency_id}/activate", response_model=DependencyRead)
def reactivate_dependency(
    dependency_id: int,
    graph: ProjectGraph = Depends(get_project_graph),
) -> DependencyEdge:
    return service.reactivate_dependency(graph, dependency_id)
