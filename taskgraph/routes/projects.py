"""
Project routes for the taskgraph API.

Registers project graphs and feeds them the task records owned by the
external task-management subsystem.
"""

from fastapi import APIRouter, Depends, Response, status

from taskgraph.deps import get_project_graph
from taskgraph.logging_config import get_logger
from taskgraph.models import Project, Task
from taskgraph.schemas import (
    ProjectCreate,
    ProjectImport,
    ProjectRead,
    TaskRead,
    TaskUpsert,
    ValidationRead,
)
from taskgraph.services.cycles import validate_graph
from taskgraph.services.registry import ProjectRegistry, get_registry
from taskgraph.services.store import ProjectGraph

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    registry: ProjectRegistry = Depends(get_registry),
) -> Project:
    """Register an empty dependency graph for a project."""
    graph = registry.create(Project(**project_in.model_dump()))
    return graph.project


@router.get("/", response_model=list[ProjectRead])
def list_projects(
    registry: ProjectRegistry = Depends(get_registry),
) -> list[Project]:
    projects = registry.projects()
    logger.debug(f"Listed {len(projects)} projects")
    return projects


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(graph: ProjectGraph = Depends(get_project_graph)) -> Project:
    return graph.project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: str,
    registry: ProjectRegistry = Depends(get_registry),
) -> Response:
    """Drop the whole graph for a project."""
    registry.remove(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/tasks", response_model=list[TaskRead])
def list_tasks(graph: ProjectGraph = Depends(get_project_graph)) -> list[Task]:
    return graph.snapshot().tasks()


@router.put("/{project_id}/tasks/{task_id}", response_model=TaskRead)
def put_task(
    task_id: str,
    task_in: TaskUpsert,
    graph: ProjectGraph = Depends(get_project_graph),
) -> Task:
    """Add a task to the graph, or replace its current state."""
    return graph.add_task(Task(id=task_id, **task_in.model_dump()))


@router.delete("/{project_id}/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    graph: ProjectGraph = Depends(get_project_graph),
) -> Response:
    """Remove a task; every dependency touching it goes with it."""
    graph.remove_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/import", response_model=ValidationRead)
def import_graph(
    payload: ProjectImport,
    graph: ProjectGraph = Depends(get_project_graph),
):
    """
    Load tasks and dependencies without the cycle guard.

    Returns the integrity report for the resulting graph so callers can see
    any cycles or dangling edges the import brought in.
    """
    with graph.lock:
        graph.load(
            (Task(**t.model_dump()) for t in payload.tasks),
            (d.model_dump() for d in payload.dependencies),
        )
        result = validate_graph(graph)
    if not result.valid:
        logger.warning(f"Import into project {graph.project_id} left {len(result.issues)} issues")
    return result
