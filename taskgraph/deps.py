"""FastAPI dependencies shared by the routers."""

from fastapi import Depends

from taskgraph.services.registry import ProjectRegistry, get_registry
from taskgraph.services.store import ProjectGraph


def get_project_graph(
    project_id: str,
    registry: ProjectRegistry = Depends(get_registry),
) -> ProjectGraph:
    """Resolve the ``project_id`` path parameter to its graph (404 if unknown)."""
    return registry.get(project_id)
