"""
In-process registry of project graphs.

Each project gets its own ProjectGraph (and lock); projects share nothing,
so operations on different projects never wait on each other.
"""

import threading
from functools import lru_cache

from taskgraph.exceptions import DuplicateProjectError, NotFoundError
from taskgraph.logging_config import get_logger
from taskgraph.models import Project
from taskgraph.services.store import ProjectGraph

logger = get_logger(__name__)


class ProjectRegistry:
    def __init__(self):
        self._graphs: dict[str, ProjectGraph] = {}
        self._lock = threading.Lock()

    def create(self, project: Project) -> ProjectGraph:
        with self._lock:
            if project.id in self._graphs:
                raise DuplicateProjectError(project.id)
            graph = ProjectGraph(project)
            self._graphs[project.id] = graph
        logger.info(f"Registered project: id={project.id} name='{project.name}'")
        return graph

    def get(self, project_id: str) -> ProjectGraph:
        try:
            return self._graphs[project_id]
        except KeyError:
            raise NotFoundError("Project", project_id) from None

    def remove(self, project_id: str) -> ProjectGraph:
        with self._lock:
            graph = self._graphs.pop(project_id, None)
        if graph is None:
            raise NotFoundError("Project", project_id)
        logger.info(f"Dropped project graph: id={project_id}")
        return graph

    def projects(self) -> list[Project]:
        with self._lock:
            return [graph.project for graph in self._graphs.values()]

    def clear(self) -> None:
        with self._lock:
            self._graphs.clear()


@lru_cache
def get_registry() -> ProjectRegistry:
    """Process-wide registry; used as a FastAPI dependency."""
    return ProjectRegistry()
