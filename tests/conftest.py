"""
Pytest configuration and fixtures for taskgraph tests.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from taskgraph.main import app
from taskgraph.models import Project, Task
from taskgraph.services import dependencies as service
from taskgraph.services.registry import ProjectRegistry, get_registry
from taskgraph.services.store import ProjectGraph


def add_tasks(graph: ProjectGraph, **durations: float) -> None:
    """Register tasks by keyword: add_tasks(graph, A=4, B=6)."""
    for task_id, hours in durations.items():
        graph.add_task(Task(id=task_id, title=f"Task {task_id}", duration_hours=hours))


@pytest.fixture
def graph():
    """An empty project graph."""
    return ProjectGraph(Project(id="proj-1", name="Test Project"))


@pytest.fixture
def diamond(graph):
    """
    Diamond pattern, all FS with zero lag:

        A (4h)
       /      \\
      B (6h)   C (3h)
       \\      /
        D (2h)
    """
    add_tasks(graph, A=4, B=6, C=3, D=2)
    service.create_dependency(graph, "B", "A")
    service.create_dependency(graph, "C", "A")
    service.create_dependency(graph, "D", "B")
    service.create_dependency(graph, "D", "C")
    return graph


@pytest.fixture
def registry():
    """A fresh registry per test instead of the process-wide one."""
    return ProjectRegistry()


@pytest_asyncio.fixture(scope="function")
async def client(registry):
    """Create an async test client backed by a fresh registry."""
    app.dependency_overrides[get_registry] = lambda: registry

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
