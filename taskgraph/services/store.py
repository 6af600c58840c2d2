"""
Graph store for one project's tasks and dependency edges.

Tasks and edges live in flat dicts keyed by ID; edges hold task IDs only.
Active edges are mirrored into a NetworkX DiGraph, which every traversal
and analysis reads. Readers work on an immutable GraphSnapshot taken under
the project lock; writers hold the lock for the whole check-then-mutate
sequence.
"""

import dataclasses
import itertools
import threading
from datetime import datetime, timezone
from typing import Iterable

import networkx as nx

from taskgraph.exceptions import NotFoundError
from taskgraph.logging_config import get_logger
from taskgraph.models import DependencyEdge, DependencyType, Project, Task

logger = get_logger(__name__)


class GraphView:
    """Read-only access shared by the live store and its snapshots."""

    def __init__(
        self,
        project: Project,
        tasks: dict[str, Task],
        edges: dict[int, DependencyEdge],
        pairs: dict[tuple[str, str], int],
        outgoing: dict[str, set[int]],
        incoming: dict[str, set[int]],
        graph: nx.DiGraph,
    ):
        self._project = project
        self._tasks = tasks
        self._edges = edges
        self._pairs = pairs
        self._outgoing = outgoing
        self._incoming = incoming
        self._graph = graph

    @property
    def project(self) -> Project:
        return self._project

    @property
    def project_id(self) -> str:
        return self._project.id

    @property
    def active_graph(self) -> nx.DiGraph:
        """DiGraph of active edges: nodes are task IDs, edges carry ``edge_id``."""
        return self._graph

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def has_task(self, task_id: str) -> bool:
        return task_id in self._tasks

    def get_task(self, task_id: str) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise NotFoundError("Task", task_id) from None

    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def task_ids(self) -> list[str]:
        return list(self._tasks)

    # -------------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------------

    def get_edge(self, edge_id: int) -> DependencyEdge:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise NotFoundError("Dependency", edge_id) from None

    def has_edge(self, edge_id: int) -> bool:
        return edge_id in self._edges

    def find_edge(self, prerequisite_id: str, dependent_id: str) -> DependencyEdge | None:
        edge_id = self._pairs.get((prerequisite_id, dependent_id))
        return self._edges[edge_id] if edge_id is not None else None

    def get_edges_from(self, task_id: str, active_only: bool = True) -> list[DependencyEdge]:
        """Edges where ``task_id`` is the prerequisite."""
        return self._collect(self._outgoing.get(task_id, ()), active_only)

    def get_edges_to(self, task_id: str, active_only: bool = True) -> list[DependencyEdge]:
        """Edges where ``task_id`` is the dependent."""
        return self._collect(self._incoming.get(task_id, ()), active_only)

    def edges_touching(self, task_id: str, active_only: bool = False) -> list[DependencyEdge]:
        ids = set(self._outgoing.get(task_id, ())) | set(self._incoming.get(task_id, ()))
        return self._collect(ids, active_only)

    def all_active_edges(self) -> list[DependencyEdge]:
        return self._collect(self._edges, active_only=True)

    def all_edges(self) -> list[DependencyEdge]:
        return self._collect(self._edges, active_only=False)

    def _collect(self, edge_ids: Iterable[int], active_only: bool) -> list[DependencyEdge]:
        edges = [self._edges[i] for i in sorted(edge_ids)]
        if active_only:
            edges = [e for e in edges if e.active]
        return edges


class GraphSnapshot(GraphView):
    """Frozen copy of a project graph, safe to read without the lock."""


class ProjectGraph(GraphView):
    """
    Mutable store for one project.

    Public callers should go through ``taskgraph.services.dependencies``,
    which runs the cycle guard before any edge reaches ``add_edge_unchecked``.
    """

    def __init__(self, project: Project):
        super().__init__(
            project=project,
            tasks={},
            edges={},
            pairs={},
            outgoing={},
            incoming={},
            graph=nx.DiGraph(),
        )
        self.lock = threading.RLock()
        self._ids = itertools.count(1)

    def snapshot(self) -> GraphSnapshot:
        """Copy the current state under the lock for concurrent readers."""
        with self.lock:
            return GraphSnapshot(
                project=self._project,
                tasks=dict(self._tasks),
                edges={i: dataclasses.replace(e) for i, e in self._edges.items()},
                pairs=dict(self._pairs),
                outgoing={t: set(ids) for t, ids in self._outgoing.items()},
                incoming={t: set(ids) for t, ids in self._incoming.items()},
                graph=nx.freeze(self._graph.copy()),
            )

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def add_task(self, task: Task) -> Task:
        """Add a task, or replace the stored record if the ID is known."""
        with self.lock:
            replaced = task.id in self._tasks
            self._tasks[task.id] = task
            self._graph.add_node(task.id)
        logger.debug(
            f"{'Updated' if replaced else 'Added'} task {task.id} "
            f"(project={self.project_id})"
        )
        return task

    def update_task(self, task: Task) -> Task:
        with self.lock:
            if task.id not in self._tasks:
                raise NotFoundError("Task", task.id)
            return self.add_task(task)

    def remove_task(self, task_id: str) -> list[DependencyEdge]:
        """Remove a task and hard-delete every edge touching it."""
        with self.lock:
            if task_id not in self._tasks:
                raise NotFoundError("Task", task_id)
            removed = [self.remove_edge(e.id) for e in self.edges_touching(task_id)]
            del self._tasks[task_id]
            if task_id in self._graph:
                self._graph.remove_node(task_id)
        logger.info(
            f"Removed task {task_id} and {len(removed)} dependencies "
            f"(project={self.project_id})"
        )
        return removed

    # -------------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------------

    def add_edge_unchecked(
        self,
        prerequisite_id: str,
        dependent_id: str,
        dependency_type: DependencyType = DependencyType.FINISH_TO_START,
        lag_hours: int = 0,
        notes: str | None = None,
        active: bool = True,
    ) -> DependencyEdge:
        """Insert an edge without validation. Only call after the cycle guard."""
        with self.lock:
            edge = DependencyEdge(
                id=next(self._ids),
                prerequisite_id=prerequisite_id,
                dependent_id=dependent_id,
                dependency_type=dependency_type,
                lag_hours=lag_hours,
                notes=notes,
                active=active,
            )
            self._edges[edge.id] = edge
            self._pairs[edge.pair] = edge.id
            self._outgoing.setdefault(prerequisite_id, set()).add(edge.id)
            self._incoming.setdefault(dependent_id, set()).add(edge.id)
            if active:
                self._graph.add_edge(prerequisite_id, dependent_id, edge_id=edge.id)
            return edge

    def update_edge(
        self,
        edge_id: int,
        dependency_type: DependencyType | None = None,
        lag_hours: int | None = None,
        notes: str | None = None,
    ) -> DependencyEdge:
        with self.lock:
            edge = self.get_edge(edge_id)
            if dependency_type is not None:
                edge.dependency_type = dependency_type
            if lag_hours is not None:
                edge.lag_hours = lag_hours
            if notes is not None:
                edge.notes = notes
            edge.updated_at = datetime.now(timezone.utc)
            return edge

    def set_edge_active(self, edge_id: int, active: bool) -> DependencyEdge:
        """Soft-remove or restore an edge. Restoring must be cycle-checked first."""
        with self.lock:
            edge = self.get_edge(edge_id)
            if edge.active == active:
                return edge
            edge.active = active
            edge.updated_at = datetime.now(timezone.utc)
            if active:
                self._graph.add_edge(edge.prerequisite_id, edge.dependent_id, edge_id=edge.id)
            elif self._graph.has_edge(edge.prerequisite_id, edge.dependent_id):
                self._graph.remove_edge(edge.prerequisite_id, edge.dependent_id)
            return edge

    def remove_edge(self, edge_id: int) -> DependencyEdge:
        """Hard-delete an edge."""
        with self.lock:
            edge = self._edges.pop(edge_id, None)
            if edge is None:
                raise NotFoundError("Dependency", edge_id)
            self._pairs.pop(edge.pair, None)
            self._outgoing.get(edge.prerequisite_id, set()).discard(edge_id)
            self._incoming.get(edge.dependent_id, set()).discard(edge_id)
            if edge.active and self._graph.has_edge(edge.prerequisite_id, edge.dependent_id):
                self._graph.remove_edge(edge.prerequisite_id, edge.dependent_id)
            # Drop placeholder nodes left behind by dangling imported edges
            for task_id in edge.pair:
                if task_id not in self._tasks and task_id in self._graph and self._graph.degree(task_id) == 0:
                    self._graph.remove_node(task_id)
            return edge

    # -------------------------------------------------------------------------
    # Bulk import
    # -------------------------------------------------------------------------

    def load(self, tasks: Iterable[Task], edges: Iterable[dict]) -> list[DependencyEdge]:
        """
        Import tasks and edges as-is, without the cycle guard.

        Used by integrations that bring in an existing plan. Anything loaded
        this way may hold cycles or dangling edges; run ``validate_graph``
        before analysis.

        Edge dicts take the keyword arguments of ``add_edge_unchecked``.
        """
        with self.lock:
            for task in tasks:
                self.add_task(task)
            created = []
            for record in edges:
                existing = self.find_edge(record["prerequisite_id"], record["dependent_id"])
                if existing is not None:
                    self.remove_edge(existing.id)
                created.append(self.add_edge_unchecked(**record))
        logger.info(
            f"Imported {len(self._tasks)} tasks and {len(created)} dependencies "
            f"(project={self.project_id})"
        )
        return created
