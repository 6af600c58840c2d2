"""
Critical Path Method (CPM) implementation.

Calculates, in hours from the project epoch:
- Forward pass: Earliest Start (ES), Earliest Finish (EF)
- Backward pass: Latest Start (LS), Latest Finish (LF)
- Total float: LS - ES
- Critical path: the chain of zero-float tasks joined by tight edges

Every dependency type is handled through the constraint tables below:
    FS: dependent starts  after prerequisite finishes + lag
    SS: dependent starts  after prerequisite starts   + lag
    FF: dependent finishes after prerequisite finishes + lag
    SF: dependent finishes after prerequisite starts   + lag

Results are computed fresh on each call. Stored edges are never modified;
critical edges come back as flagged copies.
"""

import dataclasses
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

import networkx as nx

from taskgraph.config import get_settings
from taskgraph.exceptions import GraphIntegrityError, NotFoundError
from taskgraph.logging_config import get_logger
from taskgraph.models import DependencyEdge, DependencyType, Task
from taskgraph.services.cycles import detect_all_cycles
from taskgraph.services.store import GraphView

logger = get_logger(__name__)


@dataclass
class TaskSchedule:
    """CPM results for a single task."""
    task_id: str
    title: str
    duration_hours: float
    # Forward pass results
    earliest_start: float
    earliest_finish: float
    # Backward pass results
    latest_start: float
    latest_finish: float
    total_float: float  # Hours of float (0 = critical)
    is_critical: bool


@dataclass
class CriticalPathResult:
    """Complete CPM analysis for a project."""
    project_id: str
    ordered_critical_tasks: list[str]
    total_project_duration: float
    float_by_task: dict[str, float]
    critical_edges: list[DependencyEdge]
    schedule: dict[str, TaskSchedule] = field(default_factory=dict)
    # Every zero-float task in topological order, including parallel branches
    critical_task_ids: list[str] = field(default_factory=list)
    epoch: datetime | None = None


# Earliest start the dependent may take, given (prerequisite, lag, dependent duration)
_FORWARD = {
    DependencyType.FINISH_TO_START: lambda p, lag, dur: p.earliest_finish + lag,
    DependencyType.START_TO_START: lambda p, lag, dur: p.earliest_start + lag,
    DependencyType.FINISH_TO_FINISH: lambda p, lag, dur: p.earliest_finish + lag - dur,
    DependencyType.START_TO_FINISH: lambda p, lag, dur: p.earliest_start + lag - dur,
}

# Latest finish the prerequisite may take, given (dependent, lag, prerequisite duration)
_BACKWARD = {
    DependencyType.FINISH_TO_START: lambda d, lag, dur: d.latest_start - lag,
    DependencyType.START_TO_START: lambda d, lag, dur: d.latest_start - lag + dur,
    DependencyType.FINISH_TO_FINISH: lambda d, lag, dur: d.latest_finish - lag,
    DependencyType.START_TO_FINISH: lambda d, lag, dur: d.latest_finish - lag + dur,
}


def calculate_critical_path(view: GraphView) -> CriticalPathResult:
    """
    Perform complete CPM analysis on a project graph.

    Raises GraphIntegrityError if the graph holds dangling edges or cycles,
    which can only get in through an unchecked import.
    """
    epsilon = get_settings().float_epsilon_hours
    topo_order = _topological_order(view)
    epoch = _project_epoch(view)

    logger.debug(f"Running CPM on project {view.project_id} ({len(topo_order)} tasks)")

    # =========================================================================
    # Forward Pass: Calculate ES and EF
    # =========================================================================
    schedule: dict[str, TaskSchedule] = {}
    for task_id in topo_order:
        task = view.get_task(task_id)
        duration = task.duration_hours
        es = _fixed_floor(task, epoch)
        for edge in view.get_edges_to(task_id):
            prerequisite = schedule[edge.prerequisite_id]
            es = max(es, _FORWARD[edge.dependency_type](prerequisite, edge.lag_hours, duration))

        schedule[task_id] = TaskSchedule(
            task_id=task_id,
            title=task.title,
            duration_hours=duration,
            earliest_start=es,
            earliest_finish=es + duration,
            latest_start=0.0,
            latest_finish=0.0,
            total_float=0.0,
            is_critical=False,
        )

    project_end = max((s.earliest_finish for s in schedule.values()), default=0.0)

    # =========================================================================
    # Backward Pass: Calculate LF and LS
    # =========================================================================
    for task_id in reversed(topo_order):
        entry = schedule[task_id]
        lf = project_end
        for edge in view.get_edges_from(task_id):
            dependent = schedule[edge.dependent_id]
            lf = min(lf, _BACKWARD[edge.dependency_type](dependent, edge.lag_hours, entry.duration_hours))

        entry.latest_finish = lf
        entry.latest_start = lf - entry.duration_hours

    # =========================================================================
    # Calculate Float and Identify Critical Tasks
    # =========================================================================
    critical_ids = []
    for task_id in topo_order:
        entry = schedule[task_id]
        entry.total_float = entry.latest_start - entry.earliest_start
        entry.is_critical = abs(entry.total_float) <= epsilon
        if entry.is_critical:
            critical_ids.append(task_id)

    critical_edges = [
        dataclasses.replace(edge, is_critical=True)
        for edge in view.all_active_edges()
        if _is_tight(edge, schedule, epsilon)
    ]
    ordered = _extract_path(schedule, critical_ids, critical_edges, project_end, epsilon)

    logger.info(
        f"Critical path for project {view.project_id}: "
        f"{' -> '.join(ordered) or '(empty)'} ({project_end:g}h)"
    )

    return CriticalPathResult(
        project_id=view.project_id,
        ordered_critical_tasks=ordered,
        total_project_duration=project_end,
        float_by_task={task_id: s.total_float for task_id, s in schedule.items()},
        critical_edges=critical_edges,
        schedule=schedule,
        critical_task_ids=critical_ids,
        epoch=epoch,
    )


def calculate_task_float(view: GraphView, task_id: str) -> float:
    """
    Total float for one task.

    Runs the full analysis; an edge or duration change anywhere can move it.
    """
    if not view.has_task(task_id):
        raise NotFoundError("Task", task_id)
    return calculate_critical_path(view).float_by_task[task_id]


def _topological_order(view: GraphView) -> list[str]:
    """Kahn ordering of the active subgraph, after integrity checks."""
    dangling = [
        edge.id for edge in view.all_active_edges()
        if not (view.has_task(edge.prerequisite_id) and view.has_task(edge.dependent_id))
    ]
    if dangling:
        logger.error(f"Dangling dependencies in project {view.project_id}: {dangling}")
        raise GraphIntegrityError(
            "Graph references tasks that are not in the project",
            dangling_edge_ids=dangling,
        )

    try:
        return list(nx.topological_sort(view.active_graph))
    except nx.NetworkXUnfeasible:
        cycles = detect_all_cycles(view)
        logger.error(f"Cycle detected in graph for project {view.project_id}")
        raise GraphIntegrityError("Graph contains a cycle", cycles=cycles) from None


def _project_epoch(view: GraphView) -> datetime | None:
    """Hour 0: the project start, else the earliest fixed date on any task."""
    if view.project.start is not None:
        return view.project.start
    fixed = [
        moment
        for task in view.tasks()
        for moment in (task.fixed_start, task.fixed_end)
        if moment is not None
    ]
    return min(fixed, default=None)


def _hours_since(epoch: datetime, moment: datetime) -> float:
    return (moment - epoch).total_seconds() / 3600


def _fixed_floor(task: Task, epoch: datetime | None) -> float:
    """Earliest start allowed by the epoch and the task's fixed dates."""
    floor = 0.0
    if epoch is None:
        return floor
    if task.fixed_start is not None:
        floor = max(floor, _hours_since(epoch, task.fixed_start))
    if task.fixed_end is not None:
        floor = max(floor, _hours_since(epoch, task.fixed_end) - task.duration_hours)
    return floor


def _is_tight(edge: DependencyEdge, schedule: dict[str, TaskSchedule], epsilon: float) -> bool:
    """An edge is critical when both ends are critical and it leaves no slack."""
    prerequisite = schedule[edge.prerequisite_id]
    dependent = schedule[edge.dependent_id]
    if not (prerequisite.is_critical and dependent.is_critical):
        return False
    bound = _FORWARD[edge.dependency_type](prerequisite, edge.lag_hours, dependent.duration_hours)
    return abs(dependent.earliest_start - bound) <= epsilon


def _extract_path(
    schedule: dict[str, TaskSchedule],
    critical_ids: list[str],
    critical_edges: list[DependencyEdge],
    project_end: float,
    epsilon: float,
) -> list[str]:
    """
    Walk one chain of critical tasks from the earliest start to project end.

    Only tasks from which a project-end task can still be reached over
    critical edges are considered. At each step the successor with the
    smallest (earliest start, ID) wins.
    """
    if not critical_ids:
        return []

    successors: dict[str, list[str]] = {task_id: [] for task_id in critical_ids}
    predecessors: dict[str, list[str]] = {task_id: [] for task_id in critical_ids}
    for edge in critical_edges:
        successors[edge.prerequisite_id].append(edge.dependent_id)
        predecessors[edge.dependent_id].append(edge.prerequisite_id)

    # Reverse BFS from the tasks that finish at project end
    finishing = [t for t in critical_ids if abs(schedule[t].earliest_finish - project_end) <= epsilon]
    reaches_end = set(finishing)
    queue = deque(finishing)
    while queue:
        for pred in predecessors[queue.popleft()]:
            if pred not in reaches_end:
                reaches_end.add(pred)
                queue.append(pred)

    def rank(task_id: str) -> tuple[float, str]:
        return (schedule[task_id].earliest_start, task_id)

    candidates = sorted((t for t in critical_ids if t in reaches_end), key=rank)
    if not candidates:
        return []
    roots = [t for t in candidates if not predecessors[t]] or candidates
    current = roots[0]

    path = []
    visited = set()
    while current is not None:
        path.append(current)
        visited.add(current)
        options = sorted(
            (s for s in successors[current] if s in reaches_end and s not in visited),
            key=rank,
        )
        current = options[0] if options else None
    return path
