"""
Cycle guard for the dependency graph.

This module handles:
- Incremental cycle checks before an edge is inserted or re-activated
- Checked insertion of dependencies
- Full-graph cycle scans and integrity validation for imported graphs

A cycle is reported as the ordered list of task IDs around the loop; each
task depends on the one before it and the first depends on the last.
"""

from dataclasses import dataclass, field

import networkx as nx

from taskgraph.exceptions import CycleError, InvalidArgumentError, NotFoundError
from taskgraph.logging_config import get_logger
from taskgraph.models import DependencyEdge, DependencySpec, DependencyType
from taskgraph.services.store import GraphView, ProjectGraph

logger = get_logger(__name__)

WHITE, GRAY, BLACK = 0, 1, 2


@dataclass
class ValidationResult:
    """Outcome of a full integrity scan."""
    valid: bool
    issues: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    dangling_edge_ids: list[int] = field(default_factory=list)
    self_loop_edge_ids: list[int] = field(default_factory=list)


def would_create_cycle(view: GraphView, dependent_id: str, prerequisite_id: str) -> bool:
    """
    Check if adding ``prerequisite -> dependent`` would close a loop.

    The loop exists iff the prerequisite is already reachable from the
    dependent over active edges. The BFS stops as soon as it gets there.
    """
    if dependent_id == prerequisite_id:
        return True
    graph = view.active_graph
    if dependent_id not in graph or prerequisite_id not in graph:
        return False
    for _, reached in nx.bfs_edges(graph, dependent_id):
        if reached == prerequisite_id:
            return True
    return False


def find_cycle_path(view: GraphView, dependent_id: str, prerequisite_id: str) -> list[str]:
    """
    The loop that ``prerequisite -> dependent`` would close, or [] if none.

    Starts at the prerequisite, then follows the shortest existing chain
    from the dependent back to it.
    """
    if dependent_id == prerequisite_id:
        return [dependent_id]
    try:
        chain = nx.shortest_path(view.active_graph, dependent_id, prerequisite_id)
    except (nx.NetworkXNoPath, nx.NodeNotFound):
        return []
    return [prerequisite_id] + chain[:-1]


def validate_lag(
    view: GraphView,
    prerequisite_id: str,
    dependency_type: DependencyType,
    lag_hours: int,
) -> None:
    """
    Reject leads that reach back past the event the dependency is anchored on.

    Start-anchored types (SS, SF) take no lead at all; finish-anchored types
    (FS, FF) take a lead of at most the prerequisite's duration.
    """
    if lag_hours >= 0:
        return
    code = dependency_type.short_code
    if not dependency_type.anchors_on_prerequisite_finish:
        raise InvalidArgumentError(
            f"{code} dependencies cannot have negative lag ({lag_hours}h)",
            details=[{"loc": ["body", "lag_hours"], "msg": "lead before prerequisite start", "type": "value_error"}],
        )
    duration = view.get_task(prerequisite_id).duration_hours
    if -lag_hours > duration:
        raise InvalidArgumentError(
            f"{code} lead of {-lag_hours}h exceeds the prerequisite's duration of {duration:g}h",
            details=[{"loc": ["body", "lag_hours"], "msg": "lead before prerequisite start", "type": "value_error"}],
        )


def check_dependency(
    view: GraphView,
    dependent_id: str,
    prerequisite_id: str,
    dependency_type: DependencyType,
    lag_hours: int,
) -> None:
    """Run every insertion check; raise the first failure."""
    if not view.has_task(dependent_id):
        raise NotFoundError("Dependent task", dependent_id)
    if not view.has_task(prerequisite_id):
        raise NotFoundError("Prerequisite task", prerequisite_id)
    if dependent_id == prerequisite_id:
        logger.warning(f"Self-dependency rejected: {dependent_id}")
        raise InvalidArgumentError("A task cannot depend on itself")
    validate_lag(view, prerequisite_id, dependency_type, lag_hours)
    if would_create_cycle(view, dependent_id, prerequisite_id):
        cycle = find_cycle_path(view, dependent_id, prerequisite_id)
        logger.warning(
            f"Cycle detected: {prerequisite_id} -> {dependent_id} "
            f"would create a cycle ({' -> '.join(cycle)})"
        )
        raise CycleError(cycle)


def create_dependency(
    graph: ProjectGraph,
    dependent_id: str,
    prerequisite_id: str,
    dependency_type: DependencyType = DependencyType.FINISH_TO_START,
    lag_hours: int = 0,
    notes: str | None = None,
) -> DependencyEdge:
    """
    Insert ``prerequisite -> dependent`` after the cycle guard passes.

    Re-adding an active pair updates it in place. Re-adding an inactive
    pair restores it, which is cycle-checked like a new edge.
    """
    with graph.lock:
        existing = graph.find_edge(prerequisite_id, dependent_id)
        if existing is not None and existing.active:
            validate_lag(graph, prerequisite_id, dependency_type, lag_hours)
            edge = graph.update_edge(existing.id, dependency_type, lag_hours, notes)
            logger.info(f"Updated existing dependency: {edge.description}")
            return edge

        check_dependency(graph, dependent_id, prerequisite_id, dependency_type, lag_hours)

        if existing is not None:
            graph.update_edge(existing.id, dependency_type, lag_hours, notes)
            edge = graph.set_edge_active(existing.id, True)
            logger.info(f"Reactivated dependency: {edge.description}")
            return edge

        edge = graph.add_edge_unchecked(
            prerequisite_id,
            dependent_id,
            dependency_type=dependency_type,
            lag_hours=lag_hours,
            notes=notes,
        )
    logger.info(f"Created dependency: {edge.description} (project={graph.project_id})")
    return edge


def validate_batch(view: GraphView, specs: list[DependencySpec]) -> None:
    """
    Check a whole batch against a scratch copy of the active graph.

    Each item is checked as if the ones before it were already applied, so
    two edges that only form a cycle together are caught. Raises on the
    first failure; the store is never touched.
    """
    work = nx.DiGraph(view.active_graph)
    for spec in specs:
        if not view.has_task(spec.dependent_id):
            raise NotFoundError("Dependent task", spec.dependent_id)
        if not view.has_task(spec.prerequisite_id):
            raise NotFoundError("Prerequisite task", spec.prerequisite_id)
        if spec.dependent_id == spec.prerequisite_id:
            raise InvalidArgumentError(f"Task {spec.dependent_id} cannot depend on itself")
        validate_lag(view, spec.prerequisite_id, spec.dependency_type, spec.lag_hours)
        if work.has_edge(spec.prerequisite_id, spec.dependent_id):
            continue
        try:
            chain = nx.shortest_path(work, spec.dependent_id, spec.prerequisite_id)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            work.add_edge(spec.prerequisite_id, spec.dependent_id)
            continue
        cycle = [spec.prerequisite_id] + chain[:-1]
        logger.warning(f"Bulk operation rejected, cycle: {' -> '.join(cycle)}")
        raise CycleError(cycle)


def create_dependencies(graph: ProjectGraph, specs: list[DependencySpec]) -> list[DependencyEdge]:
    """Create every dependency in the batch, or none of them."""
    with graph.lock:
        validate_batch(graph, specs)
        created = [
            create_dependency(
                graph,
                spec.dependent_id,
                spec.prerequisite_id,
                dependency_type=spec.dependency_type,
                lag_hours=spec.lag_hours,
                notes=spec.notes,
            )
            for spec in specs
        ]
    logger.info(f"Created {len(created)} dependencies in bulk (project={graph.project_id})")
    return created


def detect_all_cycles(view: GraphView) -> list[list[str]]:
    """
    Scan the active subgraph for cycles with a three-colour DFS.

    Each back edge yields one cycle, so every cyclic region is reported at
    least once. Nodes are visited in sorted order to keep output stable.
    """
    graph = view.active_graph
    color = {node: WHITE for node in graph.nodes}
    cycles: list[list[str]] = []

    def children(node):
        return iter(sorted(graph.successors(node), key=str))

    for root in sorted(graph.nodes, key=str):
        if color[root] != WHITE:
            continue
        color[root] = GRAY
        path = [root]
        stack = [(root, children(root))]
        while stack:
            node, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                color[node] = BLACK
                stack.pop()
                path.pop()
            elif color[child] == WHITE:
                color[child] = GRAY
                path.append(child)
                stack.append((child, children(child)))
            elif color[child] == GRAY:
                cycles.append(path[path.index(child):])

    if cycles:
        logger.warning(f"Found {len(cycles)} cycle(s) in project {view.project_id}")
    return cycles


def validate_graph(view: GraphView) -> ValidationResult:
    """
    Full integrity audit: cycles, dangling edges and self-loops.

    Covers inactive edges too, since they can be restored later.
    """
    issues = []
    cycles = detect_all_cycles(view)
    if cycles:
        issues.append(f"Found {len(cycles)} circular dependency cycle(s)")

    dangling = []
    self_loops = []
    for edge in view.all_edges():
        missing = [
            task_id for task_id in (edge.prerequisite_id, edge.dependent_id)
            if not view.has_task(task_id)
        ]
        if missing:
            dangling.append(edge.id)
            issues.append(
                f"Dependency {edge.id} references missing task(s): {', '.join(missing)}"
            )
        if edge.prerequisite_id == edge.dependent_id:
            self_loops.append(edge.id)
            issues.append(
                f"Dependency {edge.id} makes task {edge.dependent_id} depend on itself"
            )

    result = ValidationResult(
        valid=not issues,
        issues=issues,
        cycles=cycles,
        dangling_edge_ids=dangling,
        self_loop_edge_ids=self_loops,
    )
    logger.debug(
        f"Validated project {view.project_id}: valid={result.valid} issues={len(issues)}"
    )
    return result
