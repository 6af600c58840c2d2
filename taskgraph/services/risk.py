"""
Risk and schedule-optimization reporting.

Everything here is advisory: the functions read a snapshot, never change
the graph, and degrade to empty or conservative output instead of raising.
"""

import enum
from dataclasses import dataclass, field
from typing import Any

from taskgraph.config import get_settings
from taskgraph.exceptions import GraphIntegrityError
from taskgraph.logging_config import get_logger
from taskgraph.models import DependencyEdge
from taskgraph.services.critical_path import CriticalPathResult, calculate_critical_path
from taskgraph.services.cycles import validate_graph
from taskgraph.services.store import GraphView
from taskgraph.services.traversal import blocked_tasks, most_connected_tasks

logger = get_logger(__name__)


class RiskLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass
class ProjectRiskAssessment:
    """Qualitative risk rating with the factors behind it."""
    project_id: str
    overall_risk: RiskLevel
    risk_factors: list[str] = field(default_factory=list)
    high_risk_tasks: list[str] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)


@dataclass
class ScheduleOptimizationResult:
    """Suggestions only; nothing is applied to the graph."""
    project_id: str
    recommendations: list[str] = field(default_factory=list)
    # Task ID -> hours the task could be shifted later without moving the end date
    suggested_adjustments: dict[str, int] = field(default_factory=dict)
    potential_time_reduction: float = 0.0


def identify_external_constraints(view: GraphView, min_lag_hours: int) -> list[DependencyEdge]:
    """Active edges with a lag of at least ``min_lag_hours``, longest first."""
    edges = [e for e in view.all_active_edges() if e.lag_hours >= min_lag_hours]
    return sorted(edges, key=lambda e: (-e.lag_hours, e.id))


def _analyze(view: GraphView) -> CriticalPathResult | None:
    try:
        return calculate_critical_path(view)
    except GraphIntegrityError as exc:
        logger.warning(f"Skipping CPM for project {view.project_id}: {exc.message}")
        return None


def _add_unique(target: list[str], task_ids) -> None:
    for task_id in task_ids:
        if task_id not in target:
            target.append(task_id)


def assess_project_risk(view: GraphView) -> ProjectRiskAssessment:
    """
    Rate completion risk from graph shape and CPM output.

    Factors considered:
    - cycles or dangling edges (always CRITICAL)
    - long-lag edges that look like external constraints
    - blocked tasks with little or no float
    - highly connected bottleneck tasks

    Three or more factors rate HIGH, one or two MEDIUM, none LOW.
    """
    settings = get_settings()
    factors: list[str] = []
    high_risk: list[str] = []
    metrics: dict[str, Any] = {
        "task_count": len(view.task_ids()),
        "dependency_count": len(view.all_active_edges()),
    }

    validation = validate_graph(view)
    if validation.cycles:
        factors.append("Circular dependencies detected")
        metrics["cycle_count"] = len(validation.cycles)
        for cycle in validation.cycles:
            _add_unique(high_risk, cycle)
    if validation.dangling_edge_ids:
        factors.append("Dependencies reference tasks missing from the project")
        metrics["dangling_dependency_count"] = len(validation.dangling_edge_ids)
    if validation.self_loop_edge_ids:
        factors.append("Tasks that depend on themselves")

    cpm = _analyze(view) if validation.valid else None
    if cpm is None:
        return ProjectRiskAssessment(view.project_id, RiskLevel.CRITICAL, factors, high_risk, metrics)

    metrics["critical_path_length"] = len(cpm.ordered_critical_tasks)
    metrics["critical_task_count"] = len(cpm.critical_task_ids)
    metrics["project_duration"] = cpm.total_project_duration

    external = identify_external_constraints(view, settings.external_constraint_lag_hours)
    metrics["external_constraint_count"] = len(external)
    if external:
        factors.append(
            f"{len(external)} external dependencies with lead times of "
            f"{settings.external_constraint_lag_hours}h or more"
        )
        _add_unique(high_risk, (e.dependent_id for e in external))

    blocked = blocked_tasks(view)
    near_critical = [
        task_id for task_id in sorted(blocked)
        if cpm.float_by_task[task_id] <= settings.near_critical_float_hours
    ]
    metrics["blocked_task_count"] = len(blocked)
    metrics["blocked_near_critical_count"] = len(near_critical)
    metrics["near_critical_blocking_dependencies"] = sum(len(blocked[t]) for t in near_critical)
    if near_critical and len(near_critical) > len(cpm.critical_task_ids) * settings.blocked_ratio_threshold:
        factors.append(f"{len(near_critical)} blocked tasks with little or no float")
        _add_unique(high_risk, near_critical)

    connected = most_connected_tasks(view, settings.most_connected_limit)
    bottlenecks = [(task_id, degree) for task_id, degree in connected if degree >= settings.bottleneck_degree]
    metrics["most_connected"] = [{"task_id": task_id, "degree": degree} for task_id, degree in connected]
    if bottlenecks:
        factors.append(
            f"{len(bottlenecks)} bottleneck tasks with {settings.bottleneck_degree}+ dependencies"
        )
        _add_unique(high_risk, (task_id for task_id, _ in bottlenecks))

    if len(factors) >= 3:
        overall = RiskLevel.HIGH
    elif factors:
        overall = RiskLevel.MEDIUM
    else:
        overall = RiskLevel.LOW

    logger.info(f"Risk for project {view.project_id}: {overall.value} ({len(factors)} factors)")
    return ProjectRiskAssessment(view.project_id, overall, factors, high_risk, metrics)


def optimize_schedule(view: GraphView) -> ScheduleOptimizationResult:
    """
    Suggest schedule adjustments from CPM output.

    - Non-critical tasks next to critical ones can shift within their float
    - Long lags on critical edges are worth reviewing
    - Long-lead external dependencies should be ordered early
    - Tasks with no dependencies at all can run in parallel
    """
    settings = get_settings()
    result = ScheduleOptimizationResult(project_id=view.project_id)
    if not view.task_ids() or not validate_graph(view).valid:
        return result
    cpm = _analyze(view)
    if cpm is None:
        return result

    epsilon = settings.float_epsilon_hours
    critical = set(cpm.critical_task_ids)
    graph = view.active_graph

    for task_id in sorted(cpm.schedule):
        entry = cpm.schedule[task_id]
        if entry.is_critical or entry.total_float <= epsilon:
            continue
        neighbors = sorted(
            n for n in set(graph.predecessors(task_id)) | set(graph.successors(task_id))
            if n in critical
        )
        if not neighbors:
            continue
        result.suggested_adjustments[task_id] = int(entry.total_float)
        result.recommendations.append(
            f"Task {task_id} has {entry.total_float:g} hours of float; consider shifting it "
            f"to relieve contention on critical-path neighbor {neighbors[0]}"
        )

    for edge in cpm.critical_edges:
        if edge.lag_hours > settings.external_constraint_lag_hours:
            result.potential_time_reduction += edge.lag_hours
            result.recommendations.append(
                f"Review lag time for dependency {edge.prerequisite_id} -> {edge.dependent_id} "
                f"({edge.lag_hours}h on the critical path)"
            )

    external = identify_external_constraints(view, settings.procurement_lag_hours)
    if external:
        result.recommendations.append(
            f"Start procurement/ordering early for {len(external)} external dependencies"
        )

    independent = [t for t in sorted(view.task_ids()) if graph.degree(t) == 0]
    if len(independent) > 1:
        result.recommendations.append(
            f"Consider parallelizing {len(independent)} independent tasks"
        )

    logger.info(
        f"Schedule optimization for project {view.project_id}: "
        f"{len(result.recommendations)} recommendations"
    )
    return result
