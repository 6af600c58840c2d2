from typing import Any

from pydantic import BaseModel

from taskgraph.models import DependencyType
from taskgraph.schemas.dependency import DependencyRead
from taskgraph.services.risk import RiskLevel


class TaskScheduleRead(BaseModel):
    task_id: str
    title: str
    duration_hours: float
    earliest_start: float
    earliest_finish: float
    latest_start: float
    latest_finish: float
    total_float: float
    is_critical: bool

    model_config = {"from_attributes": True}


class CriticalPathRead(BaseModel):
    """CPM output; times are hours from the project epoch."""
    project_id: str
    ordered_critical_tasks: list[str]
    total_project_duration: float
    float_by_task: dict[str, float]
    critical_edges: list[DependencyRead]
    schedule: dict[str, TaskScheduleRead]
    critical_task_ids: list[str]

    model_config = {"from_attributes": True}


class TaskFloatRead(BaseModel):
    task_id: str
    total_float: float


class ReadinessRead(BaseModel):
    task_id: str
    can_start: bool
    blocking_dependencies: list[DependencyRead]


class BlockedTaskRead(BaseModel):
    task_id: str
    blocking_dependencies: list[DependencyRead]


class ValidationRead(BaseModel):
    valid: bool
    issues: list[str]
    cycles: list[list[str]]
    dangling_edge_ids: list[int]
    self_loop_edge_ids: list[int]

    model_config = {"from_attributes": True}


class RiskAssessmentRead(BaseModel):
    project_id: str
    overall_risk: RiskLevel
    risk_factors: list[str]
    high_risk_tasks: list[str]
    metrics: dict[str, Any]

    model_config = {"from_attributes": True}


class OptimizationRead(BaseModel):
    project_id: str
    recommendations: list[str]
    suggested_adjustments: dict[str, int]
    potential_time_reduction: float

    model_config = {"from_attributes": True}


class StatisticsRead(BaseModel):
    counts: dict[DependencyType, int]
    total: int


class ConnectedTaskRead(BaseModel):
    task_id: str
    degree: int


class PathRead(BaseModel):
    from_task: str
    to_task: str
    path: list[str]


class CycleCheckRead(BaseModel):
    dependent_id: str
    prerequisite_id: str
    would_create_cycle: bool
