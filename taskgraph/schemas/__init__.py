from taskgraph.schemas.project import ProjectCreate, ProjectImport, ProjectRead
from taskgraph.schemas.task import TaskImport, TaskRead, TaskUpsert
from taskgraph.schemas.dependency import (
    BulkDelete,
    BulkDependencyCreate,
    BulkResult,
    BulkTypeUpdate,
    DependencyCreate,
    DependencyImport,
    DependencyRead,
    DependencyUpdate,
    TaskDependencies,
)
from taskgraph.schemas.analysis import (
    BlockedTaskRead,
    ConnectedTaskRead,
    CriticalPathRead,
    CycleCheckRead,
    OptimizationRead,
    PathRead,
    ReadinessRead,
    RiskAssessmentRead,
    StatisticsRead,
    TaskFloatRead,
    TaskScheduleRead,
    ValidationRead,
)

__all__ = [
    "ProjectCreate",
    "ProjectImport",
    "ProjectRead",
    "TaskImport",
    "TaskRead",
    "TaskUpsert",
    "BulkDelete",
    "BulkDependencyCreate",
    "BulkResult",
    "BulkTypeUpdate",
    "DependencyCreate",
    "DependencyImport",
    "DependencyRead",
    "DependencyUpdate",
    "TaskDependencies",
    "BlockedTaskRead",
    "ConnectedTaskRead",
    "CriticalPathRead",
    "CycleCheckRead",
    "OptimizationRead",
    "PathRead",
    "ReadinessRead",
    "RiskAssessmentRead",
    "StatisticsRead",
    "TaskFloatRead",
    "TaskScheduleRead",
    "ValidationRead",
]
