from taskgraph.models.dependency import DependencyEdge, DependencySpec, DependencyType
from taskgraph.models.project import Project
from taskgraph.models.task import Task

__all__ = [
    "DependencyEdge",
    "DependencySpec",
    "DependencyType",
    "Project",
    "Task",
]
