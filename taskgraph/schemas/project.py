from datetime import datetime

from pydantic import BaseModel, Field

from taskgraph.schemas.dependency import DependencyImport
from taskgraph.schemas.task import TaskImport


class ProjectCreate(BaseModel):
    """Schema for registering a project graph."""
    id: str = Field(min_length=1)
    name: str = ""
    start: datetime | None = None


class ProjectRead(BaseModel):
    """Schema for reading a project."""
    id: str
    name: str
    start: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProjectImport(BaseModel):
    """Tasks and edges loaded as-is; validate afterwards."""
    tasks: list[TaskImport] = []
    dependencies: list[DependencyImport] = []
