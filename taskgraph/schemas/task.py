from datetime import datetime

from pydantic import BaseModel, Field


class TaskUpsert(BaseModel):
    """Schema for registering or replacing a task in a project graph."""
    title: str = ""
    duration_hours: float = Field(default=0.0, ge=0)
    fixed_start: datetime | None = None
    fixed_end: datetime | None = None
    completed: bool = False
    progress: int = Field(default=0, ge=0, le=100)


class TaskImport(TaskUpsert):
    """Task record inside a bulk import; carries its own ID."""
    id: str = Field(min_length=1)


class TaskRead(BaseModel):
    """Schema for reading a task held by the graph."""
    id: str
    title: str
    duration_hours: float
    fixed_start: datetime | None
    fixed_end: datetime | None
    completed: bool
    progress: int
    has_started: bool

    model_config = {"from_attributes": True}
