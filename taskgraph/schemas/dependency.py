from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from taskgraph.models import DependencyType
from taskgraph.models.dependency import describe_dependency


class DependencyCreate(BaseModel):
    """Schema for creating a new dependency."""
    dependent_id: str       # The blocked task
    prerequisite_id: str    # The blocker task
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_hours: int = 0      # Negative = lead time
    notes: str | None = None


class DependencyUpdate(BaseModel):
    """Schema for updating a dependency in place."""
    dependency_type: DependencyType | None = None
    lag_hours: int | None = None
    notes: str | None = None


class DependencyImport(BaseModel):
    """Edge record inside a bulk import; not cycle-checked."""
    prerequisite_id: str
    dependent_id: str
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_hours: int = 0
    notes: str | None = None
    active: bool = True


class DependencyRead(BaseModel):
    """Schema for reading a dependency."""
    id: int
    prerequisite_id: str
    dependent_id: str
    dependency_type: DependencyType
    lag_hours: int
    notes: str | None
    active: bool
    is_critical: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def description(self) -> str:
        return describe_dependency(
            self.prerequisite_id, self.dependent_id, self.dependency_type, self.lag_hours
        )


class BulkDependencyCreate(BaseModel):
    dependencies: list[DependencyCreate] = Field(min_length=1)


class BulkTypeUpdate(BaseModel):
    dependency_ids: list[int] = Field(min_length=1)
    dependency_type: DependencyType


class BulkDelete(BaseModel):
    dependency_ids: list[int] = Field(min_length=1)


class BulkResult(BaseModel):
    count: int


class TaskDependencies(BaseModel):
    """Both directions of a task's active edges."""
    task_id: str
    dependencies: list[DependencyRead]  # task is the dependent
    dependents: list[DependencyRead]    # task is the prerequisite
