from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


def assume_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so every schedule date is comparable."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Task(BaseModel):
    """
    Task as supplied by the external task-management subsystem.

    The engine reads these fields but never changes them; callers replace
    the whole record when task state moves on.

    Key fields:
    - duration_hours: estimated work (0 = milestone)
    - fixed_start / fixed_end: hard floors for scheduling, never lowered
      (naive values are read as UTC)
    - progress: percent complete; any progress means the task has started
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = ""
    duration_hours: float = Field(default=0.0, ge=0)
    fixed_start: datetime | None = None
    fixed_end: datetime | None = None
    completed: bool = False
    progress: int = Field(default=0, ge=0, le=100)

    @field_validator("fixed_start", "fixed_end")
    @classmethod
    def normalize_dates(cls, value: datetime | None) -> datetime | None:
        return assume_utc(value)

    @computed_field
    @property
    def has_started(self) -> bool:
        return self.completed or self.progress > 0

    @property
    def label(self) -> str:
        return self.title or self.id
