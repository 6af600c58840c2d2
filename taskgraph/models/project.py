from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from taskgraph.models.task import assume_utc


class Project(BaseModel):
    """Project metadata - scopes one dependency graph."""

    id: str = Field(min_length=1)
    name: str = ""
    # Hour 0 of the schedule; fixed task dates are measured from here
    start: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("start")
    @classmethod
    def normalize_start(cls, value: datetime | None) -> datetime | None:
        return assume_utc(value)
