import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DependencyType(str, enum.Enum):
    """How the prerequisite's timing constrains the dependent's timing."""

    FINISH_TO_START = "FINISH_TO_START"
    START_TO_START = "START_TO_START"
    FINISH_TO_FINISH = "FINISH_TO_FINISH"
    START_TO_FINISH = "START_TO_FINISH"

    @property
    def short_code(self) -> str:
        return _SHORT_CODES[self]

    @property
    def anchors_on_prerequisite_finish(self) -> bool:
        """True when the constraint is measured from the prerequisite's finish."""
        return self in (DependencyType.FINISH_TO_START, DependencyType.FINISH_TO_FINISH)


_SHORT_CODES = {
    DependencyType.FINISH_TO_START: "FS",
    DependencyType.START_TO_START: "SS",
    DependencyType.FINISH_TO_FINISH: "FF",
    DependencyType.START_TO_FINISH: "SF",
}


def describe_dependency(
    prerequisite_id: str,
    dependent_id: str,
    dependency_type: DependencyType,
    lag_hours: int,
) -> str:
    """Human-readable edge, e.g. "A → B (FS) (+4h lag)"."""
    lag = ""
    if lag_hours > 0:
        lag = f" (+{lag_hours}h lag)"
    elif lag_hours < 0:
        lag = f" ({abs(lag_hours)}h lead)"
    return f"{prerequisite_id} → {dependent_id} ({dependency_type.short_code}){lag}"


@dataclass
class DependencyEdge:
    """
    Directed edge in the task DAG.

    prerequisite_id -> dependent_id means:
    "the dependent's timing is constrained by the prerequisite's timing"

    Edges reference tasks by ID only. ``is_critical`` is never set on the
    stored edge; the critical path analyzer returns flagged copies.
    """

    id: int
    prerequisite_id: str
    dependent_id: str
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_hours: int = 0
    notes: str | None = None
    active: bool = True
    is_critical: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.prerequisite_id, self.dependent_id)

    @property
    def description(self) -> str:
        return describe_dependency(
            self.prerequisite_id, self.dependent_id, self.dependency_type, self.lag_hours
        )

    def __str__(self) -> str:
        return self.description


@dataclass
class DependencySpec:
    """One dependency to create in a bulk call."""

    dependent_id: str
    prerequisite_id: str
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_hours: int = 0
    notes: str | None = None
