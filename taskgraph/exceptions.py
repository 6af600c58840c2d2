"""
Structured exceptions and error responses for taskgraph.

Provides consistent error handling for the engine and its HTTP surface:
- Custom exception classes carrying an error code and HTTP status
- Structured error response format
- FastAPI exception handlers
"""

from typing import Any, Dict, List, Optional, Sequence

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from taskgraph.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "cycle_detected")
    message: str
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class TaskGraphException(Exception):
    """Base exception for all taskgraph errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(TaskGraphException):
    """A task, dependency or project is not present in the store."""

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class CycleError(TaskGraphException):
    """
    Adding a dependency would create a cycle.

    ``cycle_path`` lists the task ids around the loop once, starting with
    the prerequisite of the rejected edge.
    """

    def __init__(self, cycle_path: Sequence[str]):
        self.cycle_path = list(cycle_path)
        path_text = " -> ".join(str(t) for t in self.cycle_path)
        super().__init__(
            message="Adding this dependency would create a cycle in the task graph",
            error_code="cycle_detected",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{
                "loc": ["body"],
                "msg": f"Cycle: {path_text}",
                "type": "cycle_error",
            }],
        )


class GraphIntegrityError(TaskGraphException):
    """The stored graph holds a cycle or a dangling edge and cannot be analyzed."""

    def __init__(
        self,
        message: str,
        cycles: Optional[List[List[str]]] = None,
        dangling_edge_ids: Optional[List[int]] = None,
    ):
        details = []
        for cycle in cycles or []:
            details.append({
                "msg": "Cycle: " + " -> ".join(str(t) for t in cycle),
                "type": "cycle_error",
            })
        for edge_id in dangling_edge_ids or []:
            details.append({
                "msg": f"Dependency {edge_id} references a missing task",
                "type": "dangling_edge",
            })
        super().__init__(
            message=message,
            error_code="graph_integrity",
            status_code=status.HTTP_409_CONFLICT,
            details=details or None,
        )
        self.cycles = cycles or []
        self.dangling_edge_ids = dangling_edge_ids or []


class InvalidArgumentError(TaskGraphException):
    """Self-dependency, or a type/lag combination that cannot be scheduled."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            message=message,
            error_code="invalid_argument",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class DuplicateProjectError(TaskGraphException):
    """A project graph with this ID is already registered."""

    def __init__(self, project_id: str):
        super().__init__(
            message=f"Project {project_id} already exists",
            error_code="duplicate_project",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.project_id = project_id


# =============================================================================
# Exception Handlers
# =============================================================================

async def taskgraph_exception_handler(request: Request, exc: TaskGraphException) -> JSONResponse:
    """Handle TaskGraphException and return structured response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": None,
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TaskGraphException, taskgraph_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
