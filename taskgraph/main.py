"""
Taskgraph - dependency graph engine for project tasks with critical path analysis.
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from taskgraph.routes import analysis, dependencies, projects
from taskgraph.exceptions import register_exception_handlers
from taskgraph.logging_config import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Taskgraph API...")
    yield
    logger.info("Shutting down Taskgraph API...")


app = FastAPI(
    title="Taskgraph",
    description="Task dependency graph engine with cycle prevention and critical path analysis",
    version="0.1.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(projects.router, prefix="/projects", tags=["Projects"])
app.include_router(
    dependencies.router,
    prefix="/projects/{project_id}/dependencies",
    tags=["Dependencies"],
)
app.include_router(analysis.router, prefix="/projects/{project_id}", tags=["Analysis"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
