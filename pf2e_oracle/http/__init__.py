"""
PF2e Oracle HTTP Server

FastAPI-based HTTP endpoints for import, ingestion, search and chat.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from pf2e_oracle import __version__
from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.configs.services import shutdown_services
from pf2e_oracle.http.correlation import CorrelationIdMiddleware
from pf2e_oracle.http.errors import register_exception_handlers
from pf2e_oracle.http.imports import router as import_router
from pf2e_oracle.http.ingestion import router as ingestion_router
from pf2e_oracle.http.search import router as search_router

logger = get_logger("http")

# Track server startup time
_startup_time = datetime.now(timezone.utc).isoformat()


def get_startup_time() -> str:
    """Get the server startup time."""
    return _startup_time


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Queued jobs are failed, running jobs stop at the next item
    shutdown_services()


# Create FastAPI app
app = FastAPI(
    title="PF2e Oracle",
    description="Pathfinder 2e rules data sync, search and question answering",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(CorrelationIdMiddleware)
register_exception_handlers(app)

# Include routers
app.include_router(import_router, prefix="/api/import", tags=["import"])
app.include_router(ingestion_router, prefix="/api/ingestion", tags=["ingestion"])
app.include_router(search_router, prefix="/api", tags=["search"])


@app.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/info")
def info() -> dict[str, str]:
    """Version and startup time of the running server."""
    return {
        "version": __version__,
        "startup_time": get_startup_time(),
    }


def run_server(host: str = "0.0.0.0", port: int = 8080):
    """Run the FastAPI server."""
    import uvicorn

    logger.info(f"Starting HTTP server on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="warning")
