"""
Ingestion API Endpoints

Trigger indexing of stored entries into the vector store. Ingestion is
incremental by default; force=true re-indexes everything in scope.
"""

from typing import Any

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from pf2e_oracle.configs.services import (
    get_entry_store,
    get_ingestion_jobs,
    get_ingestion_service,
    get_job_executor,
    get_vector_index,
)
from pf2e_oracle.http.imports import accepted
from pf2e_oracle.importer.service import validate_category
from pf2e_oracle.jobs import ALL_TARGET

router = APIRouter()


@router.post("/all", status_code=202)
def ingest_all(force: bool = Query(default=False)) -> JSONResponse:
    """
    Ingest stored entries into the vector store.

    Args:
        force: Re-index every entry instead of only new or changed ones
    """
    service = get_ingestion_service()
    store = get_ingestion_jobs()
    job = store.create(ALL_TARGET)
    get_job_executor().submit(store, job, lambda context: service.ingest(force=force, context=context))
    return accepted(job, f"/api/ingestion/jobs/{job.id}")


@router.post("/categories/{category}", status_code=202)
def ingest_category(category: str, force: bool = Query(default=False)) -> JSONResponse:
    category = validate_category(category)
    service = get_ingestion_service()
    store = get_ingestion_jobs()
    job = store.create(category)
    get_job_executor().submit(
        store, job, lambda context: service.ingest(category=category, force=force, context=context)
    )
    return accepted(job, f"/api/ingestion/jobs/{job.id}")


@router.get("/jobs")
def list_jobs() -> list[dict[str, Any]]:
    return [job.to_dict() for job in get_ingestion_jobs().list_jobs()]


@router.get("/jobs/{job_id}")
def get_job(job_id: str) -> dict[str, Any]:
    return get_ingestion_jobs().get(job_id).to_dict()


@router.get("/types")
def list_types() -> list[dict[str, Any]]:
    """Stored categories with their entry counts."""
    counts = get_entry_store().count_by_category()
    return [{"type": category, "count": count} for category, count in sorted(counts.items())]


@router.get("/stats")
def stats() -> dict[str, int]:
    """Indexing progress across all stored entries."""
    entries = get_entry_store()
    total = entries.count()
    pending = entries.count_pending_indexing()
    return {
        "total_entries": total,
        "vectorized_entries": total - pending,
        "pending_entries": pending,
        "index_records": get_vector_index().count(),
    }
