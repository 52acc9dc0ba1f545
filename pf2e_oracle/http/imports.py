"""
Import API Endpoints

Trigger imports of Foundry VTT PF2e data from GitHub and track the jobs.
Imports run asynchronously and return a job for status polling.
"""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.configs.services import (
    get_cleanup_service,
    get_entry_store,
    get_import_jobs,
    get_import_service,
    get_job_executor,
)
from pf2e_oracle.importer.service import validate_category
from pf2e_oracle.jobs import ALL_TARGET, Job

logger = get_logger("http.import")

router = APIRouter()


def accepted(job: Job, location: str) -> JSONResponse:
    """202 response pointing at the job's status URL."""
    return JSONResponse(status_code=202, content=job.to_dict(), headers={"Location": location})


@router.post("/all", status_code=202)
def import_all() -> JSONResponse:
    """
    Import all categories from GitHub.

    Only downloads files that are new or changed (content hash comparison).
    """
    service = get_import_service()
    store = get_import_jobs()
    job = store.create(ALL_TARGET)
    get_job_executor().submit(store, job, service.import_all)
    return accepted(job, f"/api/import/jobs/{job.id}")


@router.post("/categories/{category}", status_code=202)
def import_category(category: str) -> JSONResponse:
    """Import a single category (a directory under the pack prefix)."""
    category = validate_category(category)
    service = get_import_service()
    store = get_import_jobs()
    job = store.create(category)
    get_job_executor().submit(store, job, lambda context: service.import_category(category, context))
    return accepted(job, f"/api/import/jobs/{job.id}")


@router.get("/categories")
def list_categories() -> list[str]:
    """Categories available for import on the remote."""
    return get_import_service().available_categories()


@router.get("/jobs")
def list_jobs() -> list[dict[str, Any]]:
    return [job.to_dict() for job in get_import_jobs().list_jobs()]


@router.get("/jobs/{job_id}")
def get_job(job_id: str) -> dict[str, Any]:
    return get_import_jobs().get(job_id).to_dict()


@router.get("/stats")
def stats() -> dict[str, Any]:
    """Stored entry counts, total and per category."""
    entries = get_entry_store()
    return {
        "total": entries.count(),
        "by_type": entries.count_by_category(),
    }


@router.get("/cleanup/preview")
def preview_cleanup() -> list[dict[str, Any]]:
    """
    Preview orphaned entries without deleting them.

    Orphans are stored entries whose source file no longer exists on GitHub.
    """
    return [orphan.to_dict() for orphan in get_cleanup_service().detect_orphans()]


@router.post("/cleanup")
def cleanup() -> dict[str, Any]:
    """Delete orphaned entries from the index and the database."""
    result = get_cleanup_service().cleanup_orphans()
    logger.info(
        f"Cleanup removed {result.deleted_from_database} entries "
        f"({result.deleted_from_vector_store} index records)"
    )
    return result.to_dict()
