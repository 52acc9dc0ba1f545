"""
HTTP Error Handling

Maps oracle exceptions to RFC 7807 problem detail responses.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import (
    ClientError,
    GitHubApiError,
    ImportFailedError,
    JobError,
    JobNotFoundError,
    LLMError,
    LLMUnavailableError,
    StorageError,
)

logger = get_logger("http.errors")

PROBLEM_BASE_URI = "https://problems.pf2e-oracle.dev"
PROBLEM_MEDIA_TYPE = "application/problem+json"

# GitHub statuses passed through unchanged; anything else is a bad gateway
PASSTHROUGH_STATUSES = (401, 403, 404)


def problem(
    request: Request,
    status: int,
    slug: str,
    title: str,
    detail: Optional[str],
    **extra: Any,
) -> JSONResponse:
    """Build a problem detail response for the current request."""
    body = {
        "type": f"{PROBLEM_BASE_URI}/{slug}",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": request.url.path,
    }
    body.update(extra)
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_MEDIA_TYPE)


async def handle_github_error(request: Request, exc: GitHubApiError) -> JSONResponse:
    logger.warning(f"GitHub API error: {exc.message}")
    status = exc.status_code if exc.status_code in PASSTHROUGH_STATUSES else 502
    return problem(request, status, "github-api-error", "GitHub API Error", exc.message, statusCode=exc.status_code)


async def handle_client_error(request: Request, exc: ClientError) -> JSONResponse:
    logger.warning(f"Upstream connection error: {exc.message}")
    return problem(request, 502, "upstream-error", "Upstream Unavailable", exc.message)


async def handle_import_error(request: Request, exc: ImportFailedError) -> JSONResponse:
    logger.error(f"Import error: {exc.message}")
    extra = {"path": exc.path} if exc.path else {}
    return problem(request, 500, "import-error", "Import Error", exc.message, **extra)


async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    logger.warning(f"Invalid argument: {exc}")
    return problem(request, 400, "invalid-argument", "Invalid Argument", str(exc))


async def handle_job_not_found(request: Request, exc: JobNotFoundError) -> JSONResponse:
    return problem(request, 404, "job-not-found", "Job Not Found", exc.message)


async def handle_job_error(request: Request, exc: JobError) -> JSONResponse:
    logger.warning(f"Job error: {exc.message}")
    return problem(request, 503, "job-error", "Job Rejected", exc.message)


async def handle_llm_unavailable(request: Request, exc: LLMUnavailableError) -> JSONResponse:
    logger.warning(f"LLM unavailable: {exc.message}")
    return problem(request, 503, "llm-unavailable", "LLM Unavailable", exc.message)


async def handle_llm_error(request: Request, exc: LLMError) -> JSONResponse:
    logger.error(f"LLM error: {exc.message}")
    return problem(request, 502, "llm-error", "LLM Error", exc.message)


async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"Storage error: {exc}")
    return problem(request, 500, "storage-error", "Storage Error", exc.message)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    return problem(request, 500, "internal-error", "Internal Server Error", "An unexpected error occurred")


# Most specific class wins, so subclasses may map differently from their base
EXCEPTION_HANDLERS = {
    GitHubApiError: handle_github_error,
    ClientError: handle_client_error,
    ImportFailedError: handle_import_error,
    ValueError: handle_value_error,
    JobNotFoundError: handle_job_not_found,
    JobError: handle_job_error,
    LLMUnavailableError: handle_llm_unavailable,
    LLMError: handle_llm_error,
    StorageError: handle_storage_error,
    Exception: handle_unexpected_error,
}


def register_exception_handlers(app: FastAPI) -> None:
    """Install the problem detail handlers on an app."""
    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)
