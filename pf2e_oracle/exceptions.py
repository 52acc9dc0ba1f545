"""
PF2e Oracle Exception Hierarchy

Centralized exception classes for structured error handling across the codebase.
All oracle-specific exceptions inherit from OracleError.

Usage:
    from pf2e_oracle.exceptions import GitHubApiError, ImportFailedError

    try:
        listing = client.fetch_tree()
    except GitHubRateLimitError as e:
        logger.error(f"Rate limited: {e}")
"""


class OracleError(Exception):
    """Base exception for all oracle errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(OracleError):
    """Base class for relational storage errors."""

    pass


class VectorIndexError(StorageError):
    """Error with ChromaDB collection operations."""

    pass


# =============================================================================
# Import Errors
# =============================================================================


class ImportFailedError(OracleError):
    """Importing a single remote file failed."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message, {"path": path} if path else None)
        self.path = path

    @classmethod
    def download_failed(cls, path: str) -> "ImportFailedError":
        return cls(f"Failed to download: {path}", path=path)


class ContentParseError(ImportFailedError):
    """Fetched content is not a JSON object."""

    pass


# =============================================================================
# GitHub / HTTP Errors
# =============================================================================


class ClientError(OracleError):
    """Base class for HTTP client errors."""

    pass


class GitHubApiError(ClientError):
    """GitHub responded with an error status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        if response_text:
            details["response_text"] = response_text[:200]
        super().__init__(message, details)
        self.status_code = status_code
        self.response_text = response_text


class GitHubAuthError(GitHubApiError):
    """Token rejected (401)."""

    pass


class GitHubRateLimitError(GitHubApiError):
    """Access forbidden, usually an exhausted rate limit (403/429)."""

    pass


class GitHubNotFoundError(GitHubApiError):
    """Repository, branch or file does not exist (404)."""

    pass


class GitHubServerError(GitHubApiError):
    """GitHub returned a 5xx status."""

    pass


class HTTPConnectionError(ClientError):
    """Failed to connect to HTTP endpoint."""

    pass


class HTTPTimeoutError(ClientError):
    """HTTP request timed out."""

    pass


# =============================================================================
# Job Errors
# =============================================================================


class JobError(OracleError):
    """Base class for async job errors."""

    pass


class JobNotFoundError(JobError):
    """No job with the given id is tracked."""

    pass


class JobStateError(JobError):
    """Requested status transition is not allowed."""

    pass


# =============================================================================
# LLM Provider Errors
# =============================================================================


class LLMError(OracleError):
    """Base class for LLM provider errors."""

    pass


class LLMUnavailableError(LLMError):
    """No configured provider can be used."""

    pass


class LLMResponseError(LLMError):
    """Invalid or unexpected response from LLM."""

    pass
