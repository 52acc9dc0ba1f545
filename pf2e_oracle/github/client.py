"""
GitHub Repository Client

Fetches the recursive file tree and raw file contents of the source
repository. Uses `requests` with standardized error handling: every
error status maps to its own exception so callers can tell a bad token
from a rate limit from a transient server error.

Usage:
    from pf2e_oracle.github import GitHubClient

    client = GitHubClient(repository="foundryvtt/pf2e", token=token)
    listing = client.fetch_tree()
    files = client.filter_relevant(listing, "packs/pf2e/feats/")
"""

import threading
from typing import Optional

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pf2e_oracle.configs.constants import (
    CONTENT_EXTENSION,
    DEFAULT_BRANCH,
    DEFAULT_REPOSITORY,
    GITHUB_API_URL,
    GITHUB_RAW_URL,
    NON_CONTENT_SUFFIXES,
    USER_AGENT,
    get_timeout,
)
from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import (
    GitHubApiError,
    GitHubAuthError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubServerError,
    HTTPConnectionError,
    HTTPTimeoutError,
)
from pf2e_oracle.github.models import RemoteFile, TreeListing

logger = get_logger("github")

# Transient failures worth another attempt
RETRYABLE_ERRORS = (GitHubServerError, HTTPConnectionError, HTTPTimeoutError)

_retry_transient = retry(
    retry=retry_if_exception_type(RETRYABLE_ERRORS),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    stop=stop_after_attempt(3),
    reraise=True,
)


def raise_for_github_status(response: requests.Response, resource: str) -> None:
    """
    Translate an error status into the matching GitHubApiError subclass.

    Args:
        response: Response to inspect
        resource: Human-readable name of what was requested

    Raises:
        GitHubAuthError: 401
        GitHubRateLimitError: 403 or 429
        GitHubNotFoundError: 404
        GitHubServerError: 5xx
        GitHubApiError: any other 4xx
    """
    status = response.status_code
    if status < 400:
        return

    text = response.text[:500] if response.text else None
    if status == 401:
        raise GitHubAuthError("GitHub API authentication failed", status, text)
    if status in (403, 429):
        raise GitHubRateLimitError(
            "GitHub API access forbidden - rate limit may be exceeded", status, text
        )
    if status == 404:
        raise GitHubNotFoundError(f"GitHub resource not found: {resource}", status, text)
    if status >= 500:
        raise GitHubServerError(f"GitHub server error for {resource}", status, text)
    raise GitHubApiError(f"HTTP {status}: {resource}", status, text)


class GitHubClient:
    """
    Client for the GitHub REST API and raw content host.

    The default branch is resolved once and cached for the lifetime of
    the client. Unauthenticated use works but is limited to 60 requests
    per hour.
    """

    def __init__(
        self,
        repository: str = DEFAULT_REPOSITORY,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        api_url: str = GITHUB_API_URL,
        raw_url: str = GITHUB_RAW_URL,
    ):
        self.repository = repository
        self.api_url = api_url.rstrip("/")
        self.raw_url = raw_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})
        self._api_headers = {"Accept": "application/vnd.github.v3+json"}
        if token:
            self._api_headers["Authorization"] = f"Bearer {token}"
            logger.info("GitHub client initialized with token authentication")
        else:
            logger.warning("GitHub client without token - rate limit: 60 requests/hour")

        self._default_branch: Optional[str] = None
        self._branch_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------------

    def _get(
        self,
        url: str,
        resource: str,
        headers: Optional[dict[str, str]] = None,
        timeout: float = get_timeout("http_default"),
    ) -> requests.Response:
        try:
            response = self._session.get(url, headers=headers, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise HTTPTimeoutError(f"Request timed out: {url}") from e
        except requests.exceptions.ConnectionError as e:
            raise HTTPConnectionError(f"Connection failed: {url}") from e

        raise_for_github_status(response, resource)
        return response

    @_retry_transient
    def _get_api_json(self, endpoint: str, resource: str, timeout: float) -> dict:
        response = self._get(
            f"{self.api_url}{endpoint}",
            resource,
            headers=self._api_headers,
            timeout=timeout,
        )
        try:
            return response.json()
        except ValueError as e:
            raise GitHubApiError(f"Invalid JSON response for {resource}") from e

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def resolve_default_branch(self) -> str:
        """Return the repository's default branch, fetching it at most once."""
        if self._default_branch is not None:
            return self._default_branch

        with self._branch_lock:
            if self._default_branch is None:
                logger.info(f"Resolving default branch for {self.repository}")
                data = self._get_api_json(
                    f"/repos/{self.repository}",
                    self.repository,
                    timeout=get_timeout("http_default"),
                )
                self._default_branch = data.get("default_branch") or DEFAULT_BRANCH
                logger.info(f"Default branch: {self._default_branch}")
        return self._default_branch

    def fetch_tree(self, branch: Optional[str] = None) -> TreeListing:
        """
        List every file and directory of a branch in one call.

        A truncated listing is returned as-is; callers decide how to
        report it.
        """
        branch = branch or self.resolve_default_branch()
        logger.info(f"Loading tree for branch: {branch}")
        data = self._get_api_json(
            f"/repos/{self.repository}/git/trees/{branch}?recursive=1",
            f"tree {branch}",
            timeout=get_timeout("github_tree"),
        )
        listing = TreeListing.from_api(data)
        logger.debug(f"Tree has {len(listing.entries)} entries (truncated={listing.truncated})")
        return listing

    @_retry_transient
    def fetch_raw(self, path: str, branch: Optional[str] = None) -> str:
        """Download one file's content as text."""
        branch = branch or self.resolve_default_branch()
        logger.debug(f"Loading raw content: {path}")
        response = self._get(
            f"{self.raw_url}/{self.repository}/{branch}/{path}",
            path,
            timeout=get_timeout("github_raw"),
        )
        response.encoding = response.encoding or "utf-8"
        return response.text

    @staticmethod
    def filter_relevant(listing: TreeListing, path_prefix: str) -> list[RemoteFile]:
        """Keep JSON content files under path_prefix, skipping folder metadata."""
        return [
            entry
            for entry in listing.entries
            if entry.is_file
            and entry.path.startswith(path_prefix)
            and entry.path.endswith(CONTENT_EXTENSION)
            and not entry.path.endswith(NON_CONTENT_SUFFIXES)
        ]

    def list_categories(self, path_prefix: str, listing: Optional[TreeListing] = None) -> list[str]:
        """Sorted names of the directories directly below path_prefix."""
        listing = listing or self.fetch_tree()
        prefix = path_prefix.rstrip("/") + "/"
        categories = {
            entry.path[len(prefix):].split("/", 1)[0]
            for entry in listing.entries
            if entry.is_directory and entry.path.startswith(prefix)
        }
        return sorted(categories)
