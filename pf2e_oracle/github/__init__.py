"""
GitHub Integration

Tree listing and raw content access for the compendium repository.
"""

from pf2e_oracle.github.client import GitHubClient, raise_for_github_status
from pf2e_oracle.github.models import RemoteFile, TreeListing

__all__ = [
    "GitHubClient",
    "raise_for_github_status",
    "RemoteFile",
    "TreeListing",
]
