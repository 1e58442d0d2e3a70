"""
Exception hierarchy for pawndex.

Errors are grouped by how the daemon reacts to them:
- InvalidIdentifierError: malformed input, never retried
- GitHubError and subclasses, ScrapeTimeout, ScrapeCancelled: transient,
  retried on the next scheduled tick
- StoreError: persistent store failure, aborts the current tick
"""

from typing import Optional


class PawndexError(Exception):
    """Base class for all pawndex errors."""


class InvalidIdentifierError(PawndexError, ValueError):
    """Raised when a repository identifier is not of the form owner/name."""

    def __init__(self, identifier: str):
        super().__init__(f"invalid repository identifier: {identifier!r}")
        self.identifier = identifier


class GitHubError(PawndexError):
    """Raised when a GitHub API or raw content request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(GitHubError):
    """Raised when GitHub keeps rejecting requests for exceeding the rate limit."""

    def __init__(self, message: str, reset_time: Optional[int] = None):
        super().__init__(message, status_code=403)
        self.reset_time = reset_time


class NotFoundError(GitHubError):
    """Raised when the requested GitHub resource does not exist."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ScrapeTimeout(PawndexError, TimeoutError):
    """Raised when a scrape exhausts its time budget."""


class ScrapeCancelled(PawndexError):
    """Raised when a scrape observes the daemon's stop signal."""


class ManifestError(PawndexError):
    """Raised when a package manifest cannot be interpreted."""


class StoreError(PawndexError):
    """Raised when the package store cannot be read or written."""


class VersionError(PawndexError, ValueError):
    """Raised when a tag cannot be encoded as a three-component version."""
