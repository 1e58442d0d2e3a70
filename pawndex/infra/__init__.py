"""
Infrastructure layer for pawndex.

Contains abstractions for external systems:
- GitHubClient: GitHub REST API and raw content access

These provide clean interfaces that can be mocked for testing.
"""

from .github_client import GitHubClient, GitHubRepo, RateLimitStatus

__all__ = [
    'GitHubClient',
    'GitHubRepo',
    'RateLimitStatus',
]
