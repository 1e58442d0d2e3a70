"""
GitHub API client infrastructure for pawndex.

Provides the remote operations the searcher and scraper depend on:
- Repository search with pagination
- Repository summary metadata
- Raw file content from a branch
- Branch head lookup and recursive tree listing
- Tag listing

Handles rate limiting with exponential backoff. Every call takes an optional
Deadline so a scrape's time budget and the daemon's stop signal apply to each
request.
"""

import os
import time
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple

import requests

from ..deadline import Deadline, NO_DEADLINE
from ..errors import GitHubError, NotFoundError, RateLimitError

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
RAW_URL = "https://raw.githubusercontent.com"


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp
    used: int

    @property
    def minutes_until_reset(self) -> int:
        """Minutes until rate limit resets."""
        now = int(time.time())
        return max(0, (self.reset_time - now) // 60)

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


@dataclass
class GitHubRepo:
    """GitHub repository summary used for scraping."""
    owner: str
    name: str
    full_name: str
    default_branch: str
    stars: int = 0
    topics: List[str] = field(default_factory=list)
    updated_at: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'GitHubRepo':
        """Create from GitHub API response."""
        owner = data.get('owner', {})

        return cls(
            owner=owner.get('login', '') if isinstance(owner, dict) else str(owner),
            name=data.get('name', ''),
            full_name=data.get('full_name', ''),
            default_branch=data.get('default_branch') or 'master',
            stars=data.get('stargazers_count', 0),
            topics=data.get('topics') or [],
            updated_at=data.get('updated_at'),
        )


class GitHubClient:
    """
    GitHub API client with rate limiting.

    Remote failures raise GitHubError subclasses; "not there" answers that
    callers treat as ordinary outcomes (missing file, missing branch head)
    come back as None.

    Example:
        client = GitHubClient(token="...")
        repo = client.get_repo("Southclaws", "samp-logger")
        print(f"Stars: {repo.stars}")
    """

    def __init__(
        self,
        token: Optional[str] = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token (defaults to PAWNDEX_GITHUB_TOKEN or GITHUB_TOKEN env var)
            max_retries: Maximum attempts for rate-limited or failed requests
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            timeout: Default per-request timeout in seconds
            session: requests.Session to use (a new one by default)
        """
        self.token = token or os.environ.get('PAWNDEX_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN')
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'pawndex',
        })
        if self.token:
            self.session.headers['Authorization'] = f'token {self.token}'
        self._rate_limit_status: Optional[RateLimitStatus] = None

    def _update_rate_limit_from_headers(self, headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('X-RateLimit-Remaining', -1))
            limit = int(headers.get('X-RateLimit-Limit', -1))
            reset_time = int(headers.get('X-RateLimit-Reset', 0))
            used = int(headers.get('X-RateLimit-Used', 0))

            if remaining >= 0 and limit >= 0:
                self._rate_limit_status = RateLimitStatus(
                    remaining=remaining,
                    limit=limit,
                    reset_time=reset_time,
                    used=used
                )

                if self._rate_limit_status.is_low:
                    logger.warning(
                        f"GitHub API rate limit low: {remaining}/{limit} remaining, "
                        f"resets in {self._rate_limit_status.minutes_until_reset} minutes"
                    )
        except (ValueError, TypeError):
            pass  # Ignore parsing errors

    def get_rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Rate limit status seen on the last API response, if any."""
        return self._rate_limit_status

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code != 403:
            return False
        if response.headers.get('X-RateLimit-Remaining') == '0':
            return True
        return 'rate limit' in (response.text or '').lower()

    def _backoff(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def _sleep(self, delay: float, deadline: Deadline) -> None:
        """Sleep unless the deadline's cancel event fires first."""
        if delay <= 0:
            return
        remaining = deadline.remaining()
        if remaining is not None:
            delay = min(delay, max(remaining, 0))
        if deadline.cancel is not None:
            deadline.cancel.wait(delay)
        else:
            time.sleep(delay)
        deadline.check()

    def _request(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        deadline: Deadline = NO_DEADLINE,
    ) -> requests.Response:
        """
        GET a URL with retries.

        Returns the response for 2xx answers. Raises NotFoundError for 404,
        RateLimitError once retries are exhausted on rate limiting and
        GitHubError for any other failure.
        """
        last_error: Optional[str] = None

        for attempt in range(self.max_retries):
            try:
                response = self.session.get(url, params=params, timeout=deadline.timeout(self.timeout))
            except requests.RequestException as e:
                last_error = f"request failed: {e}"
                logger.debug(f"GitHub request to {url} failed (attempt {attempt + 1}): {e}")
                if attempt < self.max_retries - 1:
                    self._sleep(self._backoff(attempt), deadline)
                continue

            # Track rate limit from headers
            self._update_rate_limit_from_headers(response.headers)

            if 200 <= response.status_code < 300:
                return response

            if response.status_code == 404:
                raise NotFoundError(f"not found: {url}")

            if self._is_rate_limited(response):
                last_error = "rate limited"
                if attempt == self.max_retries - 1:
                    break

                reset_time = response.headers.get('X-RateLimit-Reset')
                if reset_time:
                    wait_time = int(reset_time) - int(time.time())
                    if 0 < wait_time < self.max_delay:
                        logger.info(f"Rate limited, waiting {wait_time}s")
                        self._sleep(wait_time, deadline)
                        continue

                delay = self._backoff(attempt)
                logger.info(f"Rate limited, waiting {delay}s (attempt {attempt + 1})")
                self._sleep(delay, deadline)
                continue

            if response.status_code >= 500:
                last_error = f"server error {response.status_code}"
                logger.debug(f"GitHub API error {response.status_code} for {url} (attempt {attempt + 1})")
                if attempt < self.max_retries - 1:
                    self._sleep(self._backoff(attempt), deadline)
                continue

            raise GitHubError(f"GitHub API error {response.status_code} for {url}", response.status_code)

        if last_error == "rate limited":
            reset = self._rate_limit_status.reset_time if self._rate_limit_status else None
            raise RateLimitError(f"rate limited after {self.max_retries} attempts: {url}", reset_time=reset)
        raise GitHubError(f"{last_error} after {self.max_retries} attempts: {url}")

    def _api(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        deadline: Deadline = NO_DEADLINE,
    ) -> Any:
        """Call a REST endpoint and decode the JSON body."""
        response = self._request(f"{API_URL}/{endpoint}", params=params, deadline=deadline)
        try:
            return response.json()
        except ValueError as e:
            raise GitHubError(f"invalid JSON from {endpoint}: {e}")

    def search_repositories(
        self,
        query: str,
        page: int = 1,
        per_page: int = 100,
        deadline: Deadline = NO_DEADLINE,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Fetch one page of repository search results.

        Args:
            query: GitHub search query (e.g. "topic:pawn-package")
            page: Page number (1-indexed)
            per_page: Results per page (max 100)

        Returns:
            (items, total_count) for the page
        """
        data = self._api(
            "search/repositories",
            params={'q': query, 'page': page, 'per_page': per_page},
            deadline=deadline,
        )
        return data.get('items') or [], int(data.get('total_count') or 0)

    def get_repo(self, owner: str, name: str, deadline: Deadline = NO_DEADLINE) -> GitHubRepo:
        """
        Get repository metadata.

        Raises:
            NotFoundError: if the repository does not exist or is not visible
        """
        data = self._api(f"repos/{owner}/{name}", deadline=deadline)
        return GitHubRepo.from_api_response(data)

    def get_raw_file(
        self,
        owner: str,
        name: str,
        ref: str,
        path: str,
        deadline: Deadline = NO_DEADLINE,
    ) -> Optional[bytes]:
        """
        Fetch a file's raw content from a branch.

        Returns:
            File content, or None if the file does not exist
        """
        url = f"{RAW_URL}/{owner}/{name}/{ref}/{path}"
        try:
            response = self._request(url, deadline=deadline)
        except NotFoundError:
            logger.debug(f"{owner}/{name} has no {path} on {ref}")
            return None
        return response.content

    def get_branch_head(
        self,
        owner: str,
        name: str,
        branch: str,
        deadline: Deadline = NO_DEADLINE,
    ) -> Optional[str]:
        """
        Resolve the commit SHA at the head of a branch.

        Returns:
            Commit SHA, or None if the branch has no head (e.g. empty repository)
        """
        try:
            data = self._api(f"repos/{owner}/{name}/git/ref/heads/{branch}", deadline=deadline)
        except NotFoundError:
            return None
        except GitHubError as e:
            # GitHub answers 409 Conflict for empty repositories
            if e.status_code == 409:
                return None
            raise
        if isinstance(data, list):
            # Prefix matches return a list; use the exact branch ref
            data = next((r for r in data if r.get('ref') == f"refs/heads/{branch}"), None)
            if data is None:
                return None
        return (data.get('object') or {}).get('sha')

    def get_tree(
        self,
        owner: str,
        name: str,
        sha: str,
        recursive: bool = True,
        deadline: Deadline = NO_DEADLINE,
    ) -> List[Dict[str, Any]]:
        """
        List the entries of a git tree.

        Returns:
            Tree entries, each with at least 'path' and 'type'
        """
        params = {'recursive': 1} if recursive else None
        data = self._api(f"repos/{owner}/{name}/git/trees/{sha}", params=params, deadline=deadline)
        if data.get('truncated'):
            logger.warning(f"Tree listing for {owner}/{name}@{sha} was truncated by GitHub")
        return data.get('tree') or []

    def list_tags(
        self,
        owner: str,
        name: str,
        per_page: int = 100,
        deadline: Deadline = NO_DEADLINE,
    ) -> List[str]:
        """
        List tag names in the order GitHub returns them.

        Follows pagination until a short page is returned.
        """
        tags: List[str] = []
        page = 1
        while True:
            data = self._api(
                f"repos/{owner}/{name}/tags",
                params={'per_page': per_page, 'page': page},
                deadline=deadline,
            )
            if not isinstance(data, list):
                raise GitHubError(f"unexpected tag listing for {owner}/{name}")
            tags.extend(t.get('name', '') for t in data)
            if len(data) < per_page:
                break
            page += 1
        return tags
