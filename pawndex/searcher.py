"""
Repository discovery for pawndex.

Runs a fixed set of GitHub search queries and collects the identifiers of
every repository they match.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set

from .deadline import Deadline
from .errors import PawndexError
from .infra.github_client import GitHubClient

logger = logging.getLogger(__name__)

DEFAULT_QUERIES = ("topic:pawn-package", "language:pawn", "topic:sa-mp")
PAGE_SIZE = 100
# GitHub never serves more than 1000 results for one search
MAX_RESULTS = 1000


@dataclass
class SearchResult:
    """Identifiers found by one search pass, plus the queries that failed."""
    identifiers: Set[str] = field(default_factory=set)
    errors: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class Searcher:
    """
    Searches GitHub for candidate repositories.

    Each query is paged sequentially until a page comes back empty, the
    reported total is reached or ``max_results`` identifiers were seen.
    A failing page aborts only its own query.

    Example:
        searcher = Searcher(GitHubClient())
        result = searcher.search(["topic:pawn-package"])
        for identifier in sorted(result.identifiers):
            print(identifier)
    """

    def __init__(
        self,
        client: GitHubClient,
        page_size: int = PAGE_SIZE,
        max_results: int = MAX_RESULTS,
        page_delay: float = 0.0,
    ):
        self.client = client
        self.page_size = page_size
        self.max_results = max_results
        self.page_delay = page_delay

    def search(self, queries: Iterable[str], cancel: Optional[threading.Event] = None) -> SearchResult:
        """
        Run every query and merge the results.

        Args:
            queries: GitHub search query strings
            cancel: Event that stops the search between pages when set

        Returns:
            SearchResult with the deduplicated identifiers and per-query errors
        """
        result = SearchResult()

        for query in queries:
            if cancel is not None and cancel.is_set():
                break
            try:
                found = self._run_query(query, result.identifiers, cancel)
            except PawndexError as e:
                logger.warning(f"Search query '{query}' failed: {e}")
                result.errors[query] = e
                continue
            logger.debug(f"Search query '{query}' matched {found} repositories")

        return result

    def _run_query(self, query: str, identifiers: Set[str], cancel: Optional[threading.Event]) -> int:
        """Page through one query, adding identifiers as pages complete."""
        deadline = Deadline(cancel=cancel)
        page = 1
        seen = 0

        # GitHub rejects any page that reaches past MAX_RESULTS
        while seen < self.max_results and page * self.page_size <= MAX_RESULTS:
            logger.debug(f"Querying '{query}' page {page} ({seen} seen)")
            items, total = self.client.search_repositories(
                query, page=page, per_page=self.page_size, deadline=deadline
            )
            if not items:
                break

            for item in items:
                full_name = item.get('full_name')
                if full_name:
                    identifiers.add(full_name)
            seen += len(items)

            if seen >= total:
                break

            page += 1
            if self.page_delay > 0:
                if cancel is not None:
                    if cancel.wait(self.page_delay):
                        break
                else:
                    time.sleep(self.page_delay)

        return seen
