"""
High-level Python API for pawndex.

Wires the GitHub client, searcher, scraper, store and daemon together from
one configuration dictionary.

Example:
    import pawndex

    px = pawndex.Pawndex()

    # One-off discovery and scrape
    result = px.searcher.search(["topic:pawn-package"])
    verdict = px.scraper.scrape("Southclaws/samp-logger")

    # Lookups
    for package in px.packages():
        print(package.identifier, package.classification.value)
    print(px.latest_version("Southclaws/samp-logger"))

    # Run the daemon until stop is set
    stop = threading.Event()
    px.daemon().run(stop)
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import daemon_settings, load_config
from .daemon import Daemon
from .database.connection import get_db_path
from .database.store import PackageStore
from .domain.package import Package
from .exit_codes import PackageNotFoundError
from .infra.github_client import GitHubClient
from .lookup import catalog, find_package, latest_version
from .scraper import Scraper
from .searcher import Searcher

logger = logging.getLogger(__name__)


class Pawndex:
    """
    High-level API for pawndex.

    Settings are validated once, at construction; a bad configuration
    raises ConfigError here rather than inside the daemon.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        db_path: Optional[Path] = None,
        github_token: Optional[str] = None,
        client: Optional[GitHubClient] = None,
    ):
        """
        Initialize Pawndex.

        Args:
            config: Full config dict (loaded from file and environment if omitted)
            db_path: Index database path (overrides config/env)
            github_token: GitHub API token (overrides config/env)
            client: Pre-built GitHub client, mainly for tests
        """
        self._config = config if config is not None else load_config()
        self._settings = daemon_settings(self._config)

        github = dict(self._settings['github'])
        if github_token:
            github['token'] = github_token

        self.client = client or GitHubClient(**github)
        self.searcher = Searcher(self.client, **self._settings['search'])
        self.scraper = Scraper(self.client)
        self.store = PackageStore(db_path or get_db_path(self._config))

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    @property
    def queries(self) -> Tuple[str, ...]:
        return self._settings['daemon']['queries']

    @property
    def scrape_timeout(self) -> float:
        return self._settings['daemon']['scrape_timeout']

    def daemon(self, **overrides) -> Daemon:
        """Build a Daemon from the configured settings."""
        settings = dict(self._settings['daemon'])
        settings.update(overrides)
        return Daemon(self.searcher, self.scraper, self.store, **settings)

    def packages(self) -> List[Package]:
        return catalog(self.store)

    def package(self, identifier: str) -> Package:
        """
        Look up a classified package.

        Raises:
            PackageNotFoundError: never seen, or not scraped yet
        """
        package = find_package(self.store, identifier)
        if package is None:
            raise PackageNotFoundError(identifier)
        return package

    def latest_version(self, identifier: str) -> Optional[Tuple[int, int, int]]:
        return latest_version(self.package(identifier).tags)


def create(**kwargs) -> Pawndex:
    """Create a Pawndex instance."""
    return Pawndex(**kwargs)
