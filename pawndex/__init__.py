"""
pawndex - An index of Pawn packages hosted on GitHub.

pawndex periodically searches GitHub for Pawn repositories, scrapes each
one to decide how closely it follows the package layout, and keeps the
verdicts in a local SQLite index that lookup tools read from.

Quick Start:
    import pawndex

    px = pawndex.Pawndex()

    # Catalog
    for package in px.packages():
        print(package.identifier, package.classification.value)

    # Latest version of one package
    print(px.latest_version("Southclaws/samp-logger"))

    # Run the daemon until stop is set
    stop = threading.Event()
    px.daemon().run(stop)

Domain Objects:
    Package - Catalog record for one repository
    Manifest - Fields declared in pawn.json / pawn.yaml
    Classification - full, basic, buried or invalid
    ScrapeResult - Verdict returned by the scraper
    Entry - Stored package plus its scrape-pending flag

Components:
    Searcher - GitHub repository search
    Scraper - Repository classification
    PackageStore - Durable, concurrent-safe index
    Daemon - Search/scrape scheduler
"""

__version__ = "0.3.0"

# High-level API
from .api import Pawndex, create

# Domain objects
from .domain import (
    Classification,
    Entry,
    Manifest,
    Package,
    ScrapeResult,
    parse_identifier,
)

# Components
from .searcher import Searcher, SearchResult
from .scraper import Scraper
from .database import PackageStore
from .daemon import Daemon, DaemonStats
from .infra import GitHubClient

# Lookups
from .lookup import catalog, find_package, latest_version, latest_version_bytes

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # High-level API
    "Pawndex",
    "create",
    # Domain objects
    "Classification",
    "Entry",
    "Manifest",
    "Package",
    "ScrapeResult",
    "parse_identifier",
    # Components
    "Searcher",
    "SearchResult",
    "Scraper",
    "PackageStore",
    "Daemon",
    "DaemonStats",
    "GitHubClient",
    # Lookups
    "catalog",
    "find_package",
    "latest_version",
    "latest_version_bytes",
    # Configuration
    "load_config",
    "save_config",
]
