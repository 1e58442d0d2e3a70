"""
Repository classification for pawndex.

Decides whether a repository is a Pawn package, how conformant it is, and
collects the metadata the catalog exposes:

1. A pawn.json or pawn.yaml manifest on the default branch makes it "full".
2. Otherwise the recursive file tree is scanned for .inc/.pwn files: at the
   root it is "basic", only deeper it is "buried", none at all "invalid".
3. Cataloged repositories are enriched with stars, topics, the last update
   time and the complete tag list. Any failure here fails the whole scrape.
"""

import json
import logging
import posixpath
import threading
from typing import Iterable, List, Dict, Any, Optional

import yaml

from .deadline import Deadline
from .domain.package import (
    Classification,
    Manifest,
    Package,
    ScrapeResult,
    parse_timestamp,
    parse_identifier,
)
from .errors import ManifestError, NotFoundError
from .infra.github_client import GitHubClient, GitHubRepo

logger = logging.getLogger(__name__)

# Checked in this order; the first one that exists and parses wins
MANIFEST_FILES = ("pawn.json", "pawn.yaml")
SOURCE_EXTENSIONS = frozenset({".inc", ".pwn"})


def parse_manifest(filename: str, content: bytes) -> Manifest:
    """
    Decode a manifest file.

    Raises:
        ManifestError: if the content is not valid JSON/YAML or not a manifest
    """
    try:
        text = content.decode('utf-8-sig')
        if filename.endswith('.json'):
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (UnicodeDecodeError, ValueError, yaml.YAMLError) as e:
        raise ManifestError(f"cannot parse {filename}: {e}")
    return Manifest.from_dict(data)


def classify_tree(entries: Iterable[Dict[str, Any]]) -> Classification:
    """
    Classify a repository from its recursive tree listing.

    Returns BASIC if any source file sits at the root, BURIED if source files
    only exist in subdirectories and INVALID if there are none.
    """
    classification = Classification.INVALID
    for entry in entries:
        if entry.get('type', 'blob') != 'blob':
            continue
        path = entry.get('path', '')
        if posixpath.splitext(path)[1] not in SOURCE_EXTENSIONS:
            continue
        if '/' not in path:
            return Classification.BASIC
        classification = Classification.BURIED
    return classification


class Scraper:
    """
    Classifies one repository per call.

    Holds no per-call state, so one instance can serve a whole worker pool.

    Example:
        scraper = Scraper(GitHubClient())
        result = scraper.scrape("Southclaws/samp-logger", timeout=10)
        if result.is_cataloged:
            print(result.package.classification, result.package.tags)
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    def scrape(
        self,
        identifier: str,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ScrapeResult:
        """
        Scrape a repository.

        Args:
            identifier: Repository identifier (owner/name)
            timeout: Time budget in seconds for all remote calls of this scrape
            cancel: Event that aborts the scrape at the next remote call

        Returns:
            ScrapeResult: a cataloged Package, or an invalid verdict

        Raises:
            InvalidIdentifierError: identifier is not owner/name
            GitHubError, ScrapeTimeout, ScrapeCancelled: retryable failures
        """
        owner, name = parse_identifier(identifier)
        deadline = Deadline(timeout, cancel=cancel)

        try:
            repo = self.client.get_repo(owner, name, deadline=deadline)
        except NotFoundError:
            logger.debug(f"{identifier} no longer exists")
            return ScrapeResult.invalid(identifier)

        manifest = self._find_manifest(repo, owner, name, deadline)
        if manifest is not None:
            classification = Classification.FULL
        else:
            classification = self._find_sources(repo, owner, name, deadline)

        if not classification.is_cataloged:
            logger.debug(f"{identifier} contains no Pawn sources")
            return ScrapeResult.invalid(identifier)

        tags = self.client.list_tags(owner, name, deadline=deadline)

        package = Package(
            owner=owner,
            name=name,
            classification=classification,
            manifest=manifest,
            stars=repo.stars,
            updated=parse_timestamp(repo.updated_at),
            topics=tuple(repo.topics),
            tags=tuple(tags),
        )
        logger.debug(f"{identifier} classified as {classification.value} with {len(tags)} tags")
        return ScrapeResult.cataloged(package)

    def _find_manifest(
        self, repo: GitHubRepo, owner: str, name: str, deadline: Deadline
    ) -> Optional[Manifest]:
        """Return the first manifest that exists and parses, if any."""
        for filename in MANIFEST_FILES:
            content = self.client.get_raw_file(owner, name, repo.default_branch, filename, deadline=deadline)
            if content is None:
                continue
            try:
                return parse_manifest(filename, content)
            except ManifestError as e:
                logger.info(f"{owner}/{name}: ignoring unusable {filename}: {e}")
        return None

    def _find_sources(
        self, repo: GitHubRepo, owner: str, name: str, deadline: Deadline
    ) -> Classification:
        sha = self.client.get_branch_head(owner, name, repo.default_branch, deadline=deadline)
        if sha is None:
            return Classification.INVALID
        entries: List[Dict[str, Any]] = self.client.get_tree(owner, name, sha, recursive=True, deadline=deadline)
        return classify_tree(entries)
