"""
Shared fixtures for pawndex tests.

FakeGitHub stands in for GitHubClient: repositories live in memory and
every call honours the Deadline it is given, like the real client does.
"""

import threading
from typing import Dict, List, Optional

import pytest

from pawndex.database.store import PackageStore
from pawndex.deadline import NO_DEADLINE
from pawndex.errors import NotFoundError
from pawndex.infra.github_client import GitHubRepo


class FakeGitHub:
    """In-memory GitHub with just the calls the searcher and scraper make."""

    def __init__(self):
        self.repos: Dict[str, dict] = {}
        self.search_results: Dict[str, List[str]] = {}
        self.repo_errors: Dict[str, Exception] = {}
        self.tag_errors: Dict[str, Exception] = {}
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def add_repo(
        self,
        identifier: str,
        files: Optional[Dict[str, bytes]] = None,
        tags=(),
        stars: int = 0,
        topics=(),
        default_branch: str = "master",
        updated_at: str = "2023-05-01T12:00:00Z",
        empty: bool = False,
    ) -> None:
        self.repos[identifier] = {
            'files': dict(files or {}),
            'tags': list(tags),
            'stars': stars,
            'topics': list(topics),
            'default_branch': default_branch,
            'updated_at': updated_at,
            'empty': empty,
        }

    def _record(self, *call) -> None:
        with self._lock:
            self.calls.append(call)

    def _repo(self, owner: str, name: str) -> dict:
        identifier = f"{owner}/{name}"
        if identifier in self.repo_errors:
            raise self.repo_errors[identifier]
        if identifier not in self.repos:
            raise NotFoundError(f"not found: {identifier}")
        return self.repos[identifier]

    def search_repositories(self, query, page=1, per_page=100, deadline=NO_DEADLINE):
        deadline.check()
        self._record('search', query, page)
        names = self.search_results.get(query, [])
        start = (page - 1) * per_page
        return [{'full_name': n} for n in names[start:start + per_page]], len(names)

    def get_repo(self, owner, name, deadline=NO_DEADLINE):
        deadline.check()
        self._record('get_repo', f"{owner}/{name}")
        repo = self._repo(owner, name)
        return GitHubRepo(
            owner=owner,
            name=name,
            full_name=f"{owner}/{name}",
            default_branch=repo['default_branch'],
            stars=repo['stars'],
            topics=list(repo['topics']),
            updated_at=repo['updated_at'],
        )

    def get_raw_file(self, owner, name, ref, path, deadline=NO_DEADLINE):
        deadline.check()
        self._record('get_raw_file', f"{owner}/{name}", path)
        return self._repo(owner, name)['files'].get(path)

    def get_branch_head(self, owner, name, branch, deadline=NO_DEADLINE):
        deadline.check()
        repo = self._repo(owner, name)
        if repo['empty'] or branch != repo['default_branch']:
            return None
        return "0123456789abcdef"

    def get_tree(self, owner, name, sha, recursive=True, deadline=NO_DEADLINE):
        deadline.check()
        entries = []
        directories = set()
        for path in self._repo(owner, name)['files']:
            parts = path.split('/')
            for i in range(1, len(parts)):
                directories.add('/'.join(parts[:i]))
            entries.append({'path': path, 'type': 'blob'})
        entries.extend({'path': d, 'type': 'tree'} for d in sorted(directories))
        return entries

    def list_tags(self, owner, name, per_page=100, deadline=NO_DEADLINE):
        deadline.check()
        identifier = f"{owner}/{name}"
        self._record('list_tags', identifier)
        if identifier in self.tag_errors:
            raise self.tag_errors[identifier]
        return list(self._repo(owner, name)['tags'])


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def store(tmp_path):
    store = PackageStore(tmp_path / "index.db")
    # Create the schema before any test starts threads
    store.count()
    return store
