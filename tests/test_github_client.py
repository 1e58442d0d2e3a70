"""
Tests for the GitHub API client.

Tests cover:
- Request construction (auth header, search parameters)
- Retry on server errors and rate limiting
- 404 handling per endpoint
- Pagination of tag listings
- Deadline and cancellation
"""

import os
import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from pawndex.deadline import Deadline
from pawndex.errors import (
    GitHubError,
    NotFoundError,
    RateLimitError,
    ScrapeCancelled,
)
from pawndex.infra.github_client import API_URL, RAW_URL, GitHubClient, GitHubRepo


def _response(status=200, json_data=None, content=b"", headers=None, text=""):
    response = MagicMock()
    response.status_code = status
    response.headers = headers or {}
    response.content = content
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def client(session):
    return GitHubClient(token="test-token", session=session, base_delay=0, max_retries=3)


SAMPLE_REPO = {
    "name": "samp-logger",
    "full_name": "Southclaws/samp-logger",
    "owner": {"login": "Southclaws"},
    "default_branch": "main",
    "stargazers_count": 42,
    "topics": ["pawn-package", "sa-mp"],
    "fork": False,
    "archived": False,
    "updated_at": "2023-05-01T12:00:00Z",
}


class TestGitHubRepo:
    """Tests for GitHubRepo.from_api_response."""

    def test_from_api_response(self):
        repo = GitHubRepo.from_api_response(SAMPLE_REPO)
        assert repo.owner == "Southclaws"
        assert repo.default_branch == "main"
        assert repo.stars == 42
        assert repo.topics == ["pawn-package", "sa-mp"]
        assert repo.updated_at == "2023-05-01T12:00:00Z"

    def test_defaults(self):
        repo = GitHubRepo.from_api_response({"name": "x"})
        assert repo.default_branch == "master"
        assert repo.topics == []
        assert repo.stars == 0


class TestClientSetup:
    """Tests for client construction."""

    def test_token_sets_auth_header(self, session):
        GitHubClient(token="abc", session=session)
        assert session.headers['Authorization'] == "token abc"

    def test_token_from_environment(self, session):
        with patch.dict(os.environ, {'PAWNDEX_GITHUB_TOKEN': 'from-env'}, clear=True):
            client = GitHubClient(session=session)
        assert client.token == 'from-env'

    def test_no_token(self, session):
        with patch.dict(os.environ, {}, clear=True):
            GitHubClient(session=session)
        assert 'Authorization' not in session.headers


class TestRequests:
    """Tests for endpoint calls."""

    def test_search_repositories(self, client, session):
        session.get.return_value = _response(json_data={
            "total_count": 2,
            "items": [{"full_name": "a/b"}, {"full_name": "c/d"}],
        })

        items, total = client.search_repositories("topic:pawn-package", page=2, per_page=50)

        assert total == 2
        assert [i["full_name"] for i in items] == ["a/b", "c/d"]
        args, kwargs = session.get.call_args
        assert args[0] == f"{API_URL}/search/repositories"
        assert kwargs['params'] == {'q': "topic:pawn-package", 'page': 2, 'per_page': 50}
        assert kwargs['timeout'] == 30.0

    def test_get_repo(self, client, session):
        session.get.return_value = _response(json_data=SAMPLE_REPO)
        repo = client.get_repo("Southclaws", "samp-logger")
        assert repo.full_name == "Southclaws/samp-logger"
        assert session.get.call_args[0][0] == f"{API_URL}/repos/Southclaws/samp-logger"

    def test_get_repo_not_found(self, client, session):
        session.get.return_value = _response(status=404)
        with pytest.raises(NotFoundError):
            client.get_repo("gone", "repo")
        # 404 is final, not retried
        assert session.get.call_count == 1

    def test_get_raw_file(self, client, session):
        session.get.return_value = _response(content=b'{"entry": "test.pwn"}')
        content = client.get_raw_file("a", "b", "main", "pawn.json")
        assert content == b'{"entry": "test.pwn"}'
        assert session.get.call_args[0][0] == f"{RAW_URL}/a/b/main/pawn.json"

    def test_get_raw_file_missing(self, client, session):
        session.get.return_value = _response(status=404)
        assert client.get_raw_file("a", "b", "main", "pawn.json") is None

    def test_get_branch_head(self, client, session):
        session.get.return_value = _response(json_data={
            "ref": "refs/heads/main", "object": {"sha": "abc123"}
        })
        assert client.get_branch_head("a", "b", "main") == "abc123"

    def test_get_branch_head_prefix_match_list(self, client, session):
        session.get.return_value = _response(json_data=[
            {"ref": "refs/heads/main-old", "object": {"sha": "old"}},
            {"ref": "refs/heads/main", "object": {"sha": "abc123"}},
        ])
        assert client.get_branch_head("a", "b", "main") == "abc123"

    def test_get_branch_head_empty_repository(self, client, session):
        session.get.return_value = _response(status=409)
        assert client.get_branch_head("a", "b", "main") is None

    def test_get_tree(self, client, session):
        session.get.return_value = _response(json_data={
            "tree": [{"path": "test.inc", "type": "blob"}],
            "truncated": False,
        })
        assert client.get_tree("a", "b", "abc123") == [{"path": "test.inc", "type": "blob"}]
        assert session.get.call_args[1]['params'] == {'recursive': 1}

    def test_list_tags_paginates(self, client, session):
        session.get.side_effect = [
            _response(json_data=[{"name": "1.0.1"}, {"name": "1.0.0"}]),
            _response(json_data=[{"name": "0.9.0"}]),
        ]
        tags = client.list_tags("a", "b", per_page=2)
        assert tags == ["1.0.1", "1.0.0", "0.9.0"]
        assert session.get.call_count == 2
        assert session.get.call_args[1]['params'] == {'per_page': 2, 'page': 2}

    def test_invalid_json(self, client, session):
        session.get.return_value = _response(json_data=ValueError("bad json"))
        with pytest.raises(GitHubError):
            client.get_repo("a", "b")


class TestRetries:
    """Tests for retry behavior."""

    def test_server_error_then_success(self, client, session):
        session.get.side_effect = [
            _response(status=502),
            _response(json_data=SAMPLE_REPO),
        ]
        repo = client.get_repo("Southclaws", "samp-logger")
        assert repo.stars == 42
        assert session.get.call_count == 2

    def test_server_error_exhausts_retries(self, client, session):
        session.get.return_value = _response(status=500)
        with pytest.raises(GitHubError) as exc:
            client.get_repo("a", "b")
        assert not isinstance(exc.value, NotFoundError)
        assert session.get.call_count == 3

    def test_client_error_not_retried(self, client, session):
        session.get.return_value = _response(status=422)
        with pytest.raises(GitHubError) as exc:
            client.search_repositories("bad query")
        assert exc.value.status_code == 422
        assert session.get.call_count == 1

    def test_rate_limited(self, client, session):
        session.get.return_value = _response(
            status=403,
            headers={'X-RateLimit-Remaining': '0', 'X-RateLimit-Limit': '60'},
        )
        with pytest.raises(RateLimitError):
            client.search_repositories("topic:pawn-package")
        assert session.get.call_count == 3

    def test_rate_limited_then_success(self, client, session):
        session.get.side_effect = [
            _response(status=429),
            _response(json_data={"total_count": 0, "items": []}),
        ]
        assert client.search_repositories("topic:pawn-package") == ([], 0)

    def test_forbidden_without_rate_limit_is_error(self, client, session):
        session.get.return_value = _response(status=403, text="Repository access blocked")
        with pytest.raises(GitHubError) as exc:
            client.get_repo("a", "b")
        assert not isinstance(exc.value, RateLimitError)
        assert session.get.call_count == 1

    def test_connection_errors_wrapped(self, client, session):
        session.get.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(GitHubError):
            client.get_repo("a", "b")
        assert session.get.call_count == 3

    def test_rate_limit_status_tracked(self, client, session):
        session.get.return_value = _response(
            json_data=SAMPLE_REPO,
            headers={
                'X-RateLimit-Remaining': '4999',
                'X-RateLimit-Limit': '5000',
                'X-RateLimit-Reset': '1700000000',
            },
        )
        client.get_repo("Southclaws", "samp-logger")
        status = client.get_rate_limit_status()
        assert status.remaining == 4999
        assert not status.is_low

    def test_low_rate_limit_warns(self, client, session, caplog):
        session.get.return_value = _response(
            json_data=SAMPLE_REPO,
            headers={
                'X-RateLimit-Remaining': '12',
                'X-RateLimit-Limit': '5000',
                'X-RateLimit-Reset': '0',
            },
        )
        with caplog.at_level('WARNING', logger='pawndex.infra.github_client'):
            client.get_repo("Southclaws", "samp-logger")

        assert client.get_rate_limit_status().is_low
        assert client.get_rate_limit_status().minutes_until_reset == 0
        assert "rate limit low: 12/5000" in caplog.text


class TestDeadline:
    """Tests for deadlines passed to requests."""

    def test_cancelled_before_request(self, client, session):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ScrapeCancelled):
            client.get_repo("a", "b", deadline=Deadline(cancel=cancel))
        session.get.assert_not_called()

    def test_timeout_capped_by_deadline(self, client, session):
        session.get.return_value = _response(json_data=SAMPLE_REPO)
        client.get_repo("a", "b", deadline=Deadline(5.0))
        assert 0 < session.get.call_args[1]['timeout'] <= 5.0
