from __future__ import annotations

from datetime import datetime, timezone

from rcbot.core.config import RepoSlug
from rcbot.core.result import Err, Ok
from rcbot.forge.github import GitHubForge
from rcbot.forge.http import MockHttpClient
from rcbot.release.errors import ConflictError, TransportError
from rcbot.release.model import Tag

API = "https://api.github.com/repos/acme/widgets"
SHA_A = "a" * 40
SHA_B = "b" * 40
SHA_M = "c" * 40


def _forge(client: MockHttpClient, token: str = "ghs_test") -> GitHubForge:
    return GitHubForge(client, repo=RepoSlug("acme", "widgets"), token=token)


def _commit(sha: str, message: str) -> dict[str, object]:
    return {
        "sha": sha,
        "html_url": f"https://github.com/acme/widgets/commit/{sha}",
        "commit": {"message": message},
    }


def test_requests_are_authenticated() -> None:
    client = MockHttpClient()
    client.add("GET", f"{API}/tags?per_page=100", [])
    _forge(client, token="secret").list_tags()

    headers = client.requests[0].headers
    assert headers["Authorization"] == "Bearer secret"
    assert headers["Accept"] == "application/vnd.github+json"


def test_list_tags_follows_pagination() -> None:
    client = MockHttpClient()
    page2 = "https://api.github.com/repositories/1/tags?per_page=100&page=2"
    client.add(
        "GET",
        f"{API}/tags?per_page=100",
        [{"name": "v20240602.1"}, {"name": "v20240601.3"}],
        headers={"Link": f'<{page2}>; rel="next"'},
    )
    client.add("GET", page2, [{"name": "v20240530.1"}])

    result = _forge(client).list_tags()

    assert result == Ok([Tag("v20240602.1"), Tag("v20240601.3"), Tag("v20240530.1")])


def test_list_tags_transport_error() -> None:
    client = MockHttpClient()
    client.add_error("GET", f"{API}/tags?per_page=100", status=401, message="Bad credentials")
    result = _forge(client).list_tags()
    assert result == Err(TransportError(operation="list tags", status=401, message="Bad credentials"))


def test_list_tags_rejects_malformed_entries() -> None:
    client = MockHttpClient()
    client.add("GET", f"{API}/tags?per_page=100", [{"commit": {}}])
    result = _forge(client).list_tags()
    assert isinstance(result, Err)


def test_compare_commits_parses_page() -> None:
    client = MockHttpClient()
    client.add(
        "GET",
        f"{API}/compare/release/v20240601.1...{SHA_B}?per_page=1&page=1",
        {
            "status": "diverged",
            "total_commits": 4,
            "merge_base_commit": {"sha": SHA_M},
            "commits": [_commit(SHA_A, "Hotfix (#3)\n\n* detail")],
        },
    )

    result = _forge(client).compare_commits(
        base="release/v20240601.1", head=SHA_B, page=1, per_page=1
    )

    assert isinstance(result, Ok)
    cmp = result.value
    assert cmp.status == "diverged"
    assert cmp.merge_base_sha == SHA_M
    assert cmp.total_commits == 4
    # The forge returns raw messages; sanitizing is the resolver's job.
    assert cmp.commits[0].message == "Hotfix (#3)\n\n* detail"
    assert cmp.commits[0].short_sha == "aaaaaaa"


def test_compare_commits_rejects_bad_sha() -> None:
    client = MockHttpClient()
    client.add(
        "GET",
        f"{API}/compare/{SHA_M}...{SHA_B}?per_page=100&page=1",
        {"status": "ahead", "total_commits": 1, "commits": [_commit("xyz", "bad")]},
    )
    result = _forge(client).compare_commits(base=SHA_M, head=SHA_B)
    assert isinstance(result, Err)
    assert "malformed" in result.error.message


def test_compare_commits_missing_fields() -> None:
    client = MockHttpClient()
    client.add("GET", f"{API}/compare/{SHA_M}...{SHA_B}?per_page=100&page=1", {"status": "ahead"})
    result = _forge(client).compare_commits(base=SHA_M, head=SHA_B)
    assert isinstance(result, Err)


def test_compare_commits_404_keeps_status() -> None:
    client = MockHttpClient()
    result = _forge(client).compare_commits(base="release/v1", head=SHA_B)
    assert isinstance(result, Err)
    assert result.error.status == 404


def test_create_ref_posts_payload() -> None:
    client = MockHttpClient()
    client.add("POST", f"{API}/git/refs", {"ref": "refs/heads/release/v20240602.1"}, status=201)

    result = _forge(client).create_ref(ref="refs/heads/release/v20240602.1", sha=SHA_B)

    assert result == Ok(None)
    assert client.requests[0].payload == {"ref": "refs/heads/release/v20240602.1", "sha": SHA_B}


def test_create_ref_conflict() -> None:
    client = MockHttpClient()
    client.add_error("POST", f"{API}/git/refs", status=422, message="Reference already exists")
    result = _forge(client).create_ref(ref="refs/heads/release/v20240602.1", sha=SHA_B)
    assert result == Err(
        ConflictError(ref="refs/heads/release/v20240602.1", message="Reference already exists")
    )


def test_create_ref_other_errors_are_transport() -> None:
    client = MockHttpClient()
    client.add_error("POST", f"{API}/git/refs", status=403, message="Resource not accessible")
    result = _forge(client).create_ref(ref="refs/heads/x", sha=SHA_B)
    assert isinstance(result, Err)
    assert isinstance(result.error, TransportError)


def test_create_issue_returns_html_url() -> None:
    client = MockHttpClient()
    client.add(
        "POST",
        f"{API}/issues",
        {"number": 12, "html_url": "https://github.com/acme/widgets/issues/12"},
        status=201,
    )

    result = _forge(client).create_issue(title="Release candidate v20240602.1", labels=("RC",), body="b")

    assert result == Ok("https://github.com/acme/widgets/issues/12")
    assert client.requests[0].payload == {
        "title": "Release candidate v20240602.1",
        "labels": ["RC"],
        "body": "b",
    }


def test_list_issues_skips_pull_requests() -> None:
    client = MockHttpClient()
    client.add(
        "GET",
        f"{API}/issues?state=open&labels=RC&per_page=100",
        [
            {
                "number": 4,
                "html_url": "https://github.com/acme/widgets/issues/4",
                "title": "Release candidate v20240601.1",
                "created_at": "2024-06-01T10:00:00Z",
            },
            {
                "number": 5,
                "html_url": "https://github.com/acme/widgets/pull/5",
                "created_at": "2024-06-01T11:00:00Z",
                "pull_request": {},
            },
        ],
    )

    result = _forge(client).list_issues(labels=("RC",))

    assert isinstance(result, Ok)
    [issue] = result.value
    assert issue.number == 4
    assert issue.created_at == datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)


def test_list_issues_rejects_missing_created_at() -> None:
    client = MockHttpClient()
    client.add(
        "GET",
        f"{API}/issues?state=open&labels=RC&per_page=100",
        [{"number": 4, "html_url": "https://github.com/acme/widgets/issues/4"}],
    )
    result = _forge(client).list_issues(labels=("RC",))
    assert isinstance(result, Err)
