from __future__ import annotations

import re
from typing import Protocol
from urllib.parse import quote, urlencode

from rcbot.core.config import RepoSlug
from rcbot.core.result import Err, Ok, Result
from rcbot.core.structured import (
    as_obj_list,
    as_str_dict,
    get_datetime,
    get_int,
    get_raw_str,
    get_str,
    get_table,
)
from rcbot.forge.http import HttpClient, HttpError, HttpRequest, HttpResponse, next_page_url
from rcbot.release.errors import ConflictError, TransportError
from rcbot.release.model import CommitRecord, CompareResult, Issue, Tag

_SHA_RE = re.compile(r"^[0-9a-f]{40}$")

# Safety net for Link-header pagination (100 entries per page).
_MAX_LIST_PAGES = 50


class Forge(Protocol):
    """Repository operations a release run needs from the code forge."""

    def list_tags(self) -> Result[list[Tag], TransportError]: ...

    def compare_commits(
        self, *, base: str, head: str, page: int = 1, per_page: int = 100
    ) -> Result[CompareResult, TransportError]: ...

    def create_ref(self, *, ref: str, sha: str) -> Result[None, ConflictError | TransportError]: ...

    def create_issue(
        self, *, title: str, labels: tuple[str, ...], body: str
    ) -> Result[str, TransportError]: ...

    def list_issues(self, *, labels: tuple[str, ...]) -> Result[list[Issue], TransportError]: ...


def _transport(operation: str, error: HttpError) -> TransportError:
    return TransportError(operation=operation, status=error.status, message=error.message)


def _invalid(operation: str, message: str) -> TransportError:
    return TransportError(operation=operation, status=0, message=message)


def parse_commit(obj: object) -> CommitRecord | None:
    """Validate one entry of a compare ``commits`` array."""
    d = as_str_dict(obj)
    if d is None:
        return None

    sha = get_str(d, "sha")
    if sha is None or _SHA_RE.match(sha) is None:
        return None

    url = get_str(d, "html_url")
    commit_tbl = get_table(d, "commit")
    if url is None or commit_tbl is None:
        return None

    message = get_raw_str(commit_tbl, "message")
    if message is None:
        return None
    return CommitRecord(sha=sha, url=url, message=message)


def parse_issue(obj: object) -> Issue | None:
    d = as_str_dict(obj)
    if d is None:
        return None

    # The issues endpoint also lists pull requests.
    if "pull_request" in d:
        return None

    number = get_int(d, "number")
    url = get_str(d, "html_url")
    created_at = get_datetime(d, "created_at")
    if number is None or url is None or created_at is None:
        return None
    return Issue(number=number, url=url, title=get_str(d, "title") or "", created_at=created_at)


class GitHubForge:
    """GitHub REST API implementation of ``Forge`` for a single repository."""

    def __init__(
        self,
        http: HttpClient,
        *,
        repo: RepoSlug,
        token: str,
        api_url: str = "https://api.github.com",
    ) -> None:
        self._http = http
        self.repo = repo
        self._token = token
        self._base = f"{api_url.rstrip('/')}/repos/{quote(repo.owner)}/{quote(repo.name)}"

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _send(
        self, method: str, url: str, payload: object | None = None
    ) -> Result[HttpResponse, HttpError]:
        return self._http.send(
            HttpRequest(method=method, url=url, headers=self._headers(), payload=payload)
        )

    def _json(self, operation: str, response: HttpResponse) -> Result[object, TransportError]:
        try:
            return Ok(response.json())
        except ValueError as e:
            return Err(_invalid(operation, f"invalid JSON: {e}"))

    def _list_all(self, operation: str, url: str) -> Result[list[object], TransportError]:
        items: list[object] = []
        next_url: str | None = url
        pages = 0
        while next_url is not None:
            if pages >= _MAX_LIST_PAGES:
                return Err(_invalid(operation, f"more than {_MAX_LIST_PAGES} pages"))
            pages += 1

            result = self._send("GET", next_url)
            if isinstance(result, Err):
                return Err(_transport(operation, result.error))

            data = self._json(operation, result.value)
            if isinstance(data, Err):
                return data

            page = as_obj_list(data.value)
            if page is None:
                return Err(_invalid(operation, "expected a JSON array"))
            items.extend(page)
            next_url = next_page_url(result.value.headers)
        return Ok(items)

    def list_tags(self) -> Result[list[Tag], TransportError]:
        raw = self._list_all("list tags", f"{self._base}/tags?per_page=100")
        if isinstance(raw, Err):
            return raw

        tags: list[Tag] = []
        for item in raw.value:
            d = as_str_dict(item)
            name = get_str(d, "name") if d is not None else None
            if name is None:
                return Err(_invalid("list tags", "tag entry without a name"))
            tags.append(Tag(name=name))
        return Ok(tags)

    def compare_commits(
        self, *, base: str, head: str, page: int = 1, per_page: int = 100
    ) -> Result[CompareResult, TransportError]:
        operation = f"compare {base}...{head}"
        basehead = f"{quote(base, safe='/')}...{quote(head, safe='/')}"
        query = urlencode({"per_page": per_page, "page": page})
        result = self._send("GET", f"{self._base}/compare/{basehead}?{query}")
        if isinstance(result, Err):
            return Err(_transport(operation, result.error))

        obj = self._json(operation, result.value)
        if isinstance(obj, Err):
            return obj

        data = as_str_dict(obj.value)
        if data is None:
            return Err(_invalid(operation, "unexpected compare payload"))

        status = get_str(data, "status")
        total = get_int(data, "total_commits")
        raw_commits = as_obj_list(data.get("commits"))
        if status is None or total is None or raw_commits is None:
            return Err(_invalid(operation, "missing status, total_commits or commits"))

        commits: list[CommitRecord] = []
        for item in raw_commits:
            record = parse_commit(item)
            if record is None:
                return Err(_invalid(operation, "malformed commit entry"))
            commits.append(record)

        merge_base: str | None = None
        merge_base_tbl = get_table(data, "merge_base_commit")
        if merge_base_tbl is not None:
            merge_base = get_str(merge_base_tbl, "sha")

        return Ok(
            CompareResult(
                status=status,
                merge_base_sha=merge_base,
                total_commits=total,
                commits=tuple(commits),
            )
        )

    def create_ref(self, *, ref: str, sha: str) -> Result[None, ConflictError | TransportError]:
        result = self._send("POST", f"{self._base}/git/refs", {"ref": ref, "sha": sha})
        if isinstance(result, Err):
            # 422 "Reference already exists": another run got there first.
            if result.error.status == 422:
                return Err(ConflictError(ref=ref, message=result.error.message))
            return Err(_transport(f"create ref {ref}", result.error))
        return Ok(None)

    def create_issue(
        self, *, title: str, labels: tuple[str, ...], body: str
    ) -> Result[str, TransportError]:
        operation = "create issue"
        result = self._send(
            "POST",
            f"{self._base}/issues",
            {"title": title, "labels": list(labels), "body": body},
        )
        if isinstance(result, Err):
            return Err(_transport(operation, result.error))

        obj = self._json(operation, result.value)
        if isinstance(obj, Err):
            return obj

        data = as_str_dict(obj.value)
        url = get_str(data, "html_url") if data is not None else None
        if url is None:
            return Err(_invalid(operation, "missing html_url"))
        return Ok(url)

    def list_issues(self, *, labels: tuple[str, ...]) -> Result[list[Issue], TransportError]:
        query = urlencode({"state": "open", "labels": ",".join(labels), "per_page": 100})
        raw = self._list_all("list issues", f"{self._base}/issues?{query}")
        if isinstance(raw, Err):
            return raw

        issues: list[Issue] = []
        for item in raw.value:
            d = as_str_dict(item)
            if d is not None and "pull_request" in d:
                continue
            issue = parse_issue(item)
            if issue is None:
                return Err(_invalid("list issues", "malformed issue entry"))
            issues.append(issue)
        return Ok(issues)
