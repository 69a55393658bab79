from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime


TAG_PREFIX = "v"
RELEASE_BRANCH_PREFIX = "release/"

_TAG_RE = re.compile(r"^v(\d{8})\.([1-9]\d*)$")


@dataclass(frozen=True, slots=True, order=True)
class TagVersion:
    """Parsed ``vYYYYMMDD.N``; ordered by date, then N."""

    date: str
    n: int

    def to_tag(self) -> Tag:
        return Tag(name=f"{TAG_PREFIX}{self.date}.{self.n}")


@dataclass(frozen=True, slots=True)
class Tag:
    name: str

    @property
    def version(self) -> TagVersion | None:
        return parse_tag_version(self.name)

    @property
    def branch_name(self) -> str:
        return f"{RELEASE_BRANCH_PREFIX}{self.name}"

    def __str__(self) -> str:
        return self.name


def parse_tag_version(name: str) -> TagVersion | None:
    m = _TAG_RE.match(name)
    if m is None:
        return None
    return TagVersion(date=m.group(1), n=int(m.group(2)))


@dataclass(frozen=True, slots=True)
class TagSequence:
    latest: Tag | None
    next: Tag


@dataclass(frozen=True, slots=True)
class CommitRecord:
    sha: str
    url: str
    message: str

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


@dataclass(frozen=True, slots=True)
class CompareResult:
    """One page of a base...head comparison as returned by the forge."""

    status: str
    merge_base_sha: str | None
    total_commits: int
    commits: tuple[CommitRecord, ...]


@dataclass(frozen=True, slots=True)
class CommitRange:
    base_sha: str  # exclusive
    head_sha: str  # inclusive
    commits: tuple[CommitRecord, ...]


@dataclass(frozen=True, slots=True)
class Issue:
    number: int
    url: str
    title: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ReleaseCandidate:
    tag: Tag
    branch_ref: str
    issue_url: str
    created_at: datetime
