"""Commit range between the previous release and the current head.

The previous release branch may carry cherry-picked hotfixes that are not
ancestors of the trunk head. Diffing against the raw tag would report those
hotfixes as new (or flip the comparison to ``diverged``), so the range is
computed in two phases:

1. merge-base of ``release/<latest>`` and head;
2. commits from that merge-base (exclusive) to head (inclusive), which must
   compare as ``ahead``.
"""

from __future__ import annotations

from rcbot.core.result import Err, Ok, Result
from rcbot.forge.github import Forge
from rcbot.release.errors import AmbiguousBaseError, NotAheadError, RcError, TransportError
from rcbot.release.model import CommitRange, CommitRecord, Tag

COMPARE_PAGE_SIZE = 100
# Hard cap: 3000 commits. Exceeding it is an error, never a silent truncation.
MAX_COMPARE_PAGES = 30


def sanitize_message(message: str) -> str:
    """Keep only the first line of a commit message.

    Squash merges embed every sub-commit message below the PR title; those
    are dropped. Line-based on purpose, so CRLF bodies are cut the same way
    and no other whitespace is touched.
    """
    first, _, _ = message.partition("\n")
    return first.removesuffix("\r")


def render_commit(record: CommitRecord) -> str:
    return f"- [`{record.short_sha}`]({record.url}) {record.message}"


def render_range(commit_range: CommitRange) -> str:
    """Markdown list of the range, one line per commit, in forge order."""
    return "\n".join(render_commit(c) for c in commit_range.commits)


def find_merge_base(
    forge: Forge,
    *,
    latest: Tag,
    head_sha: str,
) -> Result[str, AmbiguousBaseError | TransportError]:
    # The tag is only a fallback for releases whose branch was deleted.
    last_error = ""
    for base in (latest.branch_name, latest.name):
        result = forge.compare_commits(base=base, head=head_sha, page=1, per_page=1)
        if isinstance(result, Err):
            if result.error.status == 404:
                last_error = result.error.message
                continue
            return result

        if result.value.merge_base_sha is None:
            return Err(
                AmbiguousBaseError(base=base, head=head_sha, reason="forge returned no merge-base")
            )
        return Ok(result.value.merge_base_sha)

    return Err(
        AmbiguousBaseError(
            base=latest.branch_name,
            head=head_sha,
            reason=f"neither {latest.branch_name} nor {latest.name} resolved ({last_error})",
        )
    )


def list_range_commits(
    forge: Forge,
    *,
    base_sha: str,
    head_sha: str,
) -> Result[list[CommitRecord], NotAheadError | TransportError]:
    operation = f"compare {base_sha}...{head_sha}"
    commits: list[CommitRecord] = []
    seen: set[str] = set()
    total: int | None = None

    for page in range(1, MAX_COMPARE_PAGES + 1):
        result = forge.compare_commits(
            base=base_sha, head=head_sha, page=page, per_page=COMPARE_PAGE_SIZE
        )
        if isinstance(result, Err):
            return result
        cmp = result.value

        if total is None:
            # A release is never cut from a head that does not advance.
            if cmp.status != "ahead" or cmp.total_commits == 0:
                return Err(NotAheadError(base=base_sha, head=head_sha, status=cmp.status))
            total = cmp.total_commits

        # Overlapping pages must not count towards the total twice.
        fresh = [c for c in cmp.commits if c.sha not in seen]
        for c in fresh:
            seen.add(c.sha)
            commits.append(c)
        if len(commits) >= total:
            return Ok(commits)
        if not fresh:
            return Err(
                TransportError(
                    operation=operation,
                    status=0,
                    message=f"comparison ended after {len(commits)} of {total} commits",
                )
            )

    return Err(
        TransportError(
            operation=operation,
            status=0,
            message=(
                f"{total} commits exceed the limit of "
                f"{MAX_COMPARE_PAGES * COMPARE_PAGE_SIZE}"
            ),
        )
    )


def resolve_range(forge: Forge, *, latest: Tag, head_sha: str) -> Result[CommitRange, RcError]:
    base = find_merge_base(forge, latest=latest, head_sha=head_sha)
    if isinstance(base, Err):
        return base

    listed = list_range_commits(forge, base_sha=base.value, head_sha=head_sha)
    if isinstance(listed, Err):
        return listed

    commits = tuple(
        CommitRecord(sha=c.sha, url=c.url, message=sanitize_message(c.message))
        for c in listed.value
    )
    return Ok(CommitRange(base_sha=base.value, head_sha=head_sha, commits=commits))
