"""Reminders for release-candidate issues left open too long."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from rcbot.core.config import DEFAULT_STALE_DAYS
from rcbot.core.result import Err, Ok, Result
from rcbot.forge.github import Forge
from rcbot.notify.slack import Notifier, rc_stale_message
from rcbot.output.console import ConsoleProtocol, Style
from rcbot.release.errors import TransportError
from rcbot.release.model import Issue


@dataclass(frozen=True, slots=True)
class StaleCheck:
    issue: Issue | None
    stale: bool
    notified: bool


def is_stale(created_at: datetime, now: datetime, threshold_days: float = DEFAULT_STALE_DAYS) -> bool:
    """True once the issue has been open strictly longer than the threshold."""
    return (now - created_at) > timedelta(days=threshold_days)


def pick_rc_issue(issues: Sequence[Issue]) -> Issue | None:
    """The most recently created issue (number breaks ties)."""
    if not issues:
        return None
    return max(issues, key=lambda i: (i.created_at, i.number))


def check_stale_rc(
    *,
    forge: Forge,
    notifier: Notifier,
    console: ConsoleProtocol,
    label: str,
    now: datetime,
    threshold_days: int = DEFAULT_STALE_DAYS,
) -> Result[StaleCheck, TransportError]:
    """Send one reminder if the open RC issue is stale. Never touches the issue."""
    listed = forge.list_issues(labels=(label,))
    if isinstance(listed, Err):
        return listed

    issues = listed.value
    issue = pick_rc_issue(issues)
    if issue is None:
        console.info(f"no open issue labeled {label}")
        return Ok(StaleCheck(issue=None, stale=False, notified=False))

    if len(issues) > 1:
        others = ", ".join(f"#{i.number}" for i in issues if i is not issue)
        console.warning(f"{len(issues)} open {label} issues; using #{issue.number} (also: {others})")

    opened_at = issue.created_at.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    if not is_stale(issue.created_at, now, threshold_days):
        console.print(f"#{issue.number} open since {opened_at}; not stale yet", Style.DIM)
        return Ok(StaleCheck(issue=issue, stale=False, notified=False))

    posted = notifier.post(rc_stale_message(opened_at=opened_at, issue_url=issue.url))
    if isinstance(posted, Err):
        return posted

    console.success(f"reminder sent for #{issue.number} (open since {opened_at})")
    return Ok(StaleCheck(issue=issue, stale=True, notified=True))
