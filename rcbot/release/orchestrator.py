"""Cut a release candidate: tag, branch, tracking issue, Slack notification.

The run is a linear sequence of stages. Each stage's output feeds the next,
and the first failure ends the run with the originating error. Nothing
already created (branch, issue) is rolled back; duplicate runs are prevented
by the trigger, and a concurrent run that computed the same tag fails at
branch creation.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum

from rcbot.core.config import DEFAULT_RC_LABEL, ConfigurationError
from rcbot.core.result import Err, Ok, Result
from rcbot.forge.github import Forge
from rcbot.notify.slack import Notifier, rc_created_message
from rcbot.output.console import ConsoleProtocol, Style
from rcbot.release.commits import render_range, resolve_range
from rcbot.release.errors import AmbiguousBaseError, RcError, describe
from rcbot.release.fsm import FINISH, StepOutcome, advance, run_state_machine
from rcbot.release.issue_body import issue_title, render_issue_body
from rcbot.release.model import CommitRange, ReleaseCandidate, TagSequence
from rcbot.release.tags import check_monotonic, compute_next_tag


class Stage(StrEnum):
    START = "start"
    TAGS_RESOLVED = "tags_resolved"
    RANGE_RESOLVED = "range_resolved"
    BRANCH_CREATED = "branch_created"
    ISSUE_CREATED = "issue_created"
    NOTIFICATION_SENT = "notification_sent"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ReleaseRun:
    stage: Stage
    sequence: TagSequence | None = None
    commit_range: CommitRange | None = None
    branch_ref: str | None = None
    issue_url: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseFailure:
    """Terminal failure: the last stage reached and the error that stopped the run."""

    reached: Stage
    error: RcError

    @property
    def stage(self) -> Stage:
        return Stage.FAILED

    @property
    def message(self) -> str:
        return describe(self.error)


Step = Callable[[ReleaseRun], Result[StepOutcome[ReleaseRun], RcError]]


def _require[T](value: T | None, what: str) -> T:
    if value is None:
        raise AssertionError(f"{what} missing at this stage")
    return value


def run_release(
    *,
    forge: Forge,
    branch_forge: Forge,
    notifier: Notifier,
    console: ConsoleProtocol,
    head_sha: str,
    now: datetime,
    rc_label: str = DEFAULT_RC_LABEL,
) -> Result[ReleaseCandidate, ReleaseFailure]:
    """Run the release path once.

    Args:
        forge: Forge used for reads and issue creation.
        branch_forge: Forge used to create the release branch (may carry an
            elevated token; same as ``forge`` otherwise).
        notifier: Chat sink for the "RC created" message.
        console: Progress output.
        head_sha: Commit the release branch is cut from.
        now: Current time; fixes the tag date and ``created_at``.
        rc_label: Label put on the tracking issue.

    Returns:
        Ok(ReleaseCandidate) when every stage succeeded, else
        Err(ReleaseFailure) with the originating error.
    """

    def resolve_tags(run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RcError]:
        tags = forge.list_tags()
        if isinstance(tags, Err):
            return Err(ConfigurationError(f"failed to list tags: {tags.error}"))

        sequence = compute_next_tag(tags.value, now=now)
        ok = check_monotonic(sequence)
        if isinstance(ok, Err):
            return ok

        latest = sequence.latest.name if sequence.latest is not None else "(none)"
        console.print(f"latest tag: {latest}", Style.DIM)
        console.info(f"next tag: {sequence.next.name}")
        return Ok(advance(replace(run, stage=Stage.TAGS_RESOLVED, sequence=sequence)))

    def resolve_commits(run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RcError]:
        sequence = _require(run.sequence, "tag sequence")
        if sequence.latest is None:
            return Err(
                AmbiguousBaseError(
                    base="(no previous tag)",
                    head=head_sha,
                    reason="push an initial vYYYYMMDD.N tag to serve as the first baseline",
                )
            )

        commit_range = resolve_range(forge, latest=sequence.latest, head_sha=head_sha)
        if isinstance(commit_range, Err):
            return commit_range

        console.info(
            f"{len(commit_range.value.commits)} commit(s) since {sequence.latest.name} "
            f"(merge-base {commit_range.value.base_sha[:7]})"
        )
        return Ok(
            advance(replace(run, stage=Stage.RANGE_RESOLVED, commit_range=commit_range.value))
        )

    def create_branch(run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RcError]:
        sequence = _require(run.sequence, "tag sequence")
        ref = f"refs/heads/{sequence.next.branch_name}"
        created = branch_forge.create_ref(ref=ref, sha=head_sha)
        if isinstance(created, Err):
            return created

        console.success(f"created {sequence.next.branch_name} at {head_sha[:7]}")
        return Ok(advance(replace(run, stage=Stage.BRANCH_CREATED, branch_ref=ref)))

    def create_issue(run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RcError]:
        sequence = _require(run.sequence, "tag sequence")
        commit_range = _require(run.commit_range, "commit range")
        body = render_issue_body(
            tag=sequence.next,
            previous=_require(sequence.latest, "previous tag"),
            commits=render_range(commit_range),
        )
        url = forge.create_issue(title=issue_title(sequence.next), labels=(rc_label,), body=body)
        if isinstance(url, Err):
            return url

        console.success(f"opened {url.value}")
        return Ok(advance(replace(run, stage=Stage.ISSUE_CREATED, issue_url=url.value)))

    def notify(run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RcError]:
        sequence = _require(run.sequence, "tag sequence")
        issue_url = _require(run.issue_url, "issue url")
        posted = notifier.post(rc_created_message(tag=sequence.next.name, issue_url=issue_url))
        if isinstance(posted, Err):
            return posted

        console.success("posted to Slack")
        return Ok(advance(replace(run, stage=Stage.NOTIFICATION_SENT)))

    def finish(run: ReleaseRun) -> Result[StepOutcome[ReleaseRun], RcError]:
        return Ok(FINISH)

    handlers: dict[str, Step] = {
        Stage.START: resolve_tags,
        Stage.TAGS_RESOLVED: resolve_commits,
        Stage.RANGE_RESOLVED: create_branch,
        Stage.BRANCH_CREATED: create_issue,
        Stage.ISSUE_CREATED: notify,
        Stage.NOTIFICATION_SENT: finish,
    }

    result = run_state_machine(
        initial_state=ReleaseRun(stage=Stage.START),
        get_step=lambda r: r.stage.value,
        handlers=handlers,
        on_advance=lambda r: console.print(f"stage: {r.stage.value}", Style.DIM),
    )
    if isinstance(result, Err):
        return Err(ReleaseFailure(reached=result.error.state.stage, error=result.error.error))

    final = result.value
    sequence = _require(final.sequence, "tag sequence")
    return Ok(
        ReleaseCandidate(
            tag=sequence.next,
            branch_ref=_require(final.branch_ref, "branch ref"),
            issue_url=_require(final.issue_url, "issue url"),
            created_at=now,
        )
    )
