from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn

import typer

from rcbot import __version__
from rcbot.cli.context import CLIContext, build_context
from rcbot.core.config import input_env_name
from rcbot.core.errors import ErrorCode
from rcbot.core.result import Err
from rcbot.output.errors import actions_error_command, print_rc_error, rc_error_exit_code
from rcbot.release.errors import RcError, describe
from rcbot.release.model import ReleaseCandidate
from rcbot.release.orchestrator import run_release
from rcbot.release.staleness import check_stale_rc


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _fail(ctx: CLIContext, error: RcError) -> NoReturn:
    print_rc_error(error, ctx.console)
    if ctx.config.in_actions:
        typer.echo(actions_error_command(describe(error)))
    raise typer.Exit(code=int(rc_error_exit_code(error)))


def write_outputs(path: Path, candidate: ReleaseCandidate) -> None:
    """Append step outputs (``name=value`` lines) to the GITHUB_OUTPUT file."""
    lines = [
        f"tag={candidate.tag.name}",
        f"branch={candidate.tag.branch_name}",
        f"issue-url={candidate.issue_url}",
    ]
    with path.open("a", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")


def _overrides(
    *,
    github_token: str | None,
    workflow_token: str | None,
    slack_webhook_url: str | None,
    annoy: bool | None,
) -> dict[str, str]:
    out: dict[str, str] = {}
    if github_token is not None:
        out[input_env_name("github-token")] = github_token
    if workflow_token is not None:
        out[input_env_name("workflow-token")] = workflow_token
    if slack_webhook_url is not None:
        out[input_env_name("slack-webhook-url")] = slack_webhook_url
    if annoy is not None:
        out[input_env_name("annoy")] = "true" if annoy else "false"
    return out


def _release(ctx: CLIContext) -> None:
    config = ctx.config
    ctx.console.header(f"Release candidate for {config.repo}")
    head_sha = config.head_sha
    if head_sha is None:
        raise AssertionError("head sha is validated on the release path")

    result = run_release(
        forge=ctx.forge,
        branch_forge=ctx.branch_forge,
        notifier=ctx.notifier,
        console=ctx.console,
        head_sha=head_sha,
        now=_now(),
        rc_label=config.rc_label,
    )
    if isinstance(result, Err):
        ctx.console.print(f"failed after stage: {result.error.reached.value}")
        _fail(ctx, result.error.error)

    candidate = result.value
    if config.github_output is not None:
        write_outputs(config.github_output, candidate)
    ctx.console.success(f"{candidate.tag.name} ready: {candidate.issue_url}")


def _annoy(ctx: CLIContext) -> None:
    config = ctx.config
    ctx.console.header(f"Stale release candidate check for {config.repo}")
    result = check_stale_rc(
        forge=ctx.forge,
        notifier=ctx.notifier,
        console=ctx.console,
        label=config.rc_label,
        now=_now(),
        threshold_days=config.stale_days,
    )
    if isinstance(result, Err):
        _fail(ctx, result.error)


_GITHUB_TOKEN = typer.Option(None, "--github-token", help="Forge token (else INPUT_GITHUB-TOKEN).")
_WORKFLOW_TOKEN = typer.Option(
    None, "--workflow-token", help="Token used to push the release branch."
)
_SLACK_WEBHOOK = typer.Option(None, "--slack-webhook-url", help="Slack incoming webhook URL.")


@app.command()
def run(
    github_token: str | None = _GITHUB_TOKEN,
    workflow_token: str | None = _WORKFLOW_TOKEN,
    slack_webhook_url: str | None = _SLACK_WEBHOOK,
) -> None:
    """Action entrypoint: the staleness check when the annoy input is set, else a release."""
    ctx = build_context(
        _overrides(
            github_token=github_token,
            workflow_token=workflow_token,
            slack_webhook_url=slack_webhook_url,
            annoy=None,
        )
    )
    if ctx.config.annoy:
        _annoy(ctx)
    else:
        _release(ctx)


@app.command()
def release(
    github_token: str | None = _GITHUB_TOKEN,
    workflow_token: str | None = _WORKFLOW_TOKEN,
    slack_webhook_url: str | None = _SLACK_WEBHOOK,
) -> None:
    """Cut a release candidate from GITHUB_SHA."""
    ctx = build_context(
        _overrides(
            github_token=github_token,
            workflow_token=workflow_token,
            slack_webhook_url=slack_webhook_url,
            annoy=False,
        )
    )
    _release(ctx)


@app.command()
def annoy(
    github_token: str | None = _GITHUB_TOKEN,
    slack_webhook_url: str | None = _SLACK_WEBHOOK,
) -> None:
    """Post a reminder if the open RC issue is stale."""
    ctx = build_context(
        _overrides(
            github_token=github_token,
            workflow_token=None,
            slack_webhook_url=slack_webhook_url,
            annoy=True,
        )
    )
    _annoy(ctx)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ErrorCode.OK))


def main() -> None:
    app()
