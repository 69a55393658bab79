from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

import typer

from rcbot.core.config import ActionConfig, load_action_config
from rcbot.core.errors import ErrorCode
from rcbot.core.result import Err
from rcbot.forge.github import Forge, GitHubForge
from rcbot.forge.http import RealHttpClient
from rcbot.forge.timeouts import GITHUB_TIMEOUT_SECONDS, SLACK_TIMEOUT_SECONDS
from rcbot.notify.slack import Notifier, SlackNotifier
from rcbot.output.console import ConsoleProtocol, RichConsole
from rcbot.output.errors import actions_error_command, print_rc_error


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: ActionConfig
    console: ConsoleProtocol
    forge: Forge
    branch_forge: Forge
    notifier: Notifier


def build_context(overrides: Mapping[str, str] | None = None) -> CLIContext:
    """Load the action config and wire the real collaborators.

    Exits with ``ErrorCode.CONFIG_ERROR`` before any network call when an
    input is missing or invalid.
    """
    console = RichConsole()
    env = {**os.environ, **(overrides or {})}

    loaded = load_action_config(env)
    if isinstance(loaded, Err):
        print_rc_error(loaded.error, console)
        if env.get("GITHUB_ACTIONS") == "true":
            typer.echo(actions_error_command(loaded.error.message))
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
    config = loaded.value

    github_http = RealHttpClient(timeout=GITHUB_TIMEOUT_SECONDS)
    forge = GitHubForge(
        github_http, repo=config.repo, token=config.github_token, api_url=config.api_url
    )
    branch_forge: Forge = forge
    if config.workflow_token is not None:
        branch_forge = GitHubForge(
            github_http, repo=config.repo, token=config.branch_token, api_url=config.api_url
        )

    return CLIContext(
        config=config,
        console=console,
        forge=forge,
        branch_forge=branch_forge,
        notifier=SlackNotifier(
            RealHttpClient(timeout=SLACK_TIMEOUT_SECONDS),
            webhook_url=config.slack_webhook_url,
        ),
    )
