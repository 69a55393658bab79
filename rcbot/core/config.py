"""Typed configuration for an rcbot run.

rcbot runs as a GitHub Action step. Action inputs arrive as ``INPUT_<NAME>``
environment variables (name upper-cased, hyphens kept) and the workflow
context as ``GITHUB_*`` variables. Everything is validated here, before any
network call is attempted.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .result import Err, Ok, Result

__all__ = [
    "ActionConfig",
    "ConfigurationError",
    "RepoSlug",
    "input_env_name",
    "load_action_config",
    "parse_bool",
    "DEFAULT_API_URL",
    "DEFAULT_RC_LABEL",
    "DEFAULT_STALE_DAYS",
]

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_RC_LABEL = "RC"
DEFAULT_STALE_DAYS = 2

_SHA_RE = re.compile(r"^[0-9a-f]{40}$")
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off", ""})


@dataclass(frozen=True, slots=True)
class ConfigurationError:
    """Missing or invalid input. Fatal; raised before any network call."""

    message: str
    input_name: str | None = None


@dataclass(frozen=True, slots=True)
class RepoSlug:
    owner: str
    name: str

    @classmethod
    def parse(cls, value: str) -> RepoSlug | None:
        owner, sep, name = value.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            return None
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class ActionConfig:
    """Validated inputs and workflow context."""

    repo: RepoSlug
    github_token: str
    slack_webhook_url: str
    workflow_token: str | None = None
    annoy: bool = False
    head_sha: str | None = None  # always set on the release path
    api_url: str = DEFAULT_API_URL
    rc_label: str = DEFAULT_RC_LABEL
    stale_days: int = DEFAULT_STALE_DAYS
    github_output: Path | None = None
    in_actions: bool = False

    @property
    def branch_token(self) -> str:
        """Token used to push the release branch (elevated when provided)."""
        return self.workflow_token or self.github_token


def input_env_name(name: str) -> str:
    """``github-token`` -> ``INPUT_GITHUB-TOKEN`` (the Actions runner convention)."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


def _input(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(input_env_name(name))
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_bool(value: str | None) -> bool | None:
    """Parse an action boolean input; None when the value is not a boolean."""
    v = (value or "").strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return None


def load_action_config(env: Mapping[str, str]) -> Result[ActionConfig, ConfigurationError]:
    """Build the run configuration from the process environment.

    Args:
        env: Environment mapping (``os.environ`` in production).

    Returns:
        Ok(ActionConfig) on success, Err(ConfigurationError) naming the first
        missing or invalid input.
    """
    github_token = _input(env, "github-token")
    if github_token is None:
        return Err(ConfigurationError('Input "github-token" was not defined', "github-token"))

    slack_webhook_url = _input(env, "slack-webhook-url")
    if slack_webhook_url is None:
        return Err(
            ConfigurationError('Input "slack-webhook-url" was not defined', "slack-webhook-url")
        )
    if not slack_webhook_url.startswith("https://"):
        return Err(
            ConfigurationError('Input "slack-webhook-url" must be an https URL', "slack-webhook-url")
        )

    annoy = parse_bool(_input(env, "annoy"))
    if annoy is None:
        return Err(ConfigurationError('Input "annoy" must be true or false', "annoy"))

    stale_days = DEFAULT_STALE_DAYS
    raw_days = _input(env, "stale-days")
    if raw_days is not None:
        if not (raw_days.isascii() and raw_days.isdigit()) or int(raw_days) < 1:
            return Err(
                ConfigurationError('Input "stale-days" must be a positive integer', "stale-days")
            )
        stale_days = int(raw_days)

    repo_raw = env.get("GITHUB_REPOSITORY", "")
    repo = RepoSlug.parse(repo_raw)
    if repo is None:
        return Err(
            ConfigurationError(
                f"GITHUB_REPOSITORY must be owner/name (got {repo_raw!r})", "GITHUB_REPOSITORY"
            )
        )

    head_sha = (env.get("GITHUB_SHA") or "").strip().lower() or None
    if not annoy:
        if head_sha is None:
            return Err(ConfigurationError("GITHUB_SHA was not defined", "GITHUB_SHA"))
        if _SHA_RE.match(head_sha) is None:
            return Err(ConfigurationError(f"invalid GITHUB_SHA: {head_sha}", "GITHUB_SHA"))

    output = (env.get("GITHUB_OUTPUT") or "").strip()

    return Ok(
        ActionConfig(
            repo=repo,
            github_token=github_token,
            slack_webhook_url=slack_webhook_url,
            workflow_token=_input(env, "workflow-token"),
            annoy=annoy,
            head_sha=head_sha,
            api_url=(env.get("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/"),
            rc_label=_input(env, "rc-label") or DEFAULT_RC_LABEL,
            stale_days=stale_days,
            github_output=Path(output) if output else None,
            in_actions=env.get("GITHUB_ACTIONS") == "true",
        )
    )
