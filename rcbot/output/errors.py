"""Error presentation utilities.

Centralized error formatting and exit code mapping for the rcbot CLI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rcbot.core.errors import ErrorCode
from rcbot.output.console import Style
from rcbot.release.errors import (
    AmbiguousBaseError,
    ConfigurationError,
    ConflictError,
    NotAheadError,
    RcError,
    TransportError,
    describe,
)

if TYPE_CHECKING:
    from rcbot.output.console import ConsoleProtocol

__all__ = ["actions_error_command", "print_rc_error", "rc_error_exit_code"]


def print_rc_error(error: RcError, console: ConsoleProtocol) -> None:
    """Print an error with a hint on what the operator can do about it."""
    console.error(describe(error))
    match error:
        case ConfigurationError(input_name=name) if name is not None:
            console.print(f"hint: check the '{name}' input of the workflow step", Style.DIM)
        case NotAheadError():
            console.print("hint: no new commits since the last release; nothing to cut", Style.DIM)
        case AmbiguousBaseError():
            console.print(
                "hint: make sure the previous release branch or tag still exists", Style.DIM
            )
        case ConflictError():
            console.print(
                "hint: another release run may have created it; re-run to pick the next tag",
                Style.DIM,
            )
        case TransportError():
            pass
        case _:
            pass


def rc_error_exit_code(error: RcError) -> ErrorCode:
    match error:
        case ConfigurationError():
            return ErrorCode.CONFIG_ERROR
        case NotAheadError() | AmbiguousBaseError():
            return ErrorCode.RELEASE_ERROR
        case ConflictError():
            return ErrorCode.CONFLICT_ERROR
        case TransportError():
            return ErrorCode.NETWORK_ERROR


def actions_error_command(message: str) -> str:
    """GitHub Actions ``::error::`` workflow command (fails the step visibly)."""
    escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    return f"::error::{escaped}"
