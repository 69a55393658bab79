"""Error types for a release-candidate run.

Each failure mode is its own frozen dataclass so the CLI can render it and
pick an exit code with a single ``match``.
"""

from __future__ import annotations

from dataclasses import dataclass

from rcbot.core.config import ConfigurationError

__all__ = [
    "AmbiguousBaseError",
    "ConfigurationError",
    "ConflictError",
    "NotAheadError",
    "RcError",
    "TransportError",
    "describe",
]


@dataclass(frozen=True, slots=True)
class NotAheadError:
    base: str
    head: str
    status: str


@dataclass(frozen=True, slots=True)
class AmbiguousBaseError:
    base: str
    head: str
    reason: str


@dataclass(frozen=True, slots=True)
class ConflictError:
    ref: str
    message: str


@dataclass(frozen=True, slots=True)
class TransportError:
    """A GitHub or Slack call failed. Propagated as-is, never retried."""

    operation: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"{self.operation}: HTTP {self.status}: {self.message}"
        return f"{self.operation}: {self.message}"


RcError = ConfigurationError | NotAheadError | AmbiguousBaseError | ConflictError | TransportError


def describe(error: RcError) -> str:
    """One-line message for an error, used as the run's terminal failure text."""
    match error:
        case ConfigurationError(message=message):
            return message
        case NotAheadError(base=base, head=head, status=status):
            return f"head {head} is not ahead of {base} (status: {status})"
        case AmbiguousBaseError(base=base, head=head, reason=reason):
            return f"no merge-base between {base} and {head}: {reason}"
        case ConflictError(ref=ref, message=message):
            return f"{ref}: {message}"
        case TransportError():
            return str(error)
