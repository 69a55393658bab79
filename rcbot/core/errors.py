"""Exit codes for the rcbot CLI.

The values are process exit codes; a GitHub Actions step fails on any
non-zero code, the distinction is for people reading the job log.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for rcbot commands.

    - 0: Success
    - 1: Configuration error (missing or invalid action input)
    - 2: Release refused (head not ahead, no merge-base)
    - 3: Conflict (branch or tag already exists)
    - 4: Network error (GitHub or Slack call failed)
    """

    OK = 0
    CONFIG_ERROR = 1
    RELEASE_ERROR = 2
    CONFLICT_ERROR = 3
    NETWORK_ERROR = 4

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")
