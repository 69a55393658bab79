from __future__ import annotations

from rcbot.release.model import Tag

_TEMPLATE = """\
**Script generated description. DO NOT MODIFY**

## Metadata
- Release tag: {tag}
- Branch: {branch}

## Actions
- To add release fixes:
  1. `git checkout {branch}`
  2. Check in fixes to the release branch.
  3. (If applied) Cherry-pick the fix to `master/main`.
- To approve the push: Add `QA Approved` label and close the issue.
- To cancel the push: Close the issue directly.

## Included commits (compared to {previous})
{commits}
"""


def issue_title(tag: Tag) -> str:
    return f"Release candidate {tag.name}"


def render_issue_body(*, tag: Tag, previous: Tag, commits: str) -> str:
    return _TEMPLATE.format(
        tag=tag.name,
        branch=tag.branch_name,
        previous=previous.name,
        commits=commits,
    )
