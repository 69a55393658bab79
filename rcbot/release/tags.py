"""Date-scoped release tag sequencing: ``vYYYYMMDD.N``.

N counts releases cut on the same day, starting at 1. The day is taken in a
fixed UTC-8 offset so a single release day never straddles two dates.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from rcbot.core.result import Err, Ok, Result
from rcbot.release.errors import ConflictError
from rcbot.release.model import TAG_PREFIX, Tag, TagSequence, TagVersion

RELEASE_TZ = timezone(timedelta(hours=-8))


def release_date(now: datetime) -> str:
    """``YYYYMMDD`` of ``now`` in the release timezone. ``now`` must be aware."""
    return now.astimezone(RELEASE_TZ).strftime("%Y%m%d")


def compute_next_tag(tags: Iterable[Tag], *, now: datetime) -> TagSequence:
    today = release_date(now)

    latest: TagVersion | None = None
    today_max: int | None = None
    for tag in tags:
        if not tag.name.startswith(TAG_PREFIX):
            continue
        v = tag.version
        if v is None:
            continue
        if latest is None or v > latest:
            latest = v
        # Max, not count: a deleted tag must not make N collide.
        if v.date == today and (today_max is None or v.n > today_max):
            today_max = v.n

    n = 1 if today_max is None else today_max + 1
    return TagSequence(
        latest=latest.to_tag() if latest is not None else None,
        next=TagVersion(date=today, n=n).to_tag(),
    )


def check_monotonic(sequence: TagSequence) -> Result[None, ConflictError]:
    """Reject a next tag that does not sort after the latest one (future-dated tags)."""
    if sequence.latest is None:
        return Ok(None)

    latest = sequence.latest.version
    nxt = sequence.next.version
    if latest is not None and nxt is not None and nxt <= latest:
        return Err(
            ConflictError(
                ref=sequence.next.name,
                message=f"next tag does not sort after latest tag {sequence.latest.name}",
            )
        )
    return Ok(None)
