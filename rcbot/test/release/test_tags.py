from __future__ import annotations

from datetime import datetime, timezone

from rcbot.core.result import Err, Ok
from rcbot.release.model import Tag, TagSequence, TagVersion, parse_tag_version
from rcbot.release.tags import check_monotonic, compute_next_tag, release_date

# 2024-06-02 12:00 in UTC-8
NOON_JUNE_2 = datetime(2024, 6, 2, 20, 0, tzinfo=timezone.utc)


def _tags(*names: str) -> list[Tag]:
    return [Tag(name=n) for n in names]


def test_parse_tag_version() -> None:
    assert parse_tag_version("v20240601.3") == TagVersion("20240601", 3)
    assert parse_tag_version("v20240601.0") is None
    assert parse_tag_version("v1.2.3") is None
    assert parse_tag_version("20240601.1") is None


def test_tag_ordering_is_by_date_then_n() -> None:
    a = TagVersion("20240101", 1)
    b = TagVersion("20240101", 2)
    c = TagVersion("20240102", 1)
    assert a < b < c
    assert a < c
    assert TagVersion("20240101", 10) > TagVersion("20240101", 9)


def test_release_date_uses_utc_minus_8() -> None:
    # 05:00 UTC on June 3rd is still June 2nd in UTC-8.
    assert release_date(datetime(2024, 6, 3, 5, 0, tzinfo=timezone.utc)) == "20240602"
    assert release_date(datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc)) == "20240603"


def test_first_release_has_no_latest() -> None:
    seq = compute_next_tag([], now=NOON_JUNE_2)
    assert seq == TagSequence(latest=None, next=Tag("v20240602.1"))


def test_no_tag_today_starts_at_one() -> None:
    seq = compute_next_tag(_tags("v20240601.1", "v20240530.4"), now=NOON_JUNE_2)
    assert seq.latest == Tag("v20240601.1")
    assert seq.next == Tag("v20240602.1")


def test_existing_tag_today_increments() -> None:
    seq = compute_next_tag(_tags("v20240602.1", "v20240601.3"), now=NOON_JUNE_2)
    assert seq.latest == Tag("v20240602.1")
    assert seq.next == Tag("v20240602.2")


def test_gaps_use_max_not_count() -> None:
    # v20240602.2 was deleted; a count would produce .3 again.
    seq = compute_next_tag(_tags("v20240602.1", "v20240602.3"), now=NOON_JUNE_2)
    assert seq.next == Tag("v20240602.4")


def test_latest_ignores_list_order_and_foreign_tags() -> None:
    tags = _tags("release-7", "v1.2.3", "v20240528.2", "v20240601.1", "v20240531.9")
    seq = compute_next_tag(tags, now=NOON_JUNE_2)
    assert seq.latest == Tag("v20240601.1")


def test_next_is_greater_than_every_existing_tag() -> None:
    tags = _tags("v20240530.2", "v20240602.5", "v20240601.1")
    seq = compute_next_tag(tags, now=NOON_JUNE_2)
    next_version = seq.next.version
    assert next_version is not None
    for t in tags:
        v = t.version
        assert v is not None
        assert next_version > v


def test_check_monotonic_rejects_future_dated_latest() -> None:
    seq = compute_next_tag(_tags("v20240605.1"), now=NOON_JUNE_2)
    result = check_monotonic(seq)
    assert isinstance(result, Err)
    assert result.error.ref == "v20240602.1"


def test_check_monotonic_accepts_normal_sequence() -> None:
    seq = compute_next_tag(_tags("v20240601.1"), now=NOON_JUNE_2)
    assert isinstance(check_monotonic(seq), Ok)
    assert isinstance(check_monotonic(compute_next_tag([], now=NOON_JUNE_2)), Ok)


def test_branch_name() -> None:
    assert Tag("v20240602.1").branch_name == "release/v20240602.1"
