#!/usr/bin/env python3
"""Tests for attachment intervals and point-in-time lookups."""

from datetime import datetime, timedelta, timezone

import pytest

from gearmaint import (
    MAX_TIME,
    Attachment,
    attachment_at_hook,
    attachment_for_part,
    attachments_for_gear,
    attachments_of_part,
    resolve_occupant,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
GEAR, HOOK, CHAIN = 1, 1, 4


def day(n):
    return T0 + timedelta(days=n)


def as_map(*atts):
    return {a.idx: a for a in atts}


class TestAttachment:
    """Tests for a single interval."""

    def test_open_by_default(self):
        att = Attachment(10, GEAR, HOOK, day(0))
        assert att.detached == MAX_TIME
        assert att.is_open

    def test_containment_is_half_open(self):
        att = Attachment(10, GEAR, HOOK, day(0), day(100))
        assert att.is_attached(day(0))
        assert att.is_attached(day(99))
        assert not att.is_attached(day(100))
        assert not att.is_attached(day(-1))

    def test_empty_interval(self):
        att = Attachment(10, GEAR, HOOK, day(5), day(5))
        assert att.is_empty()
        assert not att.is_attached(day(5))

    def test_idx(self):
        att = Attachment(10, GEAR, HOOK, T0)
        assert att.idx == "10/1704067200000"

    def test_fmt_range(self):
        assert Attachment(10, GEAR, HOOK, T0).fmt_range() == "2024-01-01T00:00:00Z"
        closed = Attachment(10, GEAR, HOOK, T0, day(1))
        assert closed.fmt_range() == "2024-01-01T00:00:00Z - 2024-01-02T00:00:00Z"


class TestResolveOccupant:
    """Tests for which part sits at a hook."""

    @pytest.fixture
    def atts(self):
        return as_map(
            Attachment(10, GEAR, HOOK, day(0), day(100), what=CHAIN),
            Attachment(11, GEAR, HOOK, day(100), what=CHAIN),
        )

    def test_replacement_timeline(self, atts):
        """P1 until day 100, P2 from day 100 on."""
        assert resolve_occupant(GEAR, CHAIN, HOOK, day(50), atts) == 10
        assert resolve_occupant(GEAR, CHAIN, HOOK, day(100), atts) == 11
        assert resolve_occupant(GEAR, CHAIN, HOOK, day(150), atts) == 11

    def test_empty_hook_is_the_gear(self, atts):
        assert resolve_occupant(GEAR, CHAIN, HOOK, day(-10), atts) == GEAR

    def test_other_type_is_not_matched(self, atts):
        assert resolve_occupant(GEAR, 99, HOOK, day(50), atts) == GEAR

    def test_other_hook_is_not_matched(self, atts):
        assert resolve_occupant(GEAR, CHAIN, 2, day(50), atts) == GEAR

    def test_empty_interval_never_resolves(self):
        atts = as_map(Attachment(10, GEAR, HOOK, day(5), day(5), what=CHAIN))
        assert resolve_occupant(GEAR, CHAIN, HOOK, day(5), atts) == GEAR

    def test_overlap_picks_last(self):
        """Overlapping intervals are bad data; the last one wins deterministically."""
        atts = as_map(
            Attachment(10, GEAR, HOOK, day(0), what=CHAIN),
            Attachment(11, GEAR, HOOK, day(1), what=CHAIN),
        )
        assert attachment_at_hook(GEAR, CHAIN, HOOK, day(5), atts).part_id == 11

    def test_no_attachments(self):
        assert attachment_at_hook(GEAR, CHAIN, HOOK, day(5), {}) is None
        assert resolve_occupant(GEAR, CHAIN, HOOK, day(5), {}) == GEAR


class TestPartAndGearLookups:
    """Tests for attachment_for_part, attachments_for_gear, attachments_of_part."""

    @pytest.fixture
    def atts(self):
        return as_map(
            Attachment(10, GEAR, HOOK, day(0), day(100), what=CHAIN),
            Attachment(10, 2, HOOK, day(120), what=CHAIN),
            Attachment(12, GEAR, HOOK, day(0), what=3),
            Attachment(13, GEAR, HOOK, day(30), day(30), what=5),
        )

    def test_attachment_for_part(self, atts):
        assert attachment_for_part(10, day(50), atts).gear == GEAR
        assert attachment_for_part(10, day(130), atts).gear == 2

    def test_attachment_for_part_between_intervals(self, atts):
        assert attachment_for_part(10, day(110), atts) is None

    def test_attachment_for_unknown_part(self, atts):
        assert attachment_for_part(99, day(50), atts) is None

    def test_attachments_for_gear(self, atts):
        found = attachments_for_gear(GEAR, day(50), atts)
        assert sorted(a.part_id for a in found) == [10, 12]

    def test_attachments_for_gear_later(self, atts):
        found = attachments_for_gear(GEAR, day(150), atts)
        assert [a.part_id for a in found] == [12]

    def test_attachments_of_part_newest_first(self, atts):
        found = attachments_of_part(10, atts)
        assert [a.gear for a in found] == [2, GEAR]

    def test_attachments_of_part_skips_empty(self, atts):
        assert attachments_of_part(13, atts) == []
