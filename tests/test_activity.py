#!/usr/bin/env python3
"""Tests for activities and usage accrual."""

from datetime import datetime, timedelta, timezone

import pytest

from gearmaint import Activity, Attachment, Part, Usage, accrue

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def day(n):
    return T0 + timedelta(days=n)


@pytest.fixture
def parts():
    return {
        1: Part(1, 1, day(0), "u-bike"),
        10: Part(10, 4, day(0), "u-chain-old"),
        11: Part(11, 4, day(0), "u-chain-new"),
    }


@pytest.fixture
def attachments():
    atts = [
        Attachment(10, 1, 1, day(0), day(100), what=4, usage="u-att-old"),
        Attachment(11, 1, 1, day(100), what=4, usage="u-chain-new"),
    ]
    return {a.idx: a for a in atts}


@pytest.fixture
def usages():
    return {
        "u-bike": Usage("u-bike", count=10, distance=500000),
        "u-chain-old": Usage("u-chain-old", count=10, distance=500000),
    }


class TestContribution:
    """Tests for Activity.contribution."""

    def test_defaults(self):
        activity = Activity(1, day(1), gear=1, climb=650, time=5700)
        usage = activity.contribution()
        assert usage.count == 1
        assert usage.descend == 650
        assert usage.duration == 5700
        assert usage.distance == 0


class TestAccrue:
    """Tests for accrue."""

    def test_adds_to_gear_and_attached_parts(self, parts, attachments, usages):
        activity = Activity(1, day(50), gear=1, distance=42000)
        result = accrue(activity, parts, attachments, usages)
        assert set(result) == {"u-bike", "u-chain-old", "u-att-old"}
        assert result["u-bike"].distance == 542000
        assert result["u-bike"].count == 11
        assert result["u-chain-old"].distance == 542000
        assert result["u-att-old"].distance == 42000

    def test_follows_the_timeline(self, parts, attachments, usages):
        activity = Activity(1, day(150), gear=1, distance=42000)
        result = accrue(activity, parts, attachments, usages)
        assert set(result) == {"u-bike", "u-chain-new"}

    def test_shared_ledger_counted_once(self, parts, attachments, usages):
        activity = Activity(1, day(150), gear=1, distance=1000)
        result = accrue(activity, parts, attachments, usages)
        assert result["u-chain-new"].distance == 1000
        assert result["u-chain-new"].count == 1

    def test_inputs_unchanged(self, parts, attachments, usages):
        accrue(Activity(1, day(50), gear=1, distance=1000), parts, attachments, usages)
        assert usages["u-bike"].distance == 500000

    def test_without_gear(self, parts, attachments, usages):
        assert accrue(Activity(1, day(50)), parts, attachments, usages) == {}

    def test_unknown_gear(self, parts, attachments, usages):
        assert accrue(Activity(1, day(50), gear=99), parts, attachments, usages) == {}
