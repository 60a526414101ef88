#!/usr/bin/env python3
"""Tests for the Usage ledger."""

import dataclasses

import pytest

from gearmaint import Usage, contribution
from gearmaint.usage import lookup


@pytest.fixture
def a():
    return Usage("u-a", count=12, climb=3400, descend=3300, distance=420000,
                 time=61200, duration=64800, energy=9100)


@pytest.fixture
def b():
    return Usage("u-b", count=5, climb=900, descend=1000, distance=150000,
                 time=18000, duration=19800, energy=2600)


class TestUsageArithmetic:
    """Tests for add and subtract."""

    def test_subtract_self_is_zero(self, a):
        """a - a is all zero but keeps the id."""
        result = a.subtract(a)
        assert result.id == "u-a"
        assert result.is_zero()

    def test_subtract_then_add_round_trips(self, a, b):
        """(a - b) + b == a field by field."""
        assert a.subtract(b).add(b) == a

    def test_addition_is_commutative_ignoring_id(self, a, b):
        assert (a + b).with_id("") == (b + a).with_id("")

    def test_keeps_left_id(self, a, b):
        assert (a - b).id == "u-a"
        assert (b + a).id == "u-b"

    def test_subtract_does_not_clamp(self, a, b):
        """Negative results are allowed."""
        result = b - a
        assert result.distance == -270000
        assert result.count == -7

    def test_subtract_none_is_identity(self, a):
        assert a.subtract() == a
        assert a.subtract(None) == a

    def test_negation(self, a):
        neg = -a
        assert neg.id == "u-a"
        assert neg.distance == -420000
        assert (a + neg).is_zero()

    def test_ledgers_are_immutable(self, a, b):
        """add/subtract return new ledgers and never change their operands."""
        a.add(b)
        assert a.distance == 420000
        with pytest.raises(dataclasses.FrozenInstanceError):
            a.distance = 0


class TestUsageFromDict:
    """Tests for stored ledgers."""

    def test_missing_counters_default_to_zero(self):
        usage = Usage.from_dict({"id": "u1", "distance": 1000})
        assert usage.id == "u1"
        assert usage.distance == 1000
        assert usage.count == 0
        assert usage.descend == 0
        assert usage.duration == 0

    def test_stored_ledgers_do_not_cross_default(self):
        """Only contributions get the climb/descend and time/duration defaults."""
        usage = Usage.from_dict({"id": "u1", "climb": 500, "time": 60})
        assert usage.descend == 0
        assert usage.duration == 0

    def test_to_dict(self):
        usage = Usage("u1", count=2, distance=5)
        assert usage.to_dict() == {
            "id": "u1",
            "count": 2,
            "climb": 0,
            "descend": 0,
            "distance": 5,
            "time": 0,
            "duration": 0,
            "energy": 0,
        }


class TestContribution:
    """Tests for normalizing raw records before they are added."""

    def test_empty_record_counts_one_ride(self):
        result = contribution({})
        assert result.count == 1
        assert result.distance == 0
        assert result.time == 0

    def test_explicit_count_is_kept(self):
        assert contribution({"count": 3}).count == 3

    def test_descend_defaults_to_climb(self):
        assert contribution({"climb": 650}).descend == 650

    def test_explicit_descend_is_kept(self):
        assert contribution({"climb": 650, "descend": 0}).descend == 0

    def test_time_defaults_to_duration(self):
        result = contribution({"duration": 4000})
        assert result.time == 4000
        assert result.duration == 4000

    def test_duration_defaults_to_time(self):
        result = contribution({"time": 3600})
        assert result.duration == 3600

    def test_add_contribution(self):
        base = Usage("u1", count=1, climb=100, descend=100)
        result = base.add(contribution({"climb": 50, "distance": 1000}))
        assert result.count == 2
        assert result.climb == 150
        assert result.descend == 150
        assert result.distance == 1000


class TestLookup:
    """Tests for resolving ledger ids against a snapshot."""

    def test_found(self, a):
        assert lookup({"u-a": a}, "u-a") is a

    def test_dangling_id_reads_empty(self):
        result = lookup({}, "gone")
        assert result.id == "gone"
        assert result.is_zero()

    def test_unset_id_reads_empty(self):
        assert lookup({}, None).is_zero()
