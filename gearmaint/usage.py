"""Usage ledger: cumulative counters for how much a part was used."""

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

COUNTERS = ("count", "climb", "descend", "distance", "time", "duration", "energy")


@dataclass(frozen=True)
class Usage:
    """
    An additive counter snapshot.

    Distance, climb and descend are in metres, time and duration in seconds,
    energy in kJ. Ledgers are never changed in place; add and subtract return
    new ones carrying the left operand's id.
    """

    id: str = ""
    count: int = 0
    climb: float = 0
    descend: float = 0
    distance: float = 0
    time: float = 0
    duration: float = 0
    energy: float = 0

    @classmethod
    def from_dict(cls, dct: Mapping[str, Any]) -> "Usage":
        """Build a stored ledger; missing counters are zero."""
        return cls(
            id=str(dct.get("id") or ""),
            **{name: dct.get(name) or 0 for name in COUNTERS},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def add(self, other: "Usage") -> "Usage":
        """Field-wise sum. Raw records must go through contribution() first."""
        return replace(
            self,
            **{name: getattr(self, name) + getattr(other, name) for name in COUNTERS},
        )

    def subtract(self, other: Optional["Usage"] = None) -> "Usage":
        """Field-wise difference without clamping."""
        if other is None:
            return self
        return replace(
            self,
            **{name: getattr(self, name) - getattr(other, name) for name in COUNTERS},
        )

    def with_id(self, usage_id: str) -> "Usage":
        return replace(self, id=usage_id)

    def is_zero(self) -> bool:
        return all(getattr(self, name) == 0 for name in COUNTERS)

    def __add__(self, other: "Usage") -> "Usage":
        return self.add(other)

    def __sub__(self, other: "Usage") -> "Usage":
        return self.subtract(other)

    def __neg__(self) -> "Usage":
        return Usage(self.id).subtract(self)


def contribution(record: Mapping[str, Any]) -> Usage:
    """
    Normalize a raw activity or usage record into a ledger to be added.

    - count defaults to 1 (an activity is one ride)
    - descend defaults to climb (round trip)
    - time and duration substitute for each other
    """
    climb = record.get("climb")
    descend = record.get("descend")
    time = record.get("time")
    duration = record.get("duration")
    count = record.get("count")
    return Usage(
        id="",
        count=1 if count is None else count,
        climb=climb or 0,
        descend=descend if descend is not None else (climb or 0),
        distance=record.get("distance") or 0,
        time=time if time is not None else (duration or 0),
        duration=duration if duration is not None else (time or 0),
        energy=record.get("energy") or 0,
    )


def lookup(usages: Mapping[str, Usage], usage_id: Optional[str]) -> Usage:
    """Ledger by id. Unset or unknown ids read as an empty ledger."""
    if not usage_id:
        return Usage()
    found = usages.get(usage_id)
    if found is None:
        logger.debug("usage %s not found, using empty ledger", usage_id)
        return Usage(usage_id)
    return found
