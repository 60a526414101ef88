"""Status enum for maintenance urgency levels."""

from enum import Enum


class Status(Enum):
    """Service plan status categories. Lower value = more urgent."""

    ALERT = 1  # At least one threshold exceeded
    WARN = 2  # At least one threshold within 5% of its limit
    OK = 3

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def worst(cls, statuses) -> "Status":
        """Most urgent of the given statuses, OK when there are none."""
        return min(statuses, key=lambda s: s.value, default=cls.OK)
