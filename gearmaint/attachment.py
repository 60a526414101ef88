"""
Attachment intervals and point-in-time lookups.

An attachment records that a part sat at one (gear, hook) pair during the
half-open interval [attached, detached). A detached value of MAX_TIME means
the part is still attached.

All lookups take the attachments as a mapping (keyed by Attachment.idx) and
return None or an empty list when nothing matches. If the data holds
overlapping intervals for the same (gear, hook), which the writer is supposed
to prevent, the last match in iteration order wins.
"""

from datetime import datetime
from typing import List, Mapping, Optional

from .calculations import MAX_TIME, format_time


class Attachment:
    """One residency of a part at a hook of a gear."""

    def __init__(
        self,
        part_id: int,
        gear: int,
        hook: Optional[int],
        attached: datetime,
        detached: Optional[datetime] = None,
        what: Optional[int] = None,
        name: str = "",
        usage: Optional[str] = None,
    ):
        self.part_id = part_id
        self.gear = gear
        self.hook = hook
        self.attached = attached
        self.detached = detached or MAX_TIME
        self.what = what
        self.name = name or ""
        self.usage = usage

    @property
    def idx(self) -> str:
        """Identity of the interval: part id and attach instant in epoch ms."""
        return f"{self.part_id}/{int(self.attached.timestamp() * 1000)}"

    @property
    def is_open(self) -> bool:
        return self.detached >= MAX_TIME

    def is_attached(self, time: datetime) -> bool:
        return self.attached <= time < self.detached

    def is_empty(self) -> bool:
        return self.attached >= self.detached

    def fmt_range(self) -> str:
        res = format_time(self.attached)
        if not self.is_open:
            res += " - " + format_time(self.detached)
        return res


def attachment_at_hook(
    gear: int,
    what: Optional[int],
    hook: Optional[int],
    time: datetime,
    attachments: Mapping[str, Attachment],
) -> Optional[Attachment]:
    """The attachment at a specific hook of a gear at the given time."""
    found = None
    for att in attachments.values():
        if (
            att.gear == gear
            and att.what == what
            and att.hook == hook
            and att.is_attached(time)
        ):
            found = att
    return found


def resolve_occupant(
    gear: int,
    what: Optional[int],
    hook: Optional[int],
    time: datetime,
    attachments: Mapping[str, Attachment],
) -> int:
    """
    Part id occupying a hook of a gear at the given time.

    An empty hook is occupied by the gear itself.
    """
    att = attachment_at_hook(gear, what, hook, time, attachments)
    return att.part_id if att else gear


def attachment_for_part(
    part_id: Optional[int], time: datetime, attachments: Mapping[str, Attachment]
) -> Optional[Attachment]:
    """Where the part was attached at the given time, if anywhere."""
    found = None
    for att in attachments.values():
        if att.part_id == part_id and att.is_attached(time):
            found = att
    return found


def attachments_for_gear(
    gear: Optional[int], time: datetime, attachments: Mapping[str, Attachment]
) -> List[Attachment]:
    """Everything attached to a gear at the given time."""
    return [
        att
        for att in attachments.values()
        if att.gear == gear and att.is_attached(time)
    ]


def attachments_of_part(
    part_id: int, attachments: Mapping[str, Attachment]
) -> List[Attachment]:
    """All non-empty intervals of a part, newest first."""
    return sorted(
        (
            att
            for att in attachments.values()
            if att.part_id == part_id and not att.is_empty()
        ),
        key=lambda a: a.attached,
        reverse=True,
    )
