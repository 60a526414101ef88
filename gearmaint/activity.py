"""Activity class and usage accrual for recorded rides."""

import logging
from datetime import datetime
from typing import Dict, Mapping, Optional

from .attachment import Attachment, attachments_for_gear
from .part import Part
from .usage import Usage, contribution

logger = logging.getLogger(__name__)


class Activity:
    """A recorded activity (ride, run, ...) done with a gear."""

    def __init__(
        self,
        id: int,
        start: datetime,
        gear: Optional[int] = None,
        what: Optional[int] = None,
        name: str = "",
        user_id: Optional[int] = None,
        climb: Optional[float] = None,
        descend: Optional[float] = None,
        distance: Optional[float] = None,
        time: Optional[float] = None,
        duration: Optional[float] = None,
        energy: Optional[float] = None,
    ):
        self.id = id
        self.start = start
        self.gear = gear
        self.what = what
        self.name = name or ""
        self.user_id = user_id
        self.climb = climb
        self.descend = descend
        self.distance = distance
        self.time = time
        self.duration = duration
        self.energy = energy

    def contribution(self) -> Usage:
        """The normalized usage this activity adds to every part involved."""
        return contribution(
            {
                "climb": self.climb,
                "descend": self.descend,
                "distance": self.distance,
                "time": self.time,
                "duration": self.duration,
                "energy": self.energy,
            }
        )


def accrue(
    activity: Activity,
    parts: Mapping[int, Part],
    attachments: Mapping[str, Attachment],
    usages: Mapping[str, Usage],
) -> Dict[str, Usage]:
    """
    Add an activity to the ledgers of its gear and everything attached to it.

    Returns the updated ledgers keyed by usage id. The given ledgers are
    left untouched. Activities without gear contribute nothing.
    """
    if activity.gear is None:
        return {}
    gear = parts.get(activity.gear)
    if gear is None:
        logger.debug("activity %s: gear %s not found", activity.id, activity.gear)
        return {}

    usage_ids = [gear.usage]
    for att in attachments_for_gear(gear.id, activity.start, attachments):
        part = parts.get(att.part_id)
        if part is None:
            logger.debug("attachment %s: part not found", att.idx)
        else:
            usage_ids.append(part.usage)
        if att.usage:
            usage_ids.append(att.usage)

    delta = activity.contribution()
    result: Dict[str, Usage] = {}
    for usage_id in dict.fromkeys(usage_ids):
        base = usages.get(usage_id) or Usage(usage_id)
        result[usage_id] = base.add(delta)
    return result
