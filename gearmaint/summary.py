"""Summary class - one user's garage snapshot and the queries over it."""

from datetime import datetime
from functools import cached_property
from typing import Dict, List, Mapping, Optional

from .activity import Activity
from .attachment import Attachment, attachments_for_gear, resolve_occupant
from .calculations import now
from .part import Part
from .part_type import PartType
from .service import (
    HistoryRow,
    Service,
    ServiceIndex,
    ServicePeriod,
    ServiceWindow,
    service_period,
)
from .service_plan import (
    AlertCount,
    PlanDue,
    ServicePlan,
    alerts_for_plans,
    evaluate,
    gears_for_plan,
    latest_service,
    plans_for_part_and_subtypes,
    resolve_part,
)
from .status import Status
from .usage import Usage


class Summary:
    """
    A consistent snapshot of parts, attachments, services, plans and usages.

    The snapshot is taken as a value: queries never modify it, and a changed
    garage is represented by a new Summary.
    """

    def __init__(
        self,
        parts: Mapping[int, Part],
        attachments: Mapping[str, Attachment],
        services: Mapping[str, Service],
        plans: Mapping[str, ServicePlan],
        usages: Mapping[str, Usage],
        types: Optional[Mapping[int, PartType]] = None,
        activities: Optional[Mapping[int, Activity]] = None,
        as_of: Optional[datetime] = None,
    ):
        self.parts = dict(parts)
        # empty intervals are corrections and never part of the active set
        self.attachments = {
            idx: att for idx, att in attachments.items() if not att.is_empty()
        }
        self.services = dict(services)
        self.plans = dict(plans)
        self.usages = dict(usages)
        self.types = dict(types or {})
        self.activities = dict(activities or {})
        self._as_of = as_of

    @property
    def as_of(self) -> datetime:
        """Reference instant for all queries, defaults to now."""
        return self._as_of or now()

    @cached_property
    def service_index(self) -> ServiceIndex:
        return ServiceIndex(self.services)

    def get_part(self, part_id: int) -> Optional[Part]:
        return self.parts.get(part_id)

    def gears(self) -> List[Part]:
        """Main gears in service, by name."""
        return sorted(
            (
                p
                for p in self.parts.values()
                if p.is_gear(self.types) and not p.is_disposed
            ),
            key=lambda p: p.display_name,
        )

    # Attachment timeline

    def occupant(
        self,
        gear: int,
        what: Optional[int],
        hook: Optional[int],
        at: Optional[datetime] = None,
    ) -> int:
        return resolve_occupant(gear, what, hook, at or self.as_of, self.attachments)

    def attached_to(self, gear: int, at: Optional[datetime] = None) -> List[Attachment]:
        return attachments_for_gear(gear, at or self.as_of, self.attachments)

    # Service history

    def services_for_part(self, part_id: int) -> List[Service]:
        return self.service_index.for_part(part_id)

    def current_window(self, part: Part) -> ServiceWindow:
        return self.service_index.current_window(part)

    def history_for_part(self, part: Part) -> List[HistoryRow]:
        """History rows for every open service chain of the part, newest first."""
        index = self.service_index
        heads = sorted(
            (s for s in index.for_part(part.id) if index.get_successor(s) is None),
            key=lambda s: s.start_time(part),
            reverse=True,
        )
        rows = []
        for head in heads:
            rows.append(HistoryRow(0, head, None))
            rows.extend(index.history(0, head))
        return rows

    def period(self, row: HistoryRow, part: Part) -> ServicePeriod:
        """Usage and days covered by the service of a history row."""
        return service_period(
            row.service, part, row.successor, self.usages, self.as_of
        )

    # Service plans

    def plan_status(self, plan: ServicePlan, gear: Optional[int] = None) -> PlanDue:
        """Evaluate a plan, for a generic plan on the given gear."""
        part = resolve_part(plan, self.parts, self.attachments, self.as_of, gear=gear)
        if part is not None and plan.is_generic:
            plan = plan.materialize(part.id)
        service = latest_service(plan, part, self.service_index)
        return evaluate(plan, part, service, self.usages, self.as_of)

    def all_plan_status(self) -> List[PlanDue]:
        """Status of every plan, generic plans expanded over matching gears."""
        plans = list(self.plans.values())
        result = []
        for plan in plans:
            for gear in gears_for_plan(plan, self.parts, plans, self.types):
                due = self.plan_status(plan, gear=gear.id)
                if due.part is not None:
                    result.append(due)
        return result

    def plans_for(self, part: Part) -> List[ServicePlan]:
        """Effective plans for a part and everything attached below it."""
        return plans_for_part_and_subtypes(
            self.plans.values(), self.attachments, part, self.types, self.as_of
        )

    def alerts(self) -> AlertCount:
        return alerts_for_plans(
            self.plans.values(),
            self.parts,
            self.service_index,
            self.usages,
            self.attachments,
            self.types,
            self.as_of,
        )

    def status_counts(self) -> Dict[Status, int]:
        counts = {status: 0 for status in Status}
        for due in self.all_plan_status():
            counts[due.status] += 1
        return counts
