"""
Service plans and the due/alert evaluation.

A plan either targets one part (part is set) or is a generic template for a
part type at a hook (part is None). Generic plans are materialized into
per-part plans once the part sitting at the hook is known.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .attachment import (
    Attachment,
    attachment_at_hook,
    attachment_for_part,
    resolve_occupant,
)
from .calculations import check_status, get_days, whole_hours, whole_km
from .part import Part
from .part_type import PartType
from .service import Service, ServiceIndex, as_index
from .status import Status
from .usage import Usage, lookup

logger = logging.getLogger(__name__)

LIMIT_KEYS = ("days", "hours", "km", "climb", "descend", "rides", "energy")


class PlanValidationError(ValueError):
    """A service plan definition that cannot be evaluated."""


def is_set(value: Optional[float]) -> bool:
    return value is not None and value > 0


@dataclass(frozen=True)
class Limits:
    """
    One value per tracked metric.

    For a plan these are the thresholds, for a due() result the remaining
    budget. None means the metric is not tracked.
    """

    days: Optional[float] = None  # time since service
    hours: Optional[float] = None  # usage time
    km: Optional[float] = None  # usage distance
    climb: Optional[float] = None
    descend: Optional[float] = None
    rides: Optional[float] = None  # number of activities
    energy: Optional[float] = None  # kJ

    def items(self) -> Iterator[Tuple[str, float]]:
        """Tracked (key, value) pairs in LIMIT_KEYS order."""
        for key in LIMIT_KEYS:
            value = getattr(self, key)
            if value is not None:
                yield key, value

    def valid(self) -> bool:
        return any(is_set(getattr(self, key)) for key in LIMIT_KEYS)


@dataclass(frozen=True)
class ServicePlan(Limits):
    id: str = ""
    # Specific part; None for a generic plan
    part: Optional[int] = None
    # Part type the plan is about
    what: Optional[int] = None
    # Where that part type is attached, None for a plan on the part itself
    hook: Optional[int] = None
    name: str = ""

    @property
    def is_generic(self) -> bool:
        return self.part is None

    def materialize(self, part_id: int) -> "ServicePlan":
        """Effective plan for a specific part."""
        return replace(self, part=part_id)

    def valid(self) -> bool:
        return super().valid() and bool(self.name) and self.what is not None


@dataclass
class PlanDue:
    """Evaluated state of a plan for one part."""

    plan: ServicePlan
    status: Status
    part: Optional[Part] = None
    service: Optional[Service] = None
    remaining: Limits = field(default_factory=Limits)

    @property
    def is_due(self) -> bool:
        return self.status in (Status.ALERT, Status.WARN)


@dataclass
class AlertCount:
    warn: int = 0
    alert: int = 0


def validate_plan(plan: ServicePlan) -> None:
    """Reject plans that cannot be evaluated."""
    if not plan.name:
        raise PlanValidationError("plan needs a name")
    if plan.what is None:
        raise PlanValidationError(f"plan '{plan.name}' needs a part type")
    negative = [key for key, value in plan.items() if value < 0]
    if negative:
        raise PlanValidationError(
            f"plan '{plan.name}' has negative limits: {', '.join(negative)}"
        )
    if not plan.valid():
        raise PlanValidationError(f"plan '{plan.name}' sets no limit")


def resolve_part(
    plan: ServicePlan,
    parts: Mapping[int, Part],
    attachments: Mapping[str, Attachment],
    time: datetime,
    gear: Optional[int] = None,
) -> Optional[Part]:
    """The part a plan applies to, starting from gear or the plan's own part."""
    start = gear if gear is not None else plan.part
    if start is None:
        return None
    part_id = resolve_occupant(start, plan.what, plan.hook, time, attachments)
    part = parts.get(part_id)
    if part is None:
        logger.debug("plan %s: part %s not found", plan.id, part_id)
    return part


def services_for_plan(
    plan: ServicePlan,
    part: Optional[Part],
    services: Union[ServiceIndex, Mapping[str, Service]],
) -> List[Service]:
    """Services of the part done for this plan, newest first."""
    if part is None:
        return []
    index = as_index(services)
    found = [s for s in index.for_part(part.id) if plan.id in s.plans]
    return sorted(found, key=lambda s: s.start_time(part), reverse=True)


def latest_service(
    plan: ServicePlan,
    part: Optional[Part],
    services: Union[ServiceIndex, Mapping[str, Service]],
) -> Optional[Service]:
    """The open end of the plan's service chain for the part, if any."""
    index = as_index(services)
    for service in services_for_plan(plan, part, index):
        if index.get_successor(service) is None:
            return service
    return None


def observed(
    part: Part, service: Optional[Service], usages: Mapping[str, Usage]
) -> Usage:
    """Usage of the part since the service, or since purchase without one."""
    usage = lookup(usages, part.usage)
    if service is not None and not service.is_genesis:
        usage = usage.subtract(lookup(usages, service.usage))
    return usage


def due(
    plan: ServicePlan,
    part: Optional[Part],
    service: Optional[Service],
    usages: Mapping[str, Usage],
    now: datetime,
) -> Limits:
    """Remaining budget for every threshold the plan sets."""
    if part is None:
        return Limits()

    time = service.start_time(part) if service else part.purchase
    usage = observed(part, service, usages)
    used = {
        "days": lambda: get_days(time, now),
        "hours": lambda: whole_hours(usage.time),
        "km": lambda: whole_km(usage.distance),
        "climb": lambda: usage.climb,
        "descend": lambda: usage.descend,
        "rides": lambda: usage.count,
        "energy": lambda: usage.energy,
    }
    return Limits(**{key: limit - used[key]() for key, limit in plan.items()})


def alert(
    plan: ServicePlan,
    part: Optional[Part],
    service: Optional[Service],
    usages: Mapping[str, Usage],
    now: datetime,
) -> Status:
    """Worst status over all tracked thresholds."""
    return evaluate(plan, part, service, usages, now).status


def evaluate(
    plan: ServicePlan,
    part: Optional[Part],
    service: Optional[Service],
    usages: Mapping[str, Usage],
    now: datetime,
) -> PlanDue:
    remaining = due(plan, part, service, usages, now)
    status = Status.worst(
        check_status(value, getattr(plan, key)) for key, value in remaining.items()
    )
    return PlanDue(
        plan=plan, status=status, part=part, service=service, remaining=remaining
    )


def gears_for_plan(
    plan: ServicePlan,
    parts: Mapping[int, Part],
    plans: Iterable[ServicePlan],
    types: Mapping[int, PartType],
) -> List[Part]:
    """
    Gears a plan has to be evaluated for.

    A specific plan applies to its own part. A generic plan applies to every
    gear of the matching main type that is in service and has no specific
    plan for the same part type and hook.
    """
    if plan.part is not None:
        part = parts.get(plan.part)
        if part is None:
            logger.debug("plan %s: part %s not found", plan.id, plan.part)
            return []
        return [part]

    part_type = types.get(plan.what)
    if part_type is None:
        logger.debug("plan %s: part type %s not found", plan.id, plan.what)
        return []
    overrides = {
        p.part for p in plans if p.hook == plan.hook and p.what == plan.what
    }
    return [
        p
        for p in parts.values()
        if not p.is_disposed and p.what == part_type.main and p.id not in overrides
    ]


def alerts_for_plans(
    plans: Iterable[ServicePlan],
    parts: Mapping[int, Part],
    services: Union[ServiceIndex, Mapping[str, Service]],
    usages: Mapping[str, Usage],
    attachments: Mapping[str, Attachment],
    types: Mapping[int, PartType],
    now: datetime,
) -> AlertCount:
    """Count plan/gear combinations in WARN and ALERT state."""
    plans = list(plans)
    index = as_index(services)
    res = AlertCount()
    for plan in plans:
        for gear in gears_for_plan(plan, parts, plans, types):
            part = resolve_part(plan, parts, attachments, now, gear=gear.id)
            if part is None:
                continue
            service = latest_service(plan, part, index)
            status = alert(plan, part, service, usages, now)
            if status == Status.WARN:
                res.warn += 1
            elif status == Status.ALERT:
                res.alert += 1
    return res


def _plans_for_attachee(
    plans: List[ServicePlan], att: Attachment
) -> List[ServicePlan]:
    # plans for the part itself and plans the gear defines for this hook
    res = [
        p
        for p in plans
        if p.part == att.part_id
        or (p.part == att.gear and p.hook == att.hook and p.what == att.what)
    ]
    # generic plans for the type/hook, unless one is already covered
    covered = {(r.hook, r.what) for r in res}
    res.extend(
        p.materialize(att.part_id)
        for p in plans
        if p.is_generic
        and p.hook == att.hook
        and p.what == att.what
        and (p.hook, p.what) not in covered
    )
    return res


def plans_for_part(
    plans: Iterable[ServicePlan],
    attachments: Mapping[str, Attachment],
    part_id: int,
    time: datetime,
) -> List[ServicePlan]:
    """Effective plans for a part at the given time."""
    plans = list(plans)
    att = attachment_for_part(part_id, time, attachments)
    if att:
        return _plans_for_attachee(plans, att)
    return [p for p in plans if p.part == part_id and p.hook is None]


def _plans_at_hook(
    plans: List[ServicePlan],
    attachments: Mapping[str, Attachment],
    part: Part,
    part_type: PartType,
    hook: int,
    time: datetime,
) -> List[ServicePlan]:
    att = attachment_at_hook(part.id, part_type.id, hook, time, attachments)
    if att:
        return _plans_for_attachee(plans, att)

    res = [
        p
        for p in plans
        if p.part == part.id and p.what == part_type.id and p.hook == hook
    ]
    if res:
        return res

    return [
        p.materialize(part.id)
        for p in plans
        if p.is_generic and p.what == part_type.id and p.hook == hook
    ]


def plans_for_part_and_subtypes(
    plans: Iterable[ServicePlan],
    attachments: Mapping[str, Attachment],
    part: Part,
    types: Mapping[int, PartType],
    time: datetime,
) -> List[ServicePlan]:
    """Effective plans for a part and for every hook of its sub-assemblies."""
    plans = list(plans)
    res = plans_for_part(plans, attachments, part.id, time)
    part_type = types.get(part.what)
    if part_type is None:
        logger.debug("part %s: type %s not found", part.id, part.what)
        return res
    for subtype in part_type.subtypes(types):
        for hook in subtype.hooks:
            res.extend(_plans_at_hook(plans, attachments, part, subtype, hook, time))
    return res


def plan_from_dict(dct: Mapping) -> ServicePlan:
    """Build a plan from its stored form (energy is stored as kJ)."""
    limits = {key: _limit(dct.get(key)) for key in LIMIT_KEYS if key != "energy"}
    limits["energy"] = _limit(dct.get("kJ", dct.get("energy")))
    return ServicePlan(
        id=str(dct.get("id") or ""),
        part=dct.get("part"),
        what=dct.get("what"),
        hook=dct.get("hook"),
        name=dct.get("name") or "",
        **limits,
    )


def plan_to_dict(plan: ServicePlan) -> Dict:
    d: Dict = {"id": plan.id, "name": plan.name, "what": plan.what}
    if plan.part is not None:
        d["part"] = plan.part
    if plan.hook is not None:
        d["hook"] = plan.hook
    for key, value in plan.items():
        d["kJ" if key == "energy" else key] = value
    return d


def _limit(value) -> Optional[float]:
    # 0 and empty mean "not tracked"
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise PlanValidationError(f"limit must be a number, got {value!r}")
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            raise PlanValidationError(f"limit must be a number, got {value!r}")
    if not isinstance(value, (int, float)):
        raise PlanValidationError(f"limit must be a number, got {value!r}")
    if not value:
        return None
    return int(value) if float(value).is_integer() else value
