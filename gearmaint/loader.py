"""YAML loading and saving utilities for garage data."""

import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import yaml

from .activity import Activity
from .attachment import Attachment
from .calculations import format_time, parse_time
from .part import Part
from .part_type import PartType
from .service import Service
from .service_plan import ServicePlan, plan_from_dict, plan_to_dict, validate_plan
from .summary import Summary
from .usage import Usage


def new_id() -> str:
    return str(uuid.uuid4())


def _parse_type(dct: Dict[str, Any]) -> PartType:
    return PartType(
        dct["id"],
        dct["name"],
        dct["main"],
        dct.get("hooks"),
        dct.get("order") or 0,
        dct.get("group"),
    )


def _parse_part(dct: Dict[str, Any]) -> Part:
    return Part(
        dct["id"],
        dct["what"],
        parse_time(dct["purchase"]),
        str(dct["usage"]),
        owner=dct.get("owner"),
        name=dct.get("name"),
        vendor=dct.get("vendor"),
        model=dct.get("model"),
        last_used=parse_time(dct.get("lastUsed")),
        disposed_at=parse_time(dct.get("disposedAt")),
    )


def _parse_attachment(dct: Dict[str, Any]) -> Attachment:
    return Attachment(
        dct["partId"],
        dct["gear"],
        dct.get("hook"),
        parse_time(dct["attached"]),
        parse_time(dct.get("detached")),
        what=dct.get("what"),
        name=dct.get("name"),
        usage=_opt_str(dct.get("usage")),
    )


def _parse_service(dct: Dict[str, Any]) -> Service:
    return Service(
        str(dct["id"]),
        dct["partId"],
        parse_time(dct["time"]),
        name=dct.get("name"),
        notes=dct.get("notes"),
        usage=_opt_str(dct.get("usage")),
        successor=_opt_str(dct.get("successor")),
        plans=[str(p) for p in dct.get("plans") or []],
    )


def _parse_activity(dct: Dict[str, Any]) -> Activity:
    return Activity(
        dct["id"],
        parse_time(dct["start"]),
        gear=dct.get("gear"),
        what=dct.get("what"),
        name=dct.get("name"),
        user_id=dct.get("userId"),
        climb=dct.get("climb"),
        descend=dct.get("descend"),
        distance=dct.get("distance"),
        time=dct.get("time"),
        duration=dct.get("duration"),
        energy=dct.get("energy"),
    )


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def parse_summary(
    data: Mapping[str, Any], as_of: Optional[datetime] = None
) -> Summary:
    """Build a Summary from the raw YAML document."""
    types = [_parse_type(d) for d in data.get("types") or []]
    usages = [Usage.from_dict(d) for d in data.get("usages") or []]
    parts = [_parse_part(d) for d in data.get("parts") or []]
    attachments = [_parse_attachment(d) for d in data.get("attachments") or []]
    services = [_parse_service(d) for d in data.get("services") or []]
    plans = [plan_from_dict(d) for d in data.get("plans") or []]
    activities = [_parse_activity(d) for d in data.get("activities") or []]
    return Summary(
        parts={p.id: p for p in parts},
        attachments={a.idx: a for a in attachments},
        services={s.id: s for s in services},
        plans={p.id: p for p in plans},
        usages={u.id: u for u in usages},
        types={t.id: t for t in types},
        activities={a.id: a for a in activities},
        as_of=as_of or parse_time(data.get("asOf")),
    )


def load_summary(
    filename: Union[str, Path], as_of: Optional[datetime] = None
) -> Summary:
    """
    Load a garage summary from a YAML file.

    as_of overrides the reference instant stored in the file.
    """
    return parse_summary(_read(filename), as_of=as_of)


def _read(filename: Union[str, Path]) -> Dict[str, Any]:
    with open(filename, "r") as fp:
        return yaml.load(fp, Loader=yaml.SafeLoader) or {}


def _write(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    with open(filename, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def _service_to_dict(service: Service) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": service.id,
        "partId": service.part_id,
        "time": format_time(service.time),
        "name": service.name,
    }
    if service.notes:
        d["notes"] = service.notes
    if service.usage is not None:
        d["usage"] = service.usage
    if service.successor is not None:
        d["successor"] = service.successor
    if service.plans:
        d["plans"] = list(service.plans)
    return d


def _activity_to_dict(activity: Activity) -> Dict[str, Any]:
    d: Dict[str, Any] = {"id": activity.id, "start": format_time(activity.start)}
    for key in ("gear", "what", "name"):
        if getattr(activity, key):
            d[key] = getattr(activity, key)
    if activity.user_id is not None:
        d["userId"] = activity.user_id
    for key in ("climb", "descend", "distance", "time", "duration", "energy"):
        if getattr(activity, key) is not None:
            d[key] = getattr(activity, key)
    return d


def _put_usages(data: Dict[str, Any], ledgers: Iterable[Usage]) -> None:
    """Replace ledgers with the same id, append new ones."""
    if data.get("usages") is None:
        data["usages"] = []
    positions = {str(u.get("id")): i for i, u in enumerate(data["usages"])}
    for ledger in ledgers:
        if ledger.id in positions:
            data["usages"][positions[ledger.id]] = ledger.to_dict()
        else:
            data["usages"].append(ledger.to_dict())


def save_service(
    filename: Union[str, Path],
    service: Service,
    usage: Optional[Usage] = None,
    redo: Optional[str] = None,
) -> Service:
    """
    Append a service to a garage YAML file.

    The usage snapshot, if given, is stored alongside and referenced by the
    service. With redo, the service of that id gets the new service as its
    successor. Returns the stored service (with its id assigned).

    Raises KeyError when the redone service does not exist, and ValueError
    when it belongs to another part or already has a successor.
    """
    data = _read(filename)

    if data.get("services") is None:
        data["services"] = []

    previous = None
    if redo is not None:
        previous = _redo_target(data["services"], redo, service.part_id)

    if service.id is None:
        service.id = new_id()
    if usage is not None:
        if not usage.id:
            usage = usage.with_id(new_id())
        service.usage = usage.id
        _put_usages(data, [usage])

    if previous is not None:
        previous["successor"] = service.id

    data["services"].append(_service_to_dict(service))
    _write(filename, data)
    return service


def _redo_target(
    services: List[Dict[str, Any]], redo: str, part_id: int
) -> Dict[str, Any]:
    """The stored service a new service of part_id may replace."""
    by_id = {str(s.get("id")): s for s in services}
    previous = by_id.get(redo)
    if previous is None:
        raise KeyError(f"Service {redo} not found")
    if previous.get("partId") != part_id:
        raise ValueError(f"Service {redo} is not a service of part {part_id}")
    # a dangling successor does not count
    successor = previous.get("successor")
    if successor is not None and str(successor) in by_id:
        raise ValueError(f"Service {redo} was already redone by {successor}")
    return previous


def add_plan(filename: Union[str, Path], plan: ServicePlan) -> ServicePlan:
    """Append a validated plan to a garage YAML file."""
    validate_plan(plan)
    data = _read(filename)

    if data.get("plans") is None:
        data["plans"] = []

    if not plan.id:
        plan = replace(plan, id=new_id())
    data["plans"].append(plan_to_dict(plan))
    _write(filename, data)
    return plan


def update_plan(filename: Union[str, Path], index: int, plan: ServicePlan) -> None:
    """Replace the plan at plans[index] with a validated plan."""
    validate_plan(plan)
    data = _read(filename)

    plans = data.get("plans") or []
    if index < 0 or index >= len(plans):
        raise IndexError(f"Plan index {index} out of range (0..{len(plans) - 1})")

    plans[index] = plan_to_dict(plan)
    _write(filename, data)


def delete_plan(filename: Union[str, Path], index: int) -> None:
    """
    Remove the plan at plans[index].

    Services that were done for the plan no longer reference it.
    """
    data = _read(filename)

    plans = data.get("plans") or []
    if index < 0 or index >= len(plans):
        raise IndexError(f"Plan index {index} out of range (0..{len(plans) - 1})")

    plan_id = str(plans[index].get("id"))
    del plans[index]
    for service in data.get("services") or []:
        if service.get("plans"):
            service["plans"] = [p for p in service["plans"] if str(p) != plan_id]

    _write(filename, data)


def save_activity(
    filename: Union[str, Path], activity: Activity, ledgers: Mapping[str, Usage]
) -> None:
    """Append an activity and store the ledgers it changed."""
    data = _read(filename)

    if data.get("activities") is None:
        data["activities"] = []
    data["activities"].append(_activity_to_dict(activity))
    _put_usages(data, ledgers.values())

    _write(filename, data)

