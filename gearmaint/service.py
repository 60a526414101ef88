"""
Service records and the per-part service history chain.

Services form a reverse linked list: each service names the service that
replaced it (its successor). Predecessors are found through a ServiceIndex
built once per snapshot. Successor ids that do not resolve are treated as
"no successor", since a snapshot may be mid-update.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Set, Union

from .calculations import get_days
from .part import Part
from .usage import Usage, lookup

logger = logging.getLogger(__name__)

GENESIS_NAME = "(new)"


class Service:
    """A maintenance event on a part."""

    def __init__(
        self,
        id: Optional[str],
        part_id: int,
        time: Optional[datetime],
        name: str = "",
        notes: str = "",
        usage: Optional[str] = None,
        successor: Optional[str] = None,
        plans: Optional[List[str]] = None,
    ):
        self.id = id
        self.part_id = part_id
        self.time = time
        self.name = name or ""
        self.notes = notes or ""
        self.usage = usage
        self.successor = successor
        self.plans = plans or []

    @classmethod
    def genesis(
        cls,
        part_id: int,
        successor: Optional[str] = None,
        time: Optional[datetime] = None,
    ) -> "Service":
        """Placeholder for the period from purchase to the first service."""
        return cls(None, part_id, time, name=GENESIS_NAME, successor=successor)

    @property
    def is_genesis(self) -> bool:
        return self.id is None

    def start_time(self, part: Part) -> datetime:
        """When the period after this service began; purchase for genesis."""
        if self.is_genesis or self.time is None:
            return part.purchase
        return self.time


@dataclass
class HistoryRow:
    depth: int
    service: Service
    successor: Optional[Service]


@dataclass
class ServiceWindow:
    """The open usage window of a part: since its last service until now."""

    since: Service
    usage_end_ref: str


@dataclass
class ServicePeriod:
    days: int
    usage: Usage


class ServiceIndex:
    """Services of one snapshot with a successor -> predecessors index."""

    def __init__(self, services: Mapping[str, Service]):
        self.services = services
        self._predecessors: Dict[str, List[Service]] = {}
        for service in services.values():
            if service.successor is not None:
                self._predecessors.setdefault(service.successor, []).append(service)

    def get_successor(self, service: Service) -> Optional[Service]:
        if not service.successor:
            return None
        successor = self.services.get(service.successor)
        if successor is None:
            logger.debug(
                "service %s: successor %s not found", service.id, service.successor
            )
        return successor

    def direct_predecessors(self, service: Service) -> List[Service]:
        if service.id is None:
            return []
        return list(self._predecessors.get(service.id, []))

    def for_part(self, part_id: int) -> List[Service]:
        return [s for s in self.services.values() if s.part_id == part_id]

    def predecessors(self, service: Service) -> List[Service]:
        """
        All services preceding this one, direct before indirect (pre-order).

        A service without predecessors gets a genesis placeholder, so the
        list is never empty.
        """
        return [row.service for row in self.history(0, service)]

    def history(self, depth: int, service: Service) -> List[HistoryRow]:
        """
        Walk the chain backwards and assign a display depth to every entry.

        Predecessors of a node at depth d get d + 1 + (n - (i + 1)) for the
        i-th of n found predecessors: earlier branches sit deeper.
        """
        return self._history(depth, service, {service.id})

    def _history(self, depth: int, service: Service, seen: Set) -> List[HistoryRow]:
        preds = self.direct_predecessors(service)
        if not preds:
            return [
                HistoryRow(
                    depth + 1,
                    Service.genesis(service.part_id, successor=service.id),
                    service,
                )
            ]

        rows = []
        for i, pred in enumerate(preds):
            if pred.id in seen:
                logger.warning("service chain cycle at %s, stopping", pred.id)
                continue
            seen.add(pred.id)
            d = depth + 1 + len(preds) - (i + 1)
            rows.append(HistoryRow(d, pred, service))
            rows.extend(self._history(d, pred, seen))
        return rows

    def current_window(self, part: Part) -> ServiceWindow:
        """
        The part's open service (no successor), latest by time.

        Without one the window starts at purchase with no usage offset.
        """
        open_ends = [
            s for s in self.for_part(part.id) if self.get_successor(s) is None
        ]
        if open_ends:
            since = max(open_ends, key=lambda s: s.start_time(part))
        else:
            since = Service.genesis(part.id, time=part.purchase)
        return ServiceWindow(since=since, usage_end_ref=part.usage)


def as_index(services: Union[ServiceIndex, Mapping[str, Service]]) -> ServiceIndex:
    if isinstance(services, ServiceIndex):
        return services
    return ServiceIndex(services)


def predecessors(
    service: Service, services: Union[ServiceIndex, Mapping[str, Service]]
) -> List[Service]:
    return as_index(services).predecessors(service)


def history(
    depth: int, service: Service, services: Union[ServiceIndex, Mapping[str, Service]]
) -> List[HistoryRow]:
    return as_index(services).history(depth, service)


def current_window(
    part: Part, services: Union[ServiceIndex, Mapping[str, Service]]
) -> ServiceWindow:
    return as_index(services).current_window(part)


def service_period(
    service: Service,
    part: Part,
    successor: Optional[Service],
    usages: Mapping[str, Usage],
    now: datetime,
) -> ServicePeriod:
    """
    Usage and elapsed days covered by a service.

    The period runs until the successor, or until now on the part's current
    ledger. Genesis periods start at purchase with an empty ledger.
    """
    if successor is None:
        end_usage, end_time = part.usage, now
    else:
        end_usage, end_time = successor.usage, successor.start_time(part)

    usage = lookup(usages, end_usage)
    if not service.is_genesis:
        usage = usage.subtract(lookup(usages, service.usage))
    return ServicePeriod(days=get_days(service.start_time(part), end_time), usage=usage)
