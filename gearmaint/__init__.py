"""
Gear maintenance tracking models.

This package tracks wear and service of equipment parts:
- Usage: Additive usage ledger (distance, climb, time, rides, energy)
- Attachment: Which part sits at which hook of which gear, and when
- Service: Maintenance records chained through successor references
- ServicePlan: Thresholds that make a service due
- Status: Plan urgency (ALERT, WARN, OK)
- Summary: Main aggregate holding one garage snapshot
"""

from .status import Status
from .usage import Usage, contribution
from .part_type import PartType
from .part import Part
from .attachment import (
    Attachment,
    attachment_at_hook,
    attachment_for_part,
    attachments_for_gear,
    attachments_of_part,
    resolve_occupant,
)
from .activity import Activity, accrue
from .service import (
    GENESIS_NAME,
    HistoryRow,
    Service,
    ServiceIndex,
    ServicePeriod,
    ServiceWindow,
    current_window,
    history,
    predecessors,
    service_period,
)
from .service_plan import (
    AlertCount,
    Limits,
    PlanDue,
    PlanValidationError,
    ServicePlan,
    alert,
    alerts_for_plans,
    due,
    evaluate,
    gears_for_plan,
    latest_service,
    plans_for_part,
    plans_for_part_and_subtypes,
    resolve_part,
    services_for_plan,
    validate_plan,
)
from .summary import Summary
from .calculations import MAX_TIME, get_days, parse_time
from .loader import (
    add_plan,
    delete_plan,
    load_summary,
    save_activity,
    save_service,
    update_plan,
)

__all__ = [
    "Status",
    "Usage",
    "contribution",
    "PartType",
    "Part",
    "Attachment",
    "attachment_at_hook",
    "attachment_for_part",
    "attachments_for_gear",
    "attachments_of_part",
    "resolve_occupant",
    "Activity",
    "accrue",
    "GENESIS_NAME",
    "HistoryRow",
    "Service",
    "ServiceIndex",
    "ServicePeriod",
    "ServiceWindow",
    "current_window",
    "history",
    "predecessors",
    "service_period",
    "AlertCount",
    "Limits",
    "PlanDue",
    "PlanValidationError",
    "ServicePlan",
    "alert",
    "alerts_for_plans",
    "due",
    "evaluate",
    "gears_for_plan",
    "latest_service",
    "plans_for_part",
    "plans_for_part_and_subtypes",
    "resolve_part",
    "services_for_plan",
    "validate_plan",
    "Summary",
    "MAX_TIME",
    "get_days",
    "parse_time",
    "add_plan",
    "delete_plan",
    "load_summary",
    "save_activity",
    "save_service",
    "update_plan",
]
