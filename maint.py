#!/usr/bin/env python3
"""
Unified CLI for gear maintenance tracking.

Commands:
  status   - Show which service plans are overdue, nearly due, or fine
  history  - Show the service history of a part
  parts    - List gears and what is attached to them
  plans    - List service plans and their limits
  log      - Record a service for a part
  ride     - Record an activity and add its usage to the gear
"""

import argparse
import logging
import sys
from pathlib import Path
from tabulate import tabulate
from typing import Dict, List, Optional

from gearmaint import (
    Activity,
    HistoryRow,
    Limits,
    PartType,
    PlanDue,
    Service,
    Status,
    Summary,
    accrue,
    load_summary,
    parse_time,
    save_activity,
    save_service,
)
from gearmaint.calculations import format_time, now
from gearmaint.loader import new_id
from gearmaint.usage import lookup

# =============================================================================
# Formatting helpers
# =============================================================================

LIMIT_UNITS = {
    "days": "d",
    "hours": "h",
    "km": "km",
    "climb": "m up",
    "descend": "m down",
    "rides": "rides",
    "energy": "kJ",
}


def format_date(value) -> str:
    """Format an instant as a date for display."""
    return value.date().isoformat() if value is not None else "-"


def format_km(meters: Optional[float]) -> str:
    """Format a distance in metres as whole kilometres."""
    return f"{meters / 1000:,.0f}" if meters is not None else "-"


def format_hours(seconds: Optional[float]) -> str:
    """Format seconds as h:mm."""
    if seconds is None:
        return "-"
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    return f"{sign}{int(seconds // 3600)}:{int(seconds % 3600 // 60):02d}"


def format_limits(limits: Limits) -> str:
    """Format tracked limits, e.g. '40 km, -3 d'."""
    parts = [f"{value:,.0f} {LIMIT_UNITS[key]}" for key, value in limits.items()]
    return ", ".join(parts) if parts else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def type_name(types: Dict[int, PartType], type_id: Optional[int]) -> str:
    """Name of a part type, or its id if unknown."""
    if type_id is None:
        return "-"
    part_type = types.get(type_id)
    return part_type.name if part_type else f"type {type_id}"


def part_name(summary: Summary, part_id: Optional[int]) -> str:
    part = summary.get_part(part_id) if part_id is not None else None
    return part.display_name if part else "-"


# =============================================================================
# Status command
# =============================================================================


def make_status_table(summary: Summary, statuses: List[PlanDue]) -> List[List[str]]:
    """Convert plan status list to table rows."""
    rows = []
    for due in statuses:
        last_done = "-"
        if due.service is not None:
            last_done = format_date(due.service.time)
        rows.append(
            [
                due.plan.name,
                due.part.display_name if due.part else "-",
                type_name(summary.types, due.plan.hook),
                last_done,
                format_limits(due.plan),
                format_limits(due.remaining),
            ]
        )
    return rows


def cmd_status(args):
    """Show which service plans are overdue, nearly due, or fine."""
    summary = load_summary(args.garage_file, as_of=args.at)

    statuses = summary.all_plan_status()
    counts = summary.alerts()

    print(f"As of: {format_date(summary.as_of)}")
    print(f"Gears: {len(summary.gears())}")
    print(f"Plans: {len(summary.plans)}")
    print(f"Alerts: {counts.alert}, warnings: {counts.warn}")
    print()

    headers = ["Plan", "Part", "Hook", "Last Service", "Limits", "Remaining"]
    sections = [
        (Status.ALERT, "OVERDUE:"),
        (Status.WARN, "DUE SOON:"),
        (Status.OK, "OK:"),
    ]
    for status, title in sections:
        if status == Status.OK and not args.all:
            continue
        selected = sorted(
            [s for s in statuses if s.status == status],
            key=lambda s: (s.plan.name, s.part.display_name if s.part else ""),
        )
        if selected:
            print(title)
            print(
                tabulate(
                    make_status_table(summary, selected),
                    headers=headers,
                    tablefmt="simple",
                )
            )
            print()

    return 0


# =============================================================================
# History command
# =============================================================================


def make_history_table(summary: Summary, rows: List[HistoryRow]) -> List[List[str]]:
    """Convert history rows to table rows, indented by depth."""
    part = summary.get_part(rows[0].service.part_id) if rows else None
    table = []
    for row in rows:
        period = summary.period(row, part)
        service = row.service
        start = part.purchase if service.is_genesis else service.time
        end = row.successor.time if row.successor else None
        table.append(
            [
                "  " * row.depth + service.name,
                format_date(start),
                format_date(end),
                period.days,
                format_km(period.usage.distance),
                format_hours(period.usage.time),
                f"{period.usage.climb:,.0f}",
                period.usage.count,
                truncate(service.notes),
            ]
        )
    return table


def cmd_history(args):
    """Show the service history of a part."""
    summary = load_summary(args.garage_file, as_of=args.at)

    part = summary.get_part(args.part_id)
    if part is None:
        print(f"Error: Unknown part {args.part_id}")
        return 1

    print(f"Part: {part.display_name} ({type_name(summary.types, part.what)})")
    print(f"Purchased: {format_date(part.purchase)}")
    window = summary.current_window(part)
    print(f"Last service: {window.since.name} ({format_date(window.since.start_time(part))})")
    print()

    rows = summary.history_for_part(part)
    if not rows:
        print("No services recorded.")
        return 0

    headers = ["Service", "From", "Until", "Days", "km", "Time", "Climb", "Rides", "Notes"]
    print(
        tabulate(make_history_table(summary, rows), headers=headers, tablefmt="simple")
    )
    return 0


# =============================================================================
# Parts command
# =============================================================================


def cmd_parts(args):
    """List gears and what is attached to them."""
    summary = load_summary(args.garage_file, as_of=args.at)

    print(f"As of: {format_date(summary.as_of)}")
    print()

    for gear in summary.gears():
        usage = lookup(summary.usages, gear.usage)
        print(
            f"{gear.display_name}: {format_km(usage.distance)} km, "
            f"{format_hours(usage.time)} h, {usage.count} rides"
        )
        rows = []
        attached = sorted(
            summary.attached_to(gear.id), key=lambda a: (a.hook or 0, a.what or 0)
        )
        for att in attached:
            part = summary.get_part(att.part_id)
            part_usage = lookup(summary.usages, part.usage if part else None)
            rows.append(
                [
                    type_name(summary.types, att.hook),
                    type_name(summary.types, att.what),
                    part.display_name if part else f"#{att.part_id}",
                    att.fmt_range(),
                    format_km(part_usage.distance),
                ]
            )
        if rows:
            headers = ["Hook", "Type", "Part", "Attached", "km"]
            print(tabulate(rows, headers=headers, tablefmt="simple"))
        print()

    return 0


# =============================================================================
# Plans command
# =============================================================================


def cmd_plans(args):
    """List service plans and their limits."""
    summary = load_summary(args.garage_file, as_of=args.at)

    rows = []
    for plan in sorted(summary.plans.values(), key=lambda p: p.name):
        rows.append(
            [
                plan.id,
                plan.name,
                part_name(summary, plan.part) if plan.part is not None else "(generic)",
                type_name(summary.types, plan.what),
                type_name(summary.types, plan.hook),
                format_limits(plan),
            ]
        )

    print(f"Plans: {len(rows)}")
    print()
    headers = ["Id", "Plan", "Part", "Type", "Hook", "Limits"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Log command
# =============================================================================


def cmd_log(args):
    """Record a service for a part."""
    summary = load_summary(args.garage_file, as_of=args.at)

    part = summary.get_part(args.part_id)
    if part is None:
        print(f"Error: Unknown part {args.part_id}")
        return 1

    plans = args.plan or []
    unknown = [p for p in plans if p not in summary.plans]
    if unknown:
        print(f"Error: Unknown plan(s): {', '.join(unknown)}")
        return 1

    if args.redo is not None:
        previous = summary.services.get(args.redo)
        if previous is None or previous.part_id != part.id:
            print(f"Error: Service {args.redo} is not a service of this part")
            return 1
        successor = summary.service_index.get_successor(previous)
        if successor is not None:
            print(f"Error: Service {args.redo} was already redone by {successor.id}")
            return 1
        plans = plans or list(previous.plans)

    service = Service(
        None,
        part.id,
        args.at or now(),
        name=args.name,
        notes=args.notes,
        plans=plans,
    )
    snapshot = lookup(summary.usages, part.usage).with_id("")

    print(f"Adding service to {args.garage_file}:")
    print(f"  Part:  {part.display_name}")
    print(f"  Name:  {service.name}")
    print(f"  Time:  {format_time(service.time)}")
    if service.plans:
        print(f"  Plans: {', '.join(summary.plans[p].name for p in service.plans)}")
    if args.redo:
        print(f"  Redo:  {args.redo}")
    if service.notes:
        print(f"  Notes: {service.notes}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    save_service(args.garage_file, service, usage=snapshot, redo=args.redo)
    print(f"Service {service.id} saved.")
    return 0


# =============================================================================
# Ride command
# =============================================================================


def cmd_ride(args):
    """Record an activity and add its usage to the gear and attached parts."""
    summary = load_summary(args.garage_file, as_of=args.at)

    gear = summary.get_part(args.gear_id)
    if gear is None:
        print(f"Error: Unknown gear {args.gear_id}")
        return 1

    activity = Activity(
        max(summary.activities, default=0) + 1,
        args.at or now(),
        gear=gear.id,
        name=args.name,
        climb=args.climb,
        descend=args.descend,
        distance=args.km * 1000 if args.km is not None else None,
        time=args.minutes * 60 if args.minutes is not None else None,
        energy=args.energy,
    )
    ledgers = accrue(activity, summary.parts, summary.attachments, summary.usages)

    print(f"Adding activity to {args.garage_file}:")
    print(f"  Gear:     {gear.display_name}")
    print(f"  Start:    {format_time(activity.start)}")
    print(f"  Ledgers:  {len(ledgers)} updated")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    save_activity(args.garage_file, activity, ledgers)
    print("Activity saved.")
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Gear maintenance tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s garages/bikes.yaml status
  %(prog)s garages/bikes.yaml status --all
  %(prog)s garages/bikes.yaml --at 2024-06-01 parts
  %(prog)s garages/bikes.yaml history 12
  %(prog)s garages/bikes.yaml plans
  %(prog)s garages/bikes.yaml log 12 "chain replaced" --plan chain-plan
  %(prog)s garages/bikes.yaml log 12 "chain replaced" --redo 5f0c...
  %(prog)s garages/bikes.yaml ride 1 --km 42 --climb 650 --minutes 95
""",
    )
    parser.add_argument(
        "garage_file",
        type=Path,
        help="Path to garage YAML file",
    )
    parser.add_argument(
        "--at",
        type=parse_time,
        help="Evaluate as of this ISO-8601 instant (default: now)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log diagnostics (e.g. dangling references)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Status subcommand
    status_parser = subparsers.add_parser(
        "status", help="Show which service plans are overdue or nearly due"
    )
    status_parser.add_argument(
        "--all",
        action="store_true",
        help="Also list plans that are OK",
    )

    # History subcommand
    history_parser = subparsers.add_parser(
        "history", help="Show the service history of a part"
    )
    history_parser.add_argument("part_id", type=int, help="Part id")

    # Parts subcommand
    subparsers.add_parser("parts", help="List gears and attached parts")

    # Plans subcommand
    subparsers.add_parser("plans", help="List service plans")

    # Log subcommand
    log_parser = subparsers.add_parser("log", help="Record a service for a part")
    log_parser.add_argument("part_id", type=int, help="Part id")
    log_parser.add_argument("name", type=str, help="What was done")
    log_parser.add_argument("--notes", type=str, help="Notes about the service")
    log_parser.add_argument(
        "--plan",
        action="append",
        help="Id of a service plan this service fulfils (repeatable)",
    )
    log_parser.add_argument(
        "--redo",
        type=str,
        help="Id of the service this one supersedes",
    )
    log_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    # Ride subcommand
    ride_parser = subparsers.add_parser("ride", help="Record an activity")
    ride_parser.add_argument("gear_id", type=int, help="Gear id")
    ride_parser.add_argument("--name", type=str, help="Activity name")
    ride_parser.add_argument("--km", type=float, help="Distance in km")
    ride_parser.add_argument("--climb", type=float, help="Climb in m")
    ride_parser.add_argument(
        "--descend", type=float, help="Descend in m (default: climb)"
    )
    ride_parser.add_argument("--minutes", type=float, help="Moving time in minutes")
    ride_parser.add_argument("--energy", type=float, help="Energy in kJ")
    ride_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )

    # Validate garage file exists
    if not args.garage_file.exists():
        print(f"Error: File not found: {args.garage_file}")
        return 1

    # Dispatch to command handler
    if args.command == "status":
        return cmd_status(args)
    elif args.command == "history":
        return cmd_history(args)
    elif args.command == "parts":
        return cmd_parts(args)
    elif args.command == "plans":
        return cmd_plans(args)
    elif args.command == "log":
        return cmd_log(args)
    elif args.command == "ride":
        return cmd_ride(args)

    return 0


if __name__ == "__main__":
    sys.exit(main() or 0)
