"""Flask web application exposing garage maintenance queries as JSON."""

import os
from pathlib import Path

from flask import Flask, abort, jsonify, request

# Add parent directory to path for package imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from gearmaint import (
    PlanDue,
    PlanValidationError,
    Service,
    Status,
    Summary,
    add_plan,
    load_summary,
    parse_time,
    save_service,
)
from gearmaint.calculations import format_time, now
from gearmaint.service_plan import plan_from_dict
from gearmaint.usage import lookup

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")

# Path to garages directory (relative to project root unless overridden)
app.config["GARAGES_DIR"] = Path(
    os.environ.get("GARAGES_DIR", Path(__file__).parent.parent / "garages")
)


def get_garage_files():
    """Get all garage YAML files."""
    return sorted(Path(app.config["GARAGES_DIR"]).glob("*.yaml"))


def get_garage_path(garage_id: str) -> Path:
    """Get full path for a garage ID, 404 if it does not exist."""
    path = Path(app.config["GARAGES_DIR"]) / f"{garage_id}.yaml"
    if not path.exists():
        abort(404, description=f"Garage '{garage_id}' not found")
    return path


def load_garage(garage_id: str) -> Summary:
    at = request.args.get("at")
    try:
        as_of = parse_time(at) if at else None
    except ValueError:
        abort(400, description=f"Invalid time '{at}'")
    return load_summary(get_garage_path(garage_id), as_of=as_of)


def limits_json(limits) -> dict:
    return dict(limits.items())


def plan_due_json(due: PlanDue) -> dict:
    return {
        "plan": due.plan.id,
        "name": due.plan.name,
        "part": due.part.id if due.part else None,
        "partName": due.part.display_name if due.part else None,
        "status": str(due.status),
        "lastService": due.service.id if due.service else None,
        "limits": limits_json(due.plan),
        "remaining": limits_json(due.remaining),
    }


@app.errorhandler(400)
@app.errorhandler(404)
def json_error(error):
    return jsonify({"error": error.description}), error.code


@app.route("/")
def index():
    """All garages with their alert counts."""
    garages = []
    for path in get_garage_files():
        summary = load_summary(path)
        counts = summary.alerts()
        garages.append(
            {
                "id": path.stem,
                "gears": [g.display_name for g in summary.gears()],
                "warn": counts.warn,
                "alert": counts.alert,
            }
        )
    return jsonify(garages)


@app.route("/garage/<garage_id>")
def garage_status(garage_id: str):
    """Plan status for a garage, most urgent first."""
    summary = load_garage(garage_id)
    status_filter = request.args.get("status", "").lower() or None

    all_status = summary.all_plan_status()
    if status_filter:
        all_status = [s for s in all_status if str(s.status) == status_filter]
    all_status.sort(key=lambda s: (s.status.value, s.plan.name))

    counts = summary.status_counts()
    return jsonify(
        {
            "asOf": format_time(summary.as_of),
            "counts": {str(status): counts[status] for status in Status},
            "plans": [plan_due_json(s) for s in all_status],
        }
    )


@app.route("/garage/<garage_id>/gear/<int:gear_id>")
def gear_parts(garage_id: str, gear_id: int):
    """Parts attached to a gear."""
    summary = load_garage(garage_id)
    gear = summary.get_part(gear_id)
    if gear is None:
        abort(404, description=f"Gear {gear_id} not found")

    attached = []
    for att in summary.attached_to(gear_id):
        part = summary.get_part(att.part_id)
        attached.append(
            {
                "part": att.part_id,
                "name": part.display_name if part else None,
                "hook": att.hook,
                "what": att.what,
                "attached": format_time(att.attached),
                "usage": lookup(summary.usages, part.usage if part else None).to_dict(),
            }
        )
    return jsonify({"gear": gear.id, "name": gear.display_name, "attached": attached})


@app.route("/garage/<garage_id>/occupant")
def occupant(garage_id: str):
    """Which part sits at a hook of a gear."""
    summary = load_garage(garage_id)
    try:
        gear = int(request.args["gear"])
        what = int(request.args["what"])
        hook = request.args.get("hook", type=int)
    except (KeyError, ValueError):
        abort(400, description="gear and what are required integers")
    return jsonify({"part": summary.occupant(gear, what, hook)})


@app.route("/garage/<garage_id>/part/<int:part_id>/history")
def part_history(garage_id: str, part_id: int):
    """Service history of a part with usage per service period."""
    summary = load_garage(garage_id)
    part = summary.get_part(part_id)
    if part is None:
        abort(404, description=f"Part {part_id} not found")

    rows = []
    for row in summary.history_for_part(part):
        period = summary.period(row, part)
        rows.append(
            {
                "depth": row.depth,
                "service": row.service.id,
                "name": row.service.name,
                "time": format_time(row.service.start_time(part)),
                "successor": row.successor.id if row.successor else None,
                "days": period.days,
                "usage": period.usage.to_dict(),
            }
        )
    return jsonify(rows)


@app.route("/garage/<garage_id>/plans", methods=["POST"])
def create_plan(garage_id: str):
    """Add a service plan."""
    path = get_garage_path(garage_id)
    payload = request.get_json(silent=True) or {}
    try:
        plan = add_plan(path, plan_from_dict(payload))
    except (PlanValidationError, ValueError) as e:
        abort(400, description=str(e))
    return jsonify({"id": plan.id}), 201


@app.route("/garage/<garage_id>/services", methods=["POST"])
def log_service(garage_id: str):
    """Record a service for a part at its current usage."""
    path = get_garage_path(garage_id)
    summary = load_summary(path)
    payload = request.get_json(silent=True) or {}

    try:
        part_id = int(payload.get("partId"))
    except (TypeError, ValueError):
        abort(400, description="partId must be an integer")
    part = summary.get_part(part_id)
    if part is None:
        abort(400, description="Unknown part")
    if not payload.get("name"):
        abort(400, description="Please name the service")

    try:
        time = parse_time(payload.get("time")) or now()
    except ValueError:
        abort(400, description="Invalid time")

    service = Service(
        None,
        part.id,
        time,
        name=payload["name"],
        notes=payload.get("notes"),
        plans=[p for p in payload.get("plans") or [] if p in summary.plans],
    )
    snapshot = lookup(summary.usages, part.usage).with_id("")
    redo = payload.get("redo")
    try:
        save_service(
            path, service, usage=snapshot, redo=None if redo is None else str(redo)
        )
    except KeyError:
        abort(400, description=f"Unknown service {redo}")
    except ValueError as e:
        abort(400, description=str(e))
    return jsonify({"id": service.id}), 201


if __name__ == "__main__":
    # Run with debug mode for development
    app.run(debug=True, host="0.0.0.0", port=5001)
