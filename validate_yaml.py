#!/usr/bin/env python3
"""Validate garage YAML files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from gearmaint import PlanValidationError, validate_plan
from gearmaint.service_plan import plan_from_dict


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_garage_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single garage YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
        for raw in data.get("plans") or []:
            validate_plan(plan_from_dict(raw))
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except PlanValidationError as e:
        errors.append(f"Plan validation error: {e}")
    except Exception as e:
        errors.append(f"Error: {e}")
    return errors


def main():
    """Validate all garage YAML files in the garages/ directory."""
    schema = load_schema()
    garages_dir = Path(__file__).parent / "garages"

    if not garages_dir.exists():
        print(f"Error: garages directory not found: {garages_dir}")
        return 1

    yaml_files = list(garages_dir.glob("*.yaml")) + list(garages_dir.glob("*.yml"))

    if not yaml_files:
        print(f"Warning: No YAML files found in {garages_dir}")
        return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_garage_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
