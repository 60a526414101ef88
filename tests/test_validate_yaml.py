#!/usr/bin/env python3
"""Tests for validate_yaml.validate_garage_file()."""

import pytest

from gearmaint import Service, save_service
from gearmaint.calculations import parse_time
from validate_yaml import load_schema, validate_garage_file


@pytest.fixture
def schema():
    return load_schema()


class TestValidateGarageFile:
    """Tests for validate_garage_file."""

    def test_sample_garage_is_valid(self, sample_garage, schema):
        assert validate_garage_file(sample_garage, schema) == []

    def test_valid_minimal_returns_no_errors(self, tmp_path, schema):
        path = tmp_path / "valid.yaml"
        path.write_text(
            "parts:\n"
            "  - {id: 1, what: 1, purchase: '2024-01-01T00:00:00Z', usage: u1}\n"
        )
        assert validate_garage_file(path, schema) == []

    def test_missing_parts_returns_errors(self, tmp_path, schema):
        path = tmp_path / "invalid.yaml"
        path.write_text("types: []\n")
        errors = validate_garage_file(path, schema)
        assert errors
        assert "Schema validation error" in errors[0]

    def test_missing_required_field_reports_path(self, tmp_path, schema):
        path = tmp_path / "invalid.yaml"
        path.write_text("parts:\n  - {id: 1, what: 1, usage: u1}\n")
        errors = validate_garage_file(path, schema)
        assert "purchase" in errors[0]
        assert errors[1] == "  at path: parts.0"

    def test_unknown_top_level_key(self, tmp_path, schema):
        path = tmp_path / "invalid.yaml"
        path.write_text("parts: []\ncars: []\n")
        assert validate_garage_file(path, schema)

    def test_plan_without_limit(self, tmp_path, schema):
        path = tmp_path / "plan.yaml"
        path.write_text(
            "parts: []\n"
            "plans:\n"
            "  - {id: p1, name: chain, what: 4, km: 0}\n"
        )
        errors = validate_garage_file(path, schema)
        assert errors == ["Plan validation error: plan 'chain' sets no limit"]

    def test_invalid_yaml_returns_parse_error(self, tmp_path, schema):
        path = tmp_path / "bad.yaml"
        path.write_text("parts: [\n")
        errors = validate_garage_file(path, schema)
        assert errors[0].startswith("YAML parse error")

    def test_nonexistent_file_returns_errors(self, tmp_path, schema):
        errors = validate_garage_file(tmp_path / "does_not_exist.yaml", schema)
        assert errors
        assert errors[0].startswith("Error:")

    def test_saved_garage_stays_valid(self, garage_copy, schema):
        service = Service(None, 12, parse_time("2024-06-01"), "hub serviced")
        save_service(garage_copy, service, redo="s-2")
        assert validate_garage_file(garage_copy, schema) == []
