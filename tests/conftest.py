"""Shared fixtures: the sample garage and a scratch copy of it."""

import shutil
from pathlib import Path

import pytest

SAMPLE_GARAGE = Path(__file__).parent.parent / "garages" / "bikes.yaml"


@pytest.fixture
def sample_garage():
    return SAMPLE_GARAGE


@pytest.fixture
def garage_copy(tmp_path):
    """Writable copy of the sample garage."""
    path = tmp_path / "bikes.yaml"
    shutil.copy(SAMPLE_GARAGE, path)
    return path
