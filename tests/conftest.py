"""Shared test fixtures for crystalscene."""

import json
from pathlib import Path

import matplotlib
import pytest

matplotlib.use("Agg")

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def fe_json_path():
    """Return the path to the schema A (asymmetric unit) Fe fixture."""
    return FIXTURES_DIR / "fe_4c.json"


@pytest.fixture
def nacl_json_path():
    """Return the path to the schema B (expanded sites) NaCl fixture."""
    return FIXTURES_DIR / "nacl_sites.json"


@pytest.fixture
def fe_raw(fe_json_path):
    """Schema A mapping: one Fe site on a 4c orbit in a 5 A cube."""
    return json.loads(fe_json_path.read_text())


@pytest.fixture
def nacl_raw(nacl_json_path):
    """Schema B mapping: two explicit sites."""
    return json.loads(nacl_json_path.read_text())
