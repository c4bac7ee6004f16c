"""
pytest configuration for xyzload tests.
"""

import os
import random
import sys
from pathlib import Path

import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables
os.environ.setdefault("TARGET_URL", "http://tiles.test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from xyzload.regions import RegionTable  # noqa: E402
from xyzload.tiles import GeoBoundingBox  # noqa: E402


WESTERN_EUROPE = GeoBoundingBox(south=45.0, north=62.0, west=-11.0, east=6.0)


def pytest_configure(config):
    """Configure pytest."""
    print("\n" + "=" * 60)
    print("🧪 xyzload Tests")
    print(f"📡 Target: {os.environ.get('TARGET_URL')}")
    print(f"📝 Log Level: {os.environ.get('LOG_LEVEL')}")
    print("=" * 60)


@pytest.fixture
def rng() -> random.Random:
    """A seeded random source."""
    return random.Random(1234)


@pytest.fixture
def western_europe() -> GeoBoundingBox:
    return WESTERN_EUROPE


@pytest.fixture
def region_table() -> RegionTable:
    """A small region table with one region lacking extent data."""
    return RegionTable.from_mapping({
        "Western Europe": WESTERN_EUROPE,
        "Iceland": {"south": 63.3, "north": 66.57, "west": -24.55, "east": -13.5},
        "Fiji": {"extent": {"south": -20.68, "north": -12.48, "west": 177.0, "east": 182.0}},
        "Nowhere": None,
    })
