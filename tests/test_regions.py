"""
Tests for region table and lookup.

This module tests:
- RegionTable construction from mappings and JSON files
- lookup_region hits and misses
- choose_region
- load_region_table
"""

import json
import random

import pytest

from xyzload.config import Settings
from xyzload.errors import ErrorCode, RegionDataError, ValidationError
from xyzload.regions import (
    DEFAULT_REGIONS_FILE,
    RegionNotFound,
    RegionTable,
    choose_region,
    load_region_table,
    lookup_region,
)
from xyzload.tiles import GeoBoundingBox


class TestRegionTableFromMapping:
    """Tests for RegionTable.from_mapping."""

    def test_accepts_box_like_values(self, region_table):
        """Boxes, plain dicts, extent dicts and None should all be accepted."""
        assert len(region_table) == 4
        assert isinstance(region_table["Iceland"], GeoBoundingBox)
        assert region_table["Fiji"].east == 182.0
        assert region_table["Nowhere"] is None

    def test_names(self, region_table):
        """names() should keep table order and filter regions without extent."""
        assert region_table.names() == ["Western Europe", "Iceland", "Fiji", "Nowhere"]
        assert "Nowhere" not in region_table.names(with_extent_only=True)

    def test_read_only(self, region_table):
        """The table should not support item assignment."""
        with pytest.raises(TypeError):
            region_table["Atlantis"] = None

    def test_source_mapping_changes_do_not_leak(self):
        """Mutating the source mapping should not change the table."""
        source = {"A": {"south": 0, "north": 1, "west": 0, "east": 1}}
        table = RegionTable.from_mapping(source)
        source["B"] = None
        assert "B" not in table

    def test_invalid_extent_raises(self):
        """A value that is not a box should raise RegionDataError."""
        with pytest.raises(RegionDataError) as exc_info:
            RegionTable.from_mapping({"Bad": {"south": "north-ish", "north": 1, "west": 0, "east": 1}})
        assert exc_info.value.code == ErrorCode.REGION_DATA_ERROR
        assert exc_info.value.details["region"] == "Bad"

    def test_missing_edge_raises(self):
        """A box missing an edge should raise RegionDataError."""
        with pytest.raises(RegionDataError):
            RegionTable.from_mapping({"Bad": {"south": 0, "north": 1, "west": 0}})


class TestRegionTableFromJsonFile:
    """Tests for RegionTable.from_json_file."""

    def test_load_file(self, tmp_path):
        """A well-formed file should load, ignoring extra keys."""
        path = tmp_path / "regions.json"
        path.write_text(json.dumps({
            "Iceland": {"iso": "IS", "extent": {"south": 63.3, "north": 66.57, "west": -24.55, "east": -13.5}},
            "Atlantis": {"extent": None},
            "Lemuria": {},
        }))
        table = RegionTable.from_json_file(path)
        assert table["Iceland"] == GeoBoundingBox(south=63.3, north=66.57, west=-24.55, east=-13.5)
        assert table["Atlantis"] is None
        assert table["Lemuria"] is None

    def test_missing_file(self, tmp_path):
        """A missing file should raise RegionDataError with the path."""
        path = tmp_path / "missing.json"
        with pytest.raises(RegionDataError) as exc_info:
            RegionTable.from_json_file(path)
        assert exc_info.value.path == str(path)

    def test_invalid_json(self, tmp_path):
        """A file that is not JSON should raise RegionDataError."""
        path = tmp_path / "regions.json"
        path.write_text("{not json")
        with pytest.raises(RegionDataError) as exc_info:
            RegionTable.from_json_file(path)
        assert "not valid JSON" in exc_info.value.message

    def test_wrong_shape(self, tmp_path):
        """A file with the wrong shape should raise RegionDataError."""
        path = tmp_path / "regions.json"
        path.write_text(json.dumps({"Iceland": {"extent": {"south": "far"}}}))
        with pytest.raises(RegionDataError):
            RegionTable.from_json_file(path)

    def test_top_level_list_rejected(self, tmp_path):
        """A JSON list is not a region file."""
        path = tmp_path / "regions.json"
        path.write_text(json.dumps([1, 2, 3]))
        with pytest.raises(RegionDataError):
            RegionTable.from_json_file(path)


class TestDefaultRegions:
    """Tests for the bundled region data."""

    def test_default_table(self):
        """The bundled table should load and contain well-known countries."""
        table = RegionTable.default()
        assert "France" in table
        assert "Germany" in table
        assert table["International Waters"] is None

    def test_default_boxes_are_sane(self):
        """Every bundled extent should have south <= north."""
        table = RegionTable.default()
        for name in table.names(with_extent_only=True):
            box = table[name]
            assert box.south <= box.north, name

    def test_load_region_table_default(self):
        """load_region_table should use bundled data without regions_file."""
        table = load_region_table(Settings(regions_file=None))
        assert "France" in table

    def test_load_region_table_from_settings(self, tmp_path):
        """load_region_table should load settings.regions_file once."""
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"Iceland": {"extent": {"south": 63.3, "north": 66.57, "west": -24.55, "east": -13.5}}}))
        settings = Settings(regions_file=str(path))
        first = load_region_table(settings)
        second = load_region_table(settings)
        assert first is second
        assert first.names() == ["Iceland"]

    def test_bundled_file_exists(self):
        assert DEFAULT_REGIONS_FILE.is_file()


class TestLookupRegion:
    """Tests for lookup_region."""

    def test_hit(self, region_table, western_europe):
        """A known region should return its box."""
        assert lookup_region(region_table, "Western Europe") == western_europe
        assert region_table.lookup("Western Europe") == western_europe

    def test_unknown_region(self, region_table):
        """An unknown region should return RegionNotFound, never a box."""
        result = lookup_region(region_table, "Atlantis")
        assert isinstance(result, RegionNotFound)
        assert result.name == "Atlantis"
        assert result.code == ErrorCode.REGION_NOT_FOUND
        assert "Atlantis" in result.message

    def test_region_without_extent(self, region_table):
        """A region without extent should return REGION_NO_EXTENT."""
        result = lookup_region(region_table, "Nowhere")
        assert isinstance(result, RegionNotFound)
        assert result.code == ErrorCode.REGION_NO_EXTENT
        assert result.message == "No extent data available for Nowhere"

    def test_miss_error_response(self, region_table):
        """RegionNotFound should convert to an error response dict."""
        response = lookup_region(region_table, "Atlantis").to_error_response(step="tiles")
        assert response == {
            "error": "Region not found: Atlantis",
            "code": "REGION_NOT_FOUND",
            "region": "Atlantis",
            "step": "tiles",
        }

    def test_works_with_plain_dict(self, western_europe):
        """Any mapping should work as a table."""
        assert lookup_region({"WE": western_europe}, "WE") == western_europe
        assert isinstance(lookup_region({}, "WE"), RegionNotFound)


class TestChooseRegion:
    """Tests for choose_region."""

    def test_single_region(self):
        """A one-element list should always give that region."""
        assert choose_region(["France"], random.Random(1)) == "France"

    def test_string_accepted(self):
        """A bare string should be treated as a one-element list."""
        assert choose_region("France", random.Random(1)) == "France"

    def test_all_regions_reachable(self):
        """Every listed region should be chosen eventually."""
        rng = random.Random(5)
        names = ["France", "Germany", "Spain"]
        assert {choose_region(names, rng) for _ in range(100)} == set(names)

    def test_empty_list_raises(self):
        """An empty list should raise ValidationError."""
        with pytest.raises(ValidationError):
            choose_region([])

    def test_blank_name_raises(self):
        """A blank name should raise ValidationError."""
        with pytest.raises(ValidationError):
            choose_region(["France", "  "])
