"""
Region table and region lookup for xyzload.

A region table maps region names to their bounding boxes. It is built once,
explicitly, and passed to whatever needs it; nothing in this module keeps a
mutable global table.

Region data files use this JSON shape (extra keys are ignored, a missing or
null extent marks a region with no extent data):

    {
        "France": {"extent": {"south": 41.3, "north": 51.1, "west": -5.2, "east": 9.6}},
        "Atlantis": {"extent": null}
    }

Usage:
    from xyzload.regions import RegionTable, lookup_region

    table = RegionTable.default()
    box = lookup_region(table, "France")
    if isinstance(box, RegionNotFound):
        ...  # skip this iteration
"""

import json
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from xyzload.config import Settings, get_settings
from xyzload.errors import ErrorCode, RegionDataError, create_error_response
from xyzload.logger import get_logger
from xyzload.tiles import DEFAULT_RNG, GeoBoundingBox, RandomSource, random_int
from xyzload.validators import validate_region_names

logger = get_logger(__name__)

DEFAULT_REGIONS_FILE = Path(__file__).parent / "data" / "regions.json"


class RegionExtent(BaseModel):
    """Extent of a region in degrees."""

    model_config = ConfigDict(allow_inf_nan=False)

    south: float
    north: float
    west: float
    east: float

    def to_box(self) -> GeoBoundingBox:
        return GeoBoundingBox(
            south=self.south,
            north=self.north,
            west=self.west,
            east=self.east,
        )


class RegionRecord(BaseModel):
    """One entry of a region data file."""

    model_config = ConfigDict(extra="ignore")

    extent: RegionExtent | None = None


_REGION_FILE_ADAPTER = TypeAdapter(dict[str, RegionRecord])


@dataclass(frozen=True)
class RegionNotFound:
    """Lookup miss: the region is unknown or has no extent."""

    name: str
    code: ErrorCode = ErrorCode.REGION_NOT_FOUND

    @property
    def message(self) -> str:
        if self.code == ErrorCode.REGION_NO_EXTENT:
            return f"No extent data available for {self.name}"
        return f"Region not found: {self.name}"

    def to_error_response(self, **kwargs) -> dict[str, Any]:
        return create_error_response(self.message, self.code, region=self.name, **kwargs)


class RegionTable(Mapping):
    """Read-only mapping of region name to GeoBoundingBox (or None)."""

    def __init__(self, entries: Mapping[str, GeoBoundingBox | None]):
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, name: str) -> GeoBoundingBox | None:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"RegionTable({len(self)} regions)"

    def names(self, with_extent_only: bool = False) -> list[str]:
        """Region names in table order."""
        if with_extent_only:
            return [name for name, box in self._entries.items() if box is not None]
        return list(self._entries)

    def lookup(self, name: str) -> "GeoBoundingBox | RegionNotFound":
        return lookup_region(self, name)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "RegionTable":
        """
        Build a table from name -> box-like values.

        A box-like value is a GeoBoundingBox, a dict with south/north/west/east,
        a dict with an "extent" key holding such a dict, or None.

        Raises:
            RegionDataError: If a value cannot be read as a box
        """
        entries: dict[str, GeoBoundingBox | None] = {}
        for name, value in mapping.items():
            if value is None or isinstance(value, GeoBoundingBox):
                entries[name] = value
                continue
            try:
                if isinstance(value, Mapping) and "extent" in value:
                    record = RegionRecord.model_validate(value)
                    entries[name] = record.extent.to_box() if record.extent else None
                else:
                    entries[name] = RegionExtent.model_validate(value).to_box()
            except PydanticValidationError as e:
                raise RegionDataError(
                    f"Invalid extent for region {name!r}",
                    details={"region": name, "errors": e.errors(include_url=False)},
                ) from e
        return cls(entries)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "RegionTable":
        """
        Load a table from a region data file.

        Raises:
            RegionDataError: If the file is missing, unreadable, not JSON or
                does not match the region data shape
        """
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise RegionDataError(f"Region data file not found: {path}", path=str(path)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise RegionDataError(f"Cannot read region data file: {e}", path=str(path)) from e
        except json.JSONDecodeError as e:
            raise RegionDataError(f"Region data file is not valid JSON: {e}", path=str(path)) from e

        try:
            records = _REGION_FILE_ADAPTER.validate_python(raw)
        except PydanticValidationError as e:
            raise RegionDataError(
                "Region data file does not match the expected shape",
                path=str(path),
                details={"errors": e.errors(include_url=False)},
            ) from e

        table = cls({
            name: record.extent.to_box() if record.extent else None
            for name, record in records.items()
        })
        logger.debug(
            f"Loaded {len(table)} regions",
            extra={"path": str(path), "with_extent": len(table.names(with_extent_only=True))},
        )
        return table

    @classmethod
    def default(cls) -> "RegionTable":
        """The region table bundled with the package."""
        return cls.from_json_file(DEFAULT_REGIONS_FILE)


@lru_cache(maxsize=None)
def _load_table(path: str) -> RegionTable:
    return RegionTable.from_json_file(path)


def load_region_table(settings: Settings | None = None) -> RegionTable:
    """
    Load the configured region table, once per file path.

    Uses settings.regions_file when set, otherwise the bundled data.
    """
    settings = settings or get_settings()
    path = settings.regions_file or str(DEFAULT_REGIONS_FILE)
    return _load_table(path)


def lookup_region(table: Mapping[str, GeoBoundingBox | None], name: str) -> GeoBoundingBox | RegionNotFound:
    """
    Look up a region's bounding box.

    Returns:
        The region's GeoBoundingBox, or a RegionNotFound when the name is
        absent (REGION_NOT_FOUND) or has no extent (REGION_NO_EXTENT).
        Misses are logged, never raised.
    """
    if name not in table:
        miss = RegionNotFound(name, ErrorCode.REGION_NOT_FOUND)
    elif table[name] is None:
        miss = RegionNotFound(name, ErrorCode.REGION_NO_EXTENT)
    else:
        return table[name]

    logger.warning(miss.message, extra={"region": name, "code": miss.code.value})
    return miss


def choose_region(names: Sequence[str], rng: RandomSource | None = None) -> str:
    """
    Choose one region name uniformly at random.

    Raises:
        ValidationError: If names is empty or holds a blank name
    """
    names = validate_region_names(names).unwrap("regions")
    if rng is None:
        rng = DEFAULT_RNG
    return names[random_int(rng, 0, len(names) - 1, "region")]
