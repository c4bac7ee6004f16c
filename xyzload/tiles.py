"""
Slippy-map tile math for xyzload.

Converts a geographic bounding box and a zoom range into a uniformly
sampled tile address (x, y, z) under the standard web-map tiling scheme:
the world is a 2^z x 2^z grid of Web Mercator tiles with x growing east
from the antimeridian and y growing south from the top of the map.

Everything here is pure apart from the random source, which callers pass
in as any object with a ``randint(a, b)`` method (``random.Random(seed)``
for reproducible runs). No function in this module raises for a
well-formed box:

- latitudes beyond the Mercator limit are clamped before projecting
- ``latitude_to_tile_y`` returns None at the poles instead of failing
- inverted sampling ranges are swapped before sampling
- tile columns past the antimeridian wrap around the world

Usage:
    import random
    from xyzload.tiles import GeoBoundingBox, ZoomRange, pick_random_tile_in_region

    box = GeoBoundingBox(south=45, north=62, west=-11, east=6)
    tile = pick_random_tile_in_region(box, ZoomRange(4, 8), rng=random.Random(42))
    print(tile.path)  # e.g. "6/29/21"
"""

import math
import random
from dataclasses import asdict, dataclass
from typing import Any, Protocol

from xyzload.errors import ErrorCode
from xyzload.logger import get_logger

logger = get_logger(__name__)

# Practical limit of the Web Mercator projection, which diverges at the poles
MIN_LAT = -89.9
MAX_LAT = 89.9

DEFAULT_RNG = random.Random()


class RandomSource(Protocol):
    """Anything that can draw an inclusive random integer."""

    def randint(self, a: int, b: int) -> int: ...


@dataclass(frozen=True)
class GeoBoundingBox:
    """A region's extent in degrees.

    south <= north is expected but not enforced. west and east may run past
    +/-180 and are not normalized.
    """

    south: float
    north: float
    west: float
    east: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeoBoundingBox":
        return cls(
            south=float(data["south"]),
            north=float(data["north"]),
            west=float(data["west"]),
            east=float(data["east"]),
        )

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ZoomRange:
    """Inclusive range of zoom levels to sample from."""

    min: int
    max: int

    @classmethod
    def fixed(cls, zoom: int) -> "ZoomRange":
        return cls(min=zoom, max=zoom)

    @property
    def levels(self) -> range:
        low, high = sorted((self.min, self.max))
        return range(low, high + 1)


@dataclass(frozen=True)
class TileAddress:
    """A single tile; 0 <= x, y < 2^z."""

    x: int
    y: int
    z: int

    @property
    def path(self) -> str:
        """Tile path in z/x/y order, as used in tile URLs."""
        return f"{self.z}/{self.x}/{self.y}"

    def as_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "z": self.z}


def tile_count(zoom: int) -> int:
    """Number of tiles along one axis at the given zoom."""
    return 2 ** zoom


def clamp_latitude(lat: float) -> float:
    """
    Clamp a latitude into [MIN_LAT, MAX_LAT].

    Out-of-range input is a normal case: the nearest bound is returned.
    """
    if lat < MIN_LAT:
        return MIN_LAT
    if lat > MAX_LAT:
        return MAX_LAT
    return lat


def longitude_to_tile_x(lon: float, zoom: int) -> int:
    """
    Project a longitude to a tile column.

    The result lies in [0, 2^zoom) for lon in [-180, 180). Longitudes past
    the antimeridian are not clamped and give columns outside that range;
    any finite longitude gives an exact column.
    """
    turns = (lon + 180.0) / 360.0
    # Whole turns are split off so huge longitudes never overflow to inf
    whole = math.floor(turns)
    return whole * tile_count(zoom) + math.floor((turns - whole) * tile_count(zoom))


def latitude_to_tile_y(lat: float, zoom: int) -> int | None:
    """
    Project a latitude to a tile row with the inverse Web Mercator transform.

    Rows grow southward, so a higher latitude never gives a higher row.
    Latitudes beyond the Mercator limit (about +/-85.0511) project off the
    map and are pinned to the first or last row.

    Returns:
        The tile row, or None when |lat| >= 90 where the transform is
        undefined. Callers clamp with clamp_latitude first.
    """
    if lat >= 90 or lat <= -90:
        return None

    lat_rad = math.radians(lat)
    n = tile_count(zoom)
    # asinh(tan(lat)) == ln(tan(lat) + 1/cos(lat)), without cancellation near -90
    y = math.floor((1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n)
    return max(0, min(n - 1, y))


def random_int(rng: RandomSource, low: int, high: int, label: str = "value") -> int:
    """
    Draw an integer uniformly from [low, high] inclusive.

    An inverted range (low > high) is swapped before drawing.
    """
    if low > high:
        logger.debug(
            f"Inverted {label} range [{low}, {high}], swapping",
            extra={"code": ErrorCode.INVERTED_RANGE.value, "label": label},
        )
        low, high = high, low
    return rng.randint(low, high)


def pick_random_tile_in_region(
    box: GeoBoundingBox,
    zoom_range: ZoomRange,
    rng: RandomSource | None = None,
) -> TileAddress:
    """
    Pick a random tile inside a region.

    The zoom level is drawn uniformly from the zoom range, then the column
    and row are drawn uniformly from the tiles the box covers at that zoom.

    Args:
        box: Region extent in degrees
        zoom_range: Inclusive zoom levels to draw from
        rng: Random source (default: a module-level random.Random)

    Returns:
        A TileAddress with z in the zoom range and x, y inside the box's
        tile bounds at z. Columns past the antimeridian wrap modulo 2^z.
    """
    if rng is None:
        rng = DEFAULT_RNG

    south = clamp_latitude(box.south)
    north = clamp_latitude(box.north)

    z = random_int(rng, zoom_range.min, zoom_range.max, "zoom")
    n = tile_count(z)

    x_min = longitude_to_tile_x(box.west, z)
    x_max = longitude_to_tile_x(box.east, z)

    # North is the top edge, so it gives the smaller row
    y_min = latitude_to_tile_y(north, z)
    y_max = latitude_to_tile_y(south, z)
    if y_min is None:
        y_min = 0
    if y_max is None:
        y_max = n - 1

    x = random_int(rng, x_min, x_max, "x") % n
    y = random_int(rng, y_min, y_max, "y")

    return TileAddress(x=x, y=y, z=z)
