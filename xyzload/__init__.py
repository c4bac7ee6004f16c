"""
xyzload

Random slippy-map tile selection for load-testing tile servers.
"""

__version__ = "0.1.0"

from xyzload.regions import RegionNotFound, RegionTable, load_region_table, lookup_region
from xyzload.tiles import (
    GeoBoundingBox,
    TileAddress,
    ZoomRange,
    clamp_latitude,
    latitude_to_tile_y,
    longitude_to_tile_x,
    pick_random_tile_in_region,
)

__all__ = [
    "GeoBoundingBox",
    "ZoomRange",
    "TileAddress",
    "clamp_latitude",
    "longitude_to_tile_x",
    "latitude_to_tile_y",
    "pick_random_tile_in_region",
    "RegionTable",
    "RegionNotFound",
    "lookup_region",
    "load_region_table",
]
