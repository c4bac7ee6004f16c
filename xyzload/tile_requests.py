"""
Tile request planning for xyzload.

Turns the parameters of a load-test tile request step into concrete tile
URLs: pick a region from the step's list, look it up, pick a random tile in
it and format the tile URL. Sending the request is left to the load-test
harness.

Step parameters use the same keys as the harness scenario files:

    {
        "name": "vector-tiles",
        "api": "/api/tiles/roads",
        "params": "?fields=name",
        "regions": ["France", "Germany"],
        "noRequests": 10,
        "minZoom": 4,
        "maxZoom": 12
    }

Usage:
    from xyzload.regions import load_region_table
    from xyzload.tile_requests import TileRequestSpec, plan_tile_requests, make_rng

    spec = TileRequestSpec.from_step(step_config)
    for planned in plan_tile_requests(spec, load_region_table(), rng=make_rng(seed=1)):
        ...
"""

import random
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from xyzload.config import Settings, get_settings
from xyzload.errors import ValidationError
from xyzload.logger import get_logger, log_step
from xyzload.regions import RegionNotFound, RegionTable, choose_region, lookup_region
from xyzload.tiles import RandomSource, TileAddress, ZoomRange, pick_random_tile_in_region
from xyzload.validators import validate_region_names, validate_request_count, validate_zoom_range

logger = get_logger(__name__)


class TileRequestSpec(BaseModel):
    """Parameters of one tile request step."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    name: str = "tiles"
    api: str = ""
    suffix: str = ""
    params: list[tuple[str, str]] = Field(default_factory=list)
    regions: list[str]
    no_requests: int = Field(default=1, ge=1, alias="noRequests")
    min_zoom: int | None = Field(default=None, ge=0, alias="minZoom")
    max_zoom: int | None = Field(default=None, ge=0, alias="maxZoom")

    @field_validator("params", mode="before")
    @classmethod
    def _parse_params(cls, value: Any) -> Any:
        # Query pairs in order; a repeated key keeps every value
        if value is None:
            return []
        if isinstance(value, str):
            value = value.lstrip("?")
        if isinstance(value, (str, dict)):
            return httpx.QueryParams(value).multi_items()
        return value

    @field_validator("regions", mode="before")
    @classmethod
    def _check_regions(cls, value: Any) -> list[str]:
        result = validate_region_names(value)
        if not result.valid:
            raise ValueError(result.error)
        return result.value

    @model_validator(mode="after")
    def _check_zoom(self, info: ValidationInfo) -> "TileRequestSpec":
        settings = (info.context or {}).get("settings") or get_settings()
        ceiling = settings.max_zoom
        for field_name in ("min_zoom", "max_zoom"):
            zoom = getattr(self, field_name)
            if zoom is not None and zoom > ceiling:
                raise ValueError(f"{field_name} must be at most {ceiling} (got {zoom})")
        if self.min_zoom is not None and self.max_zoom is not None and self.min_zoom > self.max_zoom:
            raise ValueError(f"min_zoom ({self.min_zoom}) must not exceed max_zoom ({self.max_zoom})")
        return self

    @classmethod
    def from_step(cls, step: dict[str, Any], settings: Settings | None = None) -> "TileRequestSpec":
        """
        Build a spec from a step configuration dict.

        Zoom levels are checked against settings.max_zoom (default: the
        cached settings).

        Raises:
            ValidationError: If the step parameters are invalid
        """
        try:
            return cls.model_validate(step, context={"settings": settings or get_settings()})
        except PydanticValidationError as e:
            first = e.errors(include_url=False)[0]
            field = ".".join(str(part) for part in first["loc"]) or None
            raise ValidationError(
                f"Invalid tile request step: {first['msg']}",
                field=field,
                details={"errors": e.errors(include_url=False)},
            ) from e

    def zoom_range(self, settings: Settings | None = None) -> ZoomRange:
        """Zoom range of the step, falling back to the configured defaults."""
        settings = settings or get_settings()
        low = self.min_zoom if self.min_zoom is not None else settings.default_min_zoom
        high = self.max_zoom if self.max_zoom is not None else settings.default_max_zoom
        return validate_zoom_range(low, high, ceiling=settings.max_zoom).unwrap("zoom")


@dataclass(frozen=True)
class TileRequest:
    """A planned tile request."""

    region: str
    tile: TileAddress
    url: str

    def as_dict(self) -> dict[str, Any]:
        return {"region": self.region, **self.tile.as_dict(), "url": self.url}


def make_rng(settings: Settings | None = None, seed: int | None = None) -> random.Random:
    """
    Create a random source for one caller.

    The explicit seed wins over settings.random_seed; with neither, the
    source is seeded from the OS.
    """
    if seed is None:
        seed = (settings or get_settings()).random_seed
    return random.Random(seed)


def build_tile_url(
    target: str,
    api: str,
    tile: TileAddress,
    params: list[tuple[str, str]] | dict[str, str] | str | None = None,
    token: str | None = None,
    suffix: str = "",
) -> str:
    """
    Format the URL of a tile.

    Produces {target}/{api}/{z}/{x}/{y}{suffix}?{params}&token={token}. The
    token parameter comes last and is left out when no token is set.
    """
    base = target.rstrip("/")
    api_path = api.strip("/")
    if api_path:
        base = f"{base}/{api_path}"

    if isinstance(params, str):
        params = params.lstrip("?")
    query = httpx.QueryParams(params or {})
    if token:
        query = query.set("token", token)

    url = f"{base}/{tile.path}{suffix}"
    if query:
        return str(httpx.URL(url, params=query))
    return str(httpx.URL(url))


def plan_tile_request(
    spec: TileRequestSpec,
    table: RegionTable,
    target: str | None = None,
    token: str | None = None,
    rng: RandomSource | None = None,
    region: str | None = None,
    settings: Settings | None = None,
) -> TileRequest | RegionNotFound:
    """
    Plan one tile request.

    Args:
        spec: Step parameters
        table: Region table to look regions up in
        target: Tile server base URL (default: settings.target_url)
        token: Token appended to the URL (default: settings.api_token)
        rng: Random source used for region and tile choice
        region: Use this region instead of choosing one from spec.regions
        settings: Settings to read defaults from

    Returns:
        The planned TileRequest, or the RegionNotFound from the lookup. The
        caller skips the iteration on a miss.
    """
    settings = settings or get_settings()
    target = target or settings.target_url
    if token is None:
        token = settings.api_token

    if region is None:
        region = choose_region(spec.regions, rng)

    box = lookup_region(table, region)
    if isinstance(box, RegionNotFound):
        return box

    tile = pick_random_tile_in_region(box, spec.zoom_range(settings), rng)
    url = build_tile_url(target, spec.api, tile, spec.params, token, spec.suffix)
    return TileRequest(region=region, tile=tile, url=url)


@log_step(logger, "plan_tile_requests")
def plan_tile_requests(
    spec: TileRequestSpec,
    table: RegionTable,
    count: int | None = None,
    per_request_region: bool = True,
    **kwargs: Any,
) -> list[TileRequest | RegionNotFound]:
    """
    Plan a batch of tile requests.

    Args:
        spec: Step parameters
        table: Region table to look regions up in
        count: Number of requests (default: spec.no_requests)
        per_request_region: Choose a region for every request; when False
            one region is chosen for the whole batch
        **kwargs: Passed to plan_tile_request (target, token, rng, settings)

    Returns:
        One TileRequest or RegionNotFound per planned request
    """
    count = validate_request_count(count if count is not None else spec.no_requests).unwrap("count")

    region = kwargs.pop("region", None)
    if region is None and not per_request_region:
        region = choose_region(spec.regions, kwargs.get("rng"))

    return [
        plan_tile_request(spec, table, region=region, **kwargs)
        for _ in range(count)
    ]
