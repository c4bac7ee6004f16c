"""
Command-line front end for xyzload.

Samples random tiles for named regions (or an explicit bounding box) and
writes them to stdout, one per line, for use as a load-test payload file.
Diagnostics go to stderr through the logger.

Usage:
    # Ten tile URLs in France or Germany, zoom 4-12
    xyzload sample --region France --region Germany --count 10 \\
        --min-zoom 4 --max-zoom 12 --api /api/tiles/roads --format url

    # Reproducible CSV payload for a bounding box
    xyzload sample --bbox=-11,45,6,62 --count 100 --seed 42 --format csv

    # List known regions
    xyzload regions --with-extent

Environment variables:
    TARGET_URL   - Tile server base URL (default: http://localhost:3000)
    API_TOKEN    - Token appended to tile URLs (KEY is accepted too)
    REGIONS_FILE - Region data file (default: bundled data)
    RANDOM_SEED  - Seed used when --seed is not given
"""

import argparse
import csv
import json
import sys

from xyzload.config import Settings, get_settings
from xyzload.errors import ValidationError, XYZLoadError
from xyzload.logger import StepLogger, get_logger
from xyzload.regions import RegionNotFound, RegionTable, load_region_table
from xyzload.tile_requests import TileRequest, TileRequestSpec, make_rng, plan_tile_requests
from xyzload.validators import validate_bbox

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

BBOX_REGION = "bbox"


def _load_table(args: argparse.Namespace, settings: Settings) -> RegionTable:
    if args.regions_file:
        return RegionTable.from_json_file(args.regions_file)
    return load_region_table(settings)


def _write_requests(requests: list[TileRequest], fmt: str) -> None:
    out = sys.stdout
    if fmt == "csv":
        writer = csv.writer(out, lineterminator="\n")
        writer.writerow(["region", "z", "x", "y", "url"])
        for req in requests:
            writer.writerow([req.region, req.tile.z, req.tile.x, req.tile.y, req.url])
    elif fmt == "url":
        for req in requests:
            out.write(req.url + "\n")
    else:
        for req in requests:
            out.write(json.dumps(req.as_dict()) + "\n")


def cmd_sample(args: argparse.Namespace, settings: Settings) -> int:
    """Sample tiles and write them to stdout."""
    if args.bbox:
        box = validate_bbox(args.bbox).unwrap("bbox")
        table = RegionTable({BBOX_REGION: box})
        regions = [BBOX_REGION]
    else:
        table = _load_table(args, settings)
        regions = args.region

    spec = TileRequestSpec.from_step({
        "name": "cli",
        "api": args.api,
        "params": args.params,
        "suffix": args.suffix,
        "regions": regions,
        "noRequests": args.count,
        "minZoom": args.min_zoom,
        "maxZoom": args.max_zoom,
    }, settings)

    with StepLogger(logger, "sample", regions=regions, count=args.count) as log:
        planned = plan_tile_requests(
            spec,
            table,
            rng=make_rng(settings, args.seed),
            target=args.target,
            settings=settings,
        )
        requests = [p for p in planned if isinstance(p, TileRequest)]
        misses = len(planned) - len(requests)
        log.set_result({"count": len(requests), "misses": misses})

    if misses:
        skipped = sorted({p.name for p in planned if isinstance(p, RegionNotFound)})
        logger.warning(
            f"Skipped {misses} requests for unknown regions",
            extra={"regions": ",".join(skipped)},
        )

    _write_requests(requests, args.format)
    return EXIT_OK if requests else EXIT_FAILURE


def cmd_regions(args: argparse.Namespace, settings: Settings) -> int:
    """List region names, optionally with their extents."""
    table = _load_table(args, settings)
    for name in table.names(with_extent_only=args.with_extent):
        if args.with_extent:
            sys.stdout.write(json.dumps({"name": name, **table[name].as_dict()}) + "\n")
        else:
            sys.stdout.write(name + "\n")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xyzload",
        description="Sample random map tiles inside geographic regions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    xyzload sample --region France --count 10 --format url
    xyzload sample --bbox=-11,45,6,62 --seed 42 --format csv
    xyzload regions --with-extent

Environment variables:
    TARGET_URL, API_TOKEN (or KEY), REGIONS_FILE, RANDOM_SEED, LOG_LEVEL
        """,
    )
    parser.add_argument(
        "--regions-file",
        type=str,
        help="Region data file (overrides REGIONS_FILE)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sample = subparsers.add_parser("sample", help="Sample random tiles")
    where = sample.add_mutually_exclusive_group(required=True)
    where.add_argument(
        "--region", "-r",
        action="append",
        help="Region name (repeat to sample across several regions)",
    )
    where.add_argument(
        "--bbox",
        type=str,
        help="Bounding box as 'west,south,east,north'",
    )
    sample.add_argument("--min-zoom", type=int, help="Lowest zoom level")
    sample.add_argument("--max-zoom", type=int, help="Highest zoom level")
    sample.add_argument("--count", "-n", type=int, default=1, help="Number of tiles (default: 1)")
    sample.add_argument("--seed", type=int, help="Random seed (overrides RANDOM_SEED)")
    sample.add_argument(
        "--format", "-f",
        choices=["json", "csv", "url"],
        default="json",
        help="Output format (default: json)",
    )
    sample.add_argument("--target", type=str, help="Tile server base URL (overrides TARGET_URL)")
    sample.add_argument("--api", type=str, default="", help="Tile API path, e.g. /api/tiles/roads")
    sample.add_argument("--params", type=str, default="", help="Query string added to tile URLs")
    sample.add_argument("--suffix", type=str, default="", help="Appended after z/x/y, e.g. .pbf")
    sample.set_defaults(handler=cmd_sample)

    regions = subparsers.add_parser("regions", help="List known regions")
    regions.add_argument(
        "--with-extent",
        action="store_true",
        help="Only regions with extent data, printed with their boxes",
    )
    regions.set_defaults(handler=cmd_regions)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    try:
        return args.handler(args, settings)
    except ValidationError as e:
        logger.error(f"Invalid arguments: {e.message}", extra={"code": e.code.value})
        return EXIT_USAGE
    except XYZLoadError as e:
        logger.error(e.message, extra={"code": e.code.value})
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
