"""
traveling-birder command line.

Commands:
  info             Show settings and which API keys are configured
  notable CODE     Recent locally rare sightings in an eBird region
  top-observers    Regional eBird leaderboard (most species this year)
  search SHAPE     Sightings, top checklists, hotspots and targets for a
                   point, box, driving route or whole region

Exit codes: 0 success, 1 configuration or upstream API failure,
2 invalid search input.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import requests
from pydantic import ValidationError

from traveling_birder import __version__
from traveling_birder.analysis.ranking import rank_observers
from traveling_birder.analysis.sampling import PlanningError
from traveling_birder.analysis.targets import display_sort, unique_species
from traveling_birder.config import get_settings
from traveling_birder.datasources import ebird
from traveling_birder.flows.search import search_observations
from traveling_birder.geometry import bounding_box_around
from traveling_birder.reference.rarity import aba_label
from traveling_birder.reference.search import MAX_LOOKBACK_DAYS
from traveling_birder.schemas import (
    BoundingBox,
    BoxShape,
    Coordinate,
    ListMode,
    PointShape,
    RegionShape,
    RouteShape,
    SearchRequest,
)
from traveling_birder.services.logging import setup_logging
from traveling_birder.services.routing import RoutingError


def _coordinate(text: str) -> Coordinate:
    """Parse ``LAT,LNG`` into a Coordinate."""
    try:
        lat_str, lng_str = text.split(",")
        return Coordinate(lat=float(lat_str), lng=float(lng_str))
    except (ValueError, ValidationError) as exc:
        msg = f"expected LAT,LNG but got {text!r}"
        raise argparse.ArgumentTypeError(msg) from exc


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="traveling-birder",
        description="Find recent eBird sightings, checklists, and target species along a trip",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")

    notable = subparsers.add_parser("notable", help="List recent locally rare sightings in a region")
    notable.add_argument("code", help="eBird region code, e.g. US-OR")
    notable.add_argument("--days", type=int, default=7, help="Days to look back (1-30)")

    leaders = subparsers.add_parser("top-observers", help="Show a region's top observers")
    leaders.add_argument("code", help="eBird region code, e.g. US-OR")
    leaders.add_argument("--year", type=int, default=None, help="Leaderboard year")
    leaders.add_argument("--top-n", type=int, default=None, help="Observers to show")

    search_parser = subparsers.add_parser("search", help="Search recent sightings")
    search_parser.add_argument("--radius-km", type=float, default=None, help="Search radius (km)")
    search_parser.add_argument("--days", type=int, default=None, help="Days to look back (1-30)")
    search_parser.add_argument(
        "--mode",
        choices=[m.value for m in ListMode],
        default=ListMode.ALL.value,
        help="List used to pick target species (default: all)",
    )
    search_parser.add_argument("--top-n", type=int, default=None, help="Checklists/hotspots to keep")
    search_parser.add_argument("--species", default=None, help="Only keep this eBird species code")

    shapes = search_parser.add_subparsers(dest="shape", required=True)

    point = shapes.add_parser("point", help="Search around one location")
    point.add_argument("--lat", type=float, default=None)
    point.add_argument("--lon", type=float, default=None)

    box = shapes.add_parser("box", help="Grid search over a rectangle")
    extent = box.add_mutually_exclusive_group(required=True)
    extent.add_argument(
        "--bbox",
        type=float,
        nargs=4,
        metavar=("SOUTH", "WEST", "NORTH", "EAST"),
    )
    extent.add_argument(
        "--around",
        type=_coordinate,
        metavar="LAT,LNG",
        help="Box centred here, --half-width-km on each side",
    )
    box.add_argument("--half-width-km", type=float, default=50.0)

    route = shapes.add_parser("route", help="Search along a driving route")
    route.add_argument("--origin", type=_coordinate, required=True, metavar="LAT,LNG")
    route.add_argument("--destination", type=_coordinate, required=True, metavar="LAT,LNG")
    route.add_argument(
        "--waypoint",
        type=_coordinate,
        action="append",
        default=[],
        metavar="LAT,LNG",
        help="Intermediate stop (repeatable)",
    )

    region = shapes.add_parser("region", help="Search a whole eBird region")
    region.add_argument("code", help="eBird region code, e.g. US-OR")

    return parser


def build_request(args: argparse.Namespace) -> SearchRequest:
    """Turn parsed ``search`` arguments into a SearchRequest."""
    settings = get_settings()

    if args.shape == "point":
        lat = args.lat if args.lat is not None else settings.lat
        lon = args.lon if args.lon is not None else settings.lon
        shape = PointShape(center=Coordinate(lat=lat, lng=lon))
    elif args.shape == "box":
        if args.around is not None:
            bounds = bounding_box_around(args.around, args.half_width_km)
        else:
            south, west, north, east = args.bbox
            bounds = BoundingBox(south=south, west=west, north=north, east=east)
        shape = BoxShape(bounds=bounds)
    elif args.shape == "route":
        shape = RouteShape(
            origin=args.origin, destination=args.destination, waypoints=args.waypoint
        )
    else:
        shape = RegionShape(region_code=args.code.upper())

    radius = args.radius_km if args.radius_km is not None else settings.default_radius_km
    return SearchRequest(
        shape=shape,
        radius_km=min(radius, settings.max_radius_km),
        lookback_days=args.days if args.days is not None else settings.default_lookback_days,
        list_mode=ListMode(args.mode),
        top_n=args.top_n if args.top_n is not None else settings.top_n,
        species_code=args.species,
    )


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"eBird API key: {'set' if settings.ebird_api_key else 'missing'}")
    print(f"Routing API key: {'set' if settings.ors_api_key else 'missing'}")
    return 0


def cmd_notable(args: argparse.Namespace) -> int:
    """Handle the 'notable' command."""
    settings = get_settings()
    try:
        sightings = ebird.fetch_notable_observations(
            args.code.upper(),
            min(max(args.days, 1), MAX_LOOKBACK_DAYS),
            api_key=settings.ebird_api_key,
        )
    except ebird.MissingAPIKeyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except requests.RequestException as exc:
        print(f"Error: eBird request failed: {exc}", file=sys.stderr)
        return 1

    for obs in display_sort(unique_species(sightings)):
        label = aba_label(obs.aba_code)
        suffix = f" [{label}]" if label else ""
        print(f"{obs.species_name}{suffix}: {obs.loc_name or '?'} ({obs.obs_dt or '?'})")
    print(f"{len(sightings)} notable reports")
    return 0


def cmd_top_observers(args: argparse.Namespace) -> int:
    """Handle the 'top-observers' command."""
    settings = get_settings()
    try:
        observers = ebird.fetch_top_observers(
            args.code.upper(), args.year, api_key=settings.ebird_api_key
        )
    except ebird.MissingAPIKeyError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except requests.RequestException as exc:
        print(f"Error: eBird request failed: {exc}", file=sys.stderr)
        return 1

    top_n = args.top_n if args.top_n is not None else settings.top_n
    for i, obs in enumerate(rank_observers(observers, top_n), 1):
        print(
            f"{i:>3}. {obs.display_name}: "
            f"{obs.num_species} species, {obs.num_checklists} checklists"
        )
    if not observers:
        print("No observers reported")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Handle the 'search' command."""
    settings = get_settings()
    if not settings.ebird_api_key:
        print("Error: eBird API key not configured (set BIRDER_EBIRD_API_KEY)", file=sys.stderr)
        return 1

    try:
        request = build_request(args)
    except ValidationError as exc:
        print(f"Error: invalid search: {exc}", file=sys.stderr)
        return 2

    try:
        summary = asyncio.run(
            search_observations(
                request,
                ebird_api_key=settings.ebird_api_key,
                ors_api_key=settings.ors_api_key,
                spacing_miles=settings.grid_spacing_miles,
                max_points=settings.max_sample_points,
                life_list_region=settings.life_list_region,
            )
        )
    except PlanningError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except RoutingError as exc:
        print(f"Error: could not plan route: {exc}", file=sys.stderr)
        return 1
    except requests.RequestException as exc:
        print(f"Error: eBird request failed: {exc}", file=sys.stderr)
        return 1

    for name, value in summary.items():
        print(f"{name}: {value}")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    settings = get_settings()
    setup_logging("DEBUG" if args.debug or settings.debug else settings.log_level)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "notable": cmd_notable,
        "top-observers": cmd_top_observers,
        "search": cmd_search,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
