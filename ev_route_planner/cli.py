"""
EV Route Planner - command-line entry point.

Example::

    ev-route-planner "New Delhi" "Agra" --current-charge 80 --final-charge 20 \\
        --max-range 300 --stations-csv stations.csv --start-time 2024-05-01T08:00
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from ev_route_planner.config import PlannerConfig
from ev_route_planner.errors import PlannerError
from ev_route_planner.planner import RoutePlanner
from ev_route_planner.providers import (
    CompositeStationRegistry,
    CsvStationRegistry,
    OverpassStationRegistry,
)
from ev_route_planner.providers.google_maps import (
    GoogleMapsGeocoder,
    GoogleMapsRouteProvider,
    close_client,
    create_client,
)
from ev_route_planner.routing import RouteFamily, RouteOptions
from ev_route_planner.vehicle import VehicleConfig


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Plan an EV trip with range-aware charging stops",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Trip
    parser.add_argument("origin", help="Origin as 'lat,lng' or a place name")
    parser.add_argument("destination", help="Destination as 'lat,lng' or a place name")
    parser.add_argument(
        "--start-time", type=datetime.fromisoformat, default=None,
        help="Departure time (ISO 8601) for arrival estimates"
    )

    # Vehicle
    parser.add_argument(
        "--current-charge", type=float, default=80.0,
        help="State of charge at departure in percent"
    )
    parser.add_argument(
        "--final-charge", type=float, default=20.0,
        help="Charge to keep on arrival in percent"
    )
    parser.add_argument(
        "--max-range", type=float, default=300.0,
        help="Range on a full battery in kilometers"
    )

    # Route options
    parser.add_argument(
        "--route-family", type=str, default="FASTEST",
        choices=[f.name for f in RouteFamily],
        help="Route strategy"
    )
    parser.add_argument("--avoid-highways", action="store_true", help="Avoid highways")
    parser.add_argument("--avoid-tolls", action="store_true", help="Avoid toll roads")

    # Station sources
    parser.add_argument(
        "--stations-csv", type=str, action="append", default=[],
        help="CSV file of registered stations (repeatable; earlier files win on duplicates)"
    )
    parser.add_argument(
        "--osm-stations", action="store_true",
        help="Also list public charging stations from OpenStreetMap"
    )
    parser.add_argument(
        "--only-available", action="store_true",
        help="Skip stations that are not available or have no free slots"
    )

    # Output
    parser.add_argument(
        "--output-json", type=str, default=None,
        help="Write the full plan as JSON to this path"
    )
    parser.add_argument("--quiet", action="store_true", help="Reduce output verbosity")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline decisions")

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for route planning."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    vehicle = VehicleConfig(
        current_charge_pct=args.current_charge,
        final_charge_pct=args.final_charge,
        max_range_km=args.max_range,
    )
    options = RouteOptions(
        avoid_highways=args.avoid_highways,
        avoid_tolls=args.avoid_tolls,
        route_family=RouteFamily[args.route_family],
    )
    config = PlannerConfig(only_available_stations=args.only_available)

    registries = [CsvStationRegistry(path) for path in args.stations_csv]
    osm_registry = None
    if args.osm_stations:
        osm_registry = OverpassStationRegistry()
        registries.append(osm_registry)
    station_registry = CompositeStationRegistry(registries) if registries else None

    if not args.quiet:
        print("=" * 70)
        print("EV ROUTE PLANNER")
        print("=" * 70)
        print(f"Trip: {args.origin} -> {args.destination}")
        print(f"Vehicle: {args.current_charge:.0f}% now, {args.final_charge:.0f}% on arrival, "
              f"{args.max_range:.0f} km max range")
        print(f"Route: {options.route_family.value}"
              f"{', avoid highways' if options.avoid_highways else ''}"
              f"{', avoid tolls' if options.avoid_tolls else ''}")
        sources = [Path(p).name for p in args.stations_csv]
        if args.osm_stations:
            sources.append("OpenStreetMap")
        print(f"Stations: {' + '.join(sources) if sources else 'none'}")
        print("=" * 70)
        print()

    try:
        client = create_client()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        planner = RoutePlanner(
            GoogleMapsRouteProvider(client),
            geocoder=GoogleMapsGeocoder(client),
            station_registry=station_registry,
            config=config,
        )
        result = planner.plan_route(
            args.origin, args.destination, vehicle,
            route_options=options, start_time=args.start_time,
        )
    except PlannerError as e:
        print(f"Planning failed ({type(e).__name__}): {e}", file=sys.stderr)
        return 1
    finally:
        close_client(client)
        if osm_registry is not None:
            osm_registry.close()

    print(result.summary())

    if args.output_json:
        output_path = Path(args.output_json)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
        if not args.quiet:
            print(f"\nPlan saved to: {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
