"""Main entry point: find the aircraft nearest to a coordinate."""

import argparse
import logging
import sys
from pathlib import Path

import config
from coordinates import parse_coordinate
from errors import NearestFlightError, NoFlightsFoundError, ParseError
from flight_data import OpenSkyClient, decode_states
from flight_processor import airborne, format_result, nearest_flight, rank_flights

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Find the aircraft nearest to a coordinate using the OpenSky Network feed.",
    )
    parser.add_argument(
        "coordinate",
        nargs="*",
        help='latitude and longitude, e.g. "51.5, -0.1" or 12.5 N 14.75 W (read from stdin if omitted)',
    )
    parser.add_argument(
        "--input",
        type=Path,
        help="read a saved states/all JSON document instead of calling the API",
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=config.SEARCH_RADIUS_KM,
        help="only query aircraft within this many km (default: whole world)",
    )
    parser.add_argument(
        "--airborne-only",
        action="store_true",
        default=config.EXCLUDE_ON_GROUND,
        help="ignore aircraft reported on the ground",
    )
    parser.add_argument(
        "--top",
        type=_positive_int,
        metavar="N",
        help="list the N nearest aircraft instead of only the closest",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def run(args: argparse.Namespace, stdin=None) -> str:
    """Resolve one query and return the formatted result."""
    if args.coordinate:
        text = " ".join(args.coordinate)
    else:
        text = (stdin or sys.stdin).read()
    reference = parse_coordinate(text)

    if args.input is not None:
        logger.info("Reading states from %s", args.input)
        flights = decode_states(args.input.read_bytes())
    else:
        client = OpenSkyClient()
        bbox = None
        if args.radius is not None:
            bbox = client.get_bounding_box(reference.latitude, reference.longitude, args.radius)
            if bbox is None:
                logger.info("Search radius crosses the antimeridian or a pole, querying all states")
        flights = client.fetch_states(bbox)

    if args.airborne_only:
        flights = airborne(flights)

    logger.info(
        "Plane states with known coordinates: %d of %d",
        sum(1 for f in flights if f.position is not None), len(flights),
    )
    if args.top is not None:
        ranked = rank_flights(reference, flights, limit=args.top)
        if not ranked:
            raise NoFlightsFoundError("No flights with a known position")
        return "\n\n".join(format_result(r) for r in ranked)

    result = nearest_flight(reference, flights)
    logger.info("Nearest: %s at %.3f km", result.flight.icao24, result.distance)
    return format_result(result)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        output = run(args)
    except ParseError as e:
        logger.debug("Invalid coordinate", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 2
    except (NearestFlightError, OSError) as e:
        logger.debug("Query failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
