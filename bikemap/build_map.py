"""Build the bicycle collision map.

Usage:
    bikemap --speed under50 50 --severity serious minor
    python -m bikemap.build_map --config config.yaml --output outputs/map.html
"""
import argparse
import logging

from bikemap.app import BikeMapApp
from bikemap.config import load_config
from bikemap.log import log_step, setup_logging
from bikemap.severity import SEVERITY_CATEGORIES
from bikemap.speed import SPEED_BUCKETS

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Render bicycle collisions and the bike lane network on a web map.")
    parser.add_argument("--config", default=None, help="Path to config.yaml (default: repository config.yaml)")
    parser.add_argument("--collisions", default=None, help="Collision GeoJSON path or URL")
    parser.add_argument("--network", default=None, help="Bike network GeoJSON path or URL")
    parser.add_argument("--speed", nargs="+", default=[], choices=SPEED_BUCKETS, metavar="BUCKET",
                        help=f"Speed buckets to check: {', '.join(SPEED_BUCKETS)}")
    parser.add_argument("--severity", nargs="+", default=[], choices=SEVERITY_CATEGORIES, metavar="CATEGORY",
                        help=f"Severity categories to check: {', '.join(SEVERITY_CATEGORIES)}")
    parser.add_argument("--output", default=None, help="HTML file to write")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser, parser.parse_args(argv)


def main(argv=None):
    parser, args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = load_config(args.config)
        app = BikeMapApp(config)
    except ValueError as e:
        parser.error(str(e))

    for bucket in args.speed:
        app.controls.toggle_speed(bucket, True)
    for category in args.severity:
        app.controls.toggle_severity(category, True)

    with log_step("Load overlays"):
        status = app.load(args.collisions, args.network)
    for name, ok in status.items():
        if not ok:
            logger.warning(f"{name} layer is absent from the map")

    with log_step("Write map"):
        app.save(args.output)


if __name__ == "__main__":
    main()
