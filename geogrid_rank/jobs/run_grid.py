"""CLI job to run a grid rank search around a center coordinate."""

import argparse
import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from geogrid_rank.core.config import ConfigurationError, get_settings
from geogrid_rank.core.geogrid import generate_grid_for_config
from geogrid_rank.core.models import DistanceUnit, GridConfig, GridSearchReport
from geogrid_rank.core.orchestrator import GridSearchRunner, ValidationError
from geogrid_rank.etl.transform import report_to_csv, report_to_payload

logger = logging.getLogger(__name__)


def run_grid_job(
    *,
    latitude: float,
    longitude: float,
    keyword: str,
    target: str,
    spacing: float,
    grid_size: int,
    unit: DistanceUnit,
    country: Optional[str] = None,
    csv_path: Optional[Path] = None,
) -> GridSearchReport:
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise ValueError("Center coordinates are out of range")
    if not math.isfinite(spacing) or spacing <= 0 or grid_size <= 0:
        raise ValueError("spacing and grid size must be positive")

    config = GridConfig(spacing=spacing, grid_size=grid_size, distance_unit=unit)
    points = generate_grid_for_config(latitude, longitude, config)
    logger.info("Generated %d grid points around %.6f,%.6f", len(points), latitude, longitude)

    runner = GridSearchRunner(settings=get_settings())
    report = runner.run(points, keyword, target, locale=country)

    if csv_path is not None:
        content = report_to_csv(report, generated_at=datetime.now(timezone.utc).isoformat(), grid_config=config)
        csv_path.write_text(content, encoding="utf-8")
        logger.info("Wrote CSV report to %s", csv_path)

    logger.info(
        "Completed run: points=%d found=%d avg_rank=%s",
        report.total_points,
        report.summary.found_count,
        report.summary.avg_rank,
    )
    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a grid rank search")
    parser.add_argument("--lat", dest="latitude", type=float, required=True, help="Center latitude")
    parser.add_argument("--lng", dest="longitude", type=float, required=True, help="Center longitude")
    parser.add_argument("--keyword", dest="keyword", required=True, help="Search keyword")
    parser.add_argument("--target", dest="target", required=True, help="Target website or domain")
    parser.add_argument("--spacing", dest="spacing", type=float, default=1.0, help="Distance between points")
    parser.add_argument("--grid-size", dest="grid_size", type=int, default=7, help="Points per side (odd)")
    parser.add_argument(
        "--unit",
        dest="unit",
        type=DistanceUnit,
        choices=list(DistanceUnit),
        default=DistanceUnit.MILES,
        help="Unit of --spacing",
    )
    parser.add_argument(
        "--country",
        dest="country",
        default=get_settings().default_country_code,
        help="Country code used as search locale",
    )
    parser.add_argument("--csv", dest="csv_path", type=Path, help="Also write a CSV report to this path")
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    try:
        report = run_grid_job(
            latitude=args.latitude,
            longitude=args.longitude,
            keyword=args.keyword,
            target=args.target,
            spacing=args.spacing,
            grid_size=args.grid_size,
            unit=args.unit,
            country=args.country,
            csv_path=args.csv_path,
        )
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except (ValidationError, ValueError) as exc:
        logger.error("Invalid grid search: %s", exc)
        raise SystemExit(2) from exc

    print(json.dumps(report_to_payload(report), indent=2))


if __name__ == "__main__":
    main()
