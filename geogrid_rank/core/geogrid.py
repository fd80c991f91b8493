"""Lattice generation around a center coordinate."""

import logging
import math
from typing import Iterable, List, Union

from geogrid_rank.core.models import DistanceUnit, GridConfig, GridPoint

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.34
METERS_PER_DEGREE_LAT = 111320


def point_id(row: int, col: int) -> str:
    return f"{row}_{col}"


def spacing_in_meters(spacing: float, unit: Union[DistanceUnit, str]) -> float:
    if DistanceUnit(unit) is DistanceUnit.MILES:
        return spacing * METERS_PER_MILE
    return spacing


def generate_grid(
    center_lat: float,
    center_lng: float,
    spacing: float,
    grid_size: int,
    unit: Union[DistanceUnit, str] = DistanceUnit.METERS,
) -> List[GridPoint]:
    """Build a grid_size x grid_size lattice in row-major order.

    Offsets are applied in degrees using an equirectangular approximation, so
    the longitude step widens with latitude. Poles are not guarded: at
    +/-90 degrees the longitude step blows up.
    """
    if grid_size % 2 == 0:
        logger.warning("Even grid_size=%s expands to a %sx%s lattice.", grid_size, grid_size + 1, grid_size + 1)

    half = grid_size // 2
    spacing_m = spacing_in_meters(spacing, unit)
    lat_step = spacing_m / METERS_PER_DEGREE_LAT
    lng_step = spacing_m / (METERS_PER_DEGREE_LAT * math.cos(math.radians(center_lat)))

    points: List[GridPoint] = []
    for row in range(-half, half + 1):
        for col in range(-half, half + 1):
            points.append(
                GridPoint(
                    id=point_id(row, col),
                    latitude=center_lat + row * lat_step,
                    longitude=center_lng + col * lng_step,
                    row=row,
                    col=col,
                    is_center=row == 0 and col == 0,
                    is_selected=True,
                )
            )
    return points


def generate_grid_for_config(center_lat: float, center_lng: float, config: GridConfig) -> List[GridPoint]:
    return generate_grid(center_lat, center_lng, config.spacing, config.grid_size, config.distance_unit)


def selected_points(points: Iterable[GridPoint]) -> List[GridPoint]:
    return [point for point in points if point.is_selected]
