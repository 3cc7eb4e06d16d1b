"""
Projector - linear mapping from lat/lng into the 0..100 map plane.

This is a flat normalization of the bounds window, not a cartographic
projection. Latitude is inverted so north is up (y grows downward on screen).
"""

from typing import Tuple

from impact_map.models.map import Bounds
from impact_map.services.map_engine.constants import DEGENERATE_AXIS_VALUE


def project(latitude: float, longitude: float, bounds: Bounds) -> Tuple[float, float]:
    """
    Project a coordinate into normalized space.

    Coordinates inside `bounds` land in [0, 100] on both axes; outside
    coordinates are not clamped. An axis with zero (or negative) span
    projects to the midpoint instead of dividing by zero.
    """
    lng_span = bounds.max_lng - bounds.min_lng
    lat_span = bounds.max_lat - bounds.min_lat

    if lng_span > 0:
        x = (longitude - bounds.min_lng) / lng_span * 100
    else:
        x = DEGENERATE_AXIS_VALUE

    if lat_span > 0:
        y = 100 - (latitude - bounds.min_lat) / lat_span * 100
    else:
        y = DEGENERATE_AXIS_VALUE

    return x, y
