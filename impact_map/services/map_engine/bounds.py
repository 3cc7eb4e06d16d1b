"""
Bounds calculator - derives the geographic window for a set of issues.
"""

from typing import Iterable, Optional

from impact_map.models.issue import Issue
from impact_map.models.map import Bounds
from impact_map.services.map_engine.constants import DEFAULT_BOUNDS, GLOBAL_PADDING


def bounds_around(issues: Iterable[Issue], padding: float) -> Optional[Bounds]:
    """
    Extrema of the issues' coordinates, expanded by `padding` degrees on every edge.
    Returns None for an empty input so callers choose their own fallback.
    """
    lats = []
    lngs = []
    for issue in issues:
        lats.append(issue.latitude)
        lngs.append(issue.longitude)
    if not lats:
        return None
    return Bounds(
        min_lat=min(lats) - padding,
        max_lat=max(lats) + padding,
        min_lng=min(lngs) - padding,
        max_lng=max(lngs) + padding,
    )


def compute_global_bounds(
    issues: Iterable[Issue],
    padding: float = GLOBAL_PADDING,
    default: Bounds = DEFAULT_BOUNDS,
) -> Bounds:
    """
    Window covering the whole dataset.

    Empty input yields the default window. A positive padding keeps
    min < max on both axes even when every issue shares one coordinate.
    """
    if padding <= 0:
        raise ValueError(f"Bounds padding must be positive, got {padding}")
    bounds = bounds_around(issues, padding)
    return bounds if bounds is not None else default
