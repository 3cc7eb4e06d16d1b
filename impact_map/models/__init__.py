"""
Pydantic models shared by the map engine and the API routes.

DESIGN PRINCIPLE:
- Models reflect data structure, not business logic
- Everything derived (bounds, clusters) is recomputed, never stored
"""

from impact_map.models.issue import Issue, Severity, Status
from impact_map.models.map import (
    Bounds,
    Cluster,
    ClusterMarker,
    ClickAction,
    ClickResult,
    InteractionState,
    Legend,
    MapView,
    MarkerKind,
    ViewMode,
    ViewportState,
)
