"""
Viewport controller - owns the active bounds window of a map session.

Two modes:
- GLOBAL: bounds follow the latest global bounds of the dataset
- ZOOMED: bounds frozen around a cluster until reset

The current view is a single immutable object, so mode and bounds
always change together.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union
import logging

from impact_map.models.issue import Issue
from impact_map.models.map import Bounds, Cluster, ViewMode
from impact_map.services.map_engine.bounds import bounds_around
from impact_map.services.map_engine.constants import DEFAULT_BOUNDS, ZOOM_PADDING

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobalView:
    bounds: Bounds
    mode = ViewMode.GLOBAL


@dataclass(frozen=True)
class ZoomedView:
    bounds: Bounds
    source_cluster: Cluster
    mode = ViewMode.ZOOMED


View = Union[GlobalView, ZoomedView]


class ViewportController:
    """
    State machine for the viewport.

    Transitions:
    - update_global_bounds: GLOBAL follows, ZOOMED only remembers the value
    - zoom_to: GLOBAL | ZOOMED -> ZOOMED
    - reset: ZOOMED -> GLOBAL (no-op in GLOBAL)
    """

    def __init__(self, global_bounds: Bounds = DEFAULT_BOUNDS, zoom_padding: float = ZOOM_PADDING):
        if zoom_padding <= 0:
            raise ValueError(f"Zoom padding must be positive, got {zoom_padding}")
        self._global_bounds = global_bounds
        self._zoom_padding = zoom_padding
        self._view: View = GlobalView(global_bounds)

    @property
    def view(self) -> View:
        return self._view

    @property
    def bounds(self) -> Bounds:
        return self._view.bounds

    @property
    def mode(self) -> ViewMode:
        return self._view.mode

    @property
    def is_zoomed(self) -> bool:
        return isinstance(self._view, ZoomedView)

    @property
    def global_bounds(self) -> Bounds:
        return self._global_bounds

    @property
    def source_cluster(self) -> Optional[Cluster]:
        if isinstance(self._view, ZoomedView):
            return self._view.source_cluster
        return None

    def update_global_bounds(self, bounds: Bounds) -> None:
        """Store freshly computed global bounds without overriding a zoom."""
        self._global_bounds = bounds
        if not self.is_zoomed:
            self._view = GlobalView(bounds)

    def zoom_to(self, cluster: Cluster, members: Optional[Sequence[Issue]] = None) -> View:
        """
        Freeze the viewport around a cluster.

        Args:
            cluster: Cluster being drilled into
            members: Current versions of the cluster's members. Defaults to
                cluster.members; pass the survivors when the dataset changed.

        An empty member list falls back to the global view instead of failing.
        """
        if members is None:
            members = cluster.members

        bounds = bounds_around(members, self._zoom_padding)
        if bounds is None:
            logger.warning(
                f"Cluster {cluster.id} has no remaining members, falling back to global bounds"
            )
            self._view = GlobalView(self._global_bounds)
            return self._view

        self._view = ZoomedView(bounds=bounds, source_cluster=cluster)
        logger.debug(f"Zoomed to cluster {cluster.id} ({len(members)} members)")
        return self._view

    def reset(self) -> View:
        """Return to the latest global bounds."""
        self._view = GlobalView(self._global_bounds)
        return self._view
