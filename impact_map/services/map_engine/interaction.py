"""
Interaction layer - one map session's selection and drill-down state.

A MapSession holds the issue snapshot, the viewport controller and the
selection (a selected issue OR an active multi-member cluster, never both).
Clusters are recomputed from (snapshot, active bounds) whenever asked for;
they are never carried across a transition.

States (see InteractionState):
    GLOBAL_NO_SELECTION  --click singleton-->   GLOBAL_ISSUE_SELECTED
    GLOBAL_NO_SELECTION  --click multi-->       GLOBAL_CLUSTER_ACTIVE
    any                  --zoom_to_cluster-->   ZOOMED_NO_SELECTION
    any                  --reset-->             GLOBAL_NO_SELECTION
"""

from typing import Callable, Dict, Iterable, List, Optional, Tuple
import logging

from impact_map.models.issue import Issue
from impact_map.models.map import (
    Bounds,
    ClickAction,
    ClickResult,
    Cluster,
    ClusterMarker,
    InteractionState,
    Legend,
    MarkerKind,
    ViewportState,
)
from impact_map.services.map_engine import constants
from impact_map.services.map_engine.bounds import compute_global_bounds
from impact_map.services.map_engine.clustering import cluster_issues, visible_issues
from impact_map.services.map_engine.viewport import ViewportController

logger = logging.getLogger(__name__)

IssueCallback = Callable[[Optional[Issue]], None]
ClusterCallback = Callable[[Optional[Cluster]], None]


def is_renderable(cluster: Cluster, margin: float = constants.RENDER_MARGIN) -> bool:
    """Display-only guard: centroid within the plane plus a soft margin."""
    low, high = -margin, 100 + margin
    return low <= cluster.x <= high and low <= cluster.y <= high


def heat_radius(cluster: Cluster) -> float:
    return 6.0 + cluster.size if cluster.is_multi else 5.0


class MapSession:
    """
    Interactive state for one map view.

    Args:
        issues: Initial snapshot (copied into a tuple)
        on_issue_selected: Called with the selected Issue, or None when cleared
        on_cluster_opened: Called with the opened Cluster, or None when closed
    """

    def __init__(
        self,
        issues: Iterable[Issue] = (),
        on_issue_selected: Optional[IssueCallback] = None,
        on_cluster_opened: Optional[ClusterCallback] = None,
        cluster_threshold: float = constants.CLUSTER_THRESHOLD,
        global_padding: float = constants.GLOBAL_PADDING,
        zoom_padding: float = constants.ZOOM_PADDING,
        render_margin: float = constants.RENDER_MARGIN,
    ):
        if cluster_threshold <= 0:
            raise ValueError(f"Cluster threshold must be positive, got {cluster_threshold}")
        if global_padding <= 0:
            raise ValueError(f"Bounds padding must be positive, got {global_padding}")
        if render_margin < 0:
            raise ValueError(f"Render margin must not be negative, got {render_margin}")

        self._on_issue_selected = on_issue_selected
        self._on_cluster_opened = on_cluster_opened
        self._cluster_threshold = cluster_threshold
        self._global_padding = global_padding
        self._render_margin = render_margin

        self._issues: Tuple[Issue, ...] = ()
        self._index: Dict[str, Issue] = {}
        self._selected_issue_id: Optional[str] = None
        self._active_cluster: Optional[Cluster] = None

        self.viewport = ViewportController(zoom_padding=zoom_padding)
        self.set_issues(issues)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @property
    def issues(self) -> Tuple[Issue, ...]:
        return self._issues

    def set_issues(self, issues: Iterable[Issue]) -> None:
        """
        Replace the issue snapshot and recompute global bounds.
        While zoomed the active bounds are kept; reset restores the new value.

        Repeated ids keep their first occurrence so cluster ids stay unique.
        A selection whose issue left the snapshot is cleared.
        """
        unique: List[Issue] = []
        index: Dict[str, Issue] = {}
        for issue in issues:
            if issue.id in index:
                logger.warning(f"Dropping duplicate issue id {issue.id} from map snapshot")
                continue
            index[issue.id] = issue
            unique.append(issue)

        self._issues = tuple(unique)
        self._index = index
        self.viewport.update_global_bounds(
            compute_global_bounds(self._issues, padding=self._global_padding)
        )
        if self._selected_issue_id is not None and self._selected_issue_id not in self._index:
            self._set_selection(None)
        logger.debug(f"Map snapshot updated: {len(self._issues)} issues")

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        return self._index.get(issue_id)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def bounds(self) -> Bounds:
        return self.viewport.bounds

    @property
    def is_zoomed(self) -> bool:
        return self.viewport.is_zoomed

    def visible_issues(self) -> List[Issue]:
        return visible_issues(self._issues, self.viewport.bounds)

    def clusters(self) -> List[Cluster]:
        return cluster_issues(self.visible_issues(), self.viewport.bounds, self._cluster_threshold)

    def find_cluster(self, cluster_id: str, renderable_only: bool = False) -> Optional[Cluster]:
        """Look up a cluster of the current frame; renderable_only matches what markers() draws."""
        for cluster in self.clusters():
            if cluster.id != cluster_id:
                continue
            if renderable_only and not is_renderable(cluster, self._render_margin):
                return None
            return cluster
        return None

    def markers(self, clusters: Optional[List[Cluster]] = None) -> List[ClusterMarker]:
        """Clusters that pass the render guard, with display hints."""
        if clusters is None:
            clusters = self.clusters()

        markers = []
        for cluster in clusters:
            if not is_renderable(cluster, self._render_margin):
                continue
            is_selected = not cluster.is_multi and cluster.members[0].id == self._selected_issue_id
            if is_selected:
                kind = MarkerKind.SELECTED
            elif cluster.is_multi:
                kind = MarkerKind.MULTI
            elif cluster.is_high_priority:
                kind = MarkerKind.CRITICAL
            else:
                kind = MarkerKind.DEFAULT
            markers.append(ClusterMarker(
                **dict(cluster),
                kind=kind,
                is_selected=is_selected,
                heat_radius=heat_radius(cluster),
                label=str(cluster.size) if cluster.is_multi else None,
            ))
        return markers

    def legend(self, markers: Optional[List[ClusterMarker]] = None) -> Legend:
        if markers is None:
            markers = self.markers()
        return Legend(
            cluster_count=len(markers),
            high_priority_count=sum(1 for m in markers if m.is_high_priority),
            visible_issue_count=len(self.visible_issues()),
            is_zoomed=self.is_zoomed,
        )

    @property
    def selected_issue(self) -> Optional[Issue]:
        if self._selected_issue_id is None:
            return None
        return self._index.get(self._selected_issue_id)

    @property
    def active_cluster(self) -> Optional[Cluster]:
        return self._active_cluster

    @property
    def interaction_state(self) -> InteractionState:
        prefix = self.viewport.mode.value
        if self._active_cluster is not None:
            suffix = "CLUSTER_ACTIVE"
        elif self._selected_issue_id is not None:
            suffix = "ISSUE_SELECTED"
        else:
            suffix = "NO_SELECTION"
        return InteractionState(f"{prefix}_{suffix}")

    @property
    def state(self) -> ViewportState:
        return ViewportState(
            bounds=self.viewport.bounds,
            mode=self.viewport.mode,
            active_cluster=self._active_cluster,
            selected_issue_id=self._selected_issue_id,
            interaction_state=self.interaction_state,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def click_cluster(self, cluster: Cluster) -> ClickResult:
        """
        Resolve a click on a rendered cluster marker.
        Multi-member clusters open the detail view, singletons select their issue.
        """
        if cluster.is_multi:
            self._set_selection(None)
            self._set_active_cluster(cluster)
            return ClickResult(action=ClickAction.CLUSTER_OPENED, cluster=cluster)

        issue = cluster.members[0]
        self._set_active_cluster(None)
        self._set_selection(issue)
        return ClickResult(action=ClickAction.ISSUE_SELECTED, issue=issue, cluster=cluster)

    def select_issue(self, issue_id: Optional[str]) -> Optional[Issue]:
        """
        Select an issue by id (e.g. from a list) or clear with None.
        Unknown ids clear the selection.
        """
        issue = self._index.get(issue_id) if issue_id is not None else None
        if issue_id is not None and issue is None:
            logger.info(f"Ignoring selection of unknown issue {issue_id}")
        if issue is not None:
            self._set_active_cluster(None)
        self._set_selection(issue)
        return issue

    def zoom_to_cluster(self, cluster: Cluster) -> ViewportState:
        """
        Drill down into a cluster.

        Members that vanished from the current snapshot are dropped and the
        survivors' current coordinates are used; with no survivors the
        viewport falls back to the global bounds.
        """
        survivors = [self._index[m.id] for m in cluster.members if m.id in self._index]
        if len(survivors) < len(cluster.members):
            logger.info(
                f"Cluster {cluster.id}: {len(cluster.members) - len(survivors)} members no longer in dataset"
            )
        self.viewport.zoom_to(cluster, survivors)
        self._set_active_cluster(None)
        self._set_selection(None)
        return self.state

    def reset(self) -> ViewportState:
        """Reset control / background click."""
        if self.viewport.is_zoomed:
            self.viewport.reset()
        self._set_active_cluster(None)
        self._set_selection(None)
        return self.state

    def _set_selection(self, issue: Optional[Issue]) -> None:
        self._selected_issue_id = issue.id if issue is not None else None
        if self._on_issue_selected is not None:
            self._on_issue_selected(issue)

    def _set_active_cluster(self, cluster: Optional[Cluster]) -> None:
        previous = self._active_cluster
        self._active_cluster = cluster
        if self._on_cluster_opened is not None and (previous is not None or cluster is not None):
            self._on_cluster_opened(cluster)
