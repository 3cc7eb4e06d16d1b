"""
Clustering engine - groups projected issues into map clusters.

Uses a greedy single-pass approach: each issue joins the nearest cluster
formed so far whose centroid is closer than the threshold, otherwise it
starts a new cluster.

NOTES:
- Order dependent: centroids drift as members join, so the final centroid
  is the running mean in processing order and the grouping at density
  boundaries depends on input order.
- O(n * k) for k clusters. Fine for a few hundred issues; larger datasets
  need a spatial index.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from impact_map.models.issue import Issue
from impact_map.models.map import Bounds, Cluster
from impact_map.services.map_engine.constants import CLUSTER_THRESHOLD
from impact_map.services.map_engine.projector import project


@dataclass
class ClusterAccumulator:
    """In-progress cluster for one clustering pass."""
    id: str
    count: int = 0
    sum_x: float = 0.0
    sum_y: float = 0.0
    is_high_priority: bool = False
    members: List[Issue] = field(default_factory=list)

    @property
    def x(self) -> float:
        return self.sum_x / self.count if self.count else 0.0

    @property
    def y(self) -> float:
        return self.sum_y / self.count if self.count else 0.0

    def add(self, issue: Issue, x: float, y: float) -> None:
        self.members.append(issue)
        self.count += 1
        self.sum_x += x
        self.sum_y += y
        if issue.is_critical:
            self.is_high_priority = True

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.x - x, self.y - y)

    def freeze(self) -> Cluster:
        return Cluster(
            id=self.id,
            x=self.x,
            y=self.y,
            members=list(self.members),
            is_high_priority=self.is_high_priority,
        )


def visible_issues(issues: Iterable[Issue], bounds: Bounds) -> List[Issue]:
    """Issues inside the active bounds (edges included), in input order."""
    return [issue for issue in issues if bounds.contains(issue.latitude, issue.longitude)]


def cluster_issues(
    issues: Sequence[Issue],
    bounds: Bounds,
    threshold: float = CLUSTER_THRESHOLD,
) -> List[Cluster]:
    """
    Cluster already-culled issues in input order.

    Args:
        issues: Issues inside `bounds` (see visible_issues)
        bounds: Active window used for projection
        threshold: Join distance in normalized units (strictly less than)

    Returns:
        Clusters ordered by when their first member was encountered.
        A cluster's id is its first member's id.
    """
    accumulators: List[ClusterAccumulator] = []

    for issue in issues:
        x, y = project(issue.latitude, issue.longitude, bounds)

        nearest = None
        nearest_distance = threshold
        for acc in accumulators:
            distance = acc.distance_to(x, y)
            # Strict comparison keeps the earliest cluster on ties
            if distance < nearest_distance:
                nearest = acc
                nearest_distance = distance

        if nearest is None:
            nearest = ClusterAccumulator(id=issue.id)
            accumulators.append(nearest)
        nearest.add(issue, x, y)

    return [acc.freeze() for acc in accumulators]


def compute_clusters(
    issues: Sequence[Issue],
    bounds: Bounds,
    threshold: float = CLUSTER_THRESHOLD,
) -> List[Cluster]:
    """Cull to `bounds` then cluster. The full per-frame recomputation."""
    return cluster_issues(visible_issues(issues, bounds), bounds, threshold)
