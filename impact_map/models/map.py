"""
Pydantic models for the incident map: bounds, clusters and session views.
These are derived values; nothing here is persisted.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum

from impact_map.models.issue import Issue


class Bounds(BaseModel):
    """
    Rectangular geographic window in degrees.
    Bounds produced by the calculator always have strictly positive spans.
    """
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    class Config:
        frozen = True

    @property
    def lat_span(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def lng_span(self) -> float:
        return self.max_lng - self.min_lng

    @property
    def is_valid(self) -> bool:
        return self.min_lat < self.max_lat and self.min_lng < self.max_lng

    def contains(self, latitude: float, longitude: float) -> bool:
        """Inclusive on every edge."""
        return (
            self.min_lat <= latitude <= self.max_lat
            and self.min_lng <= longitude <= self.max_lng
        )


class ViewMode(str, Enum):
    GLOBAL = "GLOBAL"   # Bounds track the whole dataset
    ZOOMED = "ZOOMED"   # Bounds frozen to a cluster until reset


class InteractionState(str, Enum):
    """Composite map session state (viewport mode x selection)."""
    GLOBAL_NO_SELECTION = "GLOBAL_NO_SELECTION"
    GLOBAL_ISSUE_SELECTED = "GLOBAL_ISSUE_SELECTED"
    GLOBAL_CLUSTER_ACTIVE = "GLOBAL_CLUSTER_ACTIVE"
    ZOOMED_NO_SELECTION = "ZOOMED_NO_SELECTION"
    ZOOMED_ISSUE_SELECTED = "ZOOMED_ISSUE_SELECTED"
    ZOOMED_CLUSTER_ACTIVE = "ZOOMED_CLUSTER_ACTIVE"


class Cluster(BaseModel):
    """
    Group of issues whose projections fell within the proximity threshold.
    x/y is the running centroid in normalized (0..100) space.
    """
    id: str
    x: float
    y: float
    members: List[Issue]
    is_high_priority: bool = False

    class Config:
        frozen = True

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_multi(self) -> bool:
        return len(self.members) > 1


class MarkerKind(str, Enum):
    MULTI = "multi"
    SELECTED = "selected"
    CRITICAL = "critical"
    DEFAULT = "default"


class ClusterMarker(Cluster):
    """A cluster that survived the render guard, with display hints."""
    kind: MarkerKind = MarkerKind.DEFAULT
    is_selected: bool = False
    heat_radius: float = 5.0
    label: Optional[str] = None


class ClickAction(str, Enum):
    CLUSTER_OPENED = "CLUSTER_OPENED"
    ISSUE_SELECTED = "ISSUE_SELECTED"


class ClickResult(BaseModel):
    action: ClickAction
    issue: Optional[Issue] = None
    cluster: Optional[Cluster] = None


class ViewportState(BaseModel):
    """Snapshot of a map session's mutable state."""
    bounds: Bounds
    mode: ViewMode
    active_cluster: Optional[Cluster] = None
    selected_issue_id: Optional[str] = None
    interaction_state: InteractionState = InteractionState.GLOBAL_NO_SELECTION

    @property
    def is_zoomed(self) -> bool:
        return self.mode == ViewMode.ZOOMED


class Legend(BaseModel):
    cluster_count: int = 0
    high_priority_count: int = 0
    visible_issue_count: int = 0
    is_zoomed: bool = False


class MapView(BaseModel):
    """Everything the host UI needs to draw one frame of the map."""
    session_id: str
    state: ViewportState
    markers: List[ClusterMarker] = Field(default_factory=list)
    selected_issue: Optional[Issue] = None
    legend: Legend = Field(default_factory=Legend)


class SessionCreate(BaseModel):
    """Create a map session. Without issues the store snapshot is used."""
    issues: Optional[List[Issue]] = None


class SelectionRequest(BaseModel):
    issue_id: Optional[str] = Field(None, description="Issue to select, or null to clear")


class ClickResponse(BaseModel):
    result: ClickResult
    view: MapView
