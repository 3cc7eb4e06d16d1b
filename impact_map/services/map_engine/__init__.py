"""
Map engine - clustering and viewport projection for the incident map.

Pure, synchronous recomputation over an immutable issue snapshot:
    issues -> global bounds -> active bounds -> culled + projected -> clusters
"""

from impact_map.services.map_engine.bounds import bounds_around, compute_global_bounds
from impact_map.services.map_engine.clustering import cluster_issues, compute_clusters, visible_issues
from impact_map.services.map_engine.interaction import MapSession, is_renderable
from impact_map.services.map_engine.projector import project
from impact_map.services.map_engine.viewport import GlobalView, ViewportController, ZoomedView
