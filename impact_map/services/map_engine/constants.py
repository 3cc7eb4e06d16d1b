"""Default tuning for the map engine. Overridable through Settings."""

from impact_map.models.map import Bounds

# Nominal city window used when there is nothing to show
DEFAULT_BOUNDS = Bounds(min_lat=40.7, max_lat=40.8, min_lng=-74.1, max_lng=-73.9)

# Degrees added on every edge of the dataset extrema
GLOBAL_PADDING = 0.02

# Degrees added around a cluster's members when drilling down
ZOOM_PADDING = 0.005

# Normalized units (the plane is 0..100 on both axes)
CLUSTER_THRESHOLD = 8.0
RENDER_MARGIN = 5.0

# Projection used on an axis whose span is zero
DEGENERATE_AXIS_VALUE = 50.0
