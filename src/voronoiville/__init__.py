from .config import DEFAULT_TOLERANCE, Tolerance
from .datastructures import BoundingBox, VoronoiCell, VoronoiDiagram
from .errors import ConfigError, ConstructionError, GeometryError, InputError
from .geometry import (
    line_intersection,
    orientation,
    point_in_polygon,
    polygon_area,
    polygon_centroid,
    segment_intersection,
)
from .sampling import sample_points_in_box
from .voronoi import compute_voronoi, voronoi

__all__ = [
    "BoundingBox",
    "VoronoiCell",
    "VoronoiDiagram",
    "Tolerance",
    "DEFAULT_TOLERANCE",
    "ConstructionError",
    "ConfigError",
    "InputError",
    "GeometryError",
    "orientation",
    "line_intersection",
    "segment_intersection",
    "point_in_polygon",
    "polygon_area",
    "polygon_centroid",
    "sample_points_in_box",
    "compute_voronoi",
    "voronoi",
]
