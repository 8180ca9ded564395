from __future__ import annotations

from typing import List

import numpy as np
import structlog

from .builder import find_neighbors
from .config import DEFAULT_TOLERANCE, Tolerance
from .datastructures import BoundingBox, VoronoiCell, VoronoiDiagram
from .errors import ConfigError
from .relaxation import lloyd_relaxation

logger = structlog.get_logger()


def _check_iterations(value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigError(f"lloyd_relaxation_iterations must be an int, got {value!r}")
    if value < 0:
        raise ConfigError(f"lloyd_relaxation_iterations must be >= 0, got {value}")
    return int(value)


def compute_voronoi(
    sites,
    bounding_box,
    *,
    return_neighbors: bool = True,
    lloyd_relaxation_iterations: int = 0,
    tolerance: Tolerance = DEFAULT_TOLERANCE,
) -> VoronoiDiagram:
    """
    Compute the Voronoi diagram of sites clipped to bounding_box.

    Key design detail:
    - Hull sites have unbounded cells; they are closed past the box and
      then clipped like every other cell.
    - Relaxation rebuilds everything from the centroids on each iteration.
    - Neighbors are only computed when return_neighbors is set.

    Raises ConstructionError (ConfigError, InputError or GeometryError);
    nothing is returned on failure.
    """
    bbox = BoundingBox.coerce(bounding_box)
    iterations = _check_iterations(lloyd_relaxation_iterations)

    result = lloyd_relaxation(sites, bbox, iterations, tolerance=tolerance)

    neighbors = find_neighbors(result, bbox, tolerance=tolerance) if return_neighbors else None

    cells = []
    for c in result.cells:
        cells.append(
            VoronoiCell(
                site=c.site,
                position=result.points[c.site],
                vertices=c.vertices,
                is_on_hull=c.is_on_hull,
                neighbors=neighbors[c.site] if neighbors is not None else (),
                has_neighbors=return_neighbors,
            )
        )

    logger.debug(
        "Voronoi diagram built",
        cells=len(cells),
        on_hull=sum(c.is_on_hull for c in cells),
        iterations=iterations,
    )

    return VoronoiDiagram(
        bounding_box=bbox,
        sites=result.points.copy(),
        cells=cells,
        iterations=iterations,
        neighbors_computed=return_neighbors,
    )


def voronoi(
    points,
    bounding_box,
    return_neighbors: bool = True,
    lloyd_relaxation_iterations: int = 0,
) -> List[VoronoiCell]:
    """
    One VoronoiCell per input point, in input order.
    """
    d = compute_voronoi(
        points,
        bounding_box,
        return_neighbors=return_neighbors,
        lloyd_relaxation_iterations=lloyd_relaxation_iterations,
    )
    return d.cells
