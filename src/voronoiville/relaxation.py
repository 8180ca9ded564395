from __future__ import annotations

from typing import Optional

import numpy as np
import structlog

from .builder import BuildResult, build_cells
from .clipping import ClippedCell
from .config import DEFAULT_TOLERANCE, Tolerance
from .datastructures import BoundingBox
from .geometry import polygon_centroid

logger = structlog.get_logger()


def relaxed_position(cell: ClippedCell, current: np.ndarray, min_area: Optional[float] = None) -> np.ndarray:
    """
    Centroid of the clipped cell. An empty cell (site outside the box)
    keeps its current position. Cells of at most min_area move to the
    mean of their vertices.
    """
    if len(cell.vertices) == 0:
        return np.array(current, dtype=np.float64)
    return polygon_centroid(cell.vertices, eps=min_area)


def lloyd_relaxation(
    sites,
    bbox: BoundingBox,
    iterations: int,
    *,
    tolerance: Tolerance = DEFAULT_TOLERANCE,
) -> BuildResult:
    """
    Build the diagram and apply exactly `iterations` Lloyd steps.

    Every step moves each site to its cell's centroid and rebuilds the
    triangulation and cells from scratch. There is no convergence check.
    Any construction error aborts the whole run.
    """
    result = build_cells(sites, bbox, tolerance=tolerance)
    if iterations == 0:
        return result

    # same zero-area threshold as clipping
    min_area = tolerance.scaled(bbox.scale).boundary * bbox.scale

    logger.info("Starting Lloyd's relaxation", iterations=iterations, sites=len(result.points))

    for iteration in range(iterations):
        old = result.points
        new = np.array([relaxed_position(c, old[c.site], min_area) for c in result.cells], dtype=np.float64)
        result = build_cells(new, bbox, tolerance=tolerance)

        shift = float(np.max(np.linalg.norm(new - old, axis=1)))
        logger.debug("Relaxation iteration complete", iteration=iteration + 1, max_shift=shift)

    return result
