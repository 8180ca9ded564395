from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .cells import derive_cells, dual_edges
from .clipping import ClippedCell, clip_cell, edge_length_in_box
from .config import DEFAULT_TOLERANCE, Tolerance
from .datastructures import BoundingBox
from .delaunay import Triangulation, check_sites, triangulate


@dataclass
class BuildResult:
    """
    Output of one construction pass. Discarded and rebuilt from scratch on
    every relaxation step.
    """
    points: np.ndarray
    triangulation: Triangulation
    cells: List[ClippedCell]


def build_cells(sites, bbox: BoundingBox, *, tolerance: Tolerance = DEFAULT_TOLERANCE) -> BuildResult:
    """
    sites -> triangulation -> cell derivation -> clipping.
    """
    eps = tolerance.scaled(bbox.scale)
    points = check_sites(sites, eps)
    tri = triangulate(points, eps)
    cells = [clip_cell(c, bbox, eps) for c in derive_cells(tri, eps)]
    return BuildResult(points=points, triangulation=tri, cells=cells)


def find_neighbors(
    result: BuildResult,
    bbox: BoundingBox,
    *,
    tolerance: Tolerance = DEFAULT_TOLERANCE,
) -> List[Tuple[int, ...]]:
    """
    Sites whose shared Voronoi edge keeps a positive length inside the box.
    Each pair is decided once, so the relation is symmetric.
    """
    eps = tolerance.scaled(bbox.scale)
    neighbors = [set() for _ in range(len(result.points))]
    for edge in dual_edges(result.triangulation):
        if edge_length_in_box(edge, bbox) > eps.edge:
            i, j = edge.sites
            neighbors[i].add(j)
            neighbors[j].add(i)
    return [tuple(sorted(n)) for n in neighbors]
