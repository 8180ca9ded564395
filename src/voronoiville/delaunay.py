from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
import structlog
from scipy.spatial import Delaunay, QhullError, cKDTree

from .config import Tolerance
from .errors import GeometryError, InputError
from .geometry import cross2, orientation

logger = structlog.get_logger()


@dataclass
class Triangulation:
    """
    Delaunay triangulation of the sites.

    triangles: (M,3) site indices, every row counter-clockwise.
    line_order: set instead of triangles when all sites are collinear
                (or there is a single site); site indices sorted along the line.
    """
    points: np.ndarray
    triangles: np.ndarray
    line_order: Optional[np.ndarray] = None

    @property
    def is_degenerate(self) -> bool:
        return self.line_order is not None

    def edges(self) -> Dict[Tuple[int, int], List[int]]:
        """
        Undirected edge (i<j) -> indices of the triangles using it (1 or 2).
        In the degenerate case consecutive sites along the line are joined
        by edges without triangles.
        """
        out: Dict[Tuple[int, int], List[int]] = defaultdict(list)
        if self.is_degenerate:
            order = self.line_order
            for a, b in zip(order[:-1], order[1:]):
                out[(int(min(a, b)), int(max(a, b)))] = []
            return dict(out)

        for t, (a, b, c) in enumerate(self.triangles):
            for u, v in ((a, b), (b, c), (c, a)):
                out[(int(min(u, v)), int(max(u, v)))].append(t)
        return dict(out)

    def circumcenters(self) -> np.ndarray:
        """(M,2) circumcircle centers; these are the Voronoi vertices."""
        if len(self.triangles) == 0:
            return np.zeros((0, 2), dtype=np.float64)

        A = self.points[self.triangles[:, 0]]
        B = self.points[self.triangles[:, 1]] - A
        C = self.points[self.triangles[:, 2]] - A

        b2 = np.sum(B * B, axis=1)
        c2 = np.sum(C * C, axis=1)
        d = 2.0 * cross2(B, C)

        with np.errstate(divide="ignore", invalid="ignore"):
            ux = (C[:, 1] * b2 - B[:, 1] * c2) / d
            uy = (B[:, 0] * c2 - C[:, 0] * b2) / d
        centers = A + np.column_stack([ux, uy])

        bad = ~np.all(np.isfinite(centers), axis=1)
        if np.any(bad):
            raise GeometryError(
                f"degenerate triangles without circumcenter: {np.flatnonzero(bad).tolist()}"
            )
        return centers


def check_sites(sites, tolerance: Tolerance) -> np.ndarray:
    """
    Validate and convert the site sequence to an (N,2) float64 array.
    tolerance must already be scaled to absolute units.
    """
    try:
        S = np.array(sites, dtype=np.float64)
    except (TypeError, ValueError) as err:
        raise InputError(f"sites must be a sequence of (x, y) pairs: {err}") from err

    if S.ndim == 1 and S.size == 0:
        S = S.reshape(0, 2)
    if S.ndim != 2 or S.shape[1] != 2:
        raise InputError(f"sites must be (N,2), got shape {S.shape}")
    if len(S) == 0:
        raise InputError("at least one site is required")

    bad = ~np.all(np.isfinite(S), axis=1)
    if np.any(bad):
        raise InputError(f"non-finite site coordinates at {np.flatnonzero(bad).tolist()}")

    if len(S) > 1:
        pairs = cKDTree(S).query_pairs(r=tolerance.duplicate)
        if pairs:
            shown = sorted(pairs)[:5]
            raise InputError(f"duplicate sites (index pairs): {shown}")

    return S


def is_collinear(points: np.ndarray, eps: float) -> bool:
    """
    True if every point lies within eps of the line through points[0] and
    the point farthest from it.
    """
    P = np.asarray(points, dtype=np.float64)
    if len(P) <= 2:
        return True
    d = P - P[0]
    far = int(np.argmax(np.einsum("ij,ij->i", d, d)))
    return not np.any(orientation(P[0], P[far], P, eps))


def _line_order(points: np.ndarray) -> np.ndarray:
    d = points - points[0]
    far = int(np.argmax(np.einsum("ij,ij->i", d, d)))
    proj = d @ d[far]
    return np.argsort(proj, kind="stable")


def triangulate(points: np.ndarray, tolerance: Tolerance) -> Triangulation:
    """
    Build the Delaunay triangulation of validated sites (see check_sites).

    Collinear sites (including one or two sites) produce a degenerate
    triangulation ordered along their line instead of failing.
    """
    P = np.asarray(points, dtype=np.float64)

    if is_collinear(P, tolerance.collinear):
        order = _line_order(P) if len(P) > 1 else np.zeros(1, dtype=int)
        logger.info("Sites are collinear, using degenerate triangulation", sites=len(P))
        return Triangulation(points=P, triangles=np.zeros((0, 3), dtype=int), line_order=order)

    try:
        tri = Delaunay(P)
    except QhullError as err:
        raise GeometryError(f"Delaunay triangulation failed: {err}") from err

    if len(tri.coplanar):
        dropped = sorted(int(i) for i in tri.coplanar[:, 0])
        raise GeometryError(f"triangulation dropped sites {dropped}")

    T = np.array(tri.simplices, dtype=int)

    # Qhull does not promise a winding; make every triangle counter-clockwise
    a = P[T[:, 0]]
    s = cross2(P[T[:, 1]] - a, P[T[:, 2]] - a)
    cw = s < 0
    T[cw] = T[cw][:, [0, 2, 1]]

    used = np.unique(T)
    if len(used) != len(P):
        missing = sorted(set(range(len(P))) - set(used.tolist()))
        raise GeometryError(f"triangulation dropped sites {missing}")

    logger.debug("Triangulated sites", sites=len(P), triangles=len(T))
    return Triangulation(points=P, triangles=T)
