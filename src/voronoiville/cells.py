from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np

from .config import Tolerance
from .delaunay import Triangulation
from .errors import GeometryError
from .geometry import normalize, perp_ccw, perp_cw


@dataclass(frozen=True)
class BoundedCell:
    """Closed cell of an interior site: circumcenters in CCW order."""
    site: int
    vertices: np.ndarray  # (K,2)


@dataclass(frozen=True)
class RayCell:
    """
    Unbounded cell of a convex-hull site.
    The boundary comes in from infinity along -start_direction to vertices[0],
    follows vertices, and leaves vertices[-1] along end_direction.
    """
    site: int
    vertices: np.ndarray         # (K,2), K >= 1
    start_direction: np.ndarray  # unit, outward normal of the first hull edge
    end_direction: np.ndarray    # unit, outward normal of the second hull edge


@dataclass(frozen=True)
class HalfPlaneCell:
    """
    Cell given directly as the plane cut by bisectors: every site of a
    collinear (or single) site set, and any site whose circumcenters are
    too far out to be used. Each row (normal, offset) keeps normal·x <= offset.
    """
    site: int
    halfplanes: Tuple[Tuple[np.ndarray, float], ...]
    unbounded: bool = True


DerivedCell = Union[BoundedCell, RayCell, HalfPlaneCell]

# 1 + cos of the angle between hull rays; closer to opposite than this and
# no cut line crosses both rays at a usable angle
OPPOSITE_RAYS = 1e-6


@dataclass(frozen=True)
class DualEdge:
    """
    Voronoi edge dual to the Delaunay edge between sites[0] and sites[1].
    Either a segment (start, end), a ray (start, direction) or, with
    two_sided, a full line through start along direction.
    """
    sites: Tuple[int, int]
    start: np.ndarray
    end: Optional[np.ndarray] = None
    direction: Optional[np.ndarray] = None
    two_sided: bool = False


def bisector_halfplane(site: np.ndarray, other: np.ndarray) -> Tuple[np.ndarray, float]:
    """Points closer to site than to other: n·x <= n·m with n = other - site."""
    n = np.asarray(other, dtype=np.float64) - np.asarray(site, dtype=np.float64)
    m = 0.5 * (site + other)
    return n, float(np.dot(n, m))


def _line_cells(tri: Triangulation) -> List[DerivedCell]:
    P = tri.points
    order = tri.line_order
    cells: List[Optional[DerivedCell]] = [None] * len(P)
    for k, s in enumerate(order):
        hs = []
        if k > 0:
            hs.append(bisector_halfplane(P[s], P[order[k - 1]]))
        if k < len(order) - 1:
            hs.append(bisector_halfplane(P[s], P[order[k + 1]]))
        cells[int(s)] = HalfPlaneCell(site=int(s), halfplanes=tuple(hs))
    return cells


def _incident_triangles(tri: Triangulation) -> List[List[int]]:
    fans: List[List[int]] = [[] for _ in range(len(tri.points))]
    for t, row in enumerate(tri.triangles):
        for s in row:
            fans[int(s)].append(t)
    return fans


def _angular_order(site: np.ndarray, tri: Triangulation, fan: List[int], angle_eps: float) -> List[int]:
    """
    Sort incident triangles counter-clockwise by the angle of their centroid
    around site. Angles within angle_eps share a bucket and fall back to
    triangle index, so equal angles never depend on float noise.
    """
    centroids = tri.points[tri.triangles[fan]].mean(axis=1)
    d = centroids - site
    angles = np.arctan2(d[:, 1], d[:, 0])
    bucket = max(angle_eps, 1e-300)
    keyed = [(math.floor(float(a) / bucket), t) for a, t in zip(angles, fan)]
    return [t for _, t in sorted(keyed)]


def _rotated(row: np.ndarray, s: int) -> Tuple[int, int]:
    """(x, y) such that (s, x, y) is the CCW triangle row."""
    i = int(np.flatnonzero(row == s)[0])
    return int(row[(i + 1) % 3]), int(row[(i + 2) % 3])


def _bisector_cell(P: np.ndarray, s: int, spokes, unbounded: bool) -> HalfPlaneCell:
    # a Voronoi cell is exactly the intersection of the bisector
    # half-planes of its Delaunay neighbours
    neighbours = sorted({v for pair in spokes.values() for v in pair})
    return HalfPlaneCell(
        site=s,
        halfplanes=tuple(bisector_halfplane(P[s], P[o]) for o in neighbours),
        unbounded=unbounded,
    )


def _too_far(site: np.ndarray, vertices: np.ndarray, limit: float) -> bool:
    return bool(np.max(np.linalg.norm(vertices - site, axis=1)) > limit)


def derive_cells(tri: Triangulation, tolerance: Tolerance) -> List[DerivedCell]:
    """
    Map the triangulation to one Voronoi cell per site, in site order.

    Cells whose circumcenters lie more than tolerance.far from the site
    (sliver triangles) or whose hull rays are nearly opposite come back
    as HalfPlaneCell built from the neighbours' bisectors.
    """
    if tri.is_degenerate:
        return _line_cells(tri)

    P = tri.points
    centers = tri.circumcenters()
    cells: List[DerivedCell] = []

    for s, fan in enumerate(_incident_triangles(tri)):
        if not fan:
            raise GeometryError(f"site {s} has no incident triangles")

        ordered = _angular_order(P[s], tri, fan, tolerance.angle)
        spokes = {t: _rotated(tri.triangles[t], s) for t in ordered}

        # open fan: the first triangle's leading spoke is nobody's trailing spoke
        trailing = {y for _, y in spokes.values()}
        starts = [t for t in ordered if spokes[t][0] not in trailing]

        if not starts:
            if _too_far(P[s], centers[ordered], tolerance.far):
                cells.append(_bisector_cell(P, s, spokes, unbounded=False))
            else:
                cells.append(BoundedCell(site=s, vertices=centers[ordered]))
            continue
        if len(starts) > 1:
            raise GeometryError(f"site {s} has a non-manifold triangle fan")

        k = ordered.index(starts[0])
        ordered = ordered[k:] + ordered[:k]

        a = spokes[ordered[0]][0]
        b = spokes[ordered[-1]][1]
        try:
            d_start = normalize(perp_cw(P[a] - P[s]))
            d_end = normalize(perp_ccw(P[b] - P[s]))
        except ValueError as err:
            raise GeometryError(f"zero-length hull edge at site {s}") from err

        if (1.0 + float(np.dot(d_start, d_end)) <= OPPOSITE_RAYS
                or _too_far(P[s], centers[ordered], tolerance.far)):
            cells.append(_bisector_cell(P, s, spokes, unbounded=True))
            continue

        cells.append(RayCell(
            site=s,
            vertices=centers[ordered],
            start_direction=d_start,
            end_direction=d_end,
        ))

    return cells


def dual_edges(tri: Triangulation) -> List[DualEdge]:
    """
    One Voronoi edge per Delaunay edge. Hull edges map to rays pointing
    away from the triangulation.
    """
    P = tri.points
    out: List[DualEdge] = []

    if tri.is_degenerate:
        for (i, j) in tri.edges():
            axis = P[j] - P[i]
            out.append(DualEdge(
                sites=(i, j),
                start=0.5 * (P[i] + P[j]),
                direction=normalize(perp_ccw(axis)),
                two_sided=True,
            ))
        return out

    centers = tri.circumcenters()
    for (i, j), ts in tri.edges().items():
        if len(ts) == 2:
            out.append(DualEdge(sites=(i, j), start=centers[ts[0]], end=centers[ts[1]]))
            continue

        # hull edge: u->v runs CCW in its only triangle, so outside is on the right
        t = ts[0]
        row = tri.triangles[t]
        u, v = (i, j) if _rotated(row, i)[0] == j else (j, i)
        out.append(DualEdge(
            sites=(i, j),
            start=centers[t],
            direction=normalize(perp_cw(P[v] - P[u])),
        ))

    return out
