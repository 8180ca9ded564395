from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .cells import BoundedCell, DerivedCell, DualEdge, HalfPlaneCell, RayCell
from .config import Tolerance
from .datastructures import BoundingBox
from .errors import GeometryError
from .geometry import dedupe_vertices, is_simple_polygon, polygon_signed_area


@dataclass(frozen=True)
class ClippedCell:
    site: int
    vertices: np.ndarray  # (N,2) CCW, N may be < 3 for zero-area cells
    is_on_hull: bool


def clip_polygon_halfplane(polygon: np.ndarray, normal, offset: float) -> np.ndarray:
    """
    One Sutherland-Hodgman step: keep the part of polygon with normal·x <= offset.
    Vertices outside are dropped, crossings are replaced by boundary points.
    """
    P = np.asarray(polygon, dtype=np.float64)
    if len(P) == 0:
        return P.reshape(0, 2)

    vals = P @ np.asarray(normal, dtype=np.float64) - float(offset)
    out = []
    n = len(P)
    for i in range(n):
        j = (i + 1) % n
        cur_in = vals[i] <= 0.0
        nxt_in = vals[j] <= 0.0
        if cur_in:
            out.append(P[i])
        if cur_in != nxt_in:
            t = vals[i] / (vals[i] - vals[j])
            out.append(P[i] + t * (P[j] - P[i]))
    return np.asarray(out, dtype=np.float64).reshape(-1, 2)


def clip_polygon_to_box(polygon: np.ndarray, bbox: BoundingBox) -> np.ndarray:
    P = np.asarray(polygon, dtype=np.float64)
    for normal, offset in bbox.halfplanes():
        P = clip_polygon_halfplane(P, normal, offset)
        if len(P) == 0:
            break
    # crossing points land on the sides up to rounding; snap them there
    lo = np.array([bbox.x1, bbox.y1])
    hi = np.array([bbox.x2, bbox.y2])
    return np.clip(P, lo, hi)


def truncate_ray_cell(cell: RayCell, bbox: BoundingBox) -> np.ndarray:
    """
    Close a ray-terminated cell with a line beyond the bounding box.

    The cut is perpendicular to the mean ray direction and placed past every
    box corner and every finite vertex, so the closed polygon contains the
    whole part of the cell that lies in the box.
    """
    u = cell.start_direction + cell.end_direction
    nu = float(np.linalg.norm(u))
    if nu <= 1e-12:
        raise GeometryError(f"hull rays of site {cell.site} point in opposite directions")
    u = u / nu

    speeds = (float(np.dot(cell.start_direction, u)), float(np.dot(cell.end_direction, u)))
    if min(speeds) <= 1e-12:
        raise GeometryError(f"hull rays of site {cell.site} cannot be cut by a single line")

    V = cell.vertices
    support = max(float(np.max(bbox.corners() @ u)), float(np.max(V @ u))) + bbox.diagonal

    def far_point(origin, direction, speed):
        return origin + (support - float(np.dot(origin, u))) / speed * direction

    return np.vstack([
        far_point(V[0], cell.start_direction, speeds[0]),
        V,
        far_point(V[-1], cell.end_direction, speeds[1]),
    ])


def clip_cell(cell: DerivedCell, bbox: BoundingBox, tolerance: Tolerance) -> ClippedCell:
    """
    Clip a derived cell to the bounding box and decide its hull flag.
    tolerance must already be scaled to absolute units.
    """
    if isinstance(cell, BoundedCell):
        polygon = cell.vertices
        unbounded = False
    elif isinstance(cell, RayCell):
        polygon = truncate_ray_cell(cell, bbox)
        unbounded = True
    elif isinstance(cell, HalfPlaneCell):
        polygon = bbox.corners()
        for normal, offset in cell.halfplanes:
            polygon = clip_polygon_halfplane(polygon, normal, offset)
        unbounded = cell.unbounded
    else:
        raise TypeError(f"unknown cell type {type(cell).__name__}")

    polygon = clip_polygon_to_box(polygon, bbox)
    polygon = dedupe_vertices(polygon, tolerance.boundary)

    area = polygon_signed_area(polygon)
    min_area = tolerance.boundary * bbox.scale
    if area < -min_area:
        raise GeometryError(f"cell of site {cell.site} has clockwise winding")
    if area > min_area and not is_simple_polygon(polygon):
        raise GeometryError(f"cell of site {cell.site} is self-intersecting")

    on_hull = unbounded or any(bbox.on_boundary(p, tolerance.boundary) for p in polygon)
    return ClippedCell(site=cell.site, vertices=polygon, is_on_hull=bool(on_hull))


def clip_segment_to_box(p0, p1, bbox: BoundingBox) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """
    Liang-Barsky clip of the segment p0-p1 to the box; None if it misses.
    """
    p0 = np.asarray(p0, dtype=np.float64)
    d = np.asarray(p1, dtype=np.float64) - p0
    t0, t1 = 0.0, 1.0
    for normal, offset in bbox.halfplanes():
        denom = float(np.dot(normal, d))
        dist = float(offset - np.dot(normal, p0))
        if denom == 0.0:
            if dist < 0.0:
                return None
            continue
        t = dist / denom
        if denom < 0.0:
            t0 = max(t0, t)
        else:
            t1 = min(t1, t)
        if t0 > t1:
            return None
    return p0 + t0 * d, p0 + t1 * d


def edge_length_in_box(edge: DualEdge, bbox: BoundingBox) -> float:
    """Length of the part of a Voronoi edge that lies in the box."""
    if edge.end is not None:
        p0, p1 = edge.start, edge.end
    else:
        cx, cy = bbox.center
        reach = float(np.hypot(edge.start[0] - cx, edge.start[1] - cy)) + bbox.diagonal
        p1 = edge.start + reach * edge.direction
        p0 = edge.start - reach * edge.direction if edge.two_sided else edge.start

    clipped = clip_segment_to_box(p0, p1, bbox)
    if clipped is None:
        return 0.0
    return float(np.linalg.norm(clipped[1] - clipped[0]))
