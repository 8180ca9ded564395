from __future__ import annotations

from typing import Optional

import numpy as np
from shapely.geometry import LinearRing, MultiPoint, Point, Polygon


def cross2(a: np.ndarray, b: np.ndarray):
    """
    z-component of the 2D cross product, broadcast over leading axes.
    """
    return a[..., 0] * b[..., 1] - a[..., 1] * b[..., 0]


def perp_ccw(v: np.ndarray) -> np.ndarray:
    return np.array([-v[1], v[0]], dtype=np.float64)


def perp_cw(v: np.ndarray) -> np.ndarray:
    return np.array([v[1], -v[0]], dtype=np.float64)


def normalize(v: np.ndarray) -> np.ndarray:
    n = float(np.linalg.norm(v))
    if n == 0.0:
        raise ValueError("cannot normalize a zero-length vector")
    return np.asarray(v, dtype=np.float64) / n


def orientation(a, b, c, eps: float = 0.0):
    """
    +1 if a->b->c turns counter-clockwise, -1 if clockwise, 0 if collinear.

    eps is a distance: c counts as collinear when it lies within eps of the
    line through a and b. c may also be an (N,2) array, which gives an int
    array of orientations.
    """
    a = np.asarray(a, dtype=np.float64)
    ab = np.asarray(b, dtype=np.float64) - a
    ac = np.asarray(c, dtype=np.float64) - a
    d = cross2(ab, ac)
    side = np.where(np.abs(d) <= eps * float(np.linalg.norm(ab)), 0, np.sign(d)).astype(int)
    return int(side) if side.ndim == 0 else side


def polygon_signed_area(polygon: np.ndarray) -> float:
    """
    Shoelace area; positive for counter-clockwise vertex order.
    polygon: (N,2), implicitly closed
    """
    P = np.asarray(polygon, dtype=np.float64)
    if len(P) < 3:
        return 0.0
    Q = np.roll(P, -1, axis=0)
    return 0.5 * float(np.sum(cross2(P, Q)))


def polygon_area(polygon: np.ndarray) -> float:
    return abs(polygon_signed_area(polygon))


def polygon_centroid(polygon: np.ndarray, eps: Optional[float] = None) -> np.ndarray:
    """
    Area-weighted centroid. Degenerate polygons (|area| <= eps, fewer than
    three vertices) fall back to the vertex mean.

    eps is an area. By default it is 1e-12 times the squared extent of the
    polygon, so the result does not depend on the units.
    """
    P = np.asarray(polygon, dtype=np.float64)
    if len(P) == 0:
        raise ValueError("centroid of an empty polygon is undefined")

    if eps is None:
        extent = float(np.max(np.ptp(P, axis=0)))
        eps = 1e-12 * extent * extent

    area = polygon_signed_area(P)
    if len(P) < 3 or abs(area) <= eps:
        return P.mean(axis=0)

    # shift to the first vertex to keep the products small
    origin = P[0]
    R = P - origin
    S = np.roll(R, -1, axis=0)
    a = cross2(R, S)
    c = ((R + S) * a[:, None]).sum(axis=0) / (6.0 * area)
    return c + origin


def point_in_polygon(point, polygon: np.ndarray, eps: float = 0.0) -> bool:
    """
    True if point lies inside polygon or within eps of its boundary.
    Polygons with fewer than three vertices are treated as their hull
    (a point or a segment).
    """
    P = np.asarray(polygon, dtype=np.float64)
    if len(P) == 0:
        return False
    p = Point(float(point[0]), float(point[1]))
    geom = Polygon(P) if len(P) >= 3 else MultiPoint([tuple(q) for q in P]).convex_hull
    if geom.covers(p):
        return True
    return geom.distance(p) <= eps


def line_intersection(p0, p1, q0, q1) -> Optional[np.ndarray]:
    """
    Intersection of the infinite lines p0-p1 and q0-q1, None when parallel.
    """
    p0 = np.asarray(p0, dtype=np.float64)
    q0 = np.asarray(q0, dtype=np.float64)
    r = np.asarray(p1, dtype=np.float64) - p0
    s = np.asarray(q1, dtype=np.float64) - q0
    denom = float(cross2(r, s))
    if denom == 0.0:
        return None
    t = float(cross2(q0 - p0, s)) / denom
    return p0 + t * r


def segment_intersection(p0, p1, q0, q1, eps: float = 0.0) -> Optional[np.ndarray]:
    """
    Intersection point of segments p0-p1 and q0-q1, or None.
    Collinear overlapping segments return None (no single point).
    """
    p0 = np.asarray(p0, dtype=np.float64)
    q0 = np.asarray(q0, dtype=np.float64)
    r = np.asarray(p1, dtype=np.float64) - p0
    s = np.asarray(q1, dtype=np.float64) - q0
    denom = float(cross2(r, s))
    if denom == 0.0:
        return None

    qp = q0 - p0
    t = float(cross2(qp, s)) / denom
    u = float(cross2(qp, r)) / denom

    # parameter slack equivalent to eps in length units
    tr = eps / max(float(np.linalg.norm(r)), 1e-300)
    us = eps / max(float(np.linalg.norm(s)), 1e-300)
    if -tr <= t <= 1.0 + tr and -us <= u <= 1.0 + us:
        return p0 + t * r
    return None


def is_simple_polygon(polygon: np.ndarray) -> bool:
    P = np.asarray(polygon, dtype=np.float64)
    if len(P) < 3:
        return True
    return bool(LinearRing(P).is_simple)


def dedupe_vertices(polygon: np.ndarray, eps: float) -> np.ndarray:
    """
    Drop consecutive vertices closer than eps, including the wrap-around pair.
    """
    out = []
    for p in np.asarray(polygon, dtype=np.float64):
        if not out or float(np.linalg.norm(p - out[-1])) > eps:
            out.append(p)
    while len(out) > 1 and float(np.linalg.norm(out[0] - out[-1])) <= eps:
        out.pop()
    return np.asarray(out, dtype=np.float64).reshape(-1, 2)
