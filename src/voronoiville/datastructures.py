from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set, Tuple

import numpy as np

from .errors import ConfigError
from .geometry import point_in_polygon, polygon_area, polygon_centroid


@dataclass(frozen=True, repr=False)
class BoundingBox:
    """
    Axis-aligned rectangle given by two opposite corners.
    Corners are normalised so that (x1, y1) is the min corner.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    def __post_init__(self):
        try:
            xs = sorted((float(self.x1), float(self.x2)))
            ys = sorted((float(self.y1), float(self.y2)))
        except (TypeError, ValueError) as err:
            raise ConfigError(f"bounding box corners must be numbers: {err}") from err

        if not all(math.isfinite(c) for c in xs + ys):
            raise ConfigError("bounding box corners must be finite")
        if xs[1] - xs[0] <= 0 or ys[1] - ys[0] <= 0:
            raise ConfigError(
                f"bounding box must have positive width and height, "
                f"got width={xs[1] - xs[0]}, height={ys[1] - ys[0]}"
            )

        object.__setattr__(self, "x1", xs[0])
        object.__setattr__(self, "x2", xs[1])
        object.__setattr__(self, "y1", ys[0])
        object.__setattr__(self, "y2", ys[1])

    @classmethod
    def from_center(cls, center, width: float, height: float) -> "BoundingBox":
        w, h = float(width), float(height)
        if not (w > 0 and h > 0):
            raise ConfigError(f"width and height must be > 0, got {width!r}, {height!r}")
        cx, cy = float(center[0]), float(center[1])
        return cls(cx - 0.5 * w, cy - 0.5 * h, cx + 0.5 * w, cy + 0.5 * h)

    @classmethod
    def centered_square(cls, size: float) -> "BoundingBox":
        return cls.from_center((0.0, 0.0), size, size)

    @classmethod
    def coerce(cls, value) -> "BoundingBox":
        if isinstance(value, cls):
            return value
        try:
            x1, y1, x2, y2 = value
        except (TypeError, ValueError) as err:
            raise ConfigError("bounding box must be a BoundingBox or (x1, y1, x2, y2)") from err
        return cls(x1, y1, x2, y2)

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return 0.5 * (self.x1 + self.x2), 0.5 * (self.y1 + self.y2)

    @property
    def scale(self) -> float:
        return max(self.width, self.height)

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2

    def corners(self) -> np.ndarray:
        """(4,2) counter-clockwise, starting at the min corner."""
        return np.array([
            [self.x1, self.y1],
            [self.x2, self.y1],
            [self.x2, self.y2],
            [self.x1, self.y2],
        ], dtype=np.float64)

    def halfplanes(self) -> List[Tuple[np.ndarray, float]]:
        """
        The four sides as (normal, offset) rows meaning normal·x <= offset.
        """
        return [
            (np.array([0.0, -1.0]), -self.y1),
            (np.array([1.0, 0.0]), self.x2),
            (np.array([0.0, 1.0]), self.y2),
            (np.array([-1.0, 0.0]), -self.x1),
        ]

    def contains(self, point, eps: float = 0.0) -> bool:
        x, y = float(point[0]), float(point[1])
        return (self.x1 - eps <= x <= self.x2 + eps) and (self.y1 - eps <= y <= self.y2 + eps)

    def on_boundary(self, point, eps: float = 0.0) -> bool:
        if not self.contains(point, eps):
            return False
        x, y = float(point[0]), float(point[1])
        return (
            abs(x - self.x1) <= eps or abs(x - self.x2) <= eps
            or abs(y - self.y1) <= eps or abs(y - self.y2) <= eps
        )

    def __repr__(self) -> str:
        return f"BoundingBox({self.x1}, {self.y1}, {self.x2}, {self.y2})"

    __str__ = __repr__


@dataclass(frozen=True, repr=False, eq=False)
class VoronoiCell:
    """
    Read-only result record for one site.

    vertices are counter-clockwise and implicitly closed. neighbors is only
    filled when the build asked for it; has_neighbors tells which case applies.
    """
    site: int
    position: np.ndarray   # (2,)
    vertices: np.ndarray   # (N,2)
    is_on_hull: bool
    neighbors: Tuple[int, ...] = ()
    has_neighbors: bool = False

    def __post_init__(self):
        object.__setattr__(self, "position", np.array(self.position, dtype=np.float64))
        object.__setattr__(self, "vertices", np.array(self.vertices, dtype=np.float64).reshape(-1, 2))
        object.__setattr__(self, "neighbors", tuple(int(n) for n in self.neighbors))
        self.position.setflags(write=False)
        self.vertices.setflags(write=False)

    def area(self) -> float:
        return polygon_area(self.vertices)

    def centroid(self) -> np.ndarray:
        if len(self.vertices) == 0:
            return np.array(self.position, dtype=np.float64)
        return polygon_centroid(self.vertices)

    def contains(self, point, eps: float = 0.0) -> bool:
        return point_in_polygon(point, self.vertices, eps)

    def __repr__(self) -> str:
        return (
            f"VoronoiCell(site={self.site}, "
            f"pos=({self.position[0]:.3f}, {self.position[1]:.3f}), "
            f"on_hull={self.is_on_hull})"
        )

    __str__ = __repr__


@dataclass
class VoronoiDiagram:
    bounding_box: BoundingBox
    sites: np.ndarray               # (N,2) final (possibly relaxed) positions
    cells: List[VoronoiCell]
    iterations: int = 0
    neighbors_computed: bool = field(default=False)

    def cell_count(self) -> int:
        return len(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[VoronoiCell]:
        return iter(self.cells)

    def __getitem__(self, index: int) -> VoronoiCell:
        return self.cells[index]

    def total_area(self) -> float:
        return float(sum(c.area() for c in self.cells))

    def hull_cells(self) -> List[int]:
        return [c.site for c in self.cells if c.is_on_hull]

    def neighbor_pairs(self) -> Set[Tuple[int, int]]:
        pairs = set()
        for c in self.cells:
            for n in c.neighbors:
                pairs.add((min(c.site, n), max(c.site, n)))
        return pairs

    def cell_containing(self, point, eps: Optional[float] = None) -> Optional[VoronoiCell]:
        """
        Cell whose polygon contains point, None outside the bounding box.
        Candidates are tried nearest site first, which is the owner
        except for points on a shared edge.
        """
        if eps is None:
            eps = 1e-9 * self.bounding_box.scale
        if not self.bounding_box.contains(point, eps) or len(self.cells) == 0:
            return None

        p = np.asarray(point, dtype=np.float64)
        order = np.argsort(np.linalg.norm(self.sites - p, axis=1), kind="stable")
        for i in order:
            if self.cells[int(i)].contains(p, eps):
                return self.cells[int(i)]
        return None
