from __future__ import annotations

import math
from dataclasses import dataclass, fields

from .errors import ConfigError


@dataclass(frozen=True)
class Tolerance:
    """
    Numeric tolerances used by the construction engine.

    All length tolerances are relative to the bounding region's scale
    (max of width and height); use scaled() to get absolute values.
    angle is in radians and is never scaled.
    """
    duplicate: float = 1e-10   # two sites closer than this are the same site
    collinear: float = 1e-10   # max distance of a site from the line through the others
    boundary: float = 1e-9     # vertex-on-boundary test and vertex welding
    edge: float = 1e-9         # shortest Voronoi edge that still makes two sites neighbors
    far: float = 1e4           # Voronoi vertices farther than this from their site are not trusted
    angle: float = 1e-12       # tie-break bucket for angular ordering around a site

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not math.isfinite(value) or value < 0:
                raise ConfigError(f"tolerance {f.name} must be finite and >= 0, got {value!r}")

    def scaled(self, scale: float) -> "Tolerance":
        s = float(scale)
        return Tolerance(
            duplicate=self.duplicate * s,
            collinear=self.collinear * s,
            boundary=self.boundary * s,
            edge=self.edge * s,
            far=self.far * s,
            angle=self.angle,
        )


DEFAULT_TOLERANCE = Tolerance()
