from __future__ import annotations

from typing import Optional

import numpy as np

from .datastructures import BoundingBox


def sample_points_in_box(
    bounding_box,
    *,
    n_points: Optional[int] = None,
    target_area: Optional[float] = None,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Uniform sites inside the box. Give either n_points or target_area
    (mean cell area, n ~ box area / target_area).
    """
    bbox = BoundingBox.coerce(bounding_box)

    if n_points is None:
        if target_area is None:
            raise ValueError("Either target_area or n_points required")
        if target_area <= 0:
            raise ValueError("target_area must be > 0")
        n_points = max(1, int(bbox.area / float(target_area)))

    n = int(n_points)
    if n < 0:
        raise ValueError("n_points must be >= 0")

    pts = np.empty((n, 2), dtype=np.float64)
    pts[:, 0] = bbox.x1 + rng.random(n) * bbox.width
    pts[:, 1] = bbox.y1 + rng.random(n) * bbox.height
    return pts
