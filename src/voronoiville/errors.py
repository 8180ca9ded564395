class ConstructionError(RuntimeError):
    """
    Raised when a Voronoi diagram can't be built from the given input.
    No partial result accompanies it.
    """

    def __init__(self, message: str = "Can't build Voronoi diagram from given points."):
        super().__init__(message)


class ConfigError(ConstructionError, ValueError):
    """Invalid bounding region or build parameter."""


class InputError(ConstructionError, ValueError):
    """Degenerate site set: empty, non-finite or duplicate coordinates."""


class GeometryError(ConstructionError):
    """Triangulation or clipping failed for numerical reasons."""
