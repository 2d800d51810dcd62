"""Planar geometry helpers for analytic shape masks.

Provides:
    - Point distances (scalar or broadcast over numpy arrays)
    - Circle primitive with signed distance and membership tests

Used by:
    - CircleSampler: point-in-shape membership at pixel centres
    - Tests: locating pixels on/near a circle boundary

All coordinates in pixels, image frame (top-left origin, +Y down). A pixel
(x, y) covers [x, x+1) × [y, y+1); its centre is (x + 0.5, y + 0.5).
"""

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

ArrayLike = Union[float, np.ndarray]


@dataclass(frozen=True)
class Circle:
    """Circle in pixel coordinates."""
    center: Tuple[float, float]
    radius: float

    def __post_init__(self):
        if self.radius < 0:
            raise ValueError(f"Circle radius must be >= 0, got {self.radius}")


def squared_distance_to_point(
    x: ArrayLike,
    y: ArrayLike,
    point: Tuple[float, float]
) -> ArrayLike:
    """Squared Euclidean distance from (x, y) to ``point``."""
    dx = x - point[0]
    dy = y - point[1]
    return dx * dx + dy * dy


def distance_to_point(
    x: ArrayLike,
    y: ArrayLike,
    point: Tuple[float, float]
) -> ArrayLike:
    """Euclidean distance from (x, y) to ``point``."""
    return np.sqrt(squared_distance_to_point(x, y, point))


def distance_to_circle(x: ArrayLike, y: ArrayLike, circle: Circle) -> ArrayLike:
    """Signed distance to the circle outline (negative inside)."""
    return distance_to_point(x, y, circle.center) - circle.radius


def is_inside_circle(x: ArrayLike, y: ArrayLike, circle: Circle) -> ArrayLike:
    """Membership test; points on the outline count as inside.

    Parameters
    ----------
    x, y : float or np.ndarray
        Query coordinates (broadcast together)
    circle : Circle
        Shape to test against

    Returns
    -------
    bool or np.ndarray of bool
    """
    return distance_to_point(x, y, circle.center) <= circle.radius
