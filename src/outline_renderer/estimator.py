"""Contour estimator: 3×3 binomial blur of binary membership samples.

    v = 0.0625·(tl + tr + bl + br) + 0.125·(t + l + r + b) + 0.25·c

Weights are powers of two and sum to 1, so for binary inputs v is exact in
floating point and lies in [0, 1]. v = 0 means fully outside, v = 1 fully
inside; anything strictly between means the shape boundary crosses the
neighbourhood.
"""

import cv2
import numpy as np

from .sampling import SampleWindow

CORNER_WEIGHT = 0.0625
EDGE_WEIGHT = 0.125
CENTER_WEIGHT = 0.25

KERNEL = np.array([
    [CORNER_WEIGHT, EDGE_WEIGHT, CORNER_WEIGHT],
    [EDGE_WEIGHT, CENTER_WEIGHT, EDGE_WEIGHT],
    [CORNER_WEIGHT, EDGE_WEIGHT, CORNER_WEIGHT],
], dtype=np.float64)


def estimate(window: SampleWindow) -> float:
    """Blur one 3×3 sample window."""
    return (
        CORNER_WEIGHT * (window.tl + window.tr + window.bl + window.br)
        + EDGE_WEIGHT * (window.t + window.l + window.r + window.b)
        + CENTER_WEIGHT * window.c
    )


def estimate_plane(membership: np.ndarray) -> np.ndarray:
    """Blur a whole (H, W) membership plane at once.

    Parameters
    ----------
    membership : np.ndarray
        (H, W) float64 plane of 0/1 samples

    Returns
    -------
    np.ndarray
        (H, W) float64 contour estimate. Values in the outermost ring use a
        zero border and are never consumed by the renderer.
    """
    membership = np.ascontiguousarray(membership, dtype=np.float64)
    return cv2.filter2D(
        membership, cv2.CV_64F, KERNEL, borderType=cv2.BORDER_CONSTANT
    )


def is_on_contour(v):
    """True where 0 < v < 1; everything else must be skipped."""
    return (v > 0.0) & (v < 1.0)
