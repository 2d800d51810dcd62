"""Canvas allocation and background fill.

The canvas is an 8-bit grayscale buffer, shape (H, W), row-major. It may be a
column view of a wider (H, stride) buffer so that rows keep a padded pitch,
the way image libraries lay out scanlines.

The background gradient must be fully painted before the outline pass:
compositing reads each destination pixel once, so the pass sees exactly the
pre-pass background value.
"""

import logging
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 512
DEFAULT_HEIGHT = 512
DEFAULT_GRADIENT_TOP = 32
DEFAULT_GRADIENT_BOTTOM = 224


def allocate_canvas(
    width: int,
    height: int,
    stride: Optional[int] = None
) -> np.ndarray:
    """Allocate a zeroed uint8 canvas.

    Parameters
    ----------
    width, height : int
        Canvas size in pixels
    stride : int, optional
        Row pitch in bytes; defaults to ``width``. Must be >= width.

    Returns
    -------
    np.ndarray
        (height, width) uint8 array. When ``stride > width`` this is a view
        into a (height, stride) buffer; padding bytes are never touched.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas size must be positive, got {width}x{height}")

    stride = width if stride is None else stride
    if stride < width:
        raise ValueError(f"Stride {stride} must be >= width {width}")

    buffer = np.zeros((height, stride), dtype=np.uint8)
    return buffer[:, :width]


def fill_vertical_gradient(
    canvas: np.ndarray,
    top: int = DEFAULT_GRADIENT_TOP,
    bottom: int = DEFAULT_GRADIENT_BOTTOM
) -> np.ndarray:
    """Fill canvas in place with a linear top-to-bottom gradient.

    Each row is evaluated at its centre, ``t = (y + 0.5) / H``, and rounded
    half-up to the nearest 8-bit value.

    Parameters
    ----------
    canvas : np.ndarray
        (H, W) uint8 canvas
    top, bottom : int
        Intensity at the top and bottom edges, 0..255

    Returns
    -------
    np.ndarray
        The same canvas
    """
    height = canvas.shape[0]
    t = (np.arange(height, dtype=np.float64) + 0.5) / height
    rows = np.floor(top + (bottom - top) * t + 0.5)
    rows = np.clip(rows, 0, 255).astype(np.uint8)
    canvas[:, :] = rows[:, np.newaxis]
    return canvas


def create_canvas(cfg) -> np.ndarray:
    """Allocate and paint a canvas from a ``CanvasConfig``."""
    canvas = allocate_canvas(cfg.width, cfg.height, cfg.stride)
    fill_vertical_gradient(canvas, cfg.gradient_top, cfg.gradient_bottom)
    logger.debug(
        f"Canvas created: {cfg.width}x{cfg.height} stride={canvas.strides[0]}, "
        f"gradient {cfg.gradient_top}->{cfg.gradient_bottom}"
    )
    return canvas
