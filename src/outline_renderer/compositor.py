"""Grayscale "over" compositing onto an 8-bit destination.

    d     = dst / 255
    blend = d + (source_color - d) · alpha
    dst   = int(blend · 255)

The final write truncates toward zero rather than rounding. This is a small
but visible darkening bias that existing renders depend on, so it is kept.
With alpha, source_color and d all in [0, 1] the result stays in 0..255.
"""

from typing import Optional

import numpy as np


def composite(dst: int, alpha: float, source_color: float) -> int:
    """Blend one pixel. Returns ``dst`` unchanged when alpha <= 0."""
    if alpha <= 0.0:
        return dst
    dst_color = dst / 255.0
    blend = dst_color + (source_color - dst_color) * alpha
    return int(blend * 255.0)


def composite_array(
    dst: np.ndarray,
    alpha: np.ndarray,
    source_color: np.ndarray,
    where: Optional[np.ndarray] = None
) -> int:
    """Blend arrays of pixels in place.

    Parameters
    ----------
    dst : np.ndarray
        uint8 destination pixels, modified in place
    alpha, source_color : np.ndarray
        float64 blend parameters, broadcastable to ``dst``
    where : np.ndarray of bool, optional
        Extra write mask; pixels outside it are untouched

    Returns
    -------
    int
        Number of pixels written
    """
    alpha = np.broadcast_to(alpha, dst.shape)
    write = alpha > 0.0
    if where is not None:
        write = write & where
    if not write.any():
        return 0

    dst_color = dst[write] / 255.0
    alpha = alpha[write]
    source_color = np.broadcast_to(source_color, dst.shape)[write]
    blend = dst_color + (source_color - dst_color) * alpha
    dst[write] = (blend * 255.0).astype(np.uint8)
    return int(np.count_nonzero(write))
