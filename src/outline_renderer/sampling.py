"""Mask samplers: binary shape membership around a pixel.

Two interchangeable strategies share one contract:

    sample(x, y) -> SampleWindow
        Nine binary values (tl, t, tr, l, c, r, bl, b, br) for the 3×3
        neighbourhood centred at (x, y).
    membership(height, width) -> np.ndarray
        The per-pixel binary value for a whole (H, W) canvas as float64 0/1.
        sample(x, y) is exactly the 3×3 slice of this plane around (x, y).

ImageMaskSampler reads an 8-bit mask (value > 0 is inside).
CircleSampler evaluates an analytic circle at each pixel centre (+0.5, +0.5).
load_mask() decodes an image file into the uint8 mask ImageMaskSampler reads.

The renderer only visits pixels with a full neighbourhood, so callers never
hit the mask edge; sample() still bounds-checks and raises IndexError.
"""

import logging
from pathlib import Path
from typing import NamedTuple, Optional, Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from src.utils import geometry
from .errors import DimensionMismatch, MaskLoadFailure

logger = logging.getLogger(__name__)

MASK_SOURCE_IMAGE = "image"
MASK_SOURCE_CIRCLE = "analytic-circle"
MASK_SOURCES = (MASK_SOURCE_IMAGE, MASK_SOURCE_CIRCLE)

# (dx, dy) in SampleWindow field order
NEIGHBOUR_OFFSETS = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (0, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
)


class SampleWindow(NamedTuple):
    """3×3 binary neighbourhood, row by row from the top-left."""
    tl: float
    t: float
    tr: float
    l: float  # noqa: E741
    c: float
    r: float
    bl: float
    b: float
    br: float


class MaskSampler:
    """Base class for membership samplers."""

    def is_inside(self, x: int, y: int) -> bool:
        raise NotImplementedError

    def membership(self, height: int, width: int) -> np.ndarray:
        raise NotImplementedError

    def check_bounds(self, height: int, width: int) -> None:
        """Fail fast if this sampler cannot cover an (H, W) canvas."""
        pass

    def sample(self, x: int, y: int) -> SampleWindow:
        """Sample the 3×3 neighbourhood centred at pixel (x, y)."""
        return SampleWindow(*(
            1.0 if self.is_inside(x + dx, y + dy) else 0.0
            for dx, dy in NEIGHBOUR_OFFSETS
        ))


class ImageMaskSampler(MaskSampler):
    """Samples a single-channel 8-bit mask in a binary fashion.

    Parameters
    ----------
    mask : np.ndarray
        (H, W) uint8 array; any value > 0 is inside. May be larger than the
        canvas, only the top-left canvas-sized region is read.
    """

    def __init__(self, mask: np.ndarray):
        mask = np.asarray(mask)
        if mask.ndim != 2:
            raise DimensionMismatch(
                f"Mask must be single-channel (H, W), got shape {mask.shape}",
                mask_shape=mask.shape
            )
        self.mask = mask
        # Binary view computed once; the mask is immutable for the pass
        self._inside = mask > 0

    @property
    def shape(self) -> Tuple[int, int]:
        return self.mask.shape

    def check_bounds(self, height: int, width: int) -> None:
        mask_h, mask_w = self.mask.shape
        if mask_h < height or mask_w < width:
            raise DimensionMismatch(
                f"Mask {mask_w}x{mask_h} is smaller than canvas {width}x{height}",
                mask_shape=self.mask.shape,
                canvas_shape=(height, width)
            )

    def is_inside(self, x: int, y: int) -> bool:
        mask_h, mask_w = self.mask.shape
        if not (0 <= x < mask_w and 0 <= y < mask_h):
            raise IndexError(f"Pixel ({x}, {y}) outside mask {mask_w}x{mask_h}")
        return bool(self._inside[y, x])

    def membership(self, height: int, width: int) -> np.ndarray:
        self.check_bounds(height, width)
        return self._inside[:height, :width].astype(np.float64)


class CircleSampler(MaskSampler):
    """Samples an analytic circle at neighbour pixel centres.

    Parameters
    ----------
    circle : geometry.Circle
        Shape in pixel coordinates
    """

    def __init__(self, circle: geometry.Circle):
        self.circle = circle

    def is_inside(self, x: int, y: int) -> bool:
        return bool(geometry.is_inside_circle(x + 0.5, y + 0.5, self.circle))

    def membership(self, height: int, width: int) -> np.ndarray:
        ys, xs = np.meshgrid(
            np.arange(height, dtype=np.float64) + 0.5,
            np.arange(width, dtype=np.float64) + 0.5,
            indexing='ij'
        )
        return geometry.is_inside_circle(xs, ys, self.circle).astype(np.float64)


def build_sampler(
    mask_source: str,
    mask: Optional[np.ndarray] = None,
    circle: Optional[geometry.Circle] = None
) -> MaskSampler:
    """Resolve the sampler strategy once, at setup.

    Parameters
    ----------
    mask_source : str
        ``"image"`` or ``"analytic-circle"``
    mask : np.ndarray, optional
        Required for ``"image"``
    circle : geometry.Circle, optional
        Required for ``"analytic-circle"``

    Returns
    -------
    MaskSampler
    """
    if mask_source == MASK_SOURCE_IMAGE:
        if mask is None:
            raise ValueError("mask_source 'image' requires a mask array")
        logger.debug(f"Using image mask sampler, mask shape {np.shape(mask)}")
        return ImageMaskSampler(mask)
    if mask_source == MASK_SOURCE_CIRCLE:
        if circle is None:
            raise ValueError("mask_source 'analytic-circle' requires a circle")
        logger.debug(f"Using circle sampler: {circle}")
        return CircleSampler(circle)
    raise ValueError(f"mask_source must be one of {MASK_SOURCES}, got {mask_source!r}")


def load_mask(path: Union[str, Path]) -> np.ndarray:
    """Load an image file as a single-channel 8-bit mask.

    Any decodable image is converted to grayscale ("L"); values > 0 count
    as inside.

    Raises
    ------
    MaskLoadFailure
        If the file is missing, cannot be decoded, or exceeds PIL's
        decompression-bomb pixel limit
    """
    path = Path(path)
    if not path.is_file():
        raise MaskLoadFailure(path, "file not found")

    try:
        with Image.open(path) as im:
            mask = np.array(im.convert("L"), dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise MaskLoadFailure(path, str(e)) from e

    logger.info(f"Loaded mask {path}: {mask.shape[1]}x{mask.shape[0]}")
    return mask
