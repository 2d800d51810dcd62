"""Outline renderer: single-pass antialiased outline around a binary mask.

Architecture:
    - Mask sampler → binary membership per pixel (image mask or analytic circle)
    - Contour estimator → 3×3 binomial blur, v in [0, 1]
    - Outline policy → (alpha, source_color) from v
    - Compositor → in-place grayscale blend onto the canvas

Invariants:
    - Only pixels with border <= x < W - border and border <= y < H - border
      are visited (border >= 1), so every 3×3 neighbourhood is in bounds
    - A pixel is written only where 0 < v < 1 and alpha > 0
    - Each pixel reads its own pre-pass value and the immutable mask only,
      so row bands are independent and can run on separate threads
    - Deterministic: the vectorized pass and the scalar reference pass
      produce byte-identical canvases

Re-running the pass over an already outlined canvas is not idempotent: the
second pass blends again on top of the first pass' output wherever alpha > 0.

Usage:
    from src.outline_renderer import OutlineRenderer, CircleSampler
    from src.utils import geometry

    sampler = CircleSampler(geometry.Circle((256, 256), 100.0))
    renderer = OutlineRenderer(sampler, style="simple")
    canvas = renderer.render(canvas)
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple, Union

import numpy as np

from src.utils import geometry
from . import canvas as canvas_utils
from .compositor import composite, composite_array
from .errors import DimensionMismatch
from .estimator import estimate, estimate_plane, is_on_contour
from .policies import OutlineStyle, get_policy
from .sampling import MaskSampler, build_sampler, load_mask

logger = logging.getLogger(__name__)


class OutlineRenderer:
    """Renders an outline around the shape described by a sampler.

    Attributes
    ----------
    sampler : MaskSampler
        Membership strategy (image mask or analytic circle)
    policy : OutlinePolicy
        Alpha/colour mapping, resolved once from ``style``
    border : int
        Width of the unprocessed frame around the canvas (>= 1)
    workers : int
        Number of row bands processed concurrently
    pixels_written : int
        Pixels modified by the most recent pass
    """

    def __init__(
        self,
        sampler: MaskSampler,
        style: Union[OutlineStyle, str] = OutlineStyle.BLACK_AND_WHITE,
        border: int = 1,
        workers: int = 1
    ):
        if border < 1:
            raise ValueError(f"border must be >= 1, got {border}")
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        self.sampler = sampler
        self.policy = get_policy(style)
        self.border = border
        self.workers = workers
        self.pixels_written = 0

        logger.info(
            f"OutlineRenderer initialized: sampler={type(sampler).__name__}, "
            f"policy={self.policy}, border={border}, workers={workers}"
        )

    @classmethod
    def from_config(cls, cfg, mask: Optional[np.ndarray] = None) -> "OutlineRenderer":
        """Build a renderer from a validated ``OutlineConfigV1``.

        Parameters
        ----------
        cfg : OutlineConfigV1
            Validated configuration
        mask : np.ndarray, optional
            Pre-loaded mask, required when ``cfg.mask_source == "image"``
        """
        circle = None
        if cfg.circle is not None:
            center = cfg.circle.center
            if center is None:
                # Integer division, matches the reference canvas centre (256, 256)
                center = (cfg.canvas.width // 2, cfg.canvas.height // 2)
            circle = geometry.Circle(center=tuple(center), radius=cfg.circle.radius)

        sampler = build_sampler(cfg.mask_source, mask=mask, circle=circle)
        return cls(
            sampler,
            style=cfg.outline_style,
            border=cfg.border,
            workers=cfg.workers
        )

    def validate(self, canvas: np.ndarray) -> None:
        """Check canvas layout and mask coverage before any pixel is touched.

        Raises
        ------
        DimensionMismatch
            If the canvas is not a 2D uint8 array, is too small to have an
            interior, or the mask does not cover it
        """
        if canvas.ndim != 2 or canvas.dtype != np.uint8:
            raise DimensionMismatch(
                f"Canvas must be a 2D uint8 array, got shape {canvas.shape} "
                f"dtype {canvas.dtype}",
                canvas_shape=canvas.shape
            )
        height, width = canvas.shape
        min_size = 2 * self.border + 1
        if height < min_size or width < min_size:
            raise DimensionMismatch(
                f"Canvas {width}x{height} has no interior with border {self.border} "
                f"(need at least {min_size}x{min_size})",
                canvas_shape=canvas.shape
            )
        self.sampler.check_bounds(height, width)

    def _interior(self, canvas: np.ndarray) -> Tuple[int, int, int, int]:
        height, width = canvas.shape
        return self.border, height - self.border, self.border, width - self.border

    def _row_bands(self, y0: int, y1: int) -> List[Tuple[int, int]]:
        """Split [y0, y1) into at most ``workers`` disjoint contiguous bands."""
        n_bands = max(1, min(self.workers, y1 - y0))
        edges = np.linspace(y0, y1, n_bands + 1).astype(int)
        return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]

    def _render_band(
        self,
        canvas: np.ndarray,
        v: np.ndarray,
        rows: Tuple[int, int],
        cols: Tuple[int, int]
    ) -> int:
        """Composite one row band in place; returns pixels written."""
        (ya, yb), (xa, xb) = rows, cols
        v_band = v[ya:yb, xa:xb]
        on_contour = is_on_contour(v_band)
        if not on_contour.any():
            return 0
        alpha, source_color = self.policy.blend_parameters(v_band)
        return composite_array(
            canvas[ya:yb, xa:xb], alpha, source_color, where=on_contour
        )

    def render(self, canvas: np.ndarray) -> np.ndarray:
        """Run the outline pass over the canvas in place.

        Parameters
        ----------
        canvas : np.ndarray
            (H, W) uint8 canvas, background already painted

        Returns
        -------
        np.ndarray
            The same canvas, modified in place
        """
        self.validate(canvas)
        height, width = canvas.shape
        y0, y1, x0, x1 = self._interior(canvas)

        v = estimate_plane(self.sampler.membership(height, width))
        bands = self._row_bands(y0, y1)

        if len(bands) == 1:
            written = self._render_band(canvas, v, bands[0], (x0, x1))
        else:
            with ThreadPoolExecutor(max_workers=len(bands)) as pool:
                futures = [
                    pool.submit(self._render_band, canvas, v, band, (x0, x1))
                    for band in bands
                ]
                written = sum(f.result() for f in futures)

        self.pixels_written = written
        logger.info(
            f"Outline pass complete: {written} px written on {width}x{height} canvas "
            f"({len(bands)} band(s))"
        )
        return canvas

    def render_pixel(self, canvas: np.ndarray, x: int, y: int) -> bool:
        """Scalar path for a single interior pixel.

        Returns
        -------
        bool
            True if the pixel was written
        """
        y0, y1, x0, x1 = self._interior(canvas)
        if not (x0 <= x < x1 and y0 <= y < y1):
            raise IndexError(
                f"Pixel ({x}, {y}) outside interior x∈[{x0}, {x1}) y∈[{y0}, {y1})"
            )

        v = estimate(self.sampler.sample(x, y))
        if v <= 0.0 or v >= 1.0:
            return False

        alpha, source_color = self.policy.blend_parameters(v)
        if alpha <= 0.0:
            return False

        canvas[y, x] = composite(int(canvas[y, x]), float(alpha), float(source_color))
        return True

    def render_reference(self, canvas: np.ndarray) -> np.ndarray:
        """Per-pixel raster-order pass (slow); same result as render()."""
        self.validate(canvas)
        y0, y1, x0, x1 = self._interior(canvas)

        written = 0
        for y in range(y0, y1):
            for x in range(x0, x1):
                written += self.render_pixel(canvas, x, y)

        self.pixels_written = written
        logger.debug(f"Reference pass complete: {written} px written")
        return canvas


def build_renderer(cfg, mask: Optional[np.ndarray] = None) -> OutlineRenderer:
    """Acquire and validate everything the pass needs, before any painting.

    Loads the mask from ``cfg.mask_path`` when ``cfg.mask_source == "image"``
    and no mask is given, then checks that the sampler covers the canvas.

    Raises
    ------
    MaskLoadFailure
        If the mask file cannot be read
    DimensionMismatch
        If the mask is smaller than the canvas
    """
    if cfg.mask_source == "image" and mask is None:
        mask = load_mask(cfg.mask_path)

    renderer = OutlineRenderer.from_config(cfg, mask=mask)
    renderer.sampler.check_bounds(cfg.canvas.height, cfg.canvas.width)
    return renderer


def render_outline(
    cfg,
    mask: Optional[np.ndarray] = None,
    renderer: Optional[OutlineRenderer] = None
) -> np.ndarray:
    """Create the background canvas and draw the outline described by ``cfg``.

    Parameters
    ----------
    cfg : OutlineConfigV1
        Validated configuration
    mask : np.ndarray, optional
        Pre-loaded mask; loaded from ``cfg.mask_path`` when omitted and
        ``cfg.mask_source == "image"``
    renderer : OutlineRenderer, optional
        Renderer from build_renderer(); built from ``cfg`` when omitted.
        Its ``pixels_written`` reflects this call afterwards.

    Returns
    -------
    np.ndarray
        Rendered (H, W) uint8 canvas

    Raises
    ------
    MaskLoadFailure
        If the mask file cannot be read
    DimensionMismatch
        If the mask is smaller than the canvas
    """
    if renderer is None:
        renderer = build_renderer(cfg, mask=mask)

    canvas = canvas_utils.create_canvas(cfg.canvas)
    return renderer.render(canvas)
