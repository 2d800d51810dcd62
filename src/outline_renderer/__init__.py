"""Antialiased outline rendering around binary shape masks.

Pipeline (one raster pass, no state shared between pixels):
    - Mask sampler: 3×3 binary membership around each pixel
    - Contour estimator: binomial blur → v in [0, 1]
    - Outline policy: v → (alpha, source_color), two selectable styles
    - Compositor: grayscale "over" blend into the canvas, in place

Modules:
    - canvas: canvas allocation (optional row stride) and gradient background
    - sampling: ImageMaskSampler, CircleSampler
    - estimator: blur kernel, scalar and whole-plane estimates
    - policies: OutlineStyle and its policies
    - compositor: scalar and array blends
    - renderer: OutlineRenderer, build_renderer(), render_outline()
    - errors: MaskLoadFailure, DimensionMismatch

Used by:
    - scripts/render_outline.py: CLI that writes the canvas to PNG
"""

from .canvas import allocate_canvas, create_canvas, fill_vertical_gradient
from .compositor import composite, composite_array
from .errors import DimensionMismatch, MaskLoadFailure, OutlineError
from .estimator import KERNEL, estimate, estimate_plane, is_on_contour
from .policies import (
    BlackAndWhitePolicy,
    OutlinePolicy,
    OutlineStyle,
    SimplePolicy,
    get_policy,
)
from .renderer import OutlineRenderer, build_renderer, render_outline
from .sampling import (
    CircleSampler,
    ImageMaskSampler,
    MaskSampler,
    SampleWindow,
    build_sampler,
    load_mask,
)

__all__ = [
    'allocate_canvas',
    'create_canvas',
    'fill_vertical_gradient',
    'composite',
    'composite_array',
    'DimensionMismatch',
    'MaskLoadFailure',
    'OutlineError',
    'KERNEL',
    'estimate',
    'estimate_plane',
    'is_on_contour',
    'BlackAndWhitePolicy',
    'OutlinePolicy',
    'OutlineStyle',
    'SimplePolicy',
    'get_policy',
    'OutlineRenderer',
    'build_renderer',
    'render_outline',
    'CircleSampler',
    'ImageMaskSampler',
    'MaskSampler',
    'SampleWindow',
    'build_sampler',
    'load_mask',
]
