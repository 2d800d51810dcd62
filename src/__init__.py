"""Outline Renderer: antialiased outlines around binary shape masks.

Draws a stroke along the boundary of a shape (image mask or analytic circle)
onto an 8-bit grayscale canvas by blurring binary membership samples and
compositing a policy-selected colour where the blur is neither 0 nor 1.

Architecture layers (strict one-way dependency):
    scripts/ → src/outline_renderer/ → src/utils/

Key invariants:
    - Canvas and mask are single-channel uint8, row-major
    - A 1-pixel (or wider) frame is never processed
    - Only pixels with 0 < v < 1 are ever written
    - YAML-only configs, validated with pydantic
"""

__version__ = "1.0.0"
