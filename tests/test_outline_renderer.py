"""End-to-end tests for the outline renderer.

Test suites:
1. Uniform regions (no boundary → canvas unchanged)
2. Analytic circle scenarios (simple and black & white outlines)
3. Single-pixel shape (ring of contour values, symmetric stroke)
4. Vectorized pass vs scalar reference pass (byte-identical)
5. Row-band threading, strided canvases, border handling
6. Error taxonomy (DimensionMismatch, MaskLoadFailure, bad arguments)
7. Config-driven rendering (from_config, render_outline)
8. Re-application is not idempotent
9. Shipped config and build_renderer()/render_outline() top-level path

Fixtures:
- gradient_canvas: 512×512 reference background
- circle_sampler: radius-100 circle centred on the reference canvas
"""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from src.outline_renderer import (
    CircleSampler,
    DimensionMismatch,
    ImageMaskSampler,
    MaskLoadFailure,
    OutlineRenderer,
    OutlineStyle,
    allocate_canvas,
    build_renderer,
    estimate_plane,
    fill_vertical_gradient,
    render_outline,
)
from src.utils import geometry
from src.utils.validators import OutlineConfigV1, load_outline_config

CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "outline.v1.yaml"

STYLES = [OutlineStyle.BLACK_AND_WHITE, OutlineStyle.SIMPLE]


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def gradient_canvas():
    """Reference 512×512 gradient background (32 → 224)."""
    return fill_vertical_gradient(allocate_canvas(512, 512))


@pytest.fixture
def circle():
    return geometry.Circle(center=(256, 256), radius=100.0)


@pytest.fixture
def circle_sampler(circle):
    return CircleSampler(circle)


@pytest.fixture
def centre_distance():
    """Distance of every pixel centre of a 512×512 canvas from (256, 256)."""
    ys, xs = np.mgrid[0:512, 0:512].astype(np.float64)
    return geometry.distance_to_point(xs + 0.5, ys + 0.5, (256.0, 256.0))


def _random_mask(shape, seed, density=0.5):
    rng = np.random.RandomState(seed)
    return np.where(rng.rand(*shape) < density, rng.randint(1, 256, size=shape), 0).astype(np.uint8)


# ============================================================================
# TEST SUITE 1: Uniform regions
# ============================================================================

@pytest.mark.parametrize("style", STYLES)
def test_uniform_inside_mask_leaves_canvas_unchanged(gradient_canvas, style):
    before = gradient_canvas.copy()
    mask = np.full((512, 512), 255, dtype=np.uint8)

    renderer = OutlineRenderer(ImageMaskSampler(mask), style=style)
    renderer.render(gradient_canvas)

    np.testing.assert_array_equal(gradient_canvas, before)
    assert renderer.pixels_written == 0


@pytest.mark.parametrize("style", STYLES)
def test_uniform_outside_mask_leaves_canvas_unchanged(gradient_canvas, style):
    before = gradient_canvas.copy()
    mask = np.zeros((512, 512), dtype=np.uint8)

    OutlineRenderer(ImageMaskSampler(mask), style=style).render(gradient_canvas)

    np.testing.assert_array_equal(gradient_canvas, before)


# ============================================================================
# TEST SUITE 2: Analytic circle
# ============================================================================

@pytest.mark.integration
def test_circle_simple_outline_darkens_boundary(gradient_canvas, circle_sampler, centre_distance):
    before = gradient_canvas.copy()
    renderer = OutlineRenderer(circle_sampler, style=OutlineStyle.SIMPLE)
    renderer.render(gradient_canvas)

    changed = gradient_canvas != before
    assert renderer.pixels_written > 0
    assert np.count_nonzero(changed) == renderer.pixels_written

    # Never lighter, and only near the outline
    assert np.all(gradient_canvas <= before)
    assert np.all(np.abs(centre_distance[changed] - 100.0) < 2.0)

    far = (centre_distance > 102.0) | (centre_distance < 98.0)
    np.testing.assert_array_equal(gradient_canvas[far], before[far])

    # Every outside-facing contour pixel (0 < v < 0.5) is strictly darker
    v = estimate_plane(circle_sampler.membership(512, 512))
    dark_band = (v > 0.0) & (v < 0.5)
    dark_band[[0, -1], :] = False
    dark_band[:, [0, -1]] = False
    assert np.any(dark_band)
    assert np.all(gradient_canvas[dark_band] < before[dark_band])


def test_circle_simple_outline_known_pixels(gradient_canvas, circle_sampler):
    before = gradient_canvas.copy()
    OutlineRenderer(circle_sampler, style="simple").render(gradient_canvas)

    # (356, 256): centre just outside, three left neighbours inside → v = 0.25
    assert before[256, 356] > 0
    assert gradient_canvas[256, 356] == 0
    # (355, 256): centre inside → v = 0.75, inside-facing half is not drawn
    assert gradient_canvas[256, 355] == before[256, 355]


def test_circle_black_and_white_known_pixels(gradient_canvas, circle_sampler):
    OutlineRenderer(circle_sampler, style="black-and-white").render(gradient_canvas)

    # v = 0.25 → alpha 1, colour 0.125 → int(31.875)
    assert gradient_canvas[256, 356] == 31
    # v = 0.75 → alpha 1, colour 0.875 → int(223.125)
    assert gradient_canvas[256, 355] == 223


def test_circle_black_and_white_far_pixels_untouched(gradient_canvas, circle_sampler, centre_distance):
    before = gradient_canvas.copy()
    OutlineRenderer(circle_sampler).render(gradient_canvas)

    far = (centre_distance > 102.0) | (centre_distance < 98.0)
    np.testing.assert_array_equal(gradient_canvas[far], before[far])
    assert np.any(gradient_canvas != before)


# ============================================================================
# TEST SUITE 3: Single-pixel shape
# ============================================================================

@pytest.fixture
def single_pixel_mask():
    mask = np.zeros((9, 9), dtype=np.uint8)
    mask[4, 4] = 255
    return mask


def test_single_pixel_contour_values(single_pixel_mask):
    v = estimate_plane(ImageMaskSampler(single_pixel_mask).membership(9, 9))

    assert v[4, 4] == 0.25
    for y, x in [(3, 4), (5, 4), (4, 3), (4, 5)]:
        assert v[y, x] == 0.125
    for y, x in [(3, 3), (3, 5), (5, 3), (5, 5)]:
        assert v[y, x] == 0.0625

    ring = np.zeros((9, 9), dtype=bool)
    ring[3:6, 3:6] = True
    assert np.all((v[ring] > 0.0) & (v[ring] < 1.0))
    assert np.all(v[~ring] == 0.0)


@pytest.mark.parametrize("style", STYLES)
def test_single_pixel_stroke_is_symmetric(single_pixel_mask, style):
    canvas = np.full((9, 9), 200, dtype=np.uint8)
    OutlineRenderer(ImageMaskSampler(single_pixel_mask), style=style).render(canvas)

    np.testing.assert_array_equal(canvas, canvas[::-1, :])
    np.testing.assert_array_equal(canvas, canvas[:, ::-1])
    np.testing.assert_array_equal(canvas, canvas.T)

    ring = np.zeros((9, 9), dtype=bool)
    ring[3:6, 3:6] = True
    assert np.all(canvas[ring] < 200)
    assert np.all(canvas[~ring] == 200)


def test_single_pixel_simple_outline_falloff(single_pixel_mask):
    canvas = np.full((9, 9), 200, dtype=np.uint8)
    OutlineRenderer(ImageMaskSampler(single_pixel_mask), style="simple").render(canvas)

    # centre alpha 1, axial alpha 0.5, diagonal alpha 0.25
    assert canvas[4, 4] == 0
    assert 99 <= canvas[3, 4] <= 100
    assert 149 <= canvas[3, 3] <= 150


# ============================================================================
# TEST SUITE 4: Vectorized vs reference
# ============================================================================

@pytest.mark.parametrize("style", STYLES)
@pytest.mark.parametrize("seed", [0, 1, 2])
def test_image_pass_matches_reference(style, seed):
    mask = _random_mask((40, 52), seed)
    canvas = fill_vertical_gradient(allocate_canvas(48, 36))

    fast = canvas.copy()
    slow = canvas.copy()
    renderer = OutlineRenderer(ImageMaskSampler(mask), style=style)
    renderer.render(fast)
    fast_written = renderer.pixels_written
    renderer.render_reference(slow)

    np.testing.assert_array_equal(fast, slow)
    assert renderer.pixels_written == fast_written


@pytest.mark.parametrize("style", STYLES)
def test_circle_pass_matches_reference(style):
    sampler = CircleSampler(geometry.Circle(center=(33.3, 30.0), radius=21.7))
    canvas = fill_vertical_gradient(allocate_canvas(70, 64))

    fast = canvas.copy()
    slow = canvas.copy()
    renderer = OutlineRenderer(sampler, style=style)
    renderer.render(fast)
    renderer.render_reference(slow)

    np.testing.assert_array_equal(fast, slow)
    assert np.any(fast != canvas)


def test_render_pixel_reports_writes(single_pixel_mask):
    canvas = np.full((9, 9), 200, dtype=np.uint8)
    renderer = OutlineRenderer(ImageMaskSampler(single_pixel_mask), style="simple")

    assert renderer.render_pixel(canvas, 4, 4) is True
    assert canvas[4, 4] == 0
    assert renderer.render_pixel(canvas, 1, 1) is False
    assert canvas[1, 1] == 200


def test_render_pixel_rejects_border(single_pixel_mask):
    canvas = np.full((9, 9), 200, dtype=np.uint8)
    renderer = OutlineRenderer(ImageMaskSampler(single_pixel_mask))
    for x, y in [(0, 4), (8, 4), (4, 0), (4, 8)]:
        with pytest.raises(IndexError):
            renderer.render_pixel(canvas, x, y)


# ============================================================================
# TEST SUITE 5: Threading, stride, border
# ============================================================================

@pytest.mark.parametrize("workers", [2, 3, 8])
def test_threaded_pass_matches_single(gradient_canvas, circle_sampler, workers):
    single = gradient_canvas.copy()
    OutlineRenderer(circle_sampler, style="black-and-white").render(single)

    renderer = OutlineRenderer(circle_sampler, style="black-and-white", workers=workers)
    renderer.render(gradient_canvas)

    np.testing.assert_array_equal(gradient_canvas, single)


def test_row_bands_are_disjoint_and_cover_interior(circle_sampler):
    renderer = OutlineRenderer(circle_sampler, workers=7)
    bands = renderer._row_bands(1, 511)

    assert len(bands) == 7
    assert bands[0][0] == 1
    assert bands[-1][1] == 511
    for (a0, a1), (b0, b1) in zip(bands, bands[1:]):
        assert a1 == b0
        assert a0 < a1


def test_more_workers_than_rows():
    mask = np.zeros((5, 5), dtype=np.uint8)
    mask[2, 2] = 255
    renderer = OutlineRenderer(ImageMaskSampler(mask), workers=16)
    assert len(renderer._row_bands(1, 4)) == 3

    canvas = np.full((5, 5), 100, dtype=np.uint8)
    renderer.render(canvas)
    assert canvas[2, 2] < 100


def test_strided_canvas(circle_sampler):
    contiguous = fill_vertical_gradient(allocate_canvas(512, 512))
    strided = fill_vertical_gradient(allocate_canvas(512, 512, stride=600))
    strided.base[:, 512:] = 7

    OutlineRenderer(circle_sampler).render(contiguous)
    OutlineRenderer(circle_sampler).render(strided)

    np.testing.assert_array_equal(strided, contiguous)
    assert np.all(strided.base[:, 512:] == 7)


def test_border_pixels_never_written():
    # Checkerboard: every interior pixel has v = 0.5
    mask = (np.indices((12, 12)).sum(axis=0) % 2 * 255).astype(np.uint8)
    canvas = np.full((12, 12), 90, dtype=np.uint8)

    OutlineRenderer(ImageMaskSampler(mask), style="black-and-white").render(canvas)

    assert np.all(canvas[1:-1, 1:-1] == 127)
    assert np.all(canvas[[0, -1], :] == 90)
    assert np.all(canvas[:, [0, -1]] == 90)


def test_wider_border():
    mask = (np.indices((12, 12)).sum(axis=0) % 2 * 255).astype(np.uint8)
    canvas = np.full((12, 12), 90, dtype=np.uint8)

    OutlineRenderer(ImageMaskSampler(mask), border=3).render(canvas)

    assert np.all(canvas[3:-3, 3:-3] == 127)
    frame = np.ones((12, 12), dtype=bool)
    frame[3:-3, 3:-3] = False
    assert np.all(canvas[frame] == 90)


# ============================================================================
# TEST SUITE 6: Errors
# ============================================================================

def test_mask_smaller_than_canvas(gradient_canvas):
    before = gradient_canvas.copy()
    renderer = OutlineRenderer(ImageMaskSampler(np.zeros((512, 511), dtype=np.uint8)))

    with pytest.raises(DimensionMismatch):
        renderer.render(gradient_canvas)
    np.testing.assert_array_equal(gradient_canvas, before)


def test_mask_larger_than_canvas_is_accepted():
    mask = np.zeros((64, 80), dtype=np.uint8)
    mask[10:20, 10:20] = 255
    canvas = np.full((32, 32), 150, dtype=np.uint8)

    OutlineRenderer(ImageMaskSampler(mask)).render(canvas)

    assert np.any(canvas != 150)


@pytest.mark.parametrize("canvas", [
    np.zeros((16, 16, 3), dtype=np.uint8),
    np.zeros((16, 16), dtype=np.float32),
    np.zeros((2, 16), dtype=np.uint8),
    np.zeros((16, 2), dtype=np.uint8),
])
def test_invalid_canvas(circle_sampler, canvas):
    with pytest.raises(DimensionMismatch):
        OutlineRenderer(circle_sampler).render(canvas)


def test_canvas_too_small_for_border(circle_sampler):
    with pytest.raises(DimensionMismatch, match="border 2"):
        OutlineRenderer(circle_sampler, border=2).render(np.zeros((4, 10), dtype=np.uint8))


@pytest.mark.parametrize("kwargs", [{"border": 0}, {"workers": 0}, {"style": "dotted"}])
def test_invalid_renderer_arguments(circle_sampler, kwargs):
    with pytest.raises(ValueError):
        OutlineRenderer(circle_sampler, **kwargs)


# ============================================================================
# TEST SUITE 7: Config-driven rendering
# ============================================================================

def test_from_config_defaults_to_canvas_centre():
    cfg = OutlineConfigV1(mask_source="analytic-circle", outline_style="simple", workers=2)
    renderer = OutlineRenderer.from_config(cfg)

    assert isinstance(renderer.sampler, CircleSampler)
    assert renderer.sampler.circle.center == (256, 256)
    assert renderer.sampler.circle.radius == 100.0
    assert renderer.policy.style == OutlineStyle.SIMPLE
    assert renderer.workers == 2


@pytest.mark.integration
def test_render_outline_circle_matches_manual(circle_sampler):
    cfg = OutlineConfigV1(mask_source="analytic-circle", outline_style="simple")
    result = render_outline(cfg)

    expected = fill_vertical_gradient(allocate_canvas(512, 512))
    OutlineRenderer(circle_sampler, style="simple").render(expected)

    np.testing.assert_array_equal(result, expected)


def test_render_outline_image(tmp_path):
    mask = np.zeros((64, 64), dtype=np.uint8)
    mask[20:40, 16:48] = 255
    mask_path = tmp_path / "mask.png"
    Image.fromarray(mask).save(mask_path)

    cfg = OutlineConfigV1(
        canvas={"width": 64, "height": 64},
        mask_source="image",
        mask_path=str(mask_path),
    )
    result = render_outline(cfg)
    background = fill_vertical_gradient(allocate_canvas(64, 64))

    changed = result != background
    assert np.any(changed)
    assert not np.any(changed[:15, :])
    assert not np.any(changed[45:, :])


def test_render_outline_missing_mask(tmp_path):
    cfg = OutlineConfigV1(mask_source="image", mask_path=str(tmp_path / "missing.png"))
    with pytest.raises(MaskLoadFailure):
        render_outline(cfg)


def test_render_outline_small_mask(tmp_path):
    mask_path = tmp_path / "small.png"
    Image.fromarray(np.zeros((100, 100), dtype=np.uint8)).save(mask_path)

    cfg = OutlineConfigV1(mask_source="image", mask_path=str(mask_path))
    with pytest.raises(DimensionMismatch):
        render_outline(cfg)


# ============================================================================
# TEST SUITE 8: Re-application
# ============================================================================

def test_second_pass_is_not_idempotent(single_pixel_mask):
    canvas = np.full((9, 9), 200, dtype=np.uint8)
    renderer = OutlineRenderer(ImageMaskSampler(single_pixel_mask), style="black-and-white")

    renderer.render(canvas)
    first = canvas.copy()
    renderer.render(canvas)

    # Opaque pixels settle, partially transparent ones keep darkening
    assert canvas[4, 4] == first[4, 4]
    assert canvas[3, 3] < first[3, 3]


# ============================================================================
# TEST SUITE 9: Shipped config and shared top-level path
# ============================================================================

@pytest.mark.integration
def test_shipped_mask_renders_outline():
    cfg = load_outline_config(CONFIG_PATH)
    renderer = build_renderer(cfg)
    result = render_outline(cfg, renderer=renderer)

    background = fill_vertical_gradient(allocate_canvas(512, 512))
    changed = result != background

    assert isinstance(renderer.sampler, ImageMaskSampler)
    assert renderer.pixels_written > 0
    assert np.count_nonzero(changed) > 0
    # Both blobs sit between rows ~117 and ~377
    assert not np.any(changed[:100])
    assert not np.any(changed[395:])


def test_build_renderer_validates_before_painting(tmp_path):
    mask_path = tmp_path / "small.png"
    Image.fromarray(np.zeros((100, 100), dtype=np.uint8)).save(mask_path)

    cfg = OutlineConfigV1(mask_source="image", mask_path=str(mask_path))
    with pytest.raises(DimensionMismatch):
        build_renderer(cfg)


def test_render_outline_reuses_given_renderer(circle_sampler):
    cfg = OutlineConfigV1(mask_source="analytic-circle", outline_style="simple")
    renderer = build_renderer(cfg)

    result = render_outline(cfg, renderer=renderer)

    expected = fill_vertical_gradient(allocate_canvas(512, 512))
    manual = OutlineRenderer(circle_sampler, style="simple")
    manual.render(expected)
    np.testing.assert_array_equal(result, expected)
    assert renderer.pixels_written == manual.pixels_written
