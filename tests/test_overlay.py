import numpy as np
import pytest

pytest.importorskip("cv2")

from redline.overlay import (
    alpha_composite,
    clean_mask,
    colorize,
    compose,
    draw_legend,
    legend_box,
    side_by_side,
)
from redline.presets import ColorScheme

RED = (1.0, 0.0, 0.0)
BLUE = (0.0, 0.0, 1.0)


def _block_mask(size=21, box=(5, 5, 15, 15)):
    mask = np.zeros((size, size), dtype=np.uint8)
    x0, y0, x1, y1 = box
    mask[y0:y1, x0:x1] = 1
    return mask


def _solid_layer(shape, rgb, alpha=255):
    layer = np.zeros(shape + (4,), dtype=np.uint8)
    layer[..., :3] = rgb
    layer[..., 3] = alpha
    return layer


def test_clean_mask_removes_isolated_pixels():
    mask = np.zeros((21, 21), dtype=np.uint8)
    mask[10, 10] = 1
    assert clean_mask(mask).max() == 0


def test_clean_mask_keeps_solid_regions():
    cleaned = clean_mask(_block_mask())
    assert set(np.unique(cleaned)) <= {0, 255}
    assert cleaned[10, 10] == 255
    assert cleaned[0, 0] == 0


def test_colorize_paints_foreground_only():
    layer = colorize(_block_mask(), RED, 100)
    assert layer.shape == (21, 21, 4)
    assert tuple(layer[10, 10]) == (255, 0, 0, 255)
    assert layer[0, 0, 3] == 0


def test_colorize_applies_opacity():
    layer = colorize(_block_mask(), BLUE, 50)
    assert layer[..., 3].max() == 128
    assert tuple(layer[10, 10, :3]) == (0, 0, 255)


def test_zero_opacity_leaves_page_untouched():
    rng = np.random.default_rng(0)
    page = rng.integers(0, 256, size=(21, 21, 3), dtype=np.uint8)
    additions = colorize(_block_mask(), RED, 0)
    deletions = colorize(_block_mask(box=(2, 2, 9, 9)), BLUE, 0)
    assert np.array_equal(compose(page, deletions, additions), page)


def test_alpha_composite_blends():
    base = np.zeros((2, 2, 3), dtype=np.uint8)
    out = alpha_composite(base, _solid_layer((2, 2), (255, 255, 255), alpha=128))
    assert np.all(out == 128)
    opaque = alpha_composite(base, _solid_layer((2, 2), (10, 20, 30)))
    assert tuple(opaque[0, 0]) == (10, 20, 30)


def test_alpha_composite_size_mismatch():
    with pytest.raises(ValueError):
        alpha_composite(np.zeros((2, 2, 3), np.uint8), np.zeros((3, 2, 4), np.uint8))


def test_additions_win_over_deletions():
    page = np.full((4, 4, 3), 255, dtype=np.uint8)
    deletions = _solid_layer((4, 4), (0, 0, 255))
    additions = _solid_layer((4, 4), (255, 0, 0))
    out = compose(page, deletions, additions)
    assert np.all(out == np.array([255, 0, 0], dtype=np.uint8))


def test_legend_box_corners():
    assert legend_box(1000, 800, "top-left") == (20, 20, 220, 120)
    assert legend_box(1000, 800, "top-right") == (780, 20, 980, 120)
    assert legend_box(1000, 800, "bottom-left") == (20, 680, 220, 780)
    assert legend_box(1000, 800, "bottom-right") == (780, 680, 980, 780)


def test_draw_legend_in_place_and_idempotent():
    once = np.full((300, 400, 3), 255, dtype=np.uint8)
    twice = once.copy()
    result = draw_legend(once, "top-left", ColorScheme())
    assert result is once
    draw_legend(twice, "top-left", ColorScheme())
    draw_legend(twice, "top-left", ColorScheme())
    assert np.array_equal(once, twice)
    # swatches use the scheme colours
    assert tuple(once[60, 40]) == (255, 0, 0)
    assert tuple(once[85, 40]) == (0, 0, 255)
    # nothing outside the box is touched
    assert np.all(once[130:, :] == 255)
    assert np.all(once[:, 230:] == 255)


def test_side_by_side_layout():
    panels = [np.full((10, 20, 3), value, dtype=np.uint8) for value in (0, 100, 200)]
    strip = side_by_side(panels, spacing=12)
    assert strip.shape == (34, 132, 3)
    assert np.all(strip[12:22, 12:32] == 0)
    assert np.all(strip[12:22, 56:76] == 100)
    assert np.all(strip[12:22, 100:120] == 200)
    assert np.all(strip[:12] == 255)


def test_side_by_side_centres_smaller_panels():
    strip = side_by_side([np.zeros((10, 10, 3), np.uint8), np.zeros((4, 4, 3), np.uint8)], spacing=0)
    assert strip.shape == (10, 20, 3)
    assert np.all(strip[3:7, 13:17] == 0)
    assert strip[0, 10, 0] == 255
