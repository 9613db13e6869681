"""Colour layers, directional compositing, legend and side-by-side panels."""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .presets import Color, ColorScheme, to_rgb255
from .utils.image_ops import WHITE, cv2

LEGEND_MARGIN = 20
LEGEND_WIDTH = 200
LEGEND_HEIGHT = 100
_FONT = cv2.FONT_HERSHEY_SIMPLEX if cv2 is not None else 0


def _clamp(value: float, minimum: float = 0.0, maximum: float = 100.0) -> float:
    return max(minimum, min(value, maximum))


def clean_mask(mask: np.ndarray, *, radius: int = 1, binarize_threshold: float = 50) -> np.ndarray:
    """Open then close ``mask`` with a disk and re-binarize it to 0/255.

    Opening drops isolated specks, closing fills pin holes inside strokes.
    """

    cleaned = (mask > 0).astype(np.uint8) * WHITE
    if radius > 0:
        size = 2 * int(radius) + 1
        kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))
        cleaned = cv2.morphologyEx(cleaned, cv2.MORPH_OPEN, kernel)
        cleaned = cv2.morphologyEx(cleaned, cv2.MORPH_CLOSE, kernel)
    level = WHITE * _clamp(binarize_threshold) / 100.0
    return np.where(cleaned >= level, WHITE, 0).astype(np.uint8)


def colorize(
    mask: np.ndarray,
    color: Color,
    opacity: float,
    *,
    radius: int = 1,
    binarize_threshold: float = 50,
    fuzz: float = 1.0,
) -> np.ndarray:
    """Turn a diff mask into an RGBA layer painted with ``color``.

    Pixels of the cleaned mask within ``fuzz`` percent of white get the
    colour at ``opacity`` percent alpha; everything else is fully transparent.
    """

    cleaned = clean_mask(mask, radius=radius, binarize_threshold=binarize_threshold)
    foreground = cleaned >= WHITE * (1.0 - _clamp(fuzz) / 100.0)
    height, width = mask.shape[:2]
    layer = np.zeros((height, width, 4), dtype=np.uint8)
    layer[foreground, :3] = to_rgb255(color)
    layer[foreground, 3] = int(round(WHITE * _clamp(opacity) / 100.0))
    return layer


def alpha_composite(base: np.ndarray, layer: np.ndarray) -> np.ndarray:
    """Blend an RGBA ``layer`` over an RGB ``base`` of the same size."""

    if base.shape[:2] != layer.shape[:2]:
        raise ValueError(f"Layer size {layer.shape[:2]} does not match base {base.shape[:2]}")
    alpha = layer[..., 3:4].astype(np.int32)
    blended = layer[..., :3].astype(np.int32) * alpha + base[..., :3].astype(np.int32) * (WHITE - alpha)
    return ((blended + WHITE // 2) // WHITE).astype(np.uint8)


def compose(modified: np.ndarray, deletion_layer: np.ndarray, addition_layer: np.ndarray) -> np.ndarray:
    """Paint deletions, then additions, over the modified page.

    Additions are applied last so they win wherever both layers are set.
    """

    return alpha_composite(alpha_composite(modified, deletion_layer), addition_layer)


def legend_box(width: int, height: int, position: str) -> Tuple[int, int, int, int]:
    """Return the ``(x1, y1, x2, y2)`` legend rectangle for an image size."""

    if position == "top-left":
        x1, y1 = LEGEND_MARGIN, LEGEND_MARGIN
    elif position == "top-right":
        x1, y1 = width - LEGEND_WIDTH - LEGEND_MARGIN, LEGEND_MARGIN
    elif position == "bottom-left":
        x1, y1 = LEGEND_MARGIN, height - LEGEND_HEIGHT - LEGEND_MARGIN
    else:
        x1, y1 = width - LEGEND_WIDTH - LEGEND_MARGIN, height - LEGEND_HEIGHT - LEGEND_MARGIN
    return x1, y1, x1 + LEGEND_WIDTH, y1 + LEGEND_HEIGHT


def draw_legend(image: np.ndarray, position: str = "bottom-right", colors: ColorScheme = ColorScheme()) -> np.ndarray:
    """Draw the Additions/Deletions legend onto ``image`` in place."""

    height, width = image.shape[:2]
    x1, y1, x2, y2 = legend_box(width, height, position)
    text = to_rgb255(colors.legend_text)

    cv2.rectangle(image, (x1, y1), (x2, y2), to_rgb255(colors.legend_background), thickness=-1)
    cv2.rectangle(image, (x1, y1), (x2, y2), to_rgb255(colors.legend_border), thickness=2)
    cv2.putText(image, "Legend:", (x1 + 10, y1 + 22), _FONT, 0.6, text, 1, cv2.LINE_AA)
    cv2.rectangle(image, (x1 + 10, y1 + 30), (x1 + 35, y1 + 50), to_rgb255(colors.added), thickness=-1)
    cv2.putText(image, "Additions", (x1 + 45, y1 + 47), _FONT, 0.6, text, 1, cv2.LINE_AA)
    cv2.rectangle(image, (x1 + 10, y1 + 55), (x1 + 35, y1 + 75), to_rgb255(colors.removed), thickness=-1)
    cv2.putText(image, "Deletions", (x1 + 45, y1 + 72), _FONT, 0.6, text, 1, cv2.LINE_AA)
    return image


def side_by_side(panels: Sequence[np.ndarray], spacing: int = 12) -> np.ndarray:
    """Tile ``panels`` left to right on a white strip.

    Every tile has the size of the largest panel plus ``spacing`` pixels on
    each side; panels are centred within their tile.
    """

    if not panels:
        raise ValueError("side_by_side needs at least one panel")
    tile_w = max(panel.shape[1] for panel in panels)
    tile_h = max(panel.shape[0] for panel in panels)
    cell_w = tile_w + 2 * spacing
    cell_h = tile_h + 2 * spacing
    strip = np.full((cell_h, cell_w * len(panels), 3), WHITE, dtype=np.uint8)
    for i, panel in enumerate(panels):
        h, w = panel.shape[:2]
        x = i * cell_w + spacing + (tile_w - w) // 2
        y = spacing + (tile_h - h) // 2
        strip[y : y + h, x : x + w] = panel[..., :3]
    return strip
