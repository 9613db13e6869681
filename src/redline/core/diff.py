"""Ink masks and directional set differences between two page rasters."""
from __future__ import annotations

from typing import Tuple

import numpy as np

from ..utils.image_ops import WHITE, cv2


def _level(percent: float) -> float:
    return WHITE * float(percent) / 100.0


def to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def blur(gray: np.ndarray, geometry: Tuple[float, float]) -> np.ndarray:
    """Gaussian blur using an ImageMagick style ``(radius, sigma)`` pair.

    A zero sigma disables blurring. A zero radius lets OpenCV derive the
    kernel size from sigma.
    """

    radius, sigma = geometry
    if sigma <= 0:
        return gray
    ksize = (0, 0) if radius <= 0 else (2 * int(radius) + 1, 2 * int(radius) + 1)
    return cv2.GaussianBlur(gray, ksize, sigmaX=sigma, sigmaY=sigma, borderType=cv2.BORDER_REPLICATE)


def extract_ink(
    image: np.ndarray,
    *,
    blur_geometry: Tuple[float, float] = (0.0, 1.0),
    white_threshold: float = 95,
    ink_threshold: float = 80,
) -> np.ndarray:
    """Return a 0/1 mask that is 1 wherever ``image`` carries ink.

    The page is reduced to grayscale, anything brighter than
    ``white_threshold`` percent is clipped to pure white to drop faint
    background texture, the result is blurred and every pixel at or below
    ``ink_threshold`` percent of full scale becomes foreground. Lowering
    ``ink_threshold`` only ever removes foreground pixels.
    """

    gray = to_gray(image).copy()
    gray[gray > _level(white_threshold)] = WHITE
    softened = blur(gray, blur_geometry)
    return (softened <= _level(ink_threshold)).astype(np.uint8)


def diff_masks(mask_a: np.ndarray, mask_b: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(additions, deletions)`` for the original ``mask_a`` and modified ``mask_b``.

    additions = B AND NOT A, deletions = A AND NOT B, computed as products
    of 0/1 arrays. The two results never share a set pixel.
    """

    if mask_a.shape != mask_b.shape:
        raise ValueError(f"Mask shapes differ: {mask_a.shape} vs {mask_b.shape}")
    a = (mask_a > 0).astype(np.uint8)
    b = (mask_b > 0).astype(np.uint8)
    additions = b * (1 - a)
    deletions = a * (1 - b)
    return additions, deletions


def changed_pixel_count(mask: np.ndarray) -> int:
    """Number of set pixels, as ``mean * width * height`` of a 0/1 mask."""

    if mask.size == 0:
        return 0
    height, width = mask.shape[:2]
    return int(round(float((mask > 0).mean()) * width * height))
