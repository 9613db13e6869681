from __future__ import annotations

"""Helpers for aligning two page rasters onto a shared canvas."""

import logging
from typing import Optional

import numpy as np

from ..core.types import AlignedPagePair
from .image_ops import blank_canvas, image_size, pad_to

logger = logging.getLogger(__name__)


def normalize_pair(
    original: Optional[np.ndarray],
    modified: Optional[np.ndarray],
    index: int,
) -> AlignedPagePair:
    """Return both pages padded to a common size so pixel coordinates line up.

    Both pages present: each is padded with white to the elementwise maximum
    of the two sizes, anchored at the top-left corner. Only one present: the
    missing side becomes a white canvas of the present page's size, so the
    whole page reads as added or removed.
    """

    if original is None and modified is None:
        raise ValueError(f"Page {index}: neither document has this page")

    if original is None:
        width, height = image_size(modified)
        logger.debug("Page %d: no original page, using blank %dx%d canvas", index, width, height)
        return AlignedPagePair(index, blank_canvas(width, height), modified)

    if modified is None:
        width, height = image_size(original)
        logger.debug("Page %d: no modified page, using blank %dx%d canvas", index, width, height)
        return AlignedPagePair(index, original, blank_canvas(width, height))

    width_a, height_a = image_size(original)
    width_b, height_b = image_size(modified)
    width = max(width_a, width_b)
    height = max(height_a, height_b)
    if (width_a, height_a) != (width_b, height_b):
        logger.debug(
            "Page %d: padding %dx%d and %dx%d to %dx%d",
            index,
            width_a,
            height_a,
            width_b,
            height_b,
            width,
            height,
        )
    return AlignedPagePair(index, pad_to(original, width, height), pad_to(modified, width, height))
