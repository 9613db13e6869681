"""Per-page diff pipeline executed by the scheduler's workers.

Each job reads its two rasters, aligns them, extracts ink masks, derives
the directional differences and writes the rendered overlay (and the
optional side-by-side strip) under names derived from the page index, so
concurrent workers never touch the same file.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np

from ..core.diff import changed_pixel_count, diff_masks, extract_ink
from ..core.types import AlignedPagePair, JobState, PageJob, PageOutcome, PageStats
from ..errors import PageJobError
from ..overlay import colorize, compose, draw_legend, side_by_side
from ..presets import DiffParams
from ..utils.image_ops import read_rgb, write_mask, write_rgb, write_rgba
from ..utils.normalize import normalize_pair

logger = logging.getLogger(__name__)

PAGE_OUTPUT_SUFFIXES = (
    "overlay.png",
    "sxs.png",
    "Amask.png",
    "Bmask.png",
    "add.mask.png",
    "del.mask.png",
    "add.overlay.png",
    "del.overlay.png",
    "stats.json",
)


def page_outputs(out_dir: Path, base_name: str) -> List[Path]:
    """Every file a page job may write for ``base_name`` under ``out_dir``."""

    return [Path(out_dir) / f"{base_name}.{suffix}" for suffix in PAGE_OUTPUT_SUFFIXES]


@dataclass(frozen=True)
class PageRender:
    """Everything computed for one aligned page pair."""

    ink_original: np.ndarray
    ink_modified: np.ndarray
    additions: np.ndarray
    deletions: np.ndarray
    addition_layer: np.ndarray
    deletion_layer: np.ndarray
    overlay: np.ndarray
    side_by_side: Optional[np.ndarray]
    stats: PageStats


def render_pair(pair: AlignedPagePair, params: DiffParams) -> PageRender:
    """Run the diff pipeline for ``pair`` entirely in memory."""

    geometry = params.blur_geometry
    ink_a = extract_ink(
        pair.original,
        blur_geometry=geometry,
        white_threshold=params.white_threshold,
        ink_threshold=params.ink_threshold,
    )
    ink_b = extract_ink(
        pair.modified,
        blur_geometry=geometry,
        white_threshold=params.white_threshold,
        ink_threshold=params.ink_threshold,
    )
    additions, deletions = diff_masks(ink_a, ink_b)
    stats = PageStats(
        index=pair.index,
        added_pixels=changed_pixel_count(additions),
        deleted_pixels=changed_pixel_count(deletions),
    )

    layer_kwargs = dict(
        radius=params.morph_radius,
        binarize_threshold=params.binarize_threshold,
        fuzz=params.transparency_fuzz,
    )
    addition_layer = colorize(additions, params.colors.added, params.overlay_opacity, **layer_kwargs)
    deletion_layer = colorize(deletions, params.colors.removed, params.overlay_opacity, **layer_kwargs)

    overlay = compose(pair.modified, deletion_layer, addition_layer)
    if params.show_legend:
        draw_legend(overlay, params.legend_position, params.colors)

    strip = None
    if params.side_by_side:
        strip = side_by_side([pair.original, pair.modified, overlay], spacing=params.montage_spacing)

    return PageRender(
        ink_original=ink_a,
        ink_modified=ink_b,
        additions=additions,
        deletions=deletions,
        addition_layer=addition_layer,
        deletion_layer=deletion_layer,
        overlay=overlay,
        side_by_side=strip,
        stats=stats,
    )


def _write_intermediates(render: PageRender, base: Path) -> None:
    write_mask(base.with_name(f"{base.name}.Amask.png"), render.ink_original)
    write_mask(base.with_name(f"{base.name}.Bmask.png"), render.ink_modified)
    write_mask(base.with_name(f"{base.name}.add.mask.png"), render.additions)
    write_mask(base.with_name(f"{base.name}.del.mask.png"), render.deletions)
    write_rgba(base.with_name(f"{base.name}.add.overlay.png"), render.addition_layer)
    write_rgba(base.with_name(f"{base.name}.del.overlay.png"), render.deletion_layer)
    with base.with_name(f"{base.name}.stats.json").open("w", encoding="utf-8") as handle:
        json.dump(render.stats.to_dict(), handle, indent=2)


def process_page_job(job: PageJob, params: DiffParams, out_dir: Path) -> PageOutcome:
    """Process one page job and write its outputs to ``out_dir``.

    Any failure is re-raised as :class:`PageJobError` carrying the page index.
    """

    start = time.time()
    base = Path(out_dir) / job.base_name
    try:
        original = read_rgb(job.original.path) if job.original is not None else None
        modified = read_rgb(job.modified.path) if job.modified is not None else None
        pair = normalize_pair(original, modified, job.index)
        render = render_pair(pair, params)

        overlay_path = write_rgb(base.with_name(f"{job.base_name}.overlay.png"), render.overlay)
        sxs_path = None
        if render.side_by_side is not None:
            sxs_path = write_rgb(base.with_name(f"{job.base_name}.sxs.png"), render.side_by_side)
        if params.keep_intermediates:
            _write_intermediates(render, base)
    except PageJobError:
        raise
    except Exception as exc:
        raise PageJobError(job.index, f"{type(exc).__name__}: {exc}") from exc

    logger.info(
        "page %d processed in %.2fs: +%d / -%d px",
        job.index,
        time.time() - start,
        render.stats.added_pixels,
        render.stats.deleted_pixels,
    )
    return PageOutcome(
        index=job.index,
        base_name=job.base_name,
        state=JobState.DONE,
        stats=render.stats,
        overlay_path=overlay_path,
        side_by_side_path=sxs_path,
    )
