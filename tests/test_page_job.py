import json

import numpy as np
import pytest

pytest.importorskip("cv2")

from redline.core.types import AlignedPagePair, JobState, PageJob, RasterPage
from redline.pipeline.page_job import process_page_job, render_pair
from redline.presets import DiffParams
from redline.utils.image_ops import read_rgb, write_rgb
from redline.utils.normalize import normalize_pair


def _page(squares, size=(60, 80)):
    img = np.full(size + (3,), 255, dtype=np.uint8)
    for x0, y0, x1, y1 in squares:
        img[y0:y1, x0:x1] = 0
    return img


def test_render_pair_is_deterministic():
    pair = AlignedPagePair(1, _page([(5, 5, 20, 20)]), _page([(5, 5, 20, 20), (40, 30, 60, 50)]))
    first = render_pair(pair, DiffParams())
    second = render_pair(pair, DiffParams())
    for name in ("ink_original", "ink_modified", "additions", "deletions", "overlay", "side_by_side"):
        assert np.array_equal(getattr(first, name), getattr(second, name))
    assert first.stats == second.stats
    assert first.stats.added_pixels > 0
    assert first.stats.deleted_pixels == 0


def test_render_pair_identical_pages():
    page = _page([(5, 5, 20, 20)])
    render = render_pair(AlignedPagePair(1, page, page.copy()), DiffParams())
    assert render.stats.added_pixels == 0
    assert render.stats.deleted_pixels == 0
    assert not render.stats.changed


def test_render_pair_zero_opacity_matches_modified_page():
    pair = AlignedPagePair(1, _page([(5, 5, 20, 20)]), _page([(40, 30, 60, 50)]))
    render = render_pair(pair, DiffParams(overlay_opacity=0, show_legend=False))
    assert np.array_equal(render.overlay, pair.modified)
    assert render.stats.changed


def test_render_pair_marks_additions_red_and_deletions_blue():
    pair = AlignedPagePair(1, _page([(5, 5, 25, 25)]), _page([(40, 30, 60, 50)]))
    render = render_pair(pair, DiffParams(show_legend=False, side_by_side=False))
    assert tuple(render.overlay[40, 50]) == (255, 0, 0)
    assert tuple(render.overlay[15, 15]) == (0, 0, 255)
    assert render.side_by_side is None


def test_new_page_is_entirely_addition():
    modified = _page([(10, 10, 30, 30), (40, 20, 70, 40)])
    pair = normalize_pair(None, modified, 3)
    render = render_pair(pair, DiffParams())
    assert render.stats.deleted_pixels == 0
    assert render.stats.added_pixels == int(render.ink_modified.sum())
    assert render.ink_original.sum() == 0


def test_process_page_job_writes_outputs(tmp_path):
    a_path = write_rgb(tmp_path / "a.png", _page([(5, 5, 20, 20)]))
    b_path = write_rgb(tmp_path / "b.png", _page([(40, 30, 60, 50)], size=(70, 90)))
    job = PageJob(
        4,
        "page-00004",
        RasterPage(4, 80, 60, a_path),
        RasterPage(4, 90, 70, b_path),
    )
    out = tmp_path / "out"
    out.mkdir()
    outcome = process_page_job(job, DiffParams(keep_intermediates=True), out)

    assert outcome.state is JobState.DONE
    assert read_rgb(outcome.overlay_path).shape == (70, 90, 3)
    assert outcome.side_by_side_path.exists()
    for suffix in ("Amask", "Bmask", "add.mask", "del.mask", "add.overlay", "del.overlay"):
        assert (out / f"page-00004.{suffix}.png").exists()
    stats = json.loads((out / "page-00004.stats.json").read_text(encoding="utf-8"))
    assert stats == {
        "page": 4,
        "added_pixels": outcome.stats.added_pixels,
        "deleted_pixels": outcome.stats.deleted_pixels,
    }


def test_process_page_job_skips_intermediates_by_default(tmp_path):
    path = write_rgb(tmp_path / "a.png", _page([]))
    job = PageJob(1, "page-00001", RasterPage(1, 80, 60, path), RasterPage(1, 80, 60, path))
    process_page_job(job, DiffParams(side_by_side=False), tmp_path)
    assert (tmp_path / "page-00001.overlay.png").exists()
    assert not (tmp_path / "page-00001.sxs.png").exists()
    assert not (tmp_path / "page-00001.Amask.png").exists()
