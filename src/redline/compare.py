"""Raster PDF comparison producing a red/blue overlay document."""
from __future__ import annotations

import logging
import tempfile
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .backend.raster import RasterBackend, select_backend
from .core.types import DocumentStats, PageOutcome
from .pipeline.page_job import page_outputs
from .pipeline.scheduler import ExecutorFactory, build_page_jobs, run_page_jobs
from .presets import DiffParams
from .report import aggregate_stats, format_summary, write_json_report

logger = logging.getLogger(__name__)

OVERLAY_PDF = "overlay.diff.pdf"
SIDE_BY_SIDE_PDF = "side-by-side.pdf"
REPORT_JSON = "diff.json"


@dataclass(frozen=True)
class DiffResult:
    params: DiffParams
    outcomes: Tuple[PageOutcome, ...]
    stats: DocumentStats
    overlay_pdf: Optional[Path] = None
    side_by_side_pdf: Optional[Path] = None
    report_path: Optional[Path] = None
    elapsed: float = 0.0

    @property
    def failures(self) -> List[PageOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    def to_dict(self) -> Dict[str, object]:
        return {
            "params": self.params.to_dict(),
            "summary": self.stats.to_dict(),
            "pages": [outcome.to_dict() for outcome in self.outcomes],
            "overlay_pdf": str(self.overlay_pdf) if self.overlay_pdf else None,
            "side_by_side_pdf": str(self.side_by_side_pdf) if self.side_by_side_pdf else None,
            "elapsed": round(self.elapsed, 3),
        }


def compare_documents(
    old_pdf: str | Path,
    new_pdf: str | Path,
    out_dir: str | Path,
    *,
    params: DiffParams,
    backend: Optional[RasterBackend] = None,
    executor_factory: ExecutorFactory = ProcessPoolExecutor,
    clean: bool = False,
) -> DiffResult:
    """Compare ``old_pdf`` against ``new_pdf`` and write the results to ``out_dir``.

    Parameters, dependencies and both inputs are checked before any page is
    rendered. Rasterized pages live in a temporary directory that is removed
    however the run ends. Pages that fail are reported in the result and left
    out of the assembled PDFs.
    """

    t_start = time.time()
    params.validate()
    backend = backend or select_backend()
    old_pdf, new_pdf, out_dir = Path(old_pdf), Path(new_pdf), Path(out_dir)
    backend.page_count(old_pdf)
    backend.page_count(new_pdf)
    out_dir.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(prefix="redline-") as tmp:
        tmp_dir = Path(tmp)
        logger.info("[1/5] Rasterizing PDFs at %d DPI...", params.dpi)
        pages_a = backend.rasterize(old_pdf, params.dpi, tmp_dir / "a")
        pages_b = backend.rasterize(new_pdf, params.dpi, tmp_dir / "b")

        logger.info("[2/5] Building page jobs...")
        jobs = build_page_jobs(pages_a, pages_b, params.pages)
        logger.info("  %d of %d pages selected", len(jobs), max(len(pages_a), len(pages_b)))

        logger.info("[3/5] Computing directional diffs (red=new, blue=removed)...")
        outcomes = run_page_jobs(
            jobs,
            params,
            out_dir,
            workers=params.workers,
            executor_factory=executor_factory,
        )

    logger.info("[4/5] Assembling PDFs...")
    done = [outcome for outcome in outcomes if outcome.ok]
    overlay_pdf = backend.assemble(
        [outcome.overlay_path for outcome in done if outcome.overlay_path],
        params.dpi,
        out_dir / OVERLAY_PDF,
    )
    if overlay_pdf:
        logger.info("  -> %s", overlay_pdf)
    else:
        logger.info("  (no overlay pages found)")

    sxs_pdf = None
    if params.side_by_side:
        sxs_pdf = backend.assemble(
            [outcome.side_by_side_path for outcome in done if outcome.side_by_side_path],
            params.dpi,
            out_dir / SIDE_BY_SIDE_PDF,
        )
        if sxs_pdf:
            logger.info("  -> %s", sxs_pdf)

    stats = aggregate_stats(
        (outcome.stats for outcome in done if outcome.stats is not None),
        failed_pages=[outcome.index for outcome in outcomes if not outcome.ok],
    )

    if clean:
        _remove_page_files(out_dir, outcomes)

    result = DiffResult(
        params=params,
        outcomes=tuple(outcomes),
        stats=stats,
        overlay_pdf=overlay_pdf,
        side_by_side_pdf=sxs_pdf,
        elapsed=time.time() - t_start,
    )
    report_path = write_json_report(result, out_dir / REPORT_JSON)
    result = replace(result, report_path=report_path)

    logger.info("[5/5] Done.")
    for line in format_summary(stats).splitlines():
        logger.info(line)
    for outcome in result.failures:
        logger.warning("page %d failed: %s", outcome.index, outcome.error)
    return result


def _remove_page_files(out_dir: Path, outcomes: List[PageOutcome]) -> None:
    for outcome in outcomes:
        for path in page_outputs(out_dir, outcome.base_name):
            path.unlink(missing_ok=True)
