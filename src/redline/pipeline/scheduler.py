"""Build page jobs and fan them out across worker processes."""
from __future__ import annotations

import logging
import os
from concurrent.futures import Executor, Future, ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ..backend.raster import page_base_name
from ..core.types import JobState, PageJob, PageOutcome, RasterPage
from ..errors import PageJobError
from ..pages import should_process_page
from ..presets import DiffParams
from .page_job import process_page_job

logger = logging.getLogger(__name__)

ExecutorFactory = Callable[[int], Executor]


def build_page_jobs(
    pages_a: Sequence[RasterPage],
    pages_b: Sequence[RasterPage],
    selection: str = "",
) -> List[PageJob]:
    """Pair up pages by index, honouring the page ``selection``.

    Pages of the original come first (paired with the modified page of the
    same index when there is one), followed by pages that only exist in the
    modified document. Each selected index appears exactly once.
    """

    by_index_b: Dict[int, RasterPage] = {page.index: page for page in pages_b}
    seen = set()
    jobs: List[PageJob] = []
    for page in pages_a:
        if page.index in seen or not should_process_page(page.index, selection):
            continue
        seen.add(page.index)
        jobs.append(PageJob(page.index, page_base_name(page.index), page, by_index_b.get(page.index)))
    for page in pages_b:
        if page.index in seen or not should_process_page(page.index, selection):
            continue
        seen.add(page.index)
        jobs.append(PageJob(page.index, page_base_name(page.index), None, page))
    return jobs


def resolve_workers(requested: Optional[int], job_count: int) -> int:
    """Return the number of workers to use for ``job_count`` jobs."""

    if job_count <= 1:
        return 1
    available = requested if requested is not None else (os.cpu_count() or 1)
    return max(1, min(available, job_count))


def _failed(job: PageJob, error: BaseException) -> PageOutcome:
    if not isinstance(error, PageJobError):
        error = PageJobError(job.index, f"{type(error).__name__}: {error}")
    return PageOutcome(
        index=job.index,
        base_name=job.base_name,
        state=JobState.FAILED,
        error=error,
    )


def _run_serial(jobs: Sequence[PageJob], params: DiffParams, out_dir: Path) -> List[PageOutcome]:
    outcomes: List[PageOutcome] = []
    for position, job in enumerate(jobs, start=1):
        logger.debug("page %d: %s", job.index, JobState.RUNNING.value)
        try:
            outcomes.append(process_page_job(job, params, out_dir))
        except PageJobError as exc:
            logger.exception("Failed to process page %d", job.index)
            outcomes.append(_failed(job, exc))
        logger.debug("Progress: %d/%d pages processed", position, len(jobs))
    return outcomes


def _run_parallel(
    jobs: Sequence[PageJob],
    params: DiffParams,
    out_dir: Path,
    executor: Executor,
) -> List[PageOutcome]:
    outcomes: List[PageOutcome] = []
    futures: Dict[Future, PageJob] = {}
    try:
        for job in jobs:
            futures[executor.submit(process_page_job, job, params, out_dir)] = job
            logger.debug("page %d: %s", job.index, JobState.RUNNING.value)
        for future in as_completed(futures):
            job = futures[future]
            try:
                outcomes.append(future.result())
            except Exception as exc:
                logger.error("Failed to process page %d: %s", job.index, exc)
                outcomes.append(_failed(job, exc))
    except KeyboardInterrupt:
        for future in futures:
            future.cancel()
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    return outcomes


def run_page_jobs(
    jobs: Sequence[PageJob],
    params: DiffParams,
    out_dir: Path,
    *,
    workers: Optional[int] = None,
    executor_factory: ExecutorFactory = ProcessPoolExecutor,
) -> List[PageOutcome]:
    """Run every job and return one outcome per job, sorted by page index.

    A single job, or a worker count of one, runs in the calling process and
    never creates an executor. A failing page is reported as a ``FAILED``
    outcome and does not stop the other pages.
    """

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    if not jobs:
        return []

    for job in jobs:
        logger.debug("page %d: %s", job.index, JobState.PENDING.value)

    count = resolve_workers(workers if workers is not None else params.workers, len(jobs))
    if count == 1:
        logger.info("  Processing %d pages sequentially...", len(jobs))
        outcomes = _run_serial(jobs, params, out_dir)
    else:
        logger.info("  Processing %d pages in parallel (%d workers)...", len(jobs), count)
        executor = executor_factory(count)
        with executor:
            outcomes = _run_parallel(jobs, params, out_dir, executor)

    return sorted(outcomes, key=lambda outcome: outcome.index)
