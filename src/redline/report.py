"""Change statistics and JSON report helpers."""
from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from .core.types import DocumentStats, PageStats

if TYPE_CHECKING:  # pragma: no cover
    from .compare import DiffResult


def aggregate_stats(page_stats: Iterable[PageStats], failed_pages: Iterable[int] = ()) -> DocumentStats:
    """Fold per-page counts into document totals."""

    processed = 0
    changed = 0
    added = 0
    deleted = 0
    for stats in page_stats:
        processed += 1
        added += stats.added_pixels
        deleted += stats.deleted_pixels
        if stats.changed:
            changed += 1
    return DocumentStats(
        pages_processed=processed,
        pages_with_changes=changed,
        total_added=added,
        total_deleted=deleted,
        failed_pages=tuple(sorted(failed_pages)),
    )


def format_summary(stats: DocumentStats) -> str:
    lines = [
        "==================== Change Summary ====================",
        f"Pages processed: {stats.pages_processed}",
        f"Pages with changes: {stats.pages_with_changes}",
        f"Total pixels added (red): {stats.total_added}",
        f"Total pixels deleted (blue): {stats.total_deleted}",
    ]
    if stats.failed_pages:
        lines.append(f"Failed pages: {', '.join(str(page) for page in stats.failed_pages)}")
    lines.append("========================================================")
    return "\n".join(lines)


def write_json_report(result: "DiffResult", path: str | Path) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8") as handle:
        json.dump(result.to_dict(), handle, ensure_ascii=False, indent=2)
    return out_path