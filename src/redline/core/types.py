from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np

from ..errors import PageJobError


@dataclass(frozen=True)
class RasterPage:
    index: int
    width: int
    height: int
    path: Path

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class AlignedPagePair:
    index: int
    original: np.ndarray
    modified: np.ndarray

    def __post_init__(self) -> None:
        if self.original.shape[:2] != self.modified.shape[:2]:
            raise ValueError(
                f"Aligned pages must share a size, got {self.original.shape[:2]} and {self.modified.shape[:2]}"
            )

    @property
    def shape(self) -> Tuple[int, int]:
        height, width = self.modified.shape[:2]
        return height, width


@dataclass(frozen=True)
class PageJob:
    index: int
    base_name: str
    original: Optional[RasterPage]
    modified: Optional[RasterPage]


@dataclass(frozen=True)
class PageStats:
    index: int
    added_pixels: int
    deleted_pixels: int

    @property
    def changed(self) -> bool:
        return self.added_pixels > 0 or self.deleted_pixels > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.index,
            "added_pixels": self.added_pixels,
            "deleted_pixels": self.deleted_pixels,
        }


@dataclass(frozen=True)
class DocumentStats:
    pages_processed: int
    pages_with_changes: int
    total_added: int
    total_deleted: int
    failed_pages: Tuple[int, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages_processed": self.pages_processed,
            "pages_with_changes": self.pages_with_changes,
            "total_added_pixels": self.total_added,
            "total_deleted_pixels": self.total_deleted,
            "failed_pages": list(self.failed_pages),
        }


class JobState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PageOutcome:
    index: int
    base_name: str
    state: JobState
    stats: Optional[PageStats] = None
    overlay_path: Optional[Path] = None
    side_by_side_path: Optional[Path] = None
    error: Optional[PageJobError] = None

    @property
    def ok(self) -> bool:
        return self.state is JobState.DONE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"page": self.index, "state": self.state.value}
        if self.stats is not None:
            data["added_pixels"] = self.stats.added_pixels
            data["deleted_pixels"] = self.stats.deleted_pixels
        if self.error is not None:
            data["error"] = str(self.error)
        return data
