"""Visual PDF diffs rendered as red (added) / blue (removed) overlays."""

from __future__ import annotations

from .compare import DiffResult, compare_documents
from .errors import (
    ConfigError,
    DependencyError,
    InputError,
    PageJobError,
    RedlineError,
)
from .pages import parse_page_ranges, should_process_page
from .presets import DiffParams, get_preset, iter_presets, params_from_env

__all__ = [
    "compare_documents",
    "DiffResult",
    "DiffParams",
    "get_preset",
    "iter_presets",
    "params_from_env",
    "parse_page_ranges",
    "should_process_page",
    "RedlineError",
    "InputError",
    "ConfigError",
    "DependencyError",
    "PageJobError",
]

__version__ = "1.0.0"
