"""Diff parameters, presets and environment helpers."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .errors import ConfigError

Color = Tuple[float, float, float]

LEGEND_POSITIONS: Tuple[str, ...] = ("top-left", "top-right", "bottom-left", "bottom-right")
MIN_DPI = 72
MAX_DPI = 1200

_BLUR_RE = re.compile(r"^([0-9]+)x([0-9]+(?:\.[0-9]+)?)$")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ColorScheme:
    """RGB palette used for the colour layers and the legend."""

    added: Color = (1.0, 0.0, 0.0)
    removed: Color = (0.0, 0.0, 1.0)
    legend_background: Color = (1.0, 1.0, 1.0)
    legend_border: Color = (0.0, 0.0, 0.0)
    legend_text: Color = (0.0, 0.0, 0.0)

    def to_dict(self) -> Dict[str, Color]:
        return {
            "added": self.added,
            "removed": self.removed,
            "legend_background": self.legend_background,
            "legend_border": self.legend_border,
            "legend_text": self.legend_text,
        }


def to_rgb255(color: Color) -> Tuple[int, int, int]:
    """Convert a ``0..1`` float colour into ``0..255`` integer channels."""

    return tuple(int(round(max(0.0, min(channel, 1.0)) * 255)) for channel in color)  # type: ignore[return-value]


def parse_blur(value: str) -> Tuple[float, float]:
    """Parse a ``RADIUSxSIGMA`` blur geometry such as ``0x1`` or ``2x1.5``."""

    match = _BLUR_RE.match(str(value).strip())
    if not match:
        raise ConfigError(f"BLUR must be in format NxN or NxN.N (got: {value})")
    return float(match.group(1)), float(match.group(2))


@dataclass(frozen=True)
class DiffParams:
    """Parameters driving rasterization, ink detection and rendering."""

    dpi: int = 300
    ink_threshold: int = 80
    blur: str = "0x1"
    white_threshold: int = 95
    overlay_opacity: int = 100
    pages: str = ""
    show_legend: bool = True
    legend_position: str = "bottom-right"
    workers: Optional[int] = None
    side_by_side: bool = True
    keep_intermediates: bool = False
    binarize_threshold: int = 50
    morph_radius: int = 1
    transparency_fuzz: float = 1.0
    montage_spacing: int = 12
    colors: ColorScheme = field(default_factory=ColorScheme)

    @property
    def blur_geometry(self) -> Tuple[float, float]:
        return parse_blur(self.blur)

    def validate(self) -> "DiffParams":
        """Raise :class:`ConfigError` for any out-of-range value."""

        if not isinstance(self.dpi, int) or not MIN_DPI <= self.dpi <= MAX_DPI:
            raise ConfigError(f"DPI must be a number between {MIN_DPI} and {MAX_DPI} (got: {self.dpi})")
        for name in ("ink_threshold", "white_threshold", "overlay_opacity", "binarize_threshold"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= 100:
                raise ConfigError(f"{name} must be a number between 0 and 100 (got: {value})")
        parse_blur(self.blur)
        if self.legend_position not in LEGEND_POSITIONS:
            raise ConfigError(
                f"Legend position must be one of {', '.join(LEGEND_POSITIONS)} (got: {self.legend_position})"
            )
        if self.workers is not None and (not isinstance(self.workers, int) or self.workers < 1):
            raise ConfigError(f"Parallel jobs must be a positive integer or 'auto' (got: {self.workers})")
        if self.morph_radius < 0:
            raise ConfigError(f"Morphology radius must be non-negative (got: {self.morph_radius})")
        if not 0.0 <= self.transparency_fuzz <= 100.0:
            raise ConfigError(f"Transparency fuzz must be between 0 and 100 (got: {self.transparency_fuzz})")
        if self.montage_spacing < 0:
            raise ConfigError(f"Montage spacing must be non-negative (got: {self.montage_spacing})")
        return self

    def to_dict(self) -> Dict[str, object]:
        return {
            "dpi": self.dpi,
            "ink_threshold": self.ink_threshold,
            "blur": self.blur,
            "white_threshold": self.white_threshold,
            "overlay_opacity": self.overlay_opacity,
            "pages": self.pages,
            "show_legend": self.show_legend,
            "legend_position": self.legend_position,
            "workers": self.workers if self.workers is not None else "auto",
            "side_by_side": self.side_by_side,
            "keep_intermediates": self.keep_intermediates,
            "binarize_threshold": self.binarize_threshold,
            "morph_radius": self.morph_radius,
            "transparency_fuzz": self.transparency_fuzz,
            "montage_spacing": self.montage_spacing,
            "colors": self.colors.to_dict(),
        }

    def copy(self, **overrides: object) -> "DiffParams":
        return replace(self, **overrides)


@dataclass(frozen=True)
class Preset:
    """Named bundle of parameters."""

    name: str
    description: str
    params: DiffParams

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "params": self.params.to_dict(),
        }


PRESETS: Mapping[str, Preset] = {
    "strict": Preset(
        name="strict",
        description="Only solid ink counts; faint marks and anti-aliasing are ignored.",
        params=DiffParams(dpi=300, ink_threshold=60, blur="0x1", morph_radius=1),
    ),
    "balanced": Preset(
        name="balanced",
        description="Default mix of sensitivity and noise rejection.",
        params=DiffParams(),
    ),
    "loose": Preset(
        name="loose",
        description="Light greys count as ink; catches faint edits on clean sources.",
        params=DiffParams(dpi=300, ink_threshold=90, blur="0x0", morph_radius=1),
    ),
}


def get_preset(name: str) -> Preset:
    key = name.lower()
    if key not in PRESETS:
        raise KeyError(f"Unknown preset '{name}'. Available: {', '.join(sorted(PRESETS))}")
    return PRESETS[key]


def iter_presets() -> Iterable[Preset]:
    return PRESETS.values()


def _env_int(environ: Mapping[str, str], key: str) -> Optional[int]:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer (got: {raw})") from exc


def _env_flag(environ: Mapping[str, str], key: str) -> Optional[bool]:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return None
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be 1 or 0 (got: {raw})")


def parse_workers(value: Optional[str]) -> Optional[int]:
    """Return ``None`` for ``auto``/empty, otherwise a positive worker count."""

    if value is None:
        return None
    text = str(value).strip().lower()
    if not text or text == "auto":
        return None
    try:
        workers = int(text)
    except ValueError as exc:
        raise ConfigError(f"Parallel jobs must be a positive integer or 'auto' (got: {value})") from exc
    if workers < 1:
        raise ConfigError(f"Parallel jobs must be a positive integer or 'auto' (got: {value})")
    return workers


def params_from_env(environ: Optional[Mapping[str, str]] = None, base: Optional[DiffParams] = None) -> DiffParams:
    """Overlay the classic ``DPI``/``THRESH``/... environment knobs onto ``base``."""

    environ = os.environ if environ is None else environ
    params = base or DiffParams()
    overrides: Dict[str, object] = {}

    for key, field_name in (
        ("DPI", "dpi"),
        ("THRESH", "ink_threshold"),
        ("OVERLAY_OPACITY", "overlay_opacity"),
    ):
        value = _env_int(environ, key)
        if value is not None:
            overrides[field_name] = value

    for key, field_name in (
        ("SXS", "side_by_side"),
        ("SHOW_LEGEND", "show_legend"),
        ("KEEP_INTERMEDIATES", "keep_intermediates"),
    ):
        flag = _env_flag(environ, key)
        if flag is not None:
            overrides[field_name] = flag

    if environ.get("BLUR"):
        overrides["blur"] = environ["BLUR"].strip()
    if environ.get("LEGEND_POSITION"):
        overrides["legend_position"] = environ["LEGEND_POSITION"].strip()
    if "PAGES" in environ:
        overrides["pages"] = environ["PAGES"].strip()
    if "PARALLEL_JOBS" in environ:
        overrides["workers"] = parse_workers(environ["PARALLEL_JOBS"])

    return params.copy(**overrides)
