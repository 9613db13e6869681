"""Command line interface for auto-redline."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv

from .compare import compare_documents
from .errors import ConfigError, MissingInputError, RedlineError
from .presets import LEGEND_POSITIONS, DiffParams, get_preset, params_from_env, parse_workers

logger = logging.getLogger("redline")

EXIT_SUCCESS = 0
EXIT_PAGE_FAILURES = 5
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redline",
        description=(
            "Compare two PDF files and generate a visual diff overlay showing "
            "additions (red) and deletions (blue)."
        ),
        epilog=(
            "Environment variables DPI, THRESH, BLUR, OUT, SXS, SHOW_LEGEND, LEGEND_POSITION, "
            "OVERLAY_OPACITY, PAGES, PARALLEL_JOBS and KEEP_INTERMEDIATES (also read from .env) "
            "provide defaults; command line options win."
        ),
    )
    parser.add_argument("old", nargs="?", help="Original PDF file")
    parser.add_argument("new", nargs="?", help="Modified PDF file")
    parser.add_argument("-o", "--out", help="Output directory (default: $OUT or diff_out)")
    parser.add_argument("--preset", default="balanced", help="Preset name (strict|balanced|loose)")
    parser.add_argument("--dpi", type=int, help="Rasterization DPI, 72-1200")
    parser.add_argument("--threshold", type=int, help="Ink detection threshold in percent, 60-90 typical")
    parser.add_argument("--blur", help="Blur geometry RADIUSxSIGMA, e.g. 0x1")
    parser.add_argument("--opacity", type=int, help="Overlay opacity percentage, 0-100")
    parser.add_argument("--pages", help='Page range to process, e.g. "1-5,10,15-20"')
    legend = parser.add_mutually_exclusive_group()
    legend.add_argument("--legend", dest="show_legend", action="store_true", default=None, help="Draw the colour legend")
    legend.add_argument("--no-legend", dest="show_legend", action="store_false", help="Do not draw the legend")
    parser.add_argument("--legend-position", choices=LEGEND_POSITIONS, help="Legend corner")
    parser.add_argument("-j", "--jobs", help="Parallel workers: a positive integer or 'auto'")
    parser.add_argument(
        "--no-side-by-side",
        dest="side_by_side",
        action="store_false",
        default=None,
        help="Skip the original | modified | overlay PDF",
    )
    parser.add_argument(
        "--keep-intermediates",
        action="store_true",
        default=None,
        help="Keep ink masks, diff masks and colour layers per page",
    )
    parser.add_argument("-c", "--clean", action="store_true", help="Remove per-page images, keep only PDFs")
    parser.add_argument("-d", "--dry-run", action="store_true", help="Show configuration and exit")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-v", "--version", action="store_true", help="Print version and exit")
    return parser


def _load_env() -> None:
    """Load configuration from a .env file if present."""
    load_dotenv()


def _override_params(params: DiffParams, args: argparse.Namespace) -> DiffParams:
    overrides = {}
    for field_name, arg_name in (
        ("dpi", "dpi"),
        ("ink_threshold", "threshold"),
        ("blur", "blur"),
        ("overlay_opacity", "opacity"),
        ("pages", "pages"),
        ("show_legend", "show_legend"),
        ("legend_position", "legend_position"),
        ("side_by_side", "side_by_side"),
        ("keep_intermediates", "keep_intermediates"),
    ):
        value = getattr(args, arg_name)
        if value is not None:
            overrides[field_name] = value
    if args.jobs is not None:
        overrides["workers"] = parse_workers(args.jobs)
    return params.copy(**overrides)


def _format_config(old: str, new: str, out_dir: Path, params: DiffParams, clean: bool) -> str:
    data = params.to_dict()
    lines = [
        "==================== Dry Run Configuration ====================",
        "Input Files:",
        f"  A: {old}",
        f"  B: {new}",
        "",
        "Processing Settings:",
        f"  OUT:                 {out_dir}",
        f"  CLEAN_MODE:          {int(clean)}",
    ]
    for key, value in data.items():
        if key == "colors":
            continue
        lines.append(f"  {key.upper() + ':':<20} {value if value != '' else 'all'}")
    lines.append("===============================================================")
    return "\n".join(lines)


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__

        print(f"auto-redline version {__version__}")
        return EXIT_SUCCESS

    if not args.old or not args.new:
        parser.error("both A.pdf and B.pdf are required")

    _load_env()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    try:
        preset = get_preset(args.preset)
    except KeyError as exc:
        logger.error("Error: %s", exc.args[0])
        return ConfigError.exit_code

    try:
        for path in (args.old, args.new):
            if not Path(path).is_file():
                raise MissingInputError(f"File '{path}' not found")
        params = _override_params(params_from_env(os.environ, preset.params), args).validate()
    except (ConfigError, MissingInputError) as exc:
        logger.error("Error: %s", exc)
        return exc.exit_code

    out_dir = Path(args.out or os.environ.get("OUT") or "diff_out")

    if args.dry_run:
        print(_format_config(args.old, args.new, out_dir, params, args.clean))
        return EXIT_SUCCESS

    try:
        result = compare_documents(args.old, args.new, out_dir, params=params, clean=args.clean)
    except RedlineError as exc:
        logger.error("Error: %s", exc)
        return exc.exit_code
    except KeyboardInterrupt:
        logger.error("Interrupted; temporary files removed.")
        return EXIT_INTERRUPTED

    logger.info("Outputs:")
    if result.overlay_pdf:
        logger.info("  - %s            (B with red=new, blue=removed)", result.overlay_pdf)
    if result.side_by_side_pdf:
        logger.info("  - %s            (A | B | overlay)", result.side_by_side_pdf)
    if result.report_path:
        logger.info("  - %s", result.report_path)

    return EXIT_PAGE_FAILURES if result.failures else EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
