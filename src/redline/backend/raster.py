"""Rasterization and PDF assembly backed by PyMuPDF.

The diff core only needs two services from the outside world: turn a
document into per-page RGB rasters, and stitch an ordered list of rasters
back into a PDF. Both sit behind :class:`RasterBackend` so the rest of the
code never talks to PyMuPDF directly. :func:`select_backend` is called once
at startup and fails early when a required library is missing.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

try:  # pragma: no cover - reported through select_backend()
    import fitz  # type: ignore
except ImportError:  # pragma: no cover
    fitz = None  # type: ignore

from ..core.types import RasterPage
from ..errors import DependencyError, InvalidDocumentError, MissingInputError
from ..utils.image_ops import cv2

logger = logging.getLogger(__name__)

PAGE_NAME = "page-{index:05d}"


def page_base_name(index: int) -> str:
    return PAGE_NAME.format(index=index)


class RasterBackend(ABC):
    """Capability interface used by the comparison pipeline."""

    name = "abstract"

    @abstractmethod
    def page_count(self, document: Path) -> int:
        """Return the number of pages, raising ``InputError`` for unusable files."""

    @abstractmethod
    def rasterize(self, document: Path, dpi: int, dest_dir: Path) -> List[RasterPage]:
        """Render every page of ``document`` to ``dest_dir`` as RGB PNG files."""

    @abstractmethod
    def assemble(self, images: Sequence[Path], dpi: int, out_path: Path) -> Optional[Path]:
        """Write ``images`` in the given order as the pages of ``out_path``."""


class PyMuPdfBackend(RasterBackend):
    name = "pymupdf"

    def page_count(self, document: Path) -> int:
        return validate_document(document)

    def rasterize(self, document: Path, dpi: int, dest_dir: Path) -> List[RasterPage]:
        scale = dpi / 72.0
        mat = fitz.Matrix(scale, scale)
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        pages: List[RasterPage] = []
        with fitz.open(str(document)) as doc:
            for number, page in enumerate(doc, start=1):
                if page.rect.width <= 0 or page.rect.height <= 0:
                    logger.error(
                        "Invalid PDF dimensions on page %d: %.2fx%.2f",
                        number,
                        page.rect.width,
                        page.rect.height,
                    )
                    raise InvalidDocumentError(
                        f"'{document}' page {number} has invalid dimensions "
                        f"{page.rect.width}x{page.rect.height}"
                    )
                # alpha=False flattens transparency onto white
                pix = page.get_pixmap(matrix=mat, colorspace=fitz.csRGB, alpha=False)
                path = dest_dir / f"{page_base_name(number)}.png"
                pix.save(str(path))
                pages.append(RasterPage(index=number, width=pix.width, height=pix.height, path=path))
        logger.debug("Rasterized %d pages of %s at %d DPI", len(pages), document, dpi)
        return pages

    def assemble(self, images: Sequence[Path], dpi: int, out_path: Path) -> Optional[Path]:
        if not images:
            return None
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        scale = 72.0 / dpi
        doc = fitz.open()
        try:
            for image in images:
                pix = fitz.Pixmap(str(image))
                page = doc.new_page(width=pix.width * scale, height=pix.height * scale)
                page.insert_image(page.rect, pixmap=pix)
            doc.save(str(out_path), deflate=True, garbage=3)
        finally:
            doc.close()
        return out_path


def validate_document(path: Path) -> int:
    """Check that ``path`` is an existing, readable PDF and return its page count."""

    path = Path(path)
    if not path.is_file():
        raise MissingInputError(f"File '{path}' not found")
    try:
        doc = fitz.open(str(path))
    except Exception as exc:
        raise InvalidDocumentError(f"'{path}' is not a PDF file") from exc
    try:
        if not doc.is_pdf:
            raise InvalidDocumentError(f"'{path}' is not a PDF file")
        return doc.page_count
    finally:
        doc.close()


def select_backend() -> RasterBackend:
    """Return the raster backend, failing when its libraries are missing."""

    missing = []
    if fitz is None:
        missing.append("PyMuPDF")
    if cv2 is None:
        missing.append("opencv-python")
    if missing:
        raise DependencyError(f"Required libraries not installed: {', '.join(missing)}")
    return PyMuPdfBackend()
