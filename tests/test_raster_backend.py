import pytest

fitz = pytest.importorskip("fitz")
pytest.importorskip("cv2")

from redline.backend.raster import PyMuPdfBackend, page_base_name, select_backend, validate_document
from redline.errors import InvalidDocumentError, MissingInputError
from redline.utils.image_ops import blank_canvas, image_size, read_rgb, write_rgb


def _make_pdf(path, count=1, width=200, height=100):
    doc = fitz.open()
    for _ in range(count):
        doc.new_page(width=width, height=height)
    doc.save(str(path))
    doc.close()


def test_page_base_name():
    assert page_base_name(1) == "page-00001"
    assert page_base_name(123) == "page-00123"


def test_validate_document(tmp_path):
    pdf = tmp_path / "doc.pdf"
    _make_pdf(pdf, count=3)
    assert validate_document(pdf) == 3

    with pytest.raises(MissingInputError):
        validate_document(tmp_path / "missing.pdf")

    text = tmp_path / "notes.txt"
    text.write_text("hello", encoding="utf-8")
    with pytest.raises(InvalidDocumentError):
        validate_document(text)


def test_rasterize_scales_with_dpi(tmp_path):
    pdf = tmp_path / "doc.pdf"
    _make_pdf(pdf, count=2)
    pages = PyMuPdfBackend().rasterize(pdf, 144, tmp_path / "raster")
    assert [page.index for page in pages] == [1, 2]
    assert pages[0].path.name == "page-00001.png"
    assert pages[0].size == (400, 200)
    assert image_size(read_rgb(pages[1].path)) == (400, 200)


def test_assemble_preserves_order_and_size(tmp_path):
    images = [
        write_rgb(tmp_path / "one.png", blank_canvas(300, 150)),
        write_rgb(tmp_path / "two.png", blank_canvas(150, 300)),
    ]
    out = PyMuPdfBackend().assemble(images, 150, tmp_path / "out.pdf")
    with fitz.open(str(out)) as doc:
        assert doc.page_count == 2
        assert doc[0].rect.width == pytest.approx(144)
        assert doc[0].rect.height == pytest.approx(72)
        assert doc[1].rect.width == pytest.approx(72)


def test_assemble_nothing(tmp_path):
    assert PyMuPdfBackend().assemble([], 300, tmp_path / "out.pdf") is None
    assert not (tmp_path / "out.pdf").exists()


def test_select_backend():
    assert select_backend().name == "pymupdf"
