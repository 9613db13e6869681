import numpy as np
import pytest

from redline.core.types import AlignedPagePair
from redline.utils import normalize_pair
from redline.utils.image_ops import blank_canvas, pad_to


def test_pad_to_keeps_top_left_anchor():
    img = np.zeros((2, 3, 3), dtype=np.uint8)
    out = pad_to(img, 5, 4)
    assert out.shape == (4, 5, 3)
    assert np.all(out[:2, :3] == 0)
    assert np.all(out[2:, :] == 255)
    assert np.all(out[:, 3:] == 255)


def test_pad_to_refuses_to_crop():
    with pytest.raises(ValueError):
        pad_to(np.zeros((4, 4, 3), np.uint8), 3, 4)


def test_normalize_differently_sized_pages():
    a = np.zeros((30, 40, 3), dtype=np.uint8)
    b = np.zeros((50, 20, 3), dtype=np.uint8)
    pair = normalize_pair(a, b, 1)
    assert pair.original.shape == (50, 40, 3)
    assert pair.modified.shape == (50, 40, 3)
    assert np.all(pair.original[:30, :40] == 0)
    assert np.all(pair.original[30:] == 255)
    assert np.all(pair.modified[:, 20:] == 255)


def test_normalize_missing_original_uses_blank_canvas():
    b = np.zeros((25, 35, 3), dtype=np.uint8)
    pair = normalize_pair(None, b, 3)
    assert pair.index == 3
    assert pair.original.shape == b.shape
    assert np.all(pair.original == 255)
    assert pair.modified is b


def test_normalize_missing_modified_uses_blank_canvas():
    a = np.zeros((25, 35, 3), dtype=np.uint8)
    pair = normalize_pair(a, None, 2)
    assert np.array_equal(pair.modified, blank_canvas(35, 25))


def test_normalize_without_pages():
    with pytest.raises(ValueError):
        normalize_pair(None, None, 1)


def test_aligned_pair_requires_equal_sizes():
    with pytest.raises(ValueError):
        AlignedPagePair(1, np.zeros((2, 2, 3), np.uint8), np.zeros((3, 2, 3), np.uint8))
