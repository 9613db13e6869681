from pathlib import Path
from typing import Tuple

import numpy as np

try:  # pragma: no cover - availability is checked once by select_backend()
    import cv2  # type: ignore
except ImportError:  # pragma: no cover
    cv2 = None  # type: ignore

WHITE = 255


def blank_canvas(width: int, height: int, value: int = WHITE) -> np.ndarray:
    """Return a uniform RGB canvas of ``width`` x ``height``."""

    return np.full((height, width, 3), value, dtype=np.uint8)


def pad_to(image: np.ndarray, width: int, height: int, value: int = WHITE) -> np.ndarray:
    """Extend ``image`` to ``width`` x ``height`` keeping it at the top-left corner.

    The image is never cropped: requesting a smaller size than the image
    raises ``ValueError``.
    """

    src_height, src_width = image.shape[:2]
    if width < src_width or height < src_height:
        raise ValueError(f"Cannot pad {src_width}x{src_height} image down to {width}x{height}")
    if (src_width, src_height) == (width, height):
        return image
    out = np.full((height, width) + image.shape[2:], value, dtype=image.dtype)
    out[:src_height, :src_width] = image
    return out


def read_rgb(path: Path) -> np.ndarray:
    """Load ``path`` as an RGB ``uint8`` array."""

    bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if bgr is None:
        raise OSError(f"Could not read image {path}")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def write_rgb(path: Path, image: np.ndarray) -> Path:
    if not cv2.imwrite(str(path), cv2.cvtColor(image, cv2.COLOR_RGB2BGR)):
        raise OSError(f"Could not write image {path}")
    return Path(path)


def write_rgba(path: Path, image: np.ndarray) -> Path:
    if not cv2.imwrite(str(path), cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)):
        raise OSError(f"Could not write image {path}")
    return Path(path)


def write_mask(path: Path, mask: np.ndarray) -> Path:
    """Write a 0/1 mask as a black and white PNG (white where set)."""

    if not cv2.imwrite(str(path), (mask > 0).astype(np.uint8) * WHITE):
        raise OSError(f"Could not write image {path}")
    return Path(path)


def image_size(image: np.ndarray) -> Tuple[int, int]:
    height, width = image.shape[:2]
    return width, height
