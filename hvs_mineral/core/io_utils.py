"""
Image I/O utilities.

Loads RGB images and binary sample masks with OpenCV, falling back to Pillow
for formats OpenCV cannot decode.
"""

from __future__ import annotations
import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from .exceptions import ImageLoadError


def _to_uint8(arr: np.ndarray) -> np.ndarray:
    if arr.dtype == np.uint16:
        arr = cv2.normalize(arr, None, 0, 255, cv2.NORM_MINMAX)
    return arr.astype(np.uint8)


def _pil_open(path: str, mode: str) -> np.ndarray:
    try:
        with Image.open(path) as pil:
            return np.array(pil.convert(mode))
    except (OSError, UnidentifiedImageError) as e:
        raise ImageLoadError(f"Cannot read image: {path}", {"path": path, "error": str(e)}) from e


def imread_rgb(path: str) -> np.ndarray:
    """Read an image as an (H, W, 3) uint8 RGB array."""
    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None:
        # Fallback: use Pillow if OpenCV fails
        return _pil_open(path, "RGB").astype(np.uint8)

    img = _to_uint8(img)
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGB)
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def imread_mask(path: str, threshold: int = 127) -> np.ndarray:
    """Read a sample mask; pixels brighter than `threshold` are sample."""
    img = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
    if img is None:
        img = _pil_open(path, "L")
    return _to_uint8(img) > threshold
