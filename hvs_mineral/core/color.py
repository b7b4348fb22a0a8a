"""
Color conversion helpers.

RGB → HSV (hue in degrees, saturation/value in 0..1) for single pixels
and for whole pixel blocks, plus the integer luma approximation used by
the focus and exposure diagnostics.
"""

from __future__ import annotations
from typing import Tuple
import numpy as np


def rgb_to_hsv(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """Convert one 8-bit RGB triple to (hue°, saturation, value)."""
    rd, gd, bd = r / 255.0, g / 255.0, b / 255.0
    mx = max(rd, gd, bd)
    mn = min(rd, gd, bd)
    delta = mx - mn
    v = mx
    s = 0.0 if mx == 0 else delta / mx
    if delta == 0:
        return 0.0, s, v

    if mx == rd:
        h = 60.0 * (((gd - bd) / delta) % 6.0)
    elif mx == gd:
        h = 60.0 * (((bd - rd) / delta) + 2.0)
    else:
        h = 60.0 * (((rd - gd) / delta) + 4.0)
    if h < 0:
        h += 360.0
    if h >= 360.0:
        h -= 360.0
    return h, s, v


def rgb_to_hsv_array(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorised RGB → HSV for an (..., 3) uint8 array.

    Same formulas as `rgb_to_hsv`; returns three float64 arrays with the
    leading shape of the input.
    """
    c = rgb.astype(np.float64) / 255.0
    rd, gd, bd = c[..., 0], c[..., 1], c[..., 2]
    mx = c.max(axis=-1)
    mn = c.min(axis=-1)
    delta = mx - mn

    v = mx
    s = np.divide(delta, mx, out=np.zeros_like(mx), where=mx > 0)

    safe = np.where(delta > 0, delta, 1.0)
    h_r = 60.0 * np.mod((gd - bd) / safe, 6.0)
    h_g = 60.0 * ((bd - rd) / safe + 2.0)
    h_b = 60.0 * ((rd - gd) / safe + 4.0)

    # Channel priority R > G > B on ties, as in the scalar version
    h = np.where(mx == rd, h_r, np.where(mx == gd, h_g, h_b))
    h = np.where(delta > 0, h, 0.0)
    h = np.mod(h, 360.0)
    return h, s, v


def luma(rgb: np.ndarray) -> np.ndarray:
    """Integer luma (0.299 R + 0.587 G + 0.114 B, truncated) as int32."""
    c = rgb.astype(np.float64)
    y = 0.299 * c[..., 0] + 0.587 * c[..., 1] + 0.114 * c[..., 2]
    return y.astype(np.int32)
