"""
Region-of-interest masks.

Rectangle / ellipse / polygon regions (optionally inverted) that further
restrict the sample mask before classification.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
import cv2
import numpy as np

from .exceptions import InputShapeError


class RoiShape(str, Enum):
    NONE = "none"
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    POLYGON = "polygon"


@dataclass(frozen=True)
class RoiDefinition:
    """ROI in pixel coordinates; bounds = (x, y, width, height)."""

    shape: RoiShape = RoiShape.NONE
    bounds: Tuple[int, int, int, int] = (0, 0, 0, 0)
    points: Tuple[Tuple[int, int], ...] = ()
    inverted: bool = False

    def __post_init__(self):
        # lists of lists are accepted; stored as nested tuples so the ROI stays hashable
        object.__setattr__(self, "points", tuple(tuple(p) for p in self.points))

    @property
    def is_active(self) -> bool:
        if self.shape == RoiShape.POLYGON:
            return len(self.points) >= 3
        return self.shape != RoiShape.NONE and self.bounds[2] > 0 and self.bounds[3] > 0

    def _inside(self, x: float, y: float) -> bool:
        bx, by, bw, bh = self.bounds
        if self.shape == RoiShape.RECTANGLE:
            return bx <= x < bx + bw and by <= y < by + bh
        if self.shape == RoiShape.ELLIPSE:
            rx, ry = bw / 2.0, bh / 2.0
            dx = (x + 0.5 - (bx + rx)) / rx
            dy = (y + 0.5 - (by + ry)) / ry
            return dx * dx + dy * dy <= 1.0
        if self.shape == RoiShape.POLYGON:
            contour = np.asarray(self.points, dtype=np.float32).reshape(-1, 1, 2)
            return cv2.pointPolygonTest(contour, (float(x), float(y)), False) >= 0
        return True

    def contains(self, x: float, y: float) -> bool:
        """True if pixel (x, y) belongs to the region (inactive ROI contains everything)."""
        if not self.is_active:
            return True
        return self._inside(x, y) != self.inverted

    def to_mask(self, shape: Tuple[int, int]) -> np.ndarray:
        """Boolean (H, W) mask of the region."""
        h, w = shape
        if not self.is_active:
            return np.ones((h, w), dtype=bool)

        bx, by, bw, bh = self.bounds
        if self.shape == RoiShape.RECTANGLE:
            m = np.zeros((h, w), dtype=bool)
            m[max(0, by): max(0, by + bh), max(0, bx): max(0, bx + bw)] = True
        elif self.shape == RoiShape.ELLIPSE:
            yy, xx = np.mgrid[0:h, 0:w]
            rx, ry = bw / 2.0, bh / 2.0
            dx = (xx + 0.5 - (bx + rx)) / rx
            dy = (yy + 0.5 - (by + ry)) / ry
            m = dx * dx + dy * dy <= 1.0
        else:
            m8 = np.zeros((h, w), np.uint8)
            pts = np.round(np.asarray(self.points, dtype=np.float64)).astype(np.int32)
            cv2.fillPoly(m8, [pts.reshape(-1, 1, 2)], 255)
            m = m8 > 0
        return ~m if self.inverted else m


def apply_roi(mask: np.ndarray, roi: Optional[RoiDefinition]) -> np.ndarray:
    """AND the ROI into a boolean sample mask."""
    if roi is None or not roi.is_active:
        return mask
    if roi.shape != RoiShape.POLYGON:
        bx, by, bw, bh = roi.bounds
        h, w = mask.shape
        if bx >= w or by >= h or bx + bw <= 0 or by + bh <= 0:
            raise InputShapeError(
                "ROI lies outside the image",
                {"bounds": roi.bounds, "image_size": (w, h)},
            )
    return mask & roi.to_mask(mask.shape)
