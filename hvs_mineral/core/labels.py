"""
Per-pixel label grid.

Contiguous numpy planes instead of one object per pixel. Material
assignment uses sentinel indices: BACKGROUND for pixels outside the sample
mask, INDETERMINATE for sample pixels the classifier refused to label,
and a catalog index (>= 0) otherwise.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional
import numpy as np

from .catalog import MaterialCatalog, MaterialKind

BACKGROUND = -2
INDETERMINATE = -1


class ConfidenceLevel(IntEnum):
    INDETERMINATE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3


@dataclass(frozen=True)
class PixelLabel:
    """Read-only view of one grid cell."""

    x: int
    y: int
    is_sample: bool
    rgb: tuple
    hsv: tuple
    material_id: Optional[str]
    kind: MaterialKind
    confidence: float
    level: ConfidenceLevel
    score: float
    score_gap: float

    @property
    def is_indeterminate(self) -> bool:
        return self.is_sample and self.material_id is None


class LabelGrid:
    """Label planes for one analysis; each cell is written once by the classifier."""

    def __init__(self, rgb: np.ndarray, catalog: MaterialCatalog):
        h, w = rgb.shape[:2]
        self.width = w
        self.height = h
        self.rgb = rgb
        self.catalog = catalog
        self.is_sample = np.zeros((h, w), dtype=bool)
        self.hue = np.zeros((h, w), dtype=np.float32)
        self.saturation = np.zeros((h, w), dtype=np.float32)
        self.value = np.zeros((h, w), dtype=np.float32)
        self.material = np.full((h, w), BACKGROUND, dtype=np.int16)
        self.kind = np.zeros((h, w), dtype=np.int8)
        self.confidence = np.zeros((h, w), dtype=np.float32)
        self.level = np.zeros((h, w), dtype=np.int8)
        self.score = np.zeros((h, w), dtype=np.float32)
        self.score_gap = np.zeros((h, w), dtype=np.float32)

    def counts(self) -> dict:
        """Number of background, indeterminate and assigned pixels."""
        m = self.material
        return {
            "background": int(np.count_nonzero(m == BACKGROUND)),
            "indeterminate": int(np.count_nonzero(m == INDETERMINATE)),
            "assigned": int(np.count_nonzero(m >= 0)),
        }

    def label_at(self, x: int, y: int) -> PixelLabel:
        idx = int(self.material[y, x])
        material_id = self.catalog[idx].id if idx >= 0 else None
        return PixelLabel(
            x=x,
            y=y,
            is_sample=bool(self.is_sample[y, x]),
            rgb=tuple(int(c) for c in self.rgb[y, x]),
            hsv=(float(self.hue[y, x]), float(self.saturation[y, x]), float(self.value[y, x])),
            material_id=material_id,
            kind=MaterialKind(int(self.kind[y, x])),
            confidence=float(self.confidence[y, x]),
            level=ConfidenceLevel(int(self.level[y, x])),
            score=float(self.score[y, x]),
            score_gap=float(self.score_gap[y, x]),
        )
