"""
Particle segmentation over the finished label grid.

- 8-connected components of the sample mask (material identity is not
  used for connectivity; mixed particles are resolved later by vote)
- Per-component accumulation of shape, color, confidence and vote features
- Noise gate: components smaller than max(20, W*H/50000) pixels are dropped
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List
import cv2
import numpy as np

from .labels import LabelGrid
from .params import AnalysisParams

logger = logging.getLogger(__name__)


@dataclass
class ParticleFeatures:
    """Accumulated features of one connected component."""

    label: int
    pixel_count: int = 0
    min_x: int = 0
    min_y: int = 0
    max_x: int = 0
    max_y: int = 0
    sum_x: float = 0.0
    sum_y: float = 0.0
    sum_h: float = 0.0
    sum_s: float = 0.0
    sum_v: float = 0.0
    sum_confidence: float = 0.0
    sum_confidence_sq: float = 0.0
    border_pixels: int = 0
    # catalog index -> pixel votes / confidence-weighted votes
    votes: Dict[int, int] = field(default_factory=dict)
    weighted_votes: Dict[int, float] = field(default_factory=dict)

    @property
    def bbox_width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def bbox_height(self) -> int:
        return self.max_y - self.min_y + 1


def min_particle_size(width: int, height: int, params: AnalysisParams | None = None) -> int:
    """Smallest accepted particle area in pixels."""
    p = params or AnalysisParams()
    return max(p.min_particle_px, int(width * height / p.particle_area_divisor))


def border_mask(sample: np.ndarray) -> np.ndarray:
    """Sample pixels with at least one of the 8 neighbours outside the sample or the image."""
    m = sample.astype(np.uint8)
    ker = np.ones((3, 3), np.uint8)
    inner = cv2.erode(m, ker, borderType=cv2.BORDER_CONSTANT, borderValue=0)
    return sample & (inner == 0)


def segment_particles(grid: LabelGrid, params: AnalysisParams | None = None) -> List[ParticleFeatures]:
    """
    Group sample pixels into 8-connected particles and accumulate their features.

    Returns:
        ParticleFeatures for every component that passes the size gate,
        in raster order of each component's first pixel.
    """
    p = params or AnalysisParams()
    sample = grid.is_sample
    if not sample.any():
        return []

    num, labels, stats, _ = cv2.connectedComponentsWithStats(sample.astype(np.uint8), connectivity=8)
    min_area = min_particle_size(grid.width, grid.height, p)

    # Per-component sums via bincount over the flat sample pixels
    ys, xs = np.nonzero(sample)
    lab = labels[ys, xs]
    conf = grid.confidence[ys, xs].astype(np.float64)

    def per_label(weights):
        return np.bincount(lab, weights=weights, minlength=num)

    sum_x = per_label(xs.astype(np.float64))
    sum_y = per_label(ys.astype(np.float64))
    sum_h = per_label(grid.hue[ys, xs].astype(np.float64))
    sum_s = per_label(grid.saturation[ys, xs].astype(np.float64))
    sum_v = per_label(grid.value[ys, xs].astype(np.float64))
    sum_c = per_label(conf)
    sum_c2 = per_label(conf * conf)
    border = per_label(border_mask(sample)[ys, xs].astype(np.float64))

    n_mat = len(grid.catalog)
    mats = grid.material[ys, xs].astype(np.int64)
    assigned = mats >= 0
    if n_mat:
        key = lab[assigned].astype(np.int64) * n_mat + mats[assigned]
        votes = np.bincount(key, minlength=num * n_mat).reshape(num, n_mat)
        wvotes = np.bincount(key, weights=conf[assigned], minlength=num * n_mat).reshape(num, n_mat)
    else:
        votes = np.zeros((num, 0), dtype=np.int64)
        wvotes = np.zeros((num, 0), dtype=np.float64)

    out: List[ParticleFeatures] = []
    dropped = 0
    for i in range(1, num):
        area = int(stats[i, cv2.CC_STAT_AREA])
        if area < min_area:
            dropped += 1
            continue
        x, y = int(stats[i, cv2.CC_STAT_LEFT]), int(stats[i, cv2.CC_STAT_TOP])
        w, h = int(stats[i, cv2.CC_STAT_WIDTH]), int(stats[i, cv2.CC_STAT_HEIGHT])
        nz = np.nonzero(votes[i])[0]
        out.append(ParticleFeatures(
            label=i,
            pixel_count=area,
            min_x=x, min_y=y, max_x=x + w - 1, max_y=y + h - 1,
            sum_x=float(sum_x[i]), sum_y=float(sum_y[i]),
            sum_h=float(sum_h[i]), sum_s=float(sum_s[i]), sum_v=float(sum_v[i]),
            sum_confidence=float(sum_c[i]), sum_confidence_sq=float(sum_c2[i]),
            border_pixels=int(border[i]),
            votes={int(j): int(votes[i, j]) for j in nz},
            weighted_votes={int(j): float(wvotes[i, j]) for j in nz},
        ))

    logger.debug("Segmentation: %d components, %d kept, %d below %d px",
                 num - 1, len(out), dropped, min_area)
    return out
