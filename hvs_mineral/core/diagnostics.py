"""
Image quality diagnostics.

- Order-independent counters (gradient energy, clipping, sample pixels,
  per-material tallies) collected per worker and merged once per worker
- Focus / exposure / mask sub-scores (0..100)
- Composite quality index and status
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import numpy as np

from .params import AnalysisParams


class QualityStatus(str, Enum):
    """Report status derived from the quality index (and reanalysis)."""

    OFFICIAL = "Official"
    PRELIMINARY = "Preliminary"
    INVALID = "Invalid"
    OFFICIAL_RECHECKED = "OfficialRechecked"
    REVIEW_REQUIRED = "ReviewRequired"


@dataclass
class DiagnosticsAccumulator:
    """Private counters of one worker; merged into the shared totals once."""

    n_materials: int
    total_pixels: int = 0
    sample_pixels: int = 0
    clipped_pixels: int = 0
    indeterminate_pixels: int = 0
    gradient_sum: float = 0.0
    material_counts: np.ndarray = field(default=None)  # type: ignore[assignment]

    def __post_init__(self):
        if self.material_counts is None:
            self.material_counts = np.zeros(self.n_materials, dtype=np.int64)

    def merge(self, other: "DiagnosticsAccumulator") -> None:
        self.total_pixels += other.total_pixels
        self.sample_pixels += other.sample_pixels
        self.clipped_pixels += other.clipped_pixels
        self.indeterminate_pixels += other.indeterminate_pixels
        self.gradient_sum += other.gradient_sum
        self.material_counts += other.material_counts


def accumulate_rows(
    acc: DiagnosticsAccumulator,
    luma: np.ndarray,
    sample: np.ndarray,
    material_rows: np.ndarray,
    y0: int,
    y1: int,
    params: AnalysisParams,
) -> None:
    """
    Add rows [y0, y1) to a worker accumulator.

    Args:
        luma: full-image int32 luma (read-only, neighbours may lie outside the band).
        sample: full-image boolean sample mask.
        material_rows: classified material indices for rows [y0, y1).
    """
    h, w = sample.shape
    band = sample[y0:y1]
    lb = luma[y0:y1]

    acc.total_pixels += band.size
    n_sample = int(np.count_nonzero(band))
    acc.sample_pixels += n_sample
    clipped = band & ((lb < params.clip_dark) | (lb > params.clip_bright))
    acc.clipped_pixels += int(np.count_nonzero(clipped))

    # 4-neighbour gradient on interior sample pixels
    ya, yb = max(1, y0), min(h - 1, y1)
    if yb > ya and w > 2:
        gx = luma[ya:yb, 2:] - luma[ya:yb, :-2]
        gy = luma[ya + 1:yb + 1, 1:-1] - luma[ya - 1:yb - 1, 1:-1]
        inner = sample[ya:yb, 1:-1]
        g2 = gx.astype(np.int64) ** 2 + gy.astype(np.int64) ** 2
        acc.gradient_sum += float(g2[inner].sum())

    mats = material_rows[band]
    acc.indeterminate_pixels += int(np.count_nonzero(mats < 0))
    assigned = mats[mats >= 0]
    if assigned.size and acc.n_materials:
        acc.material_counts += np.bincount(assigned, minlength=acc.n_materials)[: acc.n_materials]


def focus_score(gradient_sum: float, sample_pixels: int) -> float:
    """Raw focus in 0..1: gradient energy / (255² × sample pixels), clamped."""
    raw = gradient_sum / (255.0 * 255.0 * max(1, sample_pixels))
    return min(1.0, max(0.0, raw))


def exposure_score(clipping_fraction: float, full_scale: float = 0.2) -> float:
    """100 × (1 − min(1, clipping / full_scale))."""
    return 100.0 * (1.0 - min(1.0, max(0.0, clipping_fraction) / full_scale))


def mask_score(foreground_fraction: float) -> float:
    """
    Mask quality (0..100) from the sample/total pixel fraction:
    linear ramp 0→50 below 0.3, flat 60 above 0.95, and a bell in between
    peaking at 100 for 0.6 and reaching 80 at ±0.3.
    """
    f = foreground_fraction
    if f < 0.3:
        score = 50.0 * max(0.0, f) / 0.3
    elif f > 0.95:
        score = 60.0
    else:
        d = (f - 0.6) / 0.3
        score = 80.0 + 20.0 * (1.0 - d * d)
    return min(100.0, max(0.0, score))


def quality_index(focus_pct: float, exposure: float, mask: float) -> float:
    q = 0.4 * focus_pct + 0.3 * exposure + 0.3 * mask
    return min(100.0, max(0.0, q))


def quality_status(index: float, params: AnalysisParams | None = None) -> QualityStatus:
    p = params or AnalysisParams()
    if index >= p.official_min:
        return QualityStatus.OFFICIAL
    if index >= p.preliminary_min:
        return QualityStatus.PRELIMINARY
    return QualityStatus.INVALID


@dataclass
class ImageDiagnostics:
    """Aggregated diagnostics of one analysis."""

    focus_raw: float
    focus_score: float
    clipping_fraction: float
    foreground_fraction: float
    exposure_score: float
    mask_score: float
    quality_index: float
    quality_status: QualityStatus


def diagnostics_from(acc: DiagnosticsAccumulator, params: AnalysisParams) -> ImageDiagnostics:
    """Turn merged counters into sub-scores, quality index and status."""
    denom = max(1, acc.sample_pixels)
    focus_raw = focus_score(acc.gradient_sum, acc.sample_pixels)
    focus_pct = 100.0 * focus_raw
    clipping = acc.clipped_pixels / denom
    foreground = acc.sample_pixels / max(1, acc.total_pixels)
    expo = exposure_score(clipping, params.clip_full_scale)
    msk = mask_score(foreground)
    q = quality_index(focus_pct, expo, msk)
    return ImageDiagnostics(
        focus_raw=focus_raw,
        focus_score=focus_pct,
        clipping_fraction=clipping,
        foreground_fraction=foreground,
        exposure_score=expo,
        mask_score=msk,
        quality_index=q,
        quality_status=quality_status(q, params),
    )
