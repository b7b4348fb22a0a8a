"""
Colorimetric pixel classifier.

Scores every sample pixel against the whole material catalog:

  1) base score = weighted hue / saturation / value proximity × priority
  2) material-specific heuristic penalties (see `rules`)
  3) best and second-best candidate, score gap
  4) confidence tier from (score, gap)
  5) pixels with a weak or ambiguous best match are left INDETERMINATE

Vectorised over pixel blocks: the pipeline feeds it one band of rows at a time.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import numpy as np

from .catalog import MaterialCatalog, MaterialKind
from .color import rgb_to_hsv_array
from .labels import INDETERMINATE, ConfidenceLevel
from .params import AnalysisParams
from .rules import rules_for


@dataclass
class ClassifiedBlock:
    """Classification planes for a block of pixels (same leading shape as the input)."""

    hue: np.ndarray
    saturation: np.ndarray
    value: np.ndarray
    material: np.ndarray     # catalog index or INDETERMINATE
    kind: np.ndarray         # MaterialKind codes
    confidence: np.ndarray   # 0 .. max_confidence
    level: np.ndarray        # ConfidenceLevel codes
    score: np.ndarray        # best (penalised) score
    score_gap: np.ndarray    # best - second best


@dataclass(frozen=True)
class PixelDecision:
    """Classification of a single RGB triple."""

    material_id: Optional[str]
    kind: MaterialKind
    confidence: float
    level: ConfidenceLevel
    score: float
    score_gap: float
    second_id: Optional[str]


def confidence_level(score: float, gap: float, params: AnalysisParams | None = None) -> ConfidenceLevel:
    """Confidence tier for a (best score, score gap) pair."""
    p = params or AnalysisParams()
    if score >= p.high_score and gap >= p.high_gap:
        return ConfidenceLevel.HIGH
    if score >= p.medium_score and gap >= p.medium_gap:
        return ConfidenceLevel.MEDIUM
    if score >= p.low_score:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.INDETERMINATE


def confidence_levels(score: np.ndarray, gap: np.ndarray, params: AnalysisParams) -> np.ndarray:
    """Vectorised `confidence_level`."""
    p = params
    return np.select(
        [
            (score >= p.high_score) & (gap >= p.high_gap),
            (score >= p.medium_score) & (gap >= p.medium_gap),
            score >= p.low_score,
        ],
        [int(ConfidenceLevel.HIGH), int(ConfidenceLevel.MEDIUM), int(ConfidenceLevel.LOW)],
        default=int(ConfidenceLevel.INDETERMINATE),
    ).astype(np.int8)


def _range_proximity(x: np.ndarray, lo: np.ndarray, hi: np.ndarray) -> np.ndarray:
    mid = (lo + hi) / 2.0
    half = np.maximum(1e-6, (hi - lo) / 2.0)
    prox = np.clip(1.0 - np.abs(x - mid) / half, 0.0, 1.0)
    return np.where((x >= lo) & (x <= hi), prox, 0.0)


class PixelClassifier:
    """Scores pixels against a MaterialCatalog; read-only after construction."""

    def __init__(self, catalog: MaterialCatalog, params: AnalysisParams | None = None):
        self.catalog = catalog
        self.params = params or AnalysisParams()

        entries = list(catalog)
        self._n = len(entries)
        self._hue_mid = np.array([e.hue_mid for e in entries], dtype=np.float64)
        self._hue_half = np.array([e.hue_half_span for e in entries], dtype=np.float64)
        self._hue_full = np.array([e.hue_half_span >= 180.0 for e in entries], dtype=bool)
        self._s_lo = np.array([e.saturation[0] for e in entries], dtype=np.float64)
        self._s_hi = np.array([e.saturation[1] for e in entries], dtype=np.float64)
        self._v_lo = np.array([e.value[0] for e in entries], dtype=np.float64)
        self._v_hi = np.array([e.value[1] for e in entries], dtype=np.float64)
        self._priority = np.array([e.priority for e in entries], dtype=np.float64)
        self._kinds = np.array(catalog.kind_codes(), dtype=np.int8)
        self._rules = [(j, rules_for(e.id)) for j, e in enumerate(entries)]
        self._rules = [(j, rs) for j, rs in self._rules if rs]

    # ---- scoring ----

    def score_matrix(self, rgb: np.ndarray, h: np.ndarray, s: np.ndarray, v: np.ndarray) -> np.ndarray:
        """
        Penalised score of every pixel against every catalog entry.

        Args:
            rgb: (N, 3) uint8 pixels.
            h, s, v: (N,) HSV of the same pixels.

        Returns:
            (N, M) float64 scores, M = catalog size.
        """
        p = self.params
        hh = h[:, None]
        d = np.abs(hh - self._hue_mid[None, :]) % 360.0
        d = np.where(d > 180.0, 360.0 - d, d)
        hue_prox = np.clip(1.0 - d / self._hue_half[None, :], 0.0, 1.0)
        hue_prox = np.where(self._hue_full[None, :], 1.0, hue_prox)

        sat_prox = _range_proximity(s[:, None], self._s_lo[None, :], self._s_hi[None, :])
        val_prox = _range_proximity(v[:, None], self._v_lo[None, :], self._v_hi[None, :])

        wsum = p.hue_weight + p.saturation_weight + p.value_weight
        base = (p.hue_weight * hue_prox + p.saturation_weight * sat_prox + p.value_weight * val_prox) / wsum
        scores = base * self._priority[None, :]

        if self._rules:
            c = rgb.astype(np.float64)
            r, g, b = c[:, 0], c[:, 1], c[:, 2]
            for j, rules in self._rules:
                for rule in rules:
                    scores[:, j] *= rule.factor(r, g, b, h, s, v)
        return scores

    # ---- classification ----

    def classify(self, rgb: np.ndarray) -> ClassifiedBlock:
        """Classify an (..., 3) uint8 block of sample pixels."""
        p = self.params
        lead = rgb.shape[:-1]
        flat = rgb.reshape(-1, 3)
        h, s, v = rgb_to_hsv_array(flat)
        n = flat.shape[0]

        if self._n == 0 or n == 0:
            best = np.zeros(n)
            gap = np.zeros(n)
            best_idx = np.full(n, INDETERMINATE, dtype=np.int16)
        else:
            scores = self.score_matrix(flat, h, s, v)
            best_idx = np.argmax(scores, axis=1).astype(np.int16)
            rows = np.arange(n)
            best = scores[rows, best_idx]
            if self._n > 1:
                scores[rows, best_idx] = -np.inf
                second = np.maximum(scores.max(axis=1), 0.0)
            else:
                second = np.zeros(n)
            gap = best - second

        level = confidence_levels(best, gap, p)
        refuse = (best < p.min_score) | ((level == int(ConfidenceLevel.INDETERMINATE)) & (gap < p.indeterminate_gap))
        if self._n == 0:
            refuse[:] = True

        material = np.where(refuse, INDETERMINATE, best_idx).astype(np.int16)
        kind = np.where(refuse, int(MaterialKind.NONE), self._kinds[np.maximum(best_idx, 0)] if self._n else 0)
        confidence = np.where(refuse, 0.0, np.clip(best, 0.0, p.max_confidence))

        return ClassifiedBlock(
            hue=h.reshape(lead),
            saturation=s.reshape(lead),
            value=v.reshape(lead),
            material=material.reshape(lead),
            kind=np.asarray(kind, dtype=np.int8).reshape(lead),
            confidence=confidence.reshape(lead),
            level=level.reshape(lead),
            score=best.reshape(lead),
            score_gap=gap.reshape(lead),
        )

    def classify_pixel(self, r: int, g: int, b: int) -> PixelDecision:
        """Classify a single RGB triple (convenience wrapper around `classify`)."""
        rgb = np.array([[r, g, b]], dtype=np.uint8)
        blk = self.classify(rgb)
        idx = int(blk.material[0])
        second_id = None
        if self._n > 1:
            h, s, v = rgb_to_hsv_array(rgb)
            sc = self.score_matrix(rgb, h, s, v)[0]
            order = np.argsort(-sc, kind="stable")
            second_id = self.catalog[int(order[1])].id
        return PixelDecision(
            material_id=self.catalog[idx].id if idx >= 0 else None,
            kind=MaterialKind(int(blk.kind[0])),
            confidence=float(blk.confidence[0]),
            level=ConfidenceLevel(int(blk.level[0])),
            score=float(blk.score[0]),
            score_gap=float(blk.score_gap[0]),
            second_id=second_id,
        )
