"""
Particle records.

Turns accumulated ParticleFeatures into immutable ParticleRecord objects:
dominant material by confidence-weighted vote, confidence statistics,
bounding-box shape descriptors, composition, and a score-fusion step where
a second, independent classifier can be blended in.
"""

from __future__ import annotations
import math
from functools import partial
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Protocol, Tuple

from .catalog import MaterialCatalog
from .params import AnalysisParams
from .segmentation import ParticleFeatures


@dataclass(frozen=True)
class ParticleRecord:
    """Measured particle (one connected component of sample pixels)."""

    idx: int
    material_id: Optional[str]
    confidence: float
    area_px: int
    centroid_x: float
    centroid_y: float
    circularity: float
    aspect_ratio: float
    major_axis_px: float
    minor_axis_px: float
    perimeter_px: int
    bbox: Tuple[int, int, int, int]      # x, y, width, height
    avg_h: float
    avg_s: float
    avg_v: float
    confidence_mean: float
    confidence_std: float
    composition: Mapping[str, float]
    score_heuristic: float
    score_raw: float
    area_um2: Optional[float] = None

    @property
    def is_mixed(self) -> bool:
        return len(self.composition) > 1


class ScoreFusion(Protocol):
    """Hook: (candidate material id, heuristic score) -> (material id, fused confidence, raw score)."""

    def __call__(self, material_id: Optional[str], heuristic_score: float) -> Tuple[Optional[str], float, float]: ...


class PassThroughFusion:
    """Heuristic opinion only: returns its inputs unchanged."""

    def __call__(self, material_id, heuristic_score):
        return material_id, heuristic_score, heuristic_score


SecondOpinion = Callable[[Optional[ParticleFeatures]], Tuple[Optional[str], float]]


class WeightedFusion:
    """
    Blend the heuristic opinion with an external classifier.

    Agreement boosts the weighted mean by 10%; on disagreement the side with
    the larger weighted score wins and keeps half of the loser's weight.
    The record builder binds the particle through `for_particle`, so the
    second opinion sees its features; a plain call passes None.
    """

    def __init__(self, second_opinion: SecondOpinion, heuristic_weight: float = 0.7,
                 second_weight: float = 0.3, agreement_boost: float = 1.1):
        self.second_opinion = second_opinion
        self.heuristic_weight = heuristic_weight
        self.second_weight = second_weight
        self.agreement_boost = agreement_boost

    def for_particle(self, features: ParticleFeatures) -> ScoreFusion:
        return partial(self.fuse, features=features)

    def __call__(self, material_id, heuristic_score):
        return self.fuse(material_id, heuristic_score)

    def fuse(self, material_id, heuristic_score, features: Optional[ParticleFeatures] = None):
        other_id, other_conf = self.second_opinion(features)
        same = (material_id or "").lower() == (other_id or "").lower()
        if same:
            fused = (heuristic_score * self.heuristic_weight + other_conf * self.second_weight)
            fused = min(1.0, fused * self.agreement_boost)
            return material_id, fused, fused

        hw = heuristic_score * self.heuristic_weight
        ow = other_conf * self.second_weight
        if hw >= ow:
            return material_id, hw + 0.5 * ow, hw
        return other_id, ow + 0.5 * hw, ow


def dominant_material(features: ParticleFeatures) -> Optional[int]:
    """Catalog index with the highest weighted vote; ties go to the lowest index."""
    best_idx, best_w = None, -1.0
    for j in sorted(features.weighted_votes):
        w = features.weighted_votes[j]
        if w > best_w:
            best_idx, best_w = j, w
    return best_idx


def build_particle_record(
    idx: int,
    features: ParticleFeatures,
    catalog: MaterialCatalog,
    fusion: ScoreFusion | None = None,
    params: AnalysisParams | None = None,
) -> ParticleRecord:
    """Resolve one ParticleFeatures accumulator into a ParticleRecord."""
    p = params or AnalysisParams()
    fusion = fusion or PassThroughFusion()
    n = max(1, features.pixel_count)

    dom = dominant_material(features)
    dom_id = catalog[dom].id if dom is not None else None
    heuristic = 0.0
    if dom is not None and features.votes.get(dom, 0) > 0:
        heuristic = features.weighted_votes[dom] / features.votes[dom]

    mean_c = features.sum_confidence / n
    if features.pixel_count > 1:
        var = (features.sum_confidence_sq - n * mean_c * mean_c) / (n - 1)
        std_c = math.sqrt(max(0.0, var))
    else:
        std_c = 0.0

    perimeter = features.border_pixels
    if perimeter > 0:
        circ = min(1.0, max(0.0, 4.0 * math.pi * features.pixel_count / (perimeter * perimeter)))
    else:
        circ = 0.0

    bw, bh = features.bbox_width, features.bbox_height
    major, minor = float(max(bw, bh)), float(min(bw, bh))
    aspect = major / minor if minor > 0 else 1.0

    composition: Dict[str, float] = {
        catalog[j].id: cnt / n for j, cnt in sorted(features.votes.items()) if cnt > 0
    }

    bind = getattr(fusion, "for_particle", None)
    hook = bind(features) if bind is not None else fusion
    material_id, fused, raw = hook(dom_id, heuristic)
    fused = min(p.max_confidence, max(0.0, fused))

    area_um2 = None
    if p.scale_um_per_px and p.scale_um_per_px > 0:
        area_um2 = features.pixel_count * p.scale_um_per_px * p.scale_um_per_px

    return ParticleRecord(
        idx=idx,
        material_id=material_id,
        confidence=fused,
        area_px=features.pixel_count,
        centroid_x=features.sum_x / n,
        centroid_y=features.sum_y / n,
        circularity=circ,
        aspect_ratio=aspect,
        major_axis_px=major,
        minor_axis_px=minor,
        perimeter_px=perimeter,
        bbox=(features.min_x, features.min_y, bw, bh),
        avg_h=features.sum_h / n,
        avg_s=features.sum_s / n,
        avg_v=features.sum_v / n,
        confidence_mean=mean_c,
        confidence_std=std_c,
        composition=composition,
        score_heuristic=heuristic,
        score_raw=raw,
        area_um2=area_um2,
    )
