"""
Analysis parameter data structure.

Defines the full set of scoring, diagnostics, segmentation, concurrency
and reanalysis parameters used by the HVS analysis pipeline.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class AnalysisParams:
    """Configuration parameters for pixel classification and particle analysis."""

    # Base score weights (hue / saturation / value proximity)
    hue_weight: float = 0.4
    saturation_weight: float = 0.3
    value_weight: float = 0.3

    # Confidence tiers on (best score, score gap)
    high_score: float = 0.75
    high_gap: float = 0.15
    medium_score: float = 0.55
    medium_gap: float = 0.08
    low_score: float = 0.40

    # Decision policy
    min_score: float = 0.30
    indeterminate_gap: float = 0.05
    max_confidence: float = 0.95

    # Exposure / clipping
    clip_dark: int = 5
    clip_bright: int = 250
    clip_full_scale: float = 0.2

    # Quality status cut-offs (0..100)
    official_min: float = 85.0
    preliminary_min: float = 70.0

    # Particle size gate: max(min_particle_px, W*H / particle_area_divisor)
    min_particle_px: int = 20
    particle_area_divisor: float = 50000.0

    # Physical scale (µm/px), optional
    scale_um_per_px: float | None = None

    # Concurrency
    workers: int | None = None
    rows_per_band: int = 32

    # Reanalysis
    reanalysis_runs: int = 3
    quality_tolerance: float = 5.0
    target_tolerance: float = 0.0005
    target_material: str = "Au"

    # Keep the label grid on the result for inspection
    keep_labels: bool = False
