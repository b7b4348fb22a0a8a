"""
Analysis result containers.

- MaterialResult: per-material sample fraction, ppm estimate and presence score
- AnalysisResult: one self-contained result per analysis call
- Summary text for reporting layers
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional
import numpy as np

from .catalog import MaterialCatalog, MaterialKind, MaterialRange
from .diagnostics import ImageDiagnostics, QualityStatus
from .particles import ParticleRecord

if TYPE_CHECKING:
    from .consistency import ConsistencyReport
    from .labels import LabelGrid


@dataclass(frozen=True)
class MaterialResult:
    id: str
    name: str
    group: str
    kind: MaterialKind
    pixel_count: int
    sample_fraction: float
    concentration_ppm: Optional[float]
    score: float


def presence_score(entry: MaterialRange, fraction: float) -> float:
    """Presence score in [0, 1] from the sample fraction, scaled per material kind."""
    if entry.kind == MaterialKind.METAL:
        group = entry.group.lower()
        if "noble" in group or "nobre" in group:
            factor = 15.0
        elif "pgm" in group:
            factor = 12.0
        else:
            factor = 10.0
    elif entry.kind == MaterialKind.CRYSTAL:
        factor = 5.0
    elif entry.kind == MaterialKind.GEM:
        factor = 8.0
    else:
        factor = 0.0
    return min(1.0, max(0.0, fraction * factor))


def material_results(catalog: MaterialCatalog, counts: np.ndarray, sample_pixels: int) -> Dict[MaterialKind, List[MaterialResult]]:
    """Per-kind result lists in catalog order. Each fraction uses the total sample count as denominator."""
    denom = max(1, sample_pixels)
    out: Dict[MaterialKind, List[MaterialResult]] = {
        MaterialKind.METAL: [], MaterialKind.CRYSTAL: [], MaterialKind.GEM: [],
    }
    for j, entry in enumerate(catalog):
        if entry.kind not in out:
            continue
        n = int(counts[j]) if j < len(counts) else 0
        frac = n / denom
        out[entry.kind].append(MaterialResult(
            id=entry.id,
            name=entry.name,
            group=entry.group,
            kind=entry.kind,
            pixel_count=n,
            sample_fraction=frac,
            concentration_ppm=frac * 1e6 if frac > 0 else None,
            score=presence_score(entry, frac),
        ))
    return out


@dataclass
class AnalysisResult:
    """Aggregate output of one pipeline run (status and summary may be updated by reanalysis)."""

    diagnostics: ImageDiagnostics
    metals: List[MaterialResult]
    crystals: List[MaterialResult]
    gems: List[MaterialResult]
    quality_index: float
    quality_status: QualityStatus
    particles: List[ParticleRecord]
    sample_pixels: int = 0
    indeterminate_fraction: float = 0.0
    size_stats: Dict[str, float] = field(default_factory=dict)
    consistency: Optional[ConsistencyReport] = None
    labels: Optional[LabelGrid] = None
    summary: str = ""
    image_path: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def all_materials(self) -> List[MaterialResult]:
        return self.metals + self.crystals + self.gems

    def fraction_of(self, material_id: str) -> float:
        """Sample fraction of one material (case-insensitive id), 0 if absent."""
        key = material_id.lower()
        for m in self.all_materials():
            if m.id.lower() == key:
                return m.sample_fraction
        return 0.0


def _top(results: List[MaterialResult], n: int) -> List[MaterialResult]:
    ranked = sorted((m for m in results if m.sample_fraction > 0), key=lambda m: -m.sample_fraction)
    return ranked[:n]


def build_summary(result: AnalysisResult) -> str:
    """Human-readable multi-line summary: quality block, top materials, particle count."""
    d = result.diagnostics
    lines = [
        f"Quality: {result.quality_index:.1f} ({result.quality_status.value})",
        f"  focus {d.focus_score:.1f} | exposure {d.exposure_score:.1f} | mask {d.mask_score:.1f}"
        f" | clipping {100 * d.clipping_fraction:.2f}% | foreground {100 * d.foreground_fraction:.1f}%",
        f"Indeterminate sample pixels: {100 * result.indeterminate_fraction:.2f}%",
    ]
    for title, items, n in (("Metals", result.metals, 5), ("Crystals", result.crystals, 3), ("Gems", result.gems, 3)):
        top = _top(items, n)
        if not top:
            continue
        lines.append(f"{title}:")
        for m in top:
            lines.append(f"  {m.name} ({m.id}): {100 * m.sample_fraction:.3f}%"
                         f" ~{m.concentration_ppm:.0f} ppm, score {m.score:.2f}")
    lines.append(f"Particles: {len(result.particles)}")
    if result.size_stats.get("particles"):
        s = result.size_stats
        unit = s.get("unit", "px")
        lines.append(f"  D10 {s['D10']:.2f} | D50 {s['D50']:.2f} | D90 {s['D90']:.2f} {unit}")
    return "\n".join(lines)
