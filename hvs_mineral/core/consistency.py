"""
Consistency checks over a finished AnalysisResult.

Flags suspicious diagnostics (focus, clipping, mask coverage), implausible
concentrations and weak particle confidence, and suggests a report status.
The suggestion is advisory; it never overrides the quality status.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

from .diagnostics import QualityStatus

logger = logging.getLogger(__name__)


class AlertSeverity(IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2
    CRITICAL = 3


@dataclass(frozen=True)
class ConsistencyAlert:
    severity: AlertSeverity
    code: str
    message: str
    recommendation: str = ""


@dataclass
class ConsistencyReport:
    alerts: List[ConsistencyAlert] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not any(a.severity >= AlertSeverity.ERROR for a in self.alerts)

    @property
    def suggested_status(self) -> QualityStatus:
        if any(a.severity == AlertSeverity.CRITICAL for a in self.alerts):
            return QualityStatus.INVALID
        if any(a.severity == AlertSeverity.ERROR for a in self.alerts):
            return QualityStatus.PRELIMINARY
        return QualityStatus.OFFICIAL

    def codes(self) -> List[str]:
        return [a.code for a in self.alerts]

    def format(self) -> str:
        if not self.alerts:
            return "Consistency: OK"
        lines = [f"Consistency: {len(self.alerts)} alert(s), suggested {self.suggested_status.value}"]
        for a in self.alerts:
            lines.append(f"  [{a.severity.name}] {a.code}: {a.message}")
            if a.recommendation:
                lines.append(f"      -> {a.recommendation}")
        return "\n".join(lines)


def check_consistency(result) -> ConsistencyReport:
    """Run all checks on an AnalysisResult."""
    rep = ConsistencyReport()
    add = rep.alerts.append
    d = result.diagnostics

    # Focus
    if d.focus_raw < 0.3:
        add(ConsistencyAlert(AlertSeverity.ERROR, "FOCUS_CRITICAL",
                             f"Focus very low ({d.focus_raw:.2f})", "Refocus and recapture the image"))
    elif d.focus_raw < 0.5:
        add(ConsistencyAlert(AlertSeverity.WARNING, "FOCUS_LOW",
                             f"Focus below recommended ({d.focus_raw:.2f})", "Check focus before the next capture"))

    # Exposure
    if d.clipping_fraction > 0.15:
        add(ConsistencyAlert(AlertSeverity.ERROR, "CLIPPING_HIGH",
                             f"Clipping {100 * d.clipping_fraction:.1f}% of sample pixels",
                             "Reduce exposure or illumination"))
    elif d.clipping_fraction > 0.05:
        add(ConsistencyAlert(AlertSeverity.WARNING, "CLIPPING_MODERATE",
                             f"Clipping {100 * d.clipping_fraction:.1f}% of sample pixels",
                             "Consider adjusting exposure"))

    # Mask coverage
    fg = d.foreground_fraction
    if fg < 0.03:
        add(ConsistencyAlert(AlertSeverity.CRITICAL, "MASK_NO_SAMPLE",
                             f"Sample covers only {100 * fg:.1f}% of the image", "Check the sample mask"))
    elif fg < 0.10:
        add(ConsistencyAlert(AlertSeverity.WARNING, "MASK_LOW_SAMPLE",
                             f"Sample covers {100 * fg:.1f}% of the image", "Center the sample or zoom in"))
    elif fg > 0.97:
        add(ConsistencyAlert(AlertSeverity.ERROR, "MASK_TOO_MUCH",
                             f"Sample covers {100 * fg:.1f}% of the image", "Background may be classified as sample"))
    elif fg > 0.90:
        add(ConsistencyAlert(AlertSeverity.WARNING, "MASK_HIGH_SAMPLE",
                             f"Sample covers {100 * fg:.1f}% of the image", "Verify the mask boundary"))

    # Concentrations
    au = result.fraction_of("Au")
    if au > 0.10:
        add(ConsistencyAlert(AlertSeverity.WARNING, "AU_HIGH",
                             f"Au fraction unusually high ({100 * au:.2f}%)", "Confirm with a second method"))
    pt = result.fraction_of("Pt")
    if pt > 0.05:
        add(ConsistencyAlert(AlertSeverity.WARNING, "PT_HIGH",
                             f"Pt fraction unusually high ({100 * pt:.2f}%)", "Confirm with a second method"))

    # Particles
    parts = result.particles
    if not parts:
        add(ConsistencyAlert(AlertSeverity.INFO, "NO_PARTICLES", "No particles detected"))
    else:
        weak = sum(1 for p in parts if p.confidence < 0.5)
        if weak > len(parts) / 2:
            add(ConsistencyAlert(AlertSeverity.WARNING, "LOW_CONFIDENCE_PARTICLES",
                                 f"{weak} of {len(parts)} particles below 0.5 confidence",
                                 "Review the material catalog ranges"))

    if rep.alerts:
        logger.info("Consistency check: %s", ", ".join(rep.codes()))
    return rep
