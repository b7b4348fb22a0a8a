"""
Reanalysis of low-quality results.

An Invalid first run is repeated on the same input; if the quality index
and the target-material fraction agree across runs the result is promoted
to OfficialRechecked, otherwise it is marked ReviewRequired.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
import numpy as np

from .diagnostics import QualityStatus
from .exceptions import AnalysisCancelled
from .params import AnalysisParams
from .results import AnalysisResult
from .roi import RoiDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvergenceDecision:
    quality_range: float
    target_range: float
    converged: bool

    @property
    def status(self) -> QualityStatus:
        return QualityStatus.OFFICIAL_RECHECKED if self.converged else QualityStatus.REVIEW_REQUIRED


def _range(values: Sequence[float]) -> float:
    return float(max(values) - min(values)) if len(values) else 0.0


def evaluate_convergence(
    quality_indices: Sequence[float],
    target_fractions: Sequence[float],
    quality_tolerance: float = 5.0,
    target_tolerance: float = 0.0005,
) -> ConvergenceDecision:
    """Converged iff both the quality-index range and the target-fraction range are within tolerance."""
    q_range = _range(quality_indices)
    t_range = _range(target_fractions)
    # Inclusive bounds
    ok = q_range <= quality_tolerance + 1e-9 and t_range <= target_tolerance + 1e-12
    return ConvergenceDecision(q_range, t_range, bool(ok))


class ReanalysisOrchestrator:
    """Wraps an AnalysisPipeline; single pass unless the first run is Invalid."""

    def __init__(self, pipeline, params: AnalysisParams | None = None):
        self.pipeline = pipeline
        self.params = params or getattr(pipeline, "params", None) or AnalysisParams()

    def analyze(
        self,
        image: np.ndarray,
        mask: np.ndarray,
        roi: Optional[RoiDefinition] = None,
        cancel_cb: Callable[[], bool] | None = None,
        image_path: str | None = None,
    ) -> AnalysisResult:
        p = self.params
        first = self.pipeline.analyze(image, mask, roi=roi, cancel_cb=cancel_cb, image_path=image_path)
        if first.quality_status != QualityStatus.INVALID:
            return first

        runs = [first]
        for k in range(1, max(1, p.reanalysis_runs)):
            if cancel_cb is not None and cancel_cb():
                logger.info("Reanalysis cancelled before run %d", k + 1)
                raise AnalysisCancelled(details={"completed_runs": len(runs)})
            runs.append(self.pipeline.analyze(image, mask, roi=roi, cancel_cb=cancel_cb, image_path=image_path))

        qs = [r.quality_index for r in runs]
        fs = [r.fraction_of(p.target_material) for r in runs]
        decision = evaluate_convergence(qs, fs, p.quality_tolerance, p.target_tolerance)

        trail = [f"Reanalysis ({len(runs)} runs, target {p.target_material}):"]
        for i, (q, f) in enumerate(zip(qs, fs), start=1):
            trail.append(f"  run {i}: Q={q:.2f}, {p.target_material}={100 * f:.4f}%")
        trail.append(
            f"  quality range {decision.quality_range:.2f} (tol {p.quality_tolerance:g}), "
            f"target range {100 * decision.target_range:.4f} pp (tol {100 * p.target_tolerance:g} pp)"
        )
        trail.append(f"  decision: {decision.status.value}")

        first.quality_status = decision.status
        first.summary = (first.summary + "\n" if first.summary else "") + "\n".join(trail)
        logger.info("Reanalysis of %s: %s (Q range %.2f, target range %.5f)",
                    first.id[:8], decision.status.value, decision.quality_range, decision.target_range)
        return first
