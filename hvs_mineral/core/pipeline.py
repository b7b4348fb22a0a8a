"""
Whole-image analysis pipeline.

  1) validate inputs, apply the optional ROI to the sample mask
  2) classify row bands in parallel; each band writes only its own grid
     rows and fills a private diagnostics accumulator, merged once per band
  3) join barrier
  4) diagnostics, per-material results
  5) particle segmentation and records (sequential, on the finished grid)
  6) size statistics, consistency check, summary text
"""

from __future__ import annotations
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional
import numpy as np

from ..addons.psd import particle_size_stats
from .catalog import MaterialCatalog, MaterialKind, default_catalog
from .classifier import PixelClassifier
from .color import luma as luma_of
from .consistency import check_consistency
from .diagnostics import DiagnosticsAccumulator, accumulate_rows, diagnostics_from
from .exceptions import AnalysisCancelled, InputShapeError
from .labels import LabelGrid
from .params import AnalysisParams
from .particles import PassThroughFusion, ScoreFusion, build_particle_record
from .results import AnalysisResult, build_summary, material_results
from .roi import RoiDefinition, apply_roi
from .segmentation import segment_particles

logger = logging.getLogger(__name__)


def validate_inputs(image: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Check image / mask geometry and return the mask as bool."""
    if not isinstance(image, np.ndarray) or image.ndim != 3 or image.shape[2] != 3:
        raise InputShapeError("Image must be an HxWx3 array",
                              {"shape": getattr(image, "shape", None)})
    if image.dtype != np.uint8:
        raise InputShapeError("Image must be 8-bit per channel", {"dtype": str(image.dtype)})
    mask = np.asarray(mask)
    if mask.ndim == 3 and mask.shape[2] == 1:
        mask = mask[..., 0]
    if mask.shape != image.shape[:2]:
        raise InputShapeError("Mask does not match image size",
                              {"image": image.shape[:2], "mask": mask.shape})
    return mask != 0


class AnalysisPipeline:
    """Image + sample mask -> AnalysisResult. Reusable; holds no per-call state."""

    def __init__(
        self,
        catalog: MaterialCatalog | None = None,
        params: AnalysisParams | None = None,
        fusion: ScoreFusion | None = None,
    ):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.params = params or AnalysisParams()
        self.fusion = fusion or PassThroughFusion()
        self.classifier = PixelClassifier(self.catalog, self.params)

    def _classify_band(self, grid: LabelGrid, lum: np.ndarray, sample: np.ndarray,
                       y0: int, y1: int) -> DiagnosticsAccumulator:
        acc = DiagnosticsAccumulator(len(self.catalog))
        band = sample[y0:y1]
        grid.is_sample[y0:y1] = band
        if band.any():
            blk = self.classifier.classify(grid.rgb[y0:y1][band])
            grid.hue[y0:y1][band] = blk.hue
            grid.saturation[y0:y1][band] = blk.saturation
            grid.value[y0:y1][band] = blk.value
            grid.material[y0:y1][band] = blk.material
            grid.kind[y0:y1][band] = blk.kind
            grid.confidence[y0:y1][band] = blk.confidence
            grid.level[y0:y1][band] = blk.level
            grid.score[y0:y1][band] = blk.score
            grid.score_gap[y0:y1][band] = blk.score_gap
        accumulate_rows(acc, lum, sample, grid.material[y0:y1], y0, y1, self.params)
        return acc

    def classify(self, image: np.ndarray, sample: np.ndarray,
                 cancel_cb: Callable[[], bool] | None = None):
        """
        Parallel classification pass.

        Returns:
            (LabelGrid, merged DiagnosticsAccumulator)
        """
        p = self.params
        h = image.shape[0]
        grid = LabelGrid(image, self.catalog)
        lum = luma_of(image)
        totals = DiagnosticsAccumulator(len(self.catalog))
        lock = threading.Lock()
        cancelled = threading.Event()

        def work(y0: int, y1: int) -> None:
            if cancelled.is_set() or (cancel_cb is not None and cancel_cb()):
                cancelled.set()
                return
            acc = self._classify_band(grid, lum, sample, y0, y1)
            with lock:
                totals.merge(acc)

        step = max(1, int(p.rows_per_band))
        workers = p.workers or min(32, (os.cpu_count() or 1) + 4)
        with ThreadPoolExecutor(max_workers=max(1, workers)) as ex:
            futures = [ex.submit(work, y0, min(h, y0 + step)) for y0 in range(0, h, step)]
            for fut in as_completed(futures):
                fut.result()

        if cancelled.is_set():
            logger.info("Classification cancelled")
            raise AnalysisCancelled()
        return grid, totals

    def analyze(
        self,
        image: np.ndarray,
        mask: np.ndarray,
        roi: Optional[RoiDefinition] = None,
        cancel_cb: Callable[[], bool] | None = None,
        image_path: str | None = None,
    ) -> AnalysisResult:
        """Run the full pipeline once."""
        p = self.params
        t0 = time.perf_counter()
        sample = apply_roi(validate_inputs(image, mask), roi)

        grid, totals = self.classify(image, sample, cancel_cb)
        t1 = time.perf_counter()

        diag = diagnostics_from(totals, p)
        by_kind = material_results(self.catalog, totals.material_counts, totals.sample_pixels)

        features = segment_particles(grid, p)
        particles = [build_particle_record(i, f, self.catalog, self.fusion, p)
                     for i, f in enumerate(features)]
        t2 = time.perf_counter()

        result = AnalysisResult(
            diagnostics=diag,
            metals=by_kind[MaterialKind.METAL],
            crystals=by_kind[MaterialKind.CRYSTAL],
            gems=by_kind[MaterialKind.GEM],
            quality_index=diag.quality_index,
            quality_status=diag.quality_status,
            particles=particles,
            sample_pixels=totals.sample_pixels,
            indeterminate_fraction=totals.indeterminate_pixels / max(1, totals.sample_pixels),
            size_stats=particle_size_stats(particles, p.scale_um_per_px),
            labels=grid if p.keep_labels else None,
            image_path=image_path,
        )
        result.consistency = check_consistency(result)
        result.summary = build_summary(result)

        logger.info(
            "Analysis %s: %dx%d, %d sample px, Q=%.1f (%s), %d particles; classify %.3fs, particles %.3fs",
            result.id[:8], grid.width, grid.height, totals.sample_pixels,
            result.quality_index, result.quality_status.value, len(particles), t1 - t0, t2 - t1,
        )
        return result
