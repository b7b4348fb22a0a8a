import numpy as np
import pytest
from hvs_mineral.core import (
    AnalysisParams,
    DiagnosticsAccumulator,
    QualityStatus,
    exposure_score,
    mask_score,
    quality_index,
    quality_status,
)
from hvs_mineral.core.diagnostics import accumulate_rows, diagnostics_from, focus_score

@pytest.mark.parametrize("q, status", [
    (100.0, QualityStatus.OFFICIAL),
    (85.0, QualityStatus.OFFICIAL),
    (84.99, QualityStatus.PRELIMINARY),
    (70.0, QualityStatus.PRELIMINARY),
    (69.99, QualityStatus.INVALID),
    (0.0, QualityStatus.INVALID),
])
def test_status_thresholds(q, status):
    assert quality_status(q) == status

@pytest.mark.parametrize("f, score", [
    (0.0, 0.0), (0.15, 25.0), (0.3, 80.0), (0.6, 100.0), (0.9, 80.0), (0.96, 60.0), (1.0, 60.0),
])
def test_mask_score_shape(f, score):
    assert mask_score(f) == pytest.approx(score)

def test_exposure_and_index_clamped():
    assert exposure_score(0.0) == 100.0
    assert exposure_score(0.1) == pytest.approx(50.0)
    assert exposure_score(0.5) == 0.0
    assert quality_index(100, 100, 100) == pytest.approx(100.0)
    assert quality_index(250, 100, 100) == 100.0
    assert 0.0 <= quality_index(0, 0, 0) <= 100.0

def _edge_scene():
    lum = np.zeros((5, 5), np.int32)
    lum[:, 2] = 255
    sample = np.ones((5, 5), bool)
    mats = np.full((5, 5), -1, np.int16)
    mats[:, :2] = 0
    return lum, sample, mats

def test_gradient_energy_on_vertical_line():
    lum, sample, mats = _edge_scene()
    acc = DiagnosticsAccumulator(1)
    accumulate_rows(acc, lum, sample, mats, 0, 5, AnalysisParams())
    # interior columns 1 and 3 see a ±255 horizontal step in 3 interior rows
    assert acc.gradient_sum == pytest.approx(6 * 255.0 ** 2)
    assert focus_score(acc.gradient_sum, acc.sample_pixels) == pytest.approx(6 / 25)
    assert acc.material_counts.tolist() == [10]
    assert acc.indeterminate_pixels == 15

def test_band_accumulators_merge_to_whole():
    lum, sample, mats = _edge_scene()
    p = AnalysisParams()
    whole = DiagnosticsAccumulator(1)
    accumulate_rows(whole, lum, sample, mats, 0, 5, p)
    merged = DiagnosticsAccumulator(1)
    for y0, y1 in ((0, 2), (2, 3), (3, 5)):
        part = DiagnosticsAccumulator(1)
        accumulate_rows(part, lum, sample, mats[y0:y1], y0, y1, p)
        merged.merge(part)
    assert merged.gradient_sum == whole.gradient_sum
    assert merged.sample_pixels == whole.sample_pixels == 25
    assert merged.clipped_pixels == whole.clipped_pixels == 25  # luma 0 and 255 are both clipped
    assert merged.material_counts.tolist() == whole.material_counts.tolist()

def test_zero_sample_pixels_are_guarded():
    acc = DiagnosticsAccumulator(3, total_pixels=100)
    d = diagnostics_from(acc, AnalysisParams())
    assert d.focus_raw == 0.0 and d.clipping_fraction == 0.0 and d.foreground_fraction == 0.0
    assert d.quality_status == QualityStatus.INVALID
    assert 0.0 <= d.quality_index <= 100.0
