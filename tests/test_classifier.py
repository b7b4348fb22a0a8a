import numpy as np
import pytest
from hvs_mineral.core import (
    AnalysisParams,
    ConfidenceLevel,
    MaterialKind,
    PixelClassifier,
    build_catalog,
    confidence_level,
    heuristic_factor,
    rgb_to_hsv_array,
)
from conftest import GOLD_RGB

@pytest.mark.parametrize("score, gap, level", [
    (0.80, 0.20, ConfidenceLevel.HIGH),
    (0.80, 0.10, ConfidenceLevel.MEDIUM),
    (0.60, 0.30, ConfidenceLevel.MEDIUM),
    (0.60, 0.05, ConfidenceLevel.LOW),
    (0.45, 0.00, ConfidenceLevel.LOW),
    (0.35, 0.30, ConfidenceLevel.INDETERMINATE),
])
def test_confidence_tiers(score, gap, level):
    assert confidence_level(score, gap) == level

def test_gold_pixel_is_high_confidence_gold(catalog):
    d = PixelClassifier(catalog).classify_pixel(*GOLD_RGB)
    assert d.material_id == "Au"
    assert d.kind == MaterialKind.METAL
    assert d.level in (ConfidenceLevel.HIGH, ConfidenceLevel.MEDIUM)
    assert 0.75 <= d.confidence <= 0.95
    assert d.score_gap >= 0.15

def test_gold_rules_penalise_cold_pixels():
    px = np.array([[90, 140, 200], list(GOLD_RGB)], np.uint8)
    h, s, v = rgb_to_hsv_array(px)
    c = px.astype(np.float64)
    f = heuristic_factor("Au", c[:, 0], c[:, 1], c[:, 2], h, s, v)
    assert f[1] == 1.0
    assert f[0] < 0.1

def test_confidence_bounded_and_level_consistent(catalog, rng):
    clf = PixelClassifier(catalog)
    px = rng.integers(0, 256, (400, 3)).astype(np.uint8)
    blk = clf.classify(px)
    assert np.all((blk.confidence >= 0) & (blk.confidence <= 0.95))
    for i in range(400):
        assert blk.level[i] == confidence_level(float(blk.score[i]), float(blk.score_gap[i]))
    refused = blk.material < 0
    assert np.all(blk.confidence[refused] == 0)
    assert np.all(blk.kind[refused] == int(MaterialKind.NONE))

def test_no_match_is_indeterminate():
    cat = build_catalog([
        {"id": "Au", "kind": "metal", "hue": (35, 65), "saturation": (0.2, 0.7), "value": (0.35, 0.95)},
        {"id": "Cu", "kind": "metal", "hue": (10, 35), "saturation": (0.4, 0.85), "value": (0.35, 0.85)},
    ])
    d = PixelClassifier(cat).classify_pixel(0, 0, 255)
    assert d.material_id is None
    assert d.level == ConfidenceLevel.INDETERMINATE
    assert d.confidence == 0.0

def test_ambiguous_pair_is_refused():
    # Two identical ranges: every pixel ties, gap 0 → refused even with a decent score
    twin = {"kind": "crystal", "hue": (100, 140), "saturation": (0.3, 0.7), "value": (0.3, 0.7)}
    cat = build_catalog([dict(twin, id="X"), dict(twin, id="Y")])
    p = AnalysisParams(low_score=0.99)
    d = PixelClassifier(cat, p).classify_pixel(60, 128, 60)
    assert d.material_id is None

def test_empty_catalog_never_assigns(rng):
    blk = PixelClassifier(build_catalog([])).classify(rng.integers(0, 256, (10, 3)).astype(np.uint8))
    assert np.all(blk.material < 0)

def test_hue_wraps_through_zero():
    cat = build_catalog([{"id": "Ruby", "kind": "gem", "hue": (345, 15),
                          "saturation": (0.5, 1.0), "value": (0.25, 0.9)}])
    clf = PixelClassifier(cat)
    at_zero = clf.classify_pixel(147, 37, 37)      # H = 0
    below_zero = clf.classify_pixel(147, 37, 55)   # H ≈ 350
    assert at_zero.material_id == "Ruby" and below_zero.material_id == "Ruby"
    assert at_zero.score > below_zero.score > 0.5

def _factor(material_id, rgb):
    px = np.array([rgb], np.uint8)
    h, s, v = rgb_to_hsv_array(px)
    c = px.astype(np.float64)
    return float(heuristic_factor(material_id, c[:, 0], c[:, 1], c[:, 2], h, s, v)[0])

@pytest.mark.parametrize("material_id, rgb, expected", [
    ("Au", GOLD_RGB, 1.0),
    ("Cu", (184, 115, 51), 1.0),          # red well above green and blue
    ("Cu", GOLD_RGB, 0.4),                # R≈G fails red dominance
    ("Pt", (128, 128, 128), 1.0),         # neutral grey
    ("Pd", GOLD_RGB, 0.3 * 0.15),         # spread > 40 and saturated gold hue
    ("Ag", (250, 250, 250), 1.0),
    ("Ag", (120, 120, 120), 0.5),         # too dim
    ("Ag", GOLD_RGB, 0.5 * 0.4 * 0.6),
    ("SiO2", GOLD_RGB, 1.0),              # no rule family
])
def test_rule_families(material_id, rgb, expected):
    assert _factor(material_id, rgb) == pytest.approx(expected)

def test_platinum_rejects_gold_hue():
    assert _factor("Pt", GOLD_RGB) < 0.2

def test_neutral_grey_is_not_gold(catalog):
    d = PixelClassifier(catalog).classify_pixel(128, 128, 128)
    assert d.material_id != "Au"

def test_kinds_follow_catalog_codes(catalog, rng):
    px = np.vstack([rng.integers(0, 256, (300, 3)), [GOLD_RGB]]).astype(np.uint8)
    blk = PixelClassifier(catalog).classify(px)
    codes = np.array(catalog.kind_codes())
    hit = blk.material >= 0
    assert hit.any()
    assert np.array_equal(blk.kind[hit], codes[blk.material[hit]])
