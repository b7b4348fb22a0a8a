import numpy as np
import pytest
from hvs_mineral.core import rgb_to_hsv, rgb_to_hsv_array, luma

@pytest.mark.parametrize("rgb, hsv", [
    ((255, 0, 0), (0.0, 1.0, 1.0)),
    ((0, 255, 0), (120.0, 1.0, 1.0)),
    ((0, 0, 255), (240.0, 1.0, 1.0)),
    ((255, 255, 255), (0.0, 0.0, 1.0)),
    ((0, 0, 0), (0.0, 0.0, 0.0)),
])
def test_rgb_to_hsv_reference_colors(rgb, hsv):
    h, s, v = rgb_to_hsv(*rgb)
    assert (h, s, v) == pytest.approx(hsv)

def test_magenta_side_hue_wraps_below_360():
    h, _, _ = rgb_to_hsv(255, 0, 10)
    assert 350.0 < h < 360.0

def test_hsv_ranges_and_vectorised_agree(rng):
    px = rng.integers(0, 256, (500, 3)).astype(np.uint8)
    h, s, v = rgb_to_hsv_array(px)
    assert np.all((h >= 0) & (h < 360))
    assert np.all((s >= 0) & (s <= 1)) and np.all((v >= 0) & (v <= 1))
    for i in range(0, 500, 37):
        hs = rgb_to_hsv(*(int(c) for c in px[i]))
        assert (h[i], s[i], v[i]) == pytest.approx(hs, abs=1e-9)

def test_luma_truncates():
    img = np.array([[[200, 0, 0], [10, 20, 30], [0, 0, 0]]], np.uint8)
    y = luma(img)
    assert y.dtype == np.int32
    assert y.tolist() == [[59, 18, 0]]  # 59.8, 18.15, 0
