import numpy as np
import cv2
import pytest

from hvs_mineral.core import AnalysisParams, default_catalog

# R≈G≫B, H≈50°, S≈0.4, V≈0.6
GOLD_RGB = (153, 143, 92)


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def params():
    return AnalysisParams(workers=2, rows_per_band=8)


@pytest.fixture
def gold_image():
    img = np.zeros((64, 64, 3), np.uint8)
    img[:] = GOLD_RGB
    return img


@pytest.fixture
def full_mask():
    return np.ones((64, 64), bool)


@pytest.fixture
def blobs_scene(rng):
    # 128x128: dark background, two golden discs and one grey speck below the size gate
    img = np.zeros((128, 128, 3), np.uint8) + 20
    mask = np.zeros((128, 128), np.uint8)
    cv2.circle(mask, (40, 40), 12, 255, -1)
    cv2.circle(mask, (90, 80), 9, 255, -1)
    cv2.rectangle(mask, (110, 10), (112, 12), 255, -1)
    img[mask > 0] = GOLD_RGB
    noise = rng.integers(-3, 4, img.shape)
    img = np.clip(img.astype(np.int16) + noise, 0, 255).astype(np.uint8)
    return img, mask > 0
