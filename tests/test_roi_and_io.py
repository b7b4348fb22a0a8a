import numpy as np
import cv2
import pytest
from pathlib import Path
from PIL import Image
from hvs_mineral.core import (
    ImageLoadError,
    InputShapeError,
    RoiDefinition,
    RoiShape,
    apply_roi,
    imread_mask,
    imread_rgb,
)

def test_rectangle_roi_and_inversion():
    roi = RoiDefinition(RoiShape.RECTANGLE, (2, 3, 4, 5))
    m = roi.to_mask((10, 10))
    assert m.sum() == 20 and m[3, 2] and not m[8, 2]
    assert roi.contains(5, 7) and not roi.contains(6, 7)
    inv = RoiDefinition(RoiShape.RECTANGLE, (2, 3, 4, 5), inverted=True)
    assert inv.to_mask((10, 10)).sum() == 80 and inv.contains(0, 0)

def test_ellipse_roi_matches_contains():
    roi = RoiDefinition(RoiShape.ELLIPSE, (0, 0, 20, 10))
    m = roi.to_mask((10, 20))
    assert m[5, 10] and not m[0, 0]
    for y, x in ((5, 10), (0, 0), (9, 19), (5, 1), (1, 10)):
        assert m[y, x] == roi.contains(x, y)

def test_polygon_roi():
    roi = RoiDefinition(RoiShape.POLYGON, points=[(0, 0), (9, 0), (0, 9)])
    m = roi.to_mask((10, 10))
    assert m[1, 1] and not m[9, 9]
    assert roi.contains(1, 1) and not roi.contains(9, 9)

def test_polygon_roi_is_hashable():
    a = RoiDefinition(RoiShape.POLYGON, points=[[0, 0], [9, 0], [0, 9]])
    b = RoiDefinition(RoiShape.POLYGON, points=((0, 0), (9, 0), (0, 9)))
    assert a.points == ((0, 0), (9, 0), (0, 9))
    assert a == b and hash(a) == hash(b)
    assert len({a, b, RoiDefinition()}) == 2

def test_inactive_roi_keeps_mask():
    mask = np.ones((5, 5), bool)
    assert apply_roi(mask, None) is mask
    assert apply_roi(mask, RoiDefinition()) is mask
    assert apply_roi(mask, RoiDefinition(RoiShape.POLYGON, points=[(0, 0), (1, 1)])) is mask

def test_roi_outside_image_rejected():
    with pytest.raises(InputShapeError):
        apply_roi(np.ones((5, 5), bool), RoiDefinition(RoiShape.RECTANGLE, (10, 10, 3, 3)))

def test_imread_rgb_channel_order(tmp_path: Path):
    p = tmp_path / "red.png"
    bgr = np.zeros((8, 8, 3), np.uint8)
    bgr[..., 2] = 255
    cv2.imwrite(str(p), bgr)
    rgb = imread_rgb(str(p))
    assert rgb.shape == (8, 8, 3) and rgb.dtype == np.uint8
    assert rgb[0, 0].tolist() == [255, 0, 0]

def test_imread_gray_and_16bit(tmp_path: Path):
    p = tmp_path / "u16.tif"
    arr = np.linspace(0, 65535, 64 * 64, dtype=np.uint16).reshape(64, 64)
    Image.fromarray(arr).save(p)
    rgb = imread_rgb(str(p))
    assert rgb.shape == (64, 64, 3) and rgb.dtype == np.uint8 and rgb.max() == 255

def test_imread_mask_threshold(tmp_path: Path):
    p = tmp_path / "mask.png"
    m = np.zeros((6, 6), np.uint8)
    m[2:4, 2:4] = 255
    m[0, 0] = 100
    cv2.imwrite(str(p), m)
    out = imread_mask(str(p))
    assert out.dtype == bool and out.sum() == 4

def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(ImageLoadError) as ei:
        imread_rgb(str(tmp_path / "nope.png"))
    assert ei.value.code == "IMAGE_LOAD_FAILED"
