import numpy as np
import cv2
from hvs_mineral.core import LabelGrid, min_particle_size, segment_particles
from hvs_mineral.core.segmentation import border_mask

def _grid(mask, catalog):
    h, w = mask.shape
    g = LabelGrid(np.zeros((h, w, 3), np.uint8), catalog)
    g.is_sample[:] = mask
    return g

def test_min_particle_size():
    assert min_particle_size(100, 100) == 20
    assert min_particle_size(2000, 1000) == 40

def test_single_blob_area(catalog):
    m = np.zeros((100, 100), np.uint8)
    cv2.rectangle(m, (30, 40), (35, 44), 1, -1)   # 6 x 5
    feats = segment_particles(_grid(m > 0, catalog))
    assert len(feats) == 1
    f = feats[0]
    assert f.pixel_count == 30
    assert (f.min_x, f.min_y, f.max_x, f.max_y) == (30, 40, 35, 44)
    assert (f.bbox_width, f.bbox_height) == (6, 5)
    assert f.sum_x / f.pixel_count == 32.5
    assert f.border_pixels == 30 - 4 * 3

def test_blob_below_threshold_dropped(catalog):
    m = np.zeros((100, 100), bool)
    m[10:14, 10:14] = True   # 16 < 20
    assert segment_particles(_grid(m, catalog)) == []

def test_diagonal_contact_merges(catalog):
    m = np.zeros((40, 40), bool)
    m[10:15, 10:15] = True
    m[15:20, 15:20] = True   # touches only at (14,14)-(15,15)
    feats = segment_particles(_grid(m, catalog))
    assert len(feats) == 1 and feats[0].pixel_count == 50

def test_background_gap_separates(catalog):
    m = np.zeros((40, 40), bool)
    m[10:15, 10:15] = True
    m[16:21, 10:15] = True   # row 15 is background
    feats = segment_particles(_grid(m, catalog))
    assert sorted(f.pixel_count for f in feats) == [25, 25]

def test_votes_follow_material_not_connectivity(catalog):
    m = np.zeros((30, 30), bool)
    m[5:10, 5:15] = True
    g = _grid(m, catalog)
    g.material[5:10, 5:10] = 0
    g.material[5:10, 10:15] = 1
    g.material[5, 5] = -1             # indeterminate, no vote
    g.confidence[5:10, 5:15] = 0.5
    feats = segment_particles(g)
    assert len(feats) == 1
    f = feats[0]
    assert f.votes == {0: 24, 1: 25}
    assert f.weighted_votes[1] == 12.5
    assert f.sum_confidence == 25.0

def test_border_mask_counts_image_edge():
    m = np.ones((4, 4), bool)
    b = border_mask(m)
    assert b.sum() == 12 and not b[1:3, 1:3].any()

def test_empty_grid(catalog):
    assert segment_particles(_grid(np.zeros((8, 8), bool), catalog)) == []
