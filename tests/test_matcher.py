import cv2
import numpy as np
import pytest

from autoaccept.vision.matcher import best_window, first_hit, iter_hits, scaled_size, scan, score_map
from autoaccept.vision.preprocess import Region


def _blocky_template():
    # 40x30 made of 10x10 blocks in distinct saturated colours
    palette = [(255, 0, 0), (0, 0, 255), (255, 255, 0), (0, 0, 0), (255, 0, 255), (0, 255, 255)]
    tpl = np.zeros((30, 40, 3), dtype=np.uint8)
    for by in range(3):
        for bx in range(4):
            tpl[by * 10:(by + 1) * 10, bx * 10:(bx + 1) * 10] = palette[(by * 4 + bx) % len(palette)]
    return tpl


def test_scaled_size_rounds_and_never_collapses(matching_template):
    assert scaled_size(matching_template, 1.0) == (40, 30)
    assert scaled_size(matching_template, 1.5) == (60, 45)
    assert scaled_size(matching_template[:1, :1], 0.1) == (1, 1)


def test_identity_scores_one_at_template_center(matching_template):
    region = Region.full(40, 30)
    cand = scan(matching_template, matching_template, 0.9, region, 1.0, stride=1, sample_step=1)
    assert cand is not None
    assert cand.score == pytest.approx(1.0)
    assert cand.position == (20, 15)


def test_no_match_on_uniform_gray(gray_frame, matching_template):
    region = Region.full(640, 480)
    assert scan(gray_frame, matching_template, 0.1, region, 1.0, stride=5, sample_step=3) is None


def test_threshold_is_strict(matching_template):
    region = Region.full(40, 30)
    # A perfect match scores exactly 1.0, which does not exceed 1.0
    assert scan(matching_template, matching_template, 1.0, region, 1.0, stride=1, sample_step=1) is None


def test_template_larger_than_region_yields_nothing(matching_template):
    region = Region(0, 0, 20, 20)
    assert best_window(matching_template, matching_template, region) is None


def test_ties_resolve_to_first_found(gray_frame, matching_template, paste):
    frame = paste(gray_frame, matching_template, 100, 50)
    frame = paste(frame, matching_template, 300, 50)
    cand = best_window(frame, matching_template, Region.full(640, 480), 1.0, stride=2, sample_step=2)
    assert cand.position == (120, 65)


def test_located_at_paste_position(gray_frame, matching_template, paste):
    frame = paste(gray_frame, matching_template, 200, 150)
    cand = scan(frame, matching_template, 0.6, Region.full(640, 480), 1.0, stride=5, sample_step=3,
                loose_threshold=120)
    assert cand is not None
    assert cand.position == (220, 165)


def test_scaled_copy_scores_like_the_original(gray_frame, paste):
    tpl = _blocky_template()
    big = cv2.resize(tpl, (48, 36), interpolation=cv2.INTER_NEAREST)
    region = Region(0, 0, 150, 150)
    original = scan(paste(gray_frame, tpl, 50, 50), tpl, 0.5, region, 1.0, 1, 1)
    frame = paste(gray_frame, big, 50, 50)
    scaled = first_hit(frame, tpl, region, (1.2,), 0.5, stride=1, sample_step=1)
    assert original is not None and scaled is not None
    assert abs(original.score - scaled.score) <= 0.1
    assert abs(scaled.x - (50 + 24)) <= 2
    assert abs(scaled.y - (50 + 18)) <= 2


def test_first_hit_tries_scales_in_order(gray_frame, matching_template, paste):
    frame = paste(gray_frame, matching_template, 100, 100)
    cand = first_hit(frame, matching_template, Region.full(640, 480), (3.0, 1.0, 0.5), 0.6, 2, 2)
    # 3.0 does not clear the threshold; 1.0 does and wins before 0.5 is tried
    assert cand is not None
    assert cand.scale == 1.0


def test_iter_hits_reports_each_scale_once(gray_frame, matching_template, paste):
    frame = paste(gray_frame, matching_template, 100, 100)
    hits = list(iter_hits(frame, matching_template, Region.full(640, 480), (1.0,), (0.4, 0.5, 0.6), 2, 2))
    assert len(hits) == 1
    assert hits[0].position == (120, 115)


def test_iter_hits_empty_when_nothing_clears(gray_frame, matching_template):
    hits = list(iter_hits(gray_frame, matching_template, Region.full(640, 480), (0.5, 1.0), (0.4,), 5, 3))
    assert hits == []


def _noisy_scene(template):
    rng = np.random.default_rng(7)
    frame = rng.integers(0, 256, size=(160, 200, 3), dtype=np.uint8)
    frame[40:70, 60:100] = template
    # A damaged second copy that scores lower than the first
    frame[100:130, 120:160] = template
    frame[100:115, 120:140] = (128, 128, 128)
    return frame


@pytest.mark.parametrize("stride,sample_step", [(1, 1), (3, 2)])
@pytest.mark.parametrize("threshold", [0.3, 0.6, 0.95, 1.0])
def test_thresholded_scan_agrees_with_full_scoring(matching_template, stride, sample_step, threshold):
    frame = _noisy_scene(matching_template)
    region = Region.full(200, 160)
    full = best_window(frame, matching_template, region, 1.0, stride, sample_step)
    expected = full if full.score > threshold else None
    assert scan(frame, matching_template, threshold, region, 1.0, stride, sample_step) == expected


def test_thresholded_score_map_drops_hopeless_windows(gray_frame, matching_template, paste):
    frame = paste(gray_frame, matching_template, 100, 100)
    scores, _, _ = score_map(frame, matching_template, Region.full(640, 480), 1.0, 2, 2, threshold=0.5)
    assert scores.max() == pytest.approx(1.0)
    assert np.unravel_index(int(np.argmax(scores)), scores.shape) == (50, 50)
    assert (scores == -1.0).any()
    kept = scores[scores != -1.0]
    assert (kept > 0.5).all()


def test_thresholded_score_map_gives_up_on_negative_frame(gray_frame, matching_template):
    assert score_map(gray_frame, matching_template, Region.full(640, 480), 1.0, 2, 2, threshold=0.1) is None
