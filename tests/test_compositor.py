import numpy as np
import pytest

from nebula.compositor import blend, brighten, disk_coverage, over, radial_falloff, store


@pytest.mark.parametrize("bg, fg", [(0.0, 255.0), (10.0, 200.0), (128.0, 3.0)])
def test_blend_endpoints(bg, fg):
    assert blend(bg, fg, 0.0) == bg
    assert blend(bg, fg, 1.0) == fg


@pytest.mark.parametrize("alpha", [0.0, 0.2, 0.5, 0.93, 1.0])
def test_blend_with_itself_is_identity(alpha):
    assert blend(77.0, 77.0, alpha) == pytest.approx(77.0)


def test_blend_is_not_clamped():
    assert blend(250.0, 300.0, 1.0) == 300.0
    assert blend(10.0, -20.0, 0.5) == pytest.approx(-5.0)


def test_blend_broadcasts_over_channels():
    background = np.array([[0.0, 100.0, 200.0]])
    alpha = np.array([[0.5]])
    np.testing.assert_allclose(blend(background, 100.0, alpha), [[50.0, 100.0, 150.0]])


def test_store_rounds_half_to_even_and_clamps():
    stored = store([-3.0, 0.5, 1.5, 2.5, 254.6, 300.0])
    assert stored.dtype == np.uint8
    np.testing.assert_array_equal(stored, [0, 0, 2, 2, 255, 255])


def test_brighten_caps_at_255():
    np.testing.assert_array_equal(brighten([10, 220, 250], (40, 40, 60)), [50, 255, 255])


def test_over_with_zero_alpha_keeps_pixels():
    rgb = np.array([[[12, 34, 56]]], dtype=np.uint8)
    np.testing.assert_array_equal(store(over(rgb, (255, 255, 255), np.zeros((1, 1)))), rgb)


def test_radial_falloff_profile():
    distance = np.array([0.0, 2.0, 4.0, 5.0])
    np.testing.assert_allclose(radial_falloff(distance, 4.0, 0.5), [0.5, 0.25, 0.0, 0.0])
    np.testing.assert_array_equal(radial_falloff(distance, 0.0, 0.5), [0.0, 0.0, 0.0, 0.0])


def test_disk_coverage_profile():
    distance = np.array([0.0, 1.0, 1.5, 3.0])
    np.testing.assert_allclose(disk_coverage(distance, 1.0), [1.0, 0.5, 0.0, 0.0])
    np.testing.assert_array_equal(disk_coverage(distance, 0.0), [0.0, 0.0, 0.0, 0.0])
