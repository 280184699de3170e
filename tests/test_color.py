import numpy as np
import pytest

from nebula.color import hsl_to_rgb, hsl_to_rgb_array


@pytest.mark.parametrize("hue", [0, 45, 200, 359.9])
@pytest.mark.parametrize("saturation", [0, 30, 100])
def test_zero_lightness_is_black(hue, saturation):
    assert hsl_to_rgb(hue, saturation, 0) == (0, 0, 0)


@pytest.mark.parametrize("hue", [0, 120, 275])
@pytest.mark.parametrize("lightness", [0, 10, 50, 73.3, 100])
def test_zero_saturation_is_gray(hue, lightness):
    level = int(np.floor(lightness / 100 * 255 + 0.5))
    assert hsl_to_rgb(hue, 0, lightness) == (level, level, level)


@pytest.mark.parametrize(
    "hue, expected",
    [
        (0, (255, 0, 0)),
        (120, (0, 255, 0)),
        (240, (0, 0, 255)),
    ],
)
def test_primary_hues(hue, expected):
    assert hsl_to_rgb(hue, 100, 50) == expected


def test_full_lightness_is_white():
    assert hsl_to_rgb(200, 70, 100) == (255, 255, 255)


def test_dark_red_rounds_half_up():
    # l < 0.5 selects q = l * (1 + s); the red channel lands exactly on 127.5
    assert hsl_to_rgb(0, 100, 25) == (128, 0, 0)


def test_array_matches_scalar():
    hues = np.array([0.0, 33.0, 190.0, 300.0])
    sats = np.array([20.0, 95.0, 60.0, 110.0])
    lights = np.array([30.0, 65.0, 48.0, 80.0])
    rgb = hsl_to_rgb_array(hues, sats, lights)
    assert rgb.shape == (4, 3)
    for k in range(4):
        assert tuple(int(v) for v in rgb[k]) == hsl_to_rgb(hues[k], sats[k], lights[k])


def test_out_of_range_inputs_still_compute():
    r, g, b = hsl_to_rgb(200, 120, 75)
    assert all(isinstance(v, int) for v in (r, g, b))
