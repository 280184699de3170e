import dataclasses

import pytest

from nebula.config import ConfigError, RenderConfig, validate_config


def test_defaults_are_valid():
    config = RenderConfig()
    assert validate_config(config) is config
    assert (config.width, config.height) == (800, 800)


def test_config_is_immutable():
    config = RenderConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.zoom = 10.0


def test_replace_returns_new_config():
    config = RenderConfig()
    julia = config.replace(fractal_type="julia", max_iterations=250)
    assert julia.fractal_type == "julia"
    assert julia.max_iterations == 250
    assert config.fractal_type == "mandelbrot"


@pytest.mark.parametrize(
    "field, value",
    [
        ("zoom", 0.0),
        ("zoom", -3.0),
        ("max_iterations", 0),
        ("max_iterations", 10001),
        ("max_iterations", 12.5),
        ("base_hue", 361.0),
        ("saturation", -1.0),
        ("lightness", 100.5),
        ("min_noise", 1.2),
        ("max_noise", -0.1),
        ("fog_density", 0.05),
        ("fog_density", 0.9),
        ("fog_size", 0.0005),
        ("fog_size", 0.06),
        ("fog_layer_count", 0),
        ("fog_layer_count", 9),
        ("star_clarity", 0.4),
        ("star_clarity", 2.5),
        ("fractal_type", "newton"),
        ("offset_x", float("nan")),
        ("width", 0),
        ("seed", -1),
    ],
)
def test_out_of_range_fields_are_rejected(field, value):
    config = RenderConfig().replace(**{field: value})
    with pytest.raises(ConfigError) as excinfo:
        validate_config(config)
    assert any(field in problem for problem in excinfo.value.problems)


@pytest.mark.parametrize(
    "field, value",
    [
        ("max_iterations", 1),
        ("max_iterations", 10000),
        ("fog_density", 0.1),
        ("fog_density", 0.8),
        ("fog_size", 0.001),
        ("fog_size", 0.05),
        ("fog_layer_count", 1),
        ("fog_layer_count", 8),
        ("base_hue", 360.0),
        ("star_clarity", 0.5),
    ],
)
def test_range_boundaries_are_accepted(field, value):
    validate_config(RenderConfig().replace(**{field: value}))


def test_all_problems_are_reported():
    config = RenderConfig(zoom=-1.0, fog_density=2.0, fog_layer_count=20)
    with pytest.raises(ConfigError) as excinfo:
        validate_config(config)
    assert len(excinfo.value.problems) == 3


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_config(RenderConfig(saturation=150.0))
