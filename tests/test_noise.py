import numpy as np
import pytest

from nebula.noise import SimplexNoise, layered_noise, normalize_layered


def _random_coordinates(count=2000, scale=50.0, seed=0):
    rng = np.random.default_rng(seed)
    return rng.uniform(-scale, scale, count), rng.uniform(-scale, scale, count)


def test_same_seed_is_deterministic():
    xs, ys = _random_coordinates()
    np.testing.assert_array_equal(SimplexNoise(42)(xs, ys), SimplexNoise(42)(xs, ys))


def test_different_seeds_differ():
    xs, ys = _random_coordinates()
    assert not np.allclose(SimplexNoise(1)(xs, ys), SimplexNoise(2)(xs, ys))


def test_repeated_sampling_of_one_field_is_stable():
    noise = SimplexNoise(3)
    assert noise(1.25, -7.5) == noise(1.25, -7.5)


def test_values_stay_in_unit_range():
    xs, ys = _random_coordinates(count=20000)
    values = SimplexNoise(5)(xs, ys)
    assert values.min() >= -1.0
    assert values.max() <= 1.0
    assert values.std() > 0.05


def test_scalar_input_returns_float():
    assert isinstance(SimplexNoise(0)(0.3, 0.7), float)


def test_array_shape_is_preserved():
    noise = SimplexNoise(0)
    grid_y, grid_x = np.mgrid[0:4, 0:5] * 0.37
    assert noise(grid_x, grid_y).shape == (4, 5)


@pytest.mark.parametrize("x, y", [(3.0, 4.0), (0.0, 0.0), (-2.0, 7.0)])
def test_continuous_across_integer_coordinates(x, y):
    noise = SimplexNoise(11)
    eps = 1e-7
    for dx, dy in [(eps, 0.0), (-eps, 0.0), (0.0, eps), (0.0, -eps)]:
        assert abs(noise(x + dx, y + dy) - noise(x, y)) < 1e-4


def test_layered_noise_matches_manual_sum():
    noise = SimplexNoise(9)
    xs, ys = _random_coordinates(count=50, scale=400.0)
    expected = np.zeros_like(xs)
    for layer in range(4):
        frequency = 0.01 * 2 ** layer
        expected += noise(xs * frequency, ys * frequency) * (0.4 / 2 ** layer)
    np.testing.assert_allclose(layered_noise(noise, xs, ys, 4, 0.01, 0.4), expected)


def test_layered_noise_accepts_any_callable(flat_noise):
    def constant(x, y):
        return np.ones(np.broadcast(np.asarray(x), np.asarray(y)).shape)

    assert float(layered_noise(constant, 10.0, 20.0, 3, 0.1, 1.0)) == pytest.approx(1.75)
    assert float(layered_noise(flat_noise, 10.0, 20.0, 3, 0.1, 1.0)) == 0.0


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
@pytest.mark.parametrize("layers, amplitude", [(1, 1.0), (2, 1.0), (5, 1.0), (5, 0.4), (8, 0.7)])
def test_layered_sum_is_bounded_by_amplitude_series(seed, layers, amplitude):
    xs, ys = _random_coordinates(count=5000, scale=800.0, seed=seed)
    total = layered_noise(SimplexNoise(seed), xs, ys, layers, 0.01, amplitude)
    bound = sum(amplitude / 2 ** layer for layer in range(layers))
    assert np.abs(total).max() <= bound + 1e-12


def test_normalize_clips_only_when_asked():
    total = np.array([-1.75, -1.0, 0.5, 1.0, 1.75])
    np.testing.assert_allclose(normalize_layered(total), [0.0, 0.0, 0.75, 1.0, 1.0])
    np.testing.assert_allclose(normalize_layered(total, clip=False), [-0.375, 0.0, 0.75, 1.0, 1.375])


def test_multi_octave_sum_leaves_unit_range():
    xs, ys = _random_coordinates(count=20000, scale=800.0, seed=4)
    raw = normalize_layered(layered_noise(SimplexNoise(4), xs, ys, 5, 0.01, 1.0), clip=False)
    assert raw.min() < 0.0 or raw.max() > 1.0


def test_normalize_maps_endpoints():
    np.testing.assert_allclose(normalize_layered([-1.0, 0.0, 1.0]), [0.0, 0.5, 1.0])
