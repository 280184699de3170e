import numpy as np
import pytest

from nebula import RenderConfig


@pytest.fixture
def small_config():
    """A 64x64 canvas framing the same region as the default 800x800 render."""
    return RenderConfig(width=64, height=64, zoom=24.0, max_iterations=50, seed=1)


@pytest.fixture
def flat_noise():
    """A noise field that is zero everywhere."""

    def noise(x, y):
        return np.zeros(np.broadcast(np.asarray(x), np.asarray(y)).shape)

    return noise
