"""
Shared fixtures and stub engines for the superres tests.
"""

import numpy as np
import pytest

from superres.models.base_engine import BaseEngine
from superres.models.interpolation import InterpolationEngine


def nearest(tensor, scale):
    """Nearest-neighbour upscale of an NCHW tensor by pixel duplication."""
    return np.asarray(tensor).repeat(scale, axis=2).repeat(scale, axis=3)


class RecordingEngine(BaseEngine):
    """Engine stub producing outputs from callables and recording every call.

    Named outputs are computed in reverse request order to make sure callers
    rely on the returned order, not the computation order.
    """

    def __init__(self, single=None, by_name=None, loaded=True):
        super().__init__()
        self.single = single
        self.by_name = dict(by_name or {})
        self.loaded = loaded
        self.load_calls = []
        self.inputs = []
        self.requests = []
        self.compute_order = []

    def load(self, model_path, definition_path=None):
        self.load_calls.append((model_path, definition_path))
        self.loaded = True

    def is_loaded(self):
        return self.loaded

    def forward(self, output_names=None):
        self.inputs.append(np.array(self._input))
        self.requests.append(None if output_names is None else list(output_names))
        if output_names is None:
            return self.single(self._input)

        computed = {}
        for name in reversed(list(output_names)):
            self.compute_order.append(name)
            computed[name] = self.by_name[name](self._input)
        return [computed[name] for name in output_names]


@pytest.fixture
def nearest_engine():
    engine = InterpolationEngine(scale=2, mode="nearest")
    engine.load()
    return engine


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def solid_bgr():
    def make(colour, size=4):
        image = np.empty((size, size, 3), dtype=np.uint8)
        image[:, :] = colour
        return image
    return make
