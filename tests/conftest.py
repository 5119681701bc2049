"""
Pytest configuration and fixtures.

Keep this SIMPLE and READABLE.
"""

import pytest
import numpy as np

from vexfft.backend import NumpyEngine
from vexfft.dispatcher import get_dispatch_stream
from vexfft.resource import EngineResource


class FaultyEngine(NumpyEngine):
    """NumpyEngine that returns a chosen status from selected native calls."""

    def __init__(self, fail=None):
        super().__init__()
        self.fail = dict(fail or {})
        self.destroy_calls = 0

    def setup(self):
        if 'setup' in self.fail:
            return self.fail['setup']
        return super().setup()

    def teardown(self):
        status = super().teardown()
        return self.fail.get('teardown', status)

    def create_plan(self, context, lengths):
        if 'create_plan' in self.fail:
            return self.fail['create_plan'], None
        return super().create_plan(context, lengths)

    def destroy_plan(self, handle):
        self.destroy_calls += 1
        status = super().destroy_plan(handle)
        return self.fail.get('destroy_plan', status)

    def set_precision(self, handle, precision):
        if 'set_precision' in self.fail:
            return self.fail['set_precision']
        return super().set_precision(handle, precision)

    def set_layout(self, handle, layout_in, layout_out):
        if 'set_layout' in self.fail:
            return self.fail['set_layout']
        return super().set_layout(handle, layout_in, layout_out)

    def enqueue_transform(self, handle, direction, queues, inputs, outputs):
        if 'enqueue_transform' in self.fail:
            return self.fail['enqueue_transform']
        return super().enqueue_transform(handle, direction, queues, inputs, outputs)


@pytest.fixture(autouse=True)
def clean_dispatch_log():
    """Each test starts with an empty dispatch log."""
    get_dispatch_stream().clear()
    yield


@pytest.fixture
def engine():
    """Fresh host engine per test, so call counters start at zero."""
    return NumpyEngine()


@pytest.fixture
def queue(engine):
    return engine.create_queue()


@pytest.fixture
def resource(engine):
    """Private resource for the test engine."""
    return EngineResource(engine)


@pytest.fixture
def faulty_engine_factory():
    """Build a FaultyEngine failing the given calls, e.g. {'create_plan': Status.INVALID_PLAN}."""
    return FaultyEngine


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_complex(rng):
    """Random single precision complex samples of a given shape."""
    def make(*shape):
        return (rng.standard_normal(shape) + 1j * rng.standard_normal(shape)).astype(np.complex64)
    return make
