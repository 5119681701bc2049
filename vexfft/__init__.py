"""
vexfft - FFT as a lazy vector expression

Composes a fast Fourier transform into vector algebra over device
vectors. The transform is planned once, applied lazily and runs on the
device when the expression is assigned:

    import vexfft

    engine = vexfft.create_engine('numpy')      # or 'pytorch', 'opencl'
    queue = engine.create_queue()

    x = vexfft.from_numpy(queue, samples, engine=engine)
    y = vexfft.empty(queue, x.size, engine=engine)

    with vexfft.FFT(queue, x.size, engine=engine) as fft:
        y[:] = fft(x)        # out-of-place
        data = y.to_numpy()  # sync point
"""

__version__ = "0.1.0"

# Dtype constants
complex64 = 'complex64'

from vexfft.backend import (
    Engine, NumpyEngine, Status, Direction, Precision, Layout, ResultLocation,
    create_engine, default_engine, set_default_engine,
)
from vexfft.config import load_config, get_config
from vexfft.errors import (
    VexFFTError, ConfigurationError, BackendError, UnsupportedFeatureError,
    PlanStateError, ExpressionConsumedError, ResourceStateError,
)
from vexfft.expression import AssignOp, TransformExpression
from vexfft.plan import TransformPlan, FFT, PlanState
from vexfft.resource import EngineResource, get_engine_resource
from vexfft.utils import is_nice, next_nice
from vexfft.vector import Vector, empty, zeros, from_numpy
from vexfft import debug

forward = Direction.FORWARD
inverse = Direction.INVERSE


__all__ = [
    'complex64', 'forward', 'inverse',
    'Engine', 'NumpyEngine', 'Status', 'Direction', 'Precision', 'Layout', 'ResultLocation',
    'create_engine', 'default_engine', 'set_default_engine',
    'load_config', 'get_config',
    'VexFFTError', 'ConfigurationError', 'BackendError', 'UnsupportedFeatureError',
    'PlanStateError', 'ExpressionConsumedError', 'ResourceStateError',
    'AssignOp', 'TransformExpression',
    'TransformPlan', 'FFT', 'PlanState',
    'EngineResource', 'get_engine_resource',
    'is_nice', 'next_nice',
    'Vector', 'empty', 'zeros', 'from_numpy',
    'debug',
]
