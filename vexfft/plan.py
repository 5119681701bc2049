"""
FFT plans.

A TransformPlan owns one native plan for fixed lengths (1-3 dimensions,
row-major, densely packed), single precision and complex interleaved
layout. Calling the plan on a vector gives a lazy TransformExpression;
assigning that expression to a vector runs the transform:

    fft = vexfft.FFT(queue, (width, height))
    output[:] = fft(input)   # out-of-place transform
    data[:] = fft(data)      # in-place transform
    fft.destroy()

Only single precision complex-to-complex transforms on a single queue are
implemented.
"""

import itertools
import threading
import weakref
import numpy as np
from enum import Enum
from typing import Any, Optional, Sequence, Union

from vexfft.backend import Engine, default_engine
from vexfft.backend.base import Direction, Precision, Layout
from vexfft.debug import debug_print_plan
from vexfft.errors import (
    check_error, ConfigurationError, PlanStateError,
    dimension_count_error, dimension_length_error, no_queues_error, dtype_error,
)
from vexfft.resource import EngineResource, get_engine_resource


_plan_ids = itertools.count()


class PlanState(Enum):
    UNINITIALIZED = 'uninitialized'
    INITIALIZED = 'initialized'
    DESTROYED = 'destroyed'


def _normalize_lengths(lengths) -> tuple:
    if isinstance(lengths, (int, np.integer)):
        lengths = (lengths,)
    try:
        lengths = tuple(lengths)
    except TypeError:
        raise ConfigurationError(dimension_length_error((lengths,))) from None
    if not 1 <= len(lengths) <= 3:
        raise ConfigurationError(dimension_count_error(len(lengths)))
    if any(isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n <= 0 for n in lengths):
        raise ConfigurationError(dimension_length_error(lengths))
    return tuple(int(n) for n in lengths)


def _destroy_native(plan_id: int, engine: Engine, handle: Any, resource: EngineResource):
    """Destroy a native plan and give back its engine reference."""
    from vexfft.dispatcher import get_dispatch_stream

    debug_print_plan(f"plan[{plan_id}] destroy")
    get_dispatch_stream().log("PLAN_DESTROY", plan_id)
    try:
        if handle is not None:
            check_error(engine.destroy_plan(handle), 'destroy_plan')
    finally:
        resource.release()


class TransformPlan:
    """
    A reusable FFT functor bound to a queue list and fixed lengths.

    All queues are assumed to share the context of the first one.
    """

    def __init__(self, queues, lengths: Union[int, Sequence[int]],
                 direction: Direction = Direction.FORWARD, *,
                 engine: Optional[Engine] = None,
                 resource: Optional[EngineResource] = None,
                 input_dtype='complex64', output_dtype=None):
        self.id = next(_plan_ids)
        self.state = PlanState.UNINITIALIZED
        self.handle = None
        self.dispatch_lock = threading.Lock()

        if not isinstance(queues, (list, tuple)):
            queues = [queues]
        if len(queues) == 0:
            raise ConfigurationError(no_queues_error())
        self.queues = tuple(queues)
        self.lengths = _normalize_lengths(lengths)
        try:
            self.direction = Direction(direction)
        except ValueError:
            raise ConfigurationError(f"Unknown FFT direction: {direction!r}")

        if output_dtype is None:
            output_dtype = input_dtype
        if not (np.dtype(input_dtype) == np.dtype(output_dtype) == np.complex64):
            raise ConfigurationError(dtype_error(input_dtype, output_dtype))

        if resource is not None:
            engine = resource.engine if engine is None else engine
            if resource.engine is not engine:
                raise ConfigurationError("resource belongs to a different engine")
        self.engine = engine if engine is not None else default_engine()
        self.resource = resource if resource is not None else get_engine_resource(self.engine)

        self.context = self.engine.queue_context(self.queues[0])
        self._init_native()

        self._finalizer = weakref.finalize(self, _destroy_native, self.id, self.engine, self.handle, self.resource)
        self.state = PlanState.INITIALIZED

    def _init_native(self):
        from vexfft.dispatcher import get_dispatch_stream

        self.resource.acquire()
        try:
            status, handle = self.engine.create_plan(self.context, self.lengths)
            check_error(status, 'create_plan')
            self.handle = handle
            check_error(self.engine.set_precision(handle, Precision.SINGLE), 'set_precision')
            check_error(self.engine.set_layout(handle, Layout.COMPLEX_INTERLEAVED, Layout.COMPLEX_INTERLEAVED),
                        'set_layout')
        except Exception:
            debug_print_plan(f"plan[{self.id}] construction failed, releasing engine")
            handle, self.handle = self.handle, None
            try:
                if handle is not None:
                    self.engine.destroy_plan(handle)
            finally:
                self.resource.release()
            raise

        get_dispatch_stream().log("PLAN_CREATE", self.id,
                                  f"lengths={self.lengths} direction={self.direction.name}")
        debug_print_plan(f"plan[{self.id}] created lengths={self.lengths} "
                         f"direction={self.direction.name} engine={self.engine.name}")

    @property
    def size(self) -> int:
        """Number of complex samples one transform reads."""
        return int(np.prod(self.lengths))

    @property
    def ndim(self) -> int:
        return len(self.lengths)

    def check_initialized(self):
        if self.state is not PlanState.INITIALIZED:
            raise PlanStateError(f"FFT plan {self.id} is {self.state.value}")

    def destroy(self):
        """Destroy the native plan and release the engine. Safe to call twice."""
        if self.state is PlanState.INITIALIZED:
            self.state = PlanState.DESTROYED
            self.handle = None
            self._finalizer()

    def execute(self, input_vector, output_vector, negate: bool = False, append: bool = False):
        """Enqueue the transform of input_vector into output_vector."""
        from vexfft.dispatcher import execute
        return execute(self, input_vector, output_vector, negate=negate, append=append)

    def __call__(self, vector):
        """Lazy transform of `vector`; nothing runs until it is assigned."""
        from vexfft.expression import TransformExpression
        self.check_initialized()
        return TransformExpression(self, vector)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.destroy()
        return False

    def __repr__(self):
        return (f"TransformPlan(id={self.id}, lengths={self.lengths}, "
                f"direction={self.direction.name}, engine={self.engine.name}, state={self.state.value})")


# Short alias
FFT = TransformPlan
