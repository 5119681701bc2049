"""
Base Engine interface for vexfft.

An engine is the native FFT library seen through a clFFT-style API:
every call returns an integer status code (Status.SUCCESS == 0) and the
caller decides how to surface failures. All backends (NumPy, PyTorch,
OpenCL/clFFT) implement this interface.

Besides the transform calls, engines provide the small device surface
vectors need: queues, buffer allocation and host transfers.
"""

import numpy as np
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, List, Optional, Sequence, Tuple


class Status(IntEnum):
    """Native status codes (OpenCL error codes plus clFFT extensions)."""
    SUCCESS = 0
    INVALID_VALUE = -30
    INVALID_CONTEXT = -34
    INVALID_COMMAND_QUEUE = -36
    INVALID_MEM_OBJECT = -38
    INVALID_BUFFER_SIZE = -61
    BUGCHECK = 4096
    NOTIMPLEMENTED = 4097
    TRANSPOSED_NOTIMPLEMENTED = 4098
    FILE_NOT_FOUND = 4099
    FILE_CREATE_FAILURE = 4100
    VERSION_MISMATCH = 4101
    INVALID_PLAN = 4102
    DEVICE_NO_DOUBLE = 4103
    DEVICE_MISMATCH = 4104


class Direction(IntEnum):
    """Transform direction (values match clFFT)."""
    FORWARD = -1
    INVERSE = 1


class Precision(IntEnum):
    SINGLE = 1
    DOUBLE = 2


class Layout(IntEnum):
    COMPLEX_INTERLEAVED = 1
    COMPLEX_PLANAR = 2


class ResultLocation(IntEnum):
    INPLACE = 1
    OUTOFPLACE = 2


class Engine(ABC):
    """Abstract base class for native FFT engines."""

    name = 'base'

    # Library lifecycle

    @abstractmethod
    def setup(self) -> int:
        """One-time library setup."""
        pass

    @abstractmethod
    def teardown(self) -> int:
        """One-time library teardown."""
        pass

    # Plans

    @abstractmethod
    def create_plan(self, context: Any, lengths: Sequence[int]) -> Tuple[int, Any]:
        """Create a default plan for row-major lengths. Returns (status, handle)."""
        pass

    @abstractmethod
    def destroy_plan(self, handle: Any) -> int:
        """Destroy a plan handle."""
        pass

    @abstractmethod
    def set_precision(self, handle: Any, precision: Precision) -> int:
        pass

    @abstractmethod
    def set_layout(self, handle: Any, layout_in: Layout, layout_out: Layout) -> int:
        pass

    @abstractmethod
    def set_result_location(self, handle: Any, location: ResultLocation) -> int:
        pass

    @abstractmethod
    def enqueue_transform(self, handle: Any, direction: Direction, queues: List[Any],
                          inputs: List[Any], outputs: List[Any]) -> int:
        """
        Enqueue the transform on the given queues without waiting for it.

        Forward and inverse transforms are both unnormalised, so a forward
        transform followed by an inverse one scales the data by N.
        """
        pass

    # Device surface used by vectors and plans

    @abstractmethod
    def create_queue(self, context: Any = None) -> Any:
        """Create a command queue (on a new default context if none is given)."""
        pass

    @abstractmethod
    def queue_context(self, queue: Any) -> Any:
        """Device context a queue belongs to."""
        pass

    @abstractmethod
    def finish(self, queue: Any):
        """Block until everything enqueued on the queue has completed."""
        pass

    @abstractmethod
    def allocate(self, queue: Any, size: int, dtype=np.complex64) -> Any:
        """Allocate an uninitialized device buffer of `size` elements."""
        pass

    @abstractmethod
    def upload(self, queue: Any, buffer: Any, data: np.ndarray):
        """Copy host data into a device buffer."""
        pass

    @abstractmethod
    def download(self, queue: Any, buffer: Any, out: np.ndarray):
        """Copy a device buffer into host memory (blocking)."""
        pass

    @abstractmethod
    def copy(self, queue: Any, src: Any, dst: Any):
        """Enqueue a device-to-device copy."""
        pass

    @abstractmethod
    def native_handle(self, buffer: Any) -> int:
        """Native memory handle; equal handles mean the same device buffer."""
        pass

    def __repr__(self):
        return f"{self.__class__.__name__}()"


@dataclass
class PlanDescriptor:
    """Plan settings. Defaults match a freshly created clFFT plan."""
    context: Any
    lengths: Tuple[int, ...]
    precision: Precision = Precision.SINGLE
    layout_in: Layout = Layout.COMPLEX_INTERLEAVED
    layout_out: Layout = Layout.COMPLEX_INTERLEAVED
    location: ResultLocation = ResultLocation.INPLACE

    @property
    def size(self) -> int:
        return int(np.prod(self.lengths))


class DescriptorEngine(Engine):
    """
    Engine whose plans are plain Python descriptors.

    Handles library state, the plan table and argument checking for
    backends that compute the transform themselves (NumPy, PyTorch).
    Subclasses provide the device surface plus _check_queue(),
    _check_buffer() and _enqueue().
    """

    def __init__(self):
        self.initialized = False
        self.setup_calls = 0
        self.teardown_calls = 0
        self.enqueue_calls = 0
        self._plans = {}
        self._next_handle = 1
        self._lock = threading.Lock()

    def setup(self) -> int:
        with self._lock:
            self.setup_calls += 1
            self.initialized = True
        return Status.SUCCESS

    def teardown(self) -> int:
        with self._lock:
            self.teardown_calls += 1
            self.initialized = False
            # Teardown releases whatever plans are still alive
            self._plans.clear()
        return Status.SUCCESS

    def create_plan(self, context: Any, lengths: Sequence[int]) -> Tuple[int, Any]:
        if context is None:
            return Status.INVALID_CONTEXT, None
        if not 1 <= len(lengths) <= 3 or any(n <= 0 for n in lengths):
            return Status.INVALID_VALUE, None
        with self._lock:
            if not self.initialized:
                # Library not set up
                return Status.BUGCHECK, None
            handle = self._next_handle
            self._next_handle += 1
            self._plans[handle] = PlanDescriptor(context=context, lengths=tuple(int(n) for n in lengths))
        return Status.SUCCESS, handle

    def destroy_plan(self, handle: Any) -> int:
        with self._lock:
            if self._plans.pop(handle, None) is None:
                return Status.INVALID_PLAN
        return Status.SUCCESS

    def describe_plan(self, handle: Any) -> Optional[PlanDescriptor]:
        """Current settings of a plan (None for unknown handles)."""
        return self._plans.get(handle)

    @property
    def num_plans(self) -> int:
        return len(self._plans)

    def set_precision(self, handle: Any, precision: Precision) -> int:
        plan = self._plans.get(handle)
        if plan is None:
            return Status.INVALID_PLAN
        if precision not in (Precision.SINGLE, Precision.DOUBLE):
            return Status.INVALID_VALUE
        plan.precision = Precision(precision)
        return Status.SUCCESS

    def set_layout(self, handle: Any, layout_in: Layout, layout_out: Layout) -> int:
        plan = self._plans.get(handle)
        if plan is None:
            return Status.INVALID_PLAN
        if layout_in != Layout.COMPLEX_INTERLEAVED or layout_out != Layout.COMPLEX_INTERLEAVED:
            return Status.NOTIMPLEMENTED
        plan.layout_in = Layout(layout_in)
        plan.layout_out = Layout(layout_out)
        return Status.SUCCESS

    def set_result_location(self, handle: Any, location: ResultLocation) -> int:
        plan = self._plans.get(handle)
        if plan is None:
            return Status.INVALID_PLAN
        if location not in (ResultLocation.INPLACE, ResultLocation.OUTOFPLACE):
            return Status.INVALID_VALUE
        plan.location = ResultLocation(location)
        return Status.SUCCESS

    def enqueue_transform(self, handle: Any, direction: Direction, queues: List[Any],
                          inputs: List[Any], outputs: List[Any]) -> int:
        plan = self._plans.get(handle)
        if plan is None:
            return Status.INVALID_PLAN
        if direction not in (Direction.FORWARD, Direction.INVERSE):
            return Status.INVALID_VALUE
        if len(queues) != 1:
            return Status.NOTIMPLEMENTED
        if len(inputs) != 1:
            return Status.INVALID_VALUE

        queue = queues[0]
        status = self._check_queue(queue)
        if status != Status.SUCCESS:
            return status
        if self.queue_context(queue) != plan.context:
            return Status.INVALID_CONTEXT

        src = inputs[0]
        if plan.location == ResultLocation.INPLACE:
            dst = src
        elif outputs:
            dst = outputs[0]
        else:
            return Status.INVALID_VALUE

        for buf in (src, dst):
            status = self._check_buffer(buf, plan)
            if status != Status.SUCCESS:
                return status

        # Plan settings are copied; the plan may be reconfigured before the queue runs
        status = self._enqueue(replace(plan), Direction(direction), queue, src, dst)
        if status == Status.SUCCESS:
            with self._lock:
                self.enqueue_calls += 1
        return status

    @abstractmethod
    def _check_queue(self, queue: Any) -> int:
        pass

    @abstractmethod
    def _check_buffer(self, buffer: Any, plan: PlanDescriptor) -> int:
        pass

    @abstractmethod
    def _enqueue(self, plan: PlanDescriptor, direction: Direction, queue: Any, src: Any, dst: Any) -> int:
        pass
