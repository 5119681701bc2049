"""
OpenCL engine backed by clFFT (through gpyfft) and pyopencl.

Queues are pyopencl CommandQueues and buffers are pyopencl Buffers.
Library setup/teardown is tied to the lifetime of the gpyfft.GpyFFT
object: creating it calls clfftSetup, dropping it calls clfftTeardown.
"""

import threading
import numpy as np
from typing import Any, List, Sequence, Tuple
from .base import Engine, Status, Direction, Precision, Layout, ResultLocation
from vexfft.debug import verbose_print
from vexfft.utils import is_nice


# Radices clFFT has kernels for
CLFFT_FACTORS = (2, 3, 5, 7)


def select_device(cl, preferred_vendor='nvidia', device_index=0):
    """Create a context on the preferred vendor's device, else on device_index."""
    for platform in cl.get_platforms():
        for device in platform.get_devices():
            if preferred_vendor.lower() in device.name.lower():
                verbose_print(f"vexfft: Selected {preferred_vendor} device: {device.name}")
                return cl.Context([device])
    verbose_print(f"vexfft: Selected default device {device_index}")
    return cl.create_some_context(interactive=False, answers=[device_index])


def _error_status(error) -> int:
    """Status code carried by a gpyfft or pyopencl exception."""
    code = getattr(error, 'errorcode', None)
    if code is None:
        code = getattr(error, 'code', None)
    if code is None and error.args and isinstance(error.args[0], int):
        code = error.args[0]
    return int(code) if code is not None else Status.BUGCHECK


class OpenCLEngine(Engine):
    """clFFT engine (OpenCL devices)."""

    name = 'opencl'

    def __init__(self, preferred_vendor: str = 'nvidia', device_index: int = 0):
        try:
            import pyopencl as cl
            from gpyfft import gpyfftlib
            self.cl = cl
            self.gfft = gpyfftlib
        except ImportError:
            raise ImportError("pyopencl and gpyfft are required for the opencl backend")

        self.preferred_vendor = preferred_vendor
        self.device_index = device_index
        self._lib = None
        self._plans = {}
        self._next_handle = 1
        self._lock = threading.Lock()

    def _call(self, fn, *args) -> int:
        try:
            fn(*args)
        except (self.gfft.GpyFFT_Error, self.cl.Error) as e:
            return _error_status(e)
        return Status.SUCCESS

    # Library lifecycle

    def setup(self) -> int:
        try:
            self._lib = self.gfft.GpyFFT(debug=False)
        except self.gfft.GpyFFT_Error as e:
            return _error_status(e)
        return Status.SUCCESS

    def teardown(self) -> int:
        with self._lock:
            self._plans.clear()
        # Last reference to GpyFFT: its destructor runs clfftTeardown
        self._lib = None
        return Status.SUCCESS

    # Plans

    def create_plan(self, context: Any, lengths: Sequence[int]) -> Tuple[int, Any]:
        if self._lib is None:
            return Status.BUGCHECK, None
        if not all(is_nice(n, CLFFT_FACTORS) for n in lengths):
            return Status.NOTIMPLEMENTED, None
        # clFFT takes the fastest varying dimension first
        shape = tuple(int(n) for n in reversed(lengths))
        try:
            plan = self._lib.create_plan(context, shape)
            # Unnormalised inverse, forward followed by inverse scales by N
            plan.scale_backward = 1.0
        except (self.gfft.GpyFFT_Error, self.cl.Error) as e:
            return _error_status(e), None
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._plans[handle] = plan
        return Status.SUCCESS, handle

    def destroy_plan(self, handle: Any) -> int:
        with self._lock:
            # gpyfft destroys the clFFT plan when the Plan object goes away
            if self._plans.pop(handle, None) is None:
                return Status.INVALID_PLAN
        return Status.SUCCESS

    def set_precision(self, handle: Any, precision: Precision) -> int:
        plan = self._plans.get(handle)
        if plan is None:
            return Status.INVALID_PLAN
        return self._call(setattr, plan, 'precision', int(precision))

    def set_layout(self, handle: Any, layout_in: Layout, layout_out: Layout) -> int:
        plan = self._plans.get(handle)
        if plan is None:
            return Status.INVALID_PLAN
        return self._call(setattr, plan, 'layouts', (int(layout_in), int(layout_out)))

    def set_result_location(self, handle: Any, location: ResultLocation) -> int:
        plan = self._plans.get(handle)
        if plan is None:
            return Status.INVALID_PLAN
        return self._call(setattr, plan, 'inplace', location == ResultLocation.INPLACE)

    def enqueue_transform(self, handle: Any, direction: Direction, queues: List[Any],
                          inputs: List[Any], outputs: List[Any]) -> int:
        plan = self._plans.get(handle)
        if plan is None:
            return Status.INVALID_PLAN
        out_buffers = None if plan.inplace else tuple(outputs)
        return self._call(
            lambda: plan.enqueue_transform(tuple(queues), tuple(inputs), out_buffers,
                                           direction_forward=direction == Direction.FORWARD))

    # Device surface

    def create_queue(self, context: Any = None):
        if context is None:
            context = select_device(self.cl, self.preferred_vendor, self.device_index)
        return self.cl.CommandQueue(context)

    def queue_context(self, queue) -> Any:
        return queue.context

    def finish(self, queue):
        queue.finish()

    def allocate(self, queue, size: int, dtype=np.complex64):
        nbytes = size * np.dtype(dtype).itemsize
        return self.cl.Buffer(queue.context, self.cl.mem_flags.READ_WRITE, size=nbytes)

    def upload(self, queue, buffer, data: np.ndarray):
        host = np.ascontiguousarray(data, dtype=np.complex64).ravel()
        self.cl.enqueue_copy(queue, buffer, host)

    def download(self, queue, buffer, out: np.ndarray):
        self.cl.enqueue_copy(queue, out, buffer)

    def copy(self, queue, src, dst):
        self.cl.enqueue_copy(queue, dst, src)

    def native_handle(self, buffer) -> int:
        return buffer.int_ptr
