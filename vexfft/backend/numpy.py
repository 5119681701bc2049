"""
NumPy-based engine (host reference implementation).

Queues record commands and run them in order on finish(), so enqueueing
never blocks the caller, just like a device queue. Useful for tests and
for machines without an accelerator.
"""

import itertools
import threading
import numpy as np
from collections import deque
from typing import Any, Callable
from .base import DescriptorEngine, PlanDescriptor, Status, Direction, Precision, ResultLocation


_context_ids = itertools.count()


class HostContext:
    """Host stand-in for a device context."""

    def __init__(self):
        self.id = next(_context_ids)

    def __repr__(self):
        return f"HostContext({self.id})"


class HostQueue:
    """
    In-order command queue.

    Commands run when finish() is called (or when a blocking read needs
    them), never at enqueue time.
    """

    def __init__(self, context: HostContext):
        self.context = context
        self._pending = deque()
        self._lock = threading.Lock()

    def enqueue(self, command: Callable[[], None]):
        with self._lock:
            self._pending.append(command)

    @property
    def pending(self) -> int:
        """Number of commands not yet executed."""
        return len(self._pending)

    def finish(self):
        """Run all pending commands in submission order."""
        with self._lock:
            while self._pending:
                command = self._pending.popleft()
                command()

    def __repr__(self):
        return f"HostQueue(context={self.context.id}, pending={self.pending})"


class HostBuffer:
    """Host memory standing in for a device buffer."""

    def __init__(self, context: HostContext, size: int, dtype=np.complex64):
        self.context = context
        self.array = np.empty(size, dtype=dtype)

    @property
    def size(self) -> int:
        return self.array.size

    @property
    def handle(self) -> int:
        return self.array.__array_interface__['data'][0]


class NumpyEngine(DescriptorEngine):
    """NumPy-based engine (CPU only, numpy.fft)."""

    name = 'numpy'

    def _check_queue(self, queue: Any) -> int:
        if not isinstance(queue, HostQueue):
            return Status.INVALID_COMMAND_QUEUE
        return Status.SUCCESS

    def _check_buffer(self, buffer: Any, plan: PlanDescriptor) -> int:
        dtype = np.complex64 if plan.precision == Precision.SINGLE else np.complex128
        if not isinstance(buffer, HostBuffer) or buffer.array.dtype != dtype:
            return Status.INVALID_MEM_OBJECT
        if buffer.context is not plan.context:
            return Status.INVALID_CONTEXT
        if buffer.size < plan.size:
            return Status.INVALID_BUFFER_SIZE
        return Status.SUCCESS

    def _enqueue(self, plan: PlanDescriptor, direction: Direction, queue: HostQueue,
                 src: HostBuffer, dst: HostBuffer) -> int:
        n = plan.size
        src_array = src.array
        dst_array = src.array if plan.location == ResultLocation.INPLACE else dst.array

        def run():
            data = src_array[:n].reshape(plan.lengths)
            if direction == Direction.FORWARD:
                result = np.fft.fftn(data)
            else:
                result = np.fft.ifftn(data, norm='forward')
            dst_array[:n] = result.ravel()

        queue.enqueue(run)
        return Status.SUCCESS

    # Device surface

    def create_queue(self, context: Any = None) -> HostQueue:
        return HostQueue(context if context is not None else HostContext())

    def queue_context(self, queue: HostQueue) -> HostContext:
        return queue.context

    def finish(self, queue: HostQueue):
        queue.finish()

    def allocate(self, queue: HostQueue, size: int, dtype=np.complex64) -> HostBuffer:
        return HostBuffer(queue.context, size, dtype)

    def upload(self, queue: HostQueue, buffer: HostBuffer, data: np.ndarray):
        data = np.array(data, dtype=buffer.array.dtype).ravel()

        def run():
            buffer.array[:] = data

        queue.enqueue(run)

    def download(self, queue: HostQueue, buffer: HostBuffer, out: np.ndarray):
        queue.finish()
        out[:] = buffer.array

    def copy(self, queue: HostQueue, src: HostBuffer, dst: HostBuffer):
        def run():
            dst.array[:] = src.array

        queue.enqueue(run)

    def native_handle(self, buffer: HostBuffer) -> int:
        return buffer.handle
