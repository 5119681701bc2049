"""
Device vector abstraction for vexfft.

A dense, row-major vector of complex samples living on one or more queues
(one buffer per queue, split evenly). Assigning into it evaluates lazy
expressions:

    y[:] = fft(x)
    y[:] = host_array
"""

import numpy as np
from typing import Optional

from vexfft.backend import Engine, default_engine
from vexfft.errors import ConfigurationError, no_queues_error, size_mismatch_error
from vexfft.expression import AssignOp, TransformExpression


def _partition(size: int, parts: int):
    """(offset, count) for each queue's share of `size` elements."""
    base, extra = divmod(size, parts)
    offset = 0
    for i in range(parts):
        count = base + (1 if i < extra else 0)
        yield offset, count
        offset += count


class Vector:
    """
    Device-resident vector.

    Users interact with this like a flat array; reading it back (to_numpy)
    is a sync point that waits for everything enqueued on its queues.
    """

    def __init__(self, queues, size: int, dtype='complex64', engine: Optional[Engine] = None):
        if not isinstance(queues, (list, tuple)):
            queues = [queues]
        if len(queues) == 0:
            raise ConfigurationError(no_queues_error())
        if size <= 0:
            raise ConfigurationError(f"Vector size must be positive (got {size})")

        self.queues = tuple(queues)
        self.size = int(size)
        self.dtype = np.dtype(dtype)
        self.engine = engine if engine is not None else default_engine()

        self.parts = list(_partition(self.size, len(self.queues)))
        self._buffers = [self.engine.allocate(q, count, self.dtype)
                         for q, (_, count) in zip(self.queues, self.parts)]

    def buffer(self, i: int = 0):
        """Native buffer bound to queue i."""
        return self._buffers[i]

    def __len__(self):
        return self.size

    def write(self, data: np.ndarray):
        """Upload host data (enqueued on each queue)."""
        data = np.asarray(data).ravel()
        if data.size != self.size:
            raise ConfigurationError(size_mismatch_error(self.size, data.size, "Host"))
        for q, buf, (offset, count) in zip(self.queues, self._buffers, self.parts):
            self.engine.upload(q, buf, data[offset:offset + count])

    def finish(self):
        """Wait for all work enqueued on this vector's queues."""
        for q in self.queues:
            self.engine.finish(q)

    def to_numpy(self) -> np.ndarray:
        """
        Get the vector contents as a numpy array.

        NOTE: This is a sync point - waits for pending work on the queues.
        """
        self.finish()
        out = np.empty(self.size, dtype=self.dtype)
        for q, buf, (offset, count) in zip(self.queues, self._buffers, self.parts):
            self.engine.download(q, buf, out[offset:offset + count])
        return out

    def __setitem__(self, key, value):
        """
        Full assignment: v[:] = expression | vector | array.
        """
        if key is not Ellipsis and key != slice(None):
            raise IndexError("Only whole-vector assignment (v[:] = ...) is supported")

        if isinstance(value, TransformExpression):
            value.evaluate(self, AssignOp.ASSIGN)
        elif isinstance(value, Vector):
            if value.size != self.size or value.parts != self.parts:
                raise ConfigurationError(size_mismatch_error(self.size, value.size, "Source"))
            for q, src, dst in zip(self.queues, value._buffers, self._buffers):
                self.engine.copy(q, src, dst)
        else:
            self.write(value)

    def __iadd__(self, other):
        """In-place accumulation: v += expression"""
        if isinstance(other, TransformExpression):
            other.evaluate(self, AssignOp.ADD)
            return self
        return NotImplemented

    def __isub__(self, other):
        """In-place subtraction: v -= expression"""
        if isinstance(other, TransformExpression):
            other.evaluate(self, AssignOp.SUB)
            return self
        return NotImplemented

    def __repr__(self):
        return f"Vector(size={self.size}, dtype={self.dtype}, queues={len(self.queues)}, engine={self.engine.name})"


def empty(queues, size: int, dtype='complex64', engine: Optional[Engine] = None) -> Vector:
    """Create an uninitialized vector."""
    return Vector(queues, size, dtype=dtype, engine=engine)


def zeros(queues, size: int, dtype='complex64', engine: Optional[Engine] = None) -> Vector:
    """Create a zero-filled vector."""
    vec = Vector(queues, size, dtype=dtype, engine=engine)
    vec.write(np.zeros(size, dtype=vec.dtype))
    return vec


def from_numpy(queues, array: np.ndarray, engine: Optional[Engine] = None) -> Vector:
    """Create a vector holding a copy of `array` (flattened row-major)."""
    array = np.asarray(array)
    # Vectors hold single precision complex; real and double input is converted
    vec = Vector(queues, array.size, dtype=np.complex64, engine=engine)
    vec.write(array)
    return vec
