"""
Test device vectors and whole-vector assignment.

Keep this SIMPLE and READABLE.
"""

import pytest
import numpy as np

import vexfft
from vexfft.errors import ConfigurationError


def test_from_numpy(engine, queue, random_complex):
    data = random_complex(10)
    v = vexfft.from_numpy(queue, data, engine=engine)

    assert v.size == 10
    assert len(v) == 10
    assert v.dtype == np.complex64
    np.testing.assert_array_equal(v.to_numpy(), data)


def test_from_real_numpy(engine, queue):
    """Real host data is promoted to single precision complex."""
    v = vexfft.from_numpy(queue, np.arange(4, dtype=np.float32), engine=engine)
    assert v.dtype == np.complex64
    np.testing.assert_array_equal(v.to_numpy(), np.arange(4).astype(np.complex64))


def test_from_double_complex_numpy(engine, queue):
    """Double precision host data is stored as single precision complex."""
    data = np.array([1 + 2j, 3 - 4j], dtype=np.complex128)
    v = vexfft.from_numpy(queue, data, engine=engine)
    assert v.dtype == np.complex64
    np.testing.assert_array_equal(v.to_numpy(), data.astype(np.complex64))


def test_zeros(engine, queue):
    v = vexfft.zeros(queue, 6, engine=engine)
    np.testing.assert_array_equal(v.to_numpy(), np.zeros(6, dtype=np.complex64))


def test_assign_array_and_vector(engine, queue, random_complex):
    data = random_complex(5)
    a = vexfft.empty(queue, 5, engine=engine)
    b = vexfft.empty(queue, 5, engine=engine)

    a[:] = data
    b[...] = a

    np.testing.assert_array_equal(b.to_numpy(), data)


def test_host_data_copied_at_write(engine, queue):
    """Later changes to the host array do not leak into the vector."""
    data = np.ones(4, dtype=np.complex64)
    v = vexfft.from_numpy(queue, data, engine=engine)
    data[:] = 7

    np.testing.assert_array_equal(v.to_numpy(), np.ones(4, dtype=np.complex64))


def test_multi_queue_partition(engine, queue, random_complex):
    """Each queue holds one contiguous share of the vector."""
    second = engine.create_queue(queue.context)
    data = random_complex(7)
    v = vexfft.from_numpy([queue, second], data, engine=engine)

    assert v.parts == [(0, 4), (4, 3)]
    assert v.buffer(0).size == 4
    assert v.buffer(1).size == 3
    np.testing.assert_array_equal(v.to_numpy(), data)


def test_distinct_vectors_have_distinct_buffers(engine, queue):
    a = vexfft.empty(queue, 8, engine=engine)
    b = vexfft.empty(queue, 8, engine=engine)
    assert engine.native_handle(a.buffer(0)) != engine.native_handle(b.buffer(0))


def test_partial_assignment_rejected(engine, queue):
    v = vexfft.zeros(queue, 4, engine=engine)
    with pytest.raises(IndexError):
        v[1:3] = np.ones(2)


def test_write_size_mismatch(engine, queue):
    v = vexfft.empty(queue, 4, engine=engine)
    with pytest.raises(ConfigurationError):
        v[:] = np.ones(5)


def test_invalid_vectors(engine, queue):
    with pytest.raises(ConfigurationError):
        vexfft.empty([], 4, engine=engine)
    with pytest.raises(ConfigurationError):
        vexfft.empty(queue, 0, engine=engine)
