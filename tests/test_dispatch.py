"""
Test lazy transform expressions and the dispatcher.

Keep this SIMPLE and READABLE.
"""

import pytest
import numpy as np

import vexfft
from vexfft.backend import Status, ResultLocation
from vexfft.dispatcher import get_dispatch_stream
from vexfft.errors import (
    BackendError, ConfigurationError, UnsupportedFeatureError,
    ExpressionConsumedError, PlanStateError,
)
from vexfft.expression import AssignOp, TransformExpression
from vexfft.plan import TransformPlan
from vexfft.resource import EngineResource


def relative_error(result, expected):
    return np.linalg.norm(result - expected) / np.linalg.norm(expected)


@pytest.fixture
def fft8(queue, resource):
    with TransformPlan(queue, 8, resource=resource) as plan:
        yield plan


def test_impulse_forward(engine, queue, fft8):
    """Unit impulse transforms to (1, 0) in every bin."""
    impulse = np.zeros(8, dtype=np.complex64)
    impulse[0] = 1.0
    x = vexfft.from_numpy(queue, impulse, engine=engine)
    y = vexfft.empty(queue, 8, engine=engine)

    y[:] = fft8(x)

    np.testing.assert_allclose(y.to_numpy(), np.ones(8, dtype=np.complex64), atol=1e-6)


def test_expression_is_lazy(engine, queue, fft8):
    """Building an expression touches neither the engine nor the queue."""
    x = vexfft.zeros(queue, 8, engine=engine)
    queue.finish()

    expr = fft8(x)

    assert isinstance(expr, TransformExpression)
    assert expr.plan is fft8
    assert expr.input is x
    assert not expr.consumed
    assert engine.enqueue_calls == 0
    assert queue.pending == 0


def test_enqueue_does_not_wait(engine, queue, fft8):
    """Assignment only enqueues; the work runs when the queue is synchronized."""
    x = vexfft.zeros(queue, 8, engine=engine)
    y = vexfft.empty(queue, 8, engine=engine)
    queue.finish()

    y[:] = fft8(x)

    assert engine.enqueue_calls == 1
    assert queue.pending == 1
    queue.finish()
    assert queue.pending == 0


def test_out_of_place_then_in_place(engine, queue, fft8, random_complex):
    """Same plan picks out-of-place for distinct buffers and in-place for one buffer."""
    data = random_complex(8)
    x = vexfft.from_numpy(queue, data, engine=engine)
    y = vexfft.empty(queue, 8, engine=engine)

    location = fft8(x).evaluate(y)
    assert location == ResultLocation.OUTOFPLACE
    assert engine.describe_plan(fft8.handle).location == ResultLocation.OUTOFPLACE

    np.testing.assert_allclose(y.to_numpy(), np.fft.fft(data), rtol=1e-4, atol=1e-4)
    np.testing.assert_array_equal(x.to_numpy(), data)

    location = fft8(x).evaluate(x)
    assert location == ResultLocation.INPLACE
    assert engine.describe_plan(fft8.handle).location == ResultLocation.INPLACE

    np.testing.assert_allclose(x.to_numpy(), np.fft.fft(data), rtol=1e-4, atol=1e-4)

    details = [e['details'] for e in get_dispatch_stream().events("ENQUEUE", fft8.id)]
    assert details[0].startswith("OUTOFPLACE")
    assert details[1].startswith("INPLACE")


def test_in_place_assignment(engine, queue, fft8, random_complex):
    """x[:] = fft(x) transforms in place."""
    data = random_complex(8)
    x = vexfft.from_numpy(queue, data, engine=engine)

    x[:] = fft8(x)

    assert engine.describe_plan(fft8.handle).location == ResultLocation.INPLACE
    np.testing.assert_allclose(x.to_numpy(), np.fft.fft(data), rtol=1e-4, atol=1e-4)


@pytest.mark.parametrize("op", [AssignOp.NEGATE, AssignOp.ADD, AssignOp.SUB])
def test_negate_and_append_never_enqueue(engine, queue, fft8, op):
    """Unsupported assignment operations are rejected before the native enqueue."""
    x = vexfft.zeros(queue, 8, engine=engine)
    y = vexfft.zeros(queue, 8, engine=engine)

    with pytest.raises(UnsupportedFeatureError):
        fft8(x).evaluate(y, op)

    assert engine.enqueue_calls == 0
    assert len(get_dispatch_stream().events("REJECT", fft8.id)) == 1


@pytest.mark.parametrize("negate,append", [(True, False), (False, True), (True, True)])
def test_apply_flags_rejected(engine, queue, fft8, negate, append):
    x = vexfft.zeros(queue, 8, engine=engine)

    with pytest.raises(UnsupportedFeatureError):
        fft8(x).apply(negate, append, x)

    assert engine.enqueue_calls == 0


def test_augmented_assignment_rejected(engine, queue, fft8):
    """y += fft(x) and y -= fft(x) raise instead of silently overwriting."""
    x = vexfft.zeros(queue, 8, engine=engine)
    y = vexfft.zeros(queue, 8, engine=engine)

    with pytest.raises(UnsupportedFeatureError):
        y += fft8(x)
    with pytest.raises(UnsupportedFeatureError):
        y -= fft8(x)

    assert engine.enqueue_calls == 0


def test_negated_expression_rejected(engine, queue, fft8):
    x = vexfft.zeros(queue, 8, engine=engine)
    with pytest.raises(UnsupportedFeatureError):
        -fft8(x)


def test_multi_queue_plan_rejects_execution(engine, queue, resource):
    """A plan bound to two queues refuses to run instead of using only one."""
    second = engine.create_queue(queue.context)
    x = vexfft.zeros([queue], 8, engine=engine)
    y = vexfft.zeros([queue], 8, engine=engine)

    with TransformPlan([queue, second], 8, resource=resource) as plan:
        with pytest.raises(UnsupportedFeatureError):
            y[:] = plan(x)

    assert engine.enqueue_calls == 0


@pytest.mark.parametrize("split", ["input", "output"])
def test_vector_split_across_queues_rejected(engine, queue, fft8, split):
    """A single-queue plan never runs on a vector whose buffers are split."""
    second = engine.create_queue(queue.context)
    split_vector = vexfft.zeros([queue, second], 8, engine=engine)
    plain_vector = vexfft.zeros(queue, 8, engine=engine)
    x, y = (split_vector, plain_vector) if split == "input" else (plain_vector, split_vector)

    with pytest.raises(UnsupportedFeatureError):
        y[:] = fft8(x)

    assert engine.enqueue_calls == 0
    assert get_dispatch_stream().events("REJECT", fft8.id)[0]["details"] == "multi-queue"


def test_expression_single_use(engine, queue, fft8):
    x = vexfft.zeros(queue, 8, engine=engine)
    y = vexfft.empty(queue, 8, engine=engine)
    expr = fft8(x)

    expr.evaluate(y)
    assert expr.consumed

    with pytest.raises(ExpressionConsumedError):
        expr.evaluate(y)
    assert engine.enqueue_calls == 1


def test_expression_after_plan_destroyed(engine, queue, resource):
    x = vexfft.zeros(queue, 8, engine=engine)
    plan = TransformPlan(queue, 8, resource=resource)
    expr = plan(x)
    plan.destroy()

    with pytest.raises(PlanStateError):
        expr.evaluate(x)


def test_size_mismatch(engine, queue, fft8):
    x = vexfft.zeros(queue, 16, engine=engine)
    y = vexfft.empty(queue, 16, engine=engine)

    with pytest.raises(ConfigurationError):
        y[:] = fft8(x)


def test_element_type_mismatch(engine, queue, fft8):
    x = vexfft.zeros(queue, 8, engine=engine)
    y = vexfft.empty(queue, 8, dtype='complex128', engine=engine)

    with pytest.raises(ConfigurationError):
        y[:] = fft8(x)


def test_enqueue_failure(faulty_engine_factory):
    """Native enqueue errors surface as BackendError with the status code."""
    engine = faulty_engine_factory({'enqueue_transform': Status.INVALID_COMMAND_QUEUE})
    queue = engine.create_queue()
    x = vexfft.zeros(queue, 8, engine=engine)
    y = vexfft.empty(queue, 8, engine=engine)

    with TransformPlan(queue, 8, resource=EngineResource(engine)) as plan:
        with pytest.raises(BackendError) as exc_info:
            y[:] = plan(x)

    assert exc_info.value.status == Status.INVALID_COMMAND_QUEUE
    assert exc_info.value.call == 'enqueue_transform'


def test_foreign_context_rejected_by_engine(engine, queue, fft8):
    """Vectors on another context are refused by the engine."""
    other = engine.create_queue()
    x = vexfft.zeros(other, 8, engine=engine)
    y = vexfft.empty(other, 8, engine=engine)

    with pytest.raises(BackendError) as exc_info:
        y[:] = fft8(x)
    assert exc_info.value.status == Status.INVALID_CONTEXT


@pytest.mark.parametrize("lengths", [(64,), (8, 16), (4, 8, 6)])
def test_round_trip_scales_by_n(engine, queue, resource, random_complex, lengths):
    """Forward then inverse reproduces the input scaled by N."""
    n = int(np.prod(lengths))
    data = random_complex(n)
    x = vexfft.from_numpy(queue, data, engine=engine)
    y = vexfft.empty(queue, n, engine=engine)
    z = vexfft.empty(queue, n, engine=engine)

    with TransformPlan(queue, lengths, vexfft.forward, resource=resource) as fwd, \
            TransformPlan(queue, lengths, vexfft.inverse, resource=resource) as inv:
        y[:] = fwd(x)
        z[:] = inv(y)  # same queue, runs after the forward transform
        result = z.to_numpy()

    assert relative_error(result, n * data) < 1e-4


def test_multidimensional_matches_numpy(engine, queue, resource, random_complex):
    """Row-major 2-D and 3-D transforms match numpy.fft.fftn."""
    for shape in [(4, 8), (2, 3, 5)]:
        data = random_complex(*shape)
        x = vexfft.from_numpy(queue, data, engine=engine)
        y = vexfft.empty(queue, data.size, engine=engine)

        with TransformPlan(queue, shape, resource=resource) as plan:
            y[:] = plan(x)
            result = y.to_numpy().reshape(shape)

        assert relative_error(result, np.fft.fftn(data)) < 1e-5
