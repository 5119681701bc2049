"""
Lazy transform expressions.

`plan(x)` does not touch the device; it returns a TransformExpression that
remembers the plan and the input. Assigning the expression to a vector
evaluates it exactly once:

    y[:] = fft(x)    # AssignOp.ASSIGN
    y += fft(x)      # AssignOp.ADD   (not implemented, raises)
    y -= fft(x)      # AssignOp.SUB   (not implemented, raises)
"""

from enum import Enum
from typing import TYPE_CHECKING

from vexfft.errors import UnsupportedFeatureError, ExpressionConsumedError, negate_unsupported_error

if TYPE_CHECKING:
    from vexfft.plan import TransformPlan
    from vexfft.vector import Vector


class AssignOp(Enum):
    """How an expression result is combined with the destination: (negate, append)."""
    ASSIGN = (False, False)  # y = f(x)
    NEGATE = (True, False)  # y = -f(x)
    ADD = (False, True)  # y += f(x)
    SUB = (True, True)  # y -= f(x)

    @property
    def negate(self) -> bool:
        return self.value[0]

    @property
    def append(self) -> bool:
        return self.value[1]


class TransformExpression:
    """
    transform(input), not yet written anywhere.

    Borrows the plan and the input vector; owns neither. Single use.
    """

    __slots__ = ('plan', 'input', '_consumed')

    def __init__(self, plan: 'TransformPlan', input_vector: 'Vector'):
        self.plan = plan
        self.input = input_vector
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def apply(self, negate: bool, append: bool, output: 'Vector'):
        """Write the transform into `output`. Called once by the assignment."""
        if self._consumed:
            raise ExpressionConsumedError(f"FFT expression for plan {self.plan.id} was already evaluated")
        self._consumed = True
        return self.plan.execute(self.input, output, negate=negate, append=append)

    def evaluate(self, destination: 'Vector', op: AssignOp = AssignOp.ASSIGN):
        """Evaluate into `destination` using an explicit assignment operation."""
        return self.apply(op.negate, op.append, destination)

    def __neg__(self):
        raise UnsupportedFeatureError(negate_unsupported_error())

    def __repr__(self):
        state = "consumed" if self._consumed else "pending"
        return f"TransformExpression(plan={self.plan.id}, {state})"
