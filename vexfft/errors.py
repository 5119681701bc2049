"""
Errors for vexfft.

Exception types plus the common error messages, kept in one place so
the plan, dispatcher and engines report failures the same way.
"""

from typing import Optional


class VexFFTError(RuntimeError):
    """Base class for all vexfft errors."""


class ConfigurationError(VexFFTError, ValueError):
    """Invalid plan or vector configuration, detected before any native call."""


class BackendError(VexFFTError):
    """Non-success status returned by the native FFT engine."""

    def __init__(self, status: int, call: Optional[str] = None):
        self.status = int(status)
        self.call = call
        super().__init__(backend_failed_error(self.status, call))


class UnsupportedFeatureError(VexFFTError, NotImplementedError):
    """Requested feature (negate, append, multi-queue execution) is not implemented."""


class PlanStateError(VexFFTError):
    """Plan used before construction finished or after destroy()."""


class ExpressionConsumedError(VexFFTError):
    """Transform expression evaluated more than once."""


class ResourceStateError(VexFFTError):
    """Engine resource released more times than it was acquired."""


def check_error(status: int, call: Optional[str] = None):
    """Raise BackendError if a native call returned anything but success."""
    if status != 0:
        raise BackendError(status, call)


def backend_failed_error(status: int, call: Optional[str] = None):
    """Error when a native engine call fails."""
    try:
        from vexfft.backend.base import Status
        name = Status(status).name
    except ValueError:
        name = "UNKNOWN"
    where = f"'{call}'" if call else "native call"
    return f"FFT engine {where} failed with status {status} ({name})"


def dimension_count_error(ndim: int):
    """Error when a plan is requested with an unsupported number of dimensions."""
    return f"FFT plans support 1 to 3 dimensions (got {ndim})"


def dimension_length_error(lengths):
    """Error when a dimension length is not a positive integer."""
    return f"FFT dimension lengths must be positive integers (got {tuple(lengths)})"


def no_queues_error():
    """Error when a plan or vector is given an empty queue list."""
    return "At least one command queue is required"


def dtype_error(input_dtype, output_dtype):
    """Error when input/output element types are not single precision complex."""
    return (f"Only single precision complex-to-complex transforms are implemented "
            f"(input={input_dtype}, output={output_dtype})")


def size_mismatch_error(expected: int, got: int, what: str):
    """Error when a vector does not match the plan size."""
    return f"{what} vector has {got} elements, plan expects {expected}"


def negate_unsupported_error():
    """Error when an expression algebra asks for a negated transform."""
    return "Negation of FFT results is not implemented"


def append_unsupported_error():
    """Error when an expression algebra asks to accumulate into the output."""
    return "Accumulating FFT results into the output (+=, -=) is not implemented"


def multi_queue_error(num_queues: int):
    """Error when a plan or vector spanning several queues is executed."""
    return f"FFT execution supports a single command queue only (got {num_queues})"
