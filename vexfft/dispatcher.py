"""
Dispatcher turns a transform expression plus a destination into native work.

Resolves buffer aliasing (in-place vs out-of-place) and enqueues the
transform on the plan's queue. Never waits for the device.

Keep this SIMPLE and READABLE.
"""

import threading
import time
from collections import deque
import numpy as np
from typing import Optional, TYPE_CHECKING

from vexfft.backend.base import ResultLocation
from vexfft.debug import debug_print_dispatch
from vexfft.errors import (
    check_error, ConfigurationError, UnsupportedFeatureError,
    append_unsupported_error, negate_unsupported_error, multi_queue_error,
    dtype_error, size_mismatch_error,
)

if TYPE_CHECKING:
    from vexfft.plan import TransformPlan
    from vexfft.vector import Vector


class DispatchStream:
    """Records engine lifecycle and dispatch events with timestamps for debugging."""

    def __init__(self, log_file: str = None, console: bool = False, max_entries: Optional[int] = 10000):
        # Oldest entries are dropped once max_entries is reached (None = unbounded)
        self.entries = deque(maxlen=max_entries)
        self.lock = threading.Lock()
        self.start_time = time.time()
        self.sequence = 0
        self.console = console
        self.log_file = log_file
        self.file_handle = None

        # Open log file if specified
        if self.log_file:
            try:
                self.file_handle = open(self.log_file, 'w', buffering=1)  # Line buffered
            except OSError as e:
                print(f"Warning: Could not open dispatch log file {self.log_file}: {e}")
                self.file_handle = None

    def log(self, event_type: str, plan_id: Optional[int], details: str = ""):
        """Log an event (SETUP, TEARDOWN, PLAN_CREATE, PLAN_DESTROY, ENQUEUE, REJECT)."""
        with self.lock:
            elapsed = time.time() - self.start_time
            self.sequence += 1

            entry = {
                "seq": self.sequence,
                "timestamp": elapsed,
                "event": event_type,
                "plan": plan_id,
                "details": details,
            }
            self.entries.append(entry)

            if self.console or self.file_handle:
                log_line = self.format_entry(entry)
                if self.console:
                    print(log_line)
                if self.file_handle:
                    self.file_handle.write(log_line + "\n")

    def format_entry(self, entry: dict) -> str:
        """Format: "  0.123s | #0042 | ENQUEUE      | plan[3]  | OUTOFPLACE direction=FORWARD" """
        time_str = f"{entry['timestamp']:7.3f}s"
        seq_str = f"#{entry['seq']:04d}"
        event_str = f"{entry['event']:12s}"
        plan_str = f"plan[{entry['plan']}]" if entry['plan'] is not None else "-"

        line = f"{time_str} | {seq_str} | {event_str} | {plan_str:8s}"
        if entry['details']:
            line += f" | {entry['details']}"
        return line

    def snapshot(self):
        """Copy of all recorded entries."""
        with self.lock:
            return list(self.entries)

    def events(self, event_type: str, plan_id: Optional[int] = None):
        """Recorded entries of one type (optionally for one plan)."""
        return [e for e in self.snapshot()
                if e['event'] == event_type and (plan_id is None or e['plan'] == plan_id)]

    def clear(self):
        with self.lock:
            self.entries.clear()

    def close(self):
        """Close the log file."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None


_stream: Optional[DispatchStream] = None
_stream_lock = threading.Lock()


def get_dispatch_stream() -> DispatchStream:
    """Process-wide dispatch log, configured from the global config on first use."""
    global _stream
    with _stream_lock:
        if _stream is None:
            from vexfft.config import get_config
            cfg = get_config().engine
            _stream = DispatchStream(log_file=cfg.dispatch_log, console=cfg.console_log,
                                     max_entries=cfg.dispatch_log_entries)
        return _stream


def _reject(plan: 'TransformPlan', reason: str, error: Exception):
    get_dispatch_stream().log("REJECT", plan.id, reason)
    debug_print_dispatch(f"plan[{plan.id}] rejected: {reason}")
    raise error


def execute(plan: 'TransformPlan', input_vector: 'Vector', output_vector: 'Vector',
            negate: bool = False, append: bool = False) -> ResultLocation:
    """
    Enqueue plan(input_vector) into output_vector.

    Returns the result location that was selected. The transform is only
    enqueued; synchronize on the queue to wait for the result.
    """
    if append:
        _reject(plan, "append", UnsupportedFeatureError(append_unsupported_error()))
    if negate:
        _reject(plan, "negate", UnsupportedFeatureError(negate_unsupported_error()))

    plan.check_initialized()

    # Split buffers across queues are not supported, for the plan or its vectors
    for queues in (plan.queues, input_vector.queues, output_vector.queues):
        if len(queues) != 1:
            _reject(plan, "multi-queue", UnsupportedFeatureError(multi_queue_error(len(queues))))

    for what, vec in (("Input", input_vector), ("Output", output_vector)):
        if np.dtype(vec.dtype) != np.complex64:
            raise ConfigurationError(dtype_error(input_vector.dtype, output_vector.dtype))
        if vec.size != plan.size:
            raise ConfigurationError(size_mismatch_error(plan.size, vec.size, what))

    engine = plan.engine
    input_buf = input_vector.buffer(0)
    output_buf = output_vector.buffer(0)

    if engine.native_handle(input_buf) == engine.native_handle(output_buf):
        location = ResultLocation.INPLACE
    else:
        location = ResultLocation.OUTOFPLACE

    # Result location is plan state; hold it until the enqueue has seen it
    with plan.dispatch_lock:
        check_error(engine.set_result_location(plan.handle, location), 'set_result_location')
        check_error(engine.enqueue_transform(plan.handle, plan.direction, list(plan.queues),
                                             [input_buf], [output_buf]), 'enqueue_transform')

    get_dispatch_stream().log("ENQUEUE", plan.id, f"{location.name} direction={plan.direction.name}")
    debug_print_dispatch(f"plan[{plan.id}] {plan.direction.name} {location.name} lengths={plan.lengths}")
    return location
