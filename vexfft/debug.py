"""
Debug utilities for vexfft.

Provides visibility into:
- Plan construction and destruction
- Engine setup/teardown
- Dispatch decisions (in-place vs out-of-place)

Environment variables for debug output:
- VEXFFT_VERBOSE: Framework status messages (engine selection, config loading)
- VEXFFT_DEBUG_PLAN: Plan lifecycle debug prints
- VEXFFT_DEBUG_DISPATCH: Dispatcher debug prints
- VEXFFT_DEBUG_ENGINE: Engine setup/teardown debug prints

By default, vexfft is completely silent (no framework output). Only errors are shown.
"""

import os
from typing import List, Dict, Any


# Debug flags
DEBUG_PLAN = os.environ.get('VEXFFT_DEBUG_PLAN', '0') == '1'
DEBUG_DISPATCH = os.environ.get('VEXFFT_DEBUG_DISPATCH', '0') == '1'
DEBUG_ENGINE = os.environ.get('VEXFFT_DEBUG_ENGINE', '0') == '1'
VERBOSE = os.environ.get('VEXFFT_VERBOSE', '0') == '1'


def debug_print_plan(*args, **kwargs):
    """Print plan debug message if VEXFFT_DEBUG_PLAN=1."""
    if DEBUG_PLAN:
        print("[PLAN]", *args, **kwargs)


def debug_print_dispatch(*args, **kwargs):
    """Print dispatcher debug message if VEXFFT_DEBUG_DISPATCH=1."""
    if DEBUG_DISPATCH:
        print("[DISPATCH]", *args, **kwargs)


def debug_print_engine(*args, **kwargs):
    """Print engine debug message if VEXFFT_DEBUG_ENGINE=1."""
    if DEBUG_ENGINE:
        print("[ENGINE]", *args, **kwargs)


def verbose_print(*args, **kwargs):
    """Print verbose framework message if VEXFFT_VERBOSE=1."""
    if VERBOSE:
        print(*args, **kwargs)


def get_dispatch_log() -> List[Dict[str, Any]]:
    """
    Get the recorded dispatch log.

    Returns a list of entries with:
    - Sequence number and elapsed time
    - Event type (SETUP, TEARDOWN, PLAN_CREATE, PLAN_DESTROY, ENQUEUE, REJECT)
    - Plan ID and event details

    Example:
        import vexfft
        fft = vexfft.FFT(queue, 8)
        out[:] = fft(x)

        for entry in vexfft.debug.get_dispatch_log():
            print(entry)
    """
    from vexfft.dispatcher import get_dispatch_stream
    return get_dispatch_stream().snapshot()


def print_dispatch_log():
    """
    Pretty-print the dispatch log.

    Example:
        import vexfft
        vexfft.debug.print_dispatch_log()
        # Output:
        # Dispatch Log (3 events):
        #   0.000s | #0001 | SETUP        | -        | numpy
        #   0.001s | #0002 | PLAN_CREATE  | plan[0]  | lengths=(8,) direction=FORWARD
        #   0.002s | #0003 | ENQUEUE      | plan[0]  | OUTOFPLACE direction=FORWARD
    """
    from vexfft.dispatcher import get_dispatch_stream
    log = get_dispatch_log()

    if not log:
        print("Dispatch Log: Empty (no events recorded)")
        return

    print(f"Dispatch Log ({len(log)} events):")
    print("-" * 60)

    stream = get_dispatch_stream()
    for entry in log:
        print(stream.format_entry(entry))
