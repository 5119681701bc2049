"""
Reference-counted engine lifecycle.

Native FFT libraries need one Setup call before the first plan and one
Teardown call after the last. EngineResource owns that count for one
engine. The count is guarded by a lock, so plans may be created and
destroyed from any thread.

Plans receive the resource explicitly; get_engine_resource() hands out
the single shared resource of an engine so every component in the
process counts against the same number.

Keep this SIMPLE and READABLE.
"""

import threading
from contextlib import contextmanager

from vexfft.backend.base import Engine
from vexfft.debug import debug_print_engine
from vexfft.errors import check_error, ResourceStateError


class EngineResource:
    """Setup/teardown guard for one engine."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._count = 0
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        """Number of outstanding acquisitions."""
        return self._count

    @property
    def initialized(self) -> bool:
        """True while the engine is set up."""
        return self._count > 0

    def acquire(self):
        """Take one reference, setting the engine up on 0 -> 1."""
        from vexfft.dispatcher import get_dispatch_stream

        with self._lock:
            if self._count == 0:
                debug_print_engine(f"setup {self.engine.name}")
                # Count stays at 0 if setup fails
                check_error(self.engine.setup(), 'setup')
                get_dispatch_stream().log("SETUP", None, self.engine.name)
            self._count += 1
            debug_print_engine(f"acquire -> {self._count}")

    def release(self):
        """Drop one reference, tearing the engine down on 1 -> 0."""
        from vexfft.dispatcher import get_dispatch_stream

        with self._lock:
            if self._count == 0:
                raise ResourceStateError(f"{self.engine.name} engine released more times than acquired")
            self._count -= 1
            debug_print_engine(f"release -> {self._count}")
            if self._count == 0:
                debug_print_engine(f"teardown {self.engine.name}")
                get_dispatch_stream().log("TEARDOWN", None, self.engine.name)
                check_error(self.engine.teardown(), 'teardown')

    @contextmanager
    def hold(self):
        """Keep the engine set up for the duration of a with-block."""
        self.acquire()
        try:
            yield self.engine
        finally:
            self.release()

    def __repr__(self):
        return f"EngineResource({self.engine.name}, count={self._count})"


_resources_lock = threading.Lock()


def get_engine_resource(engine: Engine) -> EngineResource:
    """
    Get the shared resource for an engine, creating it on first use.

    The resource is stored on the engine, so it lives exactly as long as the
    engine does (no process-wide registry keeps engines alive).
    """
    with _resources_lock:
        resource = getattr(engine, "_shared_resource", None)
        if resource is None:
            resource = EngineResource(engine)
            engine._shared_resource = resource
        return resource
