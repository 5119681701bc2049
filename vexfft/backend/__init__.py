"""
Engine abstraction for different FFT backends (NumPy, PyTorch, OpenCL/clFFT).

Engines expose the native FFT library through a status-code API plus the
small device surface (queues, buffers) that vectors need.
"""

import threading
from typing import Optional

from .base import (
    Engine, DescriptorEngine, PlanDescriptor,
    Status, Direction, Precision, Layout, ResultLocation,
)
from .numpy import NumpyEngine, HostContext, HostQueue, HostBuffer


def create_engine(backend: str = 'numpy', **options) -> Engine:
    """
    Factory function to create an engine.

    Args:
        backend: 'numpy', 'pytorch' or 'opencl'
        **options: Backend options (device for pytorch; preferred_vendor and
            device_index for opencl)

    Returns:
        Engine instance
    """
    if backend == 'numpy':
        return NumpyEngine()
    elif backend == 'pytorch':
        from .pytorch import PyTorchEngine
        return PyTorchEngine(device=options.get('device'))
    elif backend == 'opencl':
        from .opencl import OpenCLEngine
        return OpenCLEngine(preferred_vendor=options.get('preferred_vendor', 'nvidia'),
                            device_index=options.get('device_index', 0))
    else:
        raise ValueError(f"Unknown backend: {backend}")


_default_engine: Optional[Engine] = None
_default_lock = threading.Lock()


def default_engine() -> Engine:
    """Process-wide engine built from the global config on first use."""
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            from vexfft.config import get_config
            from vexfft.debug import verbose_print

            cfg = get_config().engine
            verbose_print(f"vexfft: Creating '{cfg.backend}' engine")
            _default_engine = create_engine(
                cfg.backend,
                device=cfg.torch_device,
                preferred_vendor=cfg.preferred_vendor,
                device_index=cfg.device_index,
            )
        return _default_engine


def set_default_engine(engine: Optional[Engine]):
    """Replace the process-wide engine (None resets to config on next use)."""
    global _default_engine
    with _default_lock:
        _default_engine = engine


__all__ = [
    'Engine', 'DescriptorEngine', 'PlanDescriptor',
    'Status', 'Direction', 'Precision', 'Layout', 'ResultLocation',
    'NumpyEngine', 'HostContext', 'HostQueue', 'HostBuffer',
    'create_engine', 'default_engine', 'set_default_engine',
]
