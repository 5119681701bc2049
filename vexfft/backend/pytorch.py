"""
PyTorch-based engine.

Transforms run through torch.fft on a torch device. On CUDA devices a
queue may carry its own stream; work is issued on that stream and the
host does not wait for it.
"""

import numpy as np
from typing import Any, Optional
from .base import DescriptorEngine, PlanDescriptor, Status, Direction, Precision, ResultLocation


class TorchQueue:
    """A torch device plus an optional CUDA stream."""

    def __init__(self, device, stream=None):
        self.device = device
        self.stream = stream

    @property
    def context(self):
        return self.device

    def __repr__(self):
        return f"TorchQueue(device={self.device}, stream={self.stream})"


class PyTorchEngine(DescriptorEngine):
    """PyTorch-based engine (CPU or GPU, torch.fft)."""

    name = 'pytorch'

    def __init__(self, device: Optional[str] = None):
        super().__init__()
        try:
            import torch
            self.torch = torch
        except ImportError:
            raise ImportError("PyTorch not available")

        if device is None:
            device = 'cuda' if torch.cuda.is_available() else 'cpu'
        self.device = self._normalize(device)

    def _normalize(self, device):
        # Buffers report "cuda:0", so plain "cuda" is pinned to the current index
        device = self.torch.device(device)
        if device.type == 'cuda' and device.index is None:
            device = self.torch.device('cuda', self.torch.cuda.current_device())
        return device

    def _dtype(self, precision: Precision):
        return self.torch.complex64 if precision == Precision.SINGLE else self.torch.complex128

    def _check_queue(self, queue: Any) -> int:
        if not isinstance(queue, TorchQueue):
            return Status.INVALID_COMMAND_QUEUE
        return Status.SUCCESS

    def _check_buffer(self, buffer: Any, plan: PlanDescriptor) -> int:
        if not isinstance(buffer, self.torch.Tensor) or buffer.dtype != self._dtype(plan.precision):
            return Status.INVALID_MEM_OBJECT
        if buffer.device != plan.context:
            return Status.DEVICE_MISMATCH
        if buffer.numel() < plan.size:
            return Status.INVALID_BUFFER_SIZE
        return Status.SUCCESS

    def _enqueue(self, plan: PlanDescriptor, direction: Direction, queue: TorchQueue, src, dst) -> int:
        torch = self.torch
        n = plan.size
        target = src if plan.location == ResultLocation.INPLACE else dst

        with self._stream(queue):
            data = src[:n].view(plan.lengths)
            if direction == Direction.FORWARD:
                result = torch.fft.fftn(data)
            else:
                result = torch.fft.ifftn(data, norm='forward')
            target[:n].copy_(result.reshape(-1))
        return Status.SUCCESS

    def _stream(self, queue: TorchQueue):
        if queue.stream is not None:
            return self.torch.cuda.stream(queue.stream)
        return self.torch.no_grad()

    # Device surface

    def create_queue(self, context: Any = None) -> TorchQueue:
        device = self._normalize(context) if context is not None else self.device
        stream = self.torch.cuda.Stream(device=device) if device.type == 'cuda' else None
        return TorchQueue(device, stream)

    def queue_context(self, queue: TorchQueue):
        return queue.device

    def finish(self, queue: TorchQueue):
        if queue.stream is not None:
            queue.stream.synchronize()
        elif queue.device.type == 'cuda':
            self.torch.cuda.synchronize(queue.device)

    def allocate(self, queue: TorchQueue, size: int, dtype=np.complex64):
        torch_dtype = self._dtype(Precision.SINGLE if np.dtype(dtype) == np.complex64 else Precision.DOUBLE)
        return self.torch.empty(size, dtype=torch_dtype, device=queue.device)

    def upload(self, queue: TorchQueue, buffer, data: np.ndarray):
        host = self.torch.from_numpy(np.array(data).ravel()).to(buffer.dtype)
        with self._stream(queue):
            buffer.copy_(host, non_blocking=True)

    def download(self, queue: TorchQueue, buffer, out: np.ndarray):
        self.finish(queue)
        out[:] = buffer.cpu().numpy()

    def copy(self, queue: TorchQueue, src, dst):
        with self._stream(queue):
            dst.copy_(src)

    def native_handle(self, buffer) -> int:
        return buffer.data_ptr()
