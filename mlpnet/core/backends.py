"""
Multiplication backends for Matrix.multiply.

Every backend computes the conventional product of two float64 buffers whose
shapes were already checked by the caller (left.cols == right.rows):

  - NumpyBackend:    sequential reference, a single BLAS call
  - ThreadedBackend: splits the output rows into chunks computed concurrently;
                     chunks never share output rows and operands are read-only
  - TorchBackend:    offloads the product to a torch device (e.g. "cuda:0")

The active backend is process-wide and chosen with set_backend().
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from typing import Optional
import os
import numpy as np
import torch


class MultiplyBackend:
    name = "base"

    def multiply(self, left: np.ndarray, right: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def close(self) -> None:
        pass


class NumpyBackend(MultiplyBackend):
    name = "numpy"

    def multiply(self, left: np.ndarray, right: np.ndarray) -> np.ndarray:
        return left @ right


class ThreadedBackend(MultiplyBackend):
    """
    Row-chunked parallel product.

    Output rows [start, stop) of each chunk depend only on the same rows of
    `left` and all of `right`, so chunks can be computed independently.
    Products with fewer than `min_rows` output rows run inline.
    """
    name = "threaded"

    def __init__(self, num_workers: Optional[int] = None, min_rows: int = 64):
        self.num_workers = num_workers or os.cpu_count() or 1
        self.min_rows = min_rows
        self._executor: Optional[ThreadPoolExecutor] = None

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self.num_workers)
        return self._executor

    def multiply(self, left: np.ndarray, right: np.ndarray) -> np.ndarray:
        rows = left.shape[0]
        if rows < self.min_rows or self.num_workers == 1:
            return left @ right

        out = np.empty((rows, right.shape[1]), dtype=np.result_type(left, right))
        chunk = -(-rows // self.num_workers)  # ceil

        def work(start: int, stop: int) -> None:
            np.matmul(left[start:stop], right, out=out[start:stop])

        futures = [self._pool().submit(work, s, min(s + chunk, rows))
                   for s in range(0, rows, chunk)]
        for f in futures:
            f.result()  # re-raises worker errors
        return out

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


class TorchBackend(MultiplyBackend):
    """Product on a torch device; results come back as float64 numpy arrays."""
    name = "torch"

    def __init__(self, device: str = "cuda"):
        if str(device).startswith("cuda") and not torch.cuda.is_available():
            raise RuntimeError(f"torch device {device!r} requested but CUDA is not available")
        self.device = torch.device(device)

    def multiply(self, left: np.ndarray, right: np.ndarray) -> np.ndarray:
        a = torch.from_numpy(np.ascontiguousarray(left)).to(self.device)
        b = torch.from_numpy(np.ascontiguousarray(right)).to(self.device)
        return (a @ b).cpu().numpy()


_BACKENDS = {
    NumpyBackend.name: NumpyBackend,
    ThreadedBackend.name: ThreadedBackend,
    TorchBackend.name: TorchBackend,
}

_current_backend: MultiplyBackend = NumpyBackend()


def set_backend(backend, **kwargs) -> MultiplyBackend:
    """
    Select the backend used by every Matrix.multiply call.

    Args:
        backend: a MultiplyBackend instance or one of "numpy", "threaded", "torch"
        **kwargs: constructor arguments when `backend` is a name
                  (num_workers for "threaded", device for "torch")

    Returns:
        The previously active backend (so callers can restore it).
    """
    global _current_backend
    if isinstance(backend, str):
        if backend not in _BACKENDS:
            raise ValueError(f"Unknown backend: {backend}. Use one of {sorted(_BACKENDS)}")
        backend = _BACKENDS[backend](**kwargs)
    elif not isinstance(backend, MultiplyBackend):
        raise TypeError(f"backend must be a name or MultiplyBackend, got {type(backend).__name__}")
    previous = _current_backend
    _current_backend = backend
    return previous


def get_backend() -> MultiplyBackend:
    return _current_backend


def set_backend_from_config(config) -> MultiplyBackend:
    """Activate the backend named by config.multiply_backend."""
    name = getattr(config, 'multiply_backend', 'numpy')
    if name == ThreadedBackend.name:
        return set_backend(name, num_workers=getattr(config, 'num_workers', None))
    if name == TorchBackend.name:
        return set_backend(name, device=getattr(config, 'device', 'cuda'))
    return set_backend(name)
