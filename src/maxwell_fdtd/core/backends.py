"""Array backends for the FDTD kernels.

The kernels in :mod:`maxwell_fdtd.core.kernels` are written against a small
array API (slicing, arithmetic, fancy indexing, ``where``) that
NumPy arrays and PyTorch tensors both provide. A backend object supplies the
few operations that are module-level functions rather than array methods.

Backends:
    - "numpy": NumPy on the CPU (always available)
    - "torch": PyTorch on CUDA, Apple Silicon (MPS) or CPU
    - "auto": PyTorch when a GPU device is present, otherwise NumPy

Example:
    >>> from maxwell_fdtd.core.backends import get_backend
    >>> backend = get_backend("auto")
    >>> field = backend.zeros((64, 64, 3))
"""

from __future__ import annotations

import warnings
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray

# Check for PyTorch and GPU availability
_HAS_TORCH = False
_HAS_CUDA = False
_HAS_MPS = False
_torch = None

try:
    import torch

    _torch = torch
    _HAS_TORCH = True
    _HAS_CUDA = torch.cuda.is_available()
    _HAS_MPS = torch.backends.mps.is_available() and torch.backends.mps.is_built()
except ImportError:
    pass

BackendName = Literal["auto", "numpy", "torch"]


def has_torch() -> bool:
    """Check if PyTorch is installed."""
    return _HAS_TORCH


def has_gpu_support() -> bool:
    """Check if a GPU device (CUDA or MPS) is usable through PyTorch.

    Returns:
        True if PyTorch is installed and a CUDA or MPS device is available.
    """
    return _HAS_CUDA or _HAS_MPS


def get_gpu_info() -> dict:
    """Get information about GPU support.

    Returns:
        Dict with keys: available, backend, pytorch_version
    """
    if not _HAS_TORCH:
        return {
            "available": False,
            "backend": None,
            "pytorch_version": None,
        }
    if _HAS_CUDA:
        device = "cuda"
    elif _HAS_MPS:
        device = "mps"
    else:
        device = None
    return {
        "available": device is not None,
        "backend": device,
        "pytorch_version": _torch.__version__,
    }


class NumpyBackend:
    """NumPy array backend (CPU)."""

    name = "numpy"
    device = "cpu"

    def __init__(self, dtype: Any = np.float32):
        self.dtype = dtype

    def zeros(self, shape: tuple[int, ...]) -> NDArray[np.floating]:
        return np.zeros(shape, dtype=self.dtype)

    def zeros_like(self, array: NDArray[np.floating]) -> NDArray[np.floating]:
        return np.zeros_like(array)

    def asarray(self, data, dtype: Any = None) -> NDArray:
        """Convert array-like data (host memory) into a backend array."""
        return np.ascontiguousarray(data, dtype=dtype if dtype is not None else self.dtype)

    def index_array(self, data) -> NDArray[np.intp]:
        """Convert integer indices into a backend index array."""
        return np.asarray(data, dtype=np.intp)

    def to_numpy(self, array) -> NDArray:
        return np.asarray(array)

    def where(self, condition, a, b):
        return np.where(condition, a, b)

    def sum(self, array) -> float:
        return float(np.sum(array, dtype=np.float64))


class TorchBackend:
    """PyTorch tensor backend.

    Args:
        device: "auto" (cuda > mps > cpu), or an explicit torch device string
        dtype: Tensor dtype (default: torch.float32)
    """

    name = "torch"

    def __init__(self, device: str = "auto", dtype: Any = None):
        if not _HAS_TORCH:
            raise ImportError(
                "PyTorch backend not available. "
                "Install with: pip install 'maxwell-fdtd[gpu]'"
            )
        if device == "auto":
            if _HAS_CUDA:
                device = "cuda"
            elif _HAS_MPS:
                device = "mps"
            else:
                device = "cpu"
        elif device.startswith("cuda") and not _HAS_CUDA:
            warnings.warn(
                "CUDA is not available, falling back to the CPU device.",
                UserWarning,
                stacklevel=2,
            )
            device = "cpu"
        elif device.startswith("mps") and not _HAS_MPS:
            warnings.warn(
                "Apple Metal (MPS) is not available, falling back to the CPU device.",
                UserWarning,
                stacklevel=2,
            )
            device = "cpu"

        self.device = device
        self.dtype = dtype if dtype is not None else _torch.float32

    def zeros(self, shape: tuple[int, ...]):
        return _torch.zeros(shape, dtype=self.dtype, device=self.device)

    def zeros_like(self, array):
        return _torch.zeros_like(array)

    def asarray(self, data, dtype: Any = None):
        array = np.ascontiguousarray(data, dtype=np.float32)
        return _torch.from_numpy(array).to(
            device=self.device, dtype=dtype if dtype is not None else self.dtype
        )

    def index_array(self, data):
        array = np.asarray(data, dtype=np.int64)
        return _torch.from_numpy(array).to(self.device)

    def to_numpy(self, array) -> NDArray:
        if isinstance(array, _torch.Tensor):
            return array.detach().cpu().numpy()
        return np.asarray(array)

    def where(self, condition, a, b):
        if not isinstance(a, _torch.Tensor):
            a = _torch.as_tensor(a, dtype=self.dtype, device=self.device)
        if not isinstance(b, _torch.Tensor):
            b = _torch.as_tensor(b, dtype=self.dtype, device=self.device)
        return _torch.where(condition, a, b)

    def sum(self, array) -> float:
        return float(array.sum(dtype=_torch.float64))


Backend = NumpyBackend | TorchBackend


def get_backend(name: BackendName = "auto", **kwargs) -> Backend:
    """Select an array backend.

    Args:
        name: "auto", "numpy" or "torch"
        **kwargs: Passed to the backend constructor

    Returns:
        Backend instance

    Raises:
        ImportError: If "torch" is requested but PyTorch is not installed
        ValueError: If the backend name is unknown
    """
    name = name.lower()

    if name == "numpy":
        return NumpyBackend(**kwargs)
    if name == "torch":
        return TorchBackend(**kwargs)
    if name == "auto":
        # Small 2D grids run well on NumPy; only move to torch for a real GPU
        if has_gpu_support():
            return TorchBackend(**kwargs)
        return NumpyBackend(**kwargs)

    raise ValueError(f"Unknown backend: {name!r}. Valid backends: auto, numpy, torch")
