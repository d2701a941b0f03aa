"""
Dense 2-D matrix with the arithmetic the network needs.

A Matrix is a value: every operation returns a new Matrix and never writes
into its operands. Entries are float64 throughout.

  - elementwise_multiply(a, b): Hadamard product, shapes must be equal
  - multiply(a, b):             conventional product, a.cols == b.rows
  - add / subtract:             shapes must be equal
  - scalar_multiply(a, k), transpose(a), map(a, f)

Shape violations raise ShapeMismatchError before any computation.
"""
from __future__ import annotations
from numbers import Integral
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
import numpy as np

from mlpnet.core.backends import get_backend
from mlpnet.core.errors import ShapeMismatchError

DTYPE = np.float64


class Matrix:
    __slots__ = ("data",)

    def __init__(self, data: np.ndarray):
        # Always a private copy; callers keep ownership of what they passed in
        data = np.array(data, dtype=DTYPE, order="C")
        if data.ndim != 2:
            raise ValueError(f"Matrix data must be 2-D, got {data.ndim}-D")
        self.data = data

    # ----- factories -----
    @classmethod
    def zeros(cls, rows: int, cols: int) -> "Matrix":
        return cls(np.zeros((rows, cols), dtype=DTYPE))

    @classmethod
    def random(cls, rows: int, cols: int, rng: Optional[np.random.Generator] = None) -> "Matrix":
        """Entries drawn uniformly from [-1.0, 1.0)."""
        rng = rng if rng is not None else np.random.default_rng()
        return cls(rng.random((rows, cols), dtype=DTYPE) * 2.0 - 1.0)

    @classmethod
    def from_list(cls, values: Iterable) -> "Matrix":
        """
        1-D sequence -> 1xN row; 2-D sequence -> rows x cols.
        Ragged rows are rejected.
        """
        if isinstance(values, np.ndarray):
            arr = values.astype(DTYPE)
        else:
            values = list(values)
            if values and all(isinstance(v, (Sequence, np.ndarray)) for v in values):
                widths = {len(v) for v in values}
                if len(widths) != 1:
                    raise ValueError(f"Every row must have the same length, got lengths {sorted(widths)}")
            arr = np.array(values, dtype=DTYPE)
        if arr.ndim == 1:
            arr = arr.reshape(1, -1)
        return cls(arr)

    # ----- shape -----
    @property
    def rows(self) -> int:
        return self.data.shape[0]

    @property
    def cols(self) -> int:
        return self.data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    def _require_same_shape(self, other: "Matrix", operation: str) -> None:
        if self.shape != other.shape:
            raise ShapeMismatchError(operation, self.shape, other.shape)

    # ----- arithmetic -----
    def elementwise_multiply(self, other: "Matrix") -> "Matrix":
        self._require_same_shape(other, "dot multiply")
        return Matrix(self.data * other.data)

    def add(self, other: "Matrix") -> "Matrix":
        self._require_same_shape(other, "add")
        return Matrix(self.data + other.data)

    def subtract(self, other: "Matrix") -> "Matrix":
        self._require_same_shape(other, "subtract")
        return Matrix(self.data - other.data)

    def multiply(self, other: "Matrix") -> "Matrix":
        if self.cols != other.rows:
            raise ShapeMismatchError("multiply", self.shape, other.shape)
        return Matrix(get_backend().multiply(self.data, other.data))

    def scalar_multiply(self, k: float) -> "Matrix":
        return Matrix(self.data * k)

    def transpose(self) -> "Matrix":
        return Matrix(self.data.T)

    def map(self, function: Callable[[float], float], vectorized: bool = False) -> "Matrix":
        """
        Apply `function` to every entry.

        With vectorized=True the function is called once on the whole buffer,
        which is only valid for numpy-style functions that act entrywise.
        """
        if vectorized:
            out = np.asarray(function(self.data), dtype=DTYPE)
            if out.shape != self.shape:
                raise ShapeMismatchError("map", self.shape, out.shape)
            return Matrix(out)
        return Matrix(np.vectorize(function, otypes=[DTYPE])(self.data))

    # ----- access -----
    def row(self, i: int) -> np.ndarray:
        """Read-only view of row i."""
        view = self.data[i]
        view.flags.writeable = False
        return view

    def __getitem__(self, index):
        """m[i, j] -> float; m[i] -> row view; slices -> read-only views."""
        if isinstance(index, tuple) and len(index) == 2 and all(isinstance(i, Integral) for i in index):
            return float(self.data[index])
        if isinstance(index, Integral):
            return self.row(index)
        view = self.data[index]
        if isinstance(view, np.ndarray):
            view = view.view()
            view.flags.writeable = False
        return view

    def to_list(self) -> List[List[float]]:
        return self.data.tolist()

    def copy(self) -> "Matrix":
        return Matrix(self.data)

    # ----- operators -----
    def __add__(self, other: "Matrix") -> "Matrix":
        return self.add(other)

    def __sub__(self, other: "Matrix") -> "Matrix":
        return self.subtract(other)

    def __matmul__(self, other: "Matrix") -> "Matrix":
        return self.multiply(other)

    def __mul__(self, k: float) -> "Matrix":
        if isinstance(k, Matrix):
            raise TypeError("Use elementwise_multiply() or @ for matrix-matrix products")
        return self.scalar_multiply(k)

    __rmul__ = __mul__

    def __eq__(self, other) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.data, other.data))

    __hash__ = None

    def __repr__(self) -> str:
        return f"Matrix({self.rows}x{self.cols}, {self.to_list()})"
