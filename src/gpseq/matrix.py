"""
Dense 2-D matrix container used throughout the GP engine.

A thin, bounds-checked wrapper around a float64 numpy array. Every
transformation returns a new Matrix; nothing aliases the stored data.
"""

import numpy as np
from typing import List, Sequence, Tuple, Union

from .exceptions import ShapeError

MatrixLike = Union['Matrix', np.ndarray, Sequence[Sequence[float]], Sequence[float]]


class Matrix:
    """
    Dense float64 matrix with bounds-checked element access.

    Parameters
    ----------
    data : Matrix, np.ndarray or nested sequence
        Row-major 2-D data. Rows must all have the same length.

    Raises
    ------
    ShapeError
        If rows have unequal length or the input is not two-dimensional.
    """

    __slots__ = ('_data',)

    def __init__(self, data: MatrixLike):
        if isinstance(data, Matrix):
            arr = data._data.copy()
        elif isinstance(data, np.ndarray):
            if data.ndim != 2:
                raise ShapeError(f"Expected a 2-D array, got {data.ndim} dimension(s)")
            arr = np.array(data, dtype=np.float64)
        else:
            rows = list(data)
            try:
                widths = {len(row) for row in rows}
            except TypeError as exc:
                raise ShapeError("Matrix rows must be sequences of numbers") from exc
            if len(widths) > 1:
                raise ShapeError(f"Ragged rows: found row lengths {sorted(widths)}")
            if not rows:
                arr = np.zeros((0, 0))
            else:
                try:
                    arr = np.array(rows, dtype=np.float64)
                except (TypeError, ValueError) as exc:
                    raise ShapeError("Matrix rows must be sequences of numbers") from exc
                if arr.ndim != 2:
                    raise ShapeError(f"Expected 2-D nested data, got {arr.ndim} dimension(s)")
        self._data = arr

    @classmethod
    def zeros(cls, rows: int, columns: int) -> 'Matrix':
        """All-zero matrix of the given shape."""
        return cls.from_numpy(np.zeros((rows, columns)), copy=False)

    @classmethod
    def identity(cls, n: int) -> 'Matrix':
        """n x n identity matrix."""
        return cls.from_numpy(np.eye(n), copy=False)

    @classmethod
    def from_numpy(cls, arr: np.ndarray, copy: bool = True) -> 'Matrix':
        """Wrap a 2-D array; with ``copy=False`` the caller gives up ownership."""
        if arr.ndim != 2:
            raise ShapeError(f"Expected a 2-D array, got {arr.ndim} dimension(s)")
        m = cls.__new__(cls)
        m._data = np.array(arr, dtype=np.float64, copy=True) if copy else arr.astype(np.float64, copy=False)
        return m

    @property
    def rows(self) -> int:
        """Number of rows."""
        return self._data.shape[0]

    @property
    def columns(self) -> int:
        """Number of columns."""
        return self._data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self._data.shape

    @property
    def is_square(self) -> bool:
        return self.rows == self.columns

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the underlying data."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def _check_row(self, row: int) -> None:
        if not 0 <= row < self.rows:
            raise IndexError(f"Row index out of bounds: {row} (rows={self.rows})")

    def _check_column(self, column: int) -> None:
        if not 0 <= column < self.columns:
            raise IndexError(f"Column index out of bounds: {column} (columns={self.columns})")

    def get(self, row: int, column: int) -> float:
        """
        Element at (row, column).

        Raises
        ------
        IndexError
            If either index is outside the matrix. Negative indices are rejected.
        """
        self._check_row(row)
        self._check_column(column)
        return float(self._data[row, column])

    def set(self, row: int, column: int, value: float) -> None:
        """Overwrite the element at (row, column); bounds-checked like ``get``."""
        self._check_row(row)
        self._check_column(column)
        self._data[row, column] = value

    def get_row(self, row: int) -> np.ndarray:
        """Return a copy of one row."""
        self._check_row(row)
        return self._data[row, :].copy()

    def get_column(self, column: int) -> np.ndarray:
        """Return a copy of one column."""
        self._check_column(column)
        return self._data[:, column].copy()

    def diagonal(self) -> np.ndarray:
        return np.diag(self._data).copy()

    def transpose(self) -> 'Matrix':
        """Return the transpose as a new matrix."""
        return Matrix.from_numpy(self._data.T)

    def add_diagonal(self, value: float) -> 'Matrix':
        """Return a new square matrix with ``value`` added to every diagonal entry."""
        if not self.is_square:
            raise ShapeError(f"add_diagonal requires a square matrix, got {self.shape}")
        out = self._data.copy()
        out[np.diag_indices_from(out)] += value
        return Matrix.from_numpy(out, copy=False)

    def copy(self) -> 'Matrix':
        return Matrix(self)

    def to_list(self) -> List[List[float]]:
        return self._data.tolist()

    def to_numpy(self) -> np.ndarray:
        return self._data.copy()

    def __matmul__(self, other: 'Matrix') -> 'Matrix':
        if not isinstance(other, Matrix):
            return NotImplemented
        if self.columns != other.rows:
            raise ShapeError(
                f"Cannot multiply {self.rows}x{self.columns} by {other.rows}x{other.columns}"
            )
        return Matrix.from_numpy(self._data @ other._data, copy=False)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None

    def __repr__(self) -> str:
        return f"Matrix({self.rows}x{self.columns}, {self.to_list()!r})"


def as_matrix(X: MatrixLike) -> Matrix:
    """
    Coerce input points to a Matrix of shape (n, d).

    A flat sequence of scalars is read as ``n`` one-dimensional points, i.e.
    an ``n x 1`` column (the usual time axis). An empty flat sequence gives
    an empty ``0 x 1`` column.
    """
    if isinstance(X, Matrix):
        return X
    if isinstance(X, np.ndarray):
        if X.ndim == 1:
            return Matrix.from_numpy(X.reshape(-1, 1))
        return Matrix(X)
    points = list(X)
    if not points:
        return Matrix.zeros(0, 1)
    if all(np.isscalar(p) for p in points):
        return Matrix([[p] for p in points])
    return Matrix(points)
