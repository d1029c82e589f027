"""Rank-1 and rank-2 views over Tensor, and a dense matrix-vector product."""
from __future__ import annotations

from typing import Iterator, Sequence

import numpy as np

from digitnet.domain.entities.tensor import Scalar, Tensor, read_tensor_from_file
from digitnet.domain.errors import ConfigurationError


class Vector:
    """
    Rank-1 tensor with single-index element access.

    Parameters
    ----------
    size : int, optional
        Number of elements. Default is 0.
    fill_value : int | float, optional
        Initial value of every element.
    dtype : type, optional
        Element type, ``float`` (default) or ``int``.
    """

    def __init__(self, size: int = 0, fill_value: Scalar = 0, dtype: type = float) -> None:
        self._tensor = Tensor((size,), fill_value, dtype=dtype)

    @classmethod
    def from_tensor(cls, tensor: Tensor) -> Vector:
        """
        Wrap an existing rank-1 tensor.

        Raises
        ------
        ConfigurationError
            If `tensor` is not rank 1.
        """
        if tensor.rank != 1:
            raise ConfigurationError(
                f"Vector requires a rank-1 tensor, got rank {tensor.rank}"
            )
        vector = cls.__new__(cls)
        vector._tensor = tensor
        return vector

    @classmethod
    def from_file(cls, path: str, dtype: type = float) -> Vector:
        """Load a vector from a tensor text file (must hold a rank-1 tensor)."""
        return cls.from_tensor(read_tensor_from_file(path, dtype=dtype))

    @classmethod
    def from_values(cls, values: Sequence[Scalar], dtype: type = float) -> Vector:
        vector = cls(len(values), dtype=dtype)
        for i, value in enumerate(values):
            vector[i] = value
        return vector

    @property
    def size(self) -> int:
        return self._tensor.num_elements

    @property
    def tensor(self) -> Tensor:
        """The backing rank-1 tensor (shared, not copied)."""
        return self._tensor

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, idx: int) -> Scalar:
        return self._tensor[(idx,)]

    def __setitem__(self, idx: int, value: Scalar) -> None:
        self._tensor[(idx,)] = value

    def __iter__(self) -> Iterator[Scalar]:
        return iter(self._tensor.data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self._tensor == other._tensor

    def to_numpy(self) -> np.ndarray:
        return self._tensor.to_numpy()

    def __repr__(self) -> str:
        return f"Vector({list(self)})"


class Matrix:
    """
    Rank-2 tensor with (row, col) element access.

    Parameters
    ----------
    rows : int, optional
        Number of rows.
    cols : int, optional
        Number of columns.
    fill_value : int | float, optional
        Initial value of every element.
    dtype : type, optional
        Element type, ``float`` (default) or ``int``.
    """

    def __init__(
        self,
        rows: int = 0,
        cols: int = 0,
        fill_value: Scalar = 0,
        dtype: type = float,
    ) -> None:
        self._tensor = Tensor((rows, cols), fill_value, dtype=dtype)

    @classmethod
    def from_tensor(cls, tensor: Tensor) -> Matrix:
        """
        Wrap an existing rank-2 tensor.

        Raises
        ------
        ConfigurationError
            If `tensor` is not rank 2.
        """
        if tensor.rank != 2:
            raise ConfigurationError(
                f"Matrix requires a rank-2 tensor, got rank {tensor.rank}"
            )
        matrix = cls.__new__(cls)
        matrix._tensor = tensor
        return matrix

    @classmethod
    def from_file(cls, path: str, dtype: type = float) -> Matrix:
        """Load a matrix from a tensor text file (must hold a rank-2 tensor)."""
        return cls.from_tensor(read_tensor_from_file(path, dtype=dtype))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Scalar]], dtype: type = float) -> Matrix:
        """
        Build a matrix from a list of equally long rows.

        Raises
        ------
        ConfigurationError
            If the rows do not all have the same length.
        """
        num_cols = len(rows[0]) if rows else 0
        if any(len(row) != num_cols for row in rows):
            raise ConfigurationError("All matrix rows must have the same length")
        matrix = cls(len(rows), num_cols, dtype=dtype)
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                matrix[r, c] = value
        return matrix

    @property
    def rows(self) -> int:
        return self._tensor.shape[0]

    @property
    def cols(self) -> int:
        return self._tensor.shape[1]

    @property
    def tensor(self) -> Tensor:
        """The backing rank-2 tensor (shared, not copied)."""
        return self._tensor

    def __getitem__(self, idx: tuple[int, int]) -> Scalar:
        return self._tensor[idx]

    def __setitem__(self, idx: tuple[int, int], value: Scalar) -> None:
        self._tensor[idx] = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self._tensor == other._tensor

    def to_numpy(self) -> np.ndarray:
        return self._tensor.to_numpy()

    def __repr__(self) -> str:
        return f"Matrix(rows={self.rows}, cols={self.cols})"


def matvec(matrix: Matrix, vector: Vector) -> Vector:
    """
    Dense matrix-vector product.

    Each output element is accumulated left to right over the columns of
    its row, so results are reproducible to the last bit.

    Parameters
    ----------
    matrix : Matrix
        Left operand, shape (rows, cols).
    vector : Vector
        Right operand, length cols.

    Returns
    -------
    Vector
        Vector of length ``matrix.rows`` with ``out[r] = sum_c matrix[r, c] * vector[c]``.

    Raises
    ------
    ConfigurationError
        If ``matrix.cols != vector.size``.
    """
    if matrix.cols != vector.size:
        raise ConfigurationError(
            f"Cannot multiply a {matrix.rows}x{matrix.cols} matrix "
            f"with a vector of size {vector.size}"
        )

    dtype = int if matrix.tensor.dtype is int and vector.tensor.dtype is int else float
    out = Vector(matrix.rows, dtype=dtype)
    values = vector.tensor.data
    cells = matrix.tensor.data
    cols = matrix.cols
    for row in range(matrix.rows):
        acc = dtype(0)
        offset = row * cols
        for col in range(cols):
            acc += cells[offset + col] * values[col]
        out[row] = acc
    return out
