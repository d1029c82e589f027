"""Tensor entity - dense N-dimensional array over a flat row-major list.

The text format written by :func:`write_tensor_to_file` is::

    <rank>
    <dim 0>
    ...
    <dim rank-1>
    <element 0>
    ...

with elements enumerated in row-major order (last index varies fastest).
"""
from __future__ import annotations

import itertools
import operator
from typing import Iterator, Sequence

import numpy as np

from digitnet.domain.errors import ParseError

Scalar = int | float


def num_tensor_elements(shape: Sequence[int]) -> int:
    """Return the product of all dimensions (1 for an empty shape)."""
    size = 1
    for dim in shape:
        size *= dim
    return size


def flat_idx(shape: Sequence[int], idx: Sequence[int]) -> int:
    """
    Compute the row-major flat offset of a multi-index.

    Parameters
    ----------
    shape : Sequence[int]
        Dimension sizes of the tensor.
    idx : Sequence[int]
        Multi-index, one entry per dimension.

    Returns
    -------
    int
        ``sum(idx[i] * prod(shape[i+1:]))``.

    Raises
    ------
    IndexError
        If ``idx`` does not have one entry per dimension, or an entry is
        outside ``[0, shape[i])``.
    """
    if len(idx) != len(shape):
        raise IndexError(
            f"Index {tuple(idx)} has {len(idx)} entries, tensor has rank {len(shape)}"
        )
    flat = 0
    for axis, (dim, i) in enumerate(zip(shape, idx)):
        if not 0 <= i < dim:
            raise IndexError(
                f"Index {i} out of range for axis {axis} with size {dim}"
            )
        flat = flat * dim + i
    return flat


def _coerce(value: Scalar, dtype: type) -> Scalar:
    if dtype is int and isinstance(value, (float, np.floating)) and not float(value).is_integer():
        raise ValueError(f"Cannot store non-integral value {value!r} in an int tensor")
    return dtype(value)


def _format_scalar(value: Scalar) -> str:
    # Integral floats are written without a fractional part ("1", not "1.0").
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e16:
            return format(value, ".0f")
        return repr(value)
    return str(value)


class Tensor:
    """
    Dense tensor of fixed rank and shape, stored as a flat row-major list.

    Parameters
    ----------
    shape : Sequence[int], optional
        Dimension sizes. The empty shape (default) is a rank-0 tensor holding
        exactly one element.
    fill_value : int | float, optional
        Initial value of every element. Default is 0.
    dtype : type, optional
        Element type, ``float`` (default) or ``int``. Storing a non-integral
        float in an ``int`` tensor raises ``ValueError``.
    """

    def __init__(
        self,
        shape: Sequence[int] = (),
        fill_value: Scalar = 0,
        dtype: type = float,
    ) -> None:
        shape = tuple(operator.index(dim) for dim in shape)
        if any(dim < 0 for dim in shape):
            raise ValueError(f"Tensor dimensions must be non-negative, got {shape}")
        if dtype not in (int, float):
            raise TypeError(f"Unsupported tensor dtype: {dtype!r}")
        self._shape = shape
        self._dtype = dtype
        self._data = [_coerce(fill_value, dtype)] * num_tensor_elements(shape)

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def rank(self) -> int:
        return len(self._shape)

    @property
    def num_elements(self) -> int:
        return len(self._data)

    @property
    def dtype(self) -> type:
        return self._dtype

    @property
    def data(self) -> list[Scalar]:
        """Copy of the flat element list in row-major order."""
        return list(self._data)

    def _offset(self, idx) -> int:
        if not isinstance(idx, tuple):
            idx = (idx,)
        return flat_idx(self._shape, [operator.index(i) for i in idx])

    def __getitem__(self, idx) -> Scalar:
        return self._data[self._offset(idx)]

    def __setitem__(self, idx, value: Scalar) -> None:
        self._data[self._offset(idx)] = _coerce(value, self._dtype)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        return self._shape == other._shape and self._data == other._data

    def __copy__(self) -> Tensor:
        return self.copy()

    def copy(self) -> Tensor:
        """Return an independent tensor with the same shape and elements."""
        clone = Tensor(self._shape, dtype=self._dtype)
        clone._data = list(self._data)
        return clone

    def fill(self, value: Scalar) -> None:
        """Set every element to ``value``."""
        self._data = [_coerce(value, self._dtype)] * len(self._data)

    def indices(self) -> Iterator[tuple[int, ...]]:
        """Iterate over every multi-index in row-major order."""
        return itertools.product(*(range(dim) for dim in self._shape))

    def to_numpy(self) -> np.ndarray:
        """Return the elements as a numpy array of the same shape."""
        np_dtype = np.float64 if self._dtype is float else np.int64
        return np.array(self._data, dtype=np_dtype).reshape(self._shape)

    @classmethod
    def from_numpy(cls, array) -> Tensor:
        """
        Build a tensor from a numpy array (or anything ``np.asarray`` accepts).

        Integer and boolean arrays produce ``int`` tensors, everything else
        produces ``float`` tensors.
        """
        array = np.asarray(array)
        dtype = int if array.dtype.kind in "iub" else float
        tensor = cls(array.shape, dtype=dtype)
        tensor._data = [dtype(v) for v in array.ravel(order="C").tolist()]
        return tensor

    def serialize(self) -> str:
        """Render the tensor in the line-oriented text format."""
        lines = [str(self.rank)]
        lines.extend(str(dim) for dim in self._shape)
        lines.extend(_format_scalar(value) for value in self._data)
        return "\n".join(lines) + "\n"

    @classmethod
    def deserialize(cls, text: str, dtype: type = float) -> Tensor:
        """
        Parse a tensor from the line-oriented text format.

        Parameters
        ----------
        text : str
            Serialized tensor, as produced by :meth:`serialize`.
        dtype : type, optional
            Element type of the resulting tensor.

        Returns
        -------
        Tensor
            The reconstructed tensor.

        Raises
        ------
        ParseError
            If the text has fewer lines than its header requires, or a line
            cannot be converted.
        """
        lines = text.splitlines()

        def field(position: int, convert: type, what: str):
            if position >= len(lines):
                raise ParseError(
                    f"Truncated tensor: expected {what} on line {position + 1}, "
                    f"got only {len(lines)} lines"
                )
            try:
                return convert(lines[position].strip())
            except ValueError as e:
                raise ParseError(
                    f"Invalid {what} on line {position + 1}: {lines[position]!r}"
                ) from e

        rank = field(0, int, "rank")
        if rank < 0:
            raise ParseError(f"Invalid tensor rank: {rank}")
        shape = [field(1 + axis, int, "dimension") for axis in range(rank)]
        if any(dim < 0 for dim in shape):
            raise ParseError(f"Invalid tensor shape: {shape}")

        tensor = cls(shape, dtype=dtype)
        offset = 1 + rank
        tensor._data = [
            field(offset + i, dtype, "element") for i in range(tensor.num_elements)
        ]
        return tensor

    def __repr__(self) -> str:
        return f"Tensor(shape={self._shape}, dtype={self._dtype.__name__})"

    def __str__(self) -> str:
        if self.rank == 0:
            return f"() [{self._data[0]}]\n"
        row_length = self._shape[-1]
        if row_length == 0:
            return ""
        rows = []
        for start in range(0, len(self._data), row_length):
            if self.rank == 1:
                prefix = "(:)"
            else:
                outer = np.unravel_index(start // row_length, self._shape[:-1])
                prefix = "(" + "".join(f"{i}, " for i in outer) + ":)"
            values = " ".join(str(v) for v in self._data[start:start + row_length])
            rows.append(f"{prefix} [{values}]\n")
        return "".join(rows)


def read_tensor_from_file(path: str, dtype: type = float) -> Tensor:
    """
    Read a tensor from a text file.

    Raises
    ------
    FileNotFoundError
        If no file exists at `path`.
    ParseError
        If the file content is truncated or malformed.
    """
    with open(path, "r") as f:
        return Tensor.deserialize(f.read(), dtype=dtype)


def write_tensor_to_file(tensor: Tensor, path: str) -> None:
    """Write a tensor to a text file, replacing any existing content."""
    with open(path, "w") as f:
        f.write(tensor.serialize())
