"""
Numeric buffer helpers.

Buffers are plain NumPy arrays. These helpers normalize user input into
contiguous, row-major arrays of the requested precision and provide the shape
checks every layer performs before doing arithmetic.
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple

import numpy as np

from ..domain._errors import ShapeMismatchError
from ..domain._precision import Precision


def dtype_of(precision: Any) -> np.dtype:
    """
    Return the NumPy dtype for a precision or dtype-like object.
    """
    return np.dtype(Precision.of(precision).value)


def as_buffer(values: Any, dtype: Any) -> np.ndarray:
    """
    Convert `values` into a C-contiguous 1-D or 2-D array of `dtype`.

    Parameters
    ----------
    values : Any
        Array-like of numbers: a single example or a batch of examples.
    dtype : Any
        Target precision (float32 or float64).

    Returns
    -------
    np.ndarray
        Contiguous array. The input is copied only when a conversion is needed.

    Raises
    ------
    ShapeMismatchError
        If `values` is not 1-D or 2-D.
    """
    arr = np.ascontiguousarray(values, dtype=dtype_of(dtype))
    if arr.ndim not in (1, 2):
        raise ShapeMismatchError("buffer rank", "1 or 2", arr.ndim)
    return arr


def as_batch(values: Any, dtype: Any) -> Tuple[np.ndarray, bool]:
    """
    Convert `values` into a 2-D `(samples, width)` batch.

    Returns
    -------
    tuple[np.ndarray, bool]
        The batch and whether the input was a single 1-D example, so callers
        can hand results back with the rank they received.
    """
    arr = as_buffer(values, dtype)
    if arr.ndim == 1:
        return arr.reshape(1, -1), True
    return arr, False


def stack_examples(examples: Sequence[Any], dtype: Any, where: str) -> np.ndarray:
    """
    Stack a sequence of examples into a 2-D batch.

    Parameters
    ----------
    examples : Sequence[Any]
        Either a sequence of 1-D examples or an already batched 2-D array.
    dtype : Any
        Target precision.
    where : str
        Name used in error messages.

    Raises
    ------
    ShapeMismatchError
        If examples have different widths or the result is not 2-D.
    """
    if isinstance(examples, np.ndarray):
        arr = as_buffer(examples, dtype)
        return arr.reshape(1, -1) if arr.ndim == 1 else arr

    rows = [np.asarray(e, dtype=dtype_of(dtype)).reshape(-1) for e in examples]
    if not rows:
        raise ShapeMismatchError(where, "at least one example", 0)

    width = rows[0].shape[0]
    for i, row in enumerate(rows):
        if row.shape[0] != width:
            raise ShapeMismatchError(f"{where}[{i}] width", width, row.shape[0])

    return np.ascontiguousarray(np.stack(rows, axis=0))


def check_width(batch: np.ndarray, width: int, where: str) -> None:
    """
    Validate that the last dimension of `batch` equals `width`.
    """
    if batch.shape[-1] != width:
        raise ShapeMismatchError(where, width, batch.shape[-1])


def check_same_shape(a: np.ndarray, b: np.ndarray, where: str) -> None:
    """
    Validate that two buffers share the same shape.
    """
    if tuple(a.shape) != tuple(b.shape):
        raise ShapeMismatchError(where, tuple(b.shape), tuple(a.shape))
