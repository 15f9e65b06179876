"""
Vector helpers shared by the safety checker and the request adjudicator.

Resource vectors and matrices are stored as read-only numpy int64 arrays.
"""

import numpy as np
from typing import Iterable, Tuple, Type


def as_count_array(
    values,
    shape: Tuple[int, ...],
    name: str,
    error: Type[Exception] = ValueError
) -> np.ndarray:
    """
    Coerce values into a non-negative int64 array of an exact shape.

    Args:
        values: Nested sequence or numpy array of resource counts
        shape: Required shape, e.g. (R,) for a vector or (P, R) for a matrix
        name: Name used in error messages
        error: Exception class to raise on invalid input

    Returns:
        Read-only int64 array with the requested shape

    Raises:
        error: If values are ragged, non-integer, negative or mis-shaped
    """
    try:
        array = np.asarray(values)
    except ValueError as e:
        raise error(f"{name} is not a rectangular array of counts: {e}") from e

    # np.asarray([]) yields float64 of shape (0,)
    if array.size == 0 and int(np.prod(shape)) == 0:
        return frozen(np.zeros(shape, dtype=np.int64))

    if not np.issubdtype(array.dtype, np.integer):
        raise error(f"{name} must contain integers (got dtype {array.dtype})")

    if array.shape != tuple(shape):
        raise error(f"{name} must have shape {tuple(shape)}, got {array.shape}")

    if np.any(array < 0):
        offending = tuple(int(i) for i in np.argwhere(array < 0)[0])
        raise error(f"{name}{list(offending)} is negative ({int(array[offending])})")

    return frozen(array.astype(np.int64, copy=False))


def frozen(array: np.ndarray) -> np.ndarray:
    """Return a read-only array, copying unless it is already an owned read-only array."""
    if not array.flags.writeable and array.base is None:
        return array
    array = array.copy()
    array.setflags(write=False)
    return array


def is_less_or_equal(a: np.ndarray, b: np.ndarray) -> bool:
    """Check a <= b element-wise for every resource type."""
    return bool(np.all(a <= b))


def as_tuple(vector: Iterable) -> Tuple[int, ...]:
    """Convert a numpy vector into a tuple of plain ints."""
    return tuple(int(x) for x in vector)


def format_vector(vector: Iterable) -> str:
    """Format a resource vector as ``[a, b, c]``."""
    return "[" + ", ".join(str(int(x)) for x in vector) + "]"
