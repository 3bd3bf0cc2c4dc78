from collections.abc import Iterable
from typing import Any

import numpy as np
from jaxtyping import UInt

from trimodel.errors import IndexTooSmallError

IndexType = type[np.unsignedinteger]

INDEX_TYPES: tuple[IndexType, ...] = (np.uint8, np.uint16, np.uint32, np.uint64)
"""The supported index types, from the narrowest to the widest."""


def check_index_type(index_type: Any) -> IndexType:
    """
    Return the scalar type of ``index_type`` if it is a supported index type.

    Args:
        index_type: Anything accepted by :class:`numpy.dtype`, e.g.,
            :class:`numpy.uint16` or ``"uint16"``.

    Returns:
        The corresponding NumPy scalar type.

    Raises:
        ValueError: If the type is not an unsigned integer type.
    """
    try:
        scalar_type = np.dtype(index_type).type
    except TypeError:
        scalar_type = None

    if scalar_type not in INDEX_TYPES:
        msg = (
            f"The index type '{index_type}' is not supported. "
            f"We currently support: {', '.join(t.__name__ for t in INDEX_TYPES)}."
        )
        raise ValueError(msg)
    return scalar_type


def index_bits(index_type: IndexType) -> int:
    """Return the width, in bits, of an index type."""
    return np.iinfo(index_type).bits


def index_from_u64(value: int, index_type: IndexType) -> np.unsignedinteger:
    """
    Losslessly convert a count into an index.

    The maximum value of ``index_type`` is never used as an index, as
    some formats reserve it to mean *no index*.

    Args:
        value: The non-negative count to convert.
        index_type: The target index type.

    Returns:
        The index.

    Raises:
        IndexTooSmallError: If ``value`` does not fit in ``index_type``.
        ValueError: If ``value`` is negative, or if ``index_type``
            is not supported.

    Examples:
        >>> import numpy as np
        >>> from trimodel.model import index_from_u64
        >>> int(index_from_u64(254, np.uint8))
        254
        >>> index_from_u64(255, np.uint8)
        Traceback (most recent call last):
        trimodel.errors.IndexTooSmallError: index too small for mesh: index '255' cannot fit in 8-bits
    """
    index_type = check_index_type(index_type)
    value = int(value)

    if value < 0:
        msg = f"Indices cannot be negative, got {value}."
        raise ValueError(msg)
    if value >= np.iinfo(index_type).max:
        raise IndexTooSmallError(value, index_bits(index_type))

    return index_type(value)


def indices_from_u64(
    values: Iterable[int] | np.ndarray, index_type: IndexType
) -> UInt[np.ndarray, " num_indices"]:
    """
    Vectorized version of :func:`index_from_u64`.

    Args:
        values: The counts to convert.
        index_type: The target index type.

    Returns:
        The 1-D array of indices, with ``index_type`` as dtype.

    Raises:
        IndexTooSmallError: For the first value that does not fit in ``index_type``.
        ValueError: If any value is negative, or if ``index_type``
            is not supported.
    """
    index_type = check_index_type(index_type)

    if not isinstance(values, np.ndarray):
        values = np.fromiter((int(value) for value in values), dtype=object)

    values = values.reshape(-1)

    if values.size == 0:
        return np.empty((0,), dtype=index_type)

    if values.dtype.kind not in "iuO":
        msg = f"Indices must be integers, got an array of type '{values.dtype}'."
        raise ValueError(msg)

    if (negative := values < 0).any():
        value = int(values[negative][0])
        msg = f"Indices cannot be negative, got {value}."
        raise ValueError(msg)

    if (too_large := values >= int(np.iinfo(index_type).max)).any():
        raise IndexTooSmallError(int(values[too_large][0]), index_bits(index_type))

    return values.astype(index_type)


def smallest_index_type(num_vertices: int) -> IndexType:
    """
    Return the narrowest index type able to address ``num_vertices`` vertices.

    Args:
        num_vertices: The number of vertices in the mesh.

    Returns:
        The narrowest supported index type.

    Raises:
        IndexTooSmallError: If even the widest type is too small.

    Examples:
        >>> from trimodel.model import smallest_index_type
        >>> smallest_index_type(255)
        <class 'numpy.uint8'>
        >>> smallest_index_type(256)
        <class 'numpy.uint16'>
    """
    # The largest index used is 'num_vertices - 1'.
    largest = max(int(num_vertices) - 1, 0)
    for index_type in INDEX_TYPES:
        if largest < np.iinfo(index_type).max:
            return index_type

    raise IndexTooSmallError(largest, index_bits(INDEX_TYPES[-1]))
