"""Exceptions raised by :mod:`trimodel`.

Only recoverable conditions have a dedicated class here. Invariant violations,
e.g., an index list whose length is not a multiple of three, are reported with
plain :class:`ValueError` or :class:`IndexError` and indicate a bug in whatever
built the mesh. I/O errors are never wrapped.
"""

__all__ = (
    "IndexTooSmallError",
    "MeshError",
    "UnknownModelFormatError",
    "WavefrontLoadError",
)


class MeshError(Exception):
    """Base class for all recoverable errors raised by this package."""


class IndexTooSmallError(MeshError, ValueError):
    """
    An index does not fit in the chosen index type.

    The caller should pick a wider index type and try again,
    see :func:`smallest_index_type<trimodel.model.smallest_index_type>`.

    Args:
        index: The offending value.
        bits_available: The width, in bits, of the index type.
    """

    def __init__(self, index: int, bits_available: int) -> None:
        self.index = index
        self.bits_available = bits_available
        msg = (
            f"index too small for mesh: index '{index}' "
            f"cannot fit in {bits_available}-bits"
        )
        super().__init__(msg)


class UnknownModelFormatError(MeshError, ValueError):
    """The format of a model file could not be determined."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"unknown model format: {reason}")


class WavefrontLoadError(MeshError):
    """A Wavefront ``.obj`` or ``.mtl`` file is malformed."""
