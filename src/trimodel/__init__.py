"""
Format-independent 3D models made of triangles.

Models are loaded from source formats (see :mod:`trimodel.load`) into
triangular meshes (see :mod:`trimodel.model`) whose vertex type and index
width are chosen by the caller.
"""

__all__ = ("__version__", "__version_info__")

__version__ = "0.1.0"
"""The current full version of this module."""
__version_info__ = tuple(int(i) for i in __version__.split(".")[:3])
"""The current short version of this module as a tuple (major, minor, patch)."""
