"""
Format-independent mesh representation.

Meshes and models are generic over their vertex type, and store their
indices in NumPy arrays whose dtype is one of the supported unsigned
integer types, see :data:`INDEX_TYPES`.
"""

__all__ = (
    "INDEX_TYPES",
    "BuildModel",
    "Model",
    "TriangularMesh",
    "index_bits",
    "index_from_u64",
    "indices_from_u64",
    "smallest_index_type",
)

from ._index import (
    INDEX_TYPES,
    index_bits,
    index_from_u64,
    indices_from_u64,
    smallest_index_type,
)
from ._model import BuildModel, Model
from ._triangular_mesh import TriangularMesh
