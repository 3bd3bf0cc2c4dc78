from bisect import bisect_left
from collections.abc import Callable, Iterable, Iterator
from functools import cmp_to_key
from itertools import groupby
from typing import TYPE_CHECKING, Any, Generic

import equinox as eqx
import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Float, Int, UInt

from trimodel.geometry import Triangle, Vector, vertex_converter
from trimodel.geometry._geometry import V

from ._index import INDEX_TYPES, IndexType, check_index_type, indices_from_u64

if TYPE_CHECKING:
    import sys

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self
else:
    Self = Any


def _compare_vertices(a: Any, b: Any) -> int:
    if a < b:
        return -1
    if b < a:
        return 1
    if a == b:
        return 0

    msg = (
        f"Vertices {a!r} and {b!r} cannot be ordered, "
        "do they contain NaN values?"
    )
    raise ValueError(msg)


_vertex_key = cmp_to_key(_compare_vertices)


class TriangularMesh(eqx.Module, Generic[V]):
    """
    A mesh made of triangles, stored as a vertex list and an index list.

    Each run of three consecutive indices describes one triangle,
    and each index refers to the vertex at that position
    in :attr:`vertices`.

    Meshes are immutable: every method returns a new mesh.
    """

    vertices: tuple[V, ...] = eqx.field(converter=tuple)
    """The vertex list."""
    indices: UInt[np.ndarray, " num_indices"] = eqx.field(converter=np.asarray)
    """The index list, whose dtype is the index type of the mesh."""

    def __check_init__(self) -> None:  # noqa: PLW3201
        if self.indices.ndim != 1:
            msg = f"The index list must be one-dimensional, got shape {self.indices.shape}."
            raise ValueError(msg)
        if self.indices.dtype.type not in INDEX_TYPES:
            msg = (
                f"The index list must have an unsigned integer dtype, got '{self.indices.dtype}'. "
                "Use 'TriangularMesh.from_indices' to convert plain integers."
            )
            raise ValueError(msg)

    def __repr__(self) -> str:
        return (
            f"TriangularMesh(vertex_count={self.num_vertices}, "
            f"index_count={self.num_indices})"
        )

    def __add__(self, other: "TriangularMesh[V]") -> Self:
        return self.append(other)

    @classmethod
    def empty(cls, index_type: Any = np.uint32) -> Self:
        """
        Create an empty mesh.

        Args:
            index_type: The index type, one of :data:`INDEX_TYPES<trimodel.model.INDEX_TYPES>`.

        Returns:
            A new empty mesh.
        """
        return cls(
            vertices=(), indices=np.empty((0,), dtype=check_index_type(index_type))
        )

    @classmethod
    def from_indices(
        cls,
        vertices: Iterable[V],
        indices: Iterable[int] | np.ndarray,
        index_type: Any = np.uint32,
    ) -> Self:
        """
        Create a mesh from a vertex list and plain integer indices.

        Args:
            vertices: The vertex list.
            indices: The flat index list.
            index_type: The index type, one of :data:`INDEX_TYPES<trimodel.model.INDEX_TYPES>`.

        Returns:
            A new mesh.

        Raises:
            IndexTooSmallError: If an index does not fit in the index type.
        """
        return cls(
            vertices=vertices,
            indices=indices_from_u64(indices, check_index_type(index_type)),
        )

    @classmethod
    def from_triangles(
        cls, triangles: Iterable[Triangle[V]], index_type: Any = np.uint32
    ) -> Self:
        """
        Create a mesh from triangles, merging identical vertices.

        The resulting vertex list contains exactly one copy of each
        distinct vertex, sorted in ascending order. Vertices are distinct
        as soon as they compare unequal: no tolerance is applied.
        The index list reproduces every triangle, in the input order,
        and without changing the order of vertices inside a triangle.

        Args:
            triangles: The triangles, as any finite iterable.
            index_type: The index type, one of :data:`INDEX_TYPES<trimodel.model.INDEX_TYPES>`.

        Returns:
            A new mesh.

        Raises:
            IndexTooSmallError: If there are too many distinct vertices
                for the index type.
            ValueError: If two vertices cannot be ordered, e.g.,
                because they contain NaN values.

        Examples:
            >>> import numpy as np
            >>> from trimodel.geometry import Triangle, Vector
            >>> from trimodel.model import TriangularMesh
            >>>
            >>> a, b, c = Vector(0, 0, 0), Vector(1, 0, 0), Vector(0, 1, 0)
            >>> d = Vector(1, 1, 0)
            >>> mesh = TriangularMesh.from_triangles(
            ...     [Triangle((a, b, c)), Triangle((c, b, d))], index_type=np.uint8
            ... )
            >>> mesh
            TriangularMesh(vertex_count=4, index_count=6)
            >>> mesh.indices
            array([0, 2, 1, 1, 2, 3], dtype=uint8)
        """
        index_type = check_index_type(index_type)
        triangles = list(triangles)

        vertices = sorted(
            (vertex for triangle in triangles for vertex in triangle.vertices),
            key=_vertex_key,
        )
        # Sorting brought equal vertices next to each other.
        vertices = [next(group) for _, group in groupby(vertices, key=_vertex_key)]

        def find(vertex: V) -> int:
            index = bisect_left(vertices, _vertex_key(vertex), key=_vertex_key)
            if index == len(vertices) or _compare_vertices(vertices[index], vertex):
                msg = (
                    f"Could not find vertex {vertex!r} after sorting, "
                    "is its ordering consistent with its equality?"
                )
                raise ValueError(msg)
            return index

        positions = np.fromiter(
            (find(vertex) for triangle in triangles for vertex in triangle.vertices),
            dtype=np.uint64,
            count=3 * len(triangles),
        )

        return cls(vertices=vertices, indices=indices_from_u64(positions, index_type))

    @classmethod
    def cube(
        cls,
        scale: float = 1.0,
        *,
        vertex_type: type[V] | Callable[[Vector], V] = Vector,
        index_type: Any = np.uint32,
    ) -> Self:
        """
        Create a cube centered on the origin.

        Args:
            scale: The distance from the center to each face.
            vertex_type: The vertex type, built from each corner :class:`Vector`.
                See :func:`vertex_converter<trimodel.geometry.vertex_converter>`.
            index_type: The index type, one of :data:`INDEX_TYPES<trimodel.model.INDEX_TYPES>`.

        Returns:
            A new mesh with 8 vertices and 12 triangles.
        """
        convert = vertex_converter(vertex_type)
        s = scale

        vertices = [
            convert(Vector(x, y, z))
            for x, y, z in (
                (+s, -s, -s),
                (+s, -s, +s),
                (-s, -s, +s),
                (-s, -s, -s),
                (+s, +s, -s),
                (+s, +s, +s),
                (-s, +s, +s),
                (-s, +s, -s),
            )
        ]
        indices = [
            *(1, 3, 0),
            *(7, 5, 4),
            *(4, 1, 0),
            *(5, 2, 1),
            *(2, 7, 3),
            *(0, 7, 4),
            *(1, 2, 3),
            *(7, 6, 5),
            *(4, 5, 1),
            *(5, 6, 2),
            *(2, 6, 7),
            *(0, 3, 7),
        ]
        return cls.from_indices(vertices, indices, index_type)

    @classmethod
    def unit_cube(
        cls,
        *,
        vertex_type: type[V] | Callable[[Vector], V] = Vector,
        index_type: Any = np.uint32,
    ) -> Self:
        """Create a cube with corners at ``(±1, ±1, ±1)``, see :meth:`cube`."""
        return cls.cube(1.0, vertex_type=vertex_type, index_type=index_type)

    @property
    def index_type(self) -> IndexType:
        """The index type, as a NumPy scalar type."""
        return self.indices.dtype.type

    @property
    def num_vertices(self) -> int:
        """The number of vertices."""
        return len(self.vertices)

    @property
    def num_indices(self) -> int:
        """The number of indices."""
        return self.indices.shape[0]

    @property
    def num_triangles(self) -> int:
        """The number of (complete) triangles."""
        return self.num_indices // 3

    @property
    def is_empty(self) -> bool:
        """Whether this mesh has no triangle."""
        return self.num_indices == 0

    def triangles(self) -> Iterator[Triangle[V]]:
        """
        Iterate over the triangles of this mesh.

        Triangle ``k`` is made of the vertices referenced by indices
        ``3k``, ``3k + 1`` and ``3k + 2``. Each call returns a new
        iterator, and the mesh is never modified.

        Yields:
            The triangles, in the order of the index list.

        Raises:
            ValueError: When reaching the end of an index list
                whose length is not a multiple of three.
            IndexError: When reaching an index that does not refer
                to any vertex.
        """
        vertices = self.vertices
        indices = self.indices.tolist()

        for start in range(0, len(indices), 3):
            group = indices[start : start + 3]
            if len(group) != 3:  # noqa: PLR2004
                msg = (
                    "Expected the number of indices to be a multiple of 3, "
                    f"got {len(indices)}."
                )
                raise ValueError(msg)

            yield Triangle((vertices[group[0]], vertices[group[1]], vertices[group[2]]))

    def _triangle_indices(self) -> Int[np.ndarray, "num_triangles 3"]:
        if self.num_indices % 3 != 0:
            msg = (
                "Expected the number of indices to be a multiple of 3, "
                f"got {self.num_indices}."
            )
            raise ValueError(msg)
        if self.num_indices > 0 and int(self.indices.max()) >= self.num_vertices:
            msg = (
                f"Index {int(self.indices.max())} is out of range "
                f"for a mesh with {self.num_vertices} vertices."
            )
            raise IndexError(msg)

        return self.indices.astype(int).reshape(-1, 3)

    @property
    def positions(self) -> Float[Array, "num_vertices 3"]:
        """The array of vertex positions."""
        if not self.vertices:
            return jnp.empty((0, 3))

        return jnp.asarray(
            [tuple(vertex.position) for vertex in self.vertices], dtype=jnp.float32
        )

    @property
    def triangle_positions(self) -> Float[Array, "num_triangles 3 3"]:
        """The array of vertex positions, for each triangle."""
        triangles = self._triangle_indices()
        if triangles.size == 0:
            return jnp.empty((0, 3, 3))

        return jnp.take(self.positions, triangles, axis=0)

    @property
    def bounding_box(self) -> Float[Array, "2 3"]:
        """
        The bounding box (min. and max. coordinates).

        Only vertices referenced by at least one triangle are considered.

        Raises:
            ValueError: If the mesh has no triangle.
        """
        if self.is_empty:
            msg = "Cannot compute the bounding box of an empty mesh."
            raise ValueError(msg)

        positions = self.triangle_positions.reshape(-1, 3)
        return jnp.vstack(
            (jnp.min(positions, axis=0), jnp.max(positions, axis=0)),
        )

    def append(self, other: "TriangularMesh[V]") -> Self:
        """
        Return a new mesh by appending another mesh to this one.

        .. tip::

            For convenience, you can also use the ``+`` operator.

        The vertices are concatenated, and the indices of ``other``
        are shifted by the number of vertices in this mesh.

        Args:
            other: The mesh to append. It must use the same index type.

        Returns:
            The new mesh.

        Raises:
            ValueError: If the index types differ.
            IndexTooSmallError: If a shifted index does not fit in the index type.
        """
        if other.index_type is not self.index_type:
            msg = (
                "Cannot append meshes with different index types, "
                f"got '{self.index_type.__name__}' and '{other.index_type.__name__}'."
            )
            raise ValueError(msg)

        shifted = other.indices.astype(np.uint64) + np.uint64(self.num_vertices)
        indices = np.concatenate(
            (self.indices, indices_from_u64(shifted, self.index_type))
        )
        return type(self)(vertices=self.vertices + other.vertices, indices=indices)
