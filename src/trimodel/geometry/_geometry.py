from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    import sys

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self
else:
    Self = Any


def _f32(value: Any) -> float:
    return float(np.float32(value))


@dataclass(frozen=True, order=True)
class Vector:
    """
    A 3-dimensional vector, made of single precision floats.

    Components are rounded to the nearest 32-bit float on construction,
    so two vectors parsed from different textual representations
    of the same ``float32`` compare equal.

    A vector is also the simplest :class:`Vertex`: its
    :attr:`position` is itself.
    """

    x: float
    y: float
    z: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", _f32(self.x))
        object.__setattr__(self, "y", _f32(self.y))
        object.__setattr__(self, "z", _f32(self.z))

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    @property
    def position(self) -> "Vector":
        """The position of this vertex, i.e., the vector itself."""
        return self

    @classmethod
    def from_vertex(cls, vertex: "Vertex") -> Self:
        """
        Return the position of any vertex.

        This makes :class:`Vector` a valid ``vertex_type`` for every
        model builder, see :func:`vertex_converter`.

        Args:
            vertex: The vertex to convert.

        Returns:
            The position of the vertex.
        """
        return vertex.position


@dataclass(frozen=True, order=True)
class Color:
    """An RGB color, made of single precision floats."""

    r: float
    g: float
    b: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "r", _f32(self.r))
        object.__setattr__(self, "g", _f32(self.g))
        object.__setattr__(self, "b", _f32(self.b))

    def __iter__(self) -> Iterator[float]:
        yield self.r
        yield self.g
        yield self.b


@runtime_checkable
class Vertex(Protocol):
    """
    The capabilities any vertex type must provide.

    A vertex must report its position, and be comparable with ``==``
    and ``<``. The ordering carries no geometric meaning: it is only
    used to bring equal vertices together when deduplicating them,
    see :meth:`TriangularMesh.from_triangles<trimodel.model.TriangularMesh.from_triangles>`.

    Vertex types usually embed a :class:`Vector` position next to
    other attributes (normals, texture coordinates, ...), and are best
    written as frozen and ordered dataclasses.
    """

    @property
    def position(self) -> Vector:
        """The position of the vertex."""
        ...

    def __lt__(self, other: Any, /) -> bool: ...


V = TypeVar("V", bound=Vertex)


@dataclass(frozen=True, order=True)
class Triangle(Generic[V]):
    """A triangle, made of exactly three vertices."""

    vertices: tuple[V, V, V]
    """The vertices that make up the triangle."""

    def __post_init__(self) -> None:
        vertices = tuple(self.vertices)
        if len(vertices) != 3:  # noqa: PLR2004
            msg = f"A triangle must have exactly 3 vertices, got {len(vertices)}."
            raise ValueError(msg)
        object.__setattr__(self, "vertices", vertices)


def vertex_converter(vertex_type: type[V] | Callable[[Any], V]) -> Callable[[Any], V]:
    """
    Return the callable converting format-native vertices into ``vertex_type``.

    If ``vertex_type`` defines a ``from_vertex`` class method, it is used.
    Otherwise, ``vertex_type`` itself is called with the native vertex.

    Args:
        vertex_type: The target vertex class, or any conversion callable.

    Returns:
        The conversion callable.

    Raises:
        TypeError: If ``vertex_type`` is not callable.

    Examples:
        >>> from trimodel.geometry import Vector, vertex_converter
        >>> convert = vertex_converter(Vector)
        >>> convert(Vector(1.0, 2.0, 3.0))
        Vector(x=1.0, y=2.0, z=3.0)
    """
    from_vertex = getattr(vertex_type, "from_vertex", None)
    if callable(from_vertex):
        return from_vertex
    if callable(vertex_type):
        return vertex_type

    msg = f"Expected a vertex type or a callable, got {vertex_type!r}."
    raise TypeError(msg)
