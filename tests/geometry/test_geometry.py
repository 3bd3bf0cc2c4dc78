from contextlib import AbstractContextManager
from contextlib import nullcontext as does_not_raise
from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from trimodel.geometry import Color, Triangle, Vector, Vertex, vertex_converter


class TestVector:
    def test_components_are_single_precision(self) -> None:
        v = Vector(0.1, 0.2, 0.3)

        assert v.x == float(np.float32(0.1))
        assert v.y == float(np.float32(0.2))
        assert v.z == float(np.float32(0.3))

    def test_equal_after_rounding(self) -> None:
        assert Vector(0.1, 0, 0) == Vector(float(np.float32(0.1)), 0, 0)
        assert Vector(1, 2, 3) == Vector(1.0, 2.0, 3.0)

    def test_ordering(self) -> None:
        assert Vector(0, 0, 0) < Vector(0, 0, 1)
        assert Vector(0, 9, 9) < Vector(1, 0, 0)
        assert not Vector(1, 1, 1) < Vector(1, 1, 1)
        assert sorted([Vector(1, 0, 0), Vector(0, 1, 0), Vector(0, 0, 1)]) == [
            Vector(0, 0, 1),
            Vector(0, 1, 0),
            Vector(1, 0, 0),
        ]

    def test_iter(self) -> None:
        assert tuple(Vector(1, 2, 3)) == (1.0, 2.0, 3.0)

    def test_is_frozen(self) -> None:
        v = Vector(1, 2, 3)
        with pytest.raises(FrozenInstanceError):
            v.x = 4.0  # type: ignore[misc]

    def test_hashable(self) -> None:
        assert len({Vector(1, 2, 3), Vector(1.0, 2.0, 3.0)}) == 1

    def test_is_vertex(self) -> None:
        v = Vector(1, 2, 3)

        assert isinstance(v, Vertex)
        assert v.position is v
        assert Vector.from_vertex(v) == v


def test_color() -> None:
    c = Color(0.64, 0.5, 1)

    assert tuple(c) == (float(np.float32(0.64)), 0.5, 1.0)
    assert Color(0, 0, 0) < Color(0, 0, 1)
    assert not isinstance(c, Vertex)


@pytest.mark.parametrize(
    ("vertices", "expectation"),
    [
        ((Vector(0, 0, 0), Vector(1, 0, 0), Vector(0, 1, 0)), does_not_raise()),
        ([Vector(0, 0, 0), Vector(1, 0, 0), Vector(0, 1, 0)], does_not_raise()),
        (
            (Vector(0, 0, 0), Vector(1, 0, 0)),
            pytest.raises(ValueError, match="exactly 3 vertices, got 2"),
        ),
        (
            (Vector(0, 0, 0),) * 4,
            pytest.raises(ValueError, match="exactly 3 vertices, got 4"),
        ),
    ],
)
def test_triangle(
    vertices: tuple[Vector, ...], expectation: AbstractContextManager[Exception]
) -> None:
    with expectation:
        triangle = Triangle(vertices)  # type: ignore[arg-type]
        assert isinstance(triangle.vertices, tuple)
        assert len(triangle.vertices) == 3


def test_triangles_compare_by_vertices() -> None:
    a, b, c = Vector(0, 0, 0), Vector(1, 0, 0), Vector(0, 1, 0)

    assert Triangle((a, b, c)) == Triangle([a, b, c])
    assert Triangle((a, b, c)) != Triangle((a, c, b))


class TestVertexConverter:
    def test_from_vertex(self) -> None:
        assert vertex_converter(Vector) == Vector.from_vertex

    def test_plain_callable(self) -> None:
        def first_coordinate(vertex: Vector) -> float:
            return vertex.x

        convert = vertex_converter(first_coordinate)
        assert convert(Vector(4, 5, 6)) == 4.0

    def test_class_without_from_vertex(self) -> None:
        convert = vertex_converter(tuple)
        assert convert(Vector(4, 5, 6)) == (4.0, 5.0, 6.0)

    def test_not_callable(self) -> None:
        with pytest.raises(TypeError, match="Expected a vertex type or a callable"):
            _ = vertex_converter(42)  # type: ignore[arg-type]
