"""Geometric primitives and the vertex capability."""

__all__ = (
    "Color",
    "Triangle",
    "Vector",
    "Vertex",
    "vertex_converter",
)

from ._geometry import Color, Triangle, Vector, Vertex, vertex_converter
