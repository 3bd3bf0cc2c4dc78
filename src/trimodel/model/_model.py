from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, Protocol, runtime_checkable

import equinox as eqx
import numpy as np

from trimodel.geometry import Vector
from trimodel.geometry._geometry import V

from ._triangular_mesh import TriangularMesh

if TYPE_CHECKING:
    import sys

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self
else:
    Self = Any


class Model(eqx.Module, Generic[V]):
    """
    A 3D model.

    For now, a model only wraps a :class:`TriangularMesh`.
    """

    mesh: TriangularMesh[V]
    """The mesh that makes up the model."""

    @classmethod
    def empty(cls, index_type: Any = np.uint32) -> Self:
        """
        Create an empty model.

        Args:
            index_type: The index type.

        Returns:
            A new model with an empty mesh.
        """
        return cls(mesh=TriangularMesh.empty(index_type))

    @classmethod
    def new(
        cls,
        builder: "BuildModel",
        vertex_type: type[V] | Callable[[Any], V] = Vector,
        index_type: Any = np.uint32,
    ) -> "Model[V]":
        """
        Create a new model out of anything implementing :class:`BuildModel`.

        Args:
            builder: The source, e.g., a :class:`Wavefront<trimodel.load.wavefront.Wavefront>`
                file or one of its objects.
            vertex_type: The vertex type of the model, see
                :func:`vertex_converter<trimodel.geometry.vertex_converter>`.
            index_type: The index type of the model.

        Returns:
            The model.

        Raises:
            IndexTooSmallError: If the index type is too narrow for the model.
        """
        return builder.build_model(vertex_type=vertex_type, index_type=index_type)


@runtime_checkable
class BuildModel(Protocol):
    """
    Something which we can build a model out of.

    Source formats implement this protocol to produce models for any
    vertex type: the format converts its raw data into its own native
    vertices, and ``vertex_type`` converts those into the caller's vertices.
    Hence, supporting a new vertex layout never requires changing a format.
    """

    def build_model(
        self,
        vertex_type: type[V] | Callable[[Any], V] = Vector,
        index_type: Any = np.uint32,
    ) -> Model[V]:
        """
        Build a model.

        Args:
            vertex_type: The vertex type of the model, see
                :func:`vertex_converter<trimodel.geometry.vertex_converter>`.
            index_type: The index type of the model.

        Returns:
            The model.

        Raises:
            IndexTooSmallError: If the index type is too narrow for the model.
        """
        ...
