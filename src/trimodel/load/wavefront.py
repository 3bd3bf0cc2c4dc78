"""
Loader for the Wavefront ``.obj`` file format.

A :class:`Wavefront` file contains one or more named objects. Models can be
built for the whole file, with :meth:`Wavefront.build_model`, or for each
object separately, with :meth:`Object.build_model`.

Examples:
    >>> import io
    >>> import numpy as np
    >>> from trimodel.geometry import Vector
    >>> from trimodel.load import wavefront
    >>> from trimodel.model import Model
    >>>
    >>> obj = io.StringIO('''
    ... o Quad
    ... v 0 0 0
    ... v 1 0 0
    ... v 1 1 0
    ... v 0 1 0
    ... f 1 2 3 4
    ... ''')
    >>> scene = wavefront.from_memory(obj)
    >>> [o.name for o in scene.objects()]
    ['Quad']
    >>> model = Model.new(scene, vertex_type=Vector, index_type=np.uint8)
    >>> model.mesh
    TriangularMesh(vertex_count=4, index_count=6)
"""

__all__ = (
    "Material",
    "Object",
    "Vertex",
    "Wavefront",
    "from_memory",
    "from_path",
)

import logging
import warnings
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from functools import total_ordering
from pathlib import Path
from typing import Any

import numpy as np

from trimodel.geometry import Color, Vector, vertex_converter
from trimodel.geometry._geometry import V
from trimodel.model import Model, TriangularMesh, indices_from_u64
from trimodel.model._index import check_index_type

from ._dispatch import register_format
from ._obj import (
    MaterialLoader,
    ObjFile,
    ObjMaterial,
    ObjMesh,
    ObjModel,
    load_obj,
    load_obj_buf,
)

logger = logging.getLogger(__name__)


@total_ordering
@dataclass(frozen=True)
class Vertex:
    """
    A vertex, as found in a Wavefront file.

    Attributes that are not present in the file are :data:`None`.
    Vertices without an attribute sort before vertices with it.
    """

    position: Vector
    normal: Vector | None = None
    texture_coords: Vector | None = None
    """The texture coordinates ``(u, v)``, stored as ``Vector(u, v, 0.0)``."""

    def _key(self) -> tuple[Any, ...]:
        return (
            self.position,
            (0,) if self.normal is None else (1, self.normal),
            (0,) if self.texture_coords is None else (1, self.texture_coords),
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Vertex):
            return NotImplemented
        return self._key() < other._key()

    @classmethod
    def from_vertex(cls, vertex: Any) -> "Vertex":
        """
        Return ``vertex`` if it already is a Wavefront vertex, or wrap its position.

        Args:
            vertex: Any vertex.

        Returns:
            The Wavefront vertex.
        """
        if isinstance(vertex, Vertex):
            return vertex
        return cls(position=vertex.position)


class Material:
    """A material, referenced by objects."""

    __slots__ = ("_material",)

    def __init__(self, material: ObjMaterial) -> None:
        self._material = material

    def __repr__(self) -> str:
        return f"Material({self.name!r})"

    @property
    def name(self) -> str:
        """The name of the material."""
        return self._material.name

    @property
    def ambient_color(self) -> Color:
        """The ambient color."""
        return Color(*self._material.ambient)

    @property
    def diffuse_color(self) -> Color:
        """The diffuse color."""
        return Color(*self._material.diffuse)

    @property
    def specular_color(self) -> Color:
        """The specular color."""
        return Color(*self._material.specular)

    @property
    def shininess(self) -> float:
        """The shininess factor."""
        return self._material.shininess

    @property
    def alpha(self) -> float:
        """The opacity factor (dissolve)."""
        return self._material.dissolve

    @property
    def optical_density(self) -> float:
        """The optical density."""
        return self._material.optical_density

    @property
    def ambient_texture(self) -> str:
        """The ambient texture image file, or an empty string."""
        return self._material.ambient_texture

    @property
    def diffuse_texture(self) -> str:
        """The diffuse texture image file, or an empty string."""
        return self._material.diffuse_texture

    @property
    def specular_texture(self) -> str:
        """The specular texture image file, or an empty string."""
        return self._material.specular_texture

    @property
    def normal_texture(self) -> str:
        """The normal texture image file, or an empty string."""
        return self._material.normal_texture

    @property
    def dissolve_texture(self) -> str:
        """The dissolve texture image file, or an empty string."""
        return self._material.dissolve_texture


def _build_vector(elems: np.ndarray, i: int, stride: int) -> Vector | None:
    if elems.size == 0:
        return None

    values = elems[i * stride : (i + 1) * stride].tolist()
    return Vector(*values, *([0.0] * (3 - stride)))


def _build_vertices(mesh: ObjMesh, convert: Callable[[Vertex], V]) -> list[V]:
    return [
        convert(
            Vertex(
                position=_build_vector(mesh.positions, i, 3),  # type: ignore[arg-type]
                normal=_build_vector(mesh.normals, i, 3),
                texture_coords=_build_vector(mesh.texcoords, i, 2),
            )
        )
        for i in range(mesh.positions.size // 3)
    ]


class Object:
    """A named object in a Wavefront file."""

    __slots__ = ("_model", "_wavefront")

    def __init__(self, wavefront: "Wavefront", model: ObjModel) -> None:
        self._wavefront = wavefront
        self._model = model

    def __repr__(self) -> str:
        return f"Object({self.name!r})"

    @property
    def name(self) -> str:
        """The name of the object."""
        return self._model.name

    @property
    def material(self) -> Material | None:
        """The material associated with the object, if any."""
        material_id = self._model.mesh.material_id
        if material_id is None:
            return None
        return Material(self._wavefront._materials[material_id])  # noqa: SLF001

    def build_model(
        self,
        vertex_type: type[V] | Callable[[Vertex], V] = Vector,
        index_type: Any = np.uint32,
    ) -> Model[V]:
        """
        Build a model out of this object only.

        Indices are local to the object.

        Args:
            vertex_type: The vertex type, converted from :class:`Vertex`.
            index_type: The index type.

        Returns:
            The model.

        Raises:
            IndexTooSmallError: If the index type is too narrow.
        """
        convert = vertex_converter(vertex_type)
        index_type = check_index_type(index_type)
        mesh = self._model.mesh

        indices = indices_from_u64(mesh.indices, index_type)
        vertices = _build_vertices(mesh, convert)

        logger.debug(
            "Built model for object '%s' with %d vertices and %d indices",
            self.name,
            len(vertices),
            len(indices),
        )
        return Model(mesh=TriangularMesh(vertices=vertices, indices=indices))


class Wavefront:
    """A Wavefront file, made of objects and materials."""

    __slots__ = ("_materials", "_models")

    def __init__(
        self, models: Sequence[ObjModel], materials: Sequence[ObjMaterial] = ()
    ) -> None:
        self._models = tuple(models)
        self._materials = tuple(materials)

    def __repr__(self) -> str:
        return (
            f"Wavefront(objects={[model.name for model in self._models]!r}, "
            f"materials={[material.name for material in self._materials]!r})"
        )

    def objects(self) -> Iterator[Object]:
        """
        Iterate over all of the objects contained within the file.

        Yields:
            The objects, in order of appearance.
        """
        for model in self._models:
            yield Object(self, model)

    def materials(self) -> Iterator[Material]:
        """
        Iterate over all of the materials loaded along the file.

        Yields:
            The materials, in order of definition.
        """
        for material in self._materials:
            yield Material(material)

    def build_model(
        self,
        vertex_type: type[V] | Callable[[Vertex], V] = Vector,
        index_type: Any = np.uint32,
    ) -> Model[V]:
        """
        Build a single model out of all the objects.

        Each object has indices relative to itself, so they are shifted
        by the number of vertices of the previous objects.

        Args:
            vertex_type: The vertex type, converted from :class:`Vertex`.
            index_type: The index type.

        Returns:
            The model.

        Raises:
            IndexTooSmallError: If the index type is too narrow.
        """
        convert = vertex_converter(vertex_type)
        index_type = check_index_type(index_type)

        vertices: list[V] = []
        indices = [np.empty((0,), dtype=index_type)]

        for model in self._models:
            absolute = model.mesh.indices.astype(np.uint64) + np.uint64(len(vertices))
            indices.append(indices_from_u64(absolute, index_type))
            vertices.extend(_build_vertices(model.mesh, convert))

        logger.debug(
            "Built model for %d objects with %d vertices",
            len(self._models),
            len(vertices),
        )
        return Model(
            mesh=TriangularMesh(vertices=vertices, indices=np.concatenate(indices))
        )


def _from_obj_file(obj_file: ObjFile) -> Wavefront:
    for problem in obj_file.problems:
        # Points at the caller of 'from_path' or 'from_memory'.
        warnings.warn(problem, UserWarning, stacklevel=3)
    return Wavefront(obj_file.models, obj_file.materials)


@register_format("wavefront")
def from_path(path: str | Path) -> Wavefront:
    """
    Load a Wavefront ``.obj`` file from disk.

    Material files will be automatically loaded, relative to the
    folder of ``path``.

    Args:
        path: The path to the file.

    Returns:
        The loaded file.

    Raises:
        OSError: If the file cannot be read.
        WavefrontLoadError: If the file is malformed.

    Warns:
        UserWarning: If a material library cannot be found.
    """
    return _from_obj_file(load_obj(path))


def from_memory(
    reader: Iterable[str], material_loader: MaterialLoader | None = None
) -> Wavefront:
    """
    Load a Wavefront ``.obj`` file from memory.

    Args:
        reader: The lines of the file, e.g., a :class:`io.StringIO`.
        material_loader: A callable that maps each material file path
            to its lines. If :data:`None`, materials are not loaded.
            A library is considered missing when the callable raises
            :class:`OSError` or :class:`KeyError`, e.g., with
            ``libraries.__getitem__`` for a dictionary of libraries.

    Returns:
        The loaded file.

    Raises:
        WavefrontLoadError: If the file is malformed.

    Warns:
        UserWarning: If a material library cannot be found.
    """
    return _from_obj_file(load_obj_buf(reader, material_loader))
