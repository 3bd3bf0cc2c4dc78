"""
Wavefront ``.obj`` and ``.mtl`` files, read with :mod:`tinyobjloader`.

The reader turns tinyobjloader's output into raw, format-level data: for each
object, flat arrays of positions, normals and texture coordinates, and a flat
list of triangle indices that are local to the object. Each distinct
``v/vt/vn`` combination of an object becomes one vertex, so that a single
index refers to a position, a normal and a texture coordinate at once.

It is consumed by :mod:`trimodel.load.wavefront`, which turns this raw data
into models.
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from itertools import groupby
from pathlib import Path
from typing import Any

import numpy as np
import tinyobjloader
from jaxtyping import Float, UInt

from trimodel.errors import WavefrontLoadError

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_NAME = "unnamed_object"

MaterialLoader = Callable[[Path], Iterable[str]]
"""A callable returning the lines of the material library at a given path."""


@dataclass(frozen=True)
class ObjMesh:
    """The raw geometry of one object."""

    positions: Float[np.ndarray, " num_positions_times_3"]
    """The flat array of positions, three floats per vertex."""
    normals: Float[np.ndarray, " num_normals_times_3"]
    """The flat array of normals, three floats per vertex, or an empty array."""
    texcoords: Float[np.ndarray, " num_texcoords_times_2"]
    """The flat array of texture coordinates, two floats per vertex, or an empty array."""
    indices: UInt[np.ndarray, " num_indices"]
    """The flat array of triangle indices, local to the object."""
    material_id: int | None = None
    """The index of the object's material, if any."""


@dataclass(frozen=True)
class ObjModel:
    """A named object."""

    name: str
    mesh: ObjMesh


@dataclass(frozen=True)
class ObjMaterial:
    """A material, as described in a ``.mtl`` file."""

    name: str
    ambient: tuple[float, float, float] = (0.0, 0.0, 0.0)
    diffuse: tuple[float, float, float] = (0.0, 0.0, 0.0)
    specular: tuple[float, float, float] = (0.0, 0.0, 0.0)
    shininess: float = 0.0
    dissolve: float = 1.0
    optical_density: float = 1.0
    ambient_texture: str = ""
    diffuse_texture: str = ""
    specular_texture: str = ""
    normal_texture: str = ""
    dissolve_texture: str = ""
    illumination_model: int | None = None

    @classmethod
    def from_tinyobj(cls, material: Any) -> "ObjMaterial":
        """Copy a :class:`tinyobjloader.material_t`."""
        return cls(
            name=material.name,
            ambient=_rgb(material.ambient),
            diffuse=_rgb(material.diffuse),
            specular=_rgb(material.specular),
            shininess=float(material.shininess),
            dissolve=float(material.dissolve),
            optical_density=float(material.ior),
            ambient_texture=material.ambient_texname,
            diffuse_texture=material.diffuse_texname,
            specular_texture=material.specular_texname,
            normal_texture=material.bump_texname,
            dissolve_texture=material.alpha_texname,
            illumination_model=int(material.illum),
        )


@dataclass(frozen=True)
class ObjFile:
    """Everything read from a Wavefront file."""

    models: list[ObjModel]
    materials: list[ObjMaterial]
    problems: list[str]
    """Issues that did not prevent loading, e.g., missing material libraries."""


def _rgb(values: Iterable[float]) -> tuple[float, float, float]:
    r, g, b = (float(value) for value in values)
    return r, g, b


def _material_libraries(obj_text: str) -> list[str]:
    libraries = []
    for line in obj_text.splitlines():
        keyword, _, library = line.split("#", 1)[0].strip().partition(" ")
        if keyword == "mtllib" and library.strip():
            libraries.append(library.strip())
    return libraries


def _attribute(
    values: Float[np.ndarray, "n stride"],
    referenced: list[int],
    what: str,
    object_name: str,
    *,
    optional: bool = True,
) -> Float[np.ndarray, " m"]:
    if optional and all(index < 0 for index in referenced):
        return np.empty((0,), dtype=np.float32)
    if optional and any(index < 0 for index in referenced):
        logger.warning(
            "Object '%s' only defines %s for some of its vertices, dropping them",
            object_name,
            what,
        )
        return np.empty((0,), dtype=np.float32)

    for index in referenced:
        if not 0 <= index < len(values):
            msg = (
                f"{what} index {index + 1} of object '{object_name}' is out of range, "
                f"only {len(values)} are defined"
            )
            raise WavefrontLoadError(msg)

    return values[referenced].reshape(-1)


class _Attributes:
    def __init__(self, attrib: Any) -> None:
        self.positions = np.asarray(attrib.vertices, dtype=np.float32).reshape(-1, 3)
        self.normals = np.asarray(attrib.normals, dtype=np.float32).reshape(-1, 3)
        self.texcoords = np.asarray(attrib.texcoords, dtype=np.float32).reshape(-1, 2)

    def mesh(self, name: str, corners: list[Any], material_id: int) -> ObjMesh:
        vertex_map: dict[tuple[int, int, int], int] = {}
        indices = [
            vertex_map.setdefault(
                (corner.vertex_index, corner.texcoord_index, corner.normal_index),
                len(vertex_map),
            )
            for corner in corners
        ]
        keys = list(vertex_map)

        return ObjMesh(
            positions=_attribute(
                self.positions, [v for v, _, _ in keys], "position", name, optional=False
            ),
            normals=_attribute(self.normals, [n for _, _, n in keys], "normals", name),
            texcoords=_attribute(
                self.texcoords, [t for _, t, _ in keys], "texture coordinates", name
            ),
            indices=np.asarray(indices, dtype=np.uint32),
            material_id=material_id if material_id >= 0 else None,
        )


def _models(shapes: Iterable[Any], attributes: _Attributes) -> Iterator[ObjModel]:
    for shape in shapes:
        name = shape.name or DEFAULT_OBJECT_NAME
        corners = list(shape.mesh.indices)
        material_ids = list(shape.mesh.material_ids)

        if not corners:
            logger.debug("Skipping object '%s' because it has no faces", name)
            continue

        # A change of material starts a new object, with the same name.
        for material_id, faces in groupby(
            range(len(material_ids)), key=material_ids.__getitem__
        ):
            face_corners = [
                corners[3 * face + k] for face in faces for k in range(3)
            ]
            mesh = attributes.mesh(name, face_corners, material_id)
            logger.debug(
                "Read object '%s' with %d vertices and %d triangles",
                name,
                mesh.positions.size // 3,
                mesh.indices.size // 3,
            )
            yield ObjModel(name=name, mesh=mesh)


def load_obj_buf(
    lines: Iterable[str], material_loader: MaterialLoader | None = None
) -> ObjFile:
    """
    Read a Wavefront ``.obj`` file from its lines.

    Args:
        lines: The lines of the file, e.g., an open text file.
        material_loader: A callable returning the lines of each
            material library referenced by ``mtllib``. If :data:`None`,
            materials are not loaded. Libraries for which it raises
            :class:`OSError` or :class:`KeyError` are reported in
            :attr:`ObjFile.problems`.

    Returns:
        The objects, the materials and the loading problems.

    Raises:
        WavefrontLoadError: If the file is malformed.
    """
    obj_text = "".join(
        line if line.endswith("\n") else f"{line}\n" for line in lines
    )
    problems: list[str] = []
    mtl_texts: list[str] = []

    for library in _material_libraries(obj_text):
        if material_loader is None:
            logger.debug("No material loader, skipping material library '%s'", library)
            continue
        try:
            mtl_texts.append("\n".join(material_loader(Path(library))))
        except (OSError, KeyError):
            problems.append(
                f"Could not find material library '{library}', materials will be missing."
            )

    config = tinyobjloader.ObjReaderConfig()
    config.triangulate = True

    reader = tinyobjloader.ObjReader()
    if not reader.ParseFromString(obj_text, "\n".join(mtl_texts), config):
        msg = reader.Error().strip() or "could not parse the file"
        raise WavefrontLoadError(msg)

    for warning in reader.Warning().splitlines():
        if warning.strip():
            logger.warning("tinyobjloader: %s", warning.strip())

    attributes = _Attributes(reader.GetAttrib())
    return ObjFile(
        models=list(_models(reader.GetShapes(), attributes)),
        materials=[
            ObjMaterial.from_tinyobj(material) for material in reader.GetMaterials()
        ],
        problems=problems,
    )


def load_obj(path: str | Path) -> ObjFile:
    """
    Read a Wavefront ``.obj`` file from disk.

    Material libraries are looked up relative to the file's folder.

    Args:
        path: The path to the file.

    Returns:
        The objects, the materials and the loading problems.

    Raises:
        OSError: If the file cannot be read.
        WavefrontLoadError: If the file is malformed.
    """
    path = Path(path)

    def material_loader(library: Path) -> list[str]:
        return path.parent.joinpath(library).read_text(encoding="utf-8").splitlines()

    with path.open(encoding="utf-8") as f:
        return load_obj_buf(f, material_loader)
