import io
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import chex
import jax.numpy as jnp
import numpy as np
import pytest

from trimodel.errors import IndexTooSmallError
from trimodel.geometry import Color, Vector
from trimodel.load import wavefront
from trimodel.model import BuildModel, Model


@dataclass(frozen=True, order=True)
class TexturedVertex:
    position: Vector
    uv: tuple[float, float]

    @classmethod
    def from_vertex(cls, vertex: wavefront.Vertex) -> "TexturedVertex":
        assert vertex.texture_coords is not None
        return cls(
            position=vertex.position,
            uv=(vertex.texture_coords.x, vertex.texture_coords.y),
        )


@pytest.fixture(scope="module")
def cube_obj_file() -> Iterator[Path]:
    yield Path(__file__).parent.joinpath("cube.obj").resolve(strict=True)


@pytest.fixture(scope="module")
def cube(cube_obj_file: Path) -> Iterator[wavefront.Wavefront]:
    yield wavefront.from_path(cube_obj_file)


@pytest.fixture(scope="module")
def two_objects() -> Iterator[wavefront.Wavefront]:
    yield wavefront.from_path(
        Path(__file__).parent.joinpath("two_objects.obj").resolve(strict=True)
    )


def many_triangles(num_vertices: int) -> io.StringIO:
    lines = [f"v {i} {i % 7} 0" for i in range(num_vertices)]
    lines.extend(
        f"f {i + 1} {i + 2} {i + 3}" for i in range(0, num_vertices - 2, 3)
    )
    return io.StringIO("\n".join(lines))


class TestWavefront:
    def test_cube(self, cube: wavefront.Wavefront) -> None:
        objects = list(cube.objects())

        assert len(objects) == 1
        assert objects[0].name == "Cube"

        model = Model.new(cube, vertex_type=Vector, index_type=np.uint16)

        assert model.mesh.num_vertices == 24
        assert model.mesh.num_indices == 36
        assert model.mesh.index_type is np.uint16

        object_model = Model.new(objects[0], vertex_type=Vector)
        assert object_model.mesh.num_vertices == 24
        assert object_model.mesh.num_indices == 36
        chex.assert_trees_all_equal(
            model.mesh.bounding_box,
            jnp.array([[-1.0, -1.0, -1.0], [1.0, 1.0, 1.0]]),
        )

    def test_is_builder(self, cube: wavefront.Wavefront) -> None:
        assert isinstance(cube, BuildModel)
        assert all(isinstance(obj, BuildModel) for obj in cube.objects())

    def test_native_vertices(self, cube: wavefront.Wavefront) -> None:
        model = Model.new(cube, vertex_type=wavefront.Vertex)
        assert all(isinstance(v, wavefront.Vertex) for v in model.mesh.vertices)
        assert (
            wavefront.Vertex(
                position=Vector(1, 1, -1),
                normal=Vector(0, 1, 0),
                texture_coords=Vector(0, 0, 0),
            )
            in model.mesh.vertices
        )

    def test_custom_vertices(self, cube: wavefront.Wavefront) -> None:
        model = Model.new(cube, vertex_type=TexturedVertex, index_type=np.uint8)
        uvs = {vertex.uv for vertex in model.mesh.vertices}

        assert uvs == {(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)}

    def test_deduplicate_positions(self, cube: wavefront.Wavefront) -> None:
        model = Model.new(cube, vertex_type=Vector)
        mesh = type(model.mesh).from_triangles(model.mesh.triangles())

        assert mesh.num_vertices == 8
        assert mesh.num_triangles == 12

    def test_materials(self, cube: wavefront.Wavefront) -> None:
        (material,) = cube.materials()
        (obj,) = cube.objects()

        assert obj.material is not None
        assert obj.material.name == material.name == "Material"
        assert material.diffuse_color == Color(0.64, 0.64, 0.64)
        assert material.ambient_color == Color(1, 1, 1)
        assert material.specular_color == Color(0.5, 0.5, 0.5)
        assert material.shininess == pytest.approx(96.078431)
        assert material.alpha == 1.0
        assert material.optical_density == 1.0
        assert material.diffuse_texture == "cube_diffuse.png"
        assert material.normal_texture == ""

    def test_two_objects(self, two_objects: wavefront.Wavefront) -> None:
        objects = list(two_objects.objects())

        assert [obj.name for obj in objects] == ["First", "Second", "Second"]
        assert [obj.material.name for obj in objects] == ["Red", "Red", "Blue"]  # type: ignore[union-attr]

        blue = objects[2].material
        assert blue is not None
        assert blue.alpha == 0.75
        assert blue.normal_texture == "blue_normal.png"

    def test_two_objects_scene(self, two_objects: wavefront.Wavefront) -> None:
        model = Model.new(two_objects, vertex_type=Vector, index_type=np.uint8)

        assert model.mesh.num_vertices == 10
        np.testing.assert_array_equal(
            model.mesh.indices, [0, 1, 2, 3, 4, 5, 3, 5, 6, 7, 8, 9]
        )
        assert model.mesh.vertices[7:] == (
            Vector(2, 2, 2),
            Vector(3, 2, 2),
            Vector(2, 3, 2),
        )

    def test_object_indices_are_local(self, two_objects: wavefront.Wavefront) -> None:
        last = list(two_objects.objects())[-1]
        model = Model.new(last, vertex_type=Vector)

        assert model.mesh.num_vertices == 3
        np.testing.assert_array_equal(model.mesh.indices, [0, 1, 2])

    def test_index_too_small(self) -> None:
        scene = wavefront.from_memory(many_triangles(300))

        with pytest.raises(IndexTooSmallError) as exc_info:
            _ = Model.new(scene, vertex_type=Vector, index_type=np.uint8)

        assert exc_info.value.index == 255
        assert exc_info.value.bits_available == 8

        model = Model.new(scene, vertex_type=Vector, index_type=np.uint16)
        assert model.mesh.num_vertices == 300
        assert model.mesh.num_triangles == 100

    def test_from_memory_with_material_loader(self) -> None:
        libraries = {Path("scene.mtl"): ["newmtl Green", "Kd 0 1 0"]}
        obj = io.StringIO(
            "mtllib scene.mtl\nv 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl Green\nf 1 2 3\n"
        )
        scene = wavefront.from_memory(obj, libraries.__getitem__)
        (obj,) = scene.objects()

        assert obj.material is not None
        assert obj.material.diffuse_color == Color(0, 1, 0)

    def test_from_memory_missing_material_library(self) -> None:
        obj = io.StringIO(
            "mtllib missing.mtl\nv 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl Green\nf 1 2 3\n"
        )

        with pytest.warns(UserWarning, match="missing.mtl") as record:
            scene = wavefront.from_memory(obj, {}.__getitem__)

        assert record[0].filename == __file__
        assert list(scene.materials()) == []
        assert next(scene.objects()).material is None

    def test_from_path_missing_material_library(self, tmp_path: Path) -> None:
        path = tmp_path / "lonely.obj"
        path.write_text("mtllib lonely.mtl\nv 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")

        with pytest.warns(UserWarning, match="Could not find material library") as record:
            scene = wavefront.from_path(path)

        assert record[0].filename == __file__
        assert len(list(scene.objects())) == 1

    def test_from_memory_without_materials(self) -> None:
        scene = wavefront.from_memory(
            io.StringIO("mtllib scene.mtl\nv 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")
        )

        assert list(scene.materials()) == []
        assert next(scene.objects()).material is None

    def test_empty(self) -> None:
        scene = wavefront.from_memory(io.StringIO(""))
        model = Model.new(scene)

        assert list(scene.objects()) == []
        assert model.mesh.is_empty

    def test_repr(self, two_objects: wavefront.Wavefront) -> None:
        assert repr(two_objects) == (
            "Wavefront(objects=['First', 'Second', 'Second'], "
            "materials=['Red', 'Blue'])"
        )
        assert repr(next(two_objects.objects())) == "Object('First')"


class TestVertex:
    def test_ordering(self) -> None:
        p = Vector(0, 0, 0)

        assert wavefront.Vertex(p) < wavefront.Vertex(p, normal=Vector(0, 0, 1))
        assert wavefront.Vertex(p, normal=Vector(0, 0, 1)) < wavefront.Vertex(
            p, normal=Vector(0, 1, 0)
        )
        assert wavefront.Vertex(p) < wavefront.Vertex(Vector(0, 0, 1))
        assert not wavefront.Vertex(p) < wavefront.Vertex(p)

    def test_from_vertex(self) -> None:
        vertex = wavefront.Vertex(Vector(1, 2, 3), normal=Vector(0, 0, 1))

        assert wavefront.Vertex.from_vertex(vertex) is vertex
        assert wavefront.Vertex.from_vertex(Vector(1, 2, 3)) == wavefront.Vertex(
            Vector(1, 2, 3)
        )
