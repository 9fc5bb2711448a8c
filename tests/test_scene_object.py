import math

import numpy
import pytest

from railscene.geombase import qaxis_angle, qmul, rotation_matrix, translate, transform_point
from railscene.scene import Geometry, Group, MatrixTransform, SceneObject, SingleLoader
from railscene.scene.bounds import calculate_transforms, compute_bounds
from railscene.serialization import scene_io


def cube(lo, hi):
    return Geometry([[x, y, z] for x in (lo[0], hi[0]) for y in (lo[1], hi[1]) for z in (lo[2], hi[2])])


class TestSceneObjectTransform:
    def test_transform_composition(self):
        world_quat = qaxis_angle([0, 0, 1], math.pi / 2)
        obj = SceneObject(position=(1.0, 2.0, 3.0), world_quat=world_quat)
        local = qaxis_angle([1, 0, 0], 0.3)
        obj.set_rotation(local)
        parent_world = translate([10.0, 0.0, 0.0])

        expected = parent_world @ translate([1.0, 2.0, 3.0]) @ rotation_matrix(qmul(world_quat, local))
        assert numpy.allclose(obj.transform(parent_world), expected)
        assert numpy.allclose(obj.world_rotation(), qmul(world_quat, local))

    def test_world_rotation_applies_world_quat_last(self):
        world_quat = qaxis_angle([0, 0, 1], math.pi / 2)
        obj = SceneObject(world_quat=world_quat)
        obj.set_rotation(qaxis_angle([1, 0, 0], math.pi / 2))
        # local X rotation takes +Y to +Z, world Z rotation keeps +Z
        p = transform_point(obj.transform(numpy.eye(4)), [0.0, 1.0, 0.0])
        assert numpy.allclose(p, [0.0, 0.0, 1.0])

    def test_set_position_and_rotation_store(self):
        obj = SceneObject()
        obj.set_position([4, 5, 6])
        assert numpy.allclose(obj.position, [4, 5, 6])
        q = qaxis_angle([0, 1, 0], 0.2)
        obj.set_rotation(q)
        assert numpy.allclose(obj.quat, q)

    def test_properties_return_copies(self):
        obj = SceneObject(position=(1, 1, 1))
        pos = obj.position
        pos[0] = 100.0
        assert obj.position[0] == 1.0

    def test_update_transform(self):
        obj = SceneObject(position=(1, 0, 0))
        obj.update_transform(translate([0, 5, 0]))
        assert numpy.allclose(obj.local_to_world[:3, 3], [1, 5, 0])


class TestWireframe:
    def test_wireframe_fits_child_bounds(self):
        obj = SceneObject(loaded=cube((0, 0, 0), (2, 4, 6)))
        obj.recalculate_wireframe()

        expected = translate([1, 2, 3]) @ numpy.diag([2.0, 4.0, 6.0, 1.0])
        assert numpy.allclose(obj.wireframe.matrix, expected)

    def test_wireframe_is_not_a_child(self):
        obj = SceneObject(loaded=cube((0, 0, 0), (1, 1, 1)))
        assert obj.wireframe not in obj.children
        assert obj.wireframe.parent is None

    def test_bounds_use_nested_transforms(self):
        inner = MatrixTransform(translate([10, 0, 0]))
        inner.add_child(cube((-1, -1, -1), (1, 1, 1)))
        obj = SceneObject(loaded=inner)
        obj.set_position([100, 100, 100])

        bounds = compute_bounds(obj)
        assert numpy.allclose(bounds.min_point, [9, -1, -1])
        assert numpy.allclose(bounds.max_point, [11, 1, 1])

    def test_empty_subtree_leaves_wireframe(self):
        obj = SceneObject()
        before = obj.wireframe.matrix.copy()
        obj.recalculate_wireframe()
        assert numpy.array_equal(obj.wireframe.matrix, before)
        assert compute_bounds(obj) is None


def test_calculate_transforms_propagates():
    root = Group()
    outer = SceneObject(position=(1, 0, 0))
    inner = SceneObject(position=(0, 2, 0))
    outer.add_child(inner)
    root.add_child(outer)

    calculate_transforms(root, translate([0, 0, 3]))
    assert numpy.allclose(outer.local_to_world[:3, 3], [1, 0, 3])
    assert numpy.allclose(inner.local_to_world[:3, 3], [1, 2, 3])


class TestSingleLoader:
    def test_loads_file_from_search_path(self, tmp_path, monkeypatch):
        scene_io.write_file(cube((0, 0, 0), (1, 1, 1)), tmp_path / "crate.json")
        monkeypatch.setenv(scene_io.SEARCH_PATH_ENV, str(tmp_path))

        loader = SingleLoader(filename="crate.json", name="crate")
        restored = scene_io.loads(scene_io.dumps(loader))

        assert isinstance(restored, SingleLoader)
        assert restored.file == "crate.json"
        assert len(restored.children) == 1
        assert isinstance(restored.children[0], Geometry)

    def test_missing_file_is_logged(self, tmp_path, monkeypatch, caplog):
        monkeypatch.setenv(scene_io.SEARCH_PATH_ENV, str(tmp_path))
        loader = SingleLoader(filename="missing.json")

        with caplog.at_level("WARNING", logger="railscene"):
            restored = scene_io.loads(scene_io.dumps(loader))

        assert restored.children == []
        assert "missing.json" in caplog.text

    def test_children_are_not_serialized(self):
        loader = SingleLoader(loaded=cube((0, 0, 0), (1, 1, 1)), filename="x.json")
        assert "children" not in scene_io.serialize(loader)


def test_selected_flag_defaults_false():
    assert SceneObject().selected is False


@pytest.mark.parametrize("angle", [0.0, 0.5, math.pi])
def test_local_matrix_equals_transform_of_identity(angle):
    obj = SceneObject(position=(1, 2, 3))
    obj.set_rotation(qaxis_angle([0, 0, 1], angle))
    assert numpy.allclose(obj.local_matrix(), obj.transform(numpy.eye(4)))
