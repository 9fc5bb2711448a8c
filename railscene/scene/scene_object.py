"""
Spatial objects of the route scene.

Трансформация объекта собирается как

    parent_world @ translate(position) @ rotate(world_quat * quat)

world_quat задаётся при создании (например, по нормали к поверхности
в точке установки) и больше не пересчитывается; редактируется только
локальный кватернион quat.
"""

from __future__ import annotations

import numpy

from railscene import log
from railscene.geombase import (
    qidentity,
    qmul,
    rotation_matrix,
    scale,
    translate,
)
from railscene.scene.bounds import compute_bounds
from railscene.scene.node import Geometry, Group, MatrixTransform, Node
from railscene.serialization.registry import register_node


def unit_box() -> Geometry:
    """Unit cube centred at the origin; the wireframe scales it onto bounds."""
    corners = [[x, y, z] for x in (-0.5, 0.5) for y in (-0.5, 0.5) for z in (-0.5, 0.5)]
    return Geometry(corners, name="box")


def _vec3(value) -> numpy.ndarray:
    return numpy.array(value, dtype=float).reshape(3)


def _quat(value) -> numpy.ndarray:
    return numpy.array(value, dtype=float).reshape(4)


@register_node
class SceneObject(Group):
    """
    Узел сцены с положением и ориентацией.

    Хранит кэш local_to_world (обновляется update_transform) и
    отладочный каркас wireframe, показывающий границы поддерева.
    Каркас не входит в children и в границы не попадает.
    """

    def __init__(
        self,
        loaded: Node | None = None,
        box: Node | None = None,
        position=(0.0, 0.0, 0.0),
        world_quat=None,
        local_to_world=None,
        name: str | None = None,
    ):
        super().__init__(name)
        self._position = _vec3(position)
        self._quat = qidentity()
        self._world_quat = qidentity() if world_quat is None else _quat(world_quat)
        self.local_to_world = numpy.eye(4) if local_to_world is None else numpy.array(local_to_world, dtype=float)
        self.selected = False

        self.wireframe = MatrixTransform(name="wireframe")
        self.wireframe.add_child(box if box is not None else unit_box())

        if loaded is not None:
            self.add_child(loaded)

    @property
    def position(self) -> numpy.ndarray:
        return self._position.copy()

    @property
    def quat(self) -> numpy.ndarray:
        return self._quat.copy()

    @property
    def world_quat(self) -> numpy.ndarray:
        return self._world_quat.copy()

    def set_position(self, position) -> None:
        self._position = _vec3(position)

    def set_rotation(self, quat) -> None:
        self._quat = _quat(quat)

    def world_rotation(self) -> numpy.ndarray:
        """world_quat * quat: world baseline first."""
        return qmul(self._world_quat, self._quat)

    def transform(self, parent_world: numpy.ndarray) -> numpy.ndarray:
        return parent_world @ translate(self._position) @ rotation_matrix(self.world_rotation())

    def local_matrix(self) -> numpy.ndarray:
        return self.transform(numpy.eye(4))

    def update_transform(self, parent_world: numpy.ndarray) -> None:
        self.local_to_world = self.transform(parent_world)

    def recalculate_wireframe(self) -> None:
        """
        Fit the wireframe onto the local-space bounds of the children.

        Should be called in the same edit as the geometry change; between
        edits the wireframe may be stale.
        """
        bounds = compute_bounds(self)
        if bounds is None:
            return
        self.wireframe.matrix = translate(bounds.centre) @ scale(bounds.extent)

    def serialize_fields(self) -> dict:
        from railscene.serialization import scene_io

        return {
            "coord": self._position.tolist(),
            "quat": self._quat.tolist(),
            "world_quat": self._world_quat.tolist(),
            "ltw": self.local_to_world.tolist(),
            "wireframe": scene_io.serialize(self.wireframe),
        }

    def deserialize_fields(self, data: dict) -> None:
        from railscene.serialization import scene_io

        self._position = _vec3(data.get("coord", (0.0, 0.0, 0.0)))
        self._quat = _quat(data.get("quat", qidentity()))
        self._world_quat = _quat(data.get("world_quat", qidentity()))
        self.local_to_world = numpy.array(data.get("ltw", numpy.eye(4)), dtype=float).reshape(4, 4)
        if "wireframe" in data:
            wireframe = scene_io.deserialize(data["wireframe"])
            if isinstance(wireframe, MatrixTransform):
                self.wireframe = wireframe


@register_node
class SingleLoader(SceneObject):
    """
    Объект, загружаемый из отдельного файла.

    При сохранении пишется только имя файла; при чтении файл ищется
    по путям поиска и подгружается как единственный ребёнок.
    """

    serializes_children = False

    def __init__(self, loaded: Node | None = None, box: Node | None = None,
                 filename: str = "", position=(0.0, 0.0, 0.0), world_quat=None,
                 local_to_world=None, name: str | None = None):
        super().__init__(loaded, box, position, world_quat, local_to_world, name)
        self.file = filename

    def serialize_fields(self) -> dict:
        data = super().serialize_fields()
        data["filename"] = self.file
        return data

    def deserialize_fields(self, data: dict) -> None:
        from railscene.serialization import scene_io

        super().deserialize_fields(data)
        self.file = data.get("filename", "")
        if not self.file:
            return

        path = scene_io.find_file(self.file)
        if path is None:
            log.warn(f"SingleLoader: '{self.file}' not found in search paths")
            return
        self.add_child(scene_io.read_file(path))


__all__ = ["SceneObject", "SingleLoader", "unit_box"]
