from __future__ import annotations

from typing import TYPE_CHECKING

import numpy

from railscene.editor.undo_stack import UndoCommand
from railscene.scene import masks
from railscene.scene.bounds import calculate_transforms
from railscene.scene.node import NAME, Node, policy_for
from railscene.scene.scene_object import SceneObject

if TYPE_CHECKING:
    from railscene.editor.scene_model import SceneModel


def _refresh_wireframes(node: Node) -> None:
    """
    Пересчитывает каркасы всех объектов-предков узла.

    Границы предка зависят от положения потомков, поэтому каркасы
    обновляются в той же правке, что и геометрия.
    """
    if isinstance(node, SceneObject):
        node.recalculate_wireframe()
    cur = node.parent
    while cur is not None:
        if isinstance(cur, SceneObject):
            cur.recalculate_wireframe()
        cur = cur.parent


class AddNodeCommand(UndoCommand):
    """
    Добавление узла последним видимым ребёнком parent.

    В do() узел добавляется через SceneModel, в undo() - удаляется.
    """

    def __init__(
        self,
        model: "SceneModel",
        parent: Node,
        node: Node,
        mask: int = masks.SCENE_OBJECTS,
        text: str | None = None,
    ) -> None:
        if text is None:
            text = f"Add {node.class_name()} '{node.name or ''}'"
        super().__init__(text)
        self._model = model
        self._parent = parent
        self._node = node
        self._mask = mask
        self._row = -1

    @property
    def node(self) -> Node:
        return self._node

    @property
    def row(self) -> int:
        return self._row

    def do(self) -> None:
        self._row = self._model.add_child_node(self._parent, self._node, self._mask)
        if self._row >= 0:
            _refresh_wireframes(self._parent)

    def undo(self) -> None:
        if self._row < 0:
            return
        self._model.remove_child_node(self._parent, self._node)
        _refresh_wireframes(self._parent)


class AddSceneObjectCommand(AddNodeCommand):
    """
    Добавление готового поддерева (drag-drop, вставка из файла).

    Перед вставкой пересчитываются мировые матрицы объектов поддерева
    относительно нового родителя.
    """

    def __init__(self, model: "SceneModel", parent: Node, node: Node,
                 mask: int = masks.SCENE_OBJECTS, text: str | None = None) -> None:
        if text is None:
            text = f"Add object '{node.name or node.class_name()}'"
        super().__init__(model, parent, node, mask, text)

    def do(self) -> None:
        calculate_transforms(self._node, self._model.world_matrix(self._parent))
        super().do()


class RemoveNodeCommand(UndoCommand):
    """
    Удаление узла.

    Запоминает позицию в parent.children (скрытые дети тоже считаются)
    и маску, чтобы undo() вернул узел точно на прежнее место.
    """

    def __init__(self, model: "SceneModel", node: Node, text: str | None = None) -> None:
        if text is None:
            text = f"Remove {node.class_name()} '{node.name or ''}'"
        super().__init__(text)
        parent = node.parent
        if parent is None:
            raise ValueError(f"{node!r} has no parent")
        self._model = model
        self._parent = parent
        self._node = node
        self._position = -1
        self._mask = policy_for(parent).child_mask(parent, node)

    @property
    def node(self) -> Node:
        return self._node

    def do(self) -> None:
        self._position = policy_for(self._parent).index_of(self._parent, self._node)
        self._model.remove_child_node(self._parent, self._node)
        _refresh_wireframes(self._parent)

    def undo(self) -> None:
        if self._position < 0:
            return
        self._model.insert_child_at(self._parent, self._position, self._node, self._mask)
        _refresh_wireframes(self._parent)


class RenameObjectCommand(UndoCommand):
    """
    Переименование узла.

    В do() устанавливается новое имя, в undo() - старое.
    """

    def __init__(
        self,
        node: Node,
        new_name: str,
        model: "SceneModel | None" = None,
        text: str | None = None,
    ) -> None:
        old_name = node.get_value(NAME)
        if text is None:
            text = f"Rename '{old_name or ''}' to '{new_name}'"
        super().__init__(text)
        self._node = node
        self._model = model
        self._old_name = old_name
        self._new_name = new_name

    def do(self) -> None:
        self._node.name = self._new_name
        self._notify()

    def undo(self) -> None:
        self._node.name = self._old_name
        self._notify()

    def _notify(self) -> None:
        if self._model is not None:
            self._model.node_changed(self._node)

    def merge_with(self, other: UndoCommand) -> bool:
        """Склейка последовательных переименований одного узла."""
        if not isinstance(other, RenameObjectCommand):
            return False
        if other._node is not self._node:
            return False

        self._new_name = other._new_name
        self.text = other.text
        return True


class MoveObjectCommand(UndoCommand):
    """
    Перемещение объекта (манипулятор, ввод координат).

    Серия мелких сдвигов одного объекта склеивается в одну команду.
    Для рельсовых точек set_position сам пересчитывает траектории.
    """

    def __init__(self, obj: SceneObject, new_position, old_position=None, text: str = "Move object") -> None:
        super().__init__(text)
        self._obj = obj
        self._old = numpy.array(obj.position if old_position is None else old_position, dtype=float)
        self._new = numpy.array(new_position, dtype=float)

    def do(self) -> None:
        self._obj.set_position(self._new.copy())
        _refresh_wireframes(self._obj)

    def undo(self) -> None:
        self._obj.set_position(self._old.copy())
        _refresh_wireframes(self._obj)

    def merge_with(self, other: UndoCommand) -> bool:
        if not isinstance(other, MoveObjectCommand) or other._obj is not self._obj:
            return False
        self._new = other._new.copy()
        return True


class RotateObjectCommand(UndoCommand):
    """Поворот объекта: меняется локальный кватернион."""

    def __init__(self, obj: SceneObject, new_quat, old_quat=None, text: str = "Rotate object") -> None:
        super().__init__(text)
        self._obj = obj
        self._old = numpy.array(obj.quat if old_quat is None else old_quat, dtype=float)
        self._new = numpy.array(new_quat, dtype=float)

    def do(self) -> None:
        self._obj.set_rotation(self._new.copy())
        _refresh_wireframes(self._obj)

    def undo(self) -> None:
        self._obj.set_rotation(self._old.copy())
        _refresh_wireframes(self._obj)

    def merge_with(self, other: UndoCommand) -> bool:
        if not isinstance(other, RotateObjectCommand) or other._obj is not self._obj:
            return False
        self._new = other._new.copy()
        return True


__all__ = [
    "AddNodeCommand",
    "AddSceneObjectCommand",
    "RemoveNodeCommand",
    "RenameObjectCommand",
    "MoveObjectCommand",
    "RotateObjectCommand",
]
