from __future__ import annotations

from contextlib import contextmanager

import numpy
from PyQt6.QtCore import QAbstractItemModel, QModelIndex, Qt, pyqtSignal

from railscene import log
from railscene.editor.drag_drop import (
    EditorMimeTypes,
    create_node_mime_data,
    parse_node_mime_data,
)
from railscene.editor.editor_commands import AddSceneObjectCommand, RenameObjectCommand
from railscene.editor.undo_stack import UndoStack
from railscene.scene import masks
from railscene.scene.node import Node, policy_for


class SceneModel(QAbstractItemModel):
    """
    Дерево сцены для QTreeView.

    internalPointer() индекса - сам узел сцены. Строка индекса - позиция
    среди детей, видимых под маской вида (view_mask): у Switch видны
    только дети с пересекающейся маской, PagedLOD всегда пуст.
    index(), parent(), rowCount() и removeRows() перечисляют детей
    одним и тем же правилом (ChildPolicy узла).

    Колонки: 0 - тип узла (только чтение), 1 - имя (редактируется).
    Переименование и drop идут через UndoStack.
    """

    TYPE = 0
    NAME = 1
    COLUMN_COUNT = 2
    HEADERS = ("Type", "Name")

    # Emitted after a node was attached to / detached from the tree
    node_added = pyqtSignal(object)
    node_removed = pyqtSignal(object)

    def __init__(
        self,
        root: Node,
        undo_stack: UndoStack | None = None,
        view_mask: int = masks.SCENE_OBJECTS,
        parent=None,
    ):
        super().__init__(parent)
        self._root = root
        self._undo_stack = undo_stack
        self._view_mask = view_mask
        self._changing = False

    @property
    def root(self) -> Node:
        return self._root

    @property
    def view_mask(self) -> int:
        return self._view_mask

    @property
    def undo_stack(self) -> UndoStack | None:
        return self._undo_stack

    @undo_stack.setter
    def undo_stack(self, stack: UndoStack | None) -> None:
        self._undo_stack = stack

    def _node(self, index: QModelIndex) -> Node:
        return index.internalPointer() if index.isValid() else self._root

    # ==============================================================
    # Qt model interface
    # ==============================================================

    def index(self, row, column, parent=QModelIndex()):
        if row < 0 or column < 0 or column >= self.COLUMN_COUNT:
            return QModelIndex()
        if parent.isValid() and parent.column() != 0:
            return QModelIndex()

        parent_node = self._node(parent)
        child = policy_for(parent_node).child_at(parent_node, row, self._view_mask)
        if child is None:
            return QModelIndex()
        return self.createIndex(row, column, child)

    def parent(self, index):
        if not index.isValid():
            return QModelIndex()

        node: Node = index.internalPointer()
        parent = node.parent
        if parent is None or parent is self._root:
            return QModelIndex()

        grand = parent.parent
        if grand is None:
            return QModelIndex()

        row = policy_for(grand).row_of(grand, parent, self._view_mask)
        if row < 0:
            return QModelIndex()
        return self.createIndex(row, 0, parent)

    def rowCount(self, parent=QModelIndex()):
        if parent.isValid() and parent.column() != 0:
            return 0
        node = self._node(parent)
        return policy_for(node).visible_count(node, self._view_mask)

    def columnCount(self, parent=QModelIndex()):
        return self.COLUMN_COUNT

    def hasChildren(self, parent=QModelIndex()):
        if parent.isValid() and parent.column() != 0:
            return False
        node = self._node(parent)
        return policy_for(node).has_children(node, self._view_mask)

    def data(self, index, role=Qt.ItemDataRole.DisplayRole):
        if not index.isValid():
            return None
        node: Node = index.internalPointer()

        if index.column() == self.TYPE:
            if role == Qt.ItemDataRole.DisplayRole:
                return node.class_name()
        elif index.column() == self.NAME:
            if role in (Qt.ItemDataRole.DisplayRole, Qt.ItemDataRole.EditRole):
                return node.name
        return None

    def setData(self, index, value, role=Qt.ItemDataRole.EditRole):
        if not index.isValid() or role != Qt.ItemDataRole.EditRole:
            return False
        if index.column() != self.NAME:
            return False
        if self._undo_stack is None:
            log.warn("SceneModel: rename ignored, no undo stack attached")
            return False

        node: Node = index.internalPointer()
        self._undo_stack.push(RenameObjectCommand(node, str(value), model=self), merge=False)
        return True

    def headerData(self, section, orientation, role=Qt.ItemDataRole.DisplayRole):
        if (orientation == Qt.Orientation.Horizontal
                and role == Qt.ItemDataRole.DisplayRole
                and 0 <= section < len(self.HEADERS)):
            return self.HEADERS[section]
        return None

    def flags(self, index):
        flags = super().flags(index)
        if not index.isValid():
            return flags

        if index.column() == self.NAME:
            if self.parent(index).isValid():
                flags |= Qt.ItemFlag.ItemIsEditable
        elif index.column() == self.TYPE:
            flags |= (
                Qt.ItemFlag.ItemIsDragEnabled
                | Qt.ItemFlag.ItemIsDropEnabled
                | Qt.ItemFlag.ItemIsSelectable
            )
        return flags

    # ==============================================================
    # Structural changes
    # ==============================================================

    @contextmanager
    def _structure_change(self):
        if self._changing:
            raise RuntimeError("SceneModel: structural change while another one is in progress")
        self._changing = True
        try:
            yield
        finally:
            self._changing = False

    def removeRows(self, row, count, parent=QModelIndex()):
        node = self._node(parent)
        policy = policy_for(node)
        if count <= 0 or row < 0 or row + count > policy.visible_count(node, self._view_mask):
            return False

        removed = policy.visible_children(node, self._view_mask)[row:row + count]
        with self._structure_change():
            self.beginRemoveRows(parent, row, row + count - 1)
            policy.remove_children(node, row, count, self._view_mask)
            self.endRemoveRows()

        for child in removed:
            self.node_removed.emit(child)
        return True

    def removeNode(self, index: QModelIndex) -> QModelIndex:
        """Remove the node behind `index`; returns its parent index."""
        parent = self.parent(index)
        if index.isValid():
            self.removeRows(index.row(), 1, parent)
        return parent

    def addNode(self, parent: QModelIndex, node: Node, mask: int = masks.SCENE_OBJECTS) -> int:
        """
        Append `node` as the last visible child of `parent` (root if invalid).

        Returns the row of the new child, the current row count if the
        child is hidden by the view mask, or -1 if `parent` refuses
        children (PagedLOD, leaves).
        """
        return self._insert(self._node(parent), parent, None, node, mask)

    def insertNode(self, parent: QModelIndex, row: int, node: Node, mask: int = masks.SCENE_OBJECTS) -> int:
        return self._insert(self._node(parent), parent, row, node, mask)

    def add_child_node(self, parent: Node, node: Node, mask: int = masks.SCENE_OBJECTS) -> int:
        return self._insert(parent, self._reachable_index(parent), None, node, mask)

    def insert_child_node(self, parent: Node, row: int, node: Node, mask: int = masks.SCENE_OBJECTS) -> int:
        return self._insert(parent, self._reachable_index(parent), row, node, mask)

    def insert_child_at(self, parent: Node, position: int, node: Node, mask: int = masks.SCENE_OBJECTS) -> int:
        """
        Insert by position in parent's storage, hidden children counted.
        Используется при отмене удаления: узел возвращается точно на своё место.
        """
        return self._insert(parent, self._reachable_index(parent), None, node, mask, position)

    def remove_child_node(self, parent: Node, node: Node) -> bool:
        """Remove `node` from `parent` by identity, with notifications when it is shown."""
        policy = policy_for(parent)
        parent_index = self._reachable_index(parent)
        row = policy.row_of(parent, node, self._view_mask)

        if row >= 0 and parent_index is not None:
            return self.removeRows(row, 1, parent_index)

        with self._structure_change():
            removed = policy.detach_child(parent, node)
        if removed:
            self.node_removed.emit(node)
        return removed

    def _insert(self, parent: Node, parent_index: QModelIndex | None, row: int | None,
                node: Node, mask: int, position: int | None = None) -> int:
        policy = policy_for(parent)
        if not policy.accepts_children:
            return -1
        if not policy.can_adopt(parent, node):
            log.warn(f"SceneModel: {node!r} already has a parent or contains {parent!r}")
            return -1

        if position is None:
            position = policy.position_for_row(parent, -1 if row is None else row, self._view_mask)
        row = policy.rows_before(parent, position, self._view_mask)

        notify = parent_index is not None and policy.is_visible_mask(mask, self._view_mask)
        with self._structure_change():
            if notify:
                self.beginInsertRows(parent_index, row, row)
            policy.insert_at(parent, position, node, mask)
            if notify:
                self.endInsertRows()

        self.node_added.emit(node)
        return row

    def _reachable_index(self, node: Node) -> QModelIndex | None:
        """
        Index of `node` for change notifications: invalid for the root,
        None if the node is not shown under the current view mask.
        """
        if node is self._root:
            return QModelIndex()

        cur = node
        while cur is not self._root:
            parent = cur.parent
            if parent is None or policy_for(parent).row_of(parent, cur, self._view_mask) < 0:
                return None
            cur = parent
        return self.indexOf(node)

    # ==============================================================
    # Index lookup
    # ==============================================================

    def indexOf(self, node: Node, parent: Node | None = None) -> QModelIndex:
        """Rebuild the column 0 index of `node` under `parent` (its own parent by default)."""
        if parent is None:
            parent = node.parent
        if parent is None:
            return QModelIndex()

        row = policy_for(parent).row_of(parent, node, self._view_mask)
        if row < 0:
            return QModelIndex()
        return self.createIndex(row, 0, node)

    def index_for_node(self, node: Node) -> QModelIndex:
        return self.indexOf(node)

    def node_changed(self, node: Node) -> None:
        """Emit dataChanged for every column of `node`'s row."""
        index = self.indexOf(node)
        if not index.isValid():
            return
        last = self.createIndex(index.row(), self.COLUMN_COUNT - 1, node)
        self.dataChanged.emit(index, last)

    def world_matrix(self, node: Node) -> numpy.ndarray:
        """Product of the local transforms from the root down to `node` inclusive."""
        chain = []
        cur = node
        while cur is not None:
            chain.append(cur)
            cur = cur.parent

        matrix = numpy.eye(4)
        for n in reversed(chain):
            local = n.local_matrix()
            if local is not None:
                matrix = matrix @ local
        return matrix

    # ==============================================================
    # Drag-drop support
    # ==============================================================

    def supportedDropActions(self):
        return Qt.DropAction.MoveAction | Qt.DropAction.CopyAction

    def mimeTypes(self):
        return [EditorMimeTypes.NODE]

    def mimeData(self, indexes):
        """Serialize the dragged node. Only single-item drags are supported."""
        if len(indexes) != 1 or not indexes[0].isValid():
            return None
        return create_node_mime_data(indexes[0].internalPointer())

    def canDropMimeData(self, data, action, row, column, parent):
        if not data.hasText() or column > 0 or not parent.isValid():
            return False
        target: Node = parent.internalPointer()
        return policy_for(target).accepts_children

    def dropMimeData(self, data, action, row, column, parent):
        if not data.hasText() or column > 0 or not parent.isValid():
            return False
        if action == Qt.DropAction.IgnoreAction:
            return True

        target: Node = parent.internalPointer()
        if not policy_for(target).accepts_children:
            return False

        node = parse_node_mime_data(data)
        if node is None:
            return False

        if self._undo_stack is None:
            log.warn("SceneModel: drop ignored, no undo stack attached")
            return False

        self._undo_stack.push(AddSceneObjectCommand(self, target, node))
        return True
