"""
Scene graph nodes.

Узел владеет упорядоченным списком детей. Обратная ссылка на родителя
хранится в метаданных узла (ключ PARENT) как weakref и не владеет
родителем. Правила перечисления детей зависят от вида контейнера
(NodeKind) и собраны в объектах ChildPolicy, по одному на вид:

- GROUP     - все дети видимы;
- SWITCH    - у каждого ребёнка своя маска, видны только дети,
              у которых маска пересекается с маской вида;
- LOD       - дети с порогом детализации, все видимы;
- PAGED_LOD - ленивый контейнер, всегда "пуст" для обхода;
- LEAF      - детей нет.

Все операции SceneModel идут через ChildPolicy, поэтому подсчёт строк,
индексация и удаление видят одну и ту же последовательность.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

import numpy

from railscene.scene import masks
from railscene.serialization.registry import register_node

PARENT = "parent"
NAME = "name"


class NodeKind(Enum):
    LEAF = "leaf"
    GROUP = "group"
    SWITCH = "switch"
    LOD = "lod"
    PAGED_LOD = "paged_lod"


@register_node
class Node:
    """Base scene graph element: metadata only, no children."""

    kind = NodeKind.LEAF

    def __init__(self, name: str | None = None):
        self._meta: dict[str, Any] = {}
        if name is not None:
            self._meta[NAME] = name

    # ---------- metadata ----------

    def set_value(self, key: str, value: Any) -> None:
        self._meta[key] = value

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._meta.get(key, default)

    def has_value(self, key: str) -> bool:
        return key in self._meta

    def remove_value(self, key: str) -> None:
        self._meta.pop(key, None)

    def meta_items(self):
        return self._meta.items()

    @property
    def name(self) -> str | None:
        return self._meta.get(NAME)

    @name.setter
    def name(self, value: str | None) -> None:
        if value is None:
            self._meta.pop(NAME, None)
        else:
            self._meta[NAME] = value

    @property
    def parent(self) -> "Node | None":
        ref = self._meta.get(PARENT)
        return ref() if ref is not None else None

    def set_parent(self, parent: "Node | None") -> None:
        if parent is None:
            self._meta.pop(PARENT, None)
        else:
            self._meta[PARENT] = weakref.ref(parent)

    # ---------- structure ----------

    def child_nodes(self) -> list["Node"]:
        """All owned children in storage order, regardless of masks."""
        return []

    def traverse(self) -> Iterator["Node"]:
        yield self
        for child in self.child_nodes():
            yield from child.traverse()

    def local_matrix(self) -> numpy.ndarray | None:
        """Transform applied to children, None for non-transform nodes."""
        return None

    # ---------- serialization ----------

    # False for nodes that rebuild their children themselves on load
    serializes_children = True

    def serialize_fields(self) -> dict:
        return {}

    def deserialize_fields(self, data: dict) -> None:
        pass

    def class_name(self) -> str:
        return type(self).__name__

    def __repr__(self):
        if self.name:
            return f"{self.class_name()}({self.name!r})"
        return f"{self.class_name()}()"


@register_node
class Geometry(Node):
    """Leaf with a vertex array. Source of bounds."""

    def __init__(self, vertices=None, name: str | None = None):
        super().__init__(name)
        if vertices is None:
            vertices = numpy.zeros((0, 3))
        self.vertices = numpy.asarray(vertices, dtype=float).reshape(-1, 3)

    def serialize_fields(self) -> dict:
        return {"vertices": self.vertices.tolist()}

    def deserialize_fields(self, data: dict) -> None:
        self.vertices = numpy.asarray(data.get("vertices", []), dtype=float).reshape(-1, 3)


@register_node
class Group(Node):
    kind = NodeKind.GROUP

    def __init__(self, name: str | None = None):
        super().__init__(name)
        self.children: list[Node] = []

    def child_nodes(self) -> list[Node]:
        return list(self.children)

    def add_child(self, child: Node) -> None:
        child.set_parent(self)
        self.children.append(child)


@register_node
class MatrixTransform(Group):
    def __init__(self, matrix: numpy.ndarray | None = None, name: str | None = None):
        super().__init__(name)
        self.matrix = numpy.eye(4) if matrix is None else numpy.array(matrix, dtype=float)

    def local_matrix(self) -> numpy.ndarray:
        return self.matrix

    def serialize_fields(self) -> dict:
        return {"matrix": self.matrix.tolist()}

    def deserialize_fields(self, data: dict) -> None:
        self.matrix = numpy.array(data.get("matrix", numpy.eye(4)), dtype=float).reshape(4, 4)


@dataclass
class SwitchChild:
    mask: int
    node: Node


@register_node
class Switch(Node):
    kind = NodeKind.SWITCH

    def __init__(self, name: str | None = None):
        super().__init__(name)
        self.children: list[SwitchChild] = []

    def child_nodes(self) -> list[Node]:
        return [c.node for c in self.children]

    def add_child(self, mask: int, child: Node) -> None:
        child.set_parent(self)
        self.children.append(SwitchChild(mask, child))


@dataclass
class LODChild:
    minimum_screen_height_ratio: float
    node: Node


@register_node
class LOD(Node):
    kind = NodeKind.LOD

    def __init__(self, name: str | None = None):
        super().__init__(name)
        self.children: list[LODChild] = []

    def child_nodes(self) -> list[Node]:
        return [c.node for c in self.children]

    def add_child(self, child: Node, ratio: float = 0.0) -> None:
        child.set_parent(self)
        self.children.append(LODChild(ratio, child))


@dataclass
class PagedChild:
    minimum_screen_height_ratio: float
    filename: str
    node: Node | None = None


@register_node
class PagedLOD(Node):
    """
    Ленивый контейнер. Дети подгружаются пейджером рендера, редактор
    их не обходит: для SceneModel узел всегда пуст.
    """

    kind = NodeKind.PAGED_LOD

    def __init__(self, name: str | None = None):
        super().__init__(name)
        self.children: list[PagedChild] = []

    def child_nodes(self) -> list[Node]:
        return [c.node for c in self.children if c.node is not None]


# ==============================================================
#   Child policies
# ==============================================================

class ChildPolicy:
    """
    Per-kind enumeration and mutation rules.

    Rows are offsets into the sequence of children visible under a view
    mask. All row based operations go through visible_children(), so
    counting, lookup and erasure agree on the order.
    """

    accepts_children = False

    def visible_children(self, node: Node, mask: int) -> list[Node]:
        return []

    def visible_count(self, node: Node, mask: int) -> int:
        return len(self.visible_children(node, mask))

    def has_children(self, node: Node, mask: int) -> bool:
        return self.visible_count(node, mask) > 0

    def child_at(self, node: Node, row: int, mask: int) -> Node | None:
        children = self.visible_children(node, mask)
        if row < 0 or row >= len(children):
            return None
        return children[row]

    def row_of(self, node: Node, child: Node, mask: int) -> int:
        for row, c in enumerate(self.visible_children(node, mask)):
            if c is child:
                return row
        return -1

    def is_visible_mask(self, child_mask: int, view_mask: int) -> bool:
        """Would a child added with child_mask be visible under view_mask."""
        return True

    def child_mask(self, node: Node, child: Node) -> int:
        return masks.ALL

    def can_adopt(self, node: Node, child: Node) -> bool:
        """
        child can go under node: it is detached and node is not
        inside child's own subtree.
        """
        if not self.accepts_children or child.parent is not None:
            return False
        ancestor = node
        while ancestor is not None:
            if ancestor is child:
                return False
            ancestor = ancestor.parent
        return True

    def index_of(self, node: Node, child: Node) -> int:
        """Position of child in node's storage, -1 if absent."""
        return -1

    def position_for_row(self, node: Node, row: int, mask: int) -> int:
        """Storage position the visible row maps to; past the end appends."""
        return 0

    def rows_before(self, node: Node, position: int, mask: int) -> int:
        """Number of children visible under mask stored before position."""
        return 0

    def insert_at(self, node: Node, position: int, child: Node, child_mask: int) -> bool:
        return False

    def insert_child(self, node: Node, row: int, child: Node, child_mask: int, view_mask: int) -> bool:
        return self.insert_at(node, self.position_for_row(node, row, view_mask), child, child_mask)

    def add_child(self, node: Node, child: Node, child_mask: int, view_mask: int) -> bool:
        return self.insert_child(node, self.visible_count(node, view_mask), child, child_mask, view_mask)

    def remove_children(self, node: Node, row: int, count: int, mask: int) -> bool:
        return False

    def detach_child(self, node: Node, child: Node) -> bool:
        """Remove `child` by identity, visible or not."""
        return False


class _LeafPolicy(ChildPolicy):
    pass


class _SequencePolicy(ChildPolicy):
    """Containers storing children as a list in `node.children`."""

    accepts_children = True

    def _entry_node(self, entry) -> Node:
        return entry.node

    def _make_entry(self, child: Node, child_mask: int):
        raise NotImplementedError

    def _is_visible(self, entry, mask: int) -> bool:
        return True

    def _visible_positions(self, node, mask: int) -> list[int]:
        return [i for i, entry in enumerate(node.children) if self._is_visible(entry, mask)]

    def visible_children(self, node, mask: int) -> list[Node]:
        return [self._entry_node(node.children[i]) for i in self._visible_positions(node, mask)]

    def visible_count(self, node, mask: int) -> int:
        return len(self._visible_positions(node, mask))

    def index_of(self, node, child: Node) -> int:
        for i, entry in enumerate(node.children):
            if self._entry_node(entry) is child:
                return i
        return -1

    def position_for_row(self, node, row: int, mask: int) -> int:
        positions = self._visible_positions(node, mask)
        return positions[row] if 0 <= row < len(positions) else len(node.children)

    def rows_before(self, node, position: int, mask: int) -> int:
        return sum(1 for i in self._visible_positions(node, mask) if i < position)

    def insert_at(self, node, position: int, child: Node, child_mask: int) -> bool:
        if not self.can_adopt(node, child):
            return False
        position = max(0, min(position, len(node.children)))
        child.set_parent(node)
        node.children.insert(position, self._make_entry(child, child_mask))
        return True

    def remove_children(self, node, row: int, count: int, mask: int) -> bool:
        positions = self._visible_positions(node, mask)
        if count <= 0 or row < 0 or row + count > len(positions):
            return False

        doomed = positions[row:row + count]
        for i in doomed:
            self._entry_node(node.children[i]).set_parent(None)
        for i in reversed(doomed):
            del node.children[i]
        return True

    def detach_child(self, node, child: Node) -> bool:
        i = self.index_of(node, child)
        if i < 0:
            return False
        child.set_parent(None)
        del node.children[i]
        return True


class _GroupPolicy(_SequencePolicy):
    def _entry_node(self, entry) -> Node:
        return entry

    def _make_entry(self, child: Node, child_mask: int):
        return child


class _SwitchPolicy(_SequencePolicy):
    def _make_entry(self, child: Node, child_mask: int):
        return SwitchChild(child_mask, child)

    def _is_visible(self, entry: SwitchChild, mask: int) -> bool:
        return (entry.mask & mask) != 0

    def is_visible_mask(self, child_mask: int, view_mask: int) -> bool:
        return (child_mask & view_mask) != 0

    def child_mask(self, node, child: Node) -> int:
        for entry in node.children:
            if entry.node is child:
                return entry.mask
        return 0


class _LODPolicy(_SequencePolicy):
    def _make_entry(self, child: Node, child_mask: int):
        return LODChild(0.0, child)


class _PagedLODPolicy(ChildPolicy):
    """Always empty for traversal; children are owned by the pager."""

    def visible_count(self, node, mask: int) -> int:
        return 0

    def has_children(self, node, mask: int) -> bool:
        return False


POLICIES: dict[NodeKind, ChildPolicy] = {
    NodeKind.LEAF: _LeafPolicy(),
    NodeKind.GROUP: _GroupPolicy(),
    NodeKind.SWITCH: _SwitchPolicy(),
    NodeKind.LOD: _LODPolicy(),
    NodeKind.PAGED_LOD: _PagedLODPolicy(),
}


def policy_for(node: Node) -> ChildPolicy:
    return POLICIES[node.kind]


def visible_children(node: Node, mask: int = masks.SCENE_OBJECTS) -> list[Node]:
    return policy_for(node).visible_children(node, mask)
