"""
Сериализация поддеревьев сцены.

Формат - JSON. Каждый узел пишется записью

    {
        "type": "<имя зарегистрированного класса>",
        "meta": {...},            # метаданные, кроме ссылки на родителя
        "fields": {...},          # serialize_fields() узла
        "children": [...]         # зависит от вида контейнера
    }

Используется редактором для drag-drop (копирование поддерева) и
загрузчиком SingleLoader для отдельных файлов объектов.
Ссылки на траектории не сохраняются: траекториями владеет топология.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Iterable

from railscene.scene.node import (
    PARENT,
    Group,
    LOD,
    Node,
    PagedChild,
    PagedLOD,
    Switch,
)
from railscene.scene import masks
from railscene.serialization.registry import node_type, type_name

FORMAT_VERSION = 1
SEARCH_PATH_ENV = "RRS2_ROOT"


class SceneFormatError(ValueError):
    """Malformed or unsupported serialized scene data."""


# ==============================================================
#   Node <-> dict
# ==============================================================

def serialize(node: Node) -> dict:
    name = type_name(type(node))
    if name is None:
        raise SceneFormatError(f"{type(node).__name__} is not serializable")

    meta = {k: v for k, v in node.meta_items() if k != PARENT and _is_plain(v)}
    data = {
        "type": name,
        "meta": meta,
        "fields": node.serialize_fields(),
    }
    if node.serializes_children:
        data["children"] = _serialize_children(node)
    return data


def _serialize_children(node: Node) -> list:
    if isinstance(node, Switch):
        return [{"mask": c.mask, "node": serialize(c.node)} for c in node.children]
    if isinstance(node, LOD):
        return [{"ratio": c.minimum_screen_height_ratio, "node": serialize(c.node)} for c in node.children]
    if isinstance(node, PagedLOD):
        return [{"ratio": c.minimum_screen_height_ratio, "filename": c.filename} for c in node.children]
    if isinstance(node, Group):
        return [serialize(c) for c in node.children]
    return []


def _is_plain(value) -> bool:
    return isinstance(value, (str, int, float, bool)) or value is None


def deserialize(data: dict) -> Node:
    if not isinstance(data, dict):
        raise SceneFormatError(f"node record must be an object, got {type(data).__name__}")

    cls = node_type(data.get("type", ""))
    if cls is None:
        raise SceneFormatError(f"unknown node type {data.get('type')!r}")

    node = cls()
    for key, value in data.get("meta", {}).items():
        if key != PARENT:
            node.set_value(key, value)

    try:
        node.deserialize_fields(data.get("fields", {}))
        _deserialize_children(node, data.get("children", []))
    except SceneFormatError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise SceneFormatError(f"bad {data.get('type')} record: {exc}") from exc
    return node


def _deserialize_children(node: Node, records: list) -> None:
    for record in records:
        if isinstance(node, Switch):
            node.add_child(int(record.get("mask", masks.SCENE_OBJECTS)), deserialize(record["node"]))
        elif isinstance(node, LOD):
            node.add_child(deserialize(record["node"]), float(record.get("ratio", 0.0)))
        elif isinstance(node, PagedLOD):
            node.children.append(PagedChild(float(record.get("ratio", 0.0)), record["filename"]))
        elif isinstance(node, Group):
            node.add_child(deserialize(record))
        else:
            raise SceneFormatError(f"{node.class_name()} cannot have children")


# ==============================================================
#   Text and files
# ==============================================================

def dumps(node: Node) -> str:
    return json.dumps({"version": FORMAT_VERSION, "root": serialize(node)})


def loads(text: str) -> Node:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SceneFormatError(f"invalid JSON: {exc}") from exc

    if not isinstance(document, dict) or "root" not in document:
        raise SceneFormatError("document has no root node")
    if document.get("version", FORMAT_VERSION) > FORMAT_VERSION:
        raise SceneFormatError(f"unsupported format version {document['version']}")
    return deserialize(document["root"])


def write_file(node: Node, path: str | Path) -> None:
    Path(path).write_text(dumps(node), encoding="utf-8")


def read_file(path: str | Path) -> Node:
    return loads(Path(path).read_text(encoding="utf-8"))


def search_paths() -> list[Path]:
    value = os.environ.get(SEARCH_PATH_ENV, "")
    return [Path(p) for p in value.split(os.pathsep) if p]


def find_file(filename: str, paths: Iterable[str | Path] | None = None) -> Path | None:
    """Resolve `filename` against search paths; absolute names are checked as is."""
    candidate = Path(filename)
    if candidate.is_absolute():
        return candidate if candidate.is_file() else None

    for base in (search_paths() if paths is None else paths):
        full = Path(base) / candidate
        if full.is_file():
            return full
    return None