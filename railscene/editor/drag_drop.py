"""Drag-drop support for the scene tree.

A dragged subtree travels as its serialized text, so it can be dropped
into another SceneModel (or another editor instance) as a copy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from PyQt6.QtCore import QMimeData

from railscene import log
from railscene.serialization import scene_io

if TYPE_CHECKING:
    from railscene.scene.node import Node


class EditorMimeTypes:
    """MIME types used by the scene tree."""

    # Serialized subtree (scene_io.dumps)
    NODE = "text/plain"


def create_node_mime_data(node: "Node") -> QMimeData | None:
    """
    Create QMimeData carrying a serialized copy of `node` and its subtree.

    Returns None if the subtree contains nodes that cannot be serialized.
    """
    try:
        text = scene_io.dumps(node)
    except scene_io.SceneFormatError as e:
        log.warn(e, f"Cannot drag {node!r}")
        return None

    mime = QMimeData()
    mime.setText(text)
    return mime


def parse_node_mime_data(mime: QMimeData) -> "Node | None":
    """
    Rebuild the dragged subtree from QMimeData.

    Returns None if there is no payload or it is not a valid subtree.
    """
    if not mime.hasText():
        return None
    try:
        return scene_io.loads(mime.text())
    except scene_io.SceneFormatError as e:
        log.warn(e, "Rejected drop payload")
        return None
