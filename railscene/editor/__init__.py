"""Editor-side model of the scene tree and its helpers."""

from railscene.editor.undo_stack import UndoCommand, UndoStack
from railscene.editor.editor_commands import (
    AddNodeCommand,
    AddSceneObjectCommand,
    MoveObjectCommand,
    RemoveNodeCommand,
    RenameObjectCommand,
    RotateObjectCommand,
)
from railscene.editor.scene_model import SceneModel
from railscene.editor.settings import EditorSettings

__all__ = [
    "UndoCommand",
    "UndoStack",
    "AddNodeCommand",
    "AddSceneObjectCommand",
    "MoveObjectCommand",
    "RemoveNodeCommand",
    "RenameObjectCommand",
    "RotateObjectCommand",
    "SceneModel",
    "EditorSettings",
]
