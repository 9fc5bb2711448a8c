"""
Пакет scene - узлы сцены, пространственные объекты, топология путей.
"""

from railscene.scene import masks
from railscene.scene.node import (
    LOD,
    NAME,
    PARENT,
    Geometry,
    Group,
    MatrixTransform,
    Node,
    NodeKind,
    PagedLOD,
    Switch,
    policy_for,
    visible_children,
)
from railscene.scene.bounds import calculate_transforms, compute_bounds
from railscene.scene.scene_object import SceneObject, SingleLoader
from railscene.scene.rail import Link, RailConnector, RailPoint, StaticConnector
from railscene.scene.terrain import BufferInfo, CopyQueue, TerrainPoint
from railscene.scene.trajectory import SplineTrajectory, Trajectory

__all__ = [
    "masks",
    "NAME", "PARENT",
    "Node", "NodeKind", "Geometry", "Group", "MatrixTransform", "Switch", "LOD", "PagedLOD",
    "policy_for", "visible_children",
    "compute_bounds", "calculate_transforms",
    "SceneObject", "SingleLoader",
    "Link", "RailPoint", "RailConnector", "StaticConnector",
    "BufferInfo", "CopyQueue", "TerrainPoint",
    "Trajectory", "SplineTrajectory",
]
