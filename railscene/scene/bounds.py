"""Bounds computation and transform calculation over a subtree."""

from __future__ import annotations

import numpy

from railscene.geombase import AABB
from railscene.scene.node import Geometry, Node


def compute_bounds(node: Node) -> AABB | None:
    """
    Bounds of the children of `node`, in the local space of `node`.

    Transforms of nested nodes are applied; the transform of `node`
    itself is not. Returns None when the subtree has no geometry.
    """
    result = None
    for child in node.child_nodes():
        result = _accumulate(child, numpy.eye(4), result)
    return result


def _accumulate(node: Node, matrix: numpy.ndarray, result: AABB | None) -> AABB | None:
    if isinstance(node, Geometry) and len(node.vertices):
        result = AABB.from_points(node.vertices).transformed(matrix).merge(result)

    local = node.local_matrix()
    if local is not None:
        matrix = matrix @ local

    for child in node.child_nodes():
        result = _accumulate(child, matrix, result)
    return result


def calculate_transforms(node: Node, parent_world: numpy.ndarray | None = None) -> None:
    """Refresh cached local-to-world matrices of every scene object under `node`."""
    world = numpy.eye(4) if parent_world is None else parent_world

    update = getattr(node, "update_transform", None)
    if update is not None:
        update(world)

    local = node.local_matrix()
    if local is not None:
        world = world @ local

    for child in node.child_nodes():
        calculate_transforms(child, world)
