"""
Terrain points: scene objects bound to a vertex of a shared buffer.

Moving a TerrainPoint writes the new vertex straight into the host copy
of the buffer region and enqueues a copy request. The render side drains
the queue once per frame, before submitting work, and is responsible for
not overwriting a region that an in-flight frame still reads.
"""

from __future__ import annotations

import threading

import numpy

from railscene.geombase import transform_point
from railscene.scene.node import Node
from railscene.scene.scene_object import SceneObject


class BufferInfo:
    """Vertex buffer region: host staging data and the renderer-visible copy."""

    def __init__(self, data):
        self.data = numpy.array(data, dtype=numpy.float32).reshape(-1, 3)
        self.device = self.data.copy()

    def __len__(self) -> int:
        return len(self.data)


class CopyQueue:
    """
    Pending host-to-device copies.

    copy() is called from the edit context, drain() from the render
    scheduler; the pending list is shared between them.
    """

    def __init__(self):
        self._pending: list[BufferInfo] = []
        self._lock = threading.Lock()

    def copy(self, info: BufferInfo) -> None:
        with self._lock:
            if not any(p is info for p in self._pending):
                self._pending.append(info)

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def drain(self) -> int:
        """Apply all pending copies; returns the number of regions copied."""
        with self._lock:
            pending, self._pending = self._pending, []
        for info in pending:
            numpy.copyto(info.device, info.data)
        return len(pending)


class TerrainPoint(SceneObject):
    def __init__(
        self,
        copy_queue: CopyQueue,
        buffer: BufferInfo,
        local_to_world: numpy.ndarray,
        vertex_index: int,
        compiled: Node | None = None,
        box: Node | None = None,
        name: str | None = None,
    ):
        if not 0 <= vertex_index < len(buffer):
            raise IndexError(f"vertex index {vertex_index} out of range for buffer of {len(buffer)}")

        local_to_world = numpy.array(local_to_world, dtype=float)
        position = transform_point(local_to_world, buffer.data[vertex_index])
        super().__init__(compiled, box, position, local_to_world=local_to_world, name=name)

        self._world_to_local = numpy.linalg.inv(local_to_world)
        self._buffer = buffer
        self._vertex_index = vertex_index
        self._copy_queue = copy_queue

    @property
    def world_to_local(self) -> numpy.ndarray:
        return self._world_to_local.copy()

    @property
    def vertex_index(self) -> int:
        return self._vertex_index

    def set_position(self, position) -> None:
        super().set_position(position)
        self._buffer.data[self._vertex_index] = transform_point(self._world_to_local, self._position)
        self._copy_queue.copy(self._buffer)
