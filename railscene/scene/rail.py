"""
Rail points and connectors of the route topology.

RailPoint   - точка трассы с касательной и наклоном, знает свою траекторию.
RailConnector - точка стыка двух траекторий: два слота, forward и backward
                (backward - унаследованное поле trajectory).
StaticConnector - неподвижный стык (например, привязанный к модели стрелки).

Любое изменение положения или поворота точки пересчитывает все
траектории, которые на неё опираются.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, NamedTuple

import numpy

from railscene import log
from railscene.geombase import qaxis_angle, qfrom_two_vectors, qidentity, qmul, qrot
from railscene.scene.scene_object import SceneObject
from railscene.serialization.registry import register_node

if TYPE_CHECKING:
    from railscene.scene.node import Node
    from railscene.scene.trajectory import Trajectory

UP = numpy.array([0.0, 0.0, 1.0])
TRACK_AXIS = numpy.array([0.0, 1.0, 0.0])
PITCH_AXIS = numpy.array([1.0, 0.0, 0.0])


class Link(NamedTuple):
    """Neighbour lookup result at a connector."""
    trajectory: "Trajectory | None"
    reversed: bool


@register_node
class RailPoint(SceneObject):
    def __init__(
        self,
        loaded: "Node | None" = None,
        box: "Node | None" = None,
        position=(0.0, 0.0, 0.0),
        tangent: float = 1.0,
        tilt: float = 0.0,
        name: str | None = None,
    ):
        super().__init__(loaded, box, position, name=name)
        # world coordinates are geocentric: local up follows the radius vector
        if numpy.linalg.norm(self._position) > 0.0:
            self._world_quat = qfrom_two_vectors(UP, self._position)
        self.tangent = float(tangent)
        self.tilt = float(tilt)
        self.trajectory: "Trajectory | None" = None
        self._pitch = 0.0

    def set_position(self, position) -> None:
        super().set_position(position)
        self.recalculate()

    def set_rotation(self, quat) -> None:
        """Explicit attitude; it becomes the zero-grade baseline."""
        self._pitch = 0.0
        self._store_rotation(quat)

    def _store_rotation(self, quat) -> None:
        super().set_rotation(quat)
        self.recalculate()

    def recalculate(self) -> None:
        if self.trajectory is not None:
            self.trajectory.recalculate()

    def get_tangent(self) -> numpy.ndarray:
        """World-space track direction scaled by the tangent magnitude."""
        return qrot(self.world_rotation(), numpy.array([0.0, self.tangent, 0.0]))

    def get_tilt(self) -> numpy.ndarray:
        """Rotation by `tilt` degrees about the track axis."""
        return qaxis_angle(TRACK_AXIS, math.radians(self.tilt))

    @property
    def inclination(self) -> float:
        """Applied grade in per mille."""
        return math.tan(self._pitch) * 1000.0

    def set_inclination(self, grade: float) -> None:
        """
        Pitch the point to `grade` per mille.

        The new pitch replaces the previously applied one, so
        set_inclination(0) returns the point to the attitude of the last
        explicit set_rotation().
        """
        pitch = math.atan(grade * 0.001)
        delta = pitch - self._pitch
        self._pitch = pitch
        self._store_rotation(qmul(self._quat, qaxis_angle(PITCH_AXIS, delta)))

    def serialize_fields(self) -> dict:
        data = super().serialize_fields()
        data["tangent"] = self.tangent
        data["tilt"] = self.tilt
        data["pitch"] = self._pitch
        return data

    def deserialize_fields(self, data: dict) -> None:
        super().deserialize_fields(data)
        self.tangent = float(data.get("tangent", 1.0))
        self.tilt = float(data.get("tilt", 0.0))
        self._pitch = float(data.get("pitch", 0.0))


@register_node
class RailConnector(RailPoint):
    """
    Стык траекторий.

    Слоты заполняются с "перетеканием": если запрашиваемый слот занят,
    траектория записывается в противоположный. Третья траектория
    затирает содержимое противоположного слота (совместимость со
    старыми топологиями), об этом пишется предупреждение в лог.
    """

    def __init__(self, loaded: "Node | None" = None, box: "Node | None" = None,
                 position=(0.0, 0.0, 0.0), tangent: float = 1.0, tilt: float = 0.0,
                 name: str | None = None):
        super().__init__(loaded, box, position, tangent, tilt, name)
        self.fwd_trajectory: "Trajectory | None" = None

    @property
    def bwd_trajectory(self) -> "Trajectory | None":
        return self.trajectory

    def recalculate(self) -> None:
        super().recalculate()
        if self.fwd_trajectory is not None and self.fwd_trajectory is not self.trajectory:
            self.fwd_trajectory.recalculate()

    def set_fwd(self, caller: "Trajectory") -> None:
        if self.fwd_trajectory is not None:
            self._warn_overwrite(self.trajectory, caller)
            self.trajectory = caller
        else:
            self.fwd_trajectory = caller

    def set_bwd(self, caller: "Trajectory") -> None:
        if self.trajectory is not None:
            self._warn_overwrite(self.fwd_trajectory, caller)
            self.fwd_trajectory = caller
        else:
            self.trajectory = caller

    def _warn_overwrite(self, dropped: "Trajectory | None", caller: "Trajectory") -> None:
        if dropped is not None and dropped is not caller:
            log.warn(f"{self!r}: both slots occupied, {dropped!r} replaced by {caller!r}")

    def set_null(self, caller: "Trajectory") -> None:
        if caller is self.trajectory:
            self.trajectory = None
        elif caller is self.fwd_trajectory:
            self.fwd_trajectory = None

    def is_free(self) -> bool:
        return self.trajectory is None or self.fwd_trajectory is None

    def get_fwd(self, caller: "Trajectory") -> Link:
        """
        Trajectory on the other side of the connector from `caller`.

        `reversed` is True when `caller` is linked through the backward slot.
        """
        other = self.trajectory if caller is self.fwd_trajectory else self.fwd_trajectory
        return Link(other, caller is self.trajectory)

    def get_bwd(self, caller: "Trajectory") -> Link:
        if caller is self.trajectory:
            return Link(self.fwd_trajectory, True)
        return Link(self.trajectory, False)


@register_node
class StaticConnector(RailConnector):
    """Connector fixed in place: position and rotation edits are ignored."""

    def __init__(self, loaded: "Node | None" = None, box: "Node | None" = None,
                 position=(0.0, 0.0, 0.0), tangent: float = 1.0, tilt: float = 0.0,
                 name: str | None = None):
        super().__init__(loaded, box, position, tangent, tilt, name)
        self._world_quat = qidentity()

    def set_position(self, position) -> None:
        pass

    def set_rotation(self, quat) -> None:
        pass

    def set_inclination(self, grade: float) -> None:
        pass
