"""
Trajectories: curves fitted through rail points.

Trajectories are owned by the route topology, not by the scene tree.
Rail points and connectors keep plain non-owning references to them and
call recalculate() whenever they are moved or rotated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy

from railscene.core import Event

if TYPE_CHECKING:
    from railscene.scene.rail import Link, RailConnector, RailPoint


class Trajectory:
    """Base curve. Subclasses refit their geometry in recalculate()."""

    def __init__(self, name: str = ""):
        self.name = name
        self.on_recalculated: Event[Trajectory] = Event()

    def recalculate(self) -> None:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


def _hermite(p0, m0, p1, m1, t: numpy.ndarray) -> numpy.ndarray:
    t = t[:, None]
    t2 = t * t
    t3 = t2 * t
    h00 = 2 * t3 - 3 * t2 + 1
    h10 = t3 - 2 * t2 + t
    h01 = -2 * t3 + 3 * t2
    h11 = t3 - t2
    return h00 * p0 + h10 * m0 + h01 * p1 + h11 * m1


class SplineTrajectory(Trajectory):
    """
    Cubic Hermite curve from the `front` connector, through the
    intermediate rail `points`, to the `back` connector.

    The curve leaves `front` through its forward slot and enters `back`
    through its backward slot. Tangents of the control points come from
    RailPoint.get_tangent().
    """

    def __init__(
        self,
        front: "RailConnector",
        back: "RailConnector",
        points: "list[RailPoint] | None" = None,
        name: str = "",
        samples: int = 16,
    ):
        super().__init__(name)
        if samples < 1:
            raise ValueError("samples must be positive")
        self.front = front
        self.back = back
        self.points = list(points or [])
        self.samples = samples
        self.vertices = numpy.zeros((0, 3))
        self.length = 0.0
        self.recalculate_count = 0

    def attach(self) -> None:
        self.front.set_fwd(self)
        self.back.set_bwd(self)
        for point in self.points:
            point.trajectory = self
        self.recalculate()

    def detach(self) -> None:
        self.front.set_null(self)
        self.back.set_null(self)
        for point in self.points:
            if point.trajectory is self:
                point.trajectory = None

    def control_points(self) -> "list[RailPoint]":
        return [self.front, *self.points, self.back]

    def recalculate(self) -> None:
        controls = self.control_points()
        t = numpy.linspace(0.0, 1.0, self.samples + 1)

        pieces = []
        for i, (a, b) in enumerate(zip(controls, controls[1:])):
            segment = _hermite(a.position, a.get_tangent(), b.position, b.get_tangent(), t)
            pieces.append(segment if i == 0 else segment[1:])

        self.vertices = numpy.vstack(pieces)
        self.length = float(numpy.sum(numpy.linalg.norm(numpy.diff(self.vertices, axis=0), axis=1)))
        self.recalculate_count += 1
        self.on_recalculated.emit(self)

    def next_trajectory(self) -> "Link":
        """Neighbour beyond the back connector."""
        return self.back.get_fwd(self)

    def prev_trajectory(self) -> "Link":
        """Neighbour before the front connector."""
        return self.front.get_bwd(self)
