import numpy


class AABB:
    """Axis-Aligned Bounding Box in 3D space."""

    def __init__(self, min_point: numpy.ndarray, max_point: numpy.ndarray):
        self.min_point = numpy.asarray(min_point, dtype=float)
        self.max_point = numpy.asarray(max_point, dtype=float)

    def __repr__(self):
        return f"AABB(min_point={self.min_point}, max_point={self.max_point})"

    @staticmethod
    def from_points(points: numpy.ndarray) -> "AABB":
        """Create an AABB that encompasses a set of points."""
        points = numpy.asarray(points, dtype=float)
        return AABB(numpy.min(points, axis=0), numpy.max(points, axis=0))

    def merge(self, other: "AABB | None") -> "AABB":
        """Merge this AABB with another AABB and return the resulting AABB."""
        if other is None:
            return self
        return AABB(numpy.minimum(self.min_point, other.min_point),
                    numpy.maximum(self.max_point, other.max_point))

    def transformed(self, matrix: numpy.ndarray) -> "AABB":
        """AABB of this box after applying a 4x4 matrix (widened by rotation)."""
        corners = self.get_corners_homogeneous()
        moved = numpy.dot(matrix, corners.T).T[:, :3]
        return AABB.from_points(moved)

    @property
    def centre(self) -> numpy.ndarray:
        return (self.min_point + self.max_point) * 0.5

    @property
    def extent(self) -> numpy.ndarray:
        return self.max_point - self.min_point

    def get_corners_homogeneous(self) -> numpy.ndarray:
        """Get the 8 corners of the AABB in homogeneous coordinates."""
        lo, hi = self.min_point, self.max_point
        return numpy.array([
            [x, y, z, 1.0]
            for x in (lo[0], hi[0])
            for y in (lo[1], hi[1])
            for z in (lo[2], hi[2])
        ])
