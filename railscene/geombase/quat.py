"""
Quaternion and homogeneous matrix helpers.

Quaternions are numpy arrays in (x, y, z, w) order, matrices are 4x4
numpy arrays acting on column vectors: a point p is mapped as M @ (p, 1).
"""

import math
import numpy


def qidentity() -> numpy.ndarray:
    return numpy.array([0.0, 0.0, 0.0, 1.0])


def qmul(q1: numpy.ndarray, q2: numpy.ndarray) -> numpy.ndarray:
    """Multiply two quaternions (q1 applied after q2)."""
    x1, y1, z1, w1 = q1
    x2, y2, z2, w2 = q2
    return numpy.array([
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2,
        w1*w2 - x1*x2 - y1*y2 - z1*z2
    ])


def qinv(q: numpy.ndarray) -> numpy.ndarray:
    """Inverse of a unit quaternion."""
    return numpy.array([-q[0], -q[1], -q[2], q[3]])


def qnormalize(q: numpy.ndarray) -> numpy.ndarray:
    n = numpy.linalg.norm(q)
    if n == 0.0:
        return qidentity()
    return numpy.asarray(q, dtype=float) / n


def qrot(q: numpy.ndarray, v: numpy.ndarray) -> numpy.ndarray:
    """Rotate vector v by quaternion q."""
    x, y, z = v
    rotated = qmul(qmul(q, numpy.array([x, y, z, 0.0])), qinv(q))
    return rotated[:3]


def qaxis_angle(axis, angle: float) -> numpy.ndarray:
    """Rotation by angle (radians) about axis."""
    axis = numpy.asarray(axis, dtype=float)
    axis = axis / numpy.linalg.norm(axis)
    s = math.sin(angle / 2)
    return numpy.array([axis[0] * s, axis[1] * s, axis[2] * s, math.cos(angle / 2)])


def qfrom_two_vectors(src, dst) -> numpy.ndarray:
    """Shortest rotation taking direction src onto direction dst."""
    a = numpy.asarray(src, dtype=float)
    b = numpy.asarray(dst, dtype=float)
    a = a / numpy.linalg.norm(a)
    b = b / numpy.linalg.norm(b)

    dot = float(numpy.dot(a, b))
    if dot < -1.0 + 1e-12:
        # antiparallel: any axis orthogonal to src will do
        axis = numpy.cross(a, [1.0, 0.0, 0.0])
        if numpy.linalg.norm(axis) < 1e-6:
            axis = numpy.cross(a, [0.0, 1.0, 0.0])
        return qaxis_angle(axis, math.pi)

    cross = numpy.cross(a, b)
    return qnormalize(numpy.array([cross[0], cross[1], cross[2], 1.0 + dot]))


def rotation_matrix(q: numpy.ndarray) -> numpy.ndarray:
    """4x4 rotation matrix of quaternion q."""
    x, y, z, w = q
    m = numpy.eye(4)
    m[:3, :3] = [
        [1 - 2*(y**2 + z**2), 2*(x*y - z*w), 2*(x*z + y*w)],
        [2*(x*y + z*w), 1 - 2*(x**2 + z**2), 2*(y*z - x*w)],
        [2*(x*z - y*w), 2*(y*z + x*w), 1 - 2*(x**2 + y**2)]
    ]
    return m


def translate(v) -> numpy.ndarray:
    m = numpy.eye(4)
    m[:3, 3] = v
    return m


def scale(v) -> numpy.ndarray:
    m = numpy.eye(4)
    m[0, 0], m[1, 1], m[2, 2] = v
    return m


def transform_point(m: numpy.ndarray, p) -> numpy.ndarray:
    """Apply homogeneous matrix m to 3D point p."""
    x, y, z = p
    return (m @ numpy.array([x, y, z, 1.0]))[:3]
