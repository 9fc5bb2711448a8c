"""
Базовые геометрические классы (Geometric Base).

- quat - кватернионы (x, y, z, w) и однородные матрицы 4x4 на numpy
- AABB - ограничивающий параллелепипед
"""

from .aabb import AABB
from .quat import (
    qidentity,
    qmul,
    qinv,
    qnormalize,
    qrot,
    qaxis_angle,
    qfrom_two_vectors,
    rotation_matrix,
    translate,
    scale,
    transform_point,
)

__all__ = [
    'AABB',
    'qidentity',
    'qmul',
    'qinv',
    'qnormalize',
    'qrot',
    'qaxis_angle',
    'qfrom_two_vectors',
    'rotation_matrix',
    'translate',
    'scale',
    'transform_point',
]
