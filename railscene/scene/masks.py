"""
Traversal mask bits of switch children.

A switch child is visible to a view when `child.mask & view_mask != 0`.
"""

SCENE_OBJECTS = 0x1
TERRAIN = 0x2
TRACKS = 0x4
WIREFRAME = 0x8

ALL = 0xFFFFFFFFFFFFFFFF
