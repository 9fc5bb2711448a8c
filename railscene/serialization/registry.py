"""
Registry of serializable node types.

Usage:
    from railscene.serialization.registry import register_node

    @register_node
    class MyNode(Group):
        def serialize_fields(self) -> dict: ...
        def deserialize_fields(self, data: dict) -> None: ...

The registered name is the class name; it is written into the "type"
field of the serialized record. Registered classes must be constructible
without arguments.
"""

from __future__ import annotations

_TYPES: dict[str, type] = {}


def register_node(cls: type) -> type:
    _TYPES[cls.__name__] = cls
    return cls


def node_type(name: str) -> type | None:
    return _TYPES.get(name)


def type_name(cls: type) -> str | None:
    name = cls.__name__
    return name if _TYPES.get(name) is cls else None


def registered_types() -> list[str]:
    return sorted(_TYPES)
