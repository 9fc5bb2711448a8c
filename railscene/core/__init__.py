"""Core helpers shared by scene and editor layers."""

from railscene.core.event import Event

__all__ = ["Event"]
