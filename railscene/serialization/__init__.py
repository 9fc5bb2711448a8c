"""
Serialization of scene subtrees.

scene_io   - JSON (de)serialization, file helpers
registry   - registry of serializable node types
"""
