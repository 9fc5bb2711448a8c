"""
RailScene - модель сцены редактора железнодорожного маршрута.

Основные модули:
- geombase - кватернионы, матрицы 4x4, AABB (numpy)
- scene - узлы сцены, объекты, рельсовая топология, точки рельефа
- serialization - JSON-формат поддеревьев сцены
- editor - модель дерева для Qt, undo/redo, drag-drop, настройки
"""

__version__ = '0.1.0'
