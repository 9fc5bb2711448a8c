"""
Настройки редактора маршрута.

Централизованное хранение настроек между сессиями через QSettings.
Настройки хранятся в:
- Windows: реестр HKEY_CURRENT_USER\\Software\\RailScene\\RouteEditor
- Linux: ~/.config/RailScene/RouteEditor.conf
- macOS: ~/Library/Preferences/com.railscene.RouteEditor.plist
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from PyQt6.QtCore import QSettings

from railscene.scene import masks
from railscene.serialization import scene_io


class EditorSettings:
    """
    Менеджер настроек редактора.

    Singleton-класс для доступа к настройкам из любого места.
    Для тестов можно создать экземпляр поверх отдельного ini-файла.
    """

    _instance: "EditorSettings | None" = None

    # Ключи настроек
    KEY_VIEW_MASK = "Scene/viewMask"
    KEY_UNDO_DEPTH = "Editor/undoDepth"
    KEY_SPLINE_SAMPLES = "Topology/splineSamples"
    KEY_SEARCH_PATHS = "Assets/searchPaths"

    DEFAULT_UNDO_DEPTH = 1000
    DEFAULT_SPLINE_SAMPLES = 16

    def __init__(self, path: str | Path | None = None):
        if path is None:
            self._settings = QSettings("RailScene", "RouteEditor")
        else:
            self._settings = QSettings(str(path), QSettings.Format.IniFormat)

    @classmethod
    def instance(cls) -> "EditorSettings":
        """Получить singleton экземпляр."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get(self, key: str, default: Any = None) -> Any:
        """Получить значение настройки."""
        return self._settings.value(key, default)

    def set(self, key: str, value: Any) -> None:
        """Установить значение настройки."""
        self._settings.setValue(key, value)

    def remove(self, key: str) -> None:
        self._settings.remove(key)

    def sync(self) -> None:
        """Принудительно сохранить настройки на диск."""
        self._settings.sync()

    # --- Удобные методы для частых настроек ---

    def _get_int(self, key: str, default: int) -> int:
        value = self.get(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_view_mask(self) -> int:
        """Маска вида дерева сцены."""
        return self._get_int(self.KEY_VIEW_MASK, masks.SCENE_OBJECTS)

    def set_view_mask(self, mask: int) -> None:
        # QSettings хранит 64-битное значение как строку
        self.set(self.KEY_VIEW_MASK, str(int(mask)))

    def get_undo_depth(self) -> int:
        return self._get_int(self.KEY_UNDO_DEPTH, self.DEFAULT_UNDO_DEPTH)

    def set_undo_depth(self, depth: int) -> None:
        if depth < 0:
            raise ValueError("undo depth must be non-negative")
        self.set(self.KEY_UNDO_DEPTH, int(depth))

    def get_spline_samples(self) -> int:
        """Число отрезков на участок сплайна между соседними точками."""
        samples = self._get_int(self.KEY_SPLINE_SAMPLES, self.DEFAULT_SPLINE_SAMPLES)
        return samples if samples > 0 else self.DEFAULT_SPLINE_SAMPLES

    def set_spline_samples(self, samples: int) -> None:
        if samples < 1:
            raise ValueError("spline samples must be positive")
        self.set(self.KEY_SPLINE_SAMPLES, int(samples))

    def get_search_paths(self) -> list[Path]:
        """
        Пути поиска файлов объектов.

        Если в настройках ничего нет, используется переменная
        окружения RRS2_ROOT.
        """
        value = self.get(self.KEY_SEARCH_PATHS)
        if not value:
            return scene_io.search_paths()
        if isinstance(value, str):
            value = value.split(os.pathsep)
        return [Path(p) for p in value if p]

    def set_search_paths(self, paths) -> None:
        self.set(self.KEY_SEARCH_PATHS, os.pathsep.join(str(p) for p in paths))
