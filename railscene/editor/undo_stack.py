from __future__ import annotations

from typing import List

from railscene.core import Event


class UndoCommand:
    """
    Базовый класс команды для undo/redo.

    - do() переводит сцену в "новое" состояние;
    - undo() возвращает "старое";
    - merge_with() пытается поглотить следующую по времени команду.

    Команда хранит только минимальное обратное состояние
    (узел и позицию, старое и новое имя и т.п.), а не снимки сцены.
    """

    def __init__(self, text: str = "") -> None:
        self.text = text

    def do(self) -> None:
        raise NotImplementedError

    def undo(self) -> None:
        raise NotImplementedError

    def merge_with(self, other: "UndoCommand") -> bool:
        return False


class UndoStack:
    """
    Журнал команд редактора.

    Все изменения сцены проходят через push(); журнал определяет
    порядок применения и отмены. Ветви истории:
    - _done   - выполненные команды (откатываются через undo);
    - _undone - отменённые команды (возвращаются через redo).

    max_depth > 0 ограничивает глубину истории: самая старая выполненная
    команда выбрасывается, текущее состояние сцены не меняется.

    Команда не может добавлять другие команды из своих do()/undo():
    журнал не реентерабелен.
    """

    def __init__(self, max_depth: int = 1000) -> None:
        if max_depth < 0:
            raise ValueError("max_depth must be non-negative")
        self._done: List[UndoCommand] = []
        self._undone: List[UndoCommand] = []
        self._max_depth = max_depth
        self._clean_index: int | None = 0
        self._busy = False
        self.on_changed: Event[UndoStack] = Event()

    @property
    def can_undo(self) -> bool:
        return bool(self._done)

    @property
    def can_redo(self) -> bool:
        return bool(self._undone)

    @property
    def undo_text(self) -> str:
        return self._done[-1].text if self._done else ""

    @property
    def redo_text(self) -> str:
        return self._undone[-1].text if self._undone else ""

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def commands(self) -> list[UndoCommand]:
        """Выполненные команды, от старых к новым."""
        return list(self._done)

    def clear(self) -> None:
        """Очищает историю; состояние сцены не трогается."""
        self._done.clear()
        self._undone.clear()
        self._clean_index = 0
        self.on_changed.emit(self)

    # ---------- clean state (сохранённый документ) ----------

    def set_clean(self) -> None:
        self._clean_index = len(self._done)
        self.on_changed.emit(self)

    @property
    def is_clean(self) -> bool:
        return self._clean_index == len(self._done)

    # ---------- history ----------

    def push(self, cmd: UndoCommand, merge: bool = False) -> None:
        """
        Выполняет команду и добавляет её в историю.

        merge == True: если последняя команда поглотила cmd
        (merge_with вернул True), cmd применяется, но в историю
        не попадает. Ветка redo очищается в любом случае.
        """
        self._run(cmd.do)

        merged = merge and self._done and self._done[-1].merge_with(cmd)
        if not merged:
            self._done.append(cmd)
            self._trim()

        if self._clean_index is not None and self._clean_index >= len(self._done):
            # состояние "сохранено" ушло в отброшенную ветку redo
            self._clean_index = None
        self._undone.clear()
        self.on_changed.emit(self)

    def undo(self) -> None:
        if not self._done:
            return
        cmd = self._done.pop()
        self._run(cmd.undo)
        self._undone.append(cmd)
        self.on_changed.emit(self)

    def redo(self) -> None:
        if not self._undone:
            return
        cmd = self._undone.pop()
        self._run(cmd.do)
        self._done.append(cmd)
        self._trim()
        self.on_changed.emit(self)

    def _run(self, action) -> None:
        if self._busy:
            raise RuntimeError("UndoStack: command issued from inside another command")
        self._busy = True
        try:
            action()
        finally:
            self._busy = False

    def _trim(self) -> None:
        if self._max_depth > 0 and len(self._done) > self._max_depth:
            self._done.pop(0)
            if self._clean_index is not None:
                self._clean_index = self._clean_index - 1 if self._clean_index > 0 else None

    def __len__(self) -> int:
        return len(self._done)
