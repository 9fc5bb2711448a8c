"""Observer list used for change notifications outside of Qt signals."""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")

Handler = Callable[[T], None]


class Event(Generic[T]):
    """
    Список подписчиков без зависимости от Qt.

    Usage:
        traj.on_recalculated += redraw       # или subscribe(redraw)
        traj.on_recalculated -= redraw       # или unsubscribe(redraw)
        traj.on_recalculated.emit(traj)

    Подписчики вызываются в порядке подписки, повторная подписка
    того же обработчика ничего не меняет. Обработчик может
    отписаться прямо во время рассылки.
    """

    def __init__(self):
        # dict: порядок вставки и проверка членства за O(1)
        self._subscribers: dict[Handler, None] = {}

    def subscribe(self, handler: Handler) -> Handler:
        self._subscribers.setdefault(handler, None)
        return handler

    def unsubscribe(self, handler: Handler) -> None:
        self._subscribers.pop(handler, None)

    def __iadd__(self, handler: Handler) -> "Event[T]":
        self.subscribe(handler)
        return self

    def __isub__(self, handler: Handler) -> "Event[T]":
        self.unsubscribe(handler)
        return self

    def __contains__(self, handler: Handler) -> bool:
        return handler in self._subscribers

    def emit(self, value: T) -> None:
        for handler in tuple(self._subscribers):
            handler(value)

    def clear(self) -> None:
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)

    def __bool__(self) -> bool:
        return bool(self._subscribers)
