"""Controlled / uncontrolled view state."""

from __future__ import annotations

from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Controllable(Generic[T]):
    """A value owned either by an external holder or by the view itself.

    Controlled (``getter`` given): reads go through the getter and writes
    are only forwarded to ``on_change``; the holder decides whether to
    apply them. Uncontrolled: the value is stored here and ``on_change``
    is still notified after each write.

    Values are replaced whole, never edited in place.
    """

    def __init__(
        self,
        initial: T,
        getter: Optional[Callable[[], T]] = None,
        on_change: Optional[Callable[[T], None]] = None,
    ) -> None:
        self._value = initial
        self._getter = getter
        self._on_change = on_change

    @property
    def controlled(self) -> bool:
        return self._getter is not None

    def get(self) -> T:
        if self._getter is not None:
            return self._getter()
        return self._value

    def set(self, value: T) -> None:
        if self._getter is None:
            self._value = value
        if self._on_change is not None:
            self._on_change(value)
