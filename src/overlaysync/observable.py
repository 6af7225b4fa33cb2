# SPDX-License-Identifier: Apache-2.0
"""Synchronous change-notification cells.

``Signal`` delivers every emitted value to its subscribers; ``Observable``
holds a current value and only notifies when ``set`` actually changes it.
Handlers run in subscription order before ``emit``/``set`` returns, so a chain
of dependent updates has fully settled by the time the outermost call
completes.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar("T")


class Signal(Generic[T]):
    def __init__(self) -> None:
        self._handlers: list[Callable[[T], None]] = []

    def subscribe(self, handler: Callable[[T], None]) -> Callable[[], None]:
        """Register ``handler``; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

        return _unsubscribe

    def emit(self, value: T) -> None:
        # Snapshot so handlers may unsubscribe while being notified
        for handler in list(self._handlers):
            handler(value)

    def __len__(self) -> int:
        return len(self._handlers)


class Observable(Signal[T]):
    """A value cell that notifies subscribers with the new value on change."""

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Store ``value``; notify and return True only if it differs."""
        if value == self._value:
            return False
        self._value = value
        self.emit(value)
        return True

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"


MaybeObservable = Union[Observable[T], T]


def to_observable(value: Any) -> Observable[Any]:
    """Wrap a plain value in an :class:`Observable`; pass observables through."""
    if isinstance(value, Observable):
        return value
    return Observable(value)
