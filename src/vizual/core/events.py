from __future__ import annotations

from collections.abc import Callable
from types import TracebackType
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Subscription:
    """Handle returned by every ``subscribe``/``on_*`` call.

    Disposing twice is a no-op. Works as a context manager and as an
    ``ExitStack.callback`` target.
    """

    def __init__(self, dispose: Callable[[], None]) -> None:
        self._dispose: Callable[[], None] | None = dispose

    @property
    def disposed(self) -> bool:
        return self._dispose is None

    def dispose(self) -> None:
        if self._dispose is None:
            return
        dispose, self._dispose = self._dispose, None
        dispose()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()


class EventEmitter(Generic[T]):
    def __init__(self) -> None:
        self._listeners: list[Callable[[T], Any]] = []

    def subscribe(self, listener: Callable[[T], Any]) -> Subscription:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(_remove)

    def emit(self, value: T) -> None:
        for listener in list(self._listeners):
            listener(value)

    def __len__(self) -> int:
        return len(self._listeners)
