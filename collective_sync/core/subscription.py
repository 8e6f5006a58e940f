"""Unsubscribe handle returned by every listener registration."""

from __future__ import annotations

from collections.abc import Callable


class Subscription:
    """Handle that removes a listener exactly once.

    Calling :meth:`unsubscribe` more than once is harmless, so owners can
    call it unconditionally on teardown. The handle is also a context
    manager.
    """

    def __init__(self, remove: Callable[[], None]) -> None:
        self._remove: Callable[[], None] | None = remove

    def unsubscribe(self) -> None:
        remove, self._remove = self._remove, None
        if remove is not None:
            remove()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


def listener_registry() -> tuple[list, Callable[[Callable], Subscription]]:
    """Return ``(listeners, register)`` for a simple listener list."""
    listeners: list = []

    def register(listener: Callable) -> Subscription:
        listeners.append(listener)

        def remove() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return Subscription(remove)

    return listeners, register
