"""Observable state containers consumed by the presentation layer.

Each container owns a projection (``items``, ``is_loading``, ``last_error``)
and notifies its subscribers after every change. Service errors never leave
a container: they end up in ``last_error`` as a readable message.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from ..core.models import Entity
from ..core.subscription import Subscription, listener_registry
from ..errors import SyncError

E = TypeVar("E", bound=Entity)

log = logging.getLogger(__name__)


class ObservableState:
    """Loading flag, last error and a subscriber list."""

    def __init__(self) -> None:
        self.is_loading = False
        self.last_error: str | None = None
        self._listeners, self._register = listener_registry()

    def subscribe(self, listener: Callable[[Any], None]) -> Subscription:
        """Call ``listener(self)`` after every state change."""
        return self._register(listener)

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def fail(self, action: str, exc: SyncError) -> None:
        log.error("Failed to %s: %s", action, exc)
        self.last_error = f"Failed to {action}: {exc}"


class ListState(ObservableState, Generic[E], ABC):
    """A list projection that is only ever replaced wholesale by :meth:`refresh`.

    A failed refresh empties the list. Only the most recently started
    refresh may change the projection; results of older ones, or of one
    started before :meth:`invalidate`, are discarded.
    """

    noun = "items"

    def __init__(self) -> None:
        super().__init__()
        self.items: list[E] = []
        self._generation = 0

    @abstractmethod
    async def fetch(self) -> list[E]:
        """Load the current items from the service."""

    def invalidate(self) -> None:
        """Drop the result of any refresh still in flight."""
        self._generation += 1

    async def refresh(self) -> bool:
        self.invalidate()
        generation = self._generation
        self.is_loading = True
        self.last_error = None
        self.notify()
        try:
            items = await self.fetch()
        except SyncError as exc:
            if generation == self._generation:
                self.items = []
                self.fail(f"load {self.noun}", exc)
            return False
        else:
            if generation != self._generation:
                log.info("Discarding outdated %s result", self.noun)
                return False
            self.items = items
            log.info("Loaded %d %s", len(self.items), self.noun)
            return True
        finally:
            if generation == self._generation:
                self.is_loading = False
                self.notify()

    async def create_then_refresh(self, action: str, call: Callable[[], Awaitable[Any]]) -> bool:
        """Run a create call and, on success, refresh the list.

        On success the loading flag is cleared by :meth:`refresh`; on
        failure it is cleared here because no refresh happens.
        """
        self.is_loading = True
        self.last_error = None
        self.notify()
        try:
            await call()
        except SyncError as exc:
            self.fail(action, exc)
            self.is_loading = False
            self.notify()
            return False
        return await self.refresh()

    async def confirmed_update(
        self, action: str, item_id: str, call: Callable[[], Awaitable[dict[str, Any]]]
    ) -> bool:
        """Write first, then splice the confirmed changes into the local item.

        A failed write leaves the projection untouched. An item that
        disappeared while the write was in flight is skipped.
        """
        self.last_error = None
        try:
            changes = await call()
        except SyncError as exc:
            self.fail(action, exc)
            self.notify()
            return False
        self.splice(item_id, changes)
        self.notify()
        return True

    def find(self, item_id: str) -> E | None:
        return next((item for item in self.items if item.id == item_id), None)

    def splice(self, item_id: str, changes: dict[str, Any]) -> None:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                self.items[index] = item.model_copy(update=changes)
                return
