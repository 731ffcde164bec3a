"""Notifications from the ledger to dependent read models."""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

OPERATION_CHANGED = "operation:changed"
RELOAD_ALL = "reload:all"

Handler = Callable[[dict[str, Any]], None]


class LedgerEvents:
    """Explicit publish/subscribe hub passed to the services that need it.

    There is no module-level instance; whoever wires the application owns it.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        """Register a handler and return a function that removes it."""
        self._subscribers.setdefault(name, []).append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(name, handler)

        return unsubscribe

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def emit(self, name: str, payload: dict[str, Any] | None = None) -> None:
        """Call every handler for ``name``; a failing handler does not stop the rest."""
        for handler in list(self._subscribers.get(name, ())):
            try:
                handler(payload or {})
            except Exception:
                logger.exception("Error in event handler for %s", name)
