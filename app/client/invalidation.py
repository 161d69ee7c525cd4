"""Broadcast "invalidate all" signal for holders of cached request results."""

import inspect
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[], Awaitable[None] | None]


class InvalidationBus:
    def __init__(self) -> None:
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def invalidate_all(self) -> None:
        """Notify every subscriber.

        All handlers run even if one fails; the first failure is re-raised
        afterwards.
        """
        first_error: Exception | None = None
        for handler in list(self._handlers):
            try:
                result = handler()
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.exception("Invalidation handler %r failed", handler)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
