"""
Event Bus - Fire-and-forget notifications for addon lifecycle events.

This module implements the default Publisher:
- Exact subscriptions (``addons.install``)
- Glob subscriptions (``addons.*``), receiving the event name as ``src``
- Priority-based execution (higher priority = earlier execution)
- Handler isolation: a failing handler never stops the others or the emitter

Unlike a process-wide singleton, an EventBus is created by its owner and
injected where events are emitted.
"""

import asyncio
import inspect
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class EventBusError(Exception):
    """Base exception for event bus errors."""

    pass


class RegistrationError(EventBusError):
    """Raised when handler registration fails."""

    pass


@dataclass
class Handler:
    """
    Represents a registered event handler.

    Attributes:
        callback: The handler function
        priority: Higher priority executes first
        registration_order: Tie-breaker for same priority (lower = earlier)
        requires_src: Whether handler expects 'src' parameter (pattern subscriptions)
    """

    callback: Callable
    priority: int
    registration_order: int
    requires_src: bool = False

    def __call__(self, event_name: str, payload: Any) -> Any:
        """Execute the handler."""
        if self.requires_src:
            return self.callback(event_name, payload)
        return self.callback(payload)


class EventBus:
    """
    In-process publisher.

    Coroutine handlers are scheduled on the running loop; without a running
    loop they are run to completion before emit() returns.
    """

    def __init__(self):
        self._routes: dict[str, list[Handler]] = {}
        self._patterns: list[tuple[re.Pattern, Handler]] = []
        self._registration_counter = 0
        self._pending: set[asyncio.Task] = set()

    def _next_registration_order(self) -> int:
        order = self._registration_counter
        self._registration_counter += 1
        return order

    def _glob_to_regex(self, pattern: str) -> re.Pattern:
        """
        Convert glob pattern to compiled regex.

        ``*`` matches any characters within a dot-separated segment.
        """
        escaped = re.escape(pattern)
        return re.compile("^" + escaped.replace(r"\*", "[^.]*") + "$")

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0) -> None:
        """
        Register a handler for an exact event name.

        Args:
            event_name: Event name to match
            callback: Handler taking (payload)
            priority: Execution priority (higher = earlier)
        """
        handler = Handler(
            callback=callback,
            priority=priority,
            registration_order=self._next_registration_order(),
        )
        self._routes.setdefault(event_name, []).append(handler)

    def subscribe_re(self, pattern: str, callback: Callable, priority: int = 0) -> None:
        """
        Register a handler for a glob pattern.

        Args:
            pattern: Glob pattern to match event names
            callback: Handler taking (src, payload)
            priority: Execution priority (higher = earlier)

        Raises:
            RegistrationError: If callback doesn't accept 'src' parameter
        """
        params = list(inspect.signature(callback).parameters)
        if len(params) < 2 or params[0] != "src":
            raise RegistrationError(
                f"Pattern subscriber must take 'src' as first parameter. Got: {params}"
            )

        handler = Handler(
            callback=callback,
            priority=priority,
            registration_order=self._next_registration_order(),
            requires_src=True,
        )
        self._patterns.append((self._glob_to_regex(pattern), handler))

    def on(self, event_name: str, priority: int = 0):
        """
        Decorator form of subscribe().

        Example:
            @bus.on("addons.install")
            def announce(addon):
                print(addon.name)
        """

        def decorator(func: Callable) -> Callable:
            self.subscribe(event_name, func, priority)
            return func

        return decorator

    def _find_handlers(self, event_name: str) -> list[Handler]:
        handlers = list(self._routes.get(event_name, []))
        for pattern, handler in self._patterns:
            if pattern.match(event_name):
                handlers.append(handler)
        return sorted(handlers, key=lambda h: (-h.priority, h.registration_order))

    def _schedule(self, event_name: str, coro: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                asyncio.run(coro)
            except Exception:
                logger.exception("Event handler failed for '%s'", event_name)
            return

        task = loop.create_task(coro)
        self._pending.add(task)

        def _done(t: asyncio.Task) -> None:
            self._pending.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(
                    "Event handler failed for '%s'",
                    event_name,
                    exc_info=t.exception(),
                )

        task.add_done_callback(_done)

    def emit(self, event_name: str, payload: Any) -> None:
        """
        Dispatch an event to every matching handler.

        Args:
            event_name: Event name
            payload: Event payload
        """
        for handler in self._find_handlers(event_name):
            try:
                result = handler(event_name, payload)
            except Exception:
                # Log but don't stop execution
                logger.exception("Event handler failed for '%s'", event_name)
                continue

            if inspect.iscoroutine(result):
                self._schedule(event_name, result)

    async def drain(self) -> None:
        """Wait for scheduled coroutine handlers to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
