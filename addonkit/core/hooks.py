"""
Host Hooks.

This module provides named policy hooks the host can attach to lifecycle
steps, and the authorizer that turns the ``addons`` hook into an install
gate.

Key features:
- Named hook registration with priority ordering
- Plain and async hook callbacks
- First failing hook rejects the whole call
"""

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from addonkit.addon.descriptor import AddonDescriptor
from addonkit.errors import PolicyRejectedError

logger = logging.getLogger(__name__)

# Hook consulted before an addon is committed
ADDONS_HOOK = "addons"


class HookError(Exception):
    """Raised by hook callbacks to reject the payload."""

    pass


@dataclass
class Hook:
    """
    Registered hook callback.

    Attributes:
        callback: Function taking (payload); may be async
        priority: Higher priority runs first
        registration_order: Tie-breaker for same priority
    """

    callback: Callable
    priority: int
    registration_order: int


class HookRegistry:
    """Registry of named hooks."""

    def __init__(self):
        self._hooks: dict[str, list[Hook]] = {}
        self._registration_counter = 0

    def register(self, name: str, callback: Callable, priority: int = 0) -> None:
        """
        Attach a callback to a hook.

        Args:
            name: Hook name (e.g. "addons")
            callback: Function taking (payload); raise to reject
            priority: Execution priority (higher = earlier)
        """
        hook = Hook(callback, priority, self._registration_counter)
        self._registration_counter += 1
        self._hooks.setdefault(name, []).append(hook)

    def has_hook(self, name: str) -> bool:
        return bool(self._hooks.get(name))

    async def use(self, name: str, payload: Any) -> None:
        """
        Run every callback of a hook in priority order.

        Args:
            name: Hook name
            payload: Value passed to each callback

        Raises:
            Exception: Whatever the first failing callback raised
        """
        hooks = sorted(
            self._hooks.get(name, []),
            key=lambda h: (-h.priority, h.registration_order),
        )
        for hook in hooks:
            result = hook.callback(payload)
            if inspect.isawaitable(result):
                await result


class HookAuthorizer:
    """Authorizer delegating to the host's ``addons`` hook."""

    def __init__(self, hooks: HookRegistry, hook_name: str = ADDONS_HOOK):
        self.hooks = hooks
        self.hook_name = hook_name

    async def authorize(self, descriptor: AddonDescriptor) -> None:
        """
        Run the hook for an addon about to be installed.

        Raises:
            PolicyRejectedError: If any hook callback rejects the addon
        """
        try:
            await self.hooks.use(self.hook_name, descriptor)
        except PolicyRejectedError:
            raise
        except Exception as e:
            logger.warning("Addon %s rejected by hook: %s", descriptor.name, e)
            raise PolicyRejectedError(
                f"Addon {descriptor.name} rejected: {e}", name=descriptor.name
            ) from e
