"""
Server Module Loader.

This module provides the default host loader for server-side addons.

Key features:
- importlib integration for dynamic loading
- Module caching per addon name
- Optional ``setup()`` entry hook (plain or async)
- Unload support so reinstalled addons load fresh code
"""

import importlib.util
import inspect
import logging
import re
import sys
from pathlib import Path
from types import ModuleType

from addonkit.addon.descriptor import parse_descriptor

logger = logging.getLogger(__name__)


class LoaderError(Exception):
    """Base exception for loader-related errors."""

    pass


def module_name_for(addon_name: str) -> str:
    """Return the sys.modules key used for an addon's server module."""
    return "addonkit_addon_" + re.sub(r"\W", "_", addon_name)


class ModuleLoader:
    """
    HostLoader importing an addon's server entry as a Python module.

    When the module defines ``setup()``, it is called once after import,
    and awaited if it returns an awaitable.
    """

    def __init__(self):
        self._modules: dict[str, ModuleType] = {}

    def _import(self, addon_name: str, entry_point: Path) -> ModuleType:
        module_name = module_name_for(addon_name)
        spec = importlib.util.spec_from_file_location(module_name, entry_point)

        if spec is None or spec.loader is None:
            raise LoaderError(f"Failed to create module spec for {entry_point}")

        module = importlib.util.module_from_spec(spec)

        # Add to sys.modules before execution
        sys.modules[module_name] = module

        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            raise

        return module

    async def load(self, server_path: Path) -> None:
        """
        Load the server side of an addon.

        Args:
            server_path: Addon directory

        Raises:
            LoaderError: If the entry point is missing or fails to import
        """
        descriptor = parse_descriptor(server_path)
        if descriptor.server_entry is None:
            raise LoaderError(f"Addon {descriptor.name} has no server entry")

        entry_point = server_path / descriptor.server_entry
        if not entry_point.exists():
            raise LoaderError(f"Entry point not found: {entry_point}")

        # A reinstalled addon replaces the previously loaded module
        self.unload(descriptor.name)

        logger.info("Addon %s is a server addon: %s", descriptor.name, server_path)

        try:
            module = self._import(descriptor.name, entry_point)
            setup = getattr(module, "setup", None)
            if callable(setup):
                result = setup()
                if inspect.isawaitable(result):
                    await result
        except LoaderError:
            raise
        except Exception as e:
            self.unload(descriptor.name)
            raise LoaderError(f"Failed to load addon module {descriptor.name}: {e}") from e

        self._modules[descriptor.name] = module

    def unload(self, addon_name: str) -> None:
        """
        Forget a loaded addon module.

        Args:
            addon_name: Name of the addon
        """
        self._modules.pop(addon_name, None)
        sys.modules.pop(module_name_for(addon_name), None)

    def is_loaded(self, addon_name: str) -> bool:
        return addon_name in self._modules

    def get_module(self, addon_name: str) -> ModuleType | None:
        return self._modules.get(addon_name)
