"""
Uninstall Pipeline.

Removes a user-installed addon from the registry root. Default addons are
protected and can only be overwritten by the defaults synchronizer.
"""

import asyncio
import logging
import shutil

from addonkit.addon.collaborators import Publisher
from addonkit.addon.descriptor import check_addon_name
from addonkit.addon.registry import AddonRegistry
from addonkit.core.locks import NameLocks
from addonkit.errors import DefaultAddonProtectedError

logger = logging.getLogger(__name__)

UNINSTALL_EVENT = "addons.uninstall"


class UninstallPipeline:
    """Removes addons by name."""

    def __init__(
        self,
        registry: AddonRegistry,
        publisher: Publisher,
        locks: NameLocks | None = None,
        on_removed=None,
    ):
        """
        Initialize UninstallPipeline.

        Args:
            registry: Registry whose root holds the addon
            publisher: Receives ``addons.uninstall``
            locks: Per-name locks shared with the install pipeline
            on_removed: Optional callable taking the name of a removed addon
        """
        self.registry = registry
        self.publisher = publisher
        self.locks = locks or NameLocks()
        self.on_removed = on_removed

    async def uninstall(self, name: str, reload: bool = False) -> bool:
        """
        Uninstall an addon.

        The registry cache is left as is unless reload is set; callers that
        list() right after must refresh themselves.

        Args:
            name: Addon name
            reload: Refresh the registry cache after removal

        Returns:
            True once the addon directory is gone

        Raises:
            DefaultAddonProtectedError: If the addon is a default addon
            InvalidAddonError: If name is not a plain addon name
            FileNotFoundError: If the addon is not installed
        """
        logger.info("Uninstall add-on %s", name)

        check_addon_name(name)
        if self.registry.is_default(name):
            raise DefaultAddonProtectedError(
                f"Cannot uninstall a default addon: {name}", name=name
            )

        async with self.locks.hold(name):
            await asyncio.to_thread(shutil.rmtree, self.registry.registry_root / name)

            if self.on_removed is not None:
                self.on_removed(name)

            if reload:
                await asyncio.to_thread(self.registry.refresh)

        self.publisher.emit(UNINSTALL_EVENT, {"name": name})
        return True
