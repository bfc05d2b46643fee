"""
Defaults Synchronizer.

Copies every template addon over its registry counterpart at startup and
provisions its dependencies. Entries are independent: a broken template
entry is reported in its own Outcome and never stops the others.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from addonkit.addon.collaborators import DependencyInstaller
from addonkit.addon.outcome import Outcome
from addonkit.errors import AddonError, DependencyProvisionError, InvalidTemplateLayoutError

logger = logging.getLogger(__name__)


def force_copy(source: Path, target: Path) -> None:
    """Replace target with a full copy of source, hidden files included."""
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    elif target.exists() or target.is_symlink():
        target.unlink()
    shutil.copytree(source, target, symlinks=True)


class DefaultsSynchronizer:
    """Keeps default addons in the registry root identical to the template root."""

    def __init__(
        self,
        template_root: Path,
        registry_root: Path,
        installer: DependencyInstaller,
    ):
        self.template_root = template_root
        self.registry_root = registry_root
        self.installer = installer

    async def _sync_entry(self, entry: Path) -> Path:
        if entry.is_symlink() or not entry.is_dir():
            raise InvalidTemplateLayoutError(
                f"There is a file inside defaults addons directory: {entry}",
                name=entry.name,
            )

        addon_dir = self.registry_root / entry.name
        logger.info("Update default addon %s", addon_dir)
        await asyncio.to_thread(force_copy, entry, addon_dir)

        try:
            await self.installer.provision(addon_dir)
        except AddonError:
            raise
        except Exception as e:
            raise DependencyProvisionError(
                f"Failed to install dependencies of {entry.name}: {e}", name=entry.name
            ) from e

        return addon_dir

    async def _settle(self, entry: Path) -> Outcome:
        try:
            addon_dir = await self._sync_entry(entry)
        except Exception as e:
            logger.error("Default addon %s failed: %s", entry.name, e)
            return Outcome.failure(entry.name, e)
        return Outcome.success(entry.name, addon_dir)

    async def sync(self) -> list[Outcome]:
        """
        Synchronize every template entry concurrently.

        Returns:
            One Outcome per immediate entry of the template root
        """
        try:
            entries = sorted(self.template_root.iterdir())
            self.registry_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot synchronize defaults from %s: %s", self.template_root, e)
            return []

        return list(await asyncio.gather(*(self._settle(entry) for entry in entries)))
