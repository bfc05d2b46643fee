"""
Addon Registry.

This module provides the cache of installed addons.

Key features:
- Registry root scanning with per-entry failure isolation
- Default addon classification against the template root
- Explicit refresh() instead of incremental mutation
"""

import logging
import threading
from pathlib import Path

from addonkit.addon.descriptor import (
    HIDDEN_MARKER,
    METADATA_FILE,
    AddonDescriptor,
    read_metadata,
    descriptor_from_raw,
    validate,
)
from addonkit.errors import AddonError

logger = logging.getLogger(__name__)


class AddonRegistry:
    """
    Cache of name -> AddonDescriptor for the registry root.

    The cache is never patched in place: every mutating operation is
    followed by a full refresh(), so it always reflects the filesystem as
    of the last scan.
    """

    def __init__(self, registry_root: Path, template_root: Path):
        """
        Initialize AddonRegistry.

        Args:
            registry_root: Directory holding installed addons
            template_root: Directory holding default addon sources
        """
        self.registry_root = registry_root
        self.template_root = template_root
        self._addons: dict[str, AddonDescriptor] | None = None
        self._lock = threading.Lock()

        self.registry_root.mkdir(parents=True, exist_ok=True)

    def is_default(self, name: str) -> bool:
        """
        Check if an addon name belongs to the template root.

        Args:
            name: Addon name

        Returns:
            True if template_root/name exists
        """
        if not name:
            return False
        return (self.template_root / name).exists()

    def scan(self) -> dict[str, AddonDescriptor]:
        """
        Read every valid addon from the registry root.

        Hidden entries, non-directories and directories without metadata are
        skipped. Entries that cannot be read or fail validation are omitted
        without failing the scan.

        Returns:
            Dict of addon name -> descriptor
        """
        addons: dict[str, AddonDescriptor] = {}

        for addon_dir in sorted(self.registry_root.iterdir()):
            if addon_dir.name.startswith(HIDDEN_MARKER):
                continue

            try:
                if not addon_dir.is_dir() or not (addon_dir / METADATA_FILE).exists():
                    continue

                raw = read_metadata(addon_dir)
                if not validate(raw):
                    logger.debug("Skipping %s: invalid %s", addon_dir.name, METADATA_FILE)
                    continue

                is_default = self.is_default(raw["name"])
            except (AddonError, OSError) as e:
                logger.debug("Skipping %s: %s", addon_dir.name, e)
                continue

            descriptor = descriptor_from_raw(raw, installed_path=addon_dir, is_default=is_default)
            addons[descriptor.name] = descriptor

        return addons

    def refresh(self) -> dict[str, AddonDescriptor]:
        """
        Rescan the registry root and replace the cache.

        Returns:
            The refreshed mapping
        """
        addons = self.scan()
        with self._lock:
            self._addons = addons
        logger.debug("Registry refreshed: %d addons", len(addons))
        return dict(addons)

    def list(self) -> dict[str, AddonDescriptor]:
        """
        List cached addons, scanning on first use.

        Returns:
            Dict of addon name -> descriptor
        """
        with self._lock:
            addons = self._addons
        if addons is None:
            return self.refresh()
        return dict(addons)

    def get(self, name: str) -> AddonDescriptor | None:
        """
        Get a cached addon.

        Args:
            name: Addon name

        Returns:
            AddonDescriptor, or None if not in the cache
        """
        return self.list().get(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self.list()
