"""
Staging Area Manager.

Allocates and destroys the private working directories an install fetches
into before the addon is committed to the registry root.
"""

import asyncio
import contextlib
import logging
import shutil
import tempfile
import time
import uuid
from collections.abc import AsyncIterator
from pathlib import Path

from addonkit.errors import StagingError

logger = logging.getLogger(__name__)


class StagingArea:
    """
    Factory for staging directories.

    Each directory returned by create() belongs to exactly one install and
    must be handed back to destroy() once the install no longer needs it.
    """

    def __init__(self, temp_root: Path | None = None):
        """
        Initialize StagingArea.

        Args:
            temp_root: Parent for staging directories (system temp if None)
        """
        self.temp_root = temp_root

    def _allocate(self) -> Path:
        if self.temp_root is None:
            return Path(tempfile.mkdtemp(prefix="addons"))

        self.temp_root.mkdir(parents=True, exist_ok=True)
        staging_dir = self.temp_root / f"t{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
        staging_dir.mkdir()
        return staging_dir

    async def create(self) -> Path:
        """
        Allocate a fresh staging directory.

        Returns:
            Path to the new, empty directory

        Raises:
            StagingError: If the directory cannot be created
        """
        try:
            staging_dir = await asyncio.to_thread(self._allocate)
        except OSError as e:
            raise StagingError(f"Failed to create staging directory: {e}") from e

        logger.debug("Created staging directory %s", staging_dir)
        return staging_dir

    async def destroy(self, staging_dir: Path) -> bool:
        """
        Recursively delete a staging directory.

        Failures are logged, never raised.

        Args:
            staging_dir: Directory returned by create()

        Returns:
            True if the directory is gone
        """
        try:
            await asyncio.to_thread(shutil.rmtree, staging_dir)
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning("Failed to remove staging directory %s: %s", staging_dir, e)
            return False

        logger.debug("Removed staging directory %s", staging_dir)
        return True

    @contextlib.asynccontextmanager
    async def staged(self) -> AsyncIterator[Path]:
        """Context manager yielding a staging directory destroyed on exit."""
        staging_dir = await self.create()
        try:
            yield staging_dir
        finally:
            await self.destroy(staging_dir)
