"""
Dependency provisioning for committed addons.
"""

import logging
from pathlib import Path

from addonkit.core.process import CommandError, run_command
from addonkit.errors import DependencyProvisionError

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_COMMAND = ["npm", "install", "."]


class NpmInstaller:
    """DependencyInstaller running the package manager inside the addon directory."""

    def __init__(self, command: list[str] | None = None, timeout: float | None = None):
        self.command = list(command or DEFAULT_INSTALL_COMMAND)
        self.timeout = timeout

    async def provision(self, addon_dir: Path) -> None:
        """
        Install the dependencies of an addon.

        Raises:
            DependencyProvisionError: If the tool exits non-zero
        """
        logger.info("Install dependencies %s", addon_dir)

        try:
            await run_command(self.command, cwd=addon_dir, timeout=self.timeout)
        except CommandError as e:
            raise DependencyProvisionError(
                f"Failed to install dependencies in {addon_dir}: {e}",
                name=addon_dir.name,
            ) from e
