"""
Client Bundler.

Builds the single-file client bundle of a client-side addon with the
RequireJS optimizer (r.js).
"""

import logging
from pathlib import Path

from addonkit.core.process import CommandError, run_command
from addonkit.errors import OptimizeError

logger = logging.getLogger(__name__)

# Loader plugins resolved through the "require-tools" path alias
DEFAULT_MODULE_MAP = {
    "css": "require-tools/css/css",
    "less": "require-tools/less/less",
}


class RequireJsBundler:
    """Bundler invoking ``r.js -o`` with command-line build options."""

    def __init__(
        self,
        command: str = "r.js",
        module_map: dict[str, str] | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize RequireJsBundler.

        Args:
            command: r.js executable
            module_map: Module ids remapped for every module (``map.*``)
            timeout: Seconds before a build is killed (None waits forever)
        """
        self.command = command
        self.module_map = DEFAULT_MODULE_MAP if module_map is None else module_map
        self.timeout = timeout

    def build_command(
        self,
        base_dir: Path,
        entry_module: str,
        output_file: Path,
        path_aliases: dict[str, str],
    ) -> list[str]:
        cmd = [self.command, "-o", f"baseUrl={base_dir}"]
        for alias, target in path_aliases.items():
            cmd.append(f"paths.{alias}={target}")
        cmd.append(f"name={entry_module}")
        for module_id, target in self.module_map.items():
            cmd.append(f"map.*.{module_id}={target}")
        cmd.append(f"out={output_file}")
        return cmd

    async def build(
        self,
        base_dir: Path,
        entry_module: str,
        output_file: Path,
        path_aliases: dict[str, str],
    ) -> Path:
        """
        Build a client bundle.

        Args:
            base_dir: Addon directory used as baseUrl
            entry_module: Client root module, relative to base_dir
            output_file: Bundle to write
            path_aliases: Module path aliases (``paths.*``)

        Returns:
            output_file

        Raises:
            OptimizeError: If r.js fails
        """
        logger.info("Optimizing %s", base_dir.name)

        cmd = self.build_command(base_dir, entry_module, output_file, path_aliases)
        try:
            await run_command(cmd, timeout=self.timeout)
        except CommandError as e:
            raise OptimizeError(
                f"Failed to optimize {base_dir.name}: {e}", name=base_dir.name
            ) from e

        logger.info("Finished %s optimization", base_dir.name)
        return output_file
