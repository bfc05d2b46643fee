"""
apm install command (-S).

Install addons from git repositories.
"""

import asyncio
import sys
from typing import Any

from addonkit.addon.manager import AddonManager
from addonkit.config import AddonSettings
from addonkit.errors import AddonError
from apm.cli import APMError


def install_command(args: Any, settings: AddonSettings) -> int:
    """
    Execute install command.

    Args:
        args: Parsed command-line arguments
        settings: Resolved settings

    Returns:
        Exit code (0 for success, non-zero for error)

    Raises:
        APMError: If no targets are given
    """
    if not args.targets:
        raise APMError("No targets specified (usage: apm -S <git-url>[#ref])")

    manager = AddonManager.from_settings(settings)
    return asyncio.run(install_async(manager, args))


async def install_async(manager: AddonManager, args: Any) -> int:
    """Install every target, one after the other."""
    success_count = 0
    fail_count = 0

    for target in args.targets:
        try:
            result = await manager.install(target, reload=not args.no_reload)
        except AddonError as e:
            print(f"Failed to install {target}: {e}", file=sys.stderr)
            fail_count += 1
            continue

        addon = result.descriptor
        if result.degraded:
            print(f"Installed {addon.name} {addon.version} with errors:", file=sys.stderr)
            for error in result.errors:
                print(f"  {type(error).__name__}: {error}", file=sys.stderr)
            fail_count += 1
        else:
            print(f"Installed {addon.name} {addon.version}")
            success_count += 1

    await manager.drain()

    # Summary
    if args.verbose:
        print(f"\nInstalled: {success_count}, Failed: {fail_count}")

    return 0 if fail_count == 0 else 1
