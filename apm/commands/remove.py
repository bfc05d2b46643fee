"""
apm remove command (-R).
"""

import asyncio
import sys
from typing import Any

from addonkit.addon.manager import AddonManager
from addonkit.config import AddonSettings
from addonkit.errors import AddonError
from apm.cli import APMError


def remove_command(args: Any, settings: AddonSettings) -> int:
    """Remove every named addon; exit code 1 if any removal failed."""
    if not args.targets:
        raise APMError("No targets specified (usage: apm -R <name>)")

    manager = AddonManager.from_settings(settings)
    return asyncio.run(remove_async(manager, args.targets))


async def remove_async(manager: AddonManager, names: list[str]) -> int:
    fail_count = 0

    for name in names:
        try:
            await manager.uninstall(name)
        except FileNotFoundError:
            print(f"Failed to remove {name}: not installed", file=sys.stderr)
            fail_count += 1
        except (AddonError, OSError) as e:
            print(f"Failed to remove {name}: {e}", file=sys.stderr)
            fail_count += 1
        else:
            print(f"Removed {name}")

    await manager.drain()
    return 0 if fail_count == 0 else 1
