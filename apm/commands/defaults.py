"""
apm defaults command (-Y).

Copies every template addon into the registry root and installs its
dependencies, reporting each entry separately.
"""

import asyncio
import sys
from typing import Any

from addonkit.addon.manager import AddonManager
from addonkit.config import AddonSettings


def defaults_command(args: Any, settings: AddonSettings) -> int:
    manager = AddonManager.from_settings(settings)
    outcomes = asyncio.run(manager.sync_defaults())

    fail_count = 0
    for outcome in outcomes:
        if outcome.ok:
            print(f"Updated {outcome.name}")
        else:
            print(f"Failed {outcome.name}: {outcome.error}", file=sys.stderr)
            fail_count += 1

    if args.verbose:
        print(f"\nUpdated: {len(outcomes) - fail_count}, Failed: {fail_count}")

    return 0 if fail_count == 0 else 1
