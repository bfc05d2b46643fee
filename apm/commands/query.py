"""
apm query command (-Q, -Qi).
"""

import sys
from typing import Any

from addonkit.addon.descriptor import AddonDescriptor
from addonkit.addon.registry import AddonRegistry
from addonkit.config import AddonSettings


def format_info(addon: AddonDescriptor) -> str:
    """Render the -Qi block of one addon."""
    capabilities = []
    if addon.is_server_capable:
        capabilities.append(f"server ({addon.server_entry})")
    if addon.client is not None:
        capabilities.append(f"client ({addon.client.entry})")

    lines = [
        f"Name         : {addon.name}",
        f"Version      : {addon.version}",
        f"Default      : {'yes' if addon.is_default else 'no'}",
        f"Capabilities : {', '.join(capabilities)}",
        f"Path         : {addon.installed_path}",
    ]
    return "\n".join(lines)


def query_command(args: Any, settings: AddonSettings) -> int:
    """List installed addons, or show details of the named ones with -i."""
    registry = AddonRegistry(settings.registry_root, settings.template_root)
    addons = registry.refresh()

    if not args.info:
        for name in sorted(addons):
            if args.targets and name not in args.targets:
                continue
            marker = " [default]" if addons[name].is_default else ""
            print(f"{name} {addons[name].version}{marker}")
        return 0

    fail_count = 0
    names = args.targets or sorted(addons)
    for index, name in enumerate(names):
        addon = addons.get(name)
        if addon is None:
            print(f"Error: addon '{name}' was not found", file=sys.stderr)
            fail_count += 1
            continue
        if index:
            print()
        print(format_info(addon))

    return 0 if fail_count == 0 else 1
