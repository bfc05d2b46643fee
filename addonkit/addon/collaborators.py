"""
Collaborator Interfaces.

The lifecycle pipelines only talk to the outside world through these
protocols. Default implementations live in fetch.py, provision.py,
bundler.py, loader.py, core/hooks.py and core/event_bus.py; tests swap in
fakes.
"""

from pathlib import Path
from typing import Any, Protocol

from addonkit.addon.descriptor import AddonDescriptor


class Fetcher(Protocol):
    async def clone(self, source_ref: str, dest_dir: Path) -> None:
        """Fetch the full file tree of source_ref into dest_dir."""
        ...


class DependencyInstaller(Protocol):
    async def provision(self, addon_dir: Path) -> None:
        """Install the dependencies declared by the addon in addon_dir."""
        ...


class Bundler(Protocol):
    async def build(
        self,
        base_dir: Path,
        entry_module: str,
        output_file: Path,
        path_aliases: dict[str, str],
    ) -> Path:
        """Bundle entry_module into output_file and return it."""
        ...


class HostLoader(Protocol):
    async def load(self, server_path: Path) -> None:
        """Register the addon at server_path with the running host."""
        ...


class Authorizer(Protocol):
    async def authorize(self, descriptor: AddonDescriptor) -> None:
        """Return normally to approve, raise to reject."""
        ...


class Publisher(Protocol):
    def emit(self, event_name: str, payload: Any) -> None:
        """Fire-and-forget notification."""
        ...


class AllowAll:
    """Authorizer approving every addon."""

    async def authorize(self, descriptor: AddonDescriptor) -> None:
        return None
