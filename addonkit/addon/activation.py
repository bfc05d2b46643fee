"""
Activation Gateway.

Hands server-capable addons to the host loader and client-capable addons
to the bundler.
"""

import logging
from pathlib import Path

from addonkit.addon.collaborators import Bundler, HostLoader
from addonkit.addon.descriptor import BUILT_CLIENT_FILE, AddonDescriptor
from addonkit.addon.outcome import Outcome
from addonkit.errors import ActivationError, OptimizeError

logger = logging.getLogger(__name__)


class ActivationGateway:
    """
    Entry point for activating committed addons.

    Attributes:
        loader: Host loader for server-side code
        bundler: Client bundler
        path_aliases: Module path aliases passed to every client build
    """

    def __init__(
        self,
        loader: HostLoader,
        bundler: Bundler,
        path_aliases: dict[str, str] | None = None,
    ):
        self.loader = loader
        self.bundler = bundler
        self.path_aliases = dict(path_aliases or {})

    def _require_path(self, descriptor: AddonDescriptor) -> Path:
        if descriptor.installed_path is None:
            raise ValueError(f"Addon {descriptor.name} is not installed")
        return descriptor.installed_path

    async def activate_server(self, descriptor: AddonDescriptor) -> None:
        """
        Load the server side of an addon.

        Raises:
            ActivationError: If the addon cannot be loaded
        """
        try:
            await self.loader.load(self._require_path(descriptor))
        except ActivationError:
            raise
        except Exception as e:
            raise ActivationError(
                f"Failed to activate {descriptor.name}: {e}", name=descriptor.name
            ) from e

    async def activate_client(self, descriptor: AddonDescriptor) -> Path:
        """
        Build the client bundle of an addon.

        Returns:
            Path to the built bundle

        Raises:
            OptimizeError: If the addon is not client side or the build fails
        """
        if descriptor.client is None:
            raise OptimizeError(
                f"{descriptor.name} is not a client side addon", name=descriptor.name
            )

        try:
            base_dir = self._require_path(descriptor)
            return await self.bundler.build(
                base_dir,
                descriptor.client.entry,
                base_dir / BUILT_CLIENT_FILE,
                self.path_aliases,
            )
        except OptimizeError:
            raise
        except Exception as e:
            raise OptimizeError(
                f"Failed to optimize {descriptor.name}: {e}", name=descriptor.name
            ) from e

    async def optimize_all(self, addons: dict[str, AddonDescriptor]) -> list[Outcome]:
        """
        Build every client-capable addon, one at a time.

        Returns:
            One Outcome per client-capable addon
        """
        logger.info("Optimize client addons")
        outcomes = []
        for name, descriptor in addons.items():
            if not descriptor.is_client_capable:
                continue
            try:
                output = await self.activate_client(descriptor)
            except OptimizeError as e:
                logger.error("Error optimizing %s: %s", name, e)
                outcomes.append(Outcome.failure(name, e))
            else:
                outcomes.append(Outcome.success(name, output))
        return outcomes

    async def activate_all(self, addons: dict[str, AddonDescriptor]) -> list[Outcome]:
        """
        Load every server-capable addon, one at a time.

        Returns:
            One Outcome per server-capable addon
        """
        logger.info("Load server addons")
        outcomes = []
        for name, descriptor in addons.items():
            if not descriptor.is_server_capable:
                continue
            try:
                await self.activate_server(descriptor)
            except ActivationError as e:
                logger.error("Error loading %s: %s", name, e)
                outcomes.append(Outcome.failure(name, e))
            else:
                outcomes.append(Outcome.success(name))
        return outcomes
