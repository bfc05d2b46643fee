"""
Addon Manager.

This module wires the lifecycle components together.

Key features:
- Startup sequence: defaults sync, client optimization, server activation
- install / uninstall / list / refresh entry points
- Shared per-name locks between install and uninstall
- Default subprocess and importlib collaborators built from settings
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from addonkit.addon.activation import ActivationGateway
from addonkit.addon.bundler import RequireJsBundler
from addonkit.addon.collaborators import (
    AllowAll,
    Authorizer,
    Bundler,
    DependencyInstaller,
    Fetcher,
    HostLoader,
    Publisher,
)
from addonkit.addon.defaults import DefaultsSynchronizer
from addonkit.addon.descriptor import AddonDescriptor
from addonkit.addon.fetch import GitFetcher
from addonkit.addon.install import InstallPipeline, InstallResult
from addonkit.addon.loader import ModuleLoader
from addonkit.addon.outcome import Outcome, failures
from addonkit.addon.provision import NpmInstaller
from addonkit.addon.registry import AddonRegistry
from addonkit.addon.staging import StagingArea
from addonkit.addon.uninstall import UninstallPipeline
from addonkit.config import AddonSettings
from addonkit.core.event_bus import EventBus
from addonkit.core.hooks import HookAuthorizer, HookRegistry
from addonkit.core.locks import NameLocks

logger = logging.getLogger(__name__)

DEFAULT_STATIC_PREFIX = "/static/addons"


@dataclass
class StartupReport:
    """
    Per-addon outcomes of the startup sequence.

    Attributes:
        defaults: Defaults synchronization outcomes
        optimized: Client optimization outcomes
        activated: Server activation outcomes
    """

    defaults: list[Outcome] = field(default_factory=list)
    optimized: list[Outcome] = field(default_factory=list)
    activated: list[Outcome] = field(default_factory=list)

    @property
    def failures(self) -> list[Outcome]:
        return failures(self.defaults + self.optimized + self.activated)


class AddonManager:
    """
    Facade over the registry and lifecycle pipelines.

    Example:
        manager = AddonManager.from_settings(load_settings())
        await manager.start()
        result = await manager.install("https://example.com/addon.git")
    """

    def __init__(
        self,
        registry_root: Path,
        template_root: Path,
        fetcher: Fetcher,
        installer: DependencyInstaller,
        bundler: Bundler,
        loader: HostLoader,
        authorizer: Authorizer | None = None,
        publisher: Publisher | None = None,
        temp_root: Path | None = None,
        path_aliases: dict[str, str] | None = None,
        static_prefix: str = DEFAULT_STATIC_PREFIX,
    ):
        self.registry = AddonRegistry(registry_root, template_root)
        self.publisher = publisher if publisher is not None else EventBus()
        self.loader = loader
        self.static_prefix = static_prefix
        self.locks = NameLocks()

        self.gateway = ActivationGateway(loader, bundler, path_aliases)
        self.defaults = DefaultsSynchronizer(template_root, registry_root, installer)
        self.installs = InstallPipeline(
            registry=self.registry,
            staging=StagingArea(temp_root),
            fetcher=fetcher,
            authorizer=authorizer or AllowAll(),
            installer=installer,
            gateway=self.gateway,
            publisher=self.publisher,
            locks=self.locks,
        )
        self.uninstalls = UninstallPipeline(
            registry=self.registry,
            publisher=self.publisher,
            locks=self.locks,
            on_removed=getattr(loader, "unload", None),
        )

    @classmethod
    def from_settings(
        cls,
        settings: AddonSettings,
        publisher: Publisher | None = None,
        hooks: HookRegistry | None = None,
    ) -> "AddonManager":
        """
        Build a manager with the default git/npm/r.js/importlib collaborators.

        Args:
            settings: Resolved settings
            publisher: Event publisher (a fresh EventBus if None)
            hooks: Host hooks; the ``addons`` hook gates installs when given
        """
        timeout = settings.tool_timeout
        path_aliases = {}
        if settings.require_tools_path is not None:
            path_aliases["require-tools"] = str(settings.require_tools_path)

        return cls(
            registry_root=settings.registry_root,
            template_root=settings.template_root,
            fetcher=GitFetcher(settings.git_command, timeout=timeout),
            installer=NpmInstaller(settings.npm_command, timeout=timeout),
            bundler=RequireJsBundler(settings.bundler_command, timeout=timeout),
            loader=ModuleLoader(),
            authorizer=HookAuthorizer(hooks) if hooks is not None else None,
            publisher=publisher,
            temp_root=settings.temp_root,
            path_aliases=path_aliases,
            static_prefix=settings.static_prefix,
        )

    @property
    def static_mount(self) -> tuple[str, Path]:
        """Public prefix and directory to expose client assets from."""
        return self.static_prefix, self.registry.registry_root

    async def sync_defaults(self) -> list[Outcome]:
        return await self.defaults.sync()

    async def start(self) -> StartupReport:
        """
        Run the startup sequence.

        Per-addon failures are logged and reported, never raised.

        Returns:
            StartupReport
        """
        logger.info("Init addons")
        report = StartupReport()

        report.defaults = await self.sync_defaults()
        for outcome in failures(report.defaults):
            logger.error("Error with default addon %s: %s", outcome.name, outcome.error)
        logger.info("End of default addons installation")

        addons = self.refresh()
        report.optimized = await self.gateway.optimize_all(addons)
        report.activated = await self.gateway.activate_all(addons)

        logger.info("Addons are ready (%d installed)", len(addons))
        return report

    def list(self) -> dict[str, AddonDescriptor]:
        return self.registry.list()

    def refresh(self) -> dict[str, AddonDescriptor]:
        return self.registry.refresh()

    async def install(self, source_ref: str, reload: bool = True) -> InstallResult:
        return await self.installs.install(source_ref, reload=reload)

    async def uninstall(self, name: str, reload: bool = False) -> bool:
        return await self.uninstalls.uninstall(name, reload=reload)

    async def drain(self) -> None:
        """Wait for coroutine event handlers scheduled by install/uninstall."""
        drain = getattr(self.publisher, "drain", None)
        if drain is not None:
            await drain()
