"""
Install Pipeline.

This module takes an addon from a remote source to a registered state.

Stages, strictly ordered:
1. Stage      - fetch the source into a private staging directory
2. Validate   - read and check package.json
3. Authorize  - ask the host policy hook
4. Commit     - replace registry_root/<name> with the staged tree
5. Optimize   - build the client bundle (client-capable only)
6. Provision  - install the addon's dependencies
7. Activate   - load the server side (server-capable only)
8. Reload     - refresh the registry cache (optional)
9. Notify     - emit ``addons.install``

Stages 1-4 are fail-fast: the first error aborts the install and, before
the commit, removes the staging directory, so a failed install never
leaves anything in the registry root. Stages 5-7 are fail-soft: the addon
stays installed and their errors are returned on the InstallResult.
"""

import asyncio
import logging
import os
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from addonkit.addon.activation import ActivationGateway
from addonkit.addon.collaborators import (
    Authorizer,
    DependencyInstaller,
    Fetcher,
    Publisher,
)
from addonkit.addon.descriptor import (
    HIDDEN_MARKER,
    AddonDescriptor,
    check_addon_name,
    parse_descriptor,
)
from addonkit.addon.registry import AddonRegistry
from addonkit.addon.staging import StagingArea
from addonkit.core.locks import NameLocks
from addonkit.errors import (
    ActivationError,
    AddonError,
    CommitError,
    DependencyProvisionError,
    FetchError,
    OptimizeError,
    PolicyRejectedError,
)

logger = logging.getLogger(__name__)

INSTALL_EVENT = "addons.install"


@dataclass
class InstallResult:
    """
    Result of a committed install.

    Attributes:
        descriptor: The installed addon
        errors: Fail-soft errors of the optimize, provision and activate stages
    """

    descriptor: AddonDescriptor
    errors: list[AddonError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def degraded(self) -> bool:
        return bool(self.errors)

    def raise_for_errors(self) -> None:
        """Raise the first captured error, if any."""
        if self.errors:
            raise self.errors[0]


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def replace_tree(source: Path, target: Path) -> None:
    """
    Copy source over target, replacing whatever target held.

    The copy is assembled in a hidden sibling of target and swapped in by
    rename, so target is either the old tree or the complete new tree.

    Args:
        source: Directory to copy
        target: Destination directory
    """
    token = uuid.uuid4().hex[:8]
    incoming = target.with_name(f"{HIDDEN_MARKER}{target.name}.incoming-{token}")
    displaced = target.with_name(f"{HIDDEN_MARKER}{target.name}.old-{token}")

    try:
        shutil.copytree(source, incoming, symlinks=True)
    except OSError:
        shutil.rmtree(incoming, ignore_errors=True)
        raise

    had_target = target.exists() or target.is_symlink()
    try:
        if had_target:
            os.replace(target, displaced)
        try:
            os.replace(incoming, target)
        except OSError:
            if had_target:
                os.replace(displaced, target)
            raise
    except OSError:
        shutil.rmtree(incoming, ignore_errors=True)
        raise

    if had_target:
        try:
            _remove_path(displaced)
        except OSError as e:
            logger.warning("Failed to remove replaced tree %s: %s", displaced, e)


class InstallPipeline:
    """Orchestrates the install stages for one addon source at a time."""

    def __init__(
        self,
        registry: AddonRegistry,
        staging: StagingArea,
        fetcher: Fetcher,
        authorizer: Authorizer,
        installer: DependencyInstaller,
        gateway: ActivationGateway,
        publisher: Publisher,
        locks: NameLocks | None = None,
    ):
        self.registry = registry
        self.staging = staging
        self.fetcher = fetcher
        self.authorizer = authorizer
        self.installer = installer
        self.gateway = gateway
        self.publisher = publisher
        self.locks = locks or NameLocks()

    async def _fetch(self, source_ref: str, staging_dir: Path) -> None:
        try:
            await self.fetcher.clone(source_ref, staging_dir)
        except AddonError:
            raise
        except Exception as e:
            raise FetchError(f"Failed to fetch {source_ref}: {e}") from e

    def _validate(self, staging_dir: Path) -> AddonDescriptor:
        descriptor = parse_descriptor(staging_dir)
        check_addon_name(descriptor.name)
        return descriptor

    async def _authorize(self, descriptor: AddonDescriptor) -> None:
        try:
            await self.authorizer.authorize(descriptor)
        except PolicyRejectedError:
            raise
        except Exception as e:
            raise PolicyRejectedError(
                f"Addon {descriptor.name} rejected: {e}", name=descriptor.name
            ) from e

    async def _commit(self, descriptor: AddonDescriptor, staging_dir: Path) -> Path:
        addon_dir = self.registry.registry_root / descriptor.name

        try:
            await asyncio.to_thread(replace_tree, staging_dir, addon_dir)
        except OSError as e:
            raise CommitError(
                f"Failed to commit {descriptor.name} to {addon_dir}: {e} "
                f"(staged copy kept in {staging_dir})",
                name=descriptor.name,
                staging_dir=staging_dir,
            ) from e

        await self.staging.destroy(staging_dir)

        descriptor.installed_path = addon_dir
        descriptor.is_default = self.registry.is_default(descriptor.name)
        return addon_dir

    async def _optimize(self, descriptor: AddonDescriptor) -> None:
        await self.gateway.activate_client(descriptor)

    async def _provision(self, descriptor: AddonDescriptor) -> None:
        try:
            await self.installer.provision(descriptor.installed_path)
        except DependencyProvisionError:
            raise
        except Exception as e:
            raise DependencyProvisionError(
                f"Failed to install dependencies of {descriptor.name}: {e}",
                name=descriptor.name,
            ) from e

    async def _activate(self, descriptor: AddonDescriptor) -> None:
        await self.gateway.activate_server(descriptor)

    async def _post_commit(self, descriptor: AddonDescriptor) -> list[AddonError]:
        steps = []
        if descriptor.is_client_capable:
            steps.append(self._optimize)
        steps.append(self._provision)
        if descriptor.is_server_capable:
            steps.append(self._activate)

        errors: list[AddonError] = []
        for step in steps:
            try:
                await step(descriptor)
            except (OptimizeError, DependencyProvisionError, ActivationError) as e:
                logger.warning("Addon %s installed with errors: %s", descriptor.name, e)
                errors.append(e)
        return errors

    async def install(self, source_ref: str, reload: bool = True) -> InstallResult:
        """
        Install an addon from a source reference.

        Args:
            source_ref: Source handed to the fetcher (e.g. a git URL)
            reload: Refresh the registry cache once the addon is in place

        Returns:
            InstallResult carrying the descriptor and any fail-soft errors

        Raises:
            StagingError: If no staging directory can be allocated
            FetchError: If the source cannot be fetched
            MissingMetadataError: If the source has no package.json
            InvalidAddonError: If the metadata is invalid
            PolicyRejectedError: If the host hook rejects the addon
            CommitError: If the addon cannot be moved into the registry root
        """
        logger.info("Install add-on %s", source_ref)

        staging_dir = await self.staging.create()
        try:
            await self._fetch(source_ref, staging_dir)
            descriptor = self._validate(staging_dir)
        except BaseException:
            await self.staging.destroy(staging_dir)
            raise

        async with self.locks.hold(descriptor.name):
            try:
                await self._authorize(descriptor)
            except BaseException:
                await self.staging.destroy(staging_dir)
                raise

            await self._commit(descriptor, staging_dir)
            errors = await self._post_commit(descriptor)

            if reload:
                addons = await asyncio.to_thread(self.registry.refresh)
                descriptor = addons.get(descriptor.name, descriptor)

        self.publisher.emit(INSTALL_EVENT, descriptor)

        if errors:
            logger.warning(
                "Installed %s %s with %d error(s)",
                descriptor.name,
                descriptor.version,
                len(errors),
            )
        else:
            logger.info("Installed %s %s", descriptor.name, descriptor.version)

        return InstallResult(descriptor=descriptor, errors=errors)
