"""
addonkit - Addon lifecycle manager for a host application.

This is the main package that exports the public API: the addon manager,
its lifecycle pipelines and the error taxonomy.
"""

__version__ = "0.1.0"

from addonkit.addon.descriptor import AddonDescriptor, ClientCapability, validate
from addonkit.addon.install import InstallResult
from addonkit.addon.manager import AddonManager, StartupReport
from addonkit.addon.outcome import Outcome
from addonkit.config import AddonSettings, load_settings
from addonkit.core.event_bus import EventBus
from addonkit.core.hooks import HookRegistry
from addonkit.errors import (
    ActivationError,
    AddonError,
    CommitError,
    DefaultAddonProtectedError,
    DependencyProvisionError,
    FetchError,
    InvalidAddonError,
    InvalidTemplateLayoutError,
    MissingMetadataError,
    OptimizeError,
    PolicyRejectedError,
    StagingError,
)

__all__ = [
    "__version__",
    "AddonDescriptor",
    "AddonManager",
    "AddonSettings",
    "ClientCapability",
    "EventBus",
    "HookRegistry",
    "InstallResult",
    "Outcome",
    "StartupReport",
    "load_settings",
    "validate",
    "AddonError",
    "StagingError",
    "FetchError",
    "MissingMetadataError",
    "InvalidAddonError",
    "PolicyRejectedError",
    "CommitError",
    "OptimizeError",
    "DependencyProvisionError",
    "ActivationError",
    "DefaultAddonProtectedError",
    "InvalidTemplateLayoutError",
]
