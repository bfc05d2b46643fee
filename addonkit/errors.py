"""
Addon Error Taxonomy.

Every failure surfaced by the lifecycle pipelines is one of the classes
below. Stages 1-4 of an install raise them; stages 5-7 collect them on the
InstallResult instead.
"""

from pathlib import Path


class AddonError(Exception):
    """Base exception for addon lifecycle errors."""

    def __init__(self, message: str, name: str | None = None):
        super().__init__(message)
        self.name = name


class StagingError(AddonError, OSError):
    """Raised when a staging directory cannot be allocated."""

    pass


class FetchError(AddonError):
    """Raised when an addon source cannot be fetched."""

    pass


class MissingMetadataError(AddonError):
    """Raised when a fetched addon has no package.json."""

    pass


class InvalidAddonError(AddonError):
    """Raised when addon metadata does not describe a legal addon."""

    pass


class PolicyRejectedError(AddonError):
    """Raised when the authorization hook rejects an addon."""

    pass


class CommitError(AddonError):
    """
    Raised when a staged addon cannot be moved into the registry root.

    The staging directory is left in place for manual recovery and its
    location is kept on ``staging_dir``.
    """

    def __init__(
        self,
        message: str,
        name: str | None = None,
        staging_dir: Path | None = None,
    ):
        super().__init__(message, name)
        self.staging_dir = staging_dir


class OptimizeError(AddonError):
    """Raised when the client bundle of an addon cannot be built."""

    pass


class DependencyProvisionError(AddonError):
    """Raised when installing an addon's dependencies fails."""

    pass


class ActivationError(AddonError):
    """Raised when the host loader cannot activate an addon's server code."""

    pass


class DefaultAddonProtectedError(AddonError):
    """Raised when removing an addon that ships with the template root."""

    pass


class InvalidTemplateLayoutError(AddonError):
    """Raised for template root entries that are not addon directories."""

    pass


__all__ = [
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
