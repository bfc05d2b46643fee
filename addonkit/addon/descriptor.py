"""
Addon Descriptor System.

This module provides metadata parsing and validation for addons.

Key features:
- package.json parsing into AddonDescriptor
- Validity check (name, version and at least one capability)
- Server-side / client-side capability model
- Directory-safe addon names
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from addonkit.errors import InvalidAddonError, MissingMetadataError

METADATA_FILE = "package.json"

# Entries starting with this marker are ignored by registry scans
HIDDEN_MARKER = "."

# Output of the client bundler, written next to the addon sources
BUILT_CLIENT_FILE = "addon-built.js"


@dataclass
class ClientCapability:
    """
    Client-side part of an addon.

    Attributes:
        entry: Relative path to the client bundle root module
    """

    entry: str


@dataclass
class AddonDescriptor:
    """
    Represents an addon's metadata.

    Attributes:
        name: Addon name (unique identifier, also the directory name)
        version: Addon version
        server_entry: Relative path to server-side code, if any
        client: Client capability, if any
        is_default: Whether the addon ships with the template root
        installed_path: Addon directory once committed
        raw: Raw metadata
    """

    name: str
    version: str
    server_entry: str | None = None
    client: ClientCapability | None = None
    is_default: bool = False
    installed_path: Path | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def is_server_capable(self) -> bool:
        return self.server_entry is not None

    @property
    def is_client_capable(self) -> bool:
        return self.client is not None

    def to_dict(self) -> dict[str, Any]:
        """Render the descriptor in package.json shape plus derived fields."""
        data: dict[str, Any] = {"name": self.name, "version": self.version}
        if self.server_entry is not None:
            data["main"] = self.server_entry
        if self.client is not None:
            data["client"] = {"main": self.client.entry}
        data["default"] = self.is_default
        data["path"] = str(self.installed_path) if self.installed_path else None
        return data


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _client_entry(raw: Mapping[str, Any]) -> str | None:
    client = raw.get("client")
    if isinstance(client, Mapping) and _is_text(client.get("main")):
        return client["main"]
    return None


def validate(raw: Any) -> bool:
    """
    Check whether raw metadata describes a legal addon.

    A descriptor is valid iff name and version are present and it exposes
    a server entry (``main``), a client entry (``client.main``), or both.

    Args:
        raw: Parsed metadata

    Returns:
        True if the metadata is valid
    """
    if not isinstance(raw, Mapping):
        return False

    if not _is_text(raw.get("name")) or not _is_text(raw.get("version")):
        return False

    return _is_text(raw.get("main")) or _client_entry(raw) is not None


def check_addon_name(name: str) -> None:
    """
    Ensure a name can be used as a single directory under the registry root.

    Raises:
        InvalidAddonError: If the name is empty, hidden or a path
    """
    if (
        not name
        or name.startswith(HIDDEN_MARKER)
        or "/" in name
        or "\\" in name
    ):
        raise InvalidAddonError(f"Invalid addon name: {name!r}", name=name)


def descriptor_from_raw(
    raw: Mapping[str, Any],
    installed_path: Path | None = None,
    is_default: bool = False,
) -> AddonDescriptor:
    """
    Build a descriptor from metadata that already passed validate().

    Args:
        raw: Valid metadata
        installed_path: Addon directory, if committed
        is_default: Whether the addon is a default addon

    Returns:
        AddonDescriptor object
    """
    client_entry = _client_entry(raw)
    main = raw.get("main")

    return AddonDescriptor(
        name=raw["name"],
        version=raw["version"],
        server_entry=main if _is_text(main) else None,
        client=ClientCapability(entry=client_entry) if client_entry else None,
        is_default=is_default,
        installed_path=installed_path,
        raw=dict(raw),
    )


def read_metadata(addon_dir: Path) -> dict[str, Any]:
    """
    Read the package.json of an addon directory.

    Args:
        addon_dir: Addon directory

    Returns:
        Parsed metadata

    Raises:
        MissingMetadataError: If package.json does not exist
        InvalidAddonError: If package.json cannot be read or parsed
    """
    metadata_path = addon_dir / METADATA_FILE

    try:
        with open(metadata_path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise MissingMetadataError(
            f"No '{METADATA_FILE}' in {addon_dir}"
        ) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidAddonError(f"Failed to parse '{METADATA_FILE}': {e}") from e
    except OSError as e:
        raise InvalidAddonError(f"Failed to read '{METADATA_FILE}': {e}") from e


def parse_descriptor(addon_dir: Path, is_default: bool = False) -> AddonDescriptor:
    """
    Parse and validate the metadata of an addon directory.

    Args:
        addon_dir: Addon directory
        is_default: Whether the addon is a default addon

    Returns:
        AddonDescriptor object with installed_path set to addon_dir

    Raises:
        MissingMetadataError: If package.json does not exist
        InvalidAddonError: If metadata is unreadable or invalid
    """
    raw = read_metadata(addon_dir)

    if not validate(raw):
        name = raw.get("name") if isinstance(raw, Mapping) else None
        raise InvalidAddonError(
            f"Invalid '{METADATA_FILE}' file in {addon_dir}",
            name=name if isinstance(name, str) else None,
        )

    return descriptor_from_raw(raw, installed_path=addon_dir, is_default=is_default)
