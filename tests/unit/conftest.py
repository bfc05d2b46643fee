"""
Shared fakes and fixtures for addon lifecycle tests.

Collaborators are replaced with in-memory fakes that record their calls:
- FakeFetcher copies a prepared source tree instead of cloning
- RecordingInstaller / RecordingBundler / RecordingLoader record addon paths
- RecordingPublisher captures emitted events
"""

import json
import shutil
from pathlib import Path
from typing import Any

import pytest

from addonkit.addon.manager import AddonManager
from addonkit.errors import (
    ActivationError,
    DependencyProvisionError,
    FetchError,
    OptimizeError,
    PolicyRejectedError,
)


def make_addon(directory: Path, files: dict[str, str] | None = None, **metadata: Any) -> Path:
    """Create an addon source tree with a package.json built from metadata."""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "package.json").write_text(json.dumps(metadata), encoding="utf-8")
    for relative, content in (files or {}).items():
        path = directory / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return directory


class FakeFetcher:
    def __init__(self, sources: dict[str, Path] | None = None):
        self.sources = dict(sources or {})
        self.calls: list[tuple[str, Path]] = []

    async def clone(self, source_ref: str, dest_dir: Path) -> None:
        self.calls.append((source_ref, dest_dir))
        if source_ref not in self.sources:
            raise FetchError(f"Repository not found: {source_ref}")
        shutil.copytree(self.sources[source_ref], dest_dir, dirs_exist_ok=True)


class RecordingInstaller:
    def __init__(self, fail: set[str] | None = None):
        self.fail = fail or set()
        self.calls: list[Path] = []

    async def provision(self, addon_dir: Path) -> None:
        self.calls.append(addon_dir)
        if addon_dir.name in self.fail:
            raise DependencyProvisionError(f"npm failed for {addon_dir.name}")


class RecordingBundler:
    def __init__(self, fail: set[str] | None = None):
        self.fail = fail or set()
        self.calls: list[tuple[Path, str, Path, dict[str, str]]] = []

    async def build(
        self,
        base_dir: Path,
        entry_module: str,
        output_file: Path,
        path_aliases: dict[str, str],
    ) -> Path:
        self.calls.append((base_dir, entry_module, output_file, path_aliases))
        if base_dir.name in self.fail:
            raise OptimizeError(f"r.js failed for {base_dir.name}")
        output_file.write_text(f"// bundle of {entry_module}", encoding="utf-8")
        return output_file


class RecordingLoader:
    def __init__(self, fail: set[str] | None = None):
        self.fail = fail or set()
        self.calls: list[Path] = []
        self.unloaded: list[str] = []

    async def load(self, server_path: Path) -> None:
        self.calls.append(server_path)
        if server_path.name in self.fail:
            raise ActivationError(f"cannot load {server_path.name}")

    def unload(self, addon_name: str) -> None:
        self.unloaded.append(addon_name)


class RecordingPublisher:
    def __init__(self):
        self.events: list[tuple[str, Any]] = []

    def emit(self, event_name: str, payload: Any) -> None:
        self.events.append((event_name, payload))

    def named(self, event_name: str) -> list[Any]:
        return [payload for name, payload in self.events if name == event_name]


class RejectingAuthorizer:
    def __init__(self, reason: str = "blocked by policy"):
        self.reason = reason
        self.seen: list[str] = []

    async def authorize(self, descriptor) -> None:
        self.seen.append(descriptor.name)
        raise PolicyRejectedError(self.reason, name=descriptor.name)


@pytest.fixture
def roots(tmp_path: Path) -> dict[str, Path]:
    """Registry, template, staging and source roots under tmp_path."""
    paths = {
        "registry": tmp_path / "addons",
        "template": tmp_path / "defaults",
        "temp": tmp_path / "tmp",
        "sources": tmp_path / "sources",
    }
    paths["template"].mkdir()
    paths["sources"].mkdir()
    return paths


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def installer() -> RecordingInstaller:
    return RecordingInstaller()


@pytest.fixture
def bundler() -> RecordingBundler:
    return RecordingBundler()


@pytest.fixture
def loader() -> RecordingLoader:
    return RecordingLoader()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def manager(roots, fetcher, installer, bundler, loader, publisher) -> AddonManager:
    return AddonManager(
        registry_root=roots["registry"],
        template_root=roots["template"],
        fetcher=fetcher,
        installer=installer,
        bundler=bundler,
        loader=loader,
        publisher=publisher,
        temp_root=roots["temp"],
        path_aliases={"require-tools": "/opt/require-tools"},
    )
