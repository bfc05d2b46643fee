"""
Tests for the Install Pipeline.

This test suite covers:
1. Successful installs and registry visibility
2. Fail-fast stages (fetch, metadata, validation, authorization, commit)
3. Staging cleanup on every pre-commit failure
4. Fail-soft stages (optimize, provision, activate)
5. Same-name overwrite
6. Stage ordering and conditional stages
"""

import asyncio
from pathlib import Path

import pytest
from conftest import RejectingAuthorizer, make_addon

from addonkit.addon.install import InstallPipeline, replace_tree
from addonkit.errors import (
    ActivationError,
    CommitError,
    DependencyProvisionError,
    FetchError,
    InvalidAddonError,
    MissingMetadataError,
    OptimizeError,
    PolicyRejectedError,
)


def add_source(roots, fetcher, ref: str, files=None, **metadata) -> Path:
    source = make_addon(roots["sources"] / ref.replace("/", "_"), files=files, **metadata)
    fetcher.sources[ref] = source
    return source


def registry_entries(roots) -> list[str]:
    return sorted(p.name for p in roots["registry"].iterdir())


def staging_entries(roots) -> list[Path]:
    if not roots["temp"].exists():
        return []
    return list(roots["temp"].iterdir())


class TestInstallSuccess:
    """Test the happy path."""

    @pytest.mark.asyncio
    async def test_install_registers_addon(self, manager, roots, fetcher, publisher):
        """Should commit, reload and emit for a valid addon."""
        add_source(
            roots, fetcher, "git://x/hello",
            files={"index.py": "VALUE = 1\n"},
            name="hello", version="1.0", main="index.py",
        )

        result = await manager.install("git://x/hello")

        assert result.ok
        assert result.descriptor.name == "hello"
        assert result.descriptor.installed_path == roots["registry"] / "hello"

        addons = manager.list()
        assert addons["hello"].installed_path == roots["registry"] / "hello"
        assert (roots["registry"] / "hello" / "index.py").read_text() == "VALUE = 1\n"

        assert publisher.named("addons.install") == [result.descriptor]
        assert staging_entries(roots) == []

    @pytest.mark.asyncio
    async def test_stage_order_for_dual_addon(self, manager, roots, fetcher):
        """Should run optimize, provision, activate in order for a dual addon."""
        order = []
        add_source(
            roots, fetcher, "git://x/dual",
            name="dual", version="1.0", main="server.py", client={"main": "client"},
        )

        bundler_build = manager.gateway.bundler.build
        installer_provision = manager.installs.installer.provision
        loader_load = manager.gateway.loader.load

        async def build(*args):
            order.append("optimize")
            return await bundler_build(*args)

        async def provision(addon_dir):
            order.append("provision")
            await installer_provision(addon_dir)

        async def load(path):
            order.append("activate")
            await loader_load(path)

        manager.gateway.bundler.build = build
        manager.installs.installer.provision = provision
        manager.gateway.loader.load = load

        result = await manager.install("git://x/dual")

        assert result.ok
        assert order == ["optimize", "provision", "activate"]

    @pytest.mark.asyncio
    async def test_conditional_stages(self, manager, roots, fetcher, bundler, installer, loader):
        """Should skip optimize for server-only and activate for client-only addons."""
        add_source(roots, fetcher, "git://x/srv", name="srv", version="1", main="s.py")
        add_source(roots, fetcher, "git://x/cli", name="cli", version="1", client={"main": "c"})

        await manager.install("git://x/srv")
        await manager.install("git://x/cli")

        assert [call[0].name for call in bundler.calls] == ["cli"]
        assert [path.name for path in loader.calls] == ["srv"]
        assert [path.name for path in installer.calls] == ["srv", "cli"]

    @pytest.mark.asyncio
    async def test_client_build_arguments(self, manager, roots, fetcher, bundler):
        """Should build into addon-built.js with the configured path aliases."""
        add_source(roots, fetcher, "git://x/ui", name="ui", version="1", client={"main": "main"})

        await manager.install("git://x/ui")

        base_dir, entry, output, aliases = bundler.calls[0]
        assert base_dir == roots["registry"] / "ui"
        assert entry == "main"
        assert output == roots["registry"] / "ui" / "addon-built.js"
        assert aliases == {"require-tools": "/opt/require-tools"}
        assert output.exists()

    @pytest.mark.asyncio
    async def test_install_without_reload(self, manager, roots, fetcher):
        """Should leave the cache stale when reload is disabled."""
        assert manager.list() == {}
        add_source(roots, fetcher, "git://x/a", name="a", version="1", main="s.py")

        result = await manager.install("git://x/a", reload=False)

        assert (roots["registry"] / "a").is_dir()
        assert result.descriptor.installed_path == roots["registry"] / "a"
        assert manager.list() == {}
        assert "a" in manager.refresh()

    @pytest.mark.asyncio
    async def test_install_default_named_addon(self, manager, roots, fetcher):
        """Should mark an installed addon as default when the template has it."""
        make_addon(roots["template"] / "core", name="core", version="1", main="s.py")
        add_source(roots, fetcher, "git://x/core", name="core", version="2", main="s.py")

        result = await manager.install("git://x/core")

        assert result.descriptor.is_default is True

    @pytest.mark.asyncio
    async def test_overwrite_same_name(self, manager, roots, fetcher):
        """Should replace an installed addon of the same name in place."""
        add_source(
            roots, fetcher, "git://x/a1",
            files={"old.txt": "v1"}, name="addonA", version="1.0", main="s.py",
        )
        add_source(
            roots, fetcher, "git://x/a2",
            files={"new.txt": "v2"}, name="addonA", version="2.0", main="s.py",
        )

        await manager.install("git://x/a1")
        await manager.install("git://x/a2")

        assert registry_entries(roots) == ["addonA"]
        assert manager.list()["addonA"].version == "2.0"
        assert (roots["registry"] / "addonA" / "new.txt").read_text() == "v2"
        assert not (roots["registry"] / "addonA" / "old.txt").exists()


class TestInstallFailFast:
    """Test stages 1-4 abort without touching the registry root."""

    @pytest.mark.asyncio
    async def test_fetch_failure(self, manager, roots, publisher):
        """Should surface FetchError and clean the staging directory."""
        with pytest.raises(FetchError, match="Repository not found"):
            await manager.install("git://x/missing")

        assert registry_entries(roots) == []
        assert staging_entries(roots) == []
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_unexpected_fetch_error_is_wrapped(self, manager, roots):
        """Should turn non-taxonomy fetch failures into FetchError."""

        async def clone(source_ref, dest_dir):
            raise RuntimeError("network down")

        manager.installs.fetcher.clone = clone

        with pytest.raises(FetchError, match="network down"):
            await manager.install("git://x/any")
        assert staging_entries(roots) == []

    @pytest.mark.asyncio
    async def test_missing_metadata(self, manager, roots, fetcher):
        """Should fail with MissingMetadataError and leave the registry unchanged."""
        source = roots["sources"] / "bare"
        source.mkdir()
        (source / "index.js").write_text("")
        fetcher.sources["git://x/bare"] = source

        with pytest.raises(MissingMetadataError):
            await manager.install("git://x/bare")

        assert registry_entries(roots) == []
        assert staging_entries(roots) == []

    @pytest.mark.asyncio
    async def test_invalid_metadata(self, manager, roots, fetcher, installer):
        """Should fail with InvalidAddonError before any side effect."""
        add_source(roots, fetcher, "git://x/bad", name="bad", version="1.0")

        with pytest.raises(InvalidAddonError):
            await manager.install("git://x/bad")

        assert registry_entries(roots) == []
        assert staging_entries(roots) == []
        assert installer.calls == []

    @pytest.mark.asyncio
    async def test_unsafe_name(self, manager, roots, fetcher):
        """Should refuse names that would escape the registry root."""
        add_source(roots, fetcher, "git://x/evil", name="../evil", version="1", main="s.py")

        with pytest.raises(InvalidAddonError, match="Invalid addon name"):
            await manager.install("git://x/evil")

        assert registry_entries(roots) == []
        assert not (roots["registry"].parent / "evil").exists()

    @pytest.mark.asyncio
    async def test_policy_rejection(self, manager, roots, fetcher, publisher):
        """Should abort with PolicyRejectedError when the hook rejects."""
        authorizer = RejectingAuthorizer()
        manager.installs.authorizer = authorizer
        add_source(roots, fetcher, "git://x/a", name="a", version="1", main="s.py")

        with pytest.raises(PolicyRejectedError, match="blocked by policy"):
            await manager.install("git://x/a")

        assert authorizer.seen == ["a"]
        assert registry_entries(roots) == []
        assert staging_entries(roots) == []
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_authorizer_exception_is_wrapped(self, manager, roots, fetcher):
        """Should turn any authorizer exception into PolicyRejectedError."""

        async def authorize(descriptor):
            raise ValueError("incompatible host")

        manager.installs.authorizer.authorize = authorize
        add_source(roots, fetcher, "git://x/a", name="a", version="1", main="s.py")

        with pytest.raises(PolicyRejectedError, match="incompatible host"):
            await manager.install("git://x/a")

    @pytest.mark.asyncio
    async def test_commit_failure_keeps_staging(self, manager, roots, fetcher, monkeypatch):
        """Should raise CommitError and keep the staged tree for recovery."""
        add_source(roots, fetcher, "git://x/a", name="a", version="1", main="s.py")

        def failing_replace(source, target):
            raise PermissionError("read-only filesystem")

        monkeypatch.setattr("addonkit.addon.install.replace_tree", failing_replace)

        with pytest.raises(CommitError, match="read-only filesystem") as exc_info:
            await manager.install("git://x/a")

        staging_dir = exc_info.value.staging_dir
        assert staging_dir is not None
        assert (staging_dir / "package.json").exists()
        assert registry_entries(roots) == []


class TestInstallFailSoft:
    """Test stages 5-7 report errors without undoing the commit."""

    @pytest.mark.asyncio
    async def test_optimize_failure(self, manager, roots, fetcher, bundler, installer, publisher):
        """Should keep the addon and continue provisioning after a bundler error."""
        bundler.fail.add("ui")
        add_source(roots, fetcher, "git://x/ui", name="ui", version="1", client={"main": "c"})

        result = await manager.install("git://x/ui")

        assert result.degraded
        assert [type(e) for e in result.errors] == [OptimizeError]
        assert "ui" in manager.list()
        assert [p.name for p in installer.calls] == ["ui"]
        assert len(publisher.named("addons.install")) == 1

    @pytest.mark.asyncio
    async def test_provision_failure_still_activates(self, manager, roots, fetcher, installer, loader):
        """Should still attempt activation after dependency provisioning fails."""
        installer.fail.add("srv")
        add_source(roots, fetcher, "git://x/srv", name="srv", version="1", main="s.py")

        result = await manager.install("git://x/srv")

        assert [type(e) for e in result.errors] == [DependencyProvisionError]
        assert [p.name for p in loader.calls] == ["srv"]
        assert "srv" in manager.list()

    @pytest.mark.asyncio
    async def test_all_soft_failures_collected(self, manager, roots, fetcher, bundler, installer, loader):
        """Should collect every fail-soft error in stage order."""
        bundler.fail.add("dual")
        installer.fail.add("dual")
        loader.fail.add("dual")
        add_source(
            roots, fetcher, "git://x/dual",
            name="dual", version="1", main="s.py", client={"main": "c"},
        )

        result = await manager.install("git://x/dual")

        assert [type(e) for e in result.errors] == [
            OptimizeError,
            DependencyProvisionError,
            ActivationError,
        ]
        assert (roots["registry"] / "dual").is_dir()
        with pytest.raises(OptimizeError):
            result.raise_for_errors()


class TestInstallConcurrency:
    """Test concurrent installs."""

    @pytest.mark.asyncio
    async def test_concurrent_installs_of_different_addons(self, manager, roots, fetcher):
        """Should install different addons concurrently without interference."""
        for name in ("a", "b", "c"):
            add_source(roots, fetcher, f"git://x/{name}", name=name, version="1", main="s.py")

        results = await asyncio.gather(
            *(manager.install(f"git://x/{name}") for name in ("a", "b", "c"))
        )

        assert all(result.ok for result in results)
        assert registry_entries(roots) == ["a", "b", "c"]
        assert staging_entries(roots) == []

    @pytest.mark.asyncio
    async def test_same_name_installs_serialize(self, manager, roots, fetcher):
        """Should leave exactly one complete tree when the same name races."""
        add_source(roots, fetcher, "git://x/v1", files={"v": "1"}, name="a", version="1", main="s.py")
        add_source(roots, fetcher, "git://x/v2", files={"v": "2"}, name="a", version="2", main="s.py")

        await asyncio.gather(manager.install("git://x/v1"), manager.install("git://x/v2"))

        assert registry_entries(roots) == ["a"]
        version = manager.refresh()["a"].version
        assert (roots["registry"] / "a" / "v").read_text() == version


class TestReplaceTree:
    """Test the commit primitive."""

    def test_replace_into_empty(self, tmp_path: Path):
        source = make_addon(tmp_path / "src", files={"f": "1"}, name="a", version="1", main="f")
        target = tmp_path / "root" / "a"
        target.parent.mkdir()

        replace_tree(source, target)

        assert (target / "f").read_text() == "1"
        assert sorted(p.name for p in target.parent.iterdir()) == ["a"]

    def test_replace_existing(self, tmp_path: Path):
        source = make_addon(tmp_path / "src", files={"f": "2"}, name="a", version="2", main="f")
        target = make_addon(tmp_path / "root" / "a", files={"old": "1"}, name="a", version="1", main="f")

        replace_tree(source, target)

        assert (target / "f").read_text() == "2"
        assert not (target / "old").exists()
        assert sorted(p.name for p in target.parent.iterdir()) == ["a"]
        assert source.exists()


class TestInstallPipelineDirect:
    """Test the pipeline without the manager facade."""

    @pytest.mark.asyncio
    async def test_uses_injected_collaborators(self, roots, fetcher, installer, bundler, loader, publisher):
        from addonkit.addon.activation import ActivationGateway
        from addonkit.addon.collaborators import AllowAll
        from addonkit.addon.registry import AddonRegistry
        from addonkit.addon.staging import StagingArea

        registry = AddonRegistry(roots["registry"], roots["template"])
        pipeline = InstallPipeline(
            registry=registry,
            staging=StagingArea(roots["temp"]),
            fetcher=fetcher,
            authorizer=AllowAll(),
            installer=installer,
            gateway=ActivationGateway(loader, bundler),
            publisher=publisher,
        )
        add_source(roots, fetcher, "git://x/a", name="a", version="1", main="s.py")

        result = await pipeline.install("git://x/a")

        assert result.descriptor is registry.get("a")
        assert fetcher.calls[0][0] == "git://x/a"
