"""Tests for the release entry points with scripted git and tools."""

from __future__ import annotations

import json
import tarfile
from pathlib import Path

import pytest

from relkit.core.config import Config, PackageConfig, ReleaseConfig
from relkit.core.result import Err, Ok
from relkit.output.console import MockConsole
from relkit.release.service import (
    finalize_release,
    package_release,
    prepare_release,
    ship_release,
    upload_release,
)

from ._fakes import (
    ENV,
    FakeCommands,
    RecordingStore,
    install_commands,
    install_git,
    on_branch,
)

MANIFEST = '{\n  "name": "Hilary",\n  "version": "3.2.0"\n}\n'


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    root = tmp_path / "app"
    (root / "node_modules" / "oae-core" / "tests").mkdir(parents=True)
    (root / "node_modules" / "oae-core" / "index.js").write_text("x")
    (root / "node_modules" / "oae-core" / "tests" / "t.js").write_text("t")
    (root / "app.js").write_text("app")
    (root / "package.json").write_text(MANIFEST, encoding="utf-8")
    (root / "npm-shrinkwrap.json").write_text("{}")
    return root


def _config(**release: object) -> Config:
    return Config(
        release=ReleaseConfig(**release),  # type: ignore[arg-type]
        package=PackageConfig(files=("app.js", "package.json", "npm-shrinkwrap.json")),
    )


class TestPrepareRelease:
    """Tests for prepare_release."""

    def test_dirty_tree_aborts_before_any_mutation(
        self, app_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git = install_git(monkeypatch, on_branch().on("diff-files", returncode=1))
        commands = install_commands(monkeypatch, FakeCommands())

        result = prepare_release(
            root=app_root, version="3.3.0", config=_config().release, console=MockConsole()
        )

        assert isinstance(result, Err)
        assert result.error.kind == "repo_dirty"
        assert (app_root / "package.json").read_text(encoding="utf-8") == MANIFEST
        assert commands.calls == []
        assert not git.ran("commit")
        assert not git.ran("push")

    def test_full_prepare(self, app_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        git = install_git(monkeypatch, on_branch("release"))
        commands = install_commands(monkeypatch, FakeCommands())
        console = MockConsole()

        result = prepare_release(
            root=app_root,
            version="3.3.0",
            config=_config(test_command=("grunt", "test")).release,
            console=console,
        )

        assert isinstance(result, Ok)
        assert (result.value.target.tag, result.value.branch) == ("3.3.0", "release")
        manifest = json.loads((app_root / "package.json").read_text(encoding="utf-8"))
        assert manifest["version"] == "3.3.0"
        assert commands.live_calls == [["grunt", "test"]]
        assert commands.calls == [["npm", "shrinkwrap"]]
        assert git.subcommands() == [
            "status",
            "diff-files",
            "diff-index",
            "symbolic-ref",
            "fetch",
            "diff",
            "ls-remote",
            "symbolic-ref",
            "add",
            "commit",
            "tag",
            "push",
            "push",
        ]
        assert git.ran("add", "--", "package.json", "npm-shrinkwrap.json")

    def test_failing_tests_abort_release(
        self, app_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git = install_git(monkeypatch, on_branch())
        install_commands(monkeypatch, FakeCommands().on("grunt", returncode=3))

        result = prepare_release(
            root=app_root,
            version="3.3.0",
            config=_config(test_command=("grunt", "test"), exit_code=1).release,
            console=MockConsole(),
        )

        assert isinstance(result, Err)
        assert result.error.message == "The unit tests did not succeed, aborting release"
        assert (app_root / "package.json").read_text(encoding="utf-8") == MANIFEST
        assert not git.ran("ls-remote")

    def test_tests_can_be_skipped(self, app_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        install_git(monkeypatch, on_branch())
        commands = install_commands(monkeypatch, FakeCommands().on("grunt", returncode=3))

        result = prepare_release(
            root=app_root,
            version="3.3.0",
            config=_config(test_command=("grunt", "test")).release,
            console=MockConsole(),
            run_tests=False,
        )

        assert isinstance(result, Ok)
        assert commands.live_calls == []

    def test_existing_tag_leaves_manifest_alone(
        self, app_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        install_git(monkeypatch, on_branch().on("ls-remote", stdout="abc\trefs/tags/3.3.0\n"))
        commands = install_commands(monkeypatch, FakeCommands())

        result = prepare_release(
            root=app_root, version="3.3.0", config=_config().release, console=MockConsole()
        )

        assert isinstance(result, Err)
        assert result.error.kind == "tag_exists"
        assert (app_root / "package.json").read_text(encoding="utf-8") == MANIFEST
        assert commands.calls == []

    def test_wrong_module_name(self, app_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        install_git(monkeypatch, on_branch())
        install_commands(monkeypatch, FakeCommands())

        result = prepare_release(
            root=app_root,
            version="3.3.0",
            config=_config(module="other").release,
            console=MockConsole(),
        )

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_manifest"


class TestPackageRelease:
    """Tests for package_release."""

    def test_builds_tarball_and_checksum(
        self, app_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        install_git(monkeypatch, on_branch().on("describe", stdout="3.3.0\n"))
        install_commands(monkeypatch, FakeCommands().on("node", stdout="v18.20.0\n"))
        out = tmp_path / "dist"

        result = package_release(
            root=app_root, out_dir=out, config=_config(), console=MockConsole(), from_tag="3.3.0"
        )

        assert isinstance(result, Ok)
        artifacts = result.value
        assert artifacts.version == "3.3.0"
        assert artifacts.package_path == out / "Hilary-3.3.0.tar.gz"
        assert artifacts.checksum_path == out / "Hilary-3.3.0.tar.gz.sha1.txt"
        with tarfile.open(artifacts.package_path, "r:gz") as tar:
            names = {n.removeprefix("./") for n in tar.getnames()}
            info_file = tar.extractfile("./build-info.json")
            assert info_file is not None
            info = json.loads(info_file.read().decode("utf-8"))
        assert "app.js" in names
        assert "node_modules/oae-core/index.js" in names
        assert "node_modules/oae-core/tests" not in names
        assert info["version"] == "3.3.0"
        assert info["nodeVersion"] == "18.20.0"

    def test_version_from_describe_past_tag(
        self, app_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        install_git(monkeypatch, on_branch().on("describe", stdout="3.2.0-4-gabc1234\n"))
        install_commands(monkeypatch, FakeCommands().on("node", stdout="v18.20.0\n"))

        result = package_release(
            root=app_root, out_dir=tmp_path / "dist", config=_config(), console=MockConsole()
        )

        assert isinstance(result, Ok)
        assert result.value.package_path.name == "Hilary-3.2.0-4-abc1234.tar.gz"

    def test_existing_output_dir(
        self, app_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        install_git(monkeypatch, on_branch().on("describe", stdout="3.3.0\n"))
        install_commands(monkeypatch, FakeCommands())
        out = tmp_path / "dist"
        out.mkdir()

        result = package_release(
            root=app_root, out_dir=out, config=_config(), console=MockConsole()
        )

        assert isinstance(result, Err)
        assert result.error.kind == "output_exists"


class TestUploadAndFinalize:
    """Tests for upload_release / finalize_release."""

    def test_upload_uses_describe_tag(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        install_git(monkeypatch, on_branch().on("describe", stdout="3.3.0-2-gabc1234\n"))
        package = tmp_path / "Hilary-3.3.0.tar.gz"
        checksum = tmp_path / "Hilary-3.3.0.tar.gz.sha1.txt"
        package.write_bytes(b"x")
        checksum.write_text("y")
        store = RecordingStore()

        result = upload_release(
            root=tmp_path,
            package_path=package,
            checksum_path=checksum,
            bucket="releases",
            config=_config(),
            console=MockConsole(),
            store=store,
            env=ENV,
        )

        assert isinstance(result, Ok)
        assert [key for _, key, _ in store.puts] == [
            "3.3/Hilary-3.3.0.tar.gz",
            "3.3/Hilary-3.3.0.tar.gz.sha1.txt",
        ]

    def test_upload_without_credentials_touches_nothing(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git = install_git(monkeypatch, on_branch())
        package = tmp_path / "p.tar.gz"
        checksum = tmp_path / "p.tar.gz.sha1.txt"
        package.write_bytes(b"x")
        checksum.write_text("y")
        store = RecordingStore()

        result = upload_release(
            root=tmp_path,
            package_path=package,
            checksum_path=checksum,
            bucket="releases",
            config=_config(),
            console=MockConsole(),
            store=store,
            env={},
        )

        assert isinstance(result, Err)
        assert result.error.kind == "missing_credentials"
        assert store.puts == []
        assert git.calls == []

    def test_finalize(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        git = install_git(monkeypatch, on_branch("release"))

        result = finalize_release(
            root=tmp_path, version="3.3.0", config=_config().release, console=MockConsole()
        )

        assert result == Ok(None)
        assert git.ran("rm", "--", "npm-shrinkwrap.json")
        assert git.ran("commit", "-m", "(Release 3.3.0) Remove shrinkwrap")


class TestShipRelease:
    """Tests for ship_release."""

    def test_leftover_output_dir_fails_before_git(
        self, app_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git = install_git(monkeypatch, on_branch())
        out = tmp_path / "dist"
        out.mkdir()

        result = ship_release(
            root=app_root,
            version="3.3.0",
            out_dir=out,
            bucket="releases",
            config=_config(),
            console=MockConsole(),
            store=RecordingStore(),
            env=ENV,
        )

        assert isinstance(result, Err)
        assert result.error.kind == "output_exists"
        assert git.calls == []

    def test_missing_credentials_fail_before_git(
        self, app_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git = install_git(monkeypatch, on_branch())

        result = ship_release(
            root=app_root,
            version="3.3.0",
            out_dir=tmp_path / "dist",
            bucket="releases",
            config=_config(exit_code=6),
            console=MockConsole(),
            store=RecordingStore(),
            env={},
        )

        assert isinstance(result, Err)
        assert result.error.kind == "missing_credentials"
        assert result.error.exit_code == 6
        assert git.calls == []
        manifest = json.loads((app_root / "package.json").read_text(encoding="utf-8"))
        assert manifest["version"] == "3.2.0"

    def test_stops_after_failed_upload(
        self, app_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git = install_git(monkeypatch, on_branch().on("describe", stdout="3.3.0\n"))
        install_commands(monkeypatch, FakeCommands().on("node", stdout="v18.20.0\n"))
        store = RecordingStore(fail_on="3.3/Hilary-3.3.0.tar.gz")

        result = ship_release(
            root=app_root,
            version="3.3.0",
            out_dir=tmp_path / "dist",
            bucket="releases",
            config=_config(),
            console=MockConsole(),
            store=store,
            env=ENV,
        )

        assert isinstance(result, Err)
        assert result.error.kind == "upload_failed"
        assert git.ran("push", "origin", "3.3.0")
        assert not git.ran("rm")

    def test_full_pipeline(
        self, app_root: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git = install_git(monkeypatch, on_branch().on("describe", stdout="3.3.0\n"))
        install_commands(monkeypatch, FakeCommands().on("node", stdout="v18.20.0\n"))
        store = RecordingStore()
        console = MockConsole()

        result = ship_release(
            root=app_root,
            version="3.3.0",
            out_dir=tmp_path / "dist",
            bucket="releases",
            config=_config(),
            console=console,
            store=store,
            env=ENV,
        )

        assert isinstance(result, Ok)
        assert result.value.receipt.package_key == "3.3/Hilary-3.3.0.tar.gz"
        assert git.ran("describe", "--always", "--tags", "--match=3.3.0")
        assert git.calls[-1] == ("push", "origin", "release")
        assert console.find("Released 3.3.0")
