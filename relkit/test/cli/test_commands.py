"""Tests for CLI commands with the release services stubbed out."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

from relkit.cli.context import CLIContext
from relkit.core.config import Config, UploadConfig
from relkit.core.errors import ErrorCode
from relkit.core.result import Err, Ok, Result
from relkit.output.console import MockConsole, Style
from relkit.release.errors import ReleaseError
from relkit.release.package import PackageArtifacts
from relkit.release.upload import UploadReceipt


def _ctx(tmp_path: Path, config: Config | None = None) -> CLIContext:
    return CLIContext(root=tmp_path, config=config or Config(), console=MockConsole())


def _console(ctx: CLIContext) -> MockConsole:
    assert isinstance(ctx.console, MockConsole)
    return ctx.console


class TestExitOnError:
    """Failures print message, hint and output, then exit with their code."""

    def test_release_failure_exit_code_and_output(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        import relkit.cli.commands.release as release_cmd

        ctx = _ctx(tmp_path)
        monkeypatch.setattr(release_cmd, "build_context", lambda: ctx)

        def fake_prepare(**_: object) -> Result[object, ReleaseError]:
            return Err(
                ReleaseError(
                    kind="command_failed",
                    message="Failed to shrinkwrap dependencies",
                    hint="`npm shrinkwrap` === 1",
                    exit_code=7,
                    output="npm ERR! missing: oae-core",
                )
            )

        monkeypatch.setattr(release_cmd, "prepare_release", fake_prepare)

        with pytest.raises(typer.Exit) as exc:
            release_cmd.release(version="3.3.0", skip_tests=False)

        assert exc.value.exit_code == 7
        console = _console(ctx)
        assert console.messages == [
            "[error] Failed to shrinkwrap dependencies",
            "hint: `npm shrinkwrap` === 1",
            "npm ERR! missing: oae-core",
        ]
        assert console.outputs[1].style == Style.DIM
        assert console.outputs[2].stderr is True

    def test_skip_tests_is_forwarded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        import relkit.cli.commands.release as release_cmd
        from relkit.release.semver import SemVer
        from relkit.release.service import PreparedRelease
        from relkit.release.target import ReleaseTarget

        ctx = _ctx(tmp_path)
        monkeypatch.setattr(release_cmd, "build_context", lambda: ctx)
        seen: dict[str, object] = {}

        def fake_prepare(**kwargs: object) -> Result[PreparedRelease, ReleaseError]:
            seen.update(kwargs)
            target = ReleaseTarget(SemVer(3, 2, 0), SemVer(3, 3, 0), "origin")
            return Ok(PreparedRelease(target=target, branch="release"))

        monkeypatch.setattr(release_cmd, "prepare_release", fake_prepare)

        release_cmd.release(version="3.3.0", skip_tests=True)

        assert seen["run_tests"] is False
        assert seen["version"] == "3.3.0"
        assert _console(ctx).find("Tagged 3.3.0 on release")


class TestUploadCommand:
    """Tests for the upload command."""

    def test_no_bucket_is_user_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        import relkit.cli.commands.upload as upload_cmd

        monkeypatch.setattr(upload_cmd, "build_context", lambda: _ctx(tmp_path))

        with pytest.raises(typer.Exit) as exc:
            upload_cmd.upload(package_path=Path("dist/x.tar.gz"), checksum=None, bucket=None)

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
        assert "no bucket" in capsys.readouterr().err

    def test_default_checksum_and_config_bucket(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        import relkit.cli.commands.upload as upload_cmd

        ctx = _ctx(tmp_path, Config(upload=UploadConfig(bucket="releases")))
        monkeypatch.setattr(upload_cmd, "build_context", lambda: ctx)
        seen: dict[str, object] = {}

        def fake_upload(**kwargs: object) -> Result[UploadReceipt, ReleaseError]:
            seen.update(kwargs)
            return Ok(UploadReceipt("releases", "3.3/x.tar.gz", "3.3/x.tar.gz.sha1.txt"))

        monkeypatch.setattr(upload_cmd, "upload_release", fake_upload)

        upload_cmd.upload(package_path=Path("dist/x.tar.gz"), checksum=None, bucket=None)

        assert seen["bucket"] == "releases"
        assert seen["package_path"] == tmp_path / "dist" / "x.tar.gz"
        assert seen["checksum_path"] == tmp_path / "dist" / "x.tar.gz.sha1.txt"
        assert "s3://releases/3.3/x.tar.gz" in _console(ctx).messages


class TestPackageCommand:
    """Tests for the package command."""

    def test_prints_artifact_paths(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import relkit.cli.commands.package as package_cmd

        ctx = _ctx(tmp_path)
        monkeypatch.setattr(package_cmd, "build_context", lambda: ctx)
        out = tmp_path / "dist"

        def fake_package(**kwargs: object) -> Result[PackageArtifacts, ReleaseError]:
            assert kwargs["out_dir"] == out
            assert kwargs["from_tag"] == "3.3.0"
            return Ok(
                PackageArtifacts(
                    version="3.3.0",
                    staging_dir=out / "src",
                    package_path=out / "Hilary-3.3.0.tar.gz",
                    checksum_path=out / "Hilary-3.3.0.tar.gz.sha1.txt",
                )
            )

        monkeypatch.setattr(package_cmd, "package_release", fake_package)

        package_cmd.package(out=Path("dist"), from_tag="3.3.0")

        assert _console(ctx).messages == [
            str(out / "Hilary-3.3.0.tar.gz"),
            str(out / "Hilary-3.3.0.tar.gz.sha1.txt"),
        ]


class TestDescribeCommand:
    """Tests for the describe command."""

    def test_prints_pretty_version(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import relkit.cli.commands.validate as validate_cmd

        ctx = _ctx(tmp_path)
        monkeypatch.setattr(validate_cmd, "build_context", lambda: ctx)

        def fake_git_version(_repo: object, **_: object) -> Result[str, ReleaseError]:
            return Ok("3.2.0-4-abc1234")

        monkeypatch.setattr(validate_cmd, "git_version", fake_git_version)

        validate_cmd.describe_cmd(from_tag=None, tag_only=False)

        assert _console(ctx).messages[-1] == "3.2.0-4-abc1234"
