"""Tests for repository state validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from relkit.core.result import Err, Ok, Result
from relkit.git.repository import Repository
from relkit.output.console import MockConsole
from relkit.release.errors import ReleaseError
from relkit.release.validation import RepositoryState, validate_repository

from ._fakes import FakeGit, install_git, on_branch


def _validate(tmp_path: Path, *, exit_code: int = 1) -> Result[RepositoryState, ReleaseError]:
    return validate_repository(
        Repository(tmp_path), remote="origin", console=MockConsole(), exit_code=exit_code
    )


class TestValidateRepository:
    """Steps run in order and stop at the first failure."""

    def test_clean_synchronized_branch(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        git = install_git(monkeypatch, on_branch("release"))

        result = _validate(tmp_path)

        assert isinstance(result, Ok)
        assert result.value.branch == "release"
        assert result.value.remote_ref == "origin/release"
        assert git.calls == [
            ("status", "--porcelain"),
            ("diff-files", "--quiet"),
            ("diff-index", "--quiet", "--cached", "HEAD"),
            ("symbolic-ref", "--quiet", "HEAD"),
            ("fetch", "origin"),
            ("diff", "--quiet", "origin/release"),
        ]

    def test_unstaged_changes(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        git = install_git(
            monkeypatch,
            on_branch()
            .on("status", stdout=" M app.js\n")
            .on("diff-files", returncode=1),
        )

        result = _validate(tmp_path, exit_code=3)

        assert isinstance(result, Err)
        assert result.error.kind == "repo_dirty"
        assert "unstaged changes" in result.error.message
        assert result.error.hint == "app.js"
        assert result.error.exit_code == 3
        assert not git.ran("fetch")

    def test_uncommitted_changes(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        install_git(monkeypatch, on_branch().on("diff-index", returncode=1))

        result = _validate(tmp_path)

        assert isinstance(result, Err)
        assert result.error.kind == "repo_dirty"
        assert "uncommitted changes" in result.error.message

    def test_long_path_lists_are_capped(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        lines = "".join(f"M  f{i}.js\n" for i in range(8))
        install_git(
            monkeypatch,
            on_branch().on("status", stdout=lines).on("diff-index", returncode=1),
        )

        result = _validate(tmp_path)

        assert isinstance(result, Err)
        assert result.error.hint == "f0.js, f1.js, f2.js, f3.js, f4.js, ... 3 more"

    def test_detached_head(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        git = install_git(monkeypatch, on_branch().on("symbolic-ref", returncode=1))

        result = _validate(tmp_path)

        assert isinstance(result, Err)
        assert result.error.kind == "detached_head"
        assert result.error.message.startswith("You must be on a branch")
        assert not git.ran("fetch")

    def test_fetch_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        install_git(
            monkeypatch,
            on_branch().on("fetch", returncode=128, stderr="fatal: unable to access\n"),
        )

        result = _validate(tmp_path)

        assert isinstance(result, Err)
        assert result.error.kind == "fetch_failed"
        assert result.error.hint == "`git fetch origin` === 128"

    def test_out_of_sync_with_remote(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        install_git(monkeypatch, on_branch().on("diff", "--quiet", returncode=1))

        result = _validate(tmp_path)

        assert isinstance(result, Err)
        assert result.error.kind == "repo_unsynced"
        assert 'branch "release" is not synchronized with remote "origin"' in result.error.message

    def test_missing_remote_branch(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        install_git(
            monkeypatch,
            on_branch().on(
                "diff", "--quiet", returncode=128, stderr="fatal: bad revision 'origin/release'\n"
            ),
        )

        result = _validate(tmp_path)

        assert isinstance(result, Err)
        assert result.error.kind == "repo_unsynced"

    def test_status_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        install_git(
            monkeypatch, FakeGit().on("status", returncode=128, stderr="fatal: not a git repo\n")
        )

        result = _validate(tmp_path)

        assert isinstance(result, Err)
        assert result.error.kind == "git_failed"
        assert result.error.message == "Error refreshing git cache with a git status"
