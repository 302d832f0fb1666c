"""Tests for the GitPython-backed revision lookup."""

import shutil
import tempfile
from pathlib import Path

import pytest
from git import Actor, Repo

from lcod_registry.errors import SubprocessFailureError
from lcod_registry.utils.git_ops import GitRevisionLookup

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


@requires_git
def test_non_repository_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(SubprocessFailureError, match="Unable to determine commit"):
            GitRevisionLookup().current_revision(Path(tmpdir))


@requires_git
def test_missing_path_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(SubprocessFailureError):
            GitRevisionLookup().current_revision(Path(tmpdir) / "missing")


@requires_git
def test_reads_head_and_commit_date():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo = Repo.init(tmpdir)
        (Path(tmpdir) / "compose.yaml").write_text("compose: []\n")
        repo.index.add(["compose.yaml"])
        author = Actor("Registry Bot", "bot@example.test")
        commit = repo.index.commit("initial", author=author, committer=author)

        lookup = GitRevisionLookup()
        assert lookup.current_revision(Path(tmpdir)) == commit.hexsha
        date = lookup.commit_date(Path(tmpdir), commit.hexsha)
        assert date is not None
        assert date[:4].isdigit()
        assert "T" in date


@requires_git
def test_empty_repository_has_no_head():
    with tempfile.TemporaryDirectory() as tmpdir:
        Repo.init(tmpdir)
        with pytest.raises(SubprocessFailureError):
            GitRevisionLookup().current_revision(Path(tmpdir))


@requires_git
def test_commit_date_unknown_commit_is_none():
    with tempfile.TemporaryDirectory() as tmpdir:
        Repo.init(tmpdir)
        assert GitRevisionLookup().commit_date(Path(tmpdir), "f" * 40) is None
