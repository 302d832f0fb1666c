"""Tests for the manifest builder."""

import tempfile
from pathlib import Path

import pytest

from lcod_registry.errors import StructuralError
from lcod_registry.registry.manifest_builder import build_manifest
from lcod_registry.utils.hashing import digest_bytes


def _component(root: Path) -> Path:
    comp = root / "tooling" / "log"
    (comp / "docs").mkdir(parents=True)
    (comp / "compose.yaml").write_text("compose: []\n")
    (comp / "docs" / "README.md").write_text("# log\n")
    return comp


def _build(comp: Path, component_id="lcod://tooling/log@0.1.0", **overrides):
    kwargs = dict(
        repository_url="https://github.com/lcod-team/lcod-components",
        commit="abc123",
        relative_path="tooling/log",
        published_at="2025-01-01T00:00:00Z",
    )
    kwargs.update(overrides)
    return build_manifest(component_id, comp, **kwargs)


def test_manifest_identity_and_provenance():
    with tempfile.TemporaryDirectory() as tmpdir:
        manifest = _build(_component(Path(tmpdir)))
        assert manifest.id == "lcod://tooling/log@0.1.0"
        assert manifest.source.commit == "abc123"
        assert manifest.source.path == "tooling/log"
        assert manifest.source.type == "git"
        assert manifest.published_at == "2025-01-01T00:00:00Z"
        assert manifest.dependencies == []


def test_manifest_files_prefixed_and_sorted():
    with tempfile.TemporaryDirectory() as tmpdir:
        manifest = _build(_component(Path(tmpdir)))
        assert [f.path for f in manifest.files] == [
            "tooling/log/compose.yaml",
            "tooling/log/docs/README.md",
        ]
        assert manifest.files[0].sha256 == digest_bytes(b"compose: []\n")


def test_manifest_relative_path_normalized():
    with tempfile.TemporaryDirectory() as tmpdir:
        comp = _component(Path(tmpdir))
        manifest = _build(comp, relative_path="tooling\\log\\")
        assert manifest.source.path == "tooling/log"
        root_manifest = _build(comp, relative_path=".")
        assert root_manifest.files[0].path == "compose.yaml"


def test_manifest_explicit_dependencies():
    with tempfile.TemporaryDirectory() as tmpdir:
        manifest = _build(_component(Path(tmpdir)), dependencies=["lcod://core/x@1.0.0"])
        assert manifest.dependencies == ["lcod://core/x@1.0.0"]


def test_manifest_requires_version():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(StructuralError, match="Missing version"):
            _build(_component(Path(tmpdir)), component_id="lcod://tooling/log")


def test_missing_source_dir_propagates():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(OSError):
            _build(Path(tmpdir) / "nope")
