"""Tests for the local registry, version index, and catalog."""

import json
import tempfile
from pathlib import Path

import pytest

from conftest import COMMIT, COMMIT_DATE, FakeRevisionLookup, make_components_repo, write_json
from lcod_registry.errors import IdMismatchError, StructuralError, SubprocessFailureError, UnresolvedPathError
from lcod_registry.registry.catalog import CatalogFile, add_package, normalize
from lcod_registry.registry.local_registry import LocalRegistry
from lcod_registry.registry.manifest_builder import build_manifest
from lcod_registry.registry.models import Catalog, CatalogEntry, VersionIndex
from lcod_registry.registry.version_index import VersionIndexFile, upsert_version


def _publish(reg: LocalRegistry, source: Path, component_id: str, commit: str = COMMIT):
    manifest = build_manifest(
        component_id,
        source,
        repository_url="https://github.com/lcod-team/lcod-components",
        commit=commit,
        relative_path="tooling/log",
        published_at=COMMIT_DATE,
    )
    return reg.publish(manifest)


def _source(root: Path) -> Path:
    src = root / "src"
    src.mkdir()
    (src / "compose.yaml").write_text("compose: []\n")
    return src


# --- Version index ---


def test_upsert_appends_and_sorts():
    index = VersionIndex(id="lcod://a")
    for version in ["1.2.0", "1.10.0", "1.9.0"]:
        assert upsert_version(index, version, f"m/{version}")
    assert [v.version for v in index.versions] == ["1.10.0", "1.9.0", "1.2.0"]


def test_upsert_same_version_replaces_pointer():
    index = VersionIndex(id="lcod://a")
    upsert_version(index, "1.0.0", "old")
    assert not upsert_version(index, "1.0.0", "new")
    assert len(index.versions) == 1
    assert index.versions[0].manifest == "new"


def test_version_index_file_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "pkg" / "versions.json"
        vif = VersionIndexFile(path, "lcod://pkg")
        assert vif.list_versions() == []

        vif.upsert_version("0.1.0", "packages/pkg/0.1.0/manifest.json")
        vif.upsert_version("0.2.0", "packages/pkg/0.2.0/manifest.json")

        data = json.loads(path.read_text())
        assert data["schema"] == "lcod-registry/versions@1"
        assert data["id"] == "lcod://pkg"
        assert vif.list_versions() == ["0.2.0", "0.1.0"]
        assert vif.get_version("0.1.0").manifest == "packages/pkg/0.1.0/manifest.json"


def test_version_index_file_rejects_corrupt_json():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "versions.json"
        path.write_text("{not json")
        with pytest.raises(StructuralError):
            VersionIndexFile(path, "lcod://pkg").load()


# --- Catalog ---


def test_add_package_first_writer_wins():
    catalog = Catalog()
    assert add_package(catalog, CatalogEntry("lcod://a", "official", "packages/a/versions.json"))
    assert not add_package(catalog, CatalogEntry("lcod://a", "mirror", "elsewhere.json"))
    assert catalog.get("lcod://a").registry_id == "official"


def test_normalize_sorts_and_dedupes():
    catalog = Catalog(
        packages=[
            CatalogEntry("lcod://b", "official", "b"),
            CatalogEntry("lcod://a", "official", "a1"),
            CatalogEntry("lcod://a", "official", "a2"),
        ]
    )
    normalize(catalog)
    assert [(p.id, p.versions_path) for p in catalog.packages] == [("lcod://a", "a1"), ("lcod://b", "b")]


def test_catalog_file_preserves_other_keys():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_json(Path(tmpdir) / "catalog.json", {"registries": [{"id": "official"}], "packages": []})
        catalog_file = CatalogFile(path)
        catalog = catalog_file.load()
        add_package(catalog, CatalogEntry("lcod://a", "official", "a"))
        catalog_file.save(catalog)
        data = json.loads(path.read_text())
        assert data["registries"] == [{"id": "official"}]
        assert data["packages"] == [{"id": "lcod://a", "registryId": "official", "versionsPath": "a"}]


# --- Publish ---


def test_publish_writes_layout():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        reg = LocalRegistry(root / "registry")
        entry = _publish(reg, _source(root), "lcod://tooling/log@0.1.0")

        assert entry.versions_path == "packages/tooling/log/versions.json"
        manifest_file = root / "registry/packages/tooling/log/0.1.0/manifest.json"
        assert json.loads(manifest_file.read_text())["id"] == "lcod://tooling/log@0.1.0"

        versions = json.loads((root / "registry" / entry.versions_path).read_text())
        assert versions["versions"] == [
            {"version": "0.1.0", "manifest": "packages/tooling/log/0.1.0/manifest.json"}
        ]


def test_republish_is_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        reg = LocalRegistry(root / "registry")
        src = _source(root)
        _publish(reg, src, "lcod://tooling/log@0.1.0", commit="a" * 40)
        _publish(reg, src, "lcod://tooling/log@0.1.0", commit="b" * 40)

        index = reg.load_versions(reg.list_packages()[0])
        assert [v.version for v in index.versions] == ["0.1.0"]
        assert reg.get_manifest("lcod://tooling/log@0.1.0").source.commit == "b" * 40
        assert len(reg.list_packages()) == 1


def test_publish_multiple_versions():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        reg = LocalRegistry(root / "registry")
        src = _source(root)
        for version in ["1.2.0", "1.10.0", "1.9.0"]:
            _publish(reg, src, f"lcod://tooling/log@{version}")

        assert reg.latest_version("lcod://tooling/log") == "1.10.0"
        index = reg.load_versions(reg.list_packages()[0])
        assert [v.version for v in index.versions] == ["1.10.0", "1.9.0", "1.2.0"]


def test_latest_version_unknown_package():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = LocalRegistry(Path(tmpdir))
        assert reg.latest_version("lcod://nope") is None
        assert reg.list_packages() == []


def test_get_manifest_missing():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = LocalRegistry(Path(tmpdir))
        with pytest.raises(UnresolvedPathError):
            reg.get_manifest("lcod://tooling/log@0.1.0")


# --- Import ---


def test_import_components():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(root)
        reg = LocalRegistry(root / "registry")

        result = reg.import_components(repo, FakeRevisionLookup())
        assert result.commit == COMMIT
        assert result.published_at == COMMIT_DATE
        assert sorted(result.imported) == ["lcod://tooling/fs/read@1.2.0", "lcod://tooling/log@0.1.0"]
        assert sorted(result.new_packages) == ["lcod://tooling/fs/read", "lcod://tooling/log"]

        assert [p.id for p in reg.list_packages()] == ["lcod://tooling/fs/read", "lcod://tooling/log"]
        manifest = reg.get_manifest("lcod://tooling/fs/read@1.2.0")
        assert [f.path for f in manifest.files] == [
            "tooling/fs/read/compose.yaml",
            "tooling/fs/read/docs/README.md",
        ]
        assert manifest.source.url == "https://github.com/lcod-team/lcod-components"
        assert manifest.source.path == "tooling/fs/read"


def test_import_twice_keeps_one_entry_per_version():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(root)
        reg = LocalRegistry(root / "registry")
        reg.import_components(repo, FakeRevisionLookup())
        second = reg.import_components(repo, FakeRevisionLookup(commit="f" * 40))

        assert second.new_packages == []
        for entry in reg.list_packages():
            assert len(reg.load_versions(entry).versions) == 1
        assert reg.get_manifest("lcod://tooling/log@0.1.0").source.commit == "f" * 40


def test_import_falls_back_to_now_without_commit_date():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(root)
        result = LocalRegistry(root / "registry").import_components(repo, FakeRevisionLookup(date=None))
        assert result.published_at.startswith("20")
        assert result.published_at != COMMIT_DATE


def test_import_empty_manifest():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(root, components={})
        lookup = FakeRevisionLookup()
        result = LocalRegistry(root / "registry").import_components(repo, lookup)
        assert result.total == 0
        assert lookup.calls == []


def test_import_skips_malformed_entries():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(root)
        listing = json.loads((repo / "registry/components.std.json").read_text())
        listing.append({"id": "lcod://tooling/broken@1.0.0"})
        listing.append("not-an-object")
        write_json(repo / "registry/components.std.json", listing)

        result = LocalRegistry(root / "registry").import_components(repo, FakeRevisionLookup())
        assert len(result.imported) == 2
        assert result.skipped == 2


def test_import_invalid_id_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(
            root, {"tooling/log": {"id": "lcod://tooling/log", "files": {"compose.yaml": "x"}}}
        )
        with pytest.raises(StructuralError, match="Missing version"):
            LocalRegistry(root / "registry").import_components(repo, FakeRevisionLookup())


def test_import_missing_manifest():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(UnresolvedPathError):
            LocalRegistry(Path(tmpdir) / "registry").import_components(Path(tmpdir), FakeRevisionLookup())


def test_import_lookup_failure_is_fatal():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(root)
        lookup = FakeRevisionLookup()
        lookup.fail = True
        reg = LocalRegistry(root / "registry")
        with pytest.raises(SubprocessFailureError):
            reg.import_components(repo, lookup)
        assert not (root / "registry" / "catalog.json").exists()


def test_import_rejects_versions_entry_without_version():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(root)
        reg = LocalRegistry(root / "registry")
        reg.import_components(repo, FakeRevisionLookup())
        write_json(
            root / "registry/packages/tooling/log/versions.json",
            {"id": "lcod://tooling/log", "versions": [{"manifest": "m"}]},
        )
        with pytest.raises(StructuralError, match='versions\\[0\\] missing "version"'):
            reg.import_components(repo, FakeRevisionLookup())


def test_import_rejects_catalog_package_without_id():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(root)
        write_json(root / "registry/catalog.json", {"packages": [{"versionsPath": "x"}]})
        with pytest.raises(StructuralError, match='package entry missing "id"'):
            LocalRegistry(root / "registry").import_components(repo, FakeRevisionLookup())


def test_import_rejects_versions_file_of_other_package():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        repo = make_components_repo(root)
        write_json(
            root / "registry/packages/tooling/log/versions.json",
            {"id": "lcod://tooling/other", "versions": []},
        )
        with pytest.raises(IdMismatchError, match="id mismatch"):
            LocalRegistry(root / "registry").import_components(repo, FakeRevisionLookup())


def test_publish_writes_nothing_when_versions_file_is_corrupt():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        reg = LocalRegistry(root / "registry")
        versions = root / "registry/packages/tooling/log/versions.json"
        versions.parent.mkdir(parents=True)
        versions.write_text("{not json")

        with pytest.raises(StructuralError):
            _publish(reg, _source(root), "lcod://tooling/log@0.1.0")
        assert not (root / "registry/packages/tooling/log/0.1.0/manifest.json").exists()
        assert not (root / "registry/catalog.json").exists()
        assert versions.read_text() == "{not json"


def test_publish_writes_nothing_when_catalog_is_corrupt():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        reg = LocalRegistry(root / "registry")
        (root / "registry").mkdir()
        (root / "registry/catalog.json").write_bytes(b'{"packages": [\xff]}')

        with pytest.raises(StructuralError, match="not valid UTF-8"):
            _publish(reg, _source(root), "lcod://tooling/log@0.1.0")
        assert not (root / "registry/packages").exists()
