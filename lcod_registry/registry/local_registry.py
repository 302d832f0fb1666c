"""Local file-based registry implementation.

Layout, relative to the registry root::

    catalog.json
    packages/<segments>/versions.json
    packages/<segments>/<version>/manifest.json

Every write is a whole-file rewrite and there is no locking: only one
process may maintain a registry directory at a time.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from lcod_registry.config import DEFAULT_REGISTRY_ID, DEFAULT_SOURCE_URL
from lcod_registry.errors import StructuralError, UnresolvedPathError
from lcod_registry.registry.catalog import CatalogFile, add_package
from lcod_registry.registry.manifest_builder import build_manifest
from lcod_registry.registry.models import (
    CatalogEntry,
    ComponentId,
    Manifest,
    VersionIndex,
)
from lcod_registry.registry.version_index import VersionIndexFile, upsert_version
from lcod_registry.utils.git_ops import RevisionLookup
from lcod_registry.utils.json_files import read_json, write_json

logger = logging.getLogger(__name__)

COMPONENTS_MANIFEST = "registry/components.std.json"


@dataclass
class ImportResult:
    """Outcome of importing an upstream components manifest."""

    manifest_path: Path
    commit: str = ""
    published_at: str = ""
    imported: list[str] = field(default_factory=list)
    skipped: int = 0
    new_packages: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.imported) + self.skipped


class LocalRegistry:
    """File-based registry of LCOD component packages."""

    CATALOG_FILE = "catalog.json"
    PACKAGES_DIR = "packages"
    VERSIONS_FILE = "versions.json"
    MANIFEST_FILE = "manifest.json"

    def __init__(self, registry_dir: str | Path, registry_id: str = DEFAULT_REGISTRY_ID):
        self.registry_dir = Path(registry_dir)
        self.registry_id = registry_id
        self.catalog = CatalogFile(self.registry_dir / self.CATALOG_FILE)

    # -- layout -------------------------------------------------------------

    def package_dir(self, component_id: ComponentId) -> Path:
        return self.registry_dir.joinpath(self.PACKAGES_DIR, *component_id.path_segments)

    def versions_path(self, component_id: ComponentId) -> Path:
        return self.package_dir(component_id) / self.VERSIONS_FILE

    def manifest_path(self, component_id: ComponentId) -> Path:
        return self.package_dir(component_id) / component_id.version / self.MANIFEST_FILE

    def relative(self, path: Path) -> str:
        """Return *path* relative to the registry root, POSIX style."""
        return path.relative_to(self.registry_dir).as_posix()

    # -- publish ------------------------------------------------------------

    def publish(self, manifest: Manifest) -> CatalogEntry:
        """Write *manifest* and record it in the version index and catalog.

        Re-publishing the same version replaces its manifest and repoints the
        version index entry.  The catalog entry of an already known package
        is left untouched.
        """
        component_id = ComponentId.parse(manifest.id)
        manifest_file = self.manifest_path(component_id)
        versions_file = self.versions_path(component_id)

        # Both indices are loaded and updated in memory before the first write.
        index_file = VersionIndexFile(versions_file, component_id.package_id)
        index = index_file.load()
        upsert_version(index, component_id.version, self.relative(manifest_file))

        catalog = self.catalog.load()
        entry = CatalogEntry(
            id=component_id.package_id,
            registry_id=self.registry_id,
            versions_path=self.relative(versions_file),
        )
        if add_package(catalog, entry):
            logger.info("Catalogued new package %s", entry.id)

        write_json(manifest_file, manifest.to_dict())
        index_file.save(index)
        self.catalog.save(catalog)
        logger.info("Published %s", manifest.id)
        return catalog.get(entry.id) or entry

    def import_components(
        self,
        components_root: str | Path,
        revision_lookup: RevisionLookup,
        source_url: str = DEFAULT_SOURCE_URL,
    ) -> ImportResult:
        """Import every component listed in the upstream components manifest.

        Each component is imported independently; the first failure aborts
        the run, leaving components imported before it in place.

        Raises:
            UnresolvedPathError: If the components manifest does not exist.
            StructuralError: If the manifest or a component id is malformed.
            SubprocessFailureError: If the upstream commit cannot be read.
        """
        root = Path(components_root)
        manifest_path = root / COMPONENTS_MANIFEST
        result = ImportResult(manifest_path=manifest_path)

        if not manifest_path.is_file():
            raise UnresolvedPathError("components manifest", [manifest_path])
        components = read_json(manifest_path)
        if not isinstance(components, list) or not components:
            return result

        result.commit = revision_lookup.current_revision(root)
        result.published_at = (
            revision_lookup.commit_date(root, result.commit)
            or datetime.now(timezone.utc).isoformat()
        )

        known = {p.id for p in self.catalog.load().packages}

        for item in components:
            if not isinstance(item, dict) or not isinstance(item.get("id"), str) \
                    or not isinstance(item.get("composePath"), str):
                logger.debug("Skipping malformed components entry: %r", item)
                result.skipped += 1
                continue

            component_id = ComponentId.parse(item["id"])
            compose_dir = posixpath.dirname(item["composePath"].replace("\\", "/"))
            component_dir = root / compose_dir
            if not component_dir.is_dir():
                raise UnresolvedPathError(f"component directory for {item['id']}", [component_dir])

            manifest = build_manifest(
                component_id,
                component_dir,
                repository_url=source_url,
                commit=result.commit,
                relative_path=compose_dir,
                published_at=result.published_at,
            )
            self.publish(manifest)
            result.imported.append(component_id.qualified_id)
            if component_id.package_id not in known:
                known.add(component_id.package_id)
                result.new_packages.append(component_id.package_id)

        return result

    # -- query --------------------------------------------------------------

    def list_packages(self) -> list[CatalogEntry]:
        """List all catalogued packages, sorted by id."""
        return sorted(self.catalog.load().packages, key=lambda p: p.id)

    def load_versions(self, entry: CatalogEntry) -> VersionIndex:
        """Load the version index a catalog entry points at."""
        path = self.registry_dir / entry.versions_path
        if not path.is_file():
            raise UnresolvedPathError(f"version index of {entry.id}", [path])
        return VersionIndex.from_dict(read_json(path), entry.versions_path)

    def latest_version(self, package_id: str) -> str | None:
        """Return the newest published version of *package_id*, if any."""
        entry = self.catalog.load().get(package_id)
        if entry is None:
            return None
        latest = self.load_versions(entry).latest
        return latest.version if latest else None

    def get_manifest(self, component_id: str | ComponentId) -> Manifest:
        """Load the manifest of a specific component version."""
        if not isinstance(component_id, ComponentId):
            component_id = ComponentId.parse(component_id)
        path = self.manifest_path(component_id)
        if not path.is_file():
            raise UnresolvedPathError(f"manifest of {component_id}", [path])
        data = read_json(path)
        if not isinstance(data, dict) or "id" not in data:
            raise StructuralError(f"{self.relative(path)}: manifest must be an object with an id")
        return Manifest.from_dict(data)
