"""versions.json management -- upsert logic for a package's published versions.

When a component version is imported, the package's ``versions.json`` is
updated: a new version is appended, a known version has its manifest
pointer replaced.  The list is re-sorted newest first after every upsert,
so calling it twice with the same data produces the same file content.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lcod_registry.errors import IdMismatchError
from lcod_registry.registry.models import VersionEntry, VersionIndex
from lcod_registry.registry.semver import version_sort_key
from lcod_registry.utils.json_files import read_json, write_json

logger = logging.getLogger(__name__)


def upsert_version(index: VersionIndex, version: str, manifest: str) -> bool:
    """Add *version* to *index* or repoint its manifest.

    Returns ``True`` if the version was new.
    """
    existing = index.get(version)
    if existing is not None:
        existing.manifest = manifest
        added = False
    else:
        index.versions.append(VersionEntry(version=version, manifest=manifest))
        added = True
    index.versions.sort(key=lambda v: version_sort_key(v.version), reverse=True)
    return added


class VersionIndexFile:
    """Manages one package's ``versions.json``."""

    def __init__(self, path: str | Path, package_id: str):
        """Initialize with the path to versions.json and the owning package id."""
        self.path = Path(path)
        self.package_id = package_id

    # -- upsert -------------------------------------------------------------

    def upsert_version(self, version: str, manifest: str) -> VersionIndex:
        """Record *manifest* for *version* and write the file back."""
        index = self.load()
        added = upsert_version(index, version, manifest)
        logger.debug(
            "%s %s in %s", "Added" if added else "Updated", version, self.path
        )
        self.save(index)
        return index

    def save(self, index: VersionIndex) -> None:
        write_json(self.path, index.to_dict())

    # -- query --------------------------------------------------------------

    def load(self) -> VersionIndex:
        """Return the index, or an empty one if the file does not exist yet.

        Raises:
            StructuralError: If the file exists but is not a valid index.
            IdMismatchError: If the file belongs to another package.
        """
        if not self.path.exists():
            return VersionIndex(id=self.package_id)
        index = VersionIndex.from_dict(read_json(self.path), str(self.path))
        if index.id != self.package_id:
            raise IdMismatchError(
                f"{self.path}: id mismatch (expected {self.package_id}, found {index.id or None})"
            )
        return index

    def get_version(self, version: str) -> VersionEntry | None:
        return self.load().get(version)

    def list_versions(self) -> list[str]:
        return [v.version for v in self.load().versions]
