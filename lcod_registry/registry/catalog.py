"""catalog.json management — the global package id -> version index table."""

from __future__ import annotations

import logging
from pathlib import Path

from lcod_registry.registry.models import Catalog, CatalogEntry
from lcod_registry.utils.json_files import read_json, write_json

logger = logging.getLogger(__name__)


def add_package(catalog: Catalog, entry: CatalogEntry) -> bool:
    """Add *entry* unless its id is already catalogued.

    The first writer wins: an existing entry keeps its ``registryId`` and
    ``versionsPath``.  Returns ``True`` if the entry was added.
    """
    if catalog.get(entry.id) is not None:
        return False
    catalog.packages.append(entry)
    return True


def normalize(catalog: Catalog) -> Catalog:
    """Drop repeated ids (keeping the first) and sort packages by id."""
    seen: set[str] = set()
    packages = []
    for entry in catalog.packages:
        if entry.id in seen:
            logger.warning("Dropping duplicate catalog entry for %s", entry.id)
            continue
        seen.add(entry.id)
        packages.append(entry)
    catalog.packages = sorted(packages, key=lambda p: p.id)
    return catalog


class CatalogFile:
    """Reads and rewrites ``catalog.json``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Catalog:
        """Return the catalog; a missing file is an empty catalog."""
        if not self.path.exists():
            return Catalog()
        return Catalog.from_dict(read_json(self.path))

    def save(self, catalog: Catalog) -> None:
        write_json(self.path, normalize(catalog).to_dict())
