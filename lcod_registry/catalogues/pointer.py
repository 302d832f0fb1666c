"""Pinned pointer to the upstream ``tooling/std`` catalogue.

The pointer records the upstream commit and a ``sha256-<base64>`` checksum
of the upstream components manifest, so consumers can confirm they fetched
byte-identical content.  Both catalogue encodings are regenerated together
and each file is rewritten only when its content changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lcod_registry.catalogues.codec import (
    LINES_FILE,
    STRUCTURED_FILE,
    encode_lines,
    encode_structured,
    load_lines,
    load_structured,
    upsert_entry,
)
from lcod_registry.config import RegistryConfig
from lcod_registry.errors import UnresolvedPathError
from lcod_registry.registry.models import CatalogueEntry
from lcod_registry.utils.git_ops import RevisionLookup
from lcod_registry.utils.hashing import sri_checksum_file
from lcod_registry.utils.json_files import write_if_changed

logger = logging.getLogger(__name__)

STD_CATALOGUE_ID = "tooling/std"
STD_DESCRIPTION = "Standard tooling catalogue exported from lcod-components."
STRUCTURED_MANIFEST = "registry/components.std.json"
LINES_MANIFEST = "registry/components.std.jsonl"

_GITHUB_PREFIX = "https://github.com/"


@dataclass
class UpdateResult:
    """Which catalogue files were rewritten."""

    entry: CatalogueEntry
    changed: dict[str, bool]


def raw_url(source_url: str, commit: str, manifest_path: str) -> str:
    """URL of *manifest_path* at *commit*; it always embeds the commit."""
    base = source_url.rstrip("/")
    if base.startswith(_GITHUB_PREFIX):
        repo = base[len(_GITHUB_PREFIX):]
        return f"https://raw.githubusercontent.com/{repo}/{commit}/{manifest_path}"
    return f"{base}/{commit}/{manifest_path}"


def build_std_entry(
    config: RegistryConfig,
    revision_lookup: RevisionLookup,
    manifest_path: str = STRUCTURED_MANIFEST,
) -> CatalogueEntry:
    """Pin ``tooling/std`` to the current state of the components checkout."""
    components_root = config.require_components_root()
    manifest_file = components_root / manifest_path
    if not manifest_file.is_file():
        raise UnresolvedPathError("upstream components manifest", [manifest_file])

    checksum = sri_checksum_file(manifest_file)
    commit = revision_lookup.current_revision(components_root)
    logger.debug("Pinned %s at %s (%s)", manifest_path, commit, checksum)

    return CatalogueEntry(
        id=STD_CATALOGUE_ID,
        description=STD_DESCRIPTION,
        kind="https",
        url=raw_url(config.source_url, commit, manifest_path),
        commit=commit,
        checksum=checksum,
        priority=config.catalogue_priority,
        metadata={"sourceRepo": config.source_url, "manifestPath": manifest_path},
    )


def update_catalogues(registry_root: str | Path, entry: CatalogueEntry) -> UpdateResult:
    """Write *entry* into both catalogue encodings, keeping other entries."""
    root = Path(registry_root)
    structured_path = root / STRUCTURED_FILE
    lines_path = root / LINES_FILE

    structured = load_structured(structured_path) if structured_path.exists() else []
    lines = load_lines(lines_path) if lines_path.exists() else []

    changed = {
        STRUCTURED_FILE: write_if_changed(structured_path, encode_structured(upsert_entry(structured, entry))),
        LINES_FILE: write_if_changed(lines_path, encode_lines(upsert_entry(lines, entry))),
    }
    for name, was_written in changed.items():
        logger.info("%s %s", name, "updated" if was_written else "up-to-date")
    return UpdateResult(entry=entry, changed=changed)
