"""Cross-validation of the pinned ``tooling/std`` catalogue pointer.

For each catalogue encoding present in the registry root:

1. the ``tooling/std`` entry must exist
2. its checksum must equal ``sha256-<base64>`` of the upstream manifest
3. its commit must equal the upstream checkout's current revision
4. its url must embed that revision

When both encodings are present they must also agree with each other on
``url``, ``commit`` and ``checksum``.  Validation stops at the first
failure and never writes anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from lcod_registry.catalogues.codec import LINES_FILE, STRUCTURED_FILE, load_lines, load_structured
from lcod_registry.catalogues.pointer import LINES_MANIFEST, STD_CATALOGUE_ID, STRUCTURED_MANIFEST
from lcod_registry.config import RegistryConfig
from lcod_registry.errors import (
    ChecksumMismatchError,
    CommitMismatchError,
    MissingEntryError,
    StructuralError,
    UnresolvedPathError,
)
from lcod_registry.registry.models import CatalogueEntry
from lcod_registry.utils.git_ops import RevisionLookup
from lcod_registry.utils.hashing import sri_checksum_file

logger = logging.getLogger(__name__)

# Upstream manifest hashed when an entry does not name one in metadata.manifestPath.
DEFAULT_MANIFESTS = {
    STRUCTURED_FILE: STRUCTURED_MANIFEST,
    LINES_FILE: LINES_MANIFEST,
}

_LOADERS = {
    STRUCTURED_FILE: load_structured,
    LINES_FILE: load_lines,
}


@dataclass
class PointerCheck:
    """A verified catalogue entry from one encoding."""

    source: str
    entry: CatalogueEntry
    manifest_path: str
    checksum: str
    commit: str


@dataclass
class CatalogueVerification:
    checks: list[PointerCheck] = field(default_factory=list)

    @property
    def cross_checked(self) -> bool:
        return len(self.checks) > 1


def find_entry(entries: list[CatalogueEntry], catalogue_id: str, source: str) -> CatalogueEntry:
    for entry in entries:
        if entry.id == catalogue_id:
            return entry
    raise MissingEntryError(f"{source}: {catalogue_id} entry missing")


def reconcile(structured: CatalogueEntry, lines: CatalogueEntry) -> None:
    """Require the two decoded encodings of one entry to agree.

    Raises:
        StructuralError: If the urls differ.
        CommitMismatchError: If the commits differ.
        ChecksumMismatchError: If the checksums differ.
    """
    if structured.url != lines.url:
        raise StructuralError(
            f"{LINES_FILE}: url mismatch with {STRUCTURED_FILE} "
            f"(expected {structured.url}, found {lines.url})"
        )
    if structured.commit != lines.commit:
        raise CommitMismatchError(
            f"{LINES_FILE}: metadata.commit mismatch with {STRUCTURED_FILE} "
            f"(expected {structured.commit}, found {lines.commit})"
        )
    if structured.checksum != lines.checksum:
        raise ChecksumMismatchError(
            f"{LINES_FILE}: metadata.checksum mismatch with {STRUCTURED_FILE} "
            f"(expected {structured.checksum}, found {lines.checksum})"
        )


class CatalogueValidator:
    """Verifies catalogue pointers against the upstream components checkout."""

    def __init__(
        self,
        config: RegistryConfig,
        revision_lookup: RevisionLookup,
        catalogue_id: str = STD_CATALOGUE_ID,
    ):
        self.config = config
        self.revision_lookup = revision_lookup
        self.catalogue_id = catalogue_id

    def verify(self) -> CatalogueVerification:
        """Verify every encoding present in the registry root, then cross-check them.

        Raises:
            MissingEntryError: If neither encoding exists or the entry is absent.
            UnresolvedPathError: If the upstream checkout or manifest is missing.
            ChecksumMismatchError, CommitMismatchError: On a stale pin.
            SubprocessFailureError: If the revision lookup fails.
        """
        root = self.config.registry_root
        result = CatalogueVerification()

        for name, loader in _LOADERS.items():
            path = root / name
            if not path.exists():
                logger.debug("%s not present, skipping", name)
                continue
            entry = find_entry(loader(path), self.catalogue_id, name)
            result.checks.append(self.verify_entry(entry, name))

        if not result.checks:
            raise MissingEntryError(
                f"No catalogue encodings found in {root} (expected {STRUCTURED_FILE} or {LINES_FILE})"
            )
        if result.cross_checked:
            reconcile(result.checks[0].entry, result.checks[1].entry)
        return result

    def verify_entry(self, entry: CatalogueEntry, source: str = STRUCTURED_FILE) -> PointerCheck:
        """Check one decoded entry against the upstream checkout."""
        components_root = self.config.require_components_root()
        manifest_path = entry.manifest_path or DEFAULT_MANIFESTS.get(source, STRUCTURED_MANIFEST)
        manifest_file = Path(components_root) / manifest_path
        if not manifest_file.is_file():
            raise UnresolvedPathError("upstream components manifest", [manifest_file])

        expected_checksum = sri_checksum_file(manifest_file)
        if entry.checksum != expected_checksum:
            raise ChecksumMismatchError(
                f"{source}: checksum mismatch. Expected {expected_checksum}, found {entry.checksum}"
            )

        commit = self.revision_lookup.current_revision(components_root)
        if entry.commit != commit:
            raise CommitMismatchError(
                f"{source}: commit mismatch. Expected {commit}, found {entry.commit}"
            )
        if commit not in entry.url:
            raise CommitMismatchError(
                f"{source}: {entry.id} url must embed the pinned commit {commit}"
            )

        logger.debug("%s: %s verified at %s", source, entry.id, commit)
        return PointerCheck(
            source=source,
            entry=entry,
            manifest_path=manifest_path,
            checksum=expected_checksum,
            commit=commit,
        )
