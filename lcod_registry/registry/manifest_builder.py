"""Manifest builder — turn a component directory into a manifest record.

The builder is pure apart from reading the component's files: writing the
manifest into the registry layout is ``LocalRegistry``'s job.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path

from lcod_registry.registry.models import ComponentId, FileEntry, Manifest, SourceInfo
from lcod_registry.utils.hashing import digest_tree

logger = logging.getLogger(__name__)


def build_manifest(
    component_id: str | ComponentId,
    source_dir: str | Path,
    *,
    repository_url: str,
    commit: str,
    relative_path: str,
    published_at: str,
    dependencies: list[str] | None = None,
) -> Manifest:
    """Build the manifest for one component version.

    Args:
        component_id: ``lcod://...@version`` id (or an already parsed one).
        source_dir: Directory holding the component's files.
        repository_url: URL of the upstream repository.
        commit: Upstream commit the files were taken from.
        relative_path: Location of ``source_dir`` inside the upstream
            repository; file paths in the manifest are prefixed with it.
        published_at: ISO 8601 publication timestamp.
        dependencies: Versioned ids this component depends on.

    Raises:
        StructuralError: If the id is malformed or has no version.
        OSError: If any file under ``source_dir`` cannot be read.
    """
    if not isinstance(component_id, ComponentId):
        component_id = ComponentId.parse(component_id)
    elif not component_id.version:
        # Re-parse to get the standard error for a missing version.
        ComponentId.parse(str(component_id))

    relative_path = relative_path.replace("\\", "/").strip("/")
    if relative_path == ".":
        relative_path = ""

    files = [
        FileEntry(
            path=posixpath.join(relative_path, entry.path) if relative_path else entry.path,
            sha256=entry.sha256,
            size=entry.size,
        )
        for entry in digest_tree(Path(source_dir))
    ]
    logger.debug("Hashed %d files for %s", len(files), component_id.qualified_id)

    return Manifest(
        id=component_id.qualified_id,
        published_at=published_at,
        source=SourceInfo(url=repository_url, commit=commit, path=relative_path),
        files=files,
        dependencies=list(dependencies or []),
    )
