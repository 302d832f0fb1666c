"""Content hashing — sha256 digests over file bytes and directory trees."""

from __future__ import annotations

import base64
import hashlib
from pathlib import Path

from lcod_registry.registry.models import FileEntry
from lcod_registry.utils.file_scanner import relative_posix, scan_tree

CHUNK_SIZE = 8192


def digest_bytes(data: bytes) -> str:
    """Return the lowercase hex sha256 of *data*."""
    return hashlib.sha256(data).hexdigest()


def digest_file(path: Path) -> FileEntry:
    """Hash a file in chunks.

    Returns:
        A ``FileEntry`` whose ``path`` is the file's name; callers that
        know the tree root replace it with the relative path.

    Raises:
        OSError: If the file cannot be read.
    """
    hasher = hashlib.sha256()
    size = 0
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
            size += len(chunk)
    return FileEntry(path=Path(path).name, sha256=hasher.hexdigest(), size=size)


def digest_tree(root: Path) -> list[FileEntry]:
    """Hash every regular file under *root*.

    Entries carry POSIX paths relative to *root* and are sorted by path, so
    identical content produces identical output on every platform.
    """
    root = Path(root)
    entries = []
    for path in scan_tree(root):
        entry = digest_file(path)
        entry.path = relative_posix(path, root)
        entries.append(entry)
    return entries


def sri_checksum(data: bytes) -> str:
    """Return a ``sha256-<base64>`` checksum of *data*."""
    digest = hashlib.sha256(data).digest()
    return f"sha256-{base64.b64encode(digest).decode('ascii')}"


def sri_checksum_file(path: Path) -> str:
    return sri_checksum(Path(path).read_bytes())
