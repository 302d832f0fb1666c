"""File scanner — enumerate every regular file below a component directory."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def scan_tree(root: Path) -> list[Path]:
    """Recursively collect the regular files under *root*, sorted by relative path.

    Nothing is skipped: hidden files and build artefacts are included, since
    the manifest must describe the directory byte for byte.  Symlinks are
    not regular files and are left out.  A directory that cannot be listed
    raises ``OSError``.
    """
    files = _walk(Path(root))
    return sorted(files, key=lambda p: relative_posix(p, root))


def relative_posix(path: Path, root: Path) -> str:
    """Return *path* relative to *root* with forward slashes."""
    return Path(path).relative_to(root).as_posix()


def _walk(directory: Path) -> list[Path]:
    files: list[Path] = []
    for item in directory.iterdir():
        if item.is_symlink():
            logger.debug("Skipping symlink %s", item)
            continue
        if item.is_dir():
            files.extend(_walk(item))
        elif item.is_file():
            files.append(item)
    return files
