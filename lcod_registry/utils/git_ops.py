"""Git operations — resolve the current revision of an upstream checkout."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from lcod_registry.errors import SubprocessFailureError

logger = logging.getLogger(__name__)


class RevisionLookup(Protocol):
    """Anything that can tell which commit a working copy is at."""

    def current_revision(self, path: Path) -> str:
        """Return the commit checked out at *path*.

        Raises:
            SubprocessFailureError: If the lookup fails.
        """
        ...

    def commit_date(self, path: Path, commit: str) -> str | None:
        """Return the ISO 8601 committer date of *commit*, or ``None``."""
        ...


class GitRevisionLookup:
    """``RevisionLookup`` backed by the ``git`` executable via GitPython."""

    def current_revision(self, path: Path) -> str:
        """Equivalent of ``git rev-parse HEAD`` run inside *path*."""
        try:
            repo = Repo(path)
            commit = repo.git.rev_parse("HEAD").strip()
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise SubprocessFailureError(
                f"Unable to determine commit of {path}: not a git repository"
            ) from e
        except GitCommandError as e:
            detail = (e.stderr or e.stdout or str(e)).strip()
            raise SubprocessFailureError(
                f"Unable to determine commit of {path}: {detail}"
            ) from e
        logger.debug("%s is at %s", path, commit)
        return commit

    def commit_date(self, path: Path, commit: str) -> str | None:
        try:
            return Repo(path).git.show("-s", "--format=%cI", commit).strip() or None
        except (InvalidGitRepositoryError, NoSuchPathError, GitCommandError) as e:
            logger.warning("Could not read commit date of %s: %s", commit, e)
            return None
