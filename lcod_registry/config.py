"""Registry configuration — where the collaborating repositories live.

Resolution happens once, when the command line starts, and the resulting
``RegistryConfig`` is passed to every component that needs a path.  For
each collaborating repository the first existing directory wins:

1. the environment variable (``COMPONENTS_REPO_PATH`` and friends)
2. the matching ``*_path`` key of ``lcod-registry.yaml`` in the registry root
3. ``<root>/<name>``, ``<root>/../<name>``, ``<root>/../../<name>``
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from lcod_registry.errors import StructuralError, UnresolvedPathError

logger = logging.getLogger(__name__)

CONFIG_FILE = "lcod-registry.yaml"

DEFAULT_SOURCE_URL = "https://github.com/lcod-team/lcod-components"
DEFAULT_REGISTRY_ID = "official"
DEFAULT_CATALOGUE_PRIORITY = 50


@dataclass(frozen=True)
class RepositorySpec:
    """How to discover one collaborating repository."""

    key: str
    env_var: str
    config_key: str
    dirname: str
    description: str


REPOSITORIES = (
    RepositorySpec("components", "COMPONENTS_REPO_PATH", "components_path",
                   "lcod-components", "lcod-components repository"),
    RepositorySpec("spec", "SPEC_REPO_PATH", "spec_path",
                   "lcod-spec", "lcod-spec repository"),
    RepositorySpec("kernel", "KERNEL_REPO_PATH", "kernel_path",
                   "lcod-kernel-js", "lcod-kernel-js repository"),
)


@dataclass
class RegistryConfig:
    """Resolved configuration for one registry checkout."""

    registry_root: Path
    components_root: Path | None = None
    spec_root: Path | None = None
    kernel_root: Path | None = None
    source_url: str = DEFAULT_SOURCE_URL
    registry_id: str = DEFAULT_REGISTRY_ID
    catalogue_priority: int = DEFAULT_CATALOGUE_PRIORITY
    tried: dict[str, list[Path]] = field(default_factory=dict)

    @classmethod
    def load(
        cls,
        registry_root: str | Path,
        environ: Mapping[str, str] | None = None,
    ) -> RegistryConfig:
        """Resolve the configuration for *registry_root*.

        Repositories that cannot be found are left as ``None``; asking for
        them through the ``require_*`` helpers raises ``UnresolvedPathError``.
        """
        root = Path(registry_root).resolve()
        env = os.environ if environ is None else environ
        settings = load_settings(root / CONFIG_FILE)

        config = cls(
            registry_root=root,
            source_url=str(settings.get("source_url", DEFAULT_SOURCE_URL)),
            registry_id=str(settings.get("registry_id", DEFAULT_REGISTRY_ID)),
            catalogue_priority=_as_int(
                settings.get("catalogue_priority", DEFAULT_CATALOGUE_PRIORITY),
                "catalogue_priority",
            ),
        )

        for repo in REPOSITORIES:
            candidates = repository_candidates(
                root, repo, env.get(repo.env_var, ""), settings.get(repo.config_key)
            )
            config.tried[repo.key] = candidates
            setattr(config, f"{repo.key}_root", resolve_first_directory(candidates))

        return config

    def require_components_root(self) -> Path:
        return self.require_root("components")

    def require_root(self, key: str) -> Path:
        """Return the resolved root of repository *key* or raise ``UnresolvedPathError``."""
        value = getattr(self, f"{key}_root")
        if value is None:
            repo = next(r for r in REPOSITORIES if r.key == key)
            raise UnresolvedPathError(
                f"{repo.description}. Provide {repo.env_var}",
                self.tried.get(key, []),
            )
        return value


def load_settings(path: Path) -> dict:
    """Load the optional YAML settings file; a missing file yields ``{}``."""
    if not path.exists():
        return {}
    with open(path, "rb") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise StructuralError(f"{path.name}: invalid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise StructuralError(f"{path.name}: expected a mapping at the top level")
    return data


def repository_candidates(
    registry_root: Path,
    repo: RepositorySpec,
    env_value: str = "",
    config_value: str | None = None,
) -> list[Path]:
    """Return the ordered candidate directories for one repository."""
    candidates: list[Path] = []
    if env_value:
        candidates.append(Path(env_value).expanduser())
    if config_value:
        candidates.append(registry_root / Path(str(config_value)).expanduser())
    candidates.extend(
        [
            registry_root / repo.dirname,
            registry_root.parent / repo.dirname,
            registry_root.parent.parent / repo.dirname,
        ]
    )
    return candidates


def resolve_first_directory(candidates: list[Path]) -> Path | None:
    """Return the first candidate that is an existing directory."""
    for candidate in candidates:
        if candidate.is_dir():
            logger.debug("Resolved %s", candidate)
            return candidate.resolve()
    return None


def _as_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise StructuralError(f"{CONFIG_FILE}: {name} must be an integer")
    return value
