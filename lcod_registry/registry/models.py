"""Registry data models — component ids, manifests, version indices, catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from lcod_registry.errors import StructuralError

ID_SCHEME = "lcod://"

MANIFEST_SCHEMA = "lcod-registry/manifest@1"
VERSIONS_SCHEMA = "lcod-registry/versions@1"
CATALOGUES_SCHEMA = "lcod-registry/catalogues@1"
MANIFEST_LIST_SCHEMA = "lcod-manifest/list@1"

CATALOGUE_KINDS = frozenset({"https", "http", "git", "file"})

# Upstream leaves this in manifests that were never pinned to a real commit.
PLACEHOLDER_COMMIT = "SPEC_COMMIT_PLACEHOLDER"


@dataclass(frozen=True)
class ComponentId:
    """A parsed ``lcod://segment/...@version`` identifier."""

    package_id: str
    version: str = ""

    @classmethod
    def parse(cls, raw: str, require_version: bool = True) -> ComponentId:
        """Parse *raw* into a package id and version.

        Raises:
            StructuralError: If the scheme is missing, a path segment is
                empty or a dot segment, the version could escape its package
                directory, or (with ``require_version``) the version is absent.
        """
        if not isinstance(raw, str) or not raw.startswith(ID_SCHEME):
            raise StructuralError(f"Invalid component id: {raw}")
        base, _, version = raw.partition("@")
        segments = base[len(ID_SCHEME):].split("/")
        if not all(segments):
            raise StructuralError(f"Invalid component id: {raw}")
        if "@" in version or any(s in (".", "..") for s in segments):
            raise StructuralError(f"Invalid component id: {raw}")
        if version in (".", "..") or "/" in version or "\\" in version:
            raise StructuralError(f"Invalid version in id: {raw}")
        if require_version and not version:
            raise StructuralError(f"Missing version in id: {raw}")
        return cls(package_id=base, version=version)

    @property
    def path_segments(self) -> list[str]:
        return self.package_id[len(ID_SCHEME):].split("/")

    @property
    def qualified_id(self) -> str:
        return f"{self.package_id}@{self.version}"

    def __str__(self) -> str:
        return self.qualified_id if self.version else self.package_id


# --- Manifest ---


@dataclass
class FileEntry:
    """Digest of a single file inside a component."""

    path: str
    sha256: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "sha256": self.sha256, "size": self.size}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileEntry:
        return cls(path=data["path"], sha256=data["sha256"], size=data.get("size", 0))


@dataclass
class SourceInfo:
    """Where a manifest's files came from."""

    url: str
    commit: str
    path: str
    type: str = "git"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "url": self.url, "commit": self.commit, "path": self.path}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceInfo:
        return cls(
            type=data.get("type", "git"),
            url=data.get("url", ""),
            commit=data.get("commit", ""),
            path=data.get("path", ""),
        )


@dataclass
class Manifest:
    """Per-version record of a component's identity, provenance, and files."""

    id: str
    published_at: str
    source: SourceInfo
    files: list[FileEntry] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    schema: str = MANIFEST_SCHEMA

    @property
    def component_id(self) -> ComponentId:
        return ComponentId.parse(self.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema": self.schema,
            "id": self.id,
            "publishedAt": self.published_at,
            "source": self.source.to_dict(),
            "files": [f.to_dict() for f in self.files],
            "dependencies": list(self.dependencies),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Manifest:
        return cls(
            schema=data.get("schema", MANIFEST_SCHEMA),
            id=data["id"],
            published_at=data.get("publishedAt", ""),
            source=SourceInfo.from_dict(data.get("source") or {}),
            files=[FileEntry.from_dict(f) for f in data.get("files", [])],
            dependencies=list(data.get("dependencies", [])),
        )


# --- Version index ---


@dataclass
class VersionEntry:
    version: str
    manifest: str

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "manifest": self.manifest}


@dataclass
class VersionIndex:
    """Published versions of one package, newest first."""

    id: str
    versions: list[VersionEntry] = field(default_factory=list)
    schema: str = VERSIONS_SCHEMA

    def get(self, version: str) -> VersionEntry | None:
        for entry in self.versions:
            if entry.version == version:
                return entry
        return None

    @property
    def latest(self) -> VersionEntry | None:
        return self.versions[0] if self.versions else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema": self.schema,
            "id": self.id,
            "versions": [v.to_dict() for v in self.versions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "versions.json") -> VersionIndex:
        """Decode a version index; *source* names the file in error messages."""
        if not isinstance(data, dict):
            raise StructuralError(f"{source}: expected a JSON object")
        versions = data.get("versions", [])
        if not isinstance(versions, list):
            raise StructuralError(f'{source}: "versions" must be an array')
        entries = []
        for i, v in enumerate(versions):
            if not isinstance(v, dict):
                raise StructuralError(f"{source}: versions[{i}] must be an object")
            if not isinstance(v.get("version"), str) or not v["version"]:
                raise StructuralError(f'{source}: versions[{i}] missing "version"')
            manifest = v.get("manifest", "")
            if not isinstance(manifest, str):
                raise StructuralError(f'{source}: versions[{i}] "manifest" must be a string')
            entries.append(VersionEntry(version=v["version"], manifest=manifest))
        return cls(
            schema=data.get("schema", VERSIONS_SCHEMA),
            id=data.get("id", ""),
            versions=entries,
        )


# --- Catalog ---


@dataclass
class CatalogEntry:
    """Pointer from a package id to its version index."""

    id: str
    registry_id: str
    versions_path: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "registryId": self.registry_id, "versionsPath": self.versions_path}

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "catalog.json") -> CatalogEntry:
        if not isinstance(data, dict):
            raise StructuralError(f"{source}: package entry must be an object")
        if not isinstance(data.get("id"), str) or not data["id"]:
            raise StructuralError(f'{source}: package entry missing "id"')
        if not isinstance(data.get("versionsPath", ""), str):
            raise StructuralError(f'{source}: {data["id"]} "versionsPath" must be a string')
        return cls(
            id=data["id"],
            registry_id=data.get("registryId", ""),
            versions_path=data.get("versionsPath", ""),
        )


@dataclass
class Catalog:
    """The registry's global package index (``catalog.json``)."""

    packages: list[CatalogEntry] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)  # Unknown top-level keys, kept as-is

    def get(self, package_id: str) -> CatalogEntry | None:
        for entry in self.packages:
            if entry.id == package_id:
                return entry
        return None

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data["packages"] = [p.to_dict() for p in self.packages]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Catalog:
        if not isinstance(data, dict):
            raise StructuralError("catalog.json: expected a JSON object")
        packages = data.get("packages", [])
        if not isinstance(packages, list):
            raise StructuralError('catalog.json: "packages" must be an array')
        return cls(
            packages=[CatalogEntry.from_dict(p) for p in packages],
            extra={k: v for k, v in data.items() if k != "packages"},
        )


# --- Catalogues ---


@dataclass
class CatalogueEntry:
    """A pinned, checksummed pointer to an externally hosted component collection.

    ``commit`` and ``checksum`` are held at the top level regardless of the
    encoding they were read from; ``metadata`` carries everything else.
    """

    id: str
    kind: str
    url: str
    commit: str = ""
    checksum: str = ""
    priority: int = 0
    description: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.kind not in CATALOGUE_KINDS:
            raise StructuralError(
                f"catalogue {self.id}: kind must be one of {sorted(CATALOGUE_KINDS)}, got {self.kind!r}"
            )

    @property
    def manifest_path(self) -> str:
        return str(self.metadata.get("manifestPath", ""))
