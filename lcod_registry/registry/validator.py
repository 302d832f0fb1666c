"""Structural validator for the persisted registry.

Walks ``catalog.json`` -> each package's ``versions.json`` -> each version's
``manifest.json`` and records every problem it finds instead of stopping at
the first one, so a single run reports everything that needs fixing:

- catalog entries have a unique ``id`` and a ``versionsPath``
- each version index names the same package as its catalog entry
- versions are unique, non-empty, and ordered newest to oldest
- each manifest's ``id`` is exactly ``<package>@<version>``
- no manifest is pinned to the placeholder commit
- every manifest lists at least one file, each with a sha256

The validator only reads; it never repairs anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from lcod_registry.errors import StructuralError
from lcod_registry.registry.models import ID_SCHEME, PLACEHOLDER_COMMIT
from lcod_registry.registry.semver import is_not_older
from lcod_registry.utils.json_files import read_json

logger = logging.getLogger(__name__)


class IssueCode(Enum):
    MISSING_ENTRY = "missing_entry"
    ID_MISMATCH = "id_mismatch"
    ORDERING_VIOLATION = "ordering_violation"
    STRUCTURAL_ERROR = "structural_error"
    UNRESOLVED_PATH = "unresolved_path"


@dataclass
class ValidationIssue:
    """A single problem found in the registry."""

    code: IssueCode
    message: str
    path: str = ""  # Registry-relative file the issue was found in


@dataclass
class RegistryValidationResult:
    """Every issue found in one validation pass."""

    issues: list[ValidationIssue] = field(default_factory=list)
    packages_checked: int = 0
    versions_checked: int = 0

    @property
    def passed(self) -> bool:
        return not self.issues

    @property
    def messages(self) -> list[str]:
        return [i.message for i in self.issues]

    def by_code(self, code: IssueCode) -> list[ValidationIssue]:
        return [i for i in self.issues if i.code == code]

    def add(self, code: IssueCode, message: str, path: str = "") -> None:
        logger.debug("%s: %s", code.value, message)
        self.issues.append(ValidationIssue(code=code, message=message, path=path))

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return (
            f"[{status}] {len(self.issues)} error(s) across "
            f"{self.packages_checked} package(s), {self.versions_checked} version(s)"
        )


class _Unreadable(Exception):
    def __init__(self, message: str, code: IssueCode):
        super().__init__(message)
        self.code = code


def validate_registry(registry_dir: str | Path) -> RegistryValidationResult:
    """Validate the registry rooted at *registry_dir*.

    Returns:
        RegistryValidationResult with all issues found.
    """
    root = Path(registry_dir)
    result = RegistryValidationResult()

    try:
        catalog = _read(root, "catalog.json")
    except _Unreadable as e:
        result.add(e.code, str(e), "catalog.json")
        return result

    packages = catalog.get("packages") if isinstance(catalog, dict) else None
    if not isinstance(packages, list):
        result.add(IssueCode.STRUCTURAL_ERROR, 'catalog.json: "packages" must be an array', "catalog.json")
        return result

    seen: set[str] = set()
    for pkg in packages:
        _check_package(root, pkg, seen, result)

    return result


def manifest_path_for(package_id: str, version: str) -> str:
    """Default manifest location for a version entry without ``manifest``."""
    segments = package_id.replace(ID_SCHEME, "", 1).replace("\\", "/")
    return f"packages/{segments}/{version}/manifest.json"


def _check_package(root: Path, pkg: Any, seen: set[str], result: RegistryValidationResult):
    if not isinstance(pkg, dict):
        result.add(IssueCode.STRUCTURAL_ERROR, "catalog.json: invalid package entry (not an object)", "catalog.json")
        return

    pkg_id = pkg.get("id")
    if not isinstance(pkg_id, str) or not pkg_id:
        result.add(IssueCode.MISSING_ENTRY, 'catalog.json: package entry missing "id"', "catalog.json")
        return
    if pkg_id in seen:
        result.add(IssueCode.STRUCTURAL_ERROR, f"catalog.json: duplicate package id {pkg_id}", "catalog.json")
        return
    seen.add(pkg_id)

    versions_path = pkg.get("versionsPath")
    if not isinstance(versions_path, str) or not versions_path:
        result.add(IssueCode.MISSING_ENTRY, f'catalog.json: {pkg_id} missing "versionsPath"', "catalog.json")
        return

    result.packages_checked += 1

    try:
        index = _read(root, versions_path)
    except _Unreadable as e:
        result.add(e.code, str(e), versions_path)
        return
    if not isinstance(index, dict):
        result.add(IssueCode.STRUCTURAL_ERROR, f"{versions_path}: expected a JSON object", versions_path)
        return

    if index.get("id") != pkg_id:
        result.add(
            IssueCode.ID_MISMATCH,
            f"{versions_path}: id mismatch (expected {pkg_id}, found {index.get('id')})",
            versions_path,
        )

    versions = index.get("versions")
    if not isinstance(versions, list) or not versions:
        result.add(IssueCode.STRUCTURAL_ERROR, f"{versions_path}: versions array must be non-empty", versions_path)
        return

    previous: str | None = None
    seen_versions: set[str] = set()
    for entry in versions:
        if not isinstance(entry, dict):
            result.add(IssueCode.STRUCTURAL_ERROR, f"{versions_path}: invalid version entry (not an object)", versions_path)
            continue
        version = entry.get("version")
        if not isinstance(version, str) or not version:
            result.add(IssueCode.MISSING_ENTRY, f'{versions_path}: entry missing "version"', versions_path)
            continue
        if version in seen_versions:
            result.add(IssueCode.STRUCTURAL_ERROR, f"{versions_path}: duplicate version {version}", versions_path)
        seen_versions.add(version)

        if previous is not None and not is_not_older(previous, version):
            result.add(
                IssueCode.ORDERING_VIOLATION,
                f"{versions_path}: versions must be ordered newest to oldest "
                f"(found {previous} before {version})",
                versions_path,
            )
        previous = version

        result.versions_checked += 1
        manifest_rel = entry.get("manifest") or manifest_path_for(pkg_id, version)
        if not isinstance(manifest_rel, str):
            result.add(IssueCode.STRUCTURAL_ERROR, f'{versions_path}: {version} "manifest" must be a string', versions_path)
            continue
        _check_manifest(root, manifest_rel, f"{pkg_id}@{version}", result)


def _check_manifest(root: Path, manifest_rel: str, expected_id: str, result: RegistryValidationResult):
    try:
        manifest = _read(root, manifest_rel)
    except _Unreadable as e:
        result.add(e.code, str(e), manifest_rel)
        return
    if not isinstance(manifest, dict):
        result.add(IssueCode.STRUCTURAL_ERROR, f"{manifest_rel}: expected a JSON object", manifest_rel)
        return

    if manifest.get("id") != expected_id:
        result.add(
            IssueCode.ID_MISMATCH,
            f"{manifest_rel}: id mismatch (expected {expected_id}, found {manifest.get('id')})",
            manifest_rel,
        )

    source = manifest.get("source")
    if not isinstance(source, dict):
        result.add(IssueCode.MISSING_ENTRY, f"{manifest_rel}: missing source metadata", manifest_rel)
    elif source.get("commit") == PLACEHOLDER_COMMIT:
        result.add(
            IssueCode.STRUCTURAL_ERROR,
            f"{manifest_rel}: source.commit must not be {PLACEHOLDER_COMMIT}",
            manifest_rel,
        )

    files = manifest.get("files")
    if not isinstance(files, list) or not files:
        result.add(IssueCode.STRUCTURAL_ERROR, f"{manifest_rel}: files array must be non-empty", manifest_rel)
        return
    for file_entry in files:
        if not isinstance(file_entry, dict) or not isinstance(file_entry.get("path"), str):
            result.add(IssueCode.STRUCTURAL_ERROR, f"{manifest_rel}: invalid file entry (missing path)", manifest_rel)
            continue
        sha256 = file_entry.get("sha256")
        if not isinstance(sha256, str) or not sha256:
            result.add(
                IssueCode.MISSING_ENTRY,
                f"{manifest_rel}: file {file_entry['path']} missing sha256",
                manifest_rel,
            )


def _read(root: Path, relative: str) -> Any:
    try:
        return read_json(root / relative)
    except OSError as e:
        raise _Unreadable(
            f"Failed to read {relative}: {e.strerror or e}", IssueCode.UNRESOLVED_PATH
        ) from e
    except StructuralError as e:
        raise _Unreadable(f"Failed to read {relative}: {e}", IssueCode.STRUCTURAL_ERROR) from e
