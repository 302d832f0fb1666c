"""Error kinds raised while maintaining or verifying the registry."""

from __future__ import annotations

from pathlib import Path


class RegistryError(Exception):
    """Base exception for registry operations."""


class MissingEntryError(RegistryError):
    """A required record is absent from a catalogue, catalog, or index."""


class ChecksumMismatchError(RegistryError):
    """A declared checksum does not match the recomputed one."""


class CommitMismatchError(RegistryError):
    """A declared commit does not match the upstream revision."""


class IdMismatchError(RegistryError):
    """A declared id does not match the id computed for its location."""


class StructuralError(RegistryError):
    """Malformed JSON, a missing required field, or a field of the wrong type."""


class SubprocessFailureError(RegistryError):
    """The revision lookup process exited with a non-zero status."""


class UnresolvedPathError(RegistryError):
    """A repository or file cannot be located from the configured candidates."""

    def __init__(self, name: str, candidates: list[str | Path] | None = None):
        self.name = name
        self.candidates = [str(c) for c in candidates or []]
        message = f"Unable to locate {name}."
        if self.candidates:
            message += f" Tried: {', '.join(self.candidates)}"
        super().__init__(message)
