"""Shared fakes and on-disk fixture builders."""

import json
from pathlib import Path

from lcod_registry.errors import SubprocessFailureError

COMMIT = "0123456789abcdef0123456789abcdef01234567"
COMMIT_DATE = "2025-03-01T12:00:00+01:00"

COMPONENTS = {
    "tooling/log": {
        "id": "lcod://tooling/log@0.1.0",
        "files": {"compose.yaml": "compose: []\n", "lcp.toml": 'id = "lcod://tooling/log@0.1.0"\n'},
    },
    "tooling/fs/read": {
        "id": "lcod://tooling/fs/read@1.2.0",
        "files": {"compose.yaml": "compose: [read]\n", "docs/README.md": "# read\n"},
    },
}


class FakeRevisionLookup:
    """Stands in for git: returns a fixed commit, or fails like a non-zero exit."""

    def __init__(self, commit: str = COMMIT, date: str | None = COMMIT_DATE):
        self.commit = commit
        self.date = date
        self.fail = False
        self.calls: list[Path] = []

    def current_revision(self, path):
        self.calls.append(Path(path))
        if self.fail:
            raise SubprocessFailureError(f"Unable to determine commit of {path}: fatal: not a git repository")
        return self.commit

    def commit_date(self, path, commit):
        return self.date


def make_components_repo(root: Path, components: dict | None = None) -> Path:
    """Write a minimal lcod-components checkout under *root*."""
    components = COMPONENTS if components is None else components
    repo = root / "lcod-components"
    listing = []
    for rel_dir, spec in components.items():
        for name, content in spec["files"].items():
            path = repo / rel_dir / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        listing.append({"id": spec["id"], "composePath": f"{rel_dir}/compose.yaml"})
    (repo / "registry").mkdir(parents=True, exist_ok=True)
    (repo / "registry" / "components.std.json").write_text(json.dumps(listing, indent=2) + "\n")
    (repo / "registry" / "components.std.jsonl").write_text(
        "\n".join(json.dumps(item) for item in listing) + "\n"
    )
    return repo


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")
    return path
