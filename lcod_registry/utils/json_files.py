"""JSON file helpers shared by the registry and catalogue writers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from lcod_registry.errors import StructuralError


def dumps(data: Any) -> str:
    """Serialize *data* as 2-space indented JSON with a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def read_json(path: Path) -> Any:
    """Read and parse a JSON file.

    Raises:
        OSError: If the file cannot be read.
        StructuralError: If the content is not valid JSON.
    """
    data = Path(path).read_bytes()
    try:
        return json.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise StructuralError(f"{path}: not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise StructuralError(f"{path}: invalid JSON: {e}") from e


def write_json(path: Path, data: Any) -> None:
    """Write *data* to *path*, creating parent directories."""
    write_text(path, dumps(data))


def write_text(path: Path, content: str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def write_if_changed(path: Path, content: str) -> bool:
    """Write *content* unless the file already holds exactly that text.

    Returns ``True`` when the file was written.
    """
    path = Path(path)
    if path.exists() and path.read_bytes() == content.encode("utf-8"):
        return False
    write_text(path, content)
    return True
