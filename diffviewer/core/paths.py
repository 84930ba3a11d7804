from __future__ import annotations

from pathlib import Path

from diffviewer.exceptions.errors import InvalidPathError


def validate_folder_name(folder_name: str) -> str:
    """Reject anything that is not a single, plain directory name."""
    if not folder_name or not isinstance(folder_name, str):
        raise InvalidPathError("Invalid folder name")
    if ".." in folder_name or "/" in folder_name or "\\" in folder_name:
        raise InvalidPathError("Invalid folder name: path traversal not allowed")
    return folder_name


def resolve_within(root: Path, relative: str) -> Path:
    """
    Join `relative` onto `root` and make sure the result stays inside it.
    Symlinks are resolved before the check.
    """
    base = Path(root).resolve()
    candidate = (base / relative).resolve()
    if candidate != base and base not in candidate.parents:
        raise InvalidPathError(f"Invalid file path: {relative}")
    return candidate
