"""
Project identity (name, version) for log records.

The installed distribution metadata wins; a source checkout falls back to the
nearest pyproject.toml.
"""

import tomllib
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any

DISTRIBUTION_NAME = "appletree"


def find_pyproject(start: Path, max_up: int = 5) -> Path | None:
    p = start
    for _ in range(max_up):
        candidate = p / "pyproject.toml"
        if candidate.exists():
            return candidate
        if p.parent == p:
            break
        p = p.parent
    return None


def get_pyproject_value(key: str, start: Path | None = None, default: Any = None) -> Any:
    """
    Look up a dot-separated `key` (e.g. "project.version") in the nearest pyproject.toml.

    Returns `default` when the file is missing, unreadable, or lacks the key.
    """
    pyproject = find_pyproject(start or Path(__file__).resolve().parent)
    if pyproject is None:
        return default

    try:
        with pyproject.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return default

    cur: Any = data
    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def get_project_name(default: str = DISTRIBUTION_NAME) -> str:
    return get_pyproject_value("project.name", default=default)


def get_project_version(default: str = "unknown") -> str:
    try:
        return importlib_metadata.version(DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        return get_pyproject_value("project.version", default=default)
