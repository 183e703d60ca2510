"""
Project metadata lookups used to stamp log records (service name and version).

The installed distribution metadata is preferred; a source checkout falls back
to the nearest pyproject.toml.
"""
from pathlib import Path
from importlib import metadata as importlib_metadata
from typing import Any
import tomllib

DISTRIBUTION_NAME = "common-repository"


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


def get_pyproject_value(
    key: str,
    start: str | Path | None = None,
    max_up: int = 5,
    default: Any = None,
) -> Any:
    """
    Return the value for the dot-separated `key` (e.g. "project.version") from
    the nearest pyproject.toml above `start` (defaults to this module's folder).

    Returns `default` if the file isn't found, can't be parsed, or the key is missing.
    """
    start_path = Path(start).resolve() if start is not None else Path(__file__).resolve().parent

    pyproject = find_pyproject(start=start_path, max_up=max_up)
    if pyproject is None:
        return default

    try:
        with pyproject.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return default

    cur = data
    for part in key.split("."):
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        else:
            return default
    return cur


def get_project_name(start: Path | str | None = None, default: str = DISTRIBUTION_NAME) -> str:
    """
    Installed distribution name first, then project.name from pyproject.toml.
    """
    try:
        return importlib_metadata.metadata(DISTRIBUTION_NAME)["Name"]
    except importlib_metadata.PackageNotFoundError:
        pass

    return get_pyproject_value("project.name", start=start, default=default)


def get_project_version(start: Path | str | None = None, default: str = "unknown") -> str:
    """
    Installed distribution version first, then project.version from pyproject.toml.
    """
    try:
        return importlib_metadata.version(DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        pass

    return get_pyproject_value("project.version", start=start, default=default)


__all__ = [
    "find_pyproject",
    "get_pyproject_value",
    "get_project_name",
    "get_project_version",
]
