"""swiftprimer: markdown lessons on the Swift language, with a reader CLI."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]

DISTRIBUTION_NAME = "swiftprimer"


def _version_from_pyproject() -> str | None:
    """Version from the nearest pyproject.toml that declares this project, for source checkouts."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.is_file():
            continue
        try:
            project = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project", {})
        except tomllib.TOMLDecodeError:
            continue
        if project.get("name") == DISTRIBUTION_NAME and isinstance(project.get("version"), str):
            return project["version"]
    return None


_project_version = _version_from_pyproject()
if _project_version is not None:
    __version__ = _project_version
else:
    try:
        __version__ = version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        __version__ = "0+unknown"
