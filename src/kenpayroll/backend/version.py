"""Project version lookup shared by the health check and the CLI tools."""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Final

PACKAGE_NAME: Final = "kenpayroll"
PYPROJECT_PATH: Final = Path(__file__).resolve().parents[3] / "pyproject.toml"


@lru_cache(maxsize=1)
def get_project_version() -> str:
    """Return the installed distribution version, or the checkout's one."""

    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        return _version_from_pyproject(PYPROJECT_PATH)


def _version_from_pyproject(path: Path) -> str:
    """Read ``[project].version`` without requiring a TOML parser."""

    if not path.exists():
        raise RuntimeError(f"Project metadata not found at {path}")

    in_project = False
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue
        if line.startswith("["):
            in_project = line == "[project]"
            continue
        key, sep, value = line.partition("=")
        if in_project and sep and key.strip() == "version":
            version = value.strip().strip("\"'")
            if version:
                return version

    raise RuntimeError(f"No [project] version declared in {path}")


__all__ = ["PACKAGE_NAME", "get_project_version"]
