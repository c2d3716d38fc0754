"""Project root detection helpers.

`Path.cwd()` is only allowed in this module.
"""

from __future__ import annotations

from pathlib import Path

ROOT_MARKERS = (".git", "pyproject.toml", ".fencectl.json", ".fencectl.yaml", ".fencectl.yml")


def find_repo_root(start: Path | None = None) -> Path:
    cur = (start or Path.cwd()).resolve()
    if cur.is_file():
        cur = cur.parent
    while True:
        if any((cur / marker).exists() for marker in ROOT_MARKERS):
            return cur
        if cur.parent == cur:
            raise RuntimeError("unable to resolve project root")
        cur = cur.parent


def try_find_repo_root(start: Path | None = None) -> Path | None:
    try:
        return find_repo_root(start)
    except RuntimeError:
        return None


def resolve_project_root(start: Path | None = None) -> Path:
    found = try_find_repo_root(start)
    if found is not None:
        return found
    return (start or Path.cwd()).resolve()
