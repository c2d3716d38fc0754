from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .process import run_command

UNKNOWN_SHA = "unknown"


@dataclass(frozen=True)
class GitContext:
    sha: str


def read_git_context(repo_root: Path) -> GitContext:
    try:
        res = run_command(["git", "rev-parse", "--short", "HEAD"], repo_root)
    except OSError:
        return GitContext(sha=UNKNOWN_SHA)
    sha = res.stdout.strip() if res.code == 0 else ""
    return GitContext(sha=sha or UNKNOWN_SHA)
