from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from .git import read_git_context
from .repo_root import resolve_project_root

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    repo_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    git_sha: str

    @property
    def as_json(self) -> bool:
        return self.output_format == "json"

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        cwd: str | None = None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        repo_root = resolve_project_root(Path(cwd) if cwd else None)
        git_sha = read_git_context(repo_root).sha
        default_run = f"fencectl-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{git_sha}"
        return cls(
            run_id=run_id or os.environ.get("RUN_ID", default_run),
            repo_root=repo_root,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json or os.environ.get("FENCECTL_LOG_JSON", "") == "1",
            git_sha=git_sha,
        )
