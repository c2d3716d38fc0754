from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import PassWhen
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_PREREQ
from ..core.process import CommandResult, run_command
from ..docs.materialize import Artifact

if TYPE_CHECKING:
    from ..core.context import RunContext


@dataclass(frozen=True)
class CheckOutcome:
    artifact: Artifact
    passed: bool
    lines: tuple[str, ...]
    exit_code: int
    timed_out: bool
    duration_ms: int


def is_pass(result: CommandResult, pass_when: PassWhen) -> bool:
    if result.timed_out:
        return False
    silent = not result.combined_output
    if pass_when == "exit-zero":
        return result.code == 0
    if pass_when == "empty-output-and-exit-zero":
        return silent and result.code == 0
    return silent


def resolve_executable(name: str, repo_root: Path) -> Path | None:
    if os.sep in name or (os.altsep and os.altsep in name):
        candidate = Path(name)
        candidate = candidate if candidate.is_absolute() else repo_root / candidate
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return candidate
        return None
    found = shutil.which(name)
    return Path(found) if found else None


class CheckerInvoker:
    def __init__(
        self,
        command: tuple[str, ...],
        cwd: Path,
        timeout_seconds: float = 0,
        pass_when: PassWhen = "empty-output",
        ctx: RunContext | None = None,
    ) -> None:
        if not command:
            raise ScriptError("checker command is empty", ERR_PREREQ, kind="checker_missing")
        self.command = tuple(command)
        self.cwd = cwd
        self.timeout_seconds = timeout_seconds
        self.pass_when = pass_when
        self.ctx = ctx

    def preflight(self) -> None:
        resolved = resolve_executable(self.command[0], self.cwd)
        if resolved is None:
            raise ScriptError(
                f"checker not found or not executable: {self.command[0]}",
                ERR_PREREQ,
                kind="checker_missing",
            )
        self.command = (str(resolved), *self.command[1:])

    def check(self, artifact: Artifact) -> CheckOutcome:
        cmd = [*self.command, str(artifact.path)]
        try:
            result = run_command(cmd, self.cwd, timeout_seconds=self.timeout_seconds, merge_stderr=True, ctx=self.ctx)
        except OSError as exc:
            raise ScriptError(f"unable to launch checker {self.command[0]}: {exc}", ERR_PREREQ, kind="checker_missing") from exc
        return CheckOutcome(
            artifact=artifact,
            passed=is_pass(result, self.pass_when),
            lines=tuple(result.lines),
            exit_code=result.code,
            timed_out=result.timed_out,
            duration_ms=result.duration_ms,
        )
