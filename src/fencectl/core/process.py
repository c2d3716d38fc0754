from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .logging import log_event

if TYPE_CHECKING:
    from .context import RunContext

TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False

    @property
    def combined_output(self) -> str:
        # trailing newlines only; other whitespace is still output
        return (self.stdout + self.stderr).rstrip("\r\n")

    @property
    def lines(self) -> list[str]:
        text = self.stdout + self.stderr
        if not text:
            return []
        rows = text.split("\n")
        if rows[-1] == "":
            rows.pop()
        return [row.rstrip("\r") for row in rows]


def _as_text(raw: str | bytes | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


def run_command(
    cmd: list[str],
    cwd: Path,
    timeout_seconds: float = 0,
    merge_stderr: bool = False,
    ctx: RunContext | None = None,
) -> CommandResult:
    started = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            encoding="utf-8",
            errors="replace",
            stdout=subprocess.PIPE,
            stderr=(subprocess.STDOUT if merge_stderr else subprocess.PIPE),
            check=False,
            timeout=(timeout_seconds if timeout_seconds > 0 else None),
        )
        result = CommandResult(
            code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except subprocess.TimeoutExpired as exc:
        result = CommandResult(
            code=TIMEOUT_EXIT_CODE,
            stdout=_as_text(exc.stdout),
            stderr=_as_text(exc.stderr),
            duration_ms=int((time.monotonic() - started) * 1000),
            timed_out=True,
        )
    if ctx and ctx.verbose:
        log_event(
            ctx,
            "debug",
            "process",
            "run-command",
            command=" ".join(cmd),
            cwd=str(cwd),
            code=result.code,
            duration_ms=result.duration_ms,
            timed_out=result.timed_out,
        )
    return result
