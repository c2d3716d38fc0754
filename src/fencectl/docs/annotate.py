from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CONFIG
from .scanner import FENCE


@dataclass(frozen=True)
class AnnotateResult:
    path: Path
    rewritten: int


def bare_fence_re(marker: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(FENCE)}{re.escape(marker)}(\s*)$")


def annotate_text(text: str, marker: str, ignore_marker: str) -> tuple[str, int]:
    pattern = bare_fence_re(marker)
    count = 0
    out: list[str] = []
    for line in text.splitlines(keepends=True):
        body = line.rstrip("\r\n")
        ending = line[len(body):]
        match = pattern.match(body)
        if match:
            body = f"{FENCE}{marker} {ignore_marker}{match.group(1)}"
            count += 1
        out.append(body + ending)
    return "".join(out), count


def is_skipped(path: Path, skip_dirs: Iterable[str], root: Path | None = None) -> bool:
    rel = path
    if root is not None and path.is_absolute():
        try:
            rel = path.relative_to(root)
        except ValueError:
            rel = path
    parents = set(rel.parts[:-1])
    return any(name in parents for name in skip_dirs)


def mark_ignored(
    paths: Iterable[Path],
    marker: str,
    ignore_marker: str,
    skip_dirs: Iterable[str] = ("examples",),
    dry_run: bool = False,
    root: Path | None = None,
) -> list[AnnotateResult]:
    skip = tuple(skip_dirs)
    results: list[AnnotateResult] = []
    for path in paths:
        if is_skipped(path, skip, root):
            continue
        with path.open(encoding="utf-8", newline="") as handle:
            text = handle.read()
        updated, count = annotate_text(text, marker, ignore_marker)
        if count and not dry_run:
            try:
                with path.open("w", encoding="utf-8", newline="") as handle:
                    handle.write(updated)
            except OSError as exc:
                raise ScriptError(f"unable to rewrite {path}: {exc}", ERR_CONFIG, kind="document_unwritable") from exc
        results.append(AnnotateResult(path=path, rewritten=count))
    return results
