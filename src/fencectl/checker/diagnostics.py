"""Checker diagnostic parsing and translation into document coordinates.

A diagnostic line ``<artifact>:<line>:<col>:<message>`` maps to
``<document>:<start_line + line>:<col>:<message>``: the opening fence sits on
``start_line`` so artifact line 1 is document line ``start_line + 1``. Lines
that do not match are kept and attributed to the fence line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from ..docs.materialize import MappingEntry

_DIAGNOSTIC_RE = re.compile(r"^(?P<path>[^:]+):(?P<line>\d+):(?P<column>\d+):(?P<message>.*)$")


@dataclass(frozen=True)
class RawDiagnostic:
    artifact_path: str
    line: int
    column: int
    message: str


@dataclass(frozen=True)
class Diagnostic:
    path: str
    line: int
    column: int | None
    message: str
    translated: bool = True

    def render(self) -> str:
        if self.column is None:
            return f"{self.path}:{self.line}: {self.message}"
        return f"{self.path}:{self.line}:{self.column}:{self.message}"

    def to_json(self) -> dict[str, object]:
        return {
            "path": self.path,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "translated": self.translated,
            "rendered": self.render(),
        }


def parse_diagnostic_line(line: str, suffix: str) -> RawDiagnostic | None:
    match = _DIAGNOSTIC_RE.match(line)
    if match is None or not match.group("path").endswith(suffix):
        return None
    return RawDiagnostic(
        artifact_path=match.group("path"),
        line=int(match.group("line")),
        column=int(match.group("column")),
        message=match.group("message"),
    )


def translate_line(line: str, entry: MappingEntry, suffix: str) -> Diagnostic | None:
    if not line.strip():
        return None
    raw = parse_diagnostic_line(line, suffix)
    if raw is None:
        return fallback(entry, line)
    return Diagnostic(
        path=entry.document_path,
        line=entry.start_line + raw.line,
        column=raw.column,
        message=raw.message,
    )


def fallback(entry: MappingEntry, message: str) -> Diagnostic:
    return Diagnostic(path=entry.document_path, line=entry.start_line, column=None, message=message, translated=False)


def translate_output(lines: Iterable[str], entry: MappingEntry, suffix: str) -> list[Diagnostic]:
    out: list[Diagnostic] = []
    for line in lines:
        diagnostic = translate_line(line, entry, suffix)
        if diagnostic is not None:
            out.append(diagnostic)
    return out
