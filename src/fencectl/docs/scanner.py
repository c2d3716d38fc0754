"""Fenced code block discovery in documentation trees.

Scanning runs an explicit three-state machine per document:

* ``Outside``: between blocks, waiting for an opening fence tagged with the marker.
* ``InCheckedBlock``: collecting lines of a block that will be materialized.
* ``InIgnoredBlock``: skipping a block whose opening fence carries the ignore marker.

Fences tagged with any other language are inert while ``Outside``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Union

FENCE = "```"


class BlockMode(str, enum.Enum):
    CHECKED = "checked"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Document:
    path: Path
    display_path: str
    lines: tuple[str, ...]

    @classmethod
    def load(cls, path: Path, repo_root: Path) -> "Document":
        text = path.read_text(encoding="utf-8", errors="replace")
        return cls(path=path, display_path=display_path(path, repo_root), lines=split_lines(text))


@dataclass(frozen=True)
class CodeBlock:
    document: Document
    start_line: int
    content: tuple[str, ...]
    mode: BlockMode

    @property
    def checked(self) -> bool:
        return self.mode is BlockMode.CHECKED


@dataclass(frozen=True)
class UnterminatedBlock:
    document: Document
    start_line: int

    def describe(self) -> str:
        return f"{self.document.display_path}:{self.start_line}: unterminated code block dropped"


@dataclass(frozen=True)
class Outside:
    pass


@dataclass(frozen=True)
class InCheckedBlock:
    start_line: int
    buffer: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class InIgnoredBlock:
    start_line: int


ScanState = Union[Outside, InCheckedBlock, InIgnoredBlock]
ScanEvent = Union[CodeBlock, UnterminatedBlock]


def split_lines(text: str) -> tuple[str, ...]:
    if not text:
        return ()
    raw = text.split("\n")
    if raw[-1] == "":
        raw.pop()
    return tuple(line.removesuffix("\r") for line in raw)


def display_path(path: Path, repo_root: Path) -> str:
    try:
        return path.resolve().relative_to(repo_root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def parse_opening_fence(line: str, marker: str, ignore_marker: str) -> BlockMode | None:
    if not line.startswith(FENCE):
        return None
    words = line[len(FENCE):].split()
    if not words or words[0] != marker:
        return None
    return BlockMode.IGNORED if ignore_marker in words[1:] else BlockMode.CHECKED


def _has_content(lines: list[str]) -> bool:
    return any(line.strip() for line in lines)


def scan_document(document: Document, marker: str, ignore_marker: str = "ignore") -> Iterator[ScanEvent]:
    state: ScanState = Outside()
    for line_num, line in enumerate(document.lines, start=1):
        if isinstance(state, Outside):
            mode = parse_opening_fence(line, marker, ignore_marker)
            if mode is BlockMode.CHECKED:
                state = InCheckedBlock(start_line=line_num)
            elif mode is BlockMode.IGNORED:
                state = InIgnoredBlock(start_line=line_num)
            continue
        if line.startswith(FENCE):
            if isinstance(state, InCheckedBlock) and _has_content(state.buffer):
                yield CodeBlock(document, state.start_line, tuple(state.buffer), BlockMode.CHECKED)
            elif isinstance(state, InIgnoredBlock):
                yield CodeBlock(document, state.start_line, (), BlockMode.IGNORED)
            state = Outside()
        elif isinstance(state, InCheckedBlock):
            state.buffer.append(line)
    if not isinstance(state, Outside):
        yield UnterminatedBlock(document, state.start_line)


class DocumentSource:
    """Restartable lazy sequence of documents from a docs root or an explicit file list."""

    def __init__(
        self,
        repo_root: Path,
        docs_root: Path,
        patterns: Iterable[str] = ("*.md", "*.mdx"),
        files: Iterable[Path] = (),
    ) -> None:
        self.repo_root = repo_root
        self.docs_root = docs_root
        self.patterns = tuple(patterns)
        self.files = tuple(files)
        self.missing: list[Path] = []

    def paths(self) -> list[Path]:
        if self.files:
            resolved = [p if p.is_absolute() else self.repo_root / p for p in self.files]
            self.missing = [p for p in resolved if not p.is_file()]
            return [p for p in resolved if p.is_file()]
        if not self.docs_root.is_dir():
            return []
        found: set[Path] = set()
        for pattern in self.patterns:
            found.update(p for p in self.docs_root.rglob(pattern) if p.is_file())
        return sorted(found)

    def __iter__(self) -> Iterator[Document]:
        for path in self.paths():
            yield Document.load(path, self.repo_root)


def scan_documents(documents: Iterable[Document], marker: str, ignore_marker: str = "ignore") -> Iterator[ScanEvent]:
    for document in documents:
        yield from scan_document(document, marker, ignore_marker)
