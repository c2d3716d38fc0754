from __future__ import annotations

import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CONFIG
from ..core.logging import log_event
from .scanner import CodeBlock

if TYPE_CHECKING:
    from ..core.context import RunContext

MAPPINGS_FILENAME = "mappings.txt"
_DOC_SUFFIX_RE = re.compile(r"\.mdx?$")


@dataclass(frozen=True)
class MappingEntry:
    identity: int
    artifact_path: Path
    document_path: str
    start_line: int

    def render(self) -> str:
        return f"{self.artifact_path}:{self.document_path}:{self.start_line}"


@dataclass(frozen=True)
class Artifact:
    identity: int
    path: Path
    block: CodeBlock


@dataclass
class MappingLedger:
    entries: list[MappingEntry] = field(default_factory=list)

    def append(self, entry: MappingEntry) -> None:
        self.entries.append(entry)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):  # noqa: ANN204
        return iter(self.entries)

    def write(self, path: Path) -> Path:
        try:
            path.write_text("".join(entry.render() + "\n" for entry in self.entries), encoding="utf-8")
        except OSError as exc:
            raise ScriptError(f"unable to write mapping ledger {path}: {exc}", ERR_CONFIG, kind="scratch_unwritable") from exc
        return path


class ScratchArea:
    """Exclusively owned directory for artifacts; temporary ones are removed on exit."""

    def __init__(self, output_dir: Path | None = None) -> None:
        self._output_dir = output_dir
        self._tmp: tempfile.TemporaryDirectory[str] | None = None
        self.path: Path | None = None

    def __enter__(self) -> Path:
        try:
            if self._output_dir is not None:
                self._output_dir.mkdir(parents=True, exist_ok=True)
                self.path = self._output_dir
            else:
                self._tmp = tempfile.TemporaryDirectory(prefix="fencectl-")
                self.path = Path(self._tmp.name)
        except OSError as exc:
            raise ScriptError(f"scratch area unwritable: {exc}", ERR_CONFIG, kind="scratch_unwritable") from exc
        return self.path

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._tmp is not None:
            self._tmp.cleanup()
            self._tmp = None


def safe_name(display_path: str) -> str:
    return _DOC_SUFFIX_RE.sub("", display_path).replace("/", "_")


def artifact_text(block: CodeBlock) -> str:
    return "\n".join(block.content) + "\n"


class Materializer:
    def __init__(self, scratch: Path, suffix: str, ctx: RunContext | None = None) -> None:
        self.scratch = scratch
        self.suffix = suffix
        self.ctx = ctx
        self.ledger = MappingLedger()
        self.artifacts: list[Artifact] = []
        self._counter = 0

    def materialize(self, block: CodeBlock) -> Artifact:
        if not block.checked:
            raise ValueError("only checked blocks are materialized")
        self._counter += 1
        identity = self._counter
        name = f"{identity}_{safe_name(block.document.display_path)}_L{block.start_line}{self.suffix}"
        path = self.scratch / name
        try:
            path.write_text(artifact_text(block), encoding="utf-8")
        except OSError as exc:
            raise ScriptError(f"unable to write artifact {path}: {exc}", ERR_CONFIG, kind="scratch_unwritable") from exc
        artifact = Artifact(identity=identity, path=path, block=block)
        self.artifacts.append(artifact)
        self.ledger.append(MappingEntry(identity, path, block.document.display_path, block.start_line))
        if self.ctx is not None:
            log_event(
                self.ctx,
                "debug",
                "materialize",
                "write-artifact",
                artifact=name,
                document=block.document.display_path,
                start_line=block.start_line,
            )
        return artifact

    def entry_for(self, artifact: Artifact) -> MappingEntry:
        return self.ledger.entries[artifact.identity - 1]
