"""Scan → materialize → check → translate → aggregate.

Scanning and materializing are sequential and finish before any checker runs,
so the mapping ledger is read-only while workers use it. Checker invocations
run on a bounded thread pool and report into the lock-guarded Aggregator.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from .checker.diagnostics import Diagnostic, fallback, translate_output
from .checker.invoke import CheckerInvoker, CheckOutcome
from .config import CheckConfig
from .core.context import RunContext
from .core.logging import log_event
from .docs.materialize import MAPPINGS_FILENAME, Artifact, MappingEntry, Materializer, ScratchArea
from .docs.scanner import CodeBlock, DocumentSource, UnterminatedBlock, scan_documents
from .report.aggregate import Aggregator, RunResult

ProgressFn = Callable[[Artifact, CheckOutcome], None]


@dataclass(frozen=True)
class ScanResult:
    checked: tuple[CodeBlock, ...]
    ignored: int
    warnings: tuple[str, ...]


def _stage(ctx: RunContext, stage: str, **fields: object) -> None:
    log_event(ctx, "debug", "pipeline", "stage", stage=stage, **fields)


def scan(ctx: RunContext, config: CheckConfig, files: Iterable[Path] = ()) -> ScanResult:
    source = DocumentSource(ctx.repo_root, config.docs_path(ctx.repo_root), config.patterns, files)
    checked: list[CodeBlock] = []
    warnings: list[str] = []
    ignored = 0
    for event in scan_documents(source, config.marker, config.ignore_marker):
        if isinstance(event, UnterminatedBlock):
            if config.unterminated == "warn":
                warnings.append(event.describe())
                log_event(
                    ctx,
                    "warn",
                    "scanner",
                    "unterminated-block",
                    document=event.document.display_path,
                    start_line=event.start_line,
                )
        elif event.checked:
            checked.append(event)
        else:
            ignored += 1
    for missing in source.missing:
        log_event(ctx, "warn", "scanner", "missing-document", path=str(missing))
    return ScanResult(checked=tuple(checked), ignored=ignored, warnings=tuple(warnings))


def diagnose(outcome: CheckOutcome, entry: MappingEntry, config: CheckConfig) -> list[Diagnostic]:
    if outcome.passed:
        return []
    diagnostics = translate_output(outcome.lines, entry, config.suffix)
    if outcome.timed_out:
        diagnostics.append(fallback(entry, f"checker timed out after {config.timeout_seconds:g}s"))
    elif not diagnostics:
        diagnostics.append(fallback(entry, f"checker exited with status {outcome.exit_code}"))
    return diagnostics


def run_pipeline(
    ctx: RunContext,
    config: CheckConfig,
    files: Iterable[Path] = (),
    on_progress: ProgressFn | None = None,
) -> RunResult:
    _stage(ctx, "scanning", docs_root=config.docs_root, marker=config.marker)
    scanned = scan(ctx, config, files)
    aggregator = Aggregator(ignored=scanned.ignored, warnings=list(scanned.warnings))
    if not scanned.checked:
        _stage(ctx, "done", total=0)
        return aggregator.result()

    invoker = CheckerInvoker(config.checker, ctx.repo_root, config.timeout_seconds, config.pass_when, ctx=ctx)
    invoker.preflight()

    with ScratchArea() as scratch:
        _stage(ctx, "materializing", blocks=len(scanned.checked), scratch=str(scratch))
        materializer = Materializer(scratch, config.suffix, ctx=ctx)
        artifacts = [materializer.materialize(block) for block in scanned.checked]

        def _check_one(artifact: Artifact) -> tuple[Artifact, CheckOutcome]:
            outcome = invoker.check(artifact)
            aggregator.record(artifact.identity, outcome.passed, diagnose(outcome, materializer.entry_for(artifact), config))
            return artifact, outcome

        _stage(ctx, "checking", artifacts=len(artifacts), jobs=config.jobs)
        if config.jobs <= 1:
            for artifact in artifacts:
                done = _check_one(artifact)
                if on_progress is not None:
                    on_progress(*done)
        else:
            with ThreadPoolExecutor(max_workers=config.jobs) as pool:
                futures = [pool.submit(_check_one, artifact) for artifact in artifacts]
                try:
                    for future in as_completed(futures):
                        done = future.result()
                        if on_progress is not None:
                            on_progress(*done)
                except BaseException:
                    for future in futures:
                        future.cancel()
                    raise

    _stage(ctx, "aggregating")
    result = aggregator.result()
    _stage(ctx, "done", total=result.total, passed=result.passed, failed=result.failed)
    return result


def extract(ctx: RunContext, config: CheckConfig, output_dir: Path, files: Iterable[Path] = ()) -> tuple[Path, int]:
    scanned = scan(ctx, config, files)
    with ScratchArea(output_dir) as scratch:
        materializer = Materializer(scratch, config.suffix, ctx=ctx)
        for block in scanned.checked:
            materializer.materialize(block)
        materializer.ledger.write(scratch / MAPPINGS_FILENAME)
    log_event(ctx, "info", "materialize", "extract", output_dir=str(scratch), blocks=len(materializer.ledger))
    return scratch, len(materializer.ledger)
