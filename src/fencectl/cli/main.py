from __future__ import annotations

import argparse
import os
import shlex
import sys
from pathlib import Path

from .. import __version__
from ..checker.invoke import CheckOutcome
from ..config import CheckConfig, load_config
from ..contracts import validate
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CHECK_FAILED, ERR_CONFIG, ERR_INTERNAL, OK
from ..core.logging import log_event
from ..docs.annotate import mark_ignored
from ..docs.materialize import Artifact
from ..docs.scanner import DocumentSource, display_path
from ..pipeline import extract, run_pipeline
from ..report.render import REPORT_SCHEMA, build_payload, render_text
from .output import emit, render_error, render_script_error, resolve_output_format


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fencectl",
        description="Check fenced code examples in documentation with an external checker.",
    )
    p.add_argument("--version", action="version", version=f"fencectl {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--run-id", help="run identifier used in logs and reports")
    p.add_argument("--cwd", help="run from an explicit project root")
    p.add_argument("--config", help="config file (.json, .yaml or .yml)")
    p.add_argument("--log-json", action="store_true", help="emit structured log events as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    check_p = sub.add_parser("check", help="check code examples in documentation")
    check_p.add_argument("files", nargs="*", help="documents to check (default: every document under docs_root)")
    check_p.add_argument("-v", "--verbose", dest="check_verbose", action="store_true", help="print per-block progress")
    check_p.add_argument("--jobs", type=int, help="parallel checker invocations")
    check_p.add_argument("--timeout", type=float, help="per-invocation timeout in seconds (0 disables)")
    check_p.add_argument("--checker", help="checker command, the artifact path is appended")
    check_p.add_argument("--marker", help="fence language marker")

    extract_p = sub.add_parser("extract", help="materialize checked blocks and their mappings into a directory")
    extract_p.add_argument("files", nargs="*", help="documents to extract (default: every document under docs_root)")
    extract_p.add_argument("--output-dir", required=True, help="destination directory")
    extract_p.add_argument("--marker", help="fence language marker")

    mark_p = sub.add_parser("mark-ignored", help="add the ignore marker to bare opening fences")
    mark_p.add_argument("files", nargs="*", help="documents to rewrite (default: every document under docs_root)")
    mark_p.add_argument(
        "--skip-dir",
        action="append",
        dest="skip_dirs",
        help="directory name whose documents are left untouched (repeatable, default: examples)",
    )
    mark_p.add_argument("--dry-run", action="store_true", help="report without rewriting")
    mark_p.add_argument("--marker", help="fence language marker")
    return p


def _files(raw: list[str]) -> list[Path]:
    return [Path(item).resolve() for item in raw]


def _config(ctx: RunContext, ns: argparse.Namespace) -> CheckConfig:
    overrides: dict[str, object] = {"marker": getattr(ns, "marker", None)}
    if ns.cmd == "check":
        overrides["jobs"] = ns.jobs
        overrides["timeout_seconds"] = ns.timeout
        if ns.checker:
            overrides["checker"] = shlex.split(ns.checker)
    config = load_config(ctx.repo_root, ns.config, overrides=overrides)
    log_event(ctx, "debug", "cli", "config", source=config.source, marker=config.marker, jobs=config.jobs)
    return config


def _print_progress(artifact: Artifact, outcome: CheckOutcome) -> None:
    block = artifact.block
    status = "OK" if outcome.passed else "FAILED"
    print(f"Checking {block.document.display_path}:{block.start_line}... {status}", flush=True)


def run_check_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = _config(ctx, ns)
    verbose = ctx.verbose or ns.check_verbose
    on_progress = _print_progress if verbose and not ctx.as_json else None
    result = run_pipeline(ctx, config, _files(ns.files), on_progress=on_progress)
    if ctx.as_json:
        payload = build_payload(ctx, result, config.marker)
        validate(REPORT_SCHEMA, payload)
        emit(payload, as_json=True)
    else:
        print(render_text(result, config.marker))
    return OK if result.ok else ERR_CHECK_FAILED


def run_extract_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = _config(ctx, ns)
    out_dir, count = extract(ctx, config, Path(ns.output_dir).resolve(), _files(ns.files))
    if ctx.as_json:
        emit(
            {
                "schema_version": 1,
                "tool": "fencectl",
                "status": "ok",
                "run_id": ctx.run_id,
                "output_dir": str(out_dir),
                "blocks": count,
            },
            as_json=True,
        )
    else:
        print(out_dir)
        print(f"Extracted {count} {config.marker} code blocks", file=sys.stderr)
    return OK


def run_mark_ignored_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = _config(ctx, ns)
    files = _files(ns.files)
    docs_root = config.docs_path(ctx.repo_root)
    paths = files or DocumentSource(ctx.repo_root, docs_root, config.patterns).paths()
    results = mark_ignored(
        paths,
        config.marker,
        config.ignore_marker,
        skip_dirs=ns.skip_dirs or ("examples",),
        dry_run=ns.dry_run,
        root=(ctx.repo_root if files else docs_root),
    )
    rewritten = sum(row.rewritten for row in results)
    if ctx.as_json:
        emit(
            {
                "schema_version": 1,
                "tool": "fencectl",
                "status": "ok",
                "run_id": ctx.run_id,
                "dry_run": ns.dry_run,
                "files": [
                    {"path": display_path(row.path, ctx.repo_root), "rewritten": row.rewritten} for row in results
                ],
                "rewritten": rewritten,
            },
            as_json=True,
        )
        return OK
    for row in results:
        print(f"Processed: {display_path(row.path, ctx.repo_root)} ({row.rewritten} fences)")
    print(f"Done! {rewritten} {config.marker} code blocks marked `{config.ignore_marker}`.")
    return OK


COMMANDS = {
    "check": run_check_command,
    "extract": run_extract_command,
    "mark-ignored": run_mark_ignored_command,
}


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    p = build_parser()
    ns = p.parse_args(raw_argv)
    fmt = resolve_output_format(cli_json=ns.json, cli_format=ns.format)
    if ns.format and ns.json and ns.format != "json":
        print(render_error(as_json=False, message="conflicting output flags: use either --format json or --json", code=ERR_CONFIG), file=sys.stderr)
        return ERR_CONFIG
    as_json = fmt == "json"
    try:
        if ns.cwd:
            os.chdir(ns.cwd)
        ctx = RunContext.from_args(
            ns.run_id,
            None,
            output_format="json" if as_json else "text",
            verbose=ns.verbose,
            quiet=ns.quiet,
            log_json=ns.log_json,
        )
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format, root=str(ctx.repo_root))
        return COMMANDS[ns.cmd](ctx, ns)
    except ScriptError as exc:
        print(render_script_error(exc, as_json=as_json), file=sys.stderr)
        return exc.code
    except OSError as exc:
        print(render_error(as_json=as_json, message=str(exc), code=ERR_CONFIG, kind="os_error"), file=sys.stderr)
        return ERR_CONFIG
    except Exception as exc:  # pragma: no cover
        print(render_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_INTERNAL), file=sys.stderr)
        return ERR_INTERNAL
