from __future__ import annotations

from ..core.context import RunContext
from .aggregate import RunResult

RULE = "=" * 38
REPORT_SCHEMA = "fencectl.check-report.v1"


def render_text(result: RunResult, marker: str) -> str:
    if result.empty:
        lines = [f"No {marker} code blocks found to check"]
        lines.extend(f"warning: {w}" for w in result.warnings)
        return "\n".join(lines)
    lines = [
        "",
        RULE,
        "Code Example Check Results",
        RULE,
        f"Total blocks checked: {result.total}",
        f"Passed: {result.passed}",
        f"Failed: {result.failed}",
        "",
    ]
    if result.warnings:
        lines.append("Warnings:")
        lines.append("")
        lines.extend(f"  {w}" for w in result.warnings)
        lines.append("")
    if result.diagnostics:
        lines.append("Errors:")
        lines.append("")
        lines.extend(f"  {d.render()}" for d in result.diagnostics)
        lines.append("")
    if result.ok:
        lines.append(f"All {marker} code examples passed checking!")
    return "\n".join(lines)


def build_payload(ctx: RunContext, result: RunResult, marker: str) -> dict[str, object]:
    return {
        "schema_name": REPORT_SCHEMA,
        "schema_version": 1,
        "tool": "fencectl",
        "status": "ok" if result.ok else "fail",
        "run_id": ctx.run_id,
        "marker": marker,
        "summary": {
            "total": result.total,
            "passed": result.passed,
            "failed": result.failed,
            "ignored": result.ignored,
        },
        "diagnostics": [d.to_json() for d in result.diagnostics],
        "warnings": list(result.warnings),
    }
