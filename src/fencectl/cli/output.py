"""CLI payload output helpers."""

from __future__ import annotations

from ..core.errors import ScriptError
from ..core.serialize import dumps_json


def emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def resolve_output_format(*, cli_json: bool, cli_format: str | None) -> str:
    if cli_json:
        return "json"
    return cli_format or "text"


def render_script_error(exc: ScriptError, *, as_json: bool) -> str:
    if as_json:
        return dumps_json(
            {
                "schema_name": "fencectl.error.v1",
                "schema_version": 1,
                "tool": "fencectl",
                "status": "error",
                "errors": [exc.to_json()],
            }
        )
    return f"error: {exc}"


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error") -> str:
    return render_script_error(ScriptError(message, code, kind), as_json=as_json)
