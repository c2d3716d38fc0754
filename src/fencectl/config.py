from __future__ import annotations

import json
import os
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

import yaml

from .contracts import validate
from .core.errors import ScriptError
from .core.exit_codes import ERR_CONFIG

PassWhen = Literal["empty-output", "exit-zero", "empty-output-and-exit-zero"]
UnterminatedPolicy = Literal["warn", "drop"]

CONFIG_SCHEMA = "fencectl.config.v1"
CONFIG_FILENAMES = (".fencectl.json", ".fencectl.yaml", ".fencectl.yml")


def _default_jobs() -> int:
    return max(1, min(8, os.cpu_count() or 1))


@dataclass(frozen=True)
class CheckConfig:
    docs_root: str = "docs"
    patterns: tuple[str, ...] = ("*.md", "*.mdx")
    marker: str = "fe"
    ignore_marker: str = "ignore"
    checker: tuple[str, ...] = ("fe", "check")
    artifact_suffix: str = ""
    jobs: int = field(default_factory=_default_jobs)
    timeout_seconds: float = 0
    pass_when: PassWhen = "empty-output"
    unterminated: UnterminatedPolicy = "warn"
    source: str = "<defaults>"

    @property
    def suffix(self) -> str:
        return self.artifact_suffix or f".{self.marker}"

    def docs_path(self, repo_root: Path) -> Path:
        root = Path(self.docs_root)
        return root if root.is_absolute() else repo_root / root


def load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        if path.suffix in {".yaml", ".yml"}:
            data = load_yaml(path)
        else:
            data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ScriptError(f"unable to read config {path}: {exc}", ERR_CONFIG, kind="config_unreadable") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ScriptError(f"config {path}: root must be mapping", ERR_CONFIG, kind="config_invalid")
    validate(CONFIG_SCHEMA, data, code=ERR_CONFIG)
    return data


def find_config_file(repo_root: Path) -> Path | None:
    for name in CONFIG_FILENAMES:
        candidate = repo_root / name
        if candidate.is_file():
            return candidate
    return None


def _env_overrides(env: dict[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if env.get("FENCECTL_CHECKER"):
        out["checker"] = shlex.split(env["FENCECTL_CHECKER"])
    if env.get("FENCECTL_DOCS_ROOT"):
        out["docs_root"] = env["FENCECTL_DOCS_ROOT"]
    try:
        if env.get("FENCECTL_JOBS"):
            out["jobs"] = int(env["FENCECTL_JOBS"])
        if env.get("FENCECTL_TIMEOUT"):
            out["timeout_seconds"] = float(env["FENCECTL_TIMEOUT"])
    except ValueError as exc:
        raise ScriptError(f"invalid numeric environment override: {exc}", ERR_CONFIG, kind="config_invalid") from exc
    return out


def _coerce(raw: dict[str, Any]) -> dict[str, Any]:
    out = dict(raw)
    for key in ("patterns", "checker"):
        if key in out:
            out[key] = tuple(out[key])
    return out


def load_config(
    repo_root: Path,
    config_path: str | None = None,
    env: dict[str, str] | None = None,
    overrides: dict[str, Any] | None = None,
) -> CheckConfig:
    source = "<defaults>"
    raw: dict[str, Any] = {}
    if config_path:
        path = Path(config_path)
        path = path if path.is_absolute() else repo_root / path
        if not path.is_file():
            raise ScriptError(f"config file not found: {path}", ERR_CONFIG, kind="config_missing")
        raw.update(_read_config_file(path))
        source = str(path)
    else:
        found = find_config_file(repo_root)
        if found is not None:
            raw.update(_read_config_file(found))
            source = str(found)
    raw.update(_env_overrides(dict(os.environ) if env is None else env))
    raw.update({key: value for key, value in (overrides or {}).items() if value is not None})
    validate(CONFIG_SCHEMA, raw, code=ERR_CONFIG)
    return replace(CheckConfig(), source=source, **_coerce(raw))
