"""JSON rendering shared by reports, error envelopes and JSON log lines."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any


def _default(value: Any) -> Any:
    if isinstance(value, Path):
        return value.as_posix()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return str(value)


def dumps_json(payload: Any, pretty: bool = False) -> str:
    return json.dumps(payload, indent=(2 if pretty else None), sort_keys=True, default=_default)
