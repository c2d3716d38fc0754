from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScriptError(Exception):
    """Fatal run condition; `code` becomes the process exit status."""

    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message

    def to_json(self) -> dict[str, object]:
        return {"code": self.code, "kind": self.kind, "message": self.message}
