from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..checker.diagnostics import Diagnostic


@dataclass(frozen=True)
class RunResult:
    total: int = 0
    passed: int = 0
    failed: int = 0
    ignored: int = 0
    diagnostics: tuple[Diagnostic, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @property
    def empty(self) -> bool:
        return self.total == 0


@dataclass
class Aggregator:
    """Single owner of run counters; safe to feed from checker worker threads."""

    ignored: int = 0
    warnings: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _verdicts: dict[int, bool] = field(default_factory=dict, repr=False)
    _diagnostics: dict[int, tuple[Diagnostic, ...]] = field(default_factory=dict, repr=False)

    def record(self, identity: int, passed: bool, diagnostics: list[Diagnostic]) -> None:
        with self._lock:
            if identity in self._verdicts:
                raise ValueError(f"artifact {identity} already recorded")
            self._verdicts[identity] = passed
            self._diagnostics[identity] = tuple(diagnostics)

    def warn(self, message: str) -> None:
        with self._lock:
            self.warnings.append(message)

    def result(self) -> RunResult:
        with self._lock:
            order = sorted(self._verdicts)
            passed = sum(1 for identity in order if self._verdicts[identity])
            diagnostics = tuple(d for identity in order for d in self._diagnostics[identity])
            return RunResult(
                total=len(order),
                passed=passed,
                failed=len(order) - passed,
                ignored=self.ignored,
                diagnostics=diagnostics,
                warnings=tuple(self.warnings),
            )
