"""Command line entry point; `fencectl.cli.main` is imported on first call."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import argparse

__all__ = ["build_parser", "main"]

_IMPL = "fencectl.cli.main"


def build_parser() -> argparse.ArgumentParser:
    return import_module(_IMPL).build_parser()


def main(argv: list[str] | None = None) -> int:
    return import_module(_IMPL).main(argv)
