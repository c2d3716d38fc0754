from __future__ import annotations

import socket
import sys
from pathlib import Path

import pytest
from hypothesis import settings

from tests.helpers import FAKE_CHECKER, write_project

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

settings.register_profile("fencectl", deadline=None, max_examples=50)
settings.load_profile("fencectl")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture(autouse=True)
def clean_fencectl_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("FENCECTL_CHECKER", "FENCECTL_JOBS", "FENCECTL_TIMEOUT", "FENCECTL_DOCS_ROOT", "FENCECTL_LOG_JSON", "RUN_ID"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_checker(tmp_path: Path) -> list[str]:
    script = tmp_path / "fake_checker.py"
    script.write_text(FAKE_CHECKER, encoding="utf-8")
    return [sys.executable, str(script)]


@pytest.fixture
def project(tmp_path: Path, fake_checker: list[str]) -> Path:
    return write_project(tmp_path / "project", checker=fake_checker)
