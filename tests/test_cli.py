from __future__ import annotations

import json
from pathlib import Path

import pytest

from fencectl import __version__
from fencectl.cli.main import build_parser, main
from fencectl.contracts import validate
from fencectl.core.exit_codes import ERR_CHECK_FAILED, ERR_CONFIG, ERR_PREREQ, OK
from tests.helpers import fence, run_fencectl, write_doc, write_project

pytestmark = pytest.mark.integration


def _run(project: Path, monkeypatch: pytest.MonkeyPatch, *args: str) -> int:
    monkeypatch.chdir(project)
    return main(["--quiet", "--run-id", "cli-test", *args])


def test_parser_exposes_commands() -> None:
    ns = build_parser().parse_args(["check", "-v", "docs/a.md"])
    assert ns.cmd == "check"
    assert ns.check_verbose
    assert ns.files == ["docs/a.md"]


def test_no_blocks_exits_zero_with_message(project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    write_doc(project, "docs/a.md", "# prose only\n")
    assert _run(project, monkeypatch, "check") == OK
    assert capsys.readouterr().out.strip() == "No fe code blocks found to check"


def test_passing_run_prints_summary(project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    write_doc(project, "docs/a.md", fence("let x = 1"))
    assert _run(project, monkeypatch, "check") == OK
    out = capsys.readouterr().out
    assert "Total blocks checked: 1" in out
    assert "Passed: 1" in out
    assert "Failed: 0" in out
    assert "All fe code examples passed checking!" in out
    assert "Errors:" not in out


def test_failing_run_prints_document_coordinates(project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    write_doc(project, "docs/a.md", "\n" * 9 + fence("ok", "bad"))
    assert _run(project, monkeypatch, "check") == ERR_CHECK_FAILED
    out = capsys.readouterr().out
    assert "Failed: 1" in out
    assert "  docs/a.md:12:1: unknown identifier `bad`" in out
    assert ".fe:" not in out


def test_verbose_prints_per_block_progress(project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    write_doc(project, "docs/a.md", fence("ok") + fence("bad"))
    assert _run(project, monkeypatch, "check", "-v") == ERR_CHECK_FAILED
    out = capsys.readouterr().out
    assert "Checking docs/a.md:1... OK" in out
    assert "Checking docs/a.md:4... FAILED" in out


def test_explicit_file_argument(project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    write_doc(project, "docs/a.md", fence("bad"))
    write_doc(project, "docs/b.md", fence("ok"))
    assert _run(project, monkeypatch, "check", "docs/b.md") == OK
    assert "Total blocks checked: 1" in capsys.readouterr().out


def test_json_report_matches_schema(project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    write_doc(project, "docs/a.md", fence("bad") + fence("ok", info="fe ignore"))
    assert _run(project, monkeypatch, "--json", "check") == ERR_CHECK_FAILED
    payload = json.loads(capsys.readouterr().out)
    validate("fencectl.check-report.v1", payload)
    assert payload["status"] == "fail"
    assert payload["run_id"] == "cli-test"
    assert payload["summary"] == {"total": 1, "passed": 0, "failed": 1, "ignored": 1}
    assert payload["diagnostics"][0]["rendered"] == "docs/a.md:2:1: unknown identifier `bad`"


def test_missing_checker_exits_with_prereq_code(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    root = write_project(tmp_path / "p", checker=["definitely-not-a-real-checker-binary"])
    write_doc(root, "docs/a.md", fence("x"))
    assert _run(root, monkeypatch, "check") == ERR_PREREQ
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "checker not found" in captured.err


def test_invalid_config_exits_with_config_code(project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    (project / ".fencectl.json").write_text(json.dumps({"jobs": "many"}), encoding="utf-8")
    assert _run(project, monkeypatch, "--json", "check") == ERR_CONFIG
    error = json.loads(capsys.readouterr().err)
    assert error["status"] == "error"
    assert error["errors"][0]["code"] == ERR_CONFIG


def test_checker_flag_overrides_config(project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    write_doc(project, "docs/a.md", fence("x"))
    assert _run(project, monkeypatch, "check", "--checker", "definitely-not-a-real-checker-binary") == ERR_PREREQ


def test_extract_command_prints_directory(project: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    write_doc(project, "docs/a.md", fence("x") + fence("y"))
    out_dir = tmp_path / "extracted"
    assert _run(project, monkeypatch, "extract", "--output-dir", str(out_dir)) == OK
    captured = capsys.readouterr()
    assert captured.out.strip() == str(out_dir)
    assert "Extracted 2 fe code blocks" in captured.err
    assert len((out_dir / "mappings.txt").read_text(encoding="utf-8").splitlines()) == 2


def test_mark_ignored_command(project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:  # noqa: ANN001
    guide = write_doc(project, "docs/guide.md", fence("x"))
    example = write_doc(project, "docs/examples/full.md", fence("y"))
    assert _run(project, monkeypatch, "mark-ignored") == OK
    out = capsys.readouterr().out
    assert "Processed: docs/guide.md (1 fences)" in out
    assert "examples" not in out.split("Done!")[0]
    assert guide.read_text(encoding="utf-8").startswith("```fe ignore")
    assert example.read_text(encoding="utf-8").startswith("```fe\n")


def test_conflicting_output_flags(project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert _run(project, monkeypatch, "--json", "--format", "text", "check") == ERR_CONFIG


def test_module_entrypoint_version(tmp_path: Path) -> None:
    proc = run_fencectl("--version", cwd=tmp_path)
    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.strip() == f"fencectl {__version__}"


def test_module_entrypoint_check_exit_codes(project: Path) -> None:
    write_doc(project, "docs/a.md", fence("bad"))
    proc = run_fencectl("check", cwd=project)
    assert proc.returncode == ERR_CHECK_FAILED, proc.stderr
    assert "docs/a.md:2:1: unknown identifier `bad`" in proc.stdout


def test_mark_ignored_explicit_file_under_examples_ancestor(
    tmp_path: Path, fake_checker: list[str], monkeypatch: pytest.MonkeyPatch, capsys  # noqa: ANN001
) -> None:
    root = write_project(tmp_path / "examples" / "site", checker=fake_checker)
    guide = write_doc(root, "docs/guide.md", fence("x"))
    assert _run(root, monkeypatch, "mark-ignored", "docs/guide.md") == OK
    assert "Processed: docs/guide.md (1 fences)" in capsys.readouterr().out
    assert guide.read_text(encoding="utf-8").startswith("```fe ignore\n")
