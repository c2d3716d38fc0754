from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

# Stand-in checker: flags the token `bad`, prints free-form text for `panic`,
# writes to stderr for `warn`, emits a non-UTF-8 byte for `rawbytes` and stalls
# on `sleep`. Silent otherwise.
FAKE_CHECKER = '''\
import sys
import time
from pathlib import Path

path = sys.argv[1]
lines = Path(path).read_text(encoding="utf-8").splitlines()
for idx, line in enumerate(lines, start=1):
    if "sleep" in line:
        time.sleep(5)
    if "panic" in line:
        print("thread 'main' panicked at checker internals")
    if "rawbytes" in line:
        sys.stdout.flush()
        sys.stdout.buffer.write(f"{path}:{idx}:1: bad byte ".encode() + b"\\xff here\\n")
        sys.stdout.buffer.flush()
    if "warn" in line:
        print(f"{path}:{idx}:1: warning on stderr", file=sys.stderr)
    if "bad" in line:
        col = line.index("bad") + 1
        print(f"{path}:{idx}:{col}: unknown identifier `bad`")
'''


def write_project(root: Path, checker: list[str], **config: object) -> Path:
    (root / "docs").mkdir(parents=True, exist_ok=True)
    payload: dict[str, object] = {"checker": checker, "jobs": 1}
    payload.update(config)
    (root / ".fencectl.json").write_text(json.dumps(payload), encoding="utf-8")
    return root


def write_doc(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def fence(*lines: str, info: str = "fe") -> str:
    return "\n".join([f"```{info}", *lines, "```"]) + "\n"


def run_fencectl(*args: str, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(ROOT / "src")
    env.setdefault("RUN_ID", "pytest-run")
    return subprocess.run(
        [sys.executable, "-m", "fencectl", *args],
        cwd=(cwd or ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
