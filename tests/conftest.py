"""
Shared fixtures for Codexgate tests.

Provides:
- A fake codex executable that records its invocations
- Gateway settings pointing every path at a temporary directory
"""
import json
import os
import stat
import sys
from pathlib import Path

import pytest

# Add project root to path before importing project modules
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from codexgate.config import GatewaySettings  # noqa: E402

# Behavior is selected with FAKE_CODEX_MODE in the child environment:
#   echo (default) - print a JSON summary of argv, CODEX_HOME and cwd
#   fail           - print to both streams and exit 3
#   sleep          - print a line, then sleep far past any test timeout
FAKE_CODEX_SOURCE = '''\
import json
import os
import sys
import time

log_path = os.environ.get("FAKE_CODEX_LOG")
if log_path:
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(json.dumps(sys.argv[1:]) + "\\n")

mode = os.environ.get("FAKE_CODEX_MODE", "echo")
if mode == "fail":
    print("partial work")
    print("boom", file=sys.stderr)
    sys.exit(3)
if mode == "sleep":
    print("started", flush=True)
    time.sleep(60)

print(json.dumps({
    "args": sys.argv[1:],
    "codex_home": os.environ.get("CODEX_HOME"),
    "quiet": os.environ.get("CODEX_QUIET"),
    "cwd": os.getcwd(),
}))
'''


def write_executable(path: Path, source: str) -> Path:
    """Write a Python script runnable directly through its shebang."""
    path.write_text(f"#!{sys.executable}\n{source}", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def read_invocations(log_path: Path) -> list[list[str]]:
    """Argument lists recorded by the fake codex, one per spawn."""
    if not log_path.exists():
        return []
    return [json.loads(line) for line in log_path.read_text().splitlines() if line]


@pytest.fixture
def fake_codex(tmp_path: Path) -> Path:
    """A codex stand-in script."""
    return write_executable(tmp_path / "fake-codex", FAKE_CODEX_SOURCE)


@pytest.fixture
def invocation_log(tmp_path: Path) -> Path:
    return tmp_path / "invocations.jsonl"


@pytest.fixture
def codex_environ(invocation_log: Path) -> dict[str, str]:
    """Base environment for spawned fake codex processes."""
    env = dict(os.environ)
    env["FAKE_CODEX_LOG"] = str(invocation_log)
    env["CODEX_HOME"] = "/should/be/replaced"
    return env


@pytest.fixture
def settings(tmp_path: Path, fake_codex: Path) -> GatewaySettings:
    """
    Settings with every path under tmp_path.

    The profile database does not exist, so the registry serves the
    fallback profiles unless a test creates it.
    """
    return GatewaySettings(
        workdir=tmp_path / "work",
        codex_path=str(fake_codex),
        codex_home=tmp_path / "codex-home",
        isolated_codex_home=tmp_path / "codex-isolated",
        profiles_db=tmp_path / "profiles.db",
        query_timeout_seconds=2.0,
        default_timeout_seconds=30,
    )


@pytest.fixture
def make_script(tmp_path: Path):
    """Factory writing executable Python scripts into tmp_path."""
    def _make(name: str, source: str) -> Path:
        return write_executable(tmp_path / name, source)
    return _make


@pytest.fixture
def invocations(invocation_log: Path):
    """Callable returning the fake codex invocations recorded so far."""
    return lambda: read_invocations(invocation_log)
