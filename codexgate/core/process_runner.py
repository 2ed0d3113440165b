"""
Process orchestration for codex executions.

Launches the wrapped CLI as a child process, reads stdout and stderr
concurrently into bounded tail buffers, enforces a wall-clock timeout by
killing the child's whole process group, and reports a ProcessOutcome.
Launch failures are reported as outcomes, never raised, so the RPC layer
always gets a well-formed response.
"""
from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from .constants import (
    BYTES_PER_CHAR,
    CODEX_HOME_ENV,
    CODEX_QUIET_ENV,
    DEFAULT_TIMEOUT_SECONDS,
    KILL_DRAIN_SECONDS,
    MAX_STDERR_CHARS,
    MAX_STDOUT_CHARS,
    TRUNCATION_MARKER,
)

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024


@dataclass
class ProcessOutcome:
    """Result of one child process execution."""

    exit_code: Optional[int]
    stdout: str
    stderr: str
    timed_out: bool = False
    launch_failed: bool = False

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class TailBuffer:
    """
    Accumulates bytes, keeping only the most recent `max_bytes`.

    Remembers whether anything was dropped so the reported text can carry
    the truncation marker.
    """

    def __init__(self, max_bytes: int) -> None:
        self._max_bytes = max_bytes
        self._data = bytearray()
        self.dropped = False

    def append(self, chunk: bytes) -> None:
        self._data.extend(chunk)
        overflow = len(self._data) - self._max_bytes
        if overflow > 0:
            del self._data[:overflow]
            self.dropped = True

    def text(self) -> str:
        return self._data.decode("utf-8", errors="replace")


def truncate_tail(text: str, max_chars: int, force_marker: bool = False) -> str:
    """
    Keep the last `max_chars` characters of text.

    Prefixes the truncation marker when anything was cut.
    """
    if len(text) > max_chars:
        return TRUNCATION_MARKER + text[-max_chars:]
    if force_marker:
        return TRUNCATION_MARKER + text
    return text


def build_child_env(
    base: Mapping[str, str],
    codex_home: Union[str, Path],
) -> dict[str, str]:
    """
    Build the child environment for a codex execution.

    Any inherited CODEX_HOME is dropped before the chosen execution home is
    set, so an ambient value cannot redirect where codex keeps credentials
    and session state.
    """
    env = {key: value for key, value in base.items() if key != CODEX_HOME_ENV}
    env[CODEX_HOME_ENV] = str(codex_home)
    env[CODEX_QUIET_ENV] = "1"
    return env


async def _read_stream(stream: Optional[asyncio.StreamReader], buffer: TailBuffer) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        buffer.append(chunk)


async def _wait_for_exit(process: asyncio.subprocess.Process, readers: asyncio.Future) -> None:
    await readers
    await process.wait()


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    """Kill the child and everything it spawned into its session."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        # Group already gone or not ours; fall back to the direct child
        try:
            process.kill()
        except ProcessLookupError:
            pass


async def run_process(
    executable: str,
    args: Sequence[str],
    cwd: Union[str, Path],
    env: Mapping[str, str],
    timeout_seconds: Optional[float] = None,
    max_stdout_chars: int = MAX_STDOUT_CHARS,
    max_stderr_chars: int = MAX_STDERR_CHARS,
) -> ProcessOutcome:
    """
    Run a child process to completion or timeout.

    Args:
        executable: Program to run.
        args: Arguments after the program name.
        cwd: Working directory of the child.
        env: Complete child environment.
        timeout_seconds: Wall-clock limit; defaults to 300 seconds.
        max_stdout_chars: Reported stdout keeps at most this many trailing chars.
        max_stderr_chars: Reported stderr keeps at most this many trailing chars.

    Returns:
        ProcessOutcome. On timeout it holds whatever was captured before the
        kill; on launch failure exit_code is 1 and stderr holds the error.
    """
    timeout = timeout_seconds
    if not timeout or timeout <= 0:
        timeout = DEFAULT_TIMEOUT_SECONDS

    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd),
            env=dict(env),
            start_new_session=True,
        )
    except OSError as e:
        logger.error(f"Failed to launch {executable}: {e}")
        return ProcessOutcome(
            exit_code=1,
            stdout="",
            stderr=str(e),
            launch_failed=True,
        )

    logger.info(f"Started {executable} (pid {process.pid}, timeout {timeout}s)")

    stdout_buffer = TailBuffer(max_stdout_chars * BYTES_PER_CHAR)
    stderr_buffer = TailBuffer(max_stderr_chars * BYTES_PER_CHAR)
    readers = asyncio.gather(
        _read_stream(process.stdout, stdout_buffer),
        _read_stream(process.stderr, stderr_buffer),
    )
    completion = asyncio.ensure_future(_wait_for_exit(process, readers))

    timed_out = False
    try:
        await asyncio.wait_for(asyncio.shield(completion), timeout=timeout)
    except asyncio.TimeoutError:
        timed_out = True
        logger.warning(f"Process {process.pid} exceeded {timeout}s, killing")
        _kill_process_group(process)
        try:
            # Collect what is still buffered in the pipes
            await asyncio.wait_for(asyncio.shield(completion), timeout=KILL_DRAIN_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"Output of process {process.pid} did not drain, abandoning readers")
            completion.cancel()
            try:
                await completion
            except asyncio.CancelledError:
                pass

    exit_code = process.returncode
    logger.info(f"Process {process.pid} finished with exit code {exit_code}")

    return ProcessOutcome(
        exit_code=exit_code,
        stdout=truncate_tail(stdout_buffer.text(), max_stdout_chars, stdout_buffer.dropped),
        stderr=truncate_tail(stderr_buffer.text(), max_stderr_chars, stderr_buffer.dropped),
        timed_out=timed_out,
    )
