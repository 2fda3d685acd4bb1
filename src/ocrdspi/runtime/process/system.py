"""External process handle with non-blocking output capture.

Standard output and standard error are drained by one daemon reader thread
each into lock-protected buffers, so the supervising thread can poll for
cancellation while the process runs and collect what was written since the
last drain.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO

logger = logging.getLogger("ocrdspi.process")


class _Buffer:
    __slots__ = ("_chunks", "_lock")

    def __init__(self) -> None:
        self._chunks: list[str] = []
        self._lock = threading.Lock()

    def append(self, text: str) -> None:
        with self._lock:
            self._chunks.append(text)

    def drain(self) -> str:
        with self._lock:
            text, self._chunks = "".join(self._chunks), []
        return text


class SystemProcess:
    """One launched external process.

    Example:
        >>> proc = SystemProcess.start(["echo", "hello"])
        >>> proc.wait()
        0
        >>> proc.join_readers()
        True
        >>> proc.drain_stdout()
        'hello\\n'
    """

    __slots__ = ("_popen", "_stdout", "_stderr", "_readers", "argv")

    def __init__(self, popen: subprocess.Popen[str], argv: Sequence[str]) -> None:
        self._popen = popen
        self.argv = list(argv)
        self._stdout, self._stderr = _Buffer(), _Buffer()
        self._readers = [
            threading.Thread(target=self._pump, args=(popen.stdout, self._stdout), daemon=True,
                             name=f"ocrdspi-stdout-{popen.pid}"),
            threading.Thread(target=self._pump, args=(popen.stderr, self._stderr), daemon=True,
                             name=f"ocrdspi-stderr-{popen.pid}"),
        ]
        for reader in self._readers:
            reader.start()

    @classmethod
    def start(cls, argv: Sequence[str], cwd: Path | None = None,
              env: Mapping[str, str] | None = None) -> SystemProcess:
        """Launch argv. Raises OSError if the program cannot be started."""
        popen = subprocess.Popen(
            list(argv), cwd=cwd, env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            text=True, encoding="utf-8", errors="replace",
        )
        logger.debug("process started", extra={"pid": popen.pid, "program": argv[0]})
        return cls(popen, argv)

    @staticmethod
    def _pump(stream: IO[str] | None, buffer: _Buffer) -> None:
        if stream is None:
            return
        with stream:
            for line in stream:
                buffer.append(line)

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def returncode(self) -> int | None:
        return self._popen.returncode

    def poll(self) -> int | None:
        return self._popen.poll()

    def wait(self, timeout: float | None = None) -> int | None:
        """Exit status, or None if the process is still running after timeout.

        Output may still be in flight when this returns; see `join_readers`.
        """
        try:
            return self._popen.wait(timeout)
        except subprocess.TimeoutExpired:
            return None

    @property
    def reading(self) -> bool:
        """True while either output stream is still open."""
        return any(reader.is_alive() for reader in self._readers)

    def join_readers(self, timeout: float | None = None) -> bool:
        """Wait for both streams to reach end of file. False if one is still open after timeout.

        A stream stays open past the exit of the process while a descendant
        holds an inherited copy of it.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        for reader in self._readers:
            reader.join(None if deadline is None else max(0.0, deadline - time.monotonic()))
        return not self.reading

    def terminate(self) -> None:
        if self._popen.poll() is None:
            self._popen.terminate()

    def kill(self) -> None:
        if self._popen.poll() is None:
            self._popen.kill()

    def drain_stdout(self) -> str:
        """Standard output written since the last drain."""
        return self._stdout.drain()

    def drain_stderr(self) -> str:
        return self._stderr.drain()


def run(argv: Sequence[str], cwd: Path | None = None, timeout: float | None = None) -> tuple[int, str, str]:
    """Run argv to completion: (exit status, stdout, stderr). Raises OSError on launch failure."""
    proc = SystemProcess.start(argv, cwd)
    code = proc.wait(timeout)
    if code is None:
        proc.kill()
        code = proc.wait()
    proc.join_readers(timeout)
    return code if code is not None else -1, proc.drain_stdout(), proc.drain_stderr()
