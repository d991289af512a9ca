"""Line sources feeding the ingestion thread.

The usual source is the standard output of a ``monad-ledger-tail`` child
process; any binary stream (e.g. stdin) works as well.
"""

import logging
import subprocess
from collections.abc import Iterator, Sequence
from typing import IO

logger = logging.getLogger(__name__)


class TailProcessError(RuntimeError):
    """The tail process could not be started or exited prematurely."""


def iter_lines(stream: IO[bytes]) -> Iterator[bytes]:
    """Yield lines from a binary stream until it is exhausted.

    The trailing ``\\n`` or ``\\r\\n`` is removed; bytes are not decoded.
    """
    for raw in stream:
        if raw.endswith(b"\n"):
            raw = raw[:-1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]
        yield raw


class LedgerTailProcess:
    """Supervises the child process whose stdout carries ledger records.

    The child's stderr is inherited so its own diagnostics reach the
    operator unchanged.
    """

    def __init__(self, binary: str, args: Sequence[str] = ()) -> None:
        self.binary = binary
        self.args = list(args)
        self._process: subprocess.Popen[bytes] | None = None

    @property
    def command(self) -> list[str]:
        return [self.binary, *self.args]

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    def start(self) -> None:
        """Spawn the child with a piped stdout.

        Raises:
            TailProcessError: If the binary cannot be executed or the child
                exits straight away.
        """
        try:
            self._process = subprocess.Popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=None,
            )
        except OSError as e:
            raise TailProcessError(
                f"failed to start monad-ledger-tail at {self.binary}: {e}"
            ) from e
        logger.info("Started monad-ledger-tail (pid %d)", self._process.pid)
        status = self._process.poll()
        if status is not None:
            raise TailProcessError(
                f"monad-ledger-tail exited immediately with status {status}"
            )

    def _require_process(self) -> "subprocess.Popen[bytes]":
        if self._process is None:
            raise TailProcessError("monad-ledger-tail has not been started")
        return self._process

    def lines(self) -> Iterator[bytes]:
        """Iterate over the child's stdout until it closes."""
        stdout = self._require_process().stdout
        if stdout is None:
            raise TailProcessError("failed to capture monad-ledger-tail stdout")
        return iter_lines(stdout)

    def wait(self) -> int:
        """Block until the child exits and return its status."""
        return self._require_process().wait()

    def terminate(self, timeout: float = 5.0) -> None:
        """Stop the child if it is still running."""
        process = self._process
        if process is None or process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("monad-ledger-tail did not stop, killing pid %d", process.pid)
            process.kill()
            process.wait()
