import asyncio
import logging
import signal
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import List, Optional, Sequence

from replbridge.errors import (
    ReadFailure,
    ShutdownFailure,
    StartupFailure,
    WriteFailure,
)
from replbridge.modules.framer import ResponseFramer

logger = logging.getLogger(__name__)

# Appended to every command; the blank line makes the REPL evaluate it
COMMAND_TERMINATOR = b"\n\n"

DEFAULT_STREAM_LIMIT = 16 * 1024 * 1024
DEFAULT_SHUTDOWN_GRACE = 5.0
DEFAULT_EOF_GRACE = 0.5


@dataclass
class ExecutionResult:
    """Outcome of one command exchange."""

    output: bytes
    complete: bool
    elapsed: float


class SessionModule:
    def __init__(
        self,
        command: Sequence[str],
        cwd: Optional[str] = None,
        stream_limit: int = DEFAULT_STREAM_LIMIT,
        shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE,
        eof_grace: float = DEFAULT_EOF_GRACE,
    ):
        """
        Initialize session module.

        Args:
            command: REPL executable and arguments
            cwd: Working directory for the REPL (None keeps the service's)
            stream_limit: Longest output line accepted, in bytes
            shutdown_grace: Seconds to wait for exit after interrupt and after kill
            eof_grace: Seconds to wait for exit after stdin closes, before interrupting
        """
        if not command:
            raise ValueError("REPL command must not be empty")

        self.command: List[str] = list(command)
        self.cwd = cwd
        self.stream_limit = stream_limit
        self.shutdown_grace = shutdown_grace
        self.eof_grace = eof_grace

        self._process: Optional[asyncio.subprocess.Process] = None
        self._lock = asyncio.Lock()
        self._closed = False

        self.started_at: Optional[datetime] = None
        self.last_activity: Optional[datetime] = None
        self.command_count = 0
        self.last_exchange_complete: Optional[bool] = None

    async def __aenter__(self) -> "SessionModule":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process else None

    async def start(self) -> None:
        """
        Spawn the REPL subprocess.

        Nothing is read from the process here; the first output is only
        consumed by the first execute().

        Raises:
            StartupFailure: If the process cannot be spawned or piped
        """
        if self._process is not None:
            raise StartupFailure("REPL session already started")

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                cwd=self.cwd,
                limit=self.stream_limit,
            )
        except (OSError, ValueError) as e:
            raise StartupFailure(f"failed to start REPL {self.command[0]!r}: {e}") from e

        if self._process.stdin is None or self._process.stdout is None:
            raise StartupFailure("failed to attach REPL pipes")

        self.started_at = datetime.now(UTC)
        logger.info(
            f"Started REPL process {self._process.pid}: {' '.join(self.command)}"
            + (f" (cwd={self.cwd})" if self.cwd else "")
        )

    def is_alive(self) -> bool:
        """
        Check whether the REPL process is still running.

        Reads only the exit status, so it never waits for the session lock.
        """
        return self._process is not None and self._process.returncode is None

    async def execute(self, command: bytes, timeout: Optional[float] = None) -> ExecutionResult:
        """
        Send one command to the REPL and read back its response.

        Args:
            command: Raw command bytes, forwarded verbatim
            timeout: Seconds to wait for the response (None or <= 0 waits forever)

        Returns:
            ExecutionResult; complete is False when the timeout cut the
            response short, in which case output holds what arrived so far

        Raises:
            WriteFailure: If the command cannot be written
            ReadFailure: If the output stream breaks or ends mid-response
            ProtocolViolation: If the response does not start with '{'

        Logic:
        1. Wait for exclusive access to the REPL
        2. Write the command plus a blank line
        3. Feed output lines to a fresh framer until it reports completion
           or the deadline passes

        If the caller is cancelled after the write, the response is still
        read to its end (or to the deadline) before the lock is released, so
        the next command starts on a clean pipe.
        """
        async with self._lock:
            start = time.monotonic()
            deadline = start + timeout if timeout is not None and timeout > 0 else None

            self.command_count += 1
            self.last_activity = datetime.now(UTC)

            await self._write(bytes(command) + COMMAND_TERMINATOR)

            # Once written, the response must be consumed before the lock is released
            read = asyncio.ensure_future(self._read_response(deadline))
            try:
                output, complete = await asyncio.shield(read)
            except asyncio.CancelledError:
                await self._drain_cancelled(read)
                raise

            elapsed = time.monotonic() - start
            self.last_exchange_complete = complete

            if complete:
                logger.debug(f"REPL responded with {len(output)} bytes in {elapsed:.3f}s")
            else:
                logger.warning(
                    f"REPL response timed out after {elapsed:.3f}s with {len(output)} bytes read; "
                    "unread output stays in the pipe"
                )

            return ExecutionResult(output=output, complete=complete, elapsed=elapsed)

    async def _drain_cancelled(self, read: asyncio.Future) -> None:
        """Finish reading a response whose caller was cancelled, keeping the lock."""
        logger.warning("REPL command cancelled mid-exchange, draining its response")
        while not read.done():
            try:
                await asyncio.wait({read})
            except asyncio.CancelledError:
                continue

        if read.cancelled():
            return
        exc = read.exception()
        if exc is not None:
            logger.warning(f"Draining cancelled REPL command failed: {exc}")
        else:
            output, complete = read.result()
            self.last_exchange_complete = complete
            logger.debug(f"Discarded {len(output)} bytes for a cancelled REPL command")

    async def _write(self, payload: bytes) -> None:
        process = self._process
        if process is None or process.stdin is None:
            raise WriteFailure("REPL session is not started")
        if process.returncode is not None:
            raise WriteFailure(f"REPL process has exited with code {process.returncode}")
        if process.stdin.is_closing():
            raise WriteFailure("REPL input stream is closed")

        try:
            process.stdin.write(payload)
            await process.stdin.drain()
        except OSError as e:
            raise WriteFailure(f"failed to write to REPL: {e}") from e

    async def _read_response(self, deadline: Optional[float]) -> tuple[bytes, bool]:
        stdout = self._process.stdout
        framer = ResponseFramer()

        while True:
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return framer.getvalue(), False

            try:
                raw = await asyncio.wait_for(stdout.readline(), remaining)
            except asyncio.TimeoutError:
                return framer.getvalue(), False
            except (OSError, ValueError) as e:
                # ValueError: line longer than stream_limit
                raise ReadFailure(f"error reading from REPL: {e}") from e

            if not raw:
                raise ReadFailure("REPL closed its output before the response was complete")

            if framer.feed(raw.rstrip(b"\r\n")):
                return framer.getvalue(), True

    async def shutdown(self) -> None:
        """
        Terminate the REPL process.

        Closes stdin and gives the process eof_grace seconds to exit on its
        own. It is then interrupted, and killed if it is still running
        shutdown_grace seconds later. Every step is tried even when an
        earlier one failed.

        Raises:
            ShutdownFailure: Listing every step that went wrong
        """
        process = self._process
        if process is None or self._closed:
            return
        self._closed = True

        problems: List[str] = []

        try:
            process.stdin.close()
            await process.stdin.wait_closed()
        except OSError as e:
            problems.append(f"failed to close stdin: {e}")

        if process.returncode is None and not await self._wait_exit(process, self.eof_grace):
            logger.debug(f"REPL process {process.pid} still running after EOF, interrupting it")
            try:
                process.send_signal(signal.SIGINT)
            except ProcessLookupError:
                logger.debug(f"REPL process {process.pid} exited before interrupt")
            except OSError as e:
                problems.append(f"failed to send interrupt signal to REPL process: {e}")

            if not await self._wait_exit(process, self.shutdown_grace):
                logger.warning(f"REPL process {process.pid} ignored interrupt, killing it")
                try:
                    process.kill()
                except ProcessLookupError:
                    logger.debug(f"REPL process {process.pid} exited before kill")
                await process.wait()
                problems.append("REPL process did not exit after interrupt and was killed")

        if process.returncode != 0:
            problems.append(f"REPL process exited with code {process.returncode}")

        if problems:
            for problem in problems:
                logger.error(problem)
            raise ShutdownFailure(problems)

        logger.info(f"REPL process {process.pid} exited cleanly")

    async def _wait_exit(self, process: asyncio.subprocess.Process, timeout: float) -> bool:
        try:
            await asyncio.wait_for(process.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def describe(self) -> dict:
        """
        Snapshot of the session for health reporting.

        Lock-free: reads bookkeeping fields and the exit status only.
        """
        return {
            "pid": self.pid,
            "alive": self.is_alive(),
            "returncode": self.returncode,
            "command": self.command,
            "cwd": self.cwd,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "last_activity": self.last_activity.isoformat() if self.last_activity else None,
            "command_count": self.command_count,
            "last_exchange_complete": self.last_exchange_complete,
        }
