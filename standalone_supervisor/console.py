"""Console drain: keeps the server's output pipe empty and watches for shutdown."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

log = logging.getLogger(__name__)
console_log = logging.getLogger("standalone_supervisor.console")

# Logged by the server once its shutdown handler has finished.
SHUTDOWN_MARKER = "JBAS015950"

CHUNK_SIZE = 4096
# A partial line this long is emitted as-is rather than held back.
MAX_LINE = 1 << 20


@dataclass
class RingBuffer:
    """Recent console lines, capped by their combined length."""

    max_chars: int = 100_000
    lines: deque[str] = field(default_factory=deque)
    chars: int = 0
    seq: int = 0

    def append(self, line: str) -> None:
        self.lines.append(line)
        self.chars += len(line)
        self.seq += 1
        # The newest line always stays, however long it is.
        while self.chars > self.max_chars and len(self.lines) > 1:
            self.chars -= len(self.lines.popleft())

    def tail(self, num_chars: int = 2000) -> str:
        """Return the last `num_chars` characters, one line per row."""
        text = "\n".join(self.lines)
        return text[-num_chars:] if num_chars > 0 else ""


class ConsoleDrain:
    """Reads the merged stdout/stderr of the server and splits it into lines.

    Each line goes to ``sink`` (by default the ``standalone_supervisor.console``
    logger) and into ``buffer``.  The first line containing
    :data:`SHUTDOWN_MARKER` fires a one-shot completion event.
    """

    def __init__(
        self,
        stream: asyncio.StreamReader,
        sink: Callable[[str], None] | None = None,
        buffer: RingBuffer | None = None,
    ) -> None:
        self._stream = stream
        self._sink = sink or console_log.info
        self.buffer = buffer if buffer is not None else RingBuffer()
        self._shutdown = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def start(
        cls,
        stream: asyncio.StreamReader,
        sink: Callable[[str], None] | None = None,
        buffer: RingBuffer | None = None,
    ) -> ConsoleDrain:
        drain = cls(stream, sink, buffer)
        drain._task = asyncio.create_task(drain._run(), name="server-console")
        return drain

    @property
    def shutdown_seen(self) -> bool:
        return self._shutdown.is_set()

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def await_completion(self, timeout: float) -> bool:
        """Wait up to `timeout` seconds for the shutdown marker.

        Returns whether the marker was seen; running out of time is not an
        error.
        """
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def close(self, timeout: float = 1.0) -> None:
        """Let the drain read to end-of-stream, cancelling it after `timeout`."""
        if self._task is None:
            return
        await asyncio.wait({self._task}, timeout=timeout)
        self.cancel()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _emit(self, raw: bytes) -> None:
        line = raw.decode("utf-8", errors="replace").rstrip("\r")
        self.buffer.append(line)
        try:
            self._sink(line)
        except Exception:
            log.warning("Console sink failed", exc_info=True)
        if SHUTDOWN_MARKER in line:
            self._shutdown.set()

    async def _run(self) -> None:
        # Chunked reads: a line of any length must not stall the pipe.
        pending = bytearray()
        try:
            while True:
                chunk = await self._stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                pending += chunk
                while True:
                    end = pending.find(b"\n")
                    if end < 0:
                        break
                    self._emit(bytes(pending[:end]))
                    del pending[: end + 1]
                if len(pending) >= MAX_LINE:
                    self._emit(bytes(pending))
                    pending.clear()
            if pending:
                self._emit(bytes(pending))
        except OSError as exc:
            log.debug("Console drain stopped: %s", exc)
        except asyncio.CancelledError:
            pass
