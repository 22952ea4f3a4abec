"""
Console log forwarding.

Buffers console output and forwards it to the server in coalesced chunks,
either when enough has queued up, when the oldest queued output is old
enough, or when the pipeline explicitly flushes at a command boundary.
"""

import logging
import time
from typing import Callable, List, Optional, Union

from ..models.api import LogAppend
from ..models.config import LogConfig
from ..models.runtime import LOG_SOURCE_CONSOLE, LogChunk

logger = logging.getLogger(__name__)


class LogTransport:
    """
    Ordered, buffered log forwarding for one job-step.

    Output is forwarded in the order it was appended. Command output is
    appended as ``bytes`` and passed through untouched; the agent's own
    lines are ``str`` and are encoded as UTF-8. A failed send raises the
    client's ``ReportingError`` and the output stays buffered.
    """

    def __init__(
        self,
        client,
        config: Optional[LogConfig] = None,
        source: str = LOG_SOURCE_CONSOLE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.config = config or LogConfig()
        self.source = source
        self._clock = clock
        self._pending: List[LogChunk] = []
        self._pending_bytes = 0
        self._oldest_at: Optional[float] = None
        self.chunks_sent = 0

    @property
    def pending_bytes(self) -> int:
        return self._pending_bytes

    def append(self, data: Union[bytes, str]) -> None:
        """Queue ``data`` for forwarding."""
        if not data:
            return
        if isinstance(data, str):
            data = data.encode("utf-8")
        if self._oldest_at is None:
            self._oldest_at = self._clock()
        self._pending.append(LogChunk(data, self.source))
        self._pending_bytes += len(data)

    def write(self, data: Union[bytes, str]) -> None:
        """Queue ``data`` and forward everything queued right away."""
        self.append(data)
        self.flush()

    def flush_if_due(self) -> bool:
        """Flush if the size or age threshold is reached. Returns True if sent."""
        if not self._pending:
            return False
        if self._pending_bytes >= self.config.flush_size_bytes:
            return self.flush()
        if self._clock() - self._oldest_at >= self.config.flush_interval_seconds:
            return self.flush()
        return False

    def flush(self) -> bool:
        """Forward everything queued as one chunk. Returns True if sent."""
        if not self._pending:
            return False
        data = b"".join(chunk.data for chunk in self._pending)
        self.client.append_log(LogAppend(text=data, source=self.source))
        logger.debug(f"Forwarded {self._pending_bytes} bytes of {self.source} log")
        self._pending = []
        self._pending_bytes = 0
        self._oldest_at = None
        self.chunks_sent += 1
        return True
