"""Line sinks: where exported lines go.

A sink is driven through exactly one connect -> send* -> close sequence per
report cycle and is never shared between concurrent cycles.
"""

import logging
import re
import socket
from abc import ABC, abstractmethod
from typing import List, Optional

import pandas as pd

from ..metrics.models import ExportLine

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def sanitize(text: str) -> str:
    """Replace whitespace, which would break the line format, with dashes."""
    return _WHITESPACE.sub("-", text)


class LineSink(ABC):
    """Transport for plaintext protocol lines."""

    @abstractmethod
    def connect(self) -> None:
        """Open the transport. Raises OSError (e.g. ConnectionError) on failure."""

    @abstractmethod
    def send(self, name: str, value: str, timestamp: int) -> None:
        """Send one line. Raises OSError on failure."""

    @abstractmethod
    def close(self) -> None:
        """Release the transport; safe to call when not connected."""

    def send_line(self, line: ExportLine) -> None:
        self.send(line.name, line.value, line.timestamp)


class GraphiteSink(LineSink):
    """Sends lines to a Carbon plaintext listener over TCP."""

    def __init__(self, host: str, port: int = 2003, timeout: Optional[float] = 10.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.failures = 0
        self._socket: Optional[socket.socket] = None

    @property
    def is_connected(self) -> bool:
        return self._socket is not None

    def connect(self) -> None:
        if self._socket is not None:
            raise RuntimeError(f"Already connected to {self.host}:{self.port}")
        try:
            self._socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError:
            self.failures += 1
            raise
        logger.debug(f"Connected to Graphite at {self.host}:{self.port}")

    def send(self, name: str, value: str, timestamp: int) -> None:
        if self._socket is None:
            raise ConnectionError(f"Not connected to {self.host}:{self.port}")
        line = f"{sanitize(name)} {sanitize(value)} {timestamp}\n"
        try:
            self._socket.sendall(line.encode("ascii", errors="replace"))
            self.failures = 0
        except OSError:
            self.failures += 1
            raise

    def close(self) -> None:
        sock, self._socket = self._socket, None
        if sock is not None:
            sock.close()

    def __repr__(self) -> str:
        return f"GraphiteSink({self.host!r}, {self.port})"


class RecordingSink(LineSink):
    """Keeps every sent line in memory. Used by previews and tests."""

    def __init__(self):
        self.lines: List[ExportLine] = []
        self.connects = 0
        self.closes = 0
        self.connected = False

    def connect(self) -> None:
        self.connects += 1
        self.connected = True

    def send(self, name: str, value: str, timestamp: int) -> None:
        if not self.connected:
            raise ConnectionError("RecordingSink is not connected")
        self.lines.append(ExportLine(name, value, timestamp))

    def close(self) -> None:
        self.closes += 1
        self.connected = False

    def to_dataframe(self) -> pd.DataFrame:
        """Get all recorded lines as a pandas DataFrame."""
        if not self.lines:
            return pd.DataFrame(columns=["timestamp", "name", "value"])
        return pd.DataFrame([
            {"timestamp": line.timestamp, "name": line.name, "value": line.value}
            for line in self.lines
        ])

