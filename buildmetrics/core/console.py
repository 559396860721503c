"""Console sinks for human-readable progress messages.

Writes are best-effort: a failing sink never interrupts publication.
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO

LOG = logging.getLogger(__name__)

CONSOLE_PREFIX = '[buildmetrics]'


class ConsoleSink(ABC):
    """Line-oriented, append-only text sink."""

    @abstractmethod
    def println(self, line: str) -> None:
        pass


class StreamConsole(ConsoleSink):
    """Writes lines to a text stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def println(self, line: str) -> None:
        stream = self.stream or sys.stdout
        try:
            stream.write(f"{line}\n")
            stream.flush()
        except (OSError, ValueError) as e:
            LOG.debug(f"Console write failed: {e}")


class BufferConsole(ConsoleSink):
    """Keeps lines in memory so callers can inspect them afterwards."""

    def __init__(self):
        self.lines: List[str] = []

    def println(self, line: str) -> None:
        self.lines.append(line)

    def __str__(self) -> str:
        return '\n'.join(self.lines)


class NullConsole(ConsoleSink):
    """Discards everything."""

    def println(self, line: str) -> None:
        pass
