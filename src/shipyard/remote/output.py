# Connection Output Sinks
#
# Secondary, connection-wide destination for progress and status text.
# Distinct from the per-call ``on_line`` callback of Connection.run(),
# which receives command stdout.

import logging
from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class OutputSink(Protocol):
    """Anything that accepts progress text."""

    def write(self, message: str) -> None: ...

    def writeln(self, message: str) -> None: ...


class NullOutput:
    """Sink that discards everything."""

    def write(self, message: str) -> None:
        pass

    def writeln(self, message: str) -> None:
        pass


class LoggerOutput:
    """Forward progress text to a stdlib logger.

    Partial writes are held until a newline (or ``writeln``) completes
    the line, so the log never contains half-lines.

    Args:
        logger: Target logger (default: this module's logger).
        level: Log level for each line (default INFO).
        prefix: Optional text prepended to every line, e.g. the
            connection handle.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        level: int = logging.INFO,
        prefix: str = "",
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._level = level
        self._prefix = prefix
        self._pending = ""

    def write(self, message: str) -> None:
        self._pending += message
        while "\n" in self._pending:
            line, self._pending = self._pending.split("\n", 1)
            self._emit(line)

    def writeln(self, message: str) -> None:
        self.write(message + "\n")

    def _emit(self, line: str) -> None:
        if self._prefix:
            line = f"[{self._prefix}] {line}"
        self._logger.log(self._level, line)


class BufferedOutput:
    """Keep everything in memory; ``fetch()`` drains it."""

    def __init__(self):
        self._buffer: List[str] = []

    def write(self, message: str) -> None:
        self._buffer.append(message)

    def writeln(self, message: str) -> None:
        self._buffer.append(message + "\n")

    def fetch(self) -> str:
        content = "".join(self._buffer)
        self._buffer.clear()
        return content
