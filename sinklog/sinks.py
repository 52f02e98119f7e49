from __future__ import annotations
import threading
from typing import List, Protocol, TextIO, runtime_checkable


@runtime_checkable
class OutputSink(Protocol):
    """Destination accepting one line of text per call."""

    def write_line(self, text: str) -> None: ...


class StreamSink:
    def __init__(self, stream: TextIO):
        self.stream = stream

    def write_line(self, text: str) -> None:
        self.stream.write(text + "\n")


class ListSink:
    """Collects written lines in memory."""

    def __init__(self) -> None:
        self._lines: List[str] = []
        self._lock = threading.Lock()

    def write_line(self, text: str) -> None:
        with self._lock:
            self._lines.append(text)

    @property
    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)
