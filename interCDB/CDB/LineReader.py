"""Line reader with one line of lookahead."""

from __future__ import annotations

from typing import TextIO

from .Exceptions import CDBStreamError, TruncatedFileError


class LineReader:
    """Sequential text reader for ``.cdb`` files.

    Design
    ------
    - One buffered line of lookahead instead of stream seeks.
    - ``peek`` looks at the next line, ``next`` consumes it.
    - Blocks without a terminator peek each candidate line and only consume
      it once it matches, so the first foreign line stays for the caller.

    Notes
    -----
    Returned lines have their trailing ``\\n`` or ``\\r\\n`` removed.
    ``None`` marks the end of the stream.
    """

    __slots__ = ("_stream", "_buffered", "_has_buffer", "line_no")

    def __init__(self, stream: TextIO):
        self._stream = stream
        self._buffered: str | None = None
        self._has_buffer = False
        self.line_no = 0

    def __repr__(self) -> str:
        return f"LineReader(line_no={self.line_no}, buffered={self._has_buffer})"

    __str__ = __repr__

    # ------------- low-level ops -------------

    def _fetch(self) -> str | None:
        try:
            raw = self._stream.readline()
        except (OSError, UnicodeDecodeError) as exc:
            raise CDBStreamError(
                f"failed to read line {self.line_no + 1}: {exc}"
            ) from exc
        if raw == "":
            return None
        return raw.rstrip("\n").rstrip("\r")

    def peek(self) -> str | None:
        """Return the next line without consuming it."""
        if not self._has_buffer:
            self._buffered = self._fetch()
            self._has_buffer = True
        return self._buffered

    def next(self) -> str | None:
        """Consume and return the next line."""
        line = self.peek()
        self._has_buffer = False
        self._buffered = None
        if line is not None:
            self.line_no += 1
        return line

    # ------------- block helpers -------------

    def require(self, what: str) -> str:
        """Consume the next line; fail if the stream has ended."""
        line = self.next()
        if line is None:
            raise TruncatedFileError(what, self.line_no)
        return line

    def skip(self, n: int, what: str) -> None:
        """Consume ``n`` lines that carry no data."""
        for _ in range(n):
            self.require(what)

    @property
    def at_eof(self) -> bool:
        """Return ``True`` when no line is left to read."""
        return self.peek() is None
