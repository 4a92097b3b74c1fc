"""Errors raised while importing ANSYS ``.cdb`` files.

Every error aborts the read. A mesh left behind by a failed read is not
usable and should be discarded by the caller.
"""

from __future__ import annotations

from typing import Iterable


class CDBError(RuntimeError):
    """Base class for all import failures."""


class CDBStreamError(CDBError):
    """The input stream could not be opened or read."""


class TruncatedFileError(CDBStreamError):
    """The stream ended inside a block that needs more lines."""

    def __init__(self, what: str, line_no: int) -> None:
        super().__init__(f"unexpected end of file in {what} after line {line_no}")
        self.what = what
        self.line_no = line_no


class UnknownElementTypeError(CDBError):
    """No element type is in effect, or its code is not registered."""

    def __init__(self, code: int | None, line_no: int | None = None) -> None:
        if code is None:
            msg = "element block found before any ET declaration"
        else:
            msg = f"ANSYS element type {code} is not supported"
        if line_no is not None:
            msg = f"line {line_no}: {msg}"
        super().__init__(msg)
        self.code = code
        self.line_no = line_no


class UnresolvedArityError(CDBError):
    """A known element type has no shape with the given unique node count."""

    def __init__(self, code: int, n_nodes: int, known: Iterable[int]) -> None:
        options = ", ".join(str(n) for n in sorted(known))
        super().__init__(
            f"ANSYS element type {code} has no shape with {n_nodes} unique nodes "
            f"(known: {options})"
        )
        self.code = code
        self.n_nodes = n_nodes


class DanglingNodeReferenceError(CDBError):
    """A record references an ANSYS node id that no node block defined."""

    def __init__(self, ansys_id: int, context: str) -> None:
        super().__init__(f"{context} references undefined node {ansys_id}")
        self.ansys_id = ansys_id
        self.context = context


class MalformedRecordError(CDBError):
    """A record inside a recognised block could not be parsed."""

    def __init__(self, message: str, line_no: int | None = None) -> None:
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no
