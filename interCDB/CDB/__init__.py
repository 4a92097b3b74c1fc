"""Public interface for the CDB package.

The reader itself lives in :mod:`interCDB.CDB.CDB`; it is not imported here
because it depends on :mod:`interCDB.Mesh`, which depends on this package.
"""

from __future__ import annotations

from .ElementTypes import (
    ELEMENT_REGISTRY,
    AnsysElementDefinition,
    ElementRegistry,
    ResolvedShape,
    build_element_registry,
    element_definition,
)
from .Enums import ElemType
from .Exceptions import (
    CDBError,
    CDBStreamError,
    DanglingNodeReferenceError,
    MalformedRecordError,
    TruncatedFileError,
    UnknownElementTypeError,
    UnresolvedArityError,
)
from .options import LogOptions, ReaderOptions

__all__ = [
    "AnsysElementDefinition",
    "CDBError",
    "CDBStreamError",
    "DanglingNodeReferenceError",
    "ELEMENT_REGISTRY",
    "ElemType",
    "ElementRegistry",
    "LogOptions",
    "MalformedRecordError",
    "ReaderOptions",
    "ResolvedShape",
    "TruncatedFileError",
    "UnknownElementTypeError",
    "UnresolvedArityError",
    "build_element_registry",
    "element_definition",
]
