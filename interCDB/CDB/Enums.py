"""Geometric element shapes produced by the importer."""

from __future__ import annotations

from enum import Enum


class ElemType(Enum):
    """Element shapes understood by the mesh sink.

    The value is the lower-case label stored in ``ElementArray.etype``.
    """

    HEX8 = "hex8"
    HEX20 = "hex20"
    TET4 = "tet4"
    TET10 = "tet10"
    PRISM6 = "penta6"
    PRISM15 = "penta15"
    PYRAMID5 = "pyra5"
    PYRAMID13 = "pyra13"


nodesPerElementClass: dict[ElemType, int] = {
    ElemType.HEX8: 8,
    ElemType.HEX20: 20,
    ElemType.TET4: 4,
    ElemType.TET10: 10,
    ElemType.PRISM6: 6,
    ElemType.PRISM15: 15,
    ElemType.PYRAMID5: 5,
    ElemType.PYRAMID13: 13,
}

dimensionOfElementClass: dict[ElemType, int] = {etype: 3 for etype in ElemType}
