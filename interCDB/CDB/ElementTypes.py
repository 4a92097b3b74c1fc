"""ANSYS element type table.

An ANSYS element type code does not name a single shape. SOLID186, for
example, writes bricks, tetrahedra, wedges and pyramids with the same code
and the same 20 node slots, collapsing the unused slots onto repeated node
ids. Once the repeats are removed, the number of distinct nodes tells the
shapes apart, so each definition is keyed by that count.

The table is built once by :func:`build_element_registry` and exposed as
:data:`ELEMENT_REGISTRY`. Nothing mutates it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple, Sequence

from .Enums import ElemType, dimensionOfElementClass, nodesPerElementClass
from .Exceptions import UnknownElementTypeError, UnresolvedArityError


class ResolvedShape(NamedTuple):
    """Shape chosen for one element record."""

    shape: ElemType
    shape_name: str
    node_ordering: tuple[int, ...]


@dataclass(frozen=True)
class AnsysElementDefinition:
    """Candidate shapes for one ANSYS element type code.

    Attributes
    ----------
    code
        ANSYS element type number, e.g. ``226`` for SOLID226.
    dimension
        Topological dimension of every candidate shape.
    node_ordering
        ``n -> ordering`` where ``ordering[i]`` is the ANSYS slot that feeds
        slot ``i`` of the geometric shape.
    shape
        ``n -> ElemType``.
    shape_name
        ``n -> tag`` appended to subdomain names when a block mixes shapes.
    """

    code: int
    dimension: int
    node_ordering: Mapping[int, tuple[int, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    shape: Mapping[int, ElemType] = field(default_factory=lambda: MappingProxyType({}))
    shape_name: Mapping[int, str] = field(default_factory=lambda: MappingProxyType({}))

    def arities(self) -> tuple[int, ...]:
        """Return the supported unique node counts in ascending order."""
        return tuple(sorted(self.shape))

    def resolve(self, n_nodes: int) -> ResolvedShape:
        """Return the candidate matching ``n_nodes`` unique nodes."""
        try:
            return ResolvedShape(
                self.shape[n_nodes],
                self.shape_name[n_nodes],
                self.node_ordering[n_nodes],
            )
        except KeyError:
            raise UnresolvedArityError(self.code, n_nodes, self.shape) from None


def element_definition(
    code: int,
    dimension: int,
    candidates: Iterable[tuple[Sequence[int], ElemType, str]],
) -> AnsysElementDefinition:
    """Build one definition and check its tables against the shapes."""
    ordering: dict[int, tuple[int, ...]] = {}
    shapes: dict[int, ElemType] = {}
    names: dict[int, str] = {}
    for order, shape, name in candidates:
        n = len(order)
        if n in shapes:
            raise ValueError(f"type {code}: two shapes share {n} unique nodes")
        if sorted(order) != list(range(n)):
            raise ValueError(f"type {code}: {name} ordering is not a permutation")
        if nodesPerElementClass[shape] != n:
            raise ValueError(f"type {code}: {name} needs {nodesPerElementClass[shape]} nodes")
        if dimensionOfElementClass[shape] != dimension:
            raise ValueError(f"type {code}: {name} is not {dimension}D")
        ordering[n] = tuple(order)
        shapes[n] = shape
        names[n] = name
    return AnsysElementDefinition(
        code=code,
        dimension=dimension,
        node_ordering=MappingProxyType(ordering),
        shape=MappingProxyType(shapes),
        shape_name=MappingProxyType(names),
    )


# SOLID186/SOLID226 slot order I..P, Q..X (mid-edges), Y..B (vertical edges).
_HEX20 = (3, 0, 1, 2, 7, 4, 5, 6, 11, 8, 9, 10, 19, 16, 17, 18, 15, 12, 13, 14)
_TET10 = (2, 0, 1, 3, 6, 4, 5, 9, 7, 8)
_PRISM15 = (2, 0, 1, 5, 3, 4, 8, 6, 7, 14, 12, 13, 11, 9, 10)
_PYRAMID13 = (3, 0, 1, 2, 4, 8, 5, 6, 7, 12, 9, 10, 11)

_QUADRATIC_SOLID = (
    (_HEX20, ElemType.HEX20, "HEX20"),
    (_TET10, ElemType.TET10, "TET10"),
    (_PRISM15, ElemType.PRISM15, "PRISM15"),
    (_PYRAMID13, ElemType.PYRAMID13, "PYR13"),
)

# Corner nodes come first in the quadratic orderings.
_LINEAR_SOLID = (
    (_HEX20[:8], ElemType.HEX8, "HEX8"),
    (_TET10[:4], ElemType.TET4, "TET4"),
    (_PRISM15[:6], ElemType.PRISM6, "PRISM6"),
    (_PYRAMID13[:5], ElemType.PYRAMID5, "PYR5"),
)


@dataclass(frozen=True)
class ElementRegistry:
    """Read-only lookup from ANSYS type code to its definition."""

    definitions: Mapping[int, AnsysElementDefinition]

    def codes(self) -> tuple[int, ...]:
        """Return the registered ANSYS codes in ascending order."""
        return tuple(sorted(self.definitions))

    def __contains__(self, code: object) -> bool:
        return code in self.definitions

    def lookup(self, code: int | None) -> AnsysElementDefinition:
        """Return the definition for ``code``.

        Raises
        ------
        UnknownElementTypeError
            If ``code`` is ``None`` or was never registered.
        """
        if code is None or code not in self.definitions:
            raise UnknownElementTypeError(code)
        return self.definitions[code]

    def resolve(self, code: int | None, n_nodes: int) -> ResolvedShape:
        """Pick the shape of an element of type ``code`` with ``n_nodes`` unique nodes.

        Raises
        ------
        UnknownElementTypeError
            If the type is not registered.
        UnresolvedArityError
            If no candidate shape of the type has ``n_nodes`` nodes.
        """
        return self.lookup(code).resolve(n_nodes)


def build_element_registry() -> ElementRegistry:
    """Build the table of supported ANSYS element types."""
    definitions = (
        element_definition(185, 3, _LINEAR_SOLID),
        element_definition(186, 3, _QUADRATIC_SOLID),
        element_definition(187, 3, ((_TET10, ElemType.TET10, "TET10"),)),
        element_definition(226, 3, _QUADRATIC_SOLID),
    )
    return ElementRegistry(MappingProxyType({d.code: d for d in definitions}))


ELEMENT_REGISTRY: ElementRegistry = build_element_registry()
