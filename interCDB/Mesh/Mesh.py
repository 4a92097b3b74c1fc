"""Mesh sink and mesh container for interCDB.

Two layers live here:

- :class:`MeshBuilder` is the mutable sink the importer writes into. It
  accepts points, elements, subdomain names, and node-set members one at a
  time, in the order a ``.cdb`` file presents them.
- :class:`Mesh` is the frozen, NumPy-backed result built from a builder with
  :meth:`MeshBuilder.build`. It stores node and element tables plus named
  parts and node sets.

"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Sequence

import numpy as np

from ..CDB.Enums import ElemType, nodesPerElementClass

if TYPE_CHECKING:
    from ..CDB.options import ReaderOptions


@dataclass
class NodeArray:
    """Dense node table.

    Attributes
    ----------
    xyz
        Array of shape (N, 3). Stored as float64.
    """

    xyz: np.ndarray

    def __post_init__(self) -> None:
        a = np.asanyarray(self.xyz, dtype=float)
        if a.size == 0:
            a = a.reshape(0, 3)
        if a.ndim != 2 or a.shape[1] != 3:
            raise ValueError("nodes must be (N, 3)")
        self.xyz = a

    def __len__(self) -> int:
        """Return the number of nodes."""
        return int(self.xyz.shape[0])

    def __getitem__(self, idx: slice | int | np.ndarray | list[int]) -> NodeArray:
        """Return a sliced view."""
        return NodeArray(np.atleast_2d(self.xyz[idx]))

    def take(self, ids: np.ndarray | list[int]) -> NodeArray:
        """Return a new node table with the given 0-based node ids."""
        return NodeArray(self.xyz[np.asarray(ids, dtype=np.int64)])


@dataclass
class ElementArray:
    """Mixed-element connectivity with padding.

    Elements live in a 2D integer array with ``-1`` padding on the right.
    The valid size of each row is stored in ``nper``.

    Attributes
    ----------
    conn
        Array of shape ``(E, Kmax)`` with 0-based node ids. Unused slots are ``-1``.
    nper
        Array of shape ``(E,)`` with the valid count per row.
    etype
        Array of shape ``(E,)`` with labels like ``'hex20'`` or ``'tet10'``.
    """

    conn: np.ndarray
    nper: np.ndarray
    etype: np.ndarray

    def __post_init__(self) -> None:
        c = np.asanyarray(self.conn, dtype=np.int64)
        if c.ndim != 2:
            raise ValueError("conn must be (E, Kmax)")
        self.conn = c
        self.nper = np.asanyarray(self.nper, dtype=np.int64).reshape(-1)
        self.etype = np.asanyarray(self.etype, dtype=object).reshape(-1)
        if (
            self.conn.shape[0] != self.nper.shape[0]
            or self.conn.shape[0] != self.etype.shape[0]
        ):
            raise ValueError("conn, nper, etype length mismatch")

    def __len__(self) -> int:
        """Return the number of elements."""
        return int(self.conn.shape[0])

    def __getitem__(self, idx: slice | int | np.ndarray | list[int]) -> ElementArray:
        """Return a sliced view."""
        if isinstance(idx, (int, np.integer)):
            idx = [int(idx)]
        return ElementArray(self.conn[idx], self.nper[idx], self.etype[idx])

    def nodes_of(self, ei: int) -> np.ndarray:
        """Return node ids for a single element row."""
        k = self.nper[ei]
        return self.conn[ei, :k]

    def unique_nodes(self) -> np.ndarray:
        """Return sorted unique node ids used by the selection."""
        if len(self) == 0:
            return np.empty((0,), dtype=np.int64)
        counts = np.repeat(self.nper[:, None], self.conn.shape[1], axis=1)
        idx = np.repeat(np.arange(self.conn.shape[1])[None, :], len(self), axis=0)
        return np.unique(self.conn[idx < counts])


class Elem:
    """Handle to one element inside a :class:`MeshBuilder`.

    Node slots start unset and are filled with :meth:`set_node`.
    """

    __slots__ = ("_owner", "elem_type", "id", "nodes", "subdomain_id")

    def __init__(self, owner: MeshBuilder, elem_type: ElemType, elem_id: int):
        self._owner = owner
        self.elem_type = elem_type
        self.id = elem_id
        self.nodes: list[int | None] = [None] * nodesPerElementClass[elem_type]
        self.subdomain_id = 0

    def __repr__(self) -> str:
        return (
            f"Elem(id={self.id}, type={self.elem_type.value}, "
            f"subdomain={self.subdomain_id}, nodes={self.nodes})"
        )

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    def set_node(self, slot: int, node: int) -> None:
        """Point slot ``slot`` at the mesh node ``node``."""
        if not 0 <= slot < len(self.nodes):
            raise IndexError(
                f"{self.elem_type.value} has no node slot {slot}"
            )
        if not 0 <= node < self._owner.n_nodes:
            raise KeyError(f"mesh has no node {node}")
        self.nodes[slot] = int(node)

    def set_subdomain(self, subdomain_id: int) -> None:
        self.subdomain_id = int(subdomain_id)


class BoundaryInfo:
    """Numbered node sets with optional names."""

    def __init__(self) -> None:
        self._nodesets: dict[int, set[int]] = {}
        self._names: dict[int, str] = {}

    def clear(self) -> None:
        self._nodesets.clear()
        self._names.clear()

    def add_node_to_set(self, node: int, set_id: int) -> None:
        self._nodesets.setdefault(int(set_id), set()).add(int(node))

    def set_name(self, set_id: int, name: str) -> None:
        self._names[int(set_id)] = name
        self._nodesets.setdefault(int(set_id), set())

    def nodeset_name(self, set_id: int) -> str:
        """Return the name of ``set_id``, or ``""`` when it has none."""
        return self._names.get(set_id, "")

    def nodeset_ids(self) -> list[int]:
        return sorted(self._nodesets)

    def nodes_in_set(self, set_id: int) -> list[int]:
        """Return the members of ``set_id`` in ascending order."""
        return sorted(self._nodesets[set_id])

    @property
    def n_nodesets(self) -> int:
        return len(self._nodesets)


class MeshBuilder:
    """Mutable mesh sink filled by the importer.

    Node and element ids are dense and 0-based; they must be added in order.
    Call :meth:`build` to obtain the NumPy-backed :class:`Mesh`.
    """

    def __init__(self) -> None:
        self._points: list[tuple[float, float, float]] = []
        self._elems: list[Elem] = []
        self._subdomain_names: dict[int, str] = {}
        self.boundary_info = BoundaryInfo()

    def __repr__(self) -> str:
        return (
            f"MeshBuilder(nodes={self.n_nodes}, elems={self.n_elem}, "
            f"subdomains={len(self.subdomain_ids())}, "
            f"nodesets={self.boundary_info.n_nodesets})"
        )

    # -------------- sink interface --------------

    def clear(self) -> None:
        """Drop every point, element, name, and node set."""
        self._points.clear()
        self._elems.clear()
        self._subdomain_names.clear()
        self.boundary_info.clear()

    def add_point(self, coords: Sequence[float], node_id: int) -> None:
        """Append node ``node_id`` at ``coords``.

        Raises
        ------
        ValueError
            If ``node_id`` is not the next dense id or ``coords`` is not 3D.
        """
        if node_id != len(self._points):
            raise ValueError(
                f"expected node id {len(self._points)}, got {node_id}"
            )
        xyz = tuple(float(c) for c in coords)
        if len(xyz) != 3:
            raise ValueError(f"node {node_id} needs 3 coordinates, got {len(xyz)}")
        self._points.append(xyz)  # type: ignore[arg-type]

    def add_element(self, elem_type: ElemType, elem_id: int) -> Elem:
        """Append an element of shape ``elem_type`` and return its handle."""
        if elem_id != len(self._elems):
            raise ValueError(f"expected element id {len(self._elems)}, got {elem_id}")
        elem = Elem(self, elem_type, elem_id)
        self._elems.append(elem)
        return elem

    def set_subdomain_name(self, subdomain_id: int, name: str) -> None:
        self._subdomain_names[int(subdomain_id)] = name

    # -------------- queries --------------

    @property
    def n_nodes(self) -> int:
        return len(self._points)

    @property
    def n_elem(self) -> int:
        return len(self._elems)

    def point(self, node_id: int) -> tuple[float, float, float]:
        return self._points[node_id]

    def elem(self, elem_id: int) -> Elem:
        return self._elems[elem_id]

    def elements(self) -> Iterable[Elem]:
        return iter(self._elems)

    def subdomain_name(self, subdomain_id: int) -> str:
        """Return the name of ``subdomain_id``, or ``""`` when it has none."""
        return self._subdomain_names.get(subdomain_id, "")

    def subdomain_ids(self) -> list[int]:
        """Return every subdomain id that carries elements or a name."""
        ids = {e.subdomain_id for e in self._elems}
        ids.update(self._subdomain_names)
        return sorted(ids)

    # -------------- freezing --------------

    def build(self) -> Mesh:
        """Freeze the accumulated data into a :class:`Mesh`.

        Raises
        ------
        ValueError
            If an element still has an unset node slot.
        """
        nodes = NodeArray(np.asarray(self._points, dtype=float).reshape(-1, 3))

        kmax = max((e.n_nodes for e in self._elems), default=0)
        E = len(self._elems)
        conn = -np.ones((E, kmax), dtype=np.int64)
        nper = np.zeros((E,), dtype=np.int64)
        subdomains = np.zeros((E,), dtype=np.int64)
        for i, e in enumerate(self._elems):
            if any(n is None for n in e.nodes):
                raise ValueError(f"element {e.id} has unset node slots")
            conn[i, : e.n_nodes] = e.nodes
            nper[i] = e.n_nodes
            subdomains[i] = e.subdomain_id
        elements = ElementArray(
            conn=conn,
            nper=nper,
            etype=np.asarray([e.elem_type.value for e in self._elems], dtype=object),
        )

        part_map: dict[str, list[int]] = {}
        for i, sid in enumerate(subdomains.tolist()):
            pname = self._subdomain_names.get(sid) or f"block_{sid}"
            part_map.setdefault(pname, []).append(i)

        bi = self.boundary_info
        nodesets = {
            (bi.nodeset_name(sid) or f"nodeset_{sid}"): np.asarray(
                bi.nodes_in_set(sid), dtype=np.int64
            )
            for sid in bi.nodeset_ids()
        }

        return Mesh(
            nodes=nodes,
            elements=elements,
            subdomains=subdomains,
            subdomain_names=dict(self._subdomain_names),
            parts=part_map,
            nodesets=nodesets,
        )


class Mesh:
    """Unified mesh container.

    Attributes
    ----------
    nodes
        Node table.
    elements
        Element table for the full mesh.
    subdomains
        Subdomain id per element row.
    subdomain_names
        Mapping ``subdomain id -> name``.
    parts
        Mapping ``name -> element indices`` selecting rows of ``elements``.
    nodesets
        Mapping ``name -> node ids``.
    """

    nodes: NodeArray
    elements: ElementArray
    subdomains: np.ndarray
    subdomain_names: dict[int, str]
    parts: dict[str, np.ndarray]
    nodesets: dict[str, np.ndarray]

    # -------------- construction --------------

    def __init__(
        self,
        nodes: NodeArray,
        elements: ElementArray,
        subdomains: np.ndarray | None = None,
        subdomain_names: dict[int, str] | None = None,
        parts: dict[str, Sequence[int] | np.ndarray] | None = None,
        nodesets: dict[str, Sequence[int] | np.ndarray] | None = None,
    ) -> None:
        self.nodes = nodes
        self.elements = elements
        self.subdomains = (
            np.zeros((len(elements),), dtype=np.int64)
            if subdomains is None
            else np.asarray(subdomains, dtype=np.int64)
        )
        if self.subdomains.shape[0] != len(elements):
            raise ValueError("subdomains and elements length mismatch")
        self.subdomain_names = {} if subdomain_names is None else dict(subdomain_names)
        self.parts = (
            {}
            if parts is None
            else {k: np.asarray(v, dtype=np.int64) for k, v in parts.items()}
        )
        self.nodesets = (
            {}
            if nodesets is None
            else {k: np.asarray(v, dtype=np.int64) for k, v in nodesets.items()}
        )

    def __repr__(self) -> str:
        return (
            f"Mesh(nodes={self.nnodes}, elems={self.nelems}, "
            f"parts={list(self.parts)}, nodesets={list(self.nodesets)})"
        )

    @classmethod
    def from_cdb(
        cls, path: str | Path, options: ReaderOptions | None = None
    ) -> Mesh:
        """Read an ANSYS ``.cdb`` file and return the frozen mesh.

        Raises
        ------
        interCDB.CDB.Exceptions.CDBError
            When the file cannot be read or is malformed.
        """
        from ..CDB.CDB import CDBReader

        return CDBReader(options=options).read(path).build()

    # -------------- simple queries --------------

    @property
    def nelems(self) -> int:
        """Return the number of elements in the mesh."""
        return len(self.elements)

    @property
    def nnodes(self) -> int:
        """Return the number of nodes in the mesh."""
        return len(self.nodes)

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """Return the axis-aligned bounding box as ``(min_xyz, max_xyz)``."""
        return self.nodes.xyz.min(0), self.nodes.xyz.max(0)

    # -------------- name-first views --------------

    def getDomain(self, name: str) -> ElementArray:
        """Return the elements of a named part.

        Raises
        ------
        KeyError
            If the part name does not exist.
        """
        return self.elements[self.parts[name]]

    def getNodeset(self, name: str) -> NodeArray:
        """Return the nodes of a named node set.

        Raises
        ------
        KeyError
            If the node set name does not exist.
        """
        return self.nodes.take(self.nodesets[name])
