"""ANSYS ``.cdb`` mesh importer.

Overview
========
A ``.cdb`` file is a sequence of blocks. The reader pulls one line at a
time, classifies it, and hands the :class:`LineReader` to the matching block
handler. Each handler consumes what its block needs and returns with the
reader positioned on the first line it did not use. Lines outside the four
recognised blocks are skipped.

Blocks
------
- ``NBLOCK,6,SOLID``: one format line, then one node per line until a line
  does not look like a node record.
- ``ET,<n>,<code>``: sets the ANSYS element type used by later element blocks.
- ``TYPE,``: an ``EBLOCK`` line and a format line, element records until a
  ``-1`` token, then one line whose second comma field names the block.
- ``CMBLOCK,<name>,<kind>,<count>``: one format line, then node ids until a
  line does not look like a node-set record. There is no terminator, so the
  next block header (or the end of file) closes the set.

Element records
---------------
Eight attribute fields, the declared node count, one unused field, the ANSYS
element id, then the node ids. Connectivity wraps after eight ids onto a
second line. Degenerate shapes repeat node ids, so repeats are removed and
the number of distinct nodes picks the shape from the element registry.
When that number changes inside a block, the block is split into a new
subdomain because a subdomain holds one shape only.

Usage
=====
>>> mesh = CDBReader().read("model.cdb").build()
>>> mesh.parts.keys()
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TextIO

from loguru import logger

from ..Log import Log
from ..Mesh.Mesh import MeshBuilder
from .ElementTypes import ElementRegistry
from .Exceptions import (
    CDBStreamError,
    DanglingNodeReferenceError,
    MalformedRecordError,
    TruncatedFileError,
    UnknownElementTypeError,
)
from .LineReader import LineReader
from .options import ReaderOptions

NODE_BLOCK_KEYWORD = "NBLOCK,6,SOLID"
ELEMENT_TYPE_KEYWORD = "ET,"
ELEMENT_BLOCK_KEYWORD = "TYPE,"
NODE_SET_KEYWORD = "CMBLOCK,"

END_OF_ELEMENTS = "-1"
NODES_PER_LINE = 8
ELEMENT_HEADER_FIELDS = 8
NODE_SET_FIELDS_PER_LINE = 8

_FLOAT = r"[-+]?\d+\.\d+(?:E?[-+]\d+)?"
NODE_RECORD = re.compile(rf"\s*\d+\s+\d+\s+\d+\s+{_FLOAT}\s+{_FLOAT}\s+{_FLOAT}\s*\r?")
NODE_SET_RECORD = re.compile(r"\s*-?\d+(?:\s+-?\d+)*\s*\r?")


class BlockKind(Enum):
    """What a line starts."""

    NODES = "NBLOCK"
    ELEMENT_TYPE = "ET"
    ELEMENTS = "TYPE"
    NODE_SET = "CMBLOCK"
    DATA = "data"


def classify_line(line: str) -> BlockKind:
    """Return the block a line opens, or ``BlockKind.DATA``.

    Keywords are matched literally and case-sensitively. ``CMBLOCK`` may
    appear anywhere in the line, the others must start it.
    """
    if line.startswith(NODE_BLOCK_KEYWORD):
        return BlockKind.NODES
    if line.startswith(ELEMENT_TYPE_KEYWORD):
        return BlockKind.ELEMENT_TYPE
    if line.startswith(ELEMENT_BLOCK_KEYWORD):
        return BlockKind.ELEMENTS
    if NODE_SET_KEYWORD in line:
        return BlockKind.NODE_SET
    return BlockKind.DATA


def tokenize(line: str) -> list[str]:
    """Split a command line on commas, keeping empty fields."""
    return line.split(",")


@dataclass
class ParserState:
    """Counters and tables carried from block to block during one read.

    Attributes
    ----------
    ansys_type
        ANSYS element type code from the latest ``ET`` record.
    block_id
        Subdomain id given to the next elements.
    next_node_id
        Dense id for the next node.
    next_elem_id
        Dense id for the next element.
    nodeset_id
        Id for the next node set.
    id_map
        ANSYS node id -> dense node id.
    """

    ansys_type: int | None = None
    block_id: int = 1
    next_node_id: int = 0
    next_elem_id: int = 0
    nodeset_id: int = 1
    id_map: dict[int, int] = field(default_factory=dict)

    def translate(self, ansys_id: int, context: str) -> int:
        """Return the dense id of an ANSYS node id."""
        try:
            return self.id_map[ansys_id]
        except KeyError:
            raise DanglingNodeReferenceError(ansys_id, context) from None


_BARE_EXPONENT = re.compile(r"(?<=\d)([-+]\d+)$")


def parse_real(token: str) -> float:
    """Parse a Fortran real, including ``1.5-003`` with the ``E`` left out."""
    try:
        return float(token)
    except ValueError:
        return float(_BARE_EXPONENT.sub(r"E\1", token))


def _ints(fields: list[str], what: str, line_no: int) -> list[int]:
    try:
        return [int(f) for f in fields]
    except ValueError:
        raise MalformedRecordError(f"non-integer field in {what}", line_no) from None


# -------------- node block --------------


def read_node_block(reader: LineReader, state: ParserState, mesh: MeshBuilder) -> int:
    """Read the node records that follow an ``NBLOCK`` line.

    Returns the number of nodes added. The first line that is not a node
    record stays unread.
    """
    reader.skip(1, "NBLOCK format line")
    first = state.next_node_id
    while True:
        line = reader.peek()
        if line is None:
            raise TruncatedFileError("NBLOCK", reader.line_no)
        if not NODE_RECORD.fullmatch(line):
            break
        reader.next()
        t = line.split()
        ansys_id = int(t[0])
        try:
            xyz = (parse_real(t[3]), parse_real(t[4]), parse_real(t[5]))
        except ValueError:
            raise MalformedRecordError(
                f"bad coordinates for node {ansys_id}", reader.line_no
            ) from None
        if ansys_id in state.id_map:
            raise MalformedRecordError(f"node {ansys_id} defined twice", reader.line_no)

        mesh.add_point(xyz, state.next_node_id)
        state.id_map[ansys_id] = state.next_node_id
        state.next_node_id += 1

    count = state.next_node_id - first
    logger.debug("NBLOCK ended at line {}: {} nodes", reader.line_no, count)
    return count


# -------------- element type --------------


def read_element_type(line: str, state: ParserState, line_no: int | None = None) -> int:
    """Apply an ``ET,<n>,<code>`` record and return the new current code."""
    tokens = tokenize(line)
    if len(tokens) < 3:
        raise MalformedRecordError(f"ET record without element type: {line!r}", line_no)
    try:
        code = int(tokens[2].strip())
    except ValueError:
        raise MalformedRecordError(
            f"ET record has non-integer element type {tokens[2].strip()!r}", line_no
        ) from None
    state.ansys_type = code
    logger.debug("element type {} in effect", code)
    return code


# -------------- element block --------------


def _read_connectivity(reader: LineReader, line: str) -> tuple[int, list[int]]:
    """Parse one element record, reading the wrapped line when needed.

    Returns the ANSYS element id and the node ids with repeats removed.
    """
    head = ELEMENT_HEADER_FIELDS
    t = line.split()
    if len(t) < head + 3:
        raise MalformedRecordError("element record is too short", reader.line_no)
    vals = _ints(t, "element record", reader.line_no)
    n_declared = vals[head]
    elem_id = vals[head + 2]
    if n_declared <= 0:
        raise MalformedRecordError(
            f"element {elem_id} declares {n_declared} nodes", reader.line_no
        )

    on_first = min(n_declared, NODES_PER_LINE)
    nodes = vals[head + 3 : head + 3 + on_first]
    if n_declared > NODES_PER_LINE:
        rest = reader.require(f"connectivity of element {elem_id}").split()
        nodes += _ints(
            rest[: n_declared - NODES_PER_LINE], "element connectivity", reader.line_no
        )
    if len(nodes) != n_declared:
        raise MalformedRecordError(
            f"element {elem_id} declares {n_declared} nodes but lists {len(nodes)}",
            reader.line_no,
        )
    return elem_id, list(dict.fromkeys(nodes))


def read_element_block(
    reader: LineReader,
    state: ParserState,
    mesh: MeshBuilder,
    registry: ElementRegistry,
) -> list[tuple[int, str]]:
    """Read the element records and block name that follow a ``TYPE`` line.

    Returns the ``(subdomain id, shape name)`` pairs created by the block.
    """
    reader.skip(2, "EBLOCK header")
    start_line = reader.line_no
    blocks: list[tuple[int, str]] = []
    prev_nodes = -1

    while True:
        line = reader.require("EBLOCK")
        if END_OF_ELEMENTS in line.split():
            break

        elem_id, nodes = _read_connectivity(reader, line)
        n_nodes = len(nodes)
        if state.ansys_type is None:
            raise UnknownElementTypeError(None, reader.line_no)
        shape, shape_name, ordering = registry.resolve(state.ansys_type, n_nodes)

        if prev_nodes == -1:
            blocks.append((state.block_id, shape_name))
        elif prev_nodes != n_nodes:
            prev_block, prev_name = blocks[-1]
            state.block_id += 1
            blocks.append((state.block_id, shape_name))
            logger.warning(
                "element shape changes from {} to {} inside block {} at line {}; "
                "continuing as block {}",
                prev_name,
                shape_name,
                prev_block,
                reader.line_no,
                state.block_id,
            )

        elem = mesh.add_element(shape, state.next_elem_id)
        state.next_elem_id += 1
        elem.set_subdomain(state.block_id)
        context = f"element {elem_id}"
        for slot, ansys_slot in enumerate(ordering):
            elem.set_node(slot, state.translate(nodes[ansys_slot], context))
        prev_nodes = n_nodes

    name_line = reader.require("EBLOCK name")
    tokens = tokenize(name_line)
    if len(tokens) < 2:
        raise MalformedRecordError(
            f"element block name line has no name: {name_line!r}", reader.line_no
        )
    base = tokens[1].strip()
    if len(blocks) > 1:
        for block_id, shape_name in blocks:
            mesh.set_subdomain_name(block_id, f"{base}_{shape_name}")
    elif blocks:
        mesh.set_subdomain_name(blocks[0][0], base)

    logger.debug(
        "EBLOCK '{}' lines {}-{}: subdomains {}",
        base,
        start_line,
        reader.line_no,
        [b for b, _ in blocks],
    )
    state.block_id += 1
    return blocks


# -------------- node set block --------------


def expand_node_ranges(fields: list[int], members: list[int]) -> None:
    """Append ``fields`` to ``members``, expanding ``lo -hi`` ranges in place.

    A negative field closes an inclusive range that starts at the previous
    member, so ``1 2 4 -6`` gives ``1 2 4 6 5``. The bound itself is always
    a member, even when it does not lie above the previous one.
    """
    for value in fields:
        if value >= 0:
            members.append(value)
            continue
        if not members:
            raise ValueError(f"range end {value} has no start")
        lower, upper = members[-1], -value
        members.append(upper)
        members.extend(range(lower + 1, upper))


def read_node_set_block(
    header: str, reader: LineReader, state: ParserState, mesh: MeshBuilder
) -> int:
    """Read a ``CMBLOCK`` node set and register it under the next set id.

    Returns the id given to the set.
    """
    tokens = tokenize(header)
    if len(tokens) < 4:
        raise MalformedRecordError(f"CMBLOCK header is incomplete: {header!r}", reader.line_no)
    name = tokens[1].strip()
    try:
        declared = int(tokens[3].split("!")[0].strip())
    except ValueError:
        raise MalformedRecordError(
            f"CMBLOCK {name} has a non-integer count", reader.line_no
        ) from None

    reader.skip(1, f"CMBLOCK {name} format line")
    members: list[int] = []
    while True:
        line = reader.peek()
        if line is None or not NODE_SET_RECORD.fullmatch(line):
            break
        reader.next()
        fields = [int(f) for f in line.split()[:NODE_SET_FIELDS_PER_LINE]]
        try:
            expand_node_ranges(fields, members)
        except ValueError as exc:
            raise MalformedRecordError(f"CMBLOCK {name}: {exc}", reader.line_no) from None

    set_id = state.nodeset_id
    context = f"node set {name}"
    for ansys_id in sorted(set(members)):
        mesh.boundary_info.add_node_to_set(state.translate(ansys_id, context), set_id)
    mesh.boundary_info.set_name(set_id, name)
    state.nodeset_id += 1

    n_unique = len(set(members))
    if n_unique != declared:
        logger.debug("CMBLOCK {} declares {} entries, expands to {}", name, declared, n_unique)
    logger.debug("CMBLOCK {} -> node set {} with {} nodes", name, set_id, n_unique)
    return set_id


# -------------- reader --------------


class CDBReader:
    """Import ANSYS ``.cdb`` meshes into a :class:`MeshBuilder`.

    Typical use
    -----------
    >>> builder = CDBReader().read("model.cdb")
    >>> mesh = builder.build()

    Every read clears the target mesh and starts from a fresh
    :class:`ParserState`, so one reader can be reused for several files.
    """

    def __init__(
        self, mesh: MeshBuilder | None = None, options: ReaderOptions | None = None
    ) -> None:
        self.mesh = mesh if mesh is not None else MeshBuilder()
        self.options = options or ReaderOptions()
        self.registry = self.options.element_registry()
        self.state = ParserState()
        self._logger = Log().logger

    def __repr__(self) -> str:
        return f"CDBReader(mesh={self.mesh!r})"

    def read(self, path: str | Path) -> MeshBuilder:
        """Read the file at ``path`` into ``self.mesh`` and return it.

        Raises
        ------
        CDBStreamError
            If the file cannot be opened or read.
        CDBError
            For any malformed content; see :mod:`interCDB.CDB.Exceptions`.
        """
        path = Path(path)
        try:
            stream = open(path, "r", encoding=self.options.encoding)
        except OSError as exc:
            raise CDBStreamError(f"cannot open {path}: {exc}") from exc
        with stream:
            self._logger.info("Reading {}", path)
            return self.read_stream(stream)

    def read_stream(self, stream: TextIO) -> MeshBuilder:
        """Read an open text stream into ``self.mesh`` and return it."""
        mesh = self.mesh
        mesh.clear()
        state = self.state = ParserState()
        reader = LineReader(stream)

        while True:
            line = reader.next()
            if line is None:
                break
            kind = classify_line(line)
            if kind is BlockKind.NODES:
                read_node_block(reader, state, mesh)
            elif kind is BlockKind.ELEMENT_TYPE:
                read_element_type(line, state, reader.line_no)
            elif kind is BlockKind.ELEMENTS:
                read_element_block(reader, state, mesh, self.registry)
            elif kind is BlockKind.NODE_SET:
                read_node_set_block(line, reader, state, mesh)

        self._logger.info(
            "Read {} nodes, {} elements, {} subdomains, {} node sets",
            mesh.n_nodes,
            mesh.n_elem,
            len(mesh.subdomain_ids()),
            mesh.boundary_info.n_nodesets,
        )
        return mesh

    def write(self, path: str | Path) -> None:
        """Writing ``.cdb`` files is not supported; nothing is written."""
        self._logger.warning("CDB export is not implemented; {} not written", path)
