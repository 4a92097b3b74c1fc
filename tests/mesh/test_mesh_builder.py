from __future__ import annotations

import numpy as np
import pytest

from interCDB.CDB.Enums import ElemType
from interCDB.Mesh.Mesh import ElementArray, Mesh, MeshBuilder, NodeArray


def _two_tets() -> MeshBuilder:
    builder = MeshBuilder()
    for i, xyz in enumerate(
        [(0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1), (1, 1, 1)]
    ):
        builder.add_point(xyz, i)
    for eid, nodes, sid in ((0, [0, 1, 2, 3], 1), (1, [1, 2, 3, 4], 2)):
        elem = builder.add_element(ElemType.TET4, eid)
        elem.set_subdomain(sid)
        for slot, node in enumerate(nodes):
            elem.set_node(slot, node)
    builder.set_subdomain_name(1, "LEFT")
    builder.boundary_info.add_node_to_set(4, 1)
    builder.boundary_info.add_node_to_set(0, 1)
    return builder


def test_node_array_shape() -> None:
    assert len(NodeArray(np.empty((0,)))) == 0
    with pytest.raises(ValueError):
        NodeArray(np.zeros((3, 2)))


def test_element_array_selection() -> None:
    arr = ElementArray(
        conn=[[0, 1, 2, 3, -1], [0, 1, 2, 3, 4]],
        nper=[4, 5],
        etype=["tet4", "pyra5"],
    )
    np.testing.assert_array_equal(arr.nodes_of(0), [0, 1, 2, 3])
    np.testing.assert_array_equal(arr.unique_nodes(), [0, 1, 2, 3, 4])
    assert len(arr[1]) == 1
    assert arr[1].etype[0] == "pyra5"
    with pytest.raises(ValueError):
        ElementArray(conn=[[0]], nper=[1, 1], etype=["x"])


def test_points_must_be_dense() -> None:
    builder = MeshBuilder()
    builder.add_point((0.0, 0.0, 0.0), 0)
    with pytest.raises(ValueError, match="expected node id 1"):
        builder.add_point((1.0, 0.0, 0.0), 5)
    with pytest.raises(ValueError, match="3 coordinates"):
        builder.add_point((1.0, 0.0), 1)


def test_elements_must_be_dense() -> None:
    builder = MeshBuilder()
    with pytest.raises(ValueError, match="expected element id 0"):
        builder.add_element(ElemType.HEX8, 3)


def test_set_node_checks_slot_and_node() -> None:
    builder = MeshBuilder()
    builder.add_point((0.0, 0.0, 0.0), 0)
    elem = builder.add_element(ElemType.TET4, 0)
    assert elem.n_nodes == 4
    assert elem.nodes == [None, None, None, None]
    with pytest.raises(IndexError):
        elem.set_node(4, 0)
    with pytest.raises(KeyError):
        elem.set_node(0, 1)
    elem.set_node(0, 0)
    assert elem.nodes[0] == 0


def test_build_pads_connectivity_and_names_parts() -> None:
    mesh = _two_tets().build()

    assert isinstance(mesh, Mesh)
    assert mesh.nnodes == 5
    assert mesh.nelems == 2
    np.testing.assert_array_equal(mesh.elements.conn, [[0, 1, 2, 3], [1, 2, 3, 4]])
    np.testing.assert_array_equal(mesh.subdomains, [1, 2])
    assert mesh.subdomain_names == {1: "LEFT"}
    assert set(mesh.parts) == {"LEFT", "block_2"}
    np.testing.assert_array_equal(mesh.nodesets["nodeset_1"], [0, 4])

    lo, hi = mesh.bounds()
    np.testing.assert_allclose(lo, [0, 0, 0])
    np.testing.assert_allclose(hi, [1, 1, 1])


def test_build_mixed_shapes() -> None:
    builder = _two_tets()
    builder.add_point((2.0, 0.0, 0.0), 5)
    elem = builder.add_element(ElemType.PYRAMID5, 2)
    for slot, node in enumerate([0, 1, 4, 2, 5]):
        elem.set_node(slot, node)
    mesh = builder.build()

    assert mesh.elements.conn.shape == (3, 5)
    np.testing.assert_array_equal(mesh.elements.conn[0], [0, 1, 2, 3, -1])
    np.testing.assert_array_equal(mesh.elements.nper, [4, 4, 5])
    assert list(mesh.elements.etype) == ["tet4", "tet4", "pyra5"]
    # Elements without a subdomain land in subdomain 0.
    np.testing.assert_array_equal(mesh.parts["block_0"], [2])


def test_build_rejects_unset_slots() -> None:
    builder = _two_tets()
    builder.add_element(ElemType.TET4, 2)
    with pytest.raises(ValueError, match="element 2"):
        builder.build()


def test_build_empty() -> None:
    mesh = MeshBuilder().build()
    assert mesh.nnodes == 0
    assert mesh.nelems == 0
    assert mesh.parts == {}


def test_clear_drops_everything() -> None:
    builder = _two_tets()
    builder.boundary_info.set_name(1, "TOP")
    builder.clear()
    assert builder.n_nodes == 0
    assert builder.n_elem == 0
    assert builder.subdomain_ids() == []
    assert builder.subdomain_name(1) == ""
    assert builder.boundary_info.n_nodesets == 0


def test_boundary_info_names() -> None:
    builder = _two_tets()
    info = builder.boundary_info
    assert info.nodeset_name(1) == ""
    info.set_name(2, "EMPTY")
    assert info.nodeset_ids() == [1, 2]
    assert info.nodes_in_set(2) == []
    assert info.nodes_in_set(1) == [0, 4]


def test_name_first_views() -> None:
    builder = _two_tets()
    builder.boundary_info.set_name(1, "TIPS")
    mesh = builder.build()

    left = mesh.getDomain("LEFT")
    assert len(left) == 1
    np.testing.assert_array_equal(left.nodes_of(0), [0, 1, 2, 3])

    tips = mesh.getNodeset("TIPS")
    np.testing.assert_allclose(tips.xyz, [[0, 0, 0], [1, 1, 1]])

    with pytest.raises(KeyError):
        mesh.getDomain("missing")
    with pytest.raises(KeyError):
        mesh.getNodeset("missing")
