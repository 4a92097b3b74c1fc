from __future__ import annotations

import dataclasses

import pytest

from interCDB.CDB.ElementTypes import (
    ELEMENT_REGISTRY,
    ElementRegistry,
    build_element_registry,
    element_definition,
)
from interCDB.CDB.Enums import ElemType, nodesPerElementClass
from interCDB.CDB.Exceptions import UnknownElementTypeError, UnresolvedArityError


def test_registry_codes() -> None:
    assert ELEMENT_REGISTRY.codes() == (185, 186, 187, 226)
    assert 226 in ELEMENT_REGISTRY
    assert 181 not in ELEMENT_REGISTRY


@pytest.mark.parametrize("code", ELEMENT_REGISTRY.codes())
def test_definition_tables_share_keys_and_match_shapes(code: int) -> None:
    definition = ELEMENT_REGISTRY.lookup(code)
    keys = set(definition.shape)
    assert keys == set(definition.node_ordering) == set(definition.shape_name)
    for n in keys:
        ordering = definition.node_ordering[n]
        assert sorted(ordering) == list(range(n))
        assert nodesPerElementClass[definition.shape[n]] == n


def test_solid226_candidates() -> None:
    definition = ELEMENT_REGISTRY.lookup(226)
    assert definition.dimension == 3
    assert definition.arities() == (10, 13, 15, 20)
    assert definition.shape_name[13] == "PYR13"
    assert definition.node_ordering[10] == (2, 0, 1, 3, 6, 4, 5, 9, 7, 8)


@pytest.mark.parametrize(
    "n_nodes, shape, name",
    [
        (10, ElemType.TET10, "TET10"),
        (13, ElemType.PYRAMID13, "PYR13"),
        (15, ElemType.PRISM15, "PRISM15"),
        (20, ElemType.HEX20, "HEX20"),
    ],
)
def test_resolve_picks_candidate_by_unique_node_count(
    n_nodes: int, shape: ElemType, name: str
) -> None:
    resolved = ELEMENT_REGISTRY.resolve(226, n_nodes)
    assert resolved.shape is shape
    assert resolved.shape_name == name
    assert len(resolved.node_ordering) == n_nodes


def test_linear_solid_uses_corner_prefix_of_quadratic_ordering() -> None:
    linear = ELEMENT_REGISTRY.lookup(185)
    quadratic = ELEMENT_REGISTRY.lookup(186)
    pairs = {8: 20, 4: 10, 6: 15, 5: 13}
    for n_linear, n_quadratic in pairs.items():
        assert linear.node_ordering[n_linear] == quadratic.node_ordering[n_quadratic][:n_linear]


def test_lookup_unknown_code_raises() -> None:
    with pytest.raises(UnknownElementTypeError, match="999"):
        ELEMENT_REGISTRY.lookup(999)
    with pytest.raises(UnknownElementTypeError, match="before any ET"):
        ELEMENT_REGISTRY.resolve(None, 8)


def test_resolve_unknown_arity_raises() -> None:
    with pytest.raises(UnresolvedArityError) as info:
        ELEMENT_REGISTRY.resolve(187, 4)
    assert info.value.code == 187
    assert info.value.n_nodes == 4
    assert "known: 10" in str(info.value)


def test_registry_is_read_only() -> None:
    with pytest.raises(TypeError):
        ELEMENT_REGISTRY.definitions[999] = ELEMENT_REGISTRY.lookup(185)  # type: ignore[index]
    definition = ELEMENT_REGISTRY.lookup(185)
    with pytest.raises(TypeError):
        definition.shape[3] = ElemType.TET4  # type: ignore[index]
    with pytest.raises(dataclasses.FrozenInstanceError):
        definition.dimension = 2  # type: ignore[misc]


def test_build_element_registry_matches_module_table() -> None:
    fresh = build_element_registry()
    assert isinstance(fresh, ElementRegistry)
    assert fresh.codes() == ELEMENT_REGISTRY.codes()
    assert fresh.resolve(185, 6) == ELEMENT_REGISTRY.resolve(185, 6)


def test_element_definition_rejects_bad_tables() -> None:
    with pytest.raises(ValueError, match="permutation"):
        element_definition(1, 3, [((0, 1, 2, 2), ElemType.TET4, "TET4")])
    with pytest.raises(ValueError, match="needs 8 nodes"):
        element_definition(1, 3, [((0, 1, 2, 3), ElemType.HEX8, "HEX8")])
    with pytest.raises(ValueError, match="share 4"):
        element_definition(
            1,
            3,
            [
                ((0, 1, 2, 3), ElemType.TET4, "TET4"),
                ((3, 2, 1, 0), ElemType.TET4, "TET4B"),
            ],
        )
    with pytest.raises(ValueError, match="2D"):
        element_definition(1, 2, [((0, 1, 2, 3), ElemType.TET4, "TET4")])
