"""Mesh sink and container."""

from .Mesh import BoundaryInfo, Elem, ElementArray, Mesh, MeshBuilder, NodeArray

__all__ = ["BoundaryInfo", "Elem", "ElementArray", "Mesh", "MeshBuilder", "NodeArray"]
