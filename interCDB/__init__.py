"""ANSYS ``.cdb`` mesh import."""

from .Mesh.Mesh import ElementArray, Mesh, MeshBuilder, NodeArray
from .CDB.CDB import CDBReader

__all__ = [
    "CDBReader",
    "ElementArray",
    "Mesh",
    "MeshBuilder",
    "NodeArray",
]
