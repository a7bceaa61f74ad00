"""Graph entities, the graph container and their interfaces."""

from stg.graph.entities import Duplet, Edge, Node, Triplet
from stg.graph.graph import SimpleGraph
from stg.graph.interfaces import IDuplet, IEdge, IGraph, INode, ITriplet, IValidator

__all__ = [
    "Node",
    "Edge",
    "Triplet",
    "Duplet",
    "SimpleGraph",
    "INode",
    "IEdge",
    "ITriplet",
    "IDuplet",
    "IGraph",
    "IValidator",
]
