"""Concrete graph entities and their structural equality."""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Set
from dataclasses import dataclass, field
from typing import Any

from stg.graph.interfaces import IDuplet, IEdge, INode, ITriplet


@dataclass
class Node(INode):
    """Node holding its type name and properties."""

    type_name: str
    props: dict[str, Any] = field(default_factory=dict)

    @property
    def node_type(self) -> str:
        return self.type_name

    @property
    def properties(self) -> Mapping[str, Any]:
        return self.props


@dataclass
class Edge(IEdge):
    """Edge holding its type name and properties."""

    type_name: str
    props: dict[str, Any] = field(default_factory=dict)

    @property
    def edge_type(self) -> str:
        return self.type_name

    @property
    def properties(self) -> Mapping[str, Any]:
        return self.props


@dataclass
class Triplet(ITriplet):
    """Main node, edge and subject node; any of them may be absent on insert."""

    main_node: INode | None
    subject_node: INode | None
    edge_entity: IEdge | None

    @property
    def main(self) -> INode | None:
        return self.main_node

    @property
    def edge(self) -> IEdge | None:
        return self.edge_entity

    @property
    def subject(self) -> INode | None:
        return self.subject_node


@dataclass
class Duplet(IDuplet):
    """An edge and one of the nodes it connects."""

    node_entity: INode
    edge_entity: IEdge

    @property
    def node(self) -> INode:
        return self.node_entity

    @property
    def edge(self) -> IEdge:
        return self.edge_entity


def freeze(value: Any) -> Hashable:
    """
    Turn a property value into a hashable key.

    Every level carries its runtime type, so values Python considers equal
    across types (``True``, ``1`` and ``1.0``; ``[1]`` and ``(1,)``) give
    different keys.
    """
    if isinstance(value, Mapping):
        return ("map", frozenset((freeze(k), freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return (type(value), tuple(freeze(v) for v in value))
    if isinstance(value, Set):
        return (type(value), frozenset(freeze(v) for v in value))
    return (type(value), value)


def node_key(node: INode) -> Hashable:
    """Content key of a node: equal nodes have equal keys."""
    return ("node", node.node_type, freeze(node.properties))


def edge_key(edge: IEdge) -> Hashable:
    """Content key of an edge: equal edges have equal keys."""
    return ("edge", edge.edge_type, freeze(edge.properties))


def is_equal_node(n1: INode, n2: INode) -> bool:
    return node_key(n1) == node_key(n2)


def is_equal_edge(e1: IEdge, e2: IEdge) -> bool:
    return edge_key(e1) == edge_key(e2)


def new_node(node_type: str, properties: Mapping[str, Any] | None = None) -> Node:
    return Node(node_type, dict(properties or {}))


def new_edge(edge_type: str, properties: Mapping[str, Any] | None = None) -> Edge:
    return Edge(edge_type, dict(properties or {}))


def new_triplet(main: INode | None, subject: INode | None, edge: IEdge | None) -> Triplet:
    """Triplet of a main node, its subject node and the edge between them."""
    return Triplet(main, subject, edge)


def new_duplet(node: INode, edge: IEdge) -> Duplet:
    return Duplet(node, edge)
