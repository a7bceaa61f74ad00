"""Interfaces of graph entities, graphs and validators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class INode(ABC):
    """Graph node which can return its type name and properties."""

    @property
    @abstractmethod
    def node_type(self) -> str:
        """Name of the node type."""
        ...

    @property
    @abstractmethod
    def properties(self) -> Mapping[str, Any]:
        """Property names mapped to their values."""
        ...


class IEdge(ABC):
    """Graph edge which can return its type name and properties."""

    @property
    @abstractmethod
    def edge_type(self) -> str:
        """Name of the edge type."""
        ...

    @property
    @abstractmethod
    def properties(self) -> Mapping[str, Any]:
        """Property names mapped to their values."""
        ...


class ITriplet(ABC):
    """One directed connection: main node, edge and subject node.

    The edge is ALWAYS directed from the main node to the subject node.
    """

    @property
    @abstractmethod
    def main(self) -> INode | None:
        ...

    @property
    @abstractmethod
    def edge(self) -> IEdge | None:
        ...

    @property
    @abstractmethod
    def subject(self) -> INode | None:
        ...


class IDuplet(ABC):
    """Half of a triplet: an edge and the node at one of its ends.

    Whether the node is the main or the subject node is left implicit.
    """

    @property
    @abstractmethod
    def node(self) -> INode:
        ...

    @property
    @abstractmethod
    def edge(self) -> IEdge:
        ...


class IGraph(ABC):
    """
    Nodes interconnected (or not) by directed edges.

    A graph assigns no identifiers and keeps no indexes, so it is not an
    in-memory database; it never holds two identical nodes, nor the same
    edge twice between one ordered pair of nodes.
    """

    @abstractmethod
    def get_nodes(self) -> list[INode]:
        """Return ALL unique nodes of the graph."""
        ...

    @abstractmethod
    def get_nodes_by_type(self, node_type: str) -> list[INode]:
        """Return all nodes of the given type."""
        ...

    @abstractmethod
    def get_node_children(self, node: INode) -> list[IDuplet]:
        """Return the outgoing edges of a node paired with their subject nodes."""
        ...

    @abstractmethod
    def get_triplets(self) -> list[ITriplet]:
        """Deconstruct the whole graph into triplets without mutating it."""
        ...

    @abstractmethod
    def get_triplets_by_node(self, node: INode) -> list[ITriplet]:
        """Return all triplets whose main node is ``node``."""
        ...

    @abstractmethod
    def get_triplets_by_type(
        self,
        main_type: str,
        subject_type: str | None = None,
        edge_type: str | None = None,
    ) -> list[ITriplet]:
        """
        Return triplets filtered by type names.

        Args:
            main_type: Main node type (required).
            subject_type: Subject node type (None = match any).
            edge_type: Edge type (None = match any).
        """
        ...

    @abstractmethod
    def add_node(self, node: INode) -> bool:
        """Insert a single node; return False if an identical one exists."""
        ...

    @abstractmethod
    def remove_node(self, node: INode) -> bool:
        """Remove a node together with every edge that references it."""
        ...

    @abstractmethod
    def add_triplet(self, triplet: ITriplet) -> bool:
        """Insert the entities of a triplet that are not in the graph yet."""
        ...

    @abstractmethod
    def remove_edge(self, triplet: ITriplet) -> bool:
        """Remove one edge lying between the exact main and subject nodes."""
        ...


class IValidator(ABC):
    """
    Interface of validation tools.

    ``validate_unknown`` is the "last chance" for values that implement none
    of the entity interfaces; implementations that don't want to support it
    may simply raise a ValidationError from it.
    """

    @abstractmethod
    def validate_node(self, node: INode) -> bool:
        ...

    @abstractmethod
    def validate_edge(self, edge: IEdge) -> bool:
        ...

    @abstractmethod
    def validate_triplet(self, triplet: ITriplet) -> bool:
        ...

    @abstractmethod
    def validate_duplet(self, duplet: IDuplet) -> bool:
        ...

    @abstractmethod
    def validate_graph(self, graph: IGraph) -> bool:
        ...

    @abstractmethod
    def validate_unknown(self, value: Any) -> Any:
        ...
