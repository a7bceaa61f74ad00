"""The resolved template and its validator methods."""

from __future__ import annotations

from collections import Counter
from typing import Any

from stg.common.exceptions import (
    AboveMaximumError,
    BelowMinimumError,
    UndeclaredConnectionError,
    UnknownTypeError,
    ValidationError,
)
from stg.graph.interfaces import IDuplet, IEdge, IGraph, INode, ITriplet, IValidator
from stg.template.evaluation import evaluate_entity
from stg.template.structural import StructuralMatch, validate_unknown
from stg.template.types import TemplateConnection, TemplateEdge, TemplateNode

# main node -> subject node -> edge -> connection
ConnectionTable = dict[str, dict[str, dict[str, TemplateConnection]]]


class Template(IValidator):
    """
    Resolved template: node and edge types and the flat connection table.

    Labels are already squashed into their nodes, so validation never looks
    at them. A template is read-only once built and may be shared between
    threads validating concurrently.

    Every ``validate_*`` method returns True on success and raises a
    ValidationError describing the first failure otherwise.
    """

    def __init__(
        self,
        nodes: dict[str, TemplateNode] | None = None,
        edges: dict[str, TemplateEdge] | None = None,
        connections: ConnectionTable | None = None,
    ) -> None:
        self.nodes: dict[str, TemplateNode] = nodes or {}
        self.edges: dict[str, TemplateEdge] = edges or {}
        self.connections: ConnectionTable = connections or {}

    def __repr__(self) -> str:
        return (
            f"Template(nodes={sorted(self.nodes)}, edges={sorted(self.edges)}, "
            f"connections={len(list(self.iter_connections()))})"
        )

    def connection(
        self, main: str, subject: str, edge: str
    ) -> TemplateConnection | None:
        """Return the connection rule for a triple of type names, if any."""
        return self.connections.get(main, {}).get(subject, {}).get(edge)

    def iter_connections(self):
        """Yield every connection rule of the template."""
        for subjects in self.connections.values():
            for edges in subjects.values():
                yield from edges.values()

    # ------------------------------------------------------------ entities

    def validate_node(self, node: INode) -> bool:
        definition = self.nodes.get(node.node_type)
        if definition is None:
            raise UnknownTypeError("node", node.node_type)
        try:
            evaluate_entity(definition, node.properties)
        except ValidationError as e:
            raise e.with_context(f"\"{node.node_type}\"-node")
        return True

    def validate_edge(self, edge: IEdge) -> bool:
        definition = self.edges.get(edge.edge_type)
        if definition is None:
            raise UnknownTypeError("edge", edge.edge_type)
        try:
            evaluate_entity(definition, edge.properties)
        except ValidationError as e:
            raise e.with_context(f"\"{edge.edge_type}\"-edge")
        return True

    # ---------------------------------------------------------- relations

    def validate_triplet(self, triplet: ITriplet) -> bool:
        main, subject, edge = triplet.main, triplet.subject, triplet.edge
        if self.connection(main.node_type, subject.node_type, edge.edge_type) is None:
            raise UndeclaredConnectionError(
                main.node_type, subject.node_type, edge.edge_type
            )
        for check, entity, context in (
            (self.validate_node, main, "Main node of triplet"),
            (self.validate_node, subject, "Subject node of triplet"),
            (self.validate_edge, edge, "Edge of triplet"),
        ):
            try:
                check(entity)
            except ValidationError as e:
                raise e.with_context(context)
        return True

    def validate_duplet(self, duplet: IDuplet) -> bool:
        """
        Validate a node and an edge whose other end is implicit.

        The duplet passes the connection check when ANY rule uses the node
        type with the edge type, whether the node is its main or its subject.
        """
        node_type, edge_type = duplet.node.node_type, duplet.edge.edge_type
        if not any(
            c.edge.name == edge_type
            and node_type in (c.main.name, c.subject.name)
            for c in self.iter_connections()
        ):
            raise ValidationError(
                f"there is no connection in template with \"{node_type}\" node "
                f"and \"{edge_type}\" edge"
            )
        try:
            self.validate_node(duplet.node)
        except ValidationError as e:
            raise e.with_context("Node of duplet")
        try:
            self.validate_edge(duplet.edge)
        except ValidationError as e:
            raise e.with_context("Edge of duplet")
        return True

    def validate_graph(self, graph: IGraph) -> bool:
        """
        Validate every node, edge and connection count of a graph.

        For each main node, outgoing edges are tallied per (subject type,
        edge type) and compared against the matching connection rules. Rules
        of the main node type that no outgoing edge uses are checked against
        a count of zero.
        """
        for main in graph.get_nodes():
            self.validate_node(main)

            counts: Counter[tuple[str, str]] = Counter()
            for duplet in graph.get_node_children(main):
                self.validate_edge(duplet.edge)
                self.validate_node(duplet.node)
                counts[(duplet.node.node_type, duplet.edge.edge_type)] += 1

            checked: set[tuple[str, str]] = set()
            for triplet in graph.get_triplets_by_node(main):
                key = (triplet.subject.node_type, triplet.edge.edge_type)
                if key in checked:
                    continue
                checked.add(key)
                rule = self.connection(main.node_type, *key)
                if rule is None:
                    raise UndeclaredConnectionError(main.node_type, *key)
                self._check_count(rule, counts[key])

            for subjects in self.connections.get(main.node_type, {}).values():
                for rule in subjects.values():
                    if (rule.subject.name, rule.edge.name) not in checked:
                        self._check_count(rule, 0)
        return True

    @staticmethod
    def _check_count(rule: TemplateConnection, count: int) -> None:
        if count < rule.min:
            raise BelowMinimumError(
                rule.main.name, rule.subject.name, rule.edge.name, count, rule.min
            )
        if not rule.allows(count):
            raise AboveMaximumError(
                rule.main.name, rule.subject.name, rule.edge.name, count, rule.max
            )

    # ---------------------------------------------------------- structural

    def validate_unknown(self, value: Any) -> StructuralMatch:
        """Validate a mapping or record as node and/or edge by its shape."""
        return validate_unknown(self.nodes, self.edges, value)
