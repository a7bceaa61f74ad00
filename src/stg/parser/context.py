"""Shared state of a template build."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from stg.common.exceptions import TemplateException, TemplateParseError
from stg.template.template import Template
from stg.template.types import (
    TemplateConnection,
    TemplateEdge,
    TemplateNode,
    TemplateProperty,
)


def location(*parts: str) -> str:
    """Format a nesting path, e.g. ``template | nodes | Person | labels | 1``."""
    return " | ".join(("template",) + parts)


@dataclass
class Label:
    """Builder-only label: properties shared by the nodes wearing it."""

    name: str
    properties: dict[str, TemplateProperty] = field(default_factory=dict)
    nodes: list[str] = field(default_factory=list)


@dataclass
class LabelConnection:
    """Connection between two labels, expanded onto their nodes later."""

    main: str
    edge: TemplateEdge
    subject: str
    min: int
    max: int


class BuildContext:
    """
    Entities, connections and errors collected while building a template.

    Build stages run their entries on worker threads, so every accessor
    takes the same lock; getters return snapshots that are safe to iterate
    while other workers keep writing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._errors: list[TemplateParseError] = []
        self._edges: dict[str, TemplateEdge] = {}
        self._nodes: dict[str, TemplateNode] = {}
        self._labels: dict[str, Label] = {}
        self._node_labels: dict[str, list[str]] = {}
        # main -> subject -> edge
        self._node_conns: dict[str, dict[str, dict[str, TemplateConnection]]] = {}
        self._label_conns: dict[str, dict[str, dict[str, LabelConnection]]] = {}

    # ---------------------------------------------------------------- errors

    def append_error(self, loc: str, msg: str) -> None:
        with self._lock:
            self._errors.append(TemplateParseError(loc, msg))

    @property
    def errors(self) -> list[TemplateParseError]:
        with self._lock:
            return list(self._errors)

    def build_error(self) -> TemplateException | None:
        """Return every collected error as one exception, or None."""
        errors = self.errors
        return TemplateException(errors) if errors else None

    # -------------------------------------------------------------- entities

    def set_edge(self, edge: TemplateEdge) -> None:
        with self._lock:
            self._edges[edge.name] = edge

    def edge(self, name: str) -> TemplateEdge | None:
        with self._lock:
            return self._edges.get(name)

    def set_node(self, node: TemplateNode) -> None:
        with self._lock:
            self._nodes[node.name] = node
            self._node_labels.setdefault(node.name, [])

    def node(self, name: str) -> TemplateNode | None:
        with self._lock:
            return self._nodes.get(name)

    def set_label(self, label: Label) -> None:
        with self._lock:
            self._labels[label.name] = label

    def label(self, name: str) -> Label | None:
        with self._lock:
            return self._labels.get(name)

    def set_missing_property(self, node: str, prop: TemplateProperty) -> bool:
        """Set a node property unless the node already defines it."""
        with self._lock:
            props = self._nodes[node].properties
            if prop.key in props:
                return False
            props[prop.key] = prop
            return True

    # ---------------------------------------------------------------- labels

    def attach_label(self, node: str, label: str) -> None:
        """Record that ``node`` wears ``label``, in both directions."""
        with self._lock:
            self._node_labels.setdefault(node, []).append(label)
            self._labels[label].nodes.append(node)

    def node_labels(self, node: str) -> list[str]:
        with self._lock:
            return list(self._node_labels.get(node, []))

    def label_nodes(self, label: str) -> list[TemplateNode]:
        with self._lock:
            found = self._labels.get(label)
            if found is None:
                return []
            return [self._nodes[n] for n in found.nodes]

    # ----------------------------------------------------------- connections

    def set_label_connection(self, conn: LabelConnection) -> None:
        with self._lock:
            self._label_conns.setdefault(conn.main, {}).setdefault(conn.subject, {})[
                conn.edge.name
            ] = conn

    def label_connection(
        self, main: str, subject: str, edge: str
    ) -> LabelConnection | None:
        with self._lock:
            return self._label_conns.get(main, {}).get(subject, {}).get(edge)

    def label_connections(self, main: str) -> list[LabelConnection]:
        with self._lock:
            return [
                conn
                for edges in self._label_conns.get(main, {}).values()
                for conn in edges.values()
            ]

    def set_node_connection(self, conn: TemplateConnection) -> None:
        with self._lock:
            self._node_conns.setdefault(conn.main.name, {}).setdefault(
                conn.subject.name, {}
            )[conn.edge.name] = conn

    def set_missing_node_connection(self, conn: TemplateConnection) -> bool:
        """Set a node connection unless one exists for the same triple."""
        with self._lock:
            edges = self._node_conns.setdefault(conn.main.name, {}).setdefault(
                conn.subject.name, {}
            )
            if conn.edge.name in edges:
                return False
            edges[conn.edge.name] = conn
            return True

    def node_connection(
        self, main: str, subject: str, edge: str
    ) -> TemplateConnection | None:
        with self._lock:
            return self._node_conns.get(main, {}).get(subject, {}).get(edge)

    # ----------------------------------------------------------------- result

    def counts(self) -> dict[str, int]:
        """Sizes of the collected sections; used for build logging."""
        with self._lock:
            return {
                "edges": len(self._edges),
                "labels": len(self._labels),
                "nodes": len(self._nodes),
                "connections": sum(
                    len(edges)
                    for subjects in self._node_conns.values()
                    for edges in subjects.values()
                ),
            }

    def build_template(self) -> Template:
        with self._lock:
            return Template(
                nodes=dict(self._nodes),
                edges=dict(self._edges),
                connections={
                    main: {subj: dict(edges) for subj, edges in subjects.items()}
                    for main, subjects in self._node_conns.items()
                },
            )

