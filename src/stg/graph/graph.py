"""In-memory graph container."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator

from stg.graph.entities import Duplet, Triplet, edge_key, node_key
from stg.graph.interfaces import IDuplet, IEdge, IGraph, INode, ITriplet


class SimpleGraph(IGraph):
    """
    Arena-based graph of unique nodes.

    Nodes live in rows addressed by stable integer indices. A stored node is
    found by identity first, so one edited in place stays reachable; any
    other node is found through a content-key index, which is re-keyed
    whenever an edited row is met. Outgoing edges are kept per main row as
    ``subject row -> [edges]``. Removed rows are left empty so the indices
    of the remaining rows never change.
    """

    def __init__(self) -> None:
        self._rows: list[INode | None] = []
        self._index: dict[Hashable, int] = {}
        self._keys: dict[int, Hashable] = {}
        self._by_id: dict[int, int] = {}
        self._children: dict[int, dict[int, list[IEdge]]] = {}

    # ------------------------------------------------------------------ rows

    def _find(self, node: INode) -> int | None:
        row = self._by_id.get(id(node))
        if row is not None and self._rows[row] is node:
            self._rekey(row)
            return row

        key = node_key(node)
        row = self._index.get(key)
        if row is not None and self._rekey(row) != key:
            return None
        return row

    def _rekey(self, row: int) -> Hashable:
        """Move the row to its current content key; return that key."""
        key = node_key(self._rows[row])
        old = self._keys[row]
        if key != old:
            if self._index.get(old) == row:
                del self._index[old]
            self._index[key] = row
            self._keys[row] = key
        return key

    def _insert(self, node: INode) -> int:
        row = len(self._rows)
        self._rows.append(node)
        key = node_key(node)
        self._index[key] = row
        self._keys[row] = key
        self._by_id[id(node)] = row
        self._children[row] = {}
        return row

    def _live_rows(self) -> Iterator[tuple[int, INode]]:
        for row, node in enumerate(self._rows):
            if node is not None:
                yield row, node

    def _edge_position(self, main: int, subject: int, edge: IEdge) -> int | None:
        key = edge_key(edge)
        for i, candidate in enumerate(self._children[main].get(subject, [])):
            if edge_key(candidate) == key:
                return i
        return None

    # ---------------------------------------------------------- introspection

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, INode) and self._find(node) is not None

    def get_nodes(self) -> list[INode]:
        return [node for _, node in self._live_rows()]

    def get_nodes_by_type(self, node_type: str) -> list[INode]:
        return [node for _, node in self._live_rows() if node.node_type == node_type]

    def get_node_children(self, node: INode) -> list[IDuplet]:
        row = self._find(node)
        if row is None:
            return []
        return [
            Duplet(self._rows[subject], edge)
            for subject, edges in self._children[row].items()
            for edge in edges
        ]

    def get_triplets(self) -> list[ITriplet]:
        return list(self._triplets())

    def get_triplets_by_node(self, node: INode) -> list[ITriplet]:
        row = self._find(node)
        if row is None:
            return []
        return list(self._triplets_of(row))

    def get_triplets_by_type(
        self,
        main_type: str,
        subject_type: str | None = None,
        edge_type: str | None = None,
    ) -> list[ITriplet]:
        return list(self._triplets(main_type, subject_type, edge_type))

    def _triplets(
        self,
        main_type: str | None = None,
        subject_type: str | None = None,
        edge_type: str | None = None,
    ) -> Iterator[ITriplet]:
        for row, main in self._live_rows():
            if main_type and main.node_type != main_type:
                continue
            for triplet in self._triplets_of(row):
                if subject_type and triplet.subject.node_type != subject_type:
                    continue
                if edge_type and triplet.edge.edge_type != edge_type:
                    continue
                yield triplet

    def _triplets_of(self, row: int) -> Iterator[ITriplet]:
        main = self._rows[row]
        for subject, edges in self._children[row].items():
            for edge in edges:
                yield Triplet(main, self._rows[subject], edge)

    # --------------------------------------------------------------- mutation

    def add_node(self, node: INode) -> bool:
        if self._find(node) is not None:
            return False
        self._insert(node)
        return True

    def remove_node(self, node: INode) -> bool:
        row = self._find(node)
        if row is None:
            return False
        for children in self._children.values():
            children.pop(row, None)
        del self._children[row]
        key = self._keys.pop(row)
        if self._index.get(key) == row:
            del self._index[key]
        del self._by_id[id(self._rows[row])]
        self._rows[row] = None
        return True

    def add_triplet(self, triplet: ITriplet) -> bool:
        """
        Insert the missing entities of a triplet.

        Semantics for partial triplets:
            - the edge already connects main and subject: nothing is inserted
            - no subject and no edge: the main node is inserted alone
            - no main and no edge: the subject node is inserted alone
            - no edge: both nodes are inserted unconnected
        """
        main_row = self._find(triplet.main) if triplet.main is not None else None
        subject_row = (
            self._find(triplet.subject) if triplet.subject is not None else None
        )
        if (
            main_row is not None
            and subject_row is not None
            and triplet.edge is not None
            and self._edge_position(main_row, subject_row, triplet.edge) is not None
        ):
            return False

        inserted = False
        if main_row is None and triplet.main is not None:
            main_row = self._insert(triplet.main)
            inserted = True
        if subject_row is None and triplet.subject is not None:
            # the subject may be the main node just inserted (self-loop)
            subject_row = self._find(triplet.subject)
            if subject_row is None:
                subject_row = self._insert(triplet.subject)
            inserted = True
        if main_row is not None and subject_row is not None and triplet.edge is not None:
            self._children[main_row].setdefault(subject_row, []).append(triplet.edge)
            inserted = True
        return inserted

    def remove_edge(self, triplet: ITriplet) -> bool:
        if triplet.main is None or triplet.subject is None or triplet.edge is None:
            return False
        main_row, subject_row = self._find(triplet.main), self._find(triplet.subject)
        if main_row is None or subject_row is None:
            return False
        pos = self._edge_position(main_row, subject_row, triplet.edge)
        if pos is None:
            return False
        edges = self._children[main_row][subject_row]
        del edges[pos]
        if not edges:
            del self._children[main_row][subject_row]
        return True

    # ------------------------------------------------------------------ debug

    def dump(self) -> str:
        """Render the adjacency of the graph as text; for debugging."""
        lines: list[str] = []
        for row, main in self._live_rows():
            lines.append(f"({row}) ({main.node_type!r}) <<{dict(main.properties)}>>")
            for subject, edges in self._children[row].items():
                lines.append(f" '--({subject})")
                for edge in edges:
                    lines.append(f"     '--[{edge.edge_type!r}] <<{dict(edge.properties)}>>")
        return "\n".join(lines)


def new_graph(
    nodes: Iterable[INode] | None = None, *triplets: ITriplet
) -> SimpleGraph:
    """
    Build a graph from standalone nodes and (preferably) triplets.

    Identical nodes collapse into one; triplets sharing a main node are
    squashed onto that single node, and duplicate edges are omitted.
    """
    graph = SimpleGraph()
    for node in nodes or ():
        graph.add_node(node)
    for triplet in triplets:
        graph.add_triplet(triplet)
    return graph
