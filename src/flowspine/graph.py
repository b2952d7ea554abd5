"""Graph model — immutable flow nodes and edges plus their networkx projection.

Nodes and edges are plain frozen records tagged with an enumerated kind.
Anything presentation-specific (icons, colors, shapes) is looked up by kind
elsewhere and never stored on the records.

``FlowGraph`` validates a node/edge snapshot against the producer contract
(unique node and edge ids, every endpoint present) and exposes it as a
``networkx.DiGraph`` for the layout phases.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

import networkx as nx

from flowspine.errors import DuplicateEdgeError, DuplicateNodeError, MalformedEdgeError

# ─── Enumerations ─────────────────────────────────────────────────────────────


class NodeKind(str, Enum):
    """Semantic type of a flow step."""

    START = "start"
    END = "end"
    DECISION = "decision"
    ACTION = "action"
    QUERY = "query"
    MUTATION = "mutation"
    LOOP = "loop"
    SUBFLOW = "subflow"
    ERROR = "error"

    @classmethod
    def parse(cls, value: str) -> NodeKind:
        """Resolve a kind name, accepting the oracle's legacy spellings.

        Raises ValueError for names that are neither a kind nor an alias.
        """
        key = value.strip().lower()
        return cls(_KIND_ALIASES.get(key, key))


_KIND_ALIASES: dict[str, str] = {
    "soql": NodeKind.QUERY.value,
    "dml": NodeKind.MUTATION.value,
}


class Direction(str, Enum):
    """Flow direction of the drawing."""

    TB = "TB"  # top-to-bottom
    LR = "LR"  # left-to-right


class BranchKind(str, Enum):
    """What an edge label says about the branch it sits on."""

    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"
    PLAIN = "plain"


NEGATIVE_TOKENS: tuple[str, ...] = ("false", "no")
AFFIRMATIVE_TOKENS: tuple[str, ...] = ("true", "yes")


def classify_branch(label: str | None) -> BranchKind:
    """Classify an edge label by case-insensitive substring match.

    Negative tokens win when both kinds appear.
    """
    text = (label or "").lower()
    if any(token in text for token in NEGATIVE_TOKENS):
        return BranchKind.NEGATIVE
    if any(token in text for token in AFFIRMATIVE_TOKENS):
        return BranchKind.AFFIRMATIVE
    return BranchKind.PLAIN


# ─── Records ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Node:
    """A single process step."""

    id: str
    kind: NodeKind
    label: str = ""
    detail: str | None = None
    source_line: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind == NodeKind.END


@dataclass(frozen=True)
class Edge:
    """A control-flow transition. ``source == target`` is a loop-back."""

    id: str
    source: str
    target: str
    label: str | None = None
    animated: bool = False

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    @property
    def branch(self) -> BranchKind:
        return classify_branch(self.label)


@dataclass(frozen=True)
class Position:
    """Top-left draw coordinate in layout space."""

    x: float
    y: float


# ─── Validated graph ──────────────────────────────────────────────────────────


@dataclass
class FlowGraph:
    """A validated node/edge snapshot and its directed-graph projection.

    Attributes:
        nodes: Input nodes, in input order.
        edges: Input edges, in input order.
        digraph: One graph node per flow node (attribute ``data`` holds the
            ``Node``). Parallel flow edges between the same ordered pair share
            one graph edge whose ``edges`` attribute lists them all. Self-loops
            are kept.
    """

    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    digraph: nx.DiGraph

    @classmethod
    def build(cls, nodes: Iterable[Node], edges: Iterable[Edge]) -> FlowGraph:
        """Validate the snapshot and build the graph.

        Raises:
            DuplicateNodeError: two nodes share an id.
            DuplicateEdgeError: two edges share an id.
            MalformedEdgeError: an edge endpoint is not a known node id.
        """
        node_list = tuple(nodes)
        edge_list = tuple(edges)

        digraph: nx.DiGraph = nx.DiGraph()
        for node in node_list:
            if node.id in digraph:
                raise DuplicateNodeError(f"duplicate node id {node.id!r}", {"node_id": node.id})
            digraph.add_node(node.id, data=node)

        seen_edges: set[str] = set()
        for edge in edge_list:
            if edge.id in seen_edges:
                raise DuplicateEdgeError(f"duplicate edge id {edge.id!r}", {"edge_id": edge.id})
            seen_edges.add(edge.id)

            missing = [end for end in (edge.source, edge.target) if end not in digraph]
            if missing:
                raise MalformedEdgeError(
                    f"edge {edge.id!r} references unknown node(s): {', '.join(missing)}",
                    {"edge_id": edge.id, "source": edge.source, "target": edge.target, "missing": missing},
                )

            if digraph.has_edge(edge.source, edge.target):
                digraph.edges[edge.source, edge.target]["edges"].append(edge)
            else:
                digraph.add_edge(edge.source, edge.target, edges=[edge])

        return cls(nodes=node_list, edges=edge_list, digraph=digraph)

    def node(self, node_id: str) -> Node:
        return self.digraph.nodes[node_id]["data"]

    @property
    def terminals(self) -> list[Node]:
        """Terminal (``end``) nodes in input order."""
        return [n for n in self.nodes if n.is_terminal]
