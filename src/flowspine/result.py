"""Layout output records."""

from __future__ import annotations

from dataclasses import dataclass, replace

from flowspine.graph import Direction, Edge, Node, NodeKind, Position


@dataclass(frozen=True)
class PositionedNode:
    """An input node with its final top-left draw coordinate.

    ``width``/``height`` are the node's visual box, ``rank`` the layer the
    solver put it on.
    """

    node: Node
    x: float
    y: float
    width: float
    height: float
    rank: int

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def kind(self) -> NodeKind:
        return self.node.kind

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    def moved(self, *, x: float | None = None, y: float | None = None) -> PositionedNode:
        return replace(self, x=self.x if x is None else x, y=self.y if y is None else y)

    def overlaps(self, other: PositionedNode) -> bool:
        """True when the two visual boxes share interior area."""
        return self.x < other.right and other.x < self.right and self.y < other.bottom and other.y < self.bottom


@dataclass(frozen=True)
class LayoutResult:
    """Output of one layout pass.

    Attributes:
        nodes: One positioned node per input node, in input order.
        edges: The input edges, unchanged.
        edge_weights: edge id → straightness weight used by the solver.
        direction: Flow direction the layout was computed for.
        reversed_edges: Ids of the edges that run against the flow (loop-backs),
            in input order. Renderers route them as returning edges.
    """

    nodes: tuple[PositionedNode, ...]
    edges: tuple[Edge, ...]
    edge_weights: dict[str, int]
    direction: Direction
    reversed_edges: tuple[str, ...] = ()

    def positions(self) -> dict[str, Position]:
        """node id → top-left position."""
        return {p.id: p.position for p in self.nodes}

    def get(self, node_id: str) -> PositionedNode:
        for p in self.nodes:
            if p.id == node_id:
                return p
        raise KeyError(node_id)
