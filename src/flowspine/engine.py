"""Layout engine entry point.

``layout_flow`` is a pure function of its arguments: it validates the
snapshot, sizes every node, solves ranks and centers, converts centers to
top-left coordinates with the visual boxes and finally pushes terminal nodes
to the end of the flow.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from flowspine.config import DEFAULT_CONFIG, LayoutConfig
from flowspine.graph import Direction, Edge, FlowGraph, Node
from flowspine.layout import solve
from flowspine.result import LayoutResult, PositionedNode
from flowspine.sizing import layout_box, visual_box
from flowspine.terminal import correct_terminals

logger = logging.getLogger(__name__)


def layout_flow(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    direction: Direction | str = Direction.TB,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """Lay out a flow graph.

    Args:
        nodes: Flow nodes; ids must be unique.
        edges: Flow edges; every endpoint must be one of ``nodes``.
        direction: ``"TB"`` (top-to-bottom) or ``"LR"`` (left-to-right).
        config: Spacing and weighting overrides.

    Returns:
        A ``LayoutResult`` with one positioned node per input node, in input
        order, and the input edges unchanged.

    Raises:
        MalformedEdgeError: an edge references a missing node.
        DuplicateNodeError / DuplicateEdgeError: ids are not unique.
        ValueError: unknown direction.
    """
    direction = Direction(direction)
    config = config or DEFAULT_CONFIG

    fg = FlowGraph.build(nodes, edges)
    boxes = {node.id: layout_box(node.kind) for node in fg.nodes}
    solved = solve(fg, boxes, direction, config)

    placed: list[PositionedNode] = []
    for node in fg.nodes:
        cx, cy = solved.centers[node.id]
        vb = visual_box(node.kind)
        placed.append(
            PositionedNode(
                node=node,
                x=cx - vb.width / 2,
                y=cy - vb.height / 2,
                width=vb.width,
                height=vb.height,
                rank=solved.ranks[node.id],
            )
        )

    placed = correct_terminals(placed, direction, config.terminal_spacing)
    logger.debug("laid out %d nodes / %d edges (%s)", len(placed), len(fg.edges), direction.value)

    return LayoutResult(
        nodes=tuple(placed),
        edges=fg.edges,
        edge_weights=solved.weights,
        direction=direction,
        reversed_edges=tuple(e.id for e in fg.edges if (e.source, e.target) in solved.reversed_edges),
    )
