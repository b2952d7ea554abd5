"""Terminal placement corrector.

Ranking places nodes by structural depth, so the ``end`` node of a short
branch can land above the last step of a longer one. This pass moves every
terminal node past all other nodes along the flow direction, keeping its
cross-axis coordinate.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from flowspine.config import TERMINAL_SPACING
from flowspine.graph import Direction
from flowspine.result import PositionedNode

logger = logging.getLogger(__name__)


def _far_edge(p: PositionedNode, vertical: bool) -> float:
    return p.bottom if vertical else p.right


def correct_terminals(
    placed: Sequence[PositionedNode],
    direction: Direction = Direction.TB,
    spacing: float = TERMINAL_SPACING,
) -> list[PositionedNode]:
    """Return ``placed`` with every terminal node moved after all others.

    TB: ``y = max(y + height over non-terminals) + spacing``; LR does the same
    along x. No-op when there is no terminal or nothing but terminals.

    Several terminals share the corrected band and are handled in
    (rank, cross-axis position, input index) order; one whose box would
    overlap an already corrected terminal moves on to the next band.
    """
    vertical = direction == Direction.TB
    terminals = [(i, p) for i, p in enumerate(placed) if p.node.is_terminal]
    others = [p for p in placed if not p.node.is_terminal]
    if not terminals or not others:
        return list(placed)

    band = max(_far_edge(p, vertical) for p in others) + spacing

    corrected: dict[int, PositionedNode] = {}
    done: list[PositionedNode] = []
    for i, p in sorted(terminals, key=lambda t: (t[1].rank, t[1].x if vertical else t[1].y, t[0])):
        along = band
        while True:
            moved = p.moved(y=along) if vertical else p.moved(x=along)
            clashes = [q for q in done if moved.overlaps(q)]
            if not clashes:
                break
            along = max(_far_edge(q, vertical) for q in clashes) + spacing
        logger.debug("terminal %s moved to %s=%.1f", p.id, "y" if vertical else "x", along)
        corrected[i] = moved
        done.append(moved)

    return [corrected.get(i, p) for i, p in enumerate(placed)]
