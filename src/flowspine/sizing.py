"""Size normalizer — layout boxes and visual boxes per node kind.

Two boxes exist for every node:

- the *layout box* is what the solver spaces nodes with. All regular kinds
  share the same width so their centers land on one vertical axis whatever
  their drawn width;
- the *visual box* is the node's real drawn footprint, used only to turn the
  solver's center point into a top-left draw coordinate.
"""

from __future__ import annotations

from dataclasses import dataclass

from flowspine.graph import NodeKind


@dataclass(frozen=True)
class Box:
    """Width/height pair."""

    width: float
    height: float

    def transposed(self) -> Box:
        return Box(width=self.height, height=self.width)


# The solver and the drawing read the same record shape; the names keep
# their roles apart at call sites.
LayoutBox = Box
VisualBox = Box

LAYOUT_WIDTH: float = 300.0
LAYOUT_HEIGHT: float = 80.0

DEFAULT_LAYOUT_BOX = LayoutBox(LAYOUT_WIDTH, LAYOUT_HEIGHT)
DEFAULT_VISUAL_BOX = VisualBox(240.0, 80.0)

_LAYOUT_BOXES: dict[str, LayoutBox] = {
    # Diamonds need extra vertical room.
    NodeKind.DECISION.value: LayoutBox(LAYOUT_WIDTH, 160.0),
    NodeKind.START.value: LayoutBox(LAYOUT_WIDTH, LAYOUT_HEIGHT),
    NodeKind.END.value: LayoutBox(LAYOUT_WIDTH, LAYOUT_HEIGHT),
}

_VISUAL_BOXES: dict[str, VisualBox] = {
    NodeKind.DECISION.value: VisualBox(280.0, 200.0),
    NodeKind.START.value: VisualBox(140.0, 50.0),
    NodeKind.END.value: VisualBox(140.0, 50.0),
}


def _key(kind: NodeKind | str) -> str:
    return kind.value if isinstance(kind, NodeKind) else str(kind).lower()


def layout_box(kind: NodeKind | str) -> LayoutBox:
    """Box used for solver spacing. Unknown kinds get the default box."""
    return _LAYOUT_BOXES.get(_key(kind), DEFAULT_LAYOUT_BOX)


def visual_box(kind: NodeKind | str) -> VisualBox:
    """True drawn footprint. Unknown kinds get the default box."""
    return _VISUAL_BOXES.get(_key(kind), DEFAULT_VISUAL_BOX)
