"""Layout configuration.

The defaults are the nominal spacings of the flowchart layout. A
``LayoutConfig`` is immutable; use ``with_overrides`` to derive a variant.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

# ─── Nominal geometry ─────────────────────────────────────────────────────────

NODE_SEP: float = 140.0  # gap between two real boxes in the same rank
EDGE_SEP: float = 50.0  # gap when a dummy (edge bend point) is involved
RANK_SEP: float = 120.0  # gap between rank bands
MARGIN_X: float = 50.0
MARGIN_Y: float = 50.0
TERMINAL_SPACING: float = 120.0  # gap above a corrected terminal node

# ─── Edge weights ─────────────────────────────────────────────────────────────

MAIN_WEIGHT: int = 5  # main-path edges: keep straight
BRANCH_WEIGHT: int = 1  # negative branches and self-loops: allowed to bend

# ─── Solver effort ────────────────────────────────────────────────────────────

ORDER_PASSES: int = 24
POSITION_PASSES: int = 8


@dataclass(frozen=True)
class LayoutConfig:
    """Spacing, weighting and effort knobs for one layout pass."""

    node_sep: float = NODE_SEP
    edge_sep: float = EDGE_SEP
    rank_sep: float = RANK_SEP
    margin_x: float = MARGIN_X
    margin_y: float = MARGIN_Y
    terminal_spacing: float = TERMINAL_SPACING
    main_weight: int = MAIN_WEIGHT
    branch_weight: int = BRANCH_WEIGHT
    order_passes: int = ORDER_PASSES
    position_passes: int = POSITION_PASSES

    def __post_init__(self) -> None:
        for name in ("node_sep", "edge_sep", "rank_sep", "terminal_spacing"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")
        for name in ("margin_x", "margin_y", "main_weight", "branch_weight"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)!r}")
        for name in ("order_passes", "position_passes"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)!r}")

    def with_overrides(self, **changes: float) -> LayoutConfig:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = LayoutConfig()
