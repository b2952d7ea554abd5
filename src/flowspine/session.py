"""Analysis session — oracle call followed by a layout pass.

A session owns the flow currently on display. Each ``visualize`` call
replaces it wholesale, never merges into it. Calls are numbered; when
several overlap, only the most recently started one may publish its
result, and a failed latest call clears the view so that no stale or
partial graph stays on screen.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from flowspine.config import LayoutConfig
from flowspine.engine import layout_flow
from flowspine.errors import AnalysisFailedError
from flowspine.graph import Direction
from flowspine.oracle import AnalysisOracle, AnalysisWarning
from flowspine.result import LayoutResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowView:
    """What the rendering surface shows after a successful analysis."""

    layout: LayoutResult
    warnings: tuple[AnalysisWarning, ...]
    generation: int


class AnalysisSession:
    """Runs the oracle and the layout for one display surface, latest call wins."""

    def __init__(
        self,
        oracle: AnalysisOracle,
        direction: Direction | str = Direction.TB,
        config: LayoutConfig | None = None,
    ) -> None:
        self.oracle = oracle
        self.direction = Direction(direction)
        self.config = config
        self._lock = threading.Lock()
        self._generation = 0
        self._view: FlowView | None = None
        self._last_error: str | None = None

    @property
    def view(self) -> FlowView | None:
        return self._view

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def visualize(self, text: str) -> FlowView | None:
        """Analyse ``text`` and lay out the resulting graph.

        Returns the new view, or None when the text is blank (nothing is
        done) or when a newer call superseded this one.

        Raises:
            AnalysisFailedError: the oracle failed, returned an invalid
                payload, or the graph could not be laid out.
        """
        if not text.strip():
            return None

        with self._lock:
            self._generation += 1
            generation = self._generation
        logger.info("analysis %d started (%d chars)", generation, len(text))

        try:
            result = self.oracle.analyze(text)
            layout = layout_flow(result.nodes, result.edges, self.direction, self.config)
        except Exception as exc:
            message = f"analysis failed: {exc}"
            with self._lock:
                if generation == self._generation:
                    self._view = None
                    self._last_error = message
            logger.warning("analysis %d failed: %s", generation, exc)
            raise AnalysisFailedError(message, {"generation": generation}) from exc

        view = FlowView(layout=layout, warnings=result.warnings, generation=generation)
        with self._lock:
            if generation != self._generation:
                logger.info("analysis %d superseded by %d, result discarded", generation, self._generation)
                return None
            self._view = view
            self._last_error = None

        logger.info(
            "analysis %d rendered %d nodes, %d edges, %d warnings",
            generation,
            len(layout.nodes),
            len(layout.edges),
            len(result.warnings),
        )
        return view

    def clear(self) -> None:
        """Drop the current view and invalidate any call still in flight."""
        with self._lock:
            self._generation += 1
            self._view = None
            self._last_error = None
