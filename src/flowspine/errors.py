"""Exception hierarchy for flowspine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class FlowspineError(Exception):
    """Base exception type for all flowspine errors."""

    message: str
    context: dict[str, Any] | None = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


# ─── Graph contract violations ────────────────────────────────────────────────


class GraphContractError(FlowspineError):
    """Raised when the node/edge lists break the producer's contract."""


class MalformedEdgeError(GraphContractError):
    """Raised when an edge references a node id absent from the node list."""


class DuplicateNodeError(GraphContractError):
    """Raised when two nodes share the same id."""


class DuplicateEdgeError(GraphContractError):
    """Raised when two edges share the same id."""


# ─── Analysis pipeline ────────────────────────────────────────────────────────


class OracleResponseError(FlowspineError):
    """Raised when the oracle output cannot be parsed into a flow graph."""


class AnalysisFailedError(FlowspineError):
    """Raised when an analysis run fails and nothing could be rendered."""
