"""flowspine — flowchart layout engine for mostly-linear flow graphs."""

from flowspine.config import DEFAULT_CONFIG, LayoutConfig
from flowspine.engine import layout_flow
from flowspine.errors import (
    AnalysisFailedError,
    DuplicateEdgeError,
    DuplicateNodeError,
    FlowspineError,
    GraphContractError,
    MalformedEdgeError,
    OracleResponseError,
)
from flowspine.graph import BranchKind, Direction, Edge, Node, NodeKind, Position, classify_branch
from flowspine.oracle import AnalysisOracle, AnalysisResult, AnalysisWarning, WarningKind
from flowspine.result import LayoutResult, PositionedNode
from flowspine.session import AnalysisSession, FlowView

__all__ = [
    "DEFAULT_CONFIG",
    "AnalysisFailedError",
    "AnalysisOracle",
    "AnalysisResult",
    "AnalysisSession",
    "AnalysisWarning",
    "BranchKind",
    "Direction",
    "DuplicateEdgeError",
    "DuplicateNodeError",
    "Edge",
    "FlowView",
    "FlowspineError",
    "GraphContractError",
    "LayoutConfig",
    "LayoutResult",
    "MalformedEdgeError",
    "Node",
    "NodeKind",
    "OracleResponseError",
    "Position",
    "PositionedNode",
    "WarningKind",
    "classify_branch",
    "layout_flow",
]
