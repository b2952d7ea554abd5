"""Oracle contract — the capability that turns source text into a flow graph.

The oracle itself (an LLM call in production) lives outside this package.
What lives here is its interface and the parsing of its JSON payload into
the graph model:

    {
      "nodes":    [{"id", "type", "label", "details"?, "line"?}, ...],
      "edges":    [{"id", "source", "target", "label"?, "animated"?}, ...],
      "warnings": [{"type", "message", "line"?}, ...]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from flowspine.errors import OracleResponseError
from flowspine.graph import Edge, Node, NodeKind


class WarningKind(str, Enum):
    LIMIT = "limit"
    BEST_PRACTICE = "best-practice"
    SECURITY = "security"


@dataclass(frozen=True)
class AnalysisWarning:
    """A diagnostic the oracle attached to the analysed text."""

    kind: WarningKind
    message: str
    line: int | None = None


# JSON schema of the payload, for oracle implementations that support
# structured output.
ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "type": {"type": "string", "enum": [k.value for k in NodeKind]},
                    "label": {"type": "string"},
                    "details": {"type": "string"},
                    "line": {"type": "integer"},
                },
                "required": ["id", "type", "label"],
            },
        },
        "edges": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "source": {"type": "string"},
                    "target": {"type": "string"},
                    "label": {"type": "string"},
                    "animated": {"type": "boolean"},
                },
                "required": ["id", "source", "target"],
            },
        },
        "warnings": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": [k.value for k in WarningKind]},
                    "message": {"type": "string"},
                    "line": {"type": "integer"},
                },
                "required": ["type", "message"],
            },
        },
    },
    "required": ["nodes", "edges", "warnings"],
}


# ─── Payload parsing ──────────────────────────────────────────────────────────


def _require(item: dict[str, Any], key: str, where: str) -> Any:
    value = item.get(key)
    if value is None:
        raise OracleResponseError(f"{where} is missing {key!r}", {"item": item})
    return value


def _optional_str(item: dict[str, Any], key: str) -> str | None:
    value = item.get(key)
    return None if value is None else str(value)


def _optional_line(item: dict[str, Any], where: str) -> int | None:
    value = item.get("line")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise OracleResponseError(f"{where} has a non-integer line", {"item": item})
    return value


def _array(payload: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = payload.get(key)
    if not isinstance(items, list):
        raise OracleResponseError(f"payload is missing the {key!r} array", {"keys": sorted(payload)})
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise OracleResponseError(f"{key}[{idx}] is not an object", {"item": item})
    return items


def _parse_node(item: dict[str, Any], idx: int) -> Node:
    where = f"nodes[{idx}]"
    raw_kind = str(_require(item, "type", where))
    try:
        kind = NodeKind.parse(raw_kind)
    except ValueError as exc:
        raise OracleResponseError(f"{where} has unknown type {raw_kind!r}", {"item": item}) from exc
    return Node(
        id=str(_require(item, "id", where)),
        kind=kind,
        label=str(_require(item, "label", where)),
        detail=_optional_str(item, "details"),
        source_line=_optional_line(item, where),
    )


def _parse_edge(item: dict[str, Any], idx: int) -> Edge:
    where = f"edges[{idx}]"
    return Edge(
        id=str(_require(item, "id", where)),
        source=str(_require(item, "source", where)),
        target=str(_require(item, "target", where)),
        label=_optional_str(item, "label"),
        animated=bool(item.get("animated", False)),
    )


def _parse_warning(item: dict[str, Any], idx: int) -> AnalysisWarning:
    where = f"warnings[{idx}]"
    raw_kind = str(_require(item, "type", where))
    try:
        kind = WarningKind(raw_kind)
    except ValueError as exc:
        raise OracleResponseError(f"{where} has unknown type {raw_kind!r}", {"item": item}) from exc
    return AnalysisWarning(kind=kind, message=str(_require(item, "message", where)), line=_optional_line(item, where))


@dataclass(frozen=True)
class AnalysisResult:
    """Graph plus diagnostics returned by an oracle."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    warnings: tuple[AnalysisWarning, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Any) -> AnalysisResult:
        """Parse a decoded JSON payload.

        Raises:
            OracleResponseError: the payload does not follow the contract.
        """
        if not isinstance(payload, dict):
            raise OracleResponseError("payload is not a JSON object", {"type": type(payload).__name__})
        return cls(
            nodes=tuple(_parse_node(item, i) for i, item in enumerate(_array(payload, "nodes"))),
            edges=tuple(_parse_edge(item, i) for i, item in enumerate(_array(payload, "edges"))),
            warnings=tuple(_parse_warning(item, i) for i, item in enumerate(_array(payload, "warnings"))),
        )

    @classmethod
    def from_json(cls, text: str) -> AnalysisResult:
        """Parse the raw oracle response text."""
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise OracleResponseError("failed to parse oracle response as JSON", {"error": str(exc)}) from exc
        return cls.from_payload(payload)


class AnalysisOracle(Protocol):
    """Protocol that all oracles must implement."""

    def analyze(self, text: str) -> AnalysisResult:
        """Turn raw source text into a flow graph with diagnostics."""
        ...
