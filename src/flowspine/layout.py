"""Layout module — weighted Sugiyama-style layout for flowcharts.

Phases:
  1. Edge weighting (main path heavy, negative branches and self-loops light)
  2. Cycle breaking (depth-first, heaviest successor first)
  3. Layer assignment (longest path from the sources)
  4. Dummy node insertion for edges spanning several layers
  5. Crossing minimization (barycenter heuristic)
  6. Coordinate assignment (weighted median, priority method)

All coordinates produced here are node *centers* in layout space, computed
from the layout boxes handed in by the caller.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import networkx as nx

from flowspine.config import DEFAULT_CONFIG, LayoutConfig
from flowspine.graph import BranchKind, Direction, Edge, FlowGraph
from flowspine.sizing import DEFAULT_LAYOUT_BOX, Box

logger = logging.getLogger(__name__)

_EPS = 1e-9

# ─── Edge Weighting ───────────────────────────────────────────────────────────


def edge_weight(edge: Edge, config: LayoutConfig = DEFAULT_CONFIG) -> int:
    """Straightness weight of a flow edge.

    Negative branches ("False", "No", ...) and self-loops are light so they
    yield to the main path; every other edge is heavy.
    """
    if edge.is_self_loop or edge.branch == BranchKind.NEGATIVE:
        return config.branch_weight
    return config.main_weight


def weighted_digraph(fg: FlowGraph, weights: Mapping[str, int]) -> nx.DiGraph:
    """Project a flow graph onto a simple weighted DiGraph for the solver.

    Self-loops are left out: they never influence ranks or positions.
    Parallel flow edges collapse onto one graph edge with summed weight.
    """
    g: nx.DiGraph = nx.DiGraph()
    for node_id in fg.digraph.nodes:
        g.add_node(node_id)
    for src, tgt, attrs in fg.digraph.edges(data=True):
        if src == tgt:
            continue
        g.add_edge(src, tgt, weight=sum(weights[e.id] for e in attrs["edges"]))
    return g


# ─── Cycle Removal (depth-first) ──────────────────────────────────────────────


@dataclass
class CycleRemovalResult:
    """Edges reversed to make the solver graph acyclic.

    Edges are (src, tgt) tuples in the ORIGINAL direction, in the order the
    depth-first walk found them.
    """

    reversed_edges: list[tuple[str, str]] = field(default_factory=list)


def _heaviest_first(graph: nx.DiGraph, node_id: str) -> list[str]:
    # sorted() is stable: equal weights keep edge insertion order.
    successors = [s for s in graph.successors(node_id) if s != node_id]
    return sorted(successors, key=lambda s: -graph.edges[node_id, s].get("weight", 1))


def _is_entry(graph: nx.DiGraph, node_id: str) -> bool:
    return all(pred == node_id for pred in graph.predecessors(node_id))


def find_back_edges(graph: nx.DiGraph) -> CycleRemovalResult:
    """Find the edges that close a cycle during a depth-first walk.

    The walk starts from every entry node (no predecessor other than
    itself) in insertion order, then from any node still unvisited.
    Successors are explored heaviest edge first, so the main path is walked
    as tree edges and the edge that returns to a node still on the walk
    stack is the one reported.
    """
    visited: set[str] = set()
    on_stack: set[str] = set()
    back_edges: list[tuple[str, str]] = []

    entries = [n for n in graph.nodes if _is_entry(graph, n)]
    roots = entries + [n for n in graph.nodes if n not in entries]

    for root in roots:
        if root in visited:
            continue
        visited.add(root)
        on_stack.add(root)
        stack = [(root, iter(_heaviest_first(graph, root)))]

        while stack:
            node_id, successors = stack[-1]
            succ = next(successors, None)
            if succ is None:
                stack.pop()
                on_stack.discard(node_id)
                continue
            if succ in on_stack:
                back_edges.append((node_id, succ))
            elif succ not in visited:
                visited.add(succ)
                on_stack.add(succ)
                stack.append((succ, iter(_heaviest_first(graph, succ))))

    return CycleRemovalResult(reversed_edges=back_edges)


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Return an acyclic copy of ``graph`` plus the set of reversed edges.

    Back-edges are reversed (their weight is kept); self-loops are dropped.
    When a reversed edge lands on an existing edge the weights are summed.
    """
    found = find_back_edges(graph)
    reversed_edges = set(found.reversed_edges)

    dag: nx.DiGraph = nx.DiGraph()
    for node_id in graph.nodes:
        dag.add_node(node_id, **graph.nodes[node_id])

    for src, tgt, attrs in graph.edges(data=True):
        if src == tgt:
            continue
        u, v = (tgt, src) if (src, tgt) in reversed_edges else (src, tgt)
        weight = attrs.get("weight", 1)
        if dag.has_edge(u, v):
            dag.edges[u, v]["weight"] += weight
        else:
            dag.add_edge(u, v, weight=weight)

    if found.reversed_edges:
        logger.debug("reversed back-edges: %s", found.reversed_edges)
    return dag, reversed_edges


# ─── Layer Assignment ─────────────────────────────────────────────────────────


@dataclass
class LayerAssignment:
    """Rank of every node of the acyclic solver graph (0 = first rank)."""

    layers: dict[str, int]
    layer_count: int

    @classmethod
    def assign(cls, dag: nx.DiGraph) -> LayerAssignment:
        """Longest-path ranking: rank[v] = max(rank[u] + 1) over edges u→v.

        Nodes without predecessors (isolated nodes included) sit on layer 0.
        """
        layers: dict[str, int] = {node_id: 0 for node_id in dag.nodes}
        for node_id in nx.topological_sort(dag):
            for succ in dag.successors(node_id):
                if layers[succ] < layers[node_id] + 1:
                    layers[succ] = layers[node_id] + 1

        layer_count = (max(layers.values()) + 1) if layers else 0
        return cls(layers=layers, layer_count=layer_count)


# ─── Dummy Node Insertion ─────────────────────────────────────────────────────

DUMMY_PREFIX = "__dummy_"


@dataclass
class DummyEdge:
    """A long edge replaced by a chain of dummy nodes, one per inner layer."""

    original_src: str
    original_tgt: str
    dummy_ids: list[str]


@dataclass
class AugmentedGraph:
    """A graph augmented with dummy nodes for edges that span multiple layers.

    After dummy node insertion, every edge connects nodes in adjacent layers.
    Dummy nodes carry the node attribute ``dummy=True``; every edge carries
    the ``weight`` of the flow edge it belongs to.
    """

    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int
    dummy_edges: list[DummyEdge]

    def is_dummy(self, node_id: str) -> bool:
        return bool(self.graph.nodes[node_id].get("dummy", False))


def insert_dummy_nodes(dag: nx.DiGraph, la: LayerAssignment) -> AugmentedGraph:
    """Replace every edge u → v with layer[v] - layer[u] > 1 by the chain
    u → d₁ → … → dₖ → v, each dᵢ living in layer ``layer[u] + i``.
    """
    g: nx.DiGraph = nx.DiGraph()
    for node_id in dag.nodes:
        g.add_node(node_id, **dag.nodes[node_id])

    layers: dict[str, int] = dict(la.layers)
    dummy_edges: list[DummyEdge] = []

    for src_id, tgt_id, attrs in list(dag.edges(data=True)):
        weight = attrs.get("weight", 1)
        src_layer = layers[src_id]
        span = layers[tgt_id] - src_layer

        if span <= 1:
            g.add_edge(src_id, tgt_id, weight=weight)
            continue

        this_edge = len(dummy_edges)
        dummy_ids: list[str] = []
        chain_prev = src_id
        for i in range(span - 1):
            dummy_id = f"{DUMMY_PREFIX}{this_edge}_{i}"
            g.add_node(dummy_id, dummy=True)
            layers[dummy_id] = src_layer + i + 1
            dummy_ids.append(dummy_id)
            g.add_edge(chain_prev, dummy_id, weight=weight)
            chain_prev = dummy_id
        g.add_edge(chain_prev, tgt_id, weight=weight)

        dummy_edges.append(DummyEdge(original_src=src_id, original_tgt=tgt_id, dummy_ids=dummy_ids))

    layer_count = (max(layers.values()) + 1) if layers else 0
    return AugmentedGraph(graph=g, layers=layers, layer_count=layer_count, dummy_edges=dummy_edges)


# ─── Crossing Minimization (Barycenter) ───────────────────────────────────────


def initial_ordering(aug: AugmentedGraph) -> list[list[str]]:
    """Group nodes by layer in graph insertion order (real nodes, then dummies)."""
    ordering: list[list[str]] = [[] for _ in range(aug.layer_count)]
    for node_id in aug.graph.nodes:
        ordering[aug.layers[node_id]].append(node_id)
    return ordering


def minimise_crossings(aug: AugmentedGraph, max_passes: int = DEFAULT_CONFIG.order_passes) -> list[list[str]]:
    """Minimise edge crossings using the barycenter heuristic.

    Top-down and bottom-up sweeps are repeated while the crossing count keeps
    improving; the best ordering seen is returned, one list per layer.
    """
    ordering = initial_ordering(aug)
    best = [list(layer) for layer in ordering]
    best_count = count_crossings(best, aug.graph)

    for _pass in range(max_passes):
        if best_count == 0:
            break

        for layer_idx in range(1, aug.layer_count):
            prev: dict[str, float] = {nid: float(i) for i, nid in enumerate(ordering[layer_idx - 1])}
            own = {nid: float(i) for i, nid in enumerate(ordering[layer_idx])}
            ordering[layer_idx].sort(
                key=lambda a, p=prev, o=own: _barycenter(a, aug.graph, p, "incoming", o[a])
            )

        for layer_idx in range(aug.layer_count - 2, -1, -1):
            nxt: dict[str, float] = {nid: float(i) for i, nid in enumerate(ordering[layer_idx + 1])}
            own = {nid: float(i) for i, nid in enumerate(ordering[layer_idx])}
            ordering[layer_idx].sort(
                key=lambda a, n=nxt, o=own: _barycenter(a, aug.graph, n, "outgoing", o[a])
            )

        count = count_crossings(ordering, aug.graph)
        if count >= best_count:
            break
        best = [list(layer) for layer in ordering]
        best_count = count

    return best


def _barycenter(
    node_id: str,
    graph: nx.DiGraph,
    neighbor_pos: dict[str, float],
    direction: str,
    fallback: float,
) -> float:
    """Average position of a node's neighbours in the adjacent layer.

    direction: "incoming" to look at predecessors, "outgoing" for successors.
    Nodes without neighbours there keep ``fallback`` (their current slot).
    """
    neighbors = graph.predecessors(node_id) if direction == "incoming" else graph.successors(node_id)
    positions = [neighbor_pos[nb] for nb in neighbors if nb in neighbor_pos]
    if not positions:
        return fallback
    return sum(positions) / len(positions)


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """Weighted crossing count between consecutive layers.

    Each crossing costs the product of the two edge weights, so orderings
    that let a light branch cross the main path beat ones that cross two
    main-path edges.
    """
    total = 0
    for upper, lower in zip(ordering, ordering[1:]):
        lower_pos = {nid: i for i, nid in enumerate(lower)}
        segments = [
            (upper_pos, lower_pos[succ], graph.edges[src_id, succ].get("weight", 1))
            for upper_pos, src_id in enumerate(upper)
            if src_id in graph
            for succ in graph.successors(src_id)
            if succ in lower_pos
        ]
        for i, (a_top, a_bottom, a_weight) in enumerate(segments):
            for b_top, b_bottom, b_weight in segments[i + 1 :]:
                if (a_top - b_top) * (a_bottom - b_bottom) < 0:
                    total += a_weight * b_weight
    return total


# ─── Coordinate Assignment ────────────────────────────────────────────────────

# Segment weight multipliers (real–real, real–dummy, dummy–dummy): long edges
# pull harder the more of their length is bend points.
_SEGMENT_FACTOR: dict[int, int] = {0: 1, 1: 2, 2: 8}


@dataclass
class LayoutNode:
    """A node placed by the solver. ``x``/``y`` are the box CENTER."""

    id: str
    layer: int
    order: int
    x: float
    y: float
    width: float
    height: float
    dummy: bool = False


def weighted_median_interval(points: list[tuple[float, float]]) -> tuple[float, float] | None:
    """Interval of x minimising Σ w·|x - xᵢ| over (xᵢ, w) points.

    Returns None when no point carries positive weight. With an even split of
    weight the whole interval between the two middle points is optimal.
    """
    ordered = sorted((x, w) for x, w in points if w > 0)
    if not ordered:
        return None
    half = sum(w for _, w in ordered) / 2
    acc = 0.0
    for i, (x, w) in enumerate(ordered):
        acc += w
        if acc > half + _EPS:
            return (x, x)
        if abs(acc - half) <= _EPS and i + 1 < len(ordered):
            return (x, ordered[i + 1][0])
    last = ordered[-1][0]
    return (last, last)


def _shift_node(
    layer: list[str],
    i: int,
    target: float,
    xs: dict[str, float],
    fixed: set[str],
    separation: Callable[[str, str], float],
) -> bool:
    """Move layer[i] towards ``target`` without crossing a fixed node.

    Unfixed neighbours in the way are pushed along. Returns True if moved.
    """
    current = xs[layer[i]]

    if target > current:
        limit = math.inf
        gap = 0.0
        for j in range(i + 1, len(layer)):
            gap += separation(layer[j - 1], layer[j])
            if layer[j] in fixed:
                limit = xs[layer[j]] - gap
                break
        new = min(target, limit)
        if new <= current + _EPS:
            return False
        xs[layer[i]] = new
        for j in range(i + 1, len(layer)):
            floor = xs[layer[j - 1]] + separation(layer[j - 1], layer[j])
            if xs[layer[j]] >= floor:
                break
            xs[layer[j]] = floor
        return True

    limit = -math.inf
    gap = 0.0
    for j in range(i - 1, -1, -1):
        gap += separation(layer[j], layer[j + 1])
        if layer[j] in fixed:
            limit = xs[layer[j]] + gap
            break
    new = max(target, limit)
    if new >= current - _EPS:
        return False
    xs[layer[i]] = new
    for j in range(i - 1, -1, -1):
        ceiling = xs[layer[j + 1]] - separation(layer[j], layer[j + 1])
        if xs[layer[j]] <= ceiling:
            break
        xs[layer[j]] = ceiling
    return True


def assign_coordinates(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    boxes: Mapping[str, Box],
    config: LayoutConfig = DEFAULT_CONFIG,
) -> dict[str, LayoutNode]:
    """Assign center coordinates to every node of the augmented graph.

    Layout is top-down: layers are stacked along y, ``rank_sep`` apart, each
    band as tall as its tallest box. Within a layer nodes start tightly
    packed; then each node repeatedly moves to the weighted median of its
    neighbours in the adjacent layers (weights = edge weights), so heavy
    main-path edges end up straight. A node never crosses a node with higher
    priority (dummies first, then heavier nodes) and pushes lower-priority
    nodes out of its way. Dummy nodes have a zero-size box.
    """

    def dims(node_id: str) -> Box:
        if aug.is_dummy(node_id):
            return Box(0.0, 0.0)
        return boxes.get(node_id, DEFAULT_LAYOUT_BOX)

    def half_gap(node_id: str) -> float:
        return (config.edge_sep if aug.is_dummy(node_id) else config.node_sep) / 2

    def separation(left: str, right: str) -> float:
        return dims(left).width / 2 + dims(right).width / 2 + half_gap(left) + half_gap(right)

    # Layer bands.
    layer_center_y: list[float] = []
    y = config.margin_y
    for layer_nodes in ordering:
        band = max((dims(nid).height for nid in layer_nodes), default=0.0)
        layer_center_y.append(y + band / 2)
        y += band + config.rank_sep

    # Tight initial packing.
    xs: dict[str, float] = {}
    for layer_nodes in ordering:
        for i, nid in enumerate(layer_nodes):
            xs[nid] = dims(nid).width / 2 if i == 0 else xs[layer_nodes[i - 1]] + separation(layer_nodes[i - 1], nid)

    # Weighted neighbourhoods across both adjacent layers.
    neighbours: dict[str, list[tuple[str, float]]] = {nid: [] for nid in aug.graph.nodes}
    for src, tgt, attrs in aug.graph.edges(data=True):
        factor = _SEGMENT_FACTOR[int(aug.is_dummy(src)) + int(aug.is_dummy(tgt))]
        w = float(attrs.get("weight", 1) * factor)
        neighbours[src].append((tgt, w))
        neighbours[tgt].append((src, w))

    position_in_layer = {nid: i for layer_nodes in ordering for i, nid in enumerate(layer_nodes)}

    def priority(nid: str) -> tuple[int, float, int]:
        return (0 if aug.is_dummy(nid) else 1, -sum(w for _, w in neighbours[nid]), position_in_layer[nid])

    for pass_idx in range(config.position_passes):
        sweep = range(len(ordering)) if pass_idx % 2 == 0 else range(len(ordering) - 1, -1, -1)
        moved = False
        for layer_idx in sweep:
            layer_nodes = ordering[layer_idx]
            fixed: set[str] = set()
            for nid in sorted(layer_nodes, key=priority):
                interval = weighted_median_interval([(xs[nb], w) for nb, w in neighbours[nid]])
                if interval is not None:
                    lo, hi = interval
                    target = min(max(xs[nid], lo), hi)
                    if abs(target - xs[nid]) > _EPS:
                        moved |= _shift_node(layer_nodes, position_in_layer[nid], target, xs, fixed, separation)
                fixed.add(nid)
        if not moved:
            break

    # Normalize: the leftmost box edge sits on the horizontal margin.
    if xs:
        min_left = min(xs[nid] - dims(nid).width / 2 for nid in xs)
        for nid in xs:
            xs[nid] += config.margin_x - min_left

    placed: dict[str, LayoutNode] = {}
    for layer_idx, layer_nodes in enumerate(ordering):
        for order, nid in enumerate(layer_nodes):
            box = dims(nid)
            placed[nid] = LayoutNode(
                id=nid,
                layer=layer_idx,
                order=order,
                x=xs[nid],
                y=layer_center_y[layer_idx],
                width=box.width,
                height=box.height,
                dummy=aug.is_dummy(nid),
            )
    return placed


# ─── Full Solver Pipeline ─────────────────────────────────────────────────────


@dataclass
class SolvedLayout:
    """Solver output for the real (non-dummy) nodes.

    Attributes:
        centers: node id → (x, y) center in layout space, already oriented
            for the requested direction.
        ranks: node id → layer index.
        weights: edge id → straightness weight.
        reversed_edges: (src, tgt) pairs reversed to break cycles.
    """

    centers: dict[str, tuple[float, float]]
    ranks: dict[str, int]
    weights: dict[str, int]
    reversed_edges: set[tuple[str, str]]


def solve(
    fg: FlowGraph,
    boxes: Mapping[str, Box],
    direction: Direction = Direction.TB,
    config: LayoutConfig = DEFAULT_CONFIG,
) -> SolvedLayout:
    """Run the solver phases and return centers for every flow node.

    For LR the boxes are transposed and the layout is solved top-down, then
    the resulting coordinates are transposed back.
    """
    weights = {edge.id: edge_weight(edge, config) for edge in fg.edges}
    dag, reversed_edges = remove_cycles(weighted_digraph(fg, weights))
    la = LayerAssignment.assign(dag)
    aug = insert_dummy_nodes(dag, la)
    ordering = minimise_crossings(aug, config.order_passes)

    is_lr = direction == Direction.LR
    if is_lr:
        boxes = {nid: box.transposed() for nid, box in boxes.items()}
        config = config.with_overrides(margin_x=config.margin_y, margin_y=config.margin_x)

    placed = assign_coordinates(ordering, aug, boxes, config)

    centers: dict[str, tuple[float, float]] = {}
    for node_id in fg.digraph.nodes:
        ln = placed[node_id]
        centers[node_id] = (ln.y, ln.x) if is_lr else (ln.x, ln.y)

    logger.debug(
        "solved %d nodes on %d ranks (%d dummy nodes, %d reversed edges)",
        len(centers),
        la.layer_count,
        sum(len(de.dummy_ids) for de in aug.dummy_edges),
        len(reversed_edges),
    )
    return SolvedLayout(centers=centers, ranks=dict(la.layers), weights=weights, reversed_edges=reversed_edges)
