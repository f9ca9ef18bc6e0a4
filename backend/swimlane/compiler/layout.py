"""
Layered Layout Engine

Left-to-right layered drawing of the flow nodes:

1. depth-first traversal tags every edge `forward` or `back`
2. rank = longest forward-edge path ending at the node
3. one barycenter sweep orders nodes inside a rank
4. rank/order become lane-relative pixel coordinates

Lane containers never enter the layout graph; their geometry comes from
lane sizing afterwards.
"""

from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Sequence, Tuple

from swimlane.compiler.types import Diagram, FlowEdge, FlowNode, Point

FORWARD = "forward"
BACK = "back"

_WHITE, _GRAY, _BLACK = 0, 1, 2


class LayoutConfig:
    LANE_HEADER_WIDTH = 30   # lane label strip on the left
    LANE_PADDING = 20
    H_SPACING = 60           # between columns
    V_SPACING = 30           # between rows of one lane
    ROW_HEIGHT = 70          # tallest node kind
    LANE_SPACING = 20        # between stacked lanes


@dataclass
class LayoutResult:
    ranks: Dict[str, int] = field(default_factory=dict)
    order: Dict[str, int] = field(default_factory=dict)        # index inside its rank
    traversal: Dict[str, int] = field(default_factory=dict)    # DFS preorder index
    edge_tags: Dict[str, str] = field(default_factory=dict)    # edge id -> forward | back
    positions: Dict[str, Point] = field(default_factory=dict)


# ============================================================
# 1. Traversal + edge classification
# ============================================================

def classify_edges(
    node_ids: Sequence[str],
    edges: Iterable[FlowEdge],
) -> Tuple[Dict[str, str], Dict[str, int], List[str]]:
    """
    Iterative DFS over the flow graph.

    Returns (edge tags, preorder index per node, finish order). An edge into a
    node still on the active path closes a cycle and is tagged `back`;
    everything else is `forward`. Self-loops are back edges.
    """
    adjacency: Dict[str, List[Tuple[str, str]]] = {node_id: [] for node_id in node_ids}
    in_degree: Dict[str, int] = {node_id: 0 for node_id in node_ids}

    for edge in edges:
        adjacency[edge.source].append((edge.id, edge.target))
        if edge.source != edge.target:
            in_degree[edge.target] += 1

    color = {node_id: _WHITE for node_id in node_ids}
    preorder: Dict[str, int] = {}
    finished: List[str] = []
    tags: Dict[str, str] = {}

    roots = [n for n in node_ids if in_degree[n] == 0] + list(node_ids)

    for root in roots:
        if color[root] != _WHITE:
            continue

        color[root] = _GRAY
        preorder[root] = len(preorder)
        stack = [(root, iter(adjacency[root]))]

        while stack:
            node_id, successors = stack[-1]
            descended = False

            for edge_id, target in successors:
                if color[target] == _GRAY:
                    tags[edge_id] = BACK
                    continue

                tags[edge_id] = FORWARD
                if color[target] == _WHITE:
                    color[target] = _GRAY
                    preorder[target] = len(preorder)
                    stack.append((target, iter(adjacency[target])))
                    descended = True
                    break

            if not descended:
                color[node_id] = _BLACK
                finished.append(node_id)
                stack.pop()

    return tags, preorder, finished


# ============================================================
# 2. Ranks
# ============================================================

def assign_ranks(
    node_ids: Sequence[str],
    forward_edges: Sequence[FlowEdge],
    finished: Sequence[str],
) -> Dict[str, int]:
    """Longest-path layering; reverse finish order is topological for forward edges."""
    outgoing: Dict[str, List[str]] = defaultdict(list)
    for edge in forward_edges:
        outgoing[edge.source].append(edge.target)

    ranks = {node_id: 0 for node_id in node_ids}
    for node_id in reversed(finished):
        for target in outgoing[node_id]:
            ranks[target] = max(ranks[target], ranks[node_id] + 1)
    return ranks


# ============================================================
# 3. Ordering inside a rank
# ============================================================

def order_within_ranks(
    ranks: Dict[str, int],
    forward_edges: Sequence[FlowEdge],
    preorder: Dict[str, int],
) -> Dict[str, int]:
    predecessors: Dict[str, List[str]] = defaultdict(list)
    for edge in forward_edges:
        predecessors[edge.target].append(edge.source)

    by_rank: Dict[int, List[str]] = defaultdict(list)
    for node_id, rank in ranks.items():
        by_rank[rank].append(node_id)

    order: Dict[str, int] = {}
    for rank in sorted(by_rank):
        def sort_key(node_id: str):
            placed = [order[p] for p in predecessors[node_id] if p in order]
            barycenter = sum(placed) / len(placed) if placed else float(preorder[node_id])
            return (barycenter, preorder[node_id])

        for index, node_id in enumerate(sorted(by_rank[rank], key=sort_key)):
            order[node_id] = index
    return order


# ============================================================
# 4. Coordinates
# ============================================================

def assign_coordinates(
    nodes: Sequence[FlowNode],
    ranks: Dict[str, int],
    order: Dict[str, int],
    config: LayoutConfig = LayoutConfig(),
) -> Dict[str, Point]:
    """
    Columns are shared by all lanes so cross-lane edges still read left to
    right. Nodes of one lane that share a rank stack into separate rows.
    """
    column_width: Dict[int, float] = defaultdict(float)
    for node in nodes:
        column_width[ranks[node.id]] = max(column_width[ranks[node.id]], node.size.width)

    column_x: Dict[int, float] = {}
    cursor = config.LANE_HEADER_WIDTH + config.LANE_PADDING
    for rank in range(max(ranks.values()) + 1 if ranks else 0):
        column_x[rank] = cursor
        cursor += column_width.get(rank, 0) + config.H_SPACING

    cells: Dict[Tuple[str, int], List[FlowNode]] = defaultdict(list)
    for node in nodes:
        cells[(node.lane_id, ranks[node.id])].append(node)

    positions: Dict[str, Point] = {}
    for (_, rank), members in cells.items():
        for slot, node in enumerate(sorted(members, key=lambda n: order[n.id])):
            x = column_x[rank] + (column_width[rank] - node.size.width) / 2
            row_top = config.LANE_PADDING + slot * (config.ROW_HEIGHT + config.V_SPACING)
            y = row_top + (config.ROW_HEIGHT - node.size.height) / 2
            positions[node.id] = Point(x, y)
    return positions


# ============================================================
# Entry points
# ============================================================

def compute_layout(
    nodes: Sequence[FlowNode],
    edges: Sequence[FlowEdge],
    config: LayoutConfig = LayoutConfig(),
) -> LayoutResult:
    node_ids = [node.id for node in nodes]

    tags, preorder, finished = classify_edges(node_ids, edges)
    forward_edges = [edge for edge in edges if tags[edge.id] == FORWARD]

    ranks = assign_ranks(node_ids, forward_edges, finished)
    order = order_within_ranks(ranks, forward_edges, preorder)
    positions = assign_coordinates(nodes, ranks, order, config)

    return LayoutResult(
        ranks=ranks,
        order=order,
        traversal=preorder,
        edge_tags=tags,
        positions=positions,
    )


def apply_layout(diagram: Diagram, config: LayoutConfig = LayoutConfig()) -> Diagram:
    """New diagram with member positions set and back edges flagged."""
    result = compute_layout(diagram.nodes, diagram.edges, config)

    nodes = tuple(
        replace(node, position=result.positions[node.id])
        for node in diagram.nodes
    )
    edges = tuple(
        replace(edge, is_back_edge=result.edge_tags[edge.id] == BACK)
        for edge in diagram.edges
    )
    return replace(diagram, nodes=nodes, edges=edges)
