"""
Graph Normalizer

Turns schema-valid payload data into a referentially sound diagram skeleton.
Referential problems are pruned and recorded as diagnostics; only an empty
result (no flow nodes or no lanes) is fatal.
"""

from collections import OrderedDict
from typing import Dict, List, Optional, Set, Tuple

from swimlane.compiler.types import (
    Bounds,
    Diagnostic,
    Diagram,
    FlowEdge,
    FlowNode,
    Lane,
    Metadata,
    NormalizedGraph,
    size_for,
)
from swimlane.config import trace
from swimlane.ir.diagram import NodeKind, PayloadNode, ProcessPayload
from swimlane.ir.errors import PipelineError
from swimlane.ir.validation import ValidationResult


def derive_complexity(flow_node_count: int) -> str:
    if flow_node_count <= 6:
        return "low"
    if flow_node_count <= 15:
        return "medium"
    return "high"


# -------------------------
# Nodes
# -------------------------

def _declared_nodes(payload: ProcessPayload) -> List[PayloadNode]:
    """Lane declarations first, then the node collection, in input order."""
    declared = [
        PayloadNode(id=lane.id, kind=NodeKind.LANE, name=lane.name)
        for lane in payload.lanes
    ]
    declared.extend(payload.nodes)
    return declared


def _dedupe_nodes(
    declared: List[PayloadNode],
    diagnostics: List[Diagnostic],
) -> "OrderedDict[str, PayloadNode]":
    unique: "OrderedDict[str, PayloadNode]" = OrderedDict()
    for node in declared:
        if node.id in unique:
            diagnostics.append(Diagnostic(
                code="DUPLICATE_NODE_ID",
                message=f"node '{node.id}' declared more than once; kept the first occurrence",
                object_id=node.id,
            ))
            continue
        unique[node.id] = node
    return unique


def _build_lanes(
    unique: "OrderedDict[str, PayloadNode]",
    diagnostics: List[Diagnostic],
) -> "OrderedDict[str, str]":
    lanes: "OrderedDict[str, str]" = OrderedDict()   # lane id -> name
    for node in unique.values():
        if node.kind != NodeKind.LANE:
            continue
        if node.lane_id:
            diagnostics.append(Diagnostic(
                code="LANE_HAS_LANE_ID",
                message=f"lane '{node.id}' cannot belong to lane '{node.lane_id}'; ignored laneId",
                object_id=node.id,
            ))
        lanes[node.id] = node.name or node.label or node.id
    return lanes


def _build_flow_nodes(
    unique: "OrderedDict[str, PayloadNode]",
    lane_ids: Set[str],
    diagnostics: List[Diagnostic],
) -> List[FlowNode]:
    flow_nodes: List[FlowNode] = []
    for node in unique.values():
        if node.kind == NodeKind.LANE:
            continue

        if not node.lane_id:
            diagnostics.append(Diagnostic(
                code="MISSING_LANE",
                message=f"node '{node.id}' declares no owning lane; dropped",
                object_id=node.id,
            ))
            continue

        if node.lane_id not in lane_ids:
            diagnostics.append(Diagnostic(
                code="UNKNOWN_LANE",
                message=f"node '{node.id}' references unknown lane '{node.lane_id}'; dropped",
                object_id=node.id,
            ))
            continue

        flow_nodes.append(FlowNode(
            id=node.id,
            kind=node.kind,
            lane_id=node.lane_id,
            label=node.label or node.name or "",
            size=size_for(node.kind),
        ))
    return flow_nodes


# -------------------------
# Edges
# -------------------------

def _build_edges(
    payload: ProcessPayload,
    flow_nodes: Dict[str, FlowNode],
    diagnostics: List[Diagnostic],
) -> List[FlowEdge]:
    seen_pairs: Set[Tuple[str, str]] = set()
    deduped = []
    for edge in payload.edges:
        pair = (edge.source, edge.target)
        if pair in seen_pairs:
            diagnostics.append(Diagnostic(
                code="DUPLICATE_EDGE",
                message=f"edge '{edge.id or '-'.join(pair)}' repeats {edge.source} -> {edge.target}; dropped",
                object_id=edge.id or "",
            ))
            continue
        seen_pairs.add(pair)
        deduped.append(edge)

    edges: List[FlowEdge] = []
    used_ids: Set[str] = set()

    for edge in deduped:
        edge_id = edge.id or f"{edge.source}-{edge.target}"

        missing = [ref for ref in (edge.source, edge.target) if ref not in flow_nodes]
        if missing:
            diagnostics.append(Diagnostic(
                code="DANGLING_EDGE",
                message=f"edge '{edge_id}' references unknown node(s) {', '.join(missing)}; dropped",
                object_id=edge_id,
            ))
            continue

        if flow_nodes[edge.source].kind == NodeKind.END:
            diagnostics.append(Diagnostic(
                code="TERMINAL_SOURCE",
                message=f"edge '{edge_id}' leaves end node '{edge.source}'; dropped",
                object_id=edge_id,
            ))
            continue

        if edge_id in used_ids:
            suffix = 2
            while f"{edge_id}-{suffix}" in used_ids:
                suffix += 1
            renamed = f"{edge_id}-{suffix}"
            diagnostics.append(Diagnostic(
                code="DUPLICATE_EDGE_ID",
                message=f"edge id '{edge_id}' already used; renamed to '{renamed}'",
                object_id=renamed,
            ))
            edge_id = renamed
        used_ids.add(edge_id)

        edges.append(FlowEdge(
            id=edge_id,
            source=edge.source,
            target=edge.target,
            label=edge.label,
            style=edge.style,
        ))
    return edges


# -------------------------
# Metadata
# -------------------------

def _build_metadata(
    payload: ProcessPayload,
    lanes: "OrderedDict[str, str]",
    flow_node_count: int,
    created_at: Optional[str],
) -> Metadata:
    declared = payload.metadata
    process_name = declared.process_name if declared else next(iter(lanes.values()))
    complexity = (declared.complexity if declared else None) or derive_complexity(flow_node_count)

    if created_at is None and declared and declared.created_at:
        created_at = declared.created_at.isoformat()

    return Metadata(
        process_name=process_name,
        total_elements=flow_node_count,
        complexity=complexity,
        created_at=created_at or "",
    )


# -------------------------
# Entry point
# -------------------------

def normalize_payload(
    payload: ProcessPayload,
    created_at: Optional[str] = None,
) -> ValidationResult:
    """
    Normalize validated payload data.

    Returns a success carrying a NormalizedGraph (skeleton diagram plus
    diagnostics), or a failure when nothing usable survives.
    """
    diagnostics: List[Diagnostic] = []

    unique = _dedupe_nodes(_declared_nodes(payload), diagnostics)
    lanes = _build_lanes(unique, diagnostics)
    flow_nodes = _build_flow_nodes(unique, set(lanes), diagnostics)
    node_index = {node.id: node for node in flow_nodes}
    edges = _build_edges(payload, node_index, diagnostics)

    if not lanes or not flow_nodes:
        missing = "lanes" if not lanes else "process nodes"
        errors = [PipelineError("normalizer", f"no {missing} survived normalization")]
        errors.extend(PipelineError("normalizer", d.message) for d in diagnostics)
        return ValidationResult.failure(errors)

    lane_values = tuple(
        Lane(
            id=lane_id,
            name=name,
            member_ids=tuple(n.id for n in flow_nodes if n.lane_id == lane_id),
            bounds=_lane_default_bounds(),
        )
        for lane_id, name in lanes.items()
    )

    diagram = Diagram(
        lanes=lane_values,
        nodes=tuple(flow_nodes),
        edges=tuple(edges),
        metadata=_build_metadata(payload, lanes, len(flow_nodes), created_at),
    )

    trace(
        "NORMALIZER",
        f"{len(lane_values)} lanes, {len(flow_nodes)} nodes, {len(edges)} edges, "
        f"{len(diagnostics)} diagnostics",
    )
    return ValidationResult.success(NormalizedGraph(diagram=diagram, diagnostics=diagnostics))


def _lane_default_bounds() -> Bounds:
    lane_size = size_for(NodeKind.LANE)
    return Bounds(0, 0, lane_size.width, lane_size.height)
