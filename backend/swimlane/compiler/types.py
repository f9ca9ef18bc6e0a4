from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from swimlane.ir.diagram import NodeKind


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class Bounds:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


# Fixed per-kind dimensions; never taken from the payload
KIND_SIZES: Dict[NodeKind, Size] = {
    NodeKind.START: Size(50, 50),
    NodeKind.TASK: Size(90, 50),
    NodeKind.DECISION: Size(70, 70),
    NodeKind.END: Size(50, 50),
    NodeKind.LANE: Size(720, 100),
}


def size_for(kind: NodeKind) -> Size:
    return KIND_SIZES[kind]


@dataclass(frozen=True)
class FlowNode:
    id: str
    kind: NodeKind
    lane_id: str
    label: str = ""
    size: Size = Size(90, 50)
    position: Point = Point()       # lane-relative top-left

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "label": self.label,
            "laneId": self.lane_id,
            "position": self.position.to_dict(),
            "size": self.size.to_dict(),
        }


@dataclass(frozen=True)
class Lane:
    id: str
    name: str
    member_ids: Tuple[str, ...] = ()
    bounds: Bounds = Bounds(0, 0, 720, 100)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": NodeKind.LANE.value,
            "name": self.name,
            "laneId": None,
            "memberIds": list(self.member_ids),
            "position": {"x": self.bounds.x, "y": self.bounds.y},
            "size": {"width": self.bounds.width, "height": self.bounds.height},
            "bounds": self.bounds.to_dict(),
        }


@dataclass(frozen=True)
class FlowEdge:
    id: str
    source: str
    target: str
    label: Optional[str] = None
    style: Optional[Union[str, Dict[str, Any]]] = None
    is_back_edge: bool = False      # set by layout

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
            "style": self.style,
            "isBackEdge": self.is_back_edge,
        }


@dataclass(frozen=True)
class Metadata:
    process_name: str
    total_elements: int
    complexity: str                 # low | medium | high
    created_at: str                 # ISO-8601, supplied by the caller

    def to_dict(self) -> dict:
        return {
            "processName": self.process_name,
            "totalElements": self.total_elements,
            "complexity": self.complexity,
            "createdAt": self.created_at or None,
        }


@dataclass(frozen=True)
class Diagram:
    lanes: Tuple[Lane, ...]
    nodes: Tuple[FlowNode, ...]
    edges: Tuple[FlowEdge, ...]
    metadata: Metadata

    def lane(self, lane_id: str) -> Optional[Lane]:
        return next((lane for lane in self.lanes if lane.id == lane_id), None)

    def node(self, node_id: str) -> Optional[FlowNode]:
        return next((node for node in self.nodes if node.id == node_id), None)

    def absolute_bounds(self, node: FlowNode) -> Bounds:
        """Member bounds in diagram coordinates (lane origin + lane-relative position)."""
        lane = self.lane(node.lane_id)
        origin_x = lane.bounds.x if lane else 0
        origin_y = lane.bounds.y if lane else 0
        return Bounds(
            origin_x + node.position.x,
            origin_y + node.position.y,
            node.size.width,
            node.size.height,
        )

    def to_dict(self) -> dict:
        nodes: List[dict] = [lane.to_dict() for lane in self.lanes]
        nodes.extend(node.to_dict() for node in self.nodes)
        return {
            "nodes": nodes,
            "edges": [edge.to_dict() for edge in self.edges],
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class Diagnostic:
    """A recovered referential problem: the element was pruned or adjusted."""
    code: str
    message: str
    object_id: str = ""

    def __str__(self) -> str:
        return f"normalizer: {self.message}"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "object_id": self.object_id}


@dataclass
class NormalizedGraph:
    diagram: Diagram
    diagnostics: List[Diagnostic] = field(default_factory=list)
