from dataclasses import replace
from typing import Dict, List, Tuple

from swimlane.compiler.layout import LayoutConfig
from swimlane.compiler.types import Bounds, Diagram, Lane, size_for
from swimlane.ir.diagram import NodeKind


def required_lane_size(diagram: Diagram, lane: Lane, config: LayoutConfig = LayoutConfig()) -> Tuple[float, float]:
    """
    Width/height a lane needs for its members. Member positions are
    lane-relative and already include the header and top padding. Height is
    measured to the bottom of the lowest row band so members stay centered.
    """
    members = [node for node in diagram.nodes if node.lane_id == lane.id]
    if not members:
        return (
            config.LANE_HEADER_WIDTH + 2 * config.LANE_PADDING,
            size_for(NodeKind.LANE).height,
        )

    width = max(n.position.x + n.size.width for n in members) + config.LANE_PADDING
    row_bottom = max(
        n.position.y - (config.ROW_HEIGHT - n.size.height) / 2 + config.ROW_HEIGHT
        for n in members
    )
    height = row_bottom + config.LANE_PADDING
    return width, height


def stack_lanes(diagram: Diagram, config: LayoutConfig = LayoutConfig()) -> Diagram:
    """
    Size every lane, give all lanes the widest required width and stack them
    top to bottom in declaration order.
    """
    min_height = size_for(NodeKind.LANE).height
    required: Dict[str, Tuple[float, float]] = {
        lane.id: required_lane_size(diagram, lane, config) for lane in diagram.lanes
    }

    # Narrow lanes are padded to the widest one
    uniform_width = max(width for width, _ in required.values())

    lanes: List[Lane] = []
    offset = 0.0
    for lane in diagram.lanes:
        height = max(required[lane.id][1], min_height)
        lanes.append(replace(lane, bounds=Bounds(0, offset, uniform_width, height)))
        offset += height + config.LANE_SPACING

    return replace(diagram, lanes=tuple(lanes))
