from swimlane.compiler.lanes import stack_lanes
from swimlane.compiler.layout import apply_layout, compute_layout
from swimlane.compiler.normalize import normalize_payload
from swimlane.compiler.render_bpmn import render_bpmn

__all__ = [
    "normalize_payload",
    "compute_layout",
    "apply_layout",
    "stack_lanes",
    "render_bpmn",
]
