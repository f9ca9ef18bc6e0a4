"""
Reads a pre-rendered BPMN document into the same generic tree the object
form parses to, so both payload forms share one schema check.
"""

from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

# Element tag -> node kind. Other *Event / *Task / *Gateway tags pass through
# untouched and are rejected by the kind check.
TAG_KINDS: Dict[str, str] = {
    "startEvent": "start",
    "endEvent": "end",
    "task": "task",
    "userTask": "task",
    "serviceTask": "task",
    "manualTask": "task",
    "scriptTask": "task",
    "sendTask": "task",
    "receiveTask": "task",
    "businessRuleTask": "task",
    "callActivity": "task",
    "subProcess": "task",
    "exclusiveGateway": "decision",
    "parallelGateway": "decision",
    "inclusiveGateway": "decision",
    "eventBasedGateway": "decision",
    "complexGateway": "decision",
}

FLOW_NODE_SUFFIXES = ("Event", "Task", "Gateway")


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _edge(flow: ET.Element, style: Optional[str] = None) -> dict:
    edge = {
        "id": flow.get("id"),
        "source": flow.get("sourceRef"),
        "target": flow.get("targetRef"),
    }
    if flow.get("name"):
        edge["label"] = flow.get("name")
    if style:
        edge["style"] = style
    return edge


def bpmn_to_payload(xml_text: str) -> dict:
    """
    Convert a BPMN document into {lanes, nodes, edges}.

    Lanes come from the process laneSet when present, otherwise from the
    participant that references the process. Raises ET.ParseError on
    malformed XML and ValueError on a non-BPMN root.
    """
    root = ET.fromstring(xml_text)
    if _local(root.tag) != "definitions":
        raise ValueError(f"expected a definitions root element, found '{_local(root.tag)}'")

    participant_by_process = {
        participant.get("processRef"): participant
        for participant in root.iter()
        if _local(participant.tag) == "participant"
    }

    lanes: List[dict] = []
    nodes: List[dict] = []
    edges: List[dict] = []

    for process in _children(root, "process"):
        process_id = process.get("id")
        membership: Dict[str, str] = {}
        default_lane = None

        inner_lanes = [el for el in process.iter() if _local(el.tag) == "lane"]
        if inner_lanes:
            for lane in inner_lanes:
                lane_id = lane.get("id")
                lanes.append({"id": lane_id, "name": lane.get("name") or lane_id})
                for ref in _children(lane, "flowNodeRef"):
                    if ref.text and ref.text.strip():
                        membership[ref.text.strip()] = lane_id
        else:
            participant = participant_by_process.get(process_id)
            if participant is not None:
                default_lane = participant.get("id")
                name = participant.get("name") or process.get("name") or default_lane
            else:
                default_lane = process_id
                name = process.get("name") or process_id
            lanes.append({"id": default_lane, "name": name})

        for element in process:
            tag = _local(element.tag)
            if tag == "sequenceFlow":
                edges.append(_edge(element))
            elif tag in TAG_KINDS or tag.endswith(FLOW_NODE_SUFFIXES):
                node_id = element.get("id")
                nodes.append({
                    "id": node_id,
                    "kind": TAG_KINDS.get(tag, tag),
                    "label": element.get("name") or "",
                    "laneId": membership.get(node_id, default_lane),
                })

    for flow in root.iter():
        if _local(flow.tag) == "messageFlow":
            edges.append(_edge(flow, style="message"))

    return {"lanes": lanes, "nodes": nodes, "edges": edges}
