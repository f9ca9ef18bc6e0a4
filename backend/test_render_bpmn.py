from xml.etree import ElementTree as ET

from swimlane.compiler.lanes import stack_lanes
from swimlane.compiler.layout import apply_layout
from swimlane.compiler.normalize import normalize_payload
from swimlane.compiler.render_bpmn import BPMNRenderer, bpmn_id, render_bpmn
from swimlane.ir.diagram import ProcessPayload

NS = {
    "bpmn": "http://www.omg.org/spec/BPMN/20100524/MODEL",
    "bpmndi": "http://www.omg.org/spec/BPMN/20100524/DI",
    "dc": "http://www.omg.org/spec/DD/20100524/DC",
    "di": "http://www.omg.org/spec/DD/20100524/DI",
}

PAYLOAD = {
    "nodes": [
        {"id": "clerk", "kind": "lane-container", "name": "Clerk"},
        {"id": "boss", "kind": "lane-container", "name": "Manager"},
        {"id": "s", "kind": "start", "laneId": "clerk", "label": "Claim received"},
        {"id": "t", "kind": "task", "laneId": "clerk", "label": "Check claim"},
        {"id": "ok", "kind": "decision", "laneId": "boss", "label": "Approve?"},
        {"id": "paid", "kind": "end", "laneId": "boss", "label": "Paid"},
    ],
    "edges": [
        {"id": "f1", "source": "s", "target": "t"},
        {"id": "f2", "source": "t", "target": "ok"},
        {"id": "f3", "source": "ok", "target": "paid", "label": "yes"},
    ],
    "metadata": {"processName": "Expense claim", "complexity": "low"},
}


def _diagram(data=PAYLOAD):
    payload = ProcessPayload.model_validate(data)
    diagram = normalize_payload(payload, created_at="2024-05-01T10:00:00+00:00").data.diagram
    return stack_lanes(apply_layout(diagram))


def _root(xml):
    return ET.fromstring(xml.encode("utf-8"))


def test_definitions_root_and_namespaces():
    xml = render_bpmn(_diagram())

    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    root = _root(xml)
    assert root.tag == f"{{{NS['bpmn']}}}definitions"
    assert root.get("id") == "Definitions_1"


def test_one_participant_and_process_per_lane():
    root = _root(render_bpmn(_diagram()))

    participants = root.findall("bpmn:collaboration/bpmn:participant", NS)
    assert [(p.get("id"), p.get("name"), p.get("processRef")) for p in participants] == [
        ("Participant_clerk", "Clerk", "Process_clerk"),
        ("Participant_boss", "Manager", "Process_boss"),
    ]

    processes = root.findall("bpmn:process", NS)
    assert [p.get("id") for p in processes] == ["Process_clerk", "Process_boss"]
    assert all(p.get("isExecutable") == "false" for p in processes)


def test_element_tags_follow_kind():
    root = _root(render_bpmn(_diagram()))
    clerk, boss = root.findall("bpmn:process", NS)

    assert clerk.find("bpmn:startEvent", NS).get("id") == "Event_s"
    assert clerk.find("bpmn:task", NS).get("name") == "Check claim"
    assert boss.find("bpmn:exclusiveGateway", NS).get("id") == "Gateway_ok"
    assert boss.find("bpmn:endEvent", NS).get("name") == "Paid"


def test_intra_lane_edges_are_sequence_flows():
    root = _root(render_bpmn(_diagram()))
    clerk, boss = root.findall("bpmn:process", NS)

    flow = clerk.find("bpmn:sequenceFlow", NS)
    assert (flow.get("id"), flow.get("sourceRef"), flow.get("targetRef")) == ("Flow_f1", "Event_s", "Activity_t")
    assert clerk.find("bpmn:task/bpmn:incoming", NS).text == "Flow_f1"

    labelled = boss.find("bpmn:sequenceFlow", NS)
    assert labelled.get("name") == "yes"


def test_cross_lane_edges_are_message_flows():
    root = _root(render_bpmn(_diagram()))

    flows = root.findall("bpmn:collaboration/bpmn:messageFlow", NS)
    assert [(f.get("id"), f.get("sourceRef"), f.get("targetRef")) for f in flows] == [
        ("Flow_f2", "Activity_t", "Gateway_ok"),
    ]


def test_documentation_carries_metadata():
    root = _root(render_bpmn(_diagram()))
    text = root.find("bpmn:collaboration/bpmn:documentation", NS).text

    assert "Expense claim" in text
    assert "complexity: low" in text
    assert "2024-05-01T10:00:00+00:00" in text


def test_shapes_use_absolute_bounds():
    diagram = _diagram()
    root = _root(render_bpmn(diagram))
    plane = root.find("bpmndi:BPMNDiagram/bpmndi:BPMNPlane", NS)

    shapes = {s.get("bpmnElement"): s for s in plane.findall("bpmndi:BPMNShape", NS)}
    assert shapes["Participant_boss"].get("isHorizontal") == "true"

    boss_lane = diagram.lane("boss").bounds
    gateway = shapes["Gateway_ok"].find("dc:Bounds", NS)
    node = diagram.node("ok")
    assert float(gateway.get("x")) == boss_lane.x + node.position.x
    assert float(gateway.get("y")) == boss_lane.y + node.position.y
    assert (gateway.get("width"), gateway.get("height")) == ("70", "70")


def test_edges_have_two_center_waypoints():
    diagram = _diagram()
    root = _root(render_bpmn(diagram))
    plane = root.find("bpmndi:BPMNDiagram/bpmndi:BPMNPlane", NS)

    edges = plane.findall("bpmndi:BPMNEdge", NS)
    assert len(edges) == 3
    for edge in edges:
        assert len(edge.findall("di:waypoint", NS)) == 2

    f2 = next(e for e in edges if e.get("bpmnElement") == "Flow_f2")
    start, end = f2.findall("di:waypoint", NS)
    source = diagram.absolute_bounds(diagram.node("t")).center
    target = diagram.absolute_bounds(diagram.node("ok")).center
    assert (float(start.get("x")), float(start.get("y"))) == (source.x, source.y)
    assert (float(end.get("x")), float(end.get("y"))) == (target.x, target.y)


def test_output_is_byte_identical():
    assert render_bpmn(_diagram()) == render_bpmn(_diagram())


def test_ids_are_sanitized_and_unique():
    data = {
        "nodes": [
            {"id": "lane 1", "kind": "lane-container", "name": "Lane"},
            {"id": "a b", "kind": "task", "laneId": "lane 1"},
            {"id": "a_b", "kind": "task", "laneId": "lane 1"},
        ],
        "edges": [{"source": "a b", "target": "a_b"}],
    }
    renderer = BPMNRenderer(_diagram(data))
    root = _root(renderer.render())

    tasks = root.findall("bpmn:process/bpmn:task", NS)
    assert [t.get("id") for t in tasks] == ["Activity_a_b", "Activity_a_b_2"]
    assert root.find("bpmn:process", NS).get("id") == "Process_lane_1"
    assert bpmn_id("x<y>&z") == "x_y__z"
