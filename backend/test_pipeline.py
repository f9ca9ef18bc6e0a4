import pytest

from swimlane.compiler.render_bpmn import render_bpmn
from swimlane.ir.errors import GeneratorError
from swimlane.llm.prompts import build_extraction_prompt
from swimlane.pipeline.controller import PipelineController

CREATED_AT = "2024-05-01T10:00:00+00:00"

SCENARIO_TEXT = (
    '"nodes":[{"id":"1","kind":"lane-container","name":"Ops"},'
    '{"id":"2","kind":"start","laneId":"1"},'
    '{"id":"3","kind":"task","laneId":"1","label":"Review"},'
    '{"id":"4","kind":"end","laneId":"1"}],'
    '"edges":[{"id":"e1","source":"2","target":"3"},'
    '{"id":"e2","source":"3","target":"4"},'
    '{"id":"e2dup","source":"4","target":"2"}]'
)


class FakeGenerator:
    def __init__(self, reply):
        self.reply = reply
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        return self.reply


class BrokenGenerator:
    def generate(self, prompt):
        raise ConnectionError("connection refused")


def test_end_to_end_scenario():
    context = PipelineController().run(SCENARIO_TEXT, created_at=CREATED_AT)

    assert context.errors == []
    assert context.succeeded

    output = context.diagram.to_dict()
    assert len(output["nodes"]) == 4
    assert [e["id"] for e in output["edges"]] == ["e1", "e2"]
    assert [d.code for d in context.diagnostics] == ["TERMINAL_SOURCE"]

    lane = context.diagram.lanes[0]
    members = [context.diagram.node(node_id) for node_id in lane.member_ids]
    xs = [node.position.x for node in members]
    assert xs == sorted(xs) and len(set(xs)) == 3
    assert max(n.position.x + n.size.width for n in members) < lane.bounds.width

    assert output["metadata"]["processName"] == "Ops"
    assert output["metadata"]["totalElements"] == 3
    assert "<bpmn:definitions" in context.bpmn_xml


def test_run_is_deterministic():
    first = PipelineController().run(SCENARIO_TEXT, created_at=CREATED_AT)
    second = PipelineController().run(SCENARIO_TEXT, created_at=CREATED_AT)

    assert first.diagram == second.diagram
    assert first.bpmn_xml == second.bpmn_xml


def test_extraction_failure_stops_the_pipeline():
    context = PipelineController().run("I could not produce a diagram, sorry.", created_at=CREATED_AT)

    assert context.error_messages == ["extractor: no structured payload found in text"]
    assert context.diagram is None
    assert context.bpmn_xml is None


def test_schema_failure_stops_the_pipeline():
    text = 'Here: {"nodes": [{"id": "a", "kind": "swimlane"}], "edges": []}'
    context = PipelineController().run(text, created_at=CREATED_AT)

    assert not context.succeeded
    assert context.validated is None
    assert any(m.startswith("nodes.0.kind: ") for m in context.error_messages)


def test_syntax_error_is_reported_not_repaired():
    context = PipelineController().run('{"nodes": [], "edges": [,]}', created_at=CREATED_AT)

    assert len(context.errors) == 1
    assert context.error_messages[0].startswith("payload: ")


def test_required_metadata():
    context = PipelineController(require_metadata=True).run(SCENARIO_TEXT, created_at=CREATED_AT)
    assert "metadata: Field required" in context.error_messages


def test_revalidate_edited_object():
    controller = PipelineController()
    original = controller.run(SCENARIO_TEXT, created_at=CREATED_AT)

    edited = original.diagram.to_dict()
    edited["nodes"].append({"id": "5", "kind": "task", "laneId": "1", "label": "Archive"})
    edited["edges"].append({"id": "e3", "source": "3", "target": "5"})

    context = controller.revalidate(edited, created_at=CREATED_AT)

    assert context.succeeded
    assert context.diagram is not original.diagram
    assert [n.id for n in context.diagram.nodes] == ["2", "3", "4", "5"]
    assert context.diagram.metadata.total_elements == 4


def test_revalidate_own_output_is_stable():
    controller = PipelineController()
    original = controller.run(SCENARIO_TEXT, created_at=CREATED_AT)

    again = controller.revalidate(original.diagram.to_dict(), created_at=CREATED_AT)

    assert again.diagnostics == []
    assert again.diagram == original.diagram
    assert again.bpmn_xml == original.bpmn_xml


def test_revalidate_json_string():
    context = PipelineController().revalidate(
        '{"nodes": [{"id": "L", "kind": "lane-container", "name": "Desk"},'
        ' {"id": "t", "kind": "task", "laneId": "L"}], "edges": []}',
        created_at=CREATED_AT,
    )

    assert context.succeeded
    assert context.diagram.metadata.process_name == "Desk"


def test_revalidate_own_bpmn():
    controller = PipelineController()
    original = controller.run(SCENARIO_TEXT, created_at=CREATED_AT)

    context = controller.revalidate(original.bpmn_xml, created_at=CREATED_AT)

    assert context.succeeded
    assert len(context.diagram.nodes) == 3
    assert [lane.name for lane in context.diagram.lanes] == ["Ops"]
    assert len(context.diagram.edges) == 2


def test_xml_reply_runs_through_the_same_pipeline():
    xml = render_bpmn(PipelineController().run(SCENARIO_TEXT, created_at=CREATED_AT).diagram)
    context = PipelineController().run("Here is the BPMN:\n" + xml + "\nEnjoy!", created_at=CREATED_AT)

    assert context.succeeded
    assert context.payload.form == "xml"


def test_extract_prompts_the_generator():
    generator = FakeGenerator("```json\n{" + SCENARIO_TEXT + "}\n```")

    context = PipelineController().extract("An ops clerk reviews tickets.", generator, created_at=CREATED_AT)

    assert context.succeeded
    assert generator.prompts == [build_extraction_prompt("An ops clerk reviews tickets.")]
    assert "An ops clerk reviews tickets." in generator.prompts[0]


def test_generator_failure_is_raised():
    with pytest.raises(GeneratorError) as exc:
        PipelineController().extract("anything", BrokenGenerator(), created_at=CREATED_AT)

    assert "connection refused" in exc.value.message


def test_created_at_defaults_to_request_time():
    context = PipelineController().run(SCENARIO_TEXT)
    assert context.diagram.metadata.created_at


def test_errors_are_pipeline_errors():
    context = PipelineController().run("nothing structured", created_at=CREATED_AT)

    assert [(e.field, e.message) for e in context.errors] == [
        ("extractor", "no structured payload found in text"),
    ]


def test_payload_created_at_applies_when_caller_passes_none():
    text = "{" + SCENARIO_TEXT + ', "metadata": {"processName": "Ops", "createdAt": "2023-01-02T03:04:05+00:00"}}'

    context = PipelineController().run(text)

    assert context.diagram.metadata.created_at == "2023-01-02T03:04:05+00:00"


def test_caller_created_at_wins_over_payload():
    text = "{" + SCENARIO_TEXT + ', "metadata": {"processName": "Ops", "createdAt": "2023-01-02T03:04:05+00:00"}}'

    context = PipelineController().run(text, created_at=CREATED_AT)

    assert context.diagram.metadata.created_at == CREATED_AT
