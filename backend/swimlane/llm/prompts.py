EXTRACTION_PROMPT = """
You turn a business process description into a SWIMLANE PROCESS GRAPH as strict JSON.

Rules:
- Output ONLY valid JSON
- No markdown, no explanations
- One lane per actor, role or department
- Every step belongs to exactly one lane
- Use a decision node for every branch; label its outgoing edges with the outcome
- End nodes have no outgoing edges
- Do not invent positions or sizes

Node kinds:
- "lane-container": a lane; has "name", never "laneId"
- "start": where the process begins
- "task": an activity
- "decision": a branching point
- "end": where the process finishes

JSON schema:
{
  "nodes": [
    { "id": "string", "kind": "lane-container", "name": "string" },
    { "id": "string", "kind": "start|task|decision|end", "label": "string", "laneId": "lane id" }
  ],
  "edges": [
    { "id": "string", "source": "node id", "target": "node id", "label": "optional outcome" }
  ],
  "metadata": {
    "processName": "string",
    "totalElements": 0,
    "complexity": "low|medium|high"
  }
}
"""


def build_extraction_prompt(description: str) -> str:
    return EXTRACTION_PROMPT.strip() + "\n\nProcess description:\n" + description.strip()
