from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

from swimlane.compiler.types import Diagnostic, Diagram
from swimlane.ir.diagram import ProcessPayload
from swimlane.ir.errors import PipelineError
from swimlane.utils.payload_extract import ExtractedPayload


def request_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class PipelineContext:
    # Raw input (authoritative)
    raw_text: str = ""
    created_at: Optional[str] = None            # caller time; wins over the payload's createdAt
    require_metadata: bool = False

    # Extraction / parsing
    payload: Optional[ExtractedPayload] = None
    data: Optional[Any] = None                  # already parsed tree (edited payloads)

    # Validated + normalized
    validated: Optional[ProcessPayload] = None
    diagram: Optional[Diagram] = None           # replaced by layout and lane sizing
    diagnostics: List[Diagnostic] = field(default_factory=list)

    # Output
    bpmn_xml: Optional[str] = None

    errors: List[PipelineError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors and self.bpmn_xml is not None

    @property
    def error_messages(self) -> List[str]:
        return [str(e) for e in self.errors]

    def add_error(self, error: PipelineError):
        self.errors.append(error)
