"""
Schema validation for extracted payloads.

Both payload forms (JSON object, BPMN XML) are parsed to a generic tree and
checked against the pydantic process-graph models. Parse failures and schema
failures share one error contract: a list of "<field>: <message>" errors.
"""

import json
from typing import Any, List
from xml.etree import ElementTree as ET

from pydantic import ValidationError as PydanticValidationError

from swimlane.config import REQUIRE_METADATA
from swimlane.ir.diagram import ProcessPayload
from swimlane.ir.errors import PipelineError
from swimlane.ir.validation import ValidationResult
from swimlane.utils.payload_extract import ExtractedPayload, XML_FORM
from swimlane.validation.bpmn_reader import bpmn_to_payload


def _format_loc(loc) -> str:
    if not loc:
        return "payload"
    return ".".join(str(part) for part in loc)


def _pydantic_errors(exc: PydanticValidationError) -> List[PipelineError]:
    return [
        PipelineError(field=_format_loc(err["loc"]), message=err["msg"])
        for err in exc.errors()
    ]


def parse_payload(payload: ExtractedPayload) -> Any:
    """Parse payload text into a generic tree. Raises on malformed syntax."""
    if payload.form == XML_FORM:
        return bpmn_to_payload(payload.text)
    return json.loads(payload.text)


def validate_data(data: Any, require_metadata: bool = REQUIRE_METADATA) -> ValidationResult:
    """
    Validate an already parsed tree.

    Every violated constraint yields its own error; validation never stops at
    the first one.
    """
    if not isinstance(data, dict):
        return ValidationResult.failure([
            PipelineError("payload", f"expected an object, got {type(data).__name__}")
        ])

    errors: List[PipelineError] = []
    if require_metadata and data.get("metadata") is None:
        errors.append(PipelineError("metadata", "Field required"))

    try:
        model = ProcessPayload.model_validate(data)
    except PydanticValidationError as exc:
        errors.extend(_pydantic_errors(exc))
        model = None

    if errors:
        return ValidationResult.failure(errors)
    return ValidationResult.success(model)


def validate_payload(
    payload: ExtractedPayload,
    require_metadata: bool = REQUIRE_METADATA,
) -> ValidationResult:
    try:
        data = parse_payload(payload)
    except json.JSONDecodeError as exc:
        return ValidationResult.failure([PipelineError("payload", str(exc))])
    except ET.ParseError as exc:
        return ValidationResult.failure([PipelineError("payload", f"malformed XML: {exc}")])
    except ValueError as exc:
        return ValidationResult.failure([PipelineError("payload", str(exc))])

    return validate_data(data, require_metadata=require_metadata)
