"""
The six pipeline stages. Each one is a thin adapter between PipelineContext
and the module that does the work.
"""

from abc import ABC, abstractmethod

from swimlane.compiler.lanes import stack_lanes
from swimlane.compiler.layout import apply_layout
from swimlane.compiler.normalize import normalize_payload
from swimlane.compiler.render_bpmn import render_bpmn
from swimlane.ir.errors import NoPayloadFound, PipelineError
from swimlane.ir.validation import ValidationResult
from swimlane.pipeline.context import PipelineContext, request_timestamp
from swimlane.utils.payload_extract import extract_payload
from swimlane.validation.schema_validator import validate_data, validate_payload


class PipelineStage(ABC):
    name: str   # error field prefix and trace label

    @abstractmethod
    def run(self, context: PipelineContext) -> ValidationResult:
        """
        Read the previous stage's output from the context, write this
        stage's output back, and return a failure only for terminal errors.
        Stages never call each other.
        """


class ExtractionStage(PipelineStage):
    name = "extractor"

    def run(self, context: PipelineContext) -> ValidationResult:
        try:
            context.payload = extract_payload(context.raw_text)
        except NoPayloadFound as e:
            return ValidationResult.failure([PipelineError(self.name, e.message)])
        return ValidationResult.success(context.payload)


class SchemaStage(PipelineStage):
    name = "schema"

    def run(self, context: PipelineContext) -> ValidationResult:
        if context.data is not None:
            result = validate_data(context.data, require_metadata=context.require_metadata)
        elif context.payload is not None:
            result = validate_payload(context.payload, require_metadata=context.require_metadata)
        else:
            return ValidationResult.failure([PipelineError("payload", "nothing to validate")])

        if result.is_valid:
            context.validated = result.data
        return result


class NormalizeStage(PipelineStage):
    name = "normalizer"

    def run(self, context: PipelineContext) -> ValidationResult:
        created_at = context.created_at
        declared = context.validated.metadata
        if created_at is None and not (declared and declared.created_at):
            created_at = request_timestamp()

        result = normalize_payload(context.validated, created_at=created_at)
        if result.is_valid:
            context.diagram = result.data.diagram
            context.diagnostics = list(result.data.diagnostics)
        return result


class LayoutStage(PipelineStage):
    name = "layout"

    def run(self, context: PipelineContext) -> ValidationResult:
        context.diagram = apply_layout(context.diagram)
        return ValidationResult.success(context.diagram)


class LaneSizingStage(PipelineStage):
    name = "lanes"

    def run(self, context: PipelineContext) -> ValidationResult:
        context.diagram = stack_lanes(context.diagram)
        return ValidationResult.success(context.diagram)


class SerializeStage(PipelineStage):
    name = "serializer"

    def run(self, context: PipelineContext) -> ValidationResult:
        context.bpmn_xml = render_bpmn(context.diagram)
        return ValidationResult.success(context.bpmn_xml)
