from typing import Any, Optional, Union

from swimlane.config import REQUIRE_METADATA, trace
from swimlane.ir.errors import GeneratorError
from swimlane.llm.prompts import build_extraction_prompt
from swimlane.pipeline.context import PipelineContext
from swimlane.pipeline.stages import (
    ExtractionStage,
    LaneSizingStage,
    LayoutStage,
    NormalizeStage,
    SchemaStage,
    SerializeStage,
)
from swimlane.utils.payload_extract import OBJECT_FORM, XML_FORM, ExtractedPayload


class PipelineController:
    """
    Runs the stages in order and stops hard on the first failure.
    No stage is retried: every stage after extraction is deterministic.
    """

    def __init__(self, require_metadata: bool = REQUIRE_METADATA):
        self.require_metadata = require_metadata

        self.extraction_stage = ExtractionStage()
        self.core_stages = [
            SchemaStage(),
            NormalizeStage(),
            LayoutStage(),
            LaneSizingStage(),
            SerializeStage(),
        ]

    def _new_context(self, raw_text: str, created_at: Optional[str]) -> PipelineContext:
        return PipelineContext(
            raw_text=raw_text,
            created_at=created_at,
            require_metadata=self.require_metadata,
        )

    def _execute(self, context: PipelineContext, stages) -> PipelineContext:
        for stage in stages:
            result = stage.run(context)

            if not result.is_valid:
                for error in result.errors:
                    context.add_error(error)
                trace("PIPELINE", f"{stage.name} failed: {len(result.errors)} error(s)")
                break  # hard stop on failure

            trace("PIPELINE", f"{stage.name} ok")

        return context

    def run(self, text: str, created_at: Optional[str] = None) -> PipelineContext:
        """Free text in, laid-out diagram + BPMN XML (or errors) out."""
        context = self._new_context(text, created_at)
        return self._execute(context, [self.extraction_stage, *self.core_stages])

    def revalidate(
        self,
        payload: Union[str, dict, Any],
        created_at: Optional[str] = None,
    ) -> PipelineContext:
        """
        Re-run validation through serialization on an edited payload.
        Strings are taken verbatim (XML when they start with a tag, JSON
        otherwise); anything else is treated as an already parsed tree.
        """
        if isinstance(payload, str):
            context = self._new_context(payload, created_at)
            text = payload.strip()
            form = XML_FORM if text.startswith("<") else OBJECT_FORM
            context.payload = ExtractedPayload(form=form, text=text)
        else:
            context = self._new_context("", created_at)
            context.data = payload

        return self._execute(context, self.core_stages)

    def extract(self, description: str, client, created_at: Optional[str] = None) -> PipelineContext:
        """Prompt the generator with a process description and run its reply."""
        prompt = build_extraction_prompt(description)

        try:
            reply = client.generate(prompt)
        except Exception as e:
            raise GeneratorError(str(e)) from e

        trace("PIPELINE", f"generator replied with {len(reply)} chars")
        return self.run(reply, created_at=created_at)
