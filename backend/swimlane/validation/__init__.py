"""
Validation module for extracted process payloads.
"""

from swimlane.validation.bpmn_reader import bpmn_to_payload
from swimlane.validation.schema_validator import (
    parse_payload,
    validate_data,
    validate_payload,
)

__all__ = [
    "bpmn_to_payload",
    "parse_payload",
    "validate_data",
    "validate_payload",
]
