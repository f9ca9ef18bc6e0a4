from pydantic import BaseModel
from typing import Optional, Dict, Any, List, Union


class ExtractRequest(BaseModel):
    description: str
    session_id: Optional[str] = None


class ValidateRequest(BaseModel):
    """Edited payload: an object-form tree or an XML / JSON string"""
    payload: Union[Dict[str, Any], str]
    session_id: Optional[str] = None


class DiagnosticResponse(BaseModel):
    code: str
    message: str
    object_id: str = ""


class DiagramResponse(BaseModel):
    status: str  # success | warning
    diagram: Dict[str, Any]
    bpmn_xml: str
    diagnostics: List[DiagnosticResponse] = []
    session_id: Optional[str] = None


class ErrorResponse(BaseModel):
    errors: List[str]
