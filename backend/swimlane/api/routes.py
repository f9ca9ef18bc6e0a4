from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from swimlane.api.sessions import SessionEntry, SessionStore
from swimlane.config import trace
from swimlane.ir.errors import GeneratorError
from swimlane.pipeline.context import PipelineContext, request_timestamp
from swimlane.pipeline.controller import PipelineController
from swimlane.schemas import (
    DiagramResponse,
    ErrorResponse,
    ExtractRequest,
    ValidateRequest,
)

router = APIRouter()


# ============================
# Dependencies
# ============================

def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_llm_client(request: Request):
    return request.app.state.llm_client


def get_controller(request: Request) -> PipelineController:
    return request.app.state.controller


# ============================
# Helpers
# ============================

def _respond(
    context: PipelineContext,
    operation: str,
    created_at: str,
    sessions: SessionStore,
    session_id: Optional[str],
):
    if context.errors:
        trace("API", f"{operation} failed: {context.error_messages}")
        if session_id:
            sessions.record(session_id, SessionEntry(
                operation=operation,
                created_at=created_at,
                status="error",
                errors=context.error_messages,
            ))
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(errors=context.error_messages).model_dump(),
        )

    status = "warning" if context.diagnostics else "success"
    diagram = context.diagram.to_dict()

    if session_id:
        sessions.record(
            session_id,
            SessionEntry(operation=operation, created_at=created_at, status=status),
            diagram=diagram,
            bpmn_xml=context.bpmn_xml,
        )

    return DiagramResponse(
        status=status,
        diagram=diagram,
        bpmn_xml=context.bpmn_xml,
        diagnostics=[d.to_dict() for d in context.diagnostics],
        session_id=session_id,
    )


# ============================
# Routes
# ============================

@router.get("/health")
def health():
    return {"status": "ok"}


@router.post(
    "/extract",
    response_model=DiagramResponse,
    responses={422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
def extract_diagram(
    request: ExtractRequest,
    controller: PipelineController = Depends(get_controller),
    sessions: SessionStore = Depends(get_sessions),
    llm_client=Depends(get_llm_client),
):
    created_at = request_timestamp()

    try:
        context = controller.extract(request.description, llm_client, created_at=created_at)
    except GeneratorError as e:
        trace("API", f"generator failed: {e.message}")
        errors = [f"generator: {e.message}"]
        if request.session_id:
            sessions.record(request.session_id, SessionEntry(
                operation="extract",
                created_at=created_at,
                status="error",
                errors=errors,
            ))
        return JSONResponse(status_code=502, content=ErrorResponse(errors=errors).model_dump())

    return _respond(context, "extract", created_at, sessions, request.session_id)


@router.post(
    "/diagram/validate",
    response_model=DiagramResponse,
    responses={422: {"model": ErrorResponse}},
)
def validate_diagram(
    request: ValidateRequest,
    controller: PipelineController = Depends(get_controller),
    sessions: SessionStore = Depends(get_sessions),
):
    created_at = request_timestamp()
    context = controller.revalidate(request.payload, created_at=created_at)
    return _respond(context, "validate", created_at, sessions, request.session_id)


@router.get("/sessions/{session_id}")
def get_session(session_id: str, sessions: SessionStore = Depends(get_sessions)):
    session = sessions.get(session_id)
    if session is None:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(errors=[f"session: '{session_id}' not found"]).model_dump(),
        )
    return session
