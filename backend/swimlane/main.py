from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from swimlane import __version__
from swimlane.api.routes import router
from swimlane.api.sessions import SessionStore
from swimlane.config import CORS_ORIGINS, REQUIRE_METADATA
from swimlane.llm.client import LLMClient
from swimlane.pipeline.controller import PipelineController


def create_app(llm_client=None, require_metadata: bool = REQUIRE_METADATA) -> FastAPI:
    app = FastAPI(
        title="Swimlane Process Diagram Generator",
        version=__version__,
    )

    # Middleware FIRST
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes AFTER middleware
    app.include_router(router)

    app.state.sessions = SessionStore()
    app.state.llm_client = llm_client or LLMClient()
    app.state.controller = PipelineController(require_metadata=require_metadata)

    return app


app = create_app()
