import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://host.docker.internal:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "mistral:7b-instruct")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "300"))

# Reject payloads without a metadata block instead of deriving one
REQUIRE_METADATA = _env_flag("SWIMLANE_REQUIRE_METADATA")

# Print stage trace lines
TRACE_ENABLED = _env_flag("SWIMLANE_TRACE", "true")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]


def trace(tag: str, message: str) -> None:
    if TRACE_ENABLED:
        print(f"[{tag}] {message}")
