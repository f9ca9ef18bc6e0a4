import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SessionEntry:
    operation: str          # extract | validate
    created_at: str
    status: str             # success | warning | error
    errors: List[str] = field(default_factory=list)


@dataclass
class Session:
    session_id: str
    history: List[SessionEntry] = field(default_factory=list)
    latest_diagram: Optional[Dict[str, Any]] = None
    latest_bpmn_xml: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "history": [
                {
                    "operation": entry.operation,
                    "created_at": entry.created_at,
                    "status": entry.status,
                    "errors": list(entry.errors),
                }
                for entry in self.history
            ],
            "latest_diagram": self.latest_diagram,
            "latest_bpmn_xml": self.latest_bpmn_xml,
        }


class SessionStore:
    """
    Per-session request history, owned by one app instance.
    Sync handlers run in FastAPI's thread pool, so every access takes the lock.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def record(
        self,
        session_id: str,
        entry: SessionEntry,
        diagram: Optional[Dict[str, Any]] = None,
        bpmn_xml: Optional[str] = None,
    ) -> None:
        with self._lock:
            session = self._sessions.setdefault(session_id, Session(session_id=session_id))
            session.history.append(entry)
            if diagram is not None:
                session.latest_diagram = diagram
                session.latest_bpmn_xml = bpmn_xml

    def get(self, session_id: str) -> Optional[dict]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.to_dict() if session else None
