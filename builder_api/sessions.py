from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

log = logging.getLogger(__name__)


class Session(BaseModel):
    description: str = ""
    extracted_content: str = ""
    # append-only; order is the order feedback arrived in
    feedback: List[str] = Field(default_factory=list)


class SessionStore:
    """Process-local session map. No eviction, no persistence, no locking.

    Callers must not await between reading a session and mutating it.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    def get_or_create(self, session_id: Optional[str] = None) -> Tuple[str, Session]:
        sid = session_id or str(uuid.uuid4())
        session = self._sessions.get(sid)
        if session is None:
            session = Session()
            self._sessions[sid] = session
            log.debug("sessions: created sid=%s total=%d", sid, len(self._sessions))
        return sid, session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def clear(self) -> None:
        self._sessions.clear()

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
