"""Session state shared by tool invocations on one connection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from shared.errors import SessionStateError

LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "default"


@dataclass
class SessionContext:
    """Mutable state handed to every tool handler.

    ``current_artifact_id`` is overwritten by each presentation creation (one
    artifact at a time). ``credential`` is stored by ``set-access-token`` and read
    by every call that talks to the slides backend. There is no locking: two
    concurrent writers race and the last one wins.
    """

    current_artifact_id: Optional[str] = None
    credential: Optional[str] = None

    def require_credential(self) -> str:
        if not self.credential:
            raise SessionStateError(
                "No access token has been stored for this session. "
                "Call set-access-token with the user's access token first."
            )
        return self.credential

    def require_artifact_id(self) -> str:
        if not self.current_artifact_id:
            raise SessionStateError(
                "No presentation has been created in this session. "
                "Call create-presentation first or pass a presentationId."
            )
        return self.current_artifact_id


class SessionContextStore:
    """Hands out one SessionContext per session key, created on first use.

    A stdio server process has a single connection, so in practice there is one
    context per process. Keying by connection keeps separate clients apart when a
    server is reused by more than one.
    """

    def __init__(self) -> None:
        self._contexts: Dict[str, SessionContext] = {}

    def get(self, session_key: str = DEFAULT_SESSION_KEY) -> SessionContext:
        context = self._contexts.get(session_key)
        if context is None:
            context = SessionContext()
            self._contexts[session_key] = context
            LOGGER.debug(f"Created session context: {session_key}")
        return context

    def discard(self, session_key: str) -> None:
        if self._contexts.pop(session_key, None) is not None:
            LOGGER.debug(f"Dropped session context: {session_key}")

    def __contains__(self, session_key: str) -> bool:
        return session_key in self._contexts

    def __len__(self) -> int:
        return len(self._contexts)
