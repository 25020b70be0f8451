"""
Session registry: one Session per live connection.
"""

import logging
from typing import Dict, List

from src.core.errors import InvalidName, SessionNotFound
from src.core.session import Session

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Tracks joined connections and their display names."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    def join(self, connection_id: str, name: str) -> Session:
        """
        Creates the session for a connection, or renames it on re-join.
        Does not broadcast anything.
        """
        clean_name = name.strip() if isinstance(name, str) else ""
        if not clean_name:
            raise InvalidName("Name must not be empty")

        session = self._sessions.get(connection_id)
        if session is None:
            session = Session(connection_id=connection_id, name=clean_name)
            self._sessions[connection_id] = session
            logger.info("Session %s joined as %s", connection_id, clean_name)
        elif session.name != clean_name:
            logger.info("Session %s renamed %s -> %s", connection_id, session.name, clean_name)
            session.name = clean_name

        return session

    def remove(self, connection_id: str) -> Session | None:
        """Removes and returns the session. Unknown ids are ignored."""
        return self._sessions.pop(connection_id, None)

    def get(self, connection_id: str) -> Session:
        session = self._sessions.get(connection_id)
        if session is None:
            raise SessionNotFound(f"No session for connection {connection_id}")
        return session

    def find(self, connection_id: str) -> Session | None:
        return self._sessions.get(connection_id)

    def sessions(self) -> List[Session]:
        """Snapshot of all live sessions."""
        return list(self._sessions.values())

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
