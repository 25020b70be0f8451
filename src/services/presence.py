"""
Typing presence aggregation.

Clients resend ``typing=true`` on every keystroke and may never send the
matching ``false``. Each true signal (re)arms a per-session expiry timer on the
event loop; the TypingSet is recomputed on every effective transition and a
change event is emitted only when its membership actually changes.
"""

import asyncio
import logging
from typing import Callable, FrozenSet, List

from src.core.events import TypingChanged
from src.core.message import utcnow
from src.core.session import Session
from src.services.registry import SessionRegistry

logger = logging.getLogger(__name__)

TypingListener = Callable[[TypingChanged], object]


class TypingPresence:
    """Derives the set of currently typing names from session signals."""

    def __init__(self, registry: SessionRegistry, on_change: TypingListener, window: float = 1.25):
        """
        :param registry: source of live sessions.
        :param on_change: called once per membership change.
        :param window: seconds after the last true signal before a session stops typing.
        """
        self.registry = registry
        self.on_change = on_change
        self.window = window
        self._names: FrozenSet[str] = frozenset()

    def signal(self, session: Session, is_typing: bool) -> None:
        """Applies a typing signal from a joined session."""
        if is_typing:
            session.last_typing_signal_at = utcnow()
            session.cancel_expiry()
            session.expiry = asyncio.get_running_loop().call_later(self.window, self._expire, session)
            changed = not session.is_typing
            session.is_typing = True
        else:
            session.cancel_expiry()
            changed = session.is_typing
            session.is_typing = False

        if changed:
            self._recompute()

    def discard(self, session: Session) -> None:
        """Drops a session's typing state on teardown. Call after removing it from the registry."""
        session.cancel_expiry()
        if session.is_typing:
            session.is_typing = False
            self._recompute()

    def refresh(self) -> None:
        """Recomputes the set, e.g. after a typing session was renamed."""
        self._recompute()

    def typing_names(self) -> List[str]:
        return sorted(self._names)

    def _expire(self, session: Session) -> None:
        session.expiry = None
        if self.registry.find(session.connection_id) is not session:
            return
        if session.is_typing:
            logger.debug("Typing expired for %s (%s)", session.name, session.connection_id)
            session.is_typing = False
            self._recompute()

    def _recompute(self) -> None:
        # No suspension point between reading sessions and emitting, so the
        # emitted set is never stale.
        names = frozenset(s.name for s in self.registry.sessions() if s.is_typing)
        if names == self._names:
            return

        added = names - self._names
        removed = self._names - names
        self._names = names
        current = sorted(names)

        for name in sorted(removed):
            self.on_change(TypingChanged(name=name, is_typing=False, names=current))
        for name in sorted(added):
            self.on_change(TypingChanged(name=name, is_typing=True, names=current))
