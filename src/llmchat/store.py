"""
Session store — the single place conversation state is mutated.

Holds the session list, the active session and its messages, and which
sessions have a turn outstanding. Only the active session's messages are
kept in memory; switching replaces the list wholesale with freshly
numbered messages, so a message id from an abandoned view never matches
again. Observers subscribe for change notifications or read `snapshot()`.
"""

import itertools
import logging
from typing import Any, Callable, Optional

from llmchat.directory import DirectoryClient
from llmchat.models.message import Message, Role, StoreSnapshot, StreamingState
from llmchat.models.session import Session

logger = logging.getLogger(__name__)

Handler = Callable[[str, dict[str, Any]], None]


class SessionStore:
    def __init__(self, directory: DirectoryClient):
        self._directory = directory
        self._sessions: dict[str, Session] = {}
        self._active: Optional[str] = None
        self._messages: list[Message] = []
        self._typing: set[str] = set()
        self._ids = itertools.count(1)
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Add a change handler `(kind, payload)`. Returns a cleanup function."""
        self._handlers.append(handler)

        def remove() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass
        return remove

    def _notify(self, kind: str, **payload: Any) -> None:
        for handler in list(self._handlers):
            try:
                handler(kind, payload)
            except Exception:
                logger.exception(f"Store handler failed on {kind!r}")

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            sessions=[s.model_copy() for s in self._sessions.values()],
            active_session_id=self._active,
            messages=[m.model_copy() for m in self._messages],
            is_typing=self.is_typing(),
        )

    @property
    def active_session_id(self) -> Optional[str]:
        return self._active

    @property
    def active_session(self) -> Optional[Session]:
        return self._sessions.get(self._active) if self._active else None

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def list_sessions(self) -> list[Session]:
        """Sessions in the order the backend last listed them."""
        return list(self._sessions.values())

    def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def upsert_session(self, session: Session) -> None:
        self._sessions[session.id] = session
        self._notify("sessions")

    def replace_sessions(self, sessions: list[Session]) -> None:
        """Take over a fresh listing. The active session stays active even if the listing lags."""
        fresh = {s.id: s for s in sessions}
        if self._active and self._active not in fresh and self._active in self._sessions:
            fresh[self._active] = self._sessions[self._active]
        self._sessions = fresh
        self._notify("sessions")

    def remove_session(self, session_id: str) -> None:
        """Forget a session locally. Removing the active one clears the view; unknown ids are ignored."""
        removed = self._sessions.pop(session_id, None) is not None
        if session_id == self._active:
            self._active = None
            self._messages = []
            removed = True
            self._notify("switched", session_id=None)
        if removed:
            self._notify("sessions")

    async def switch_to(self, session_id: str) -> None:
        """Make a session active and load its history. Switching to the active session is a no-op.

        History is fetched before anything changes, so a DirectoryUnavailable
        leaves the current view intact.
        """
        if session_id == self._active:
            return
        history = await self._directory.fetch_messages(session_id)
        self._active = session_id
        self._messages = [
            Message(
                id=next(self._ids),
                session_id=session_id,
                role=Role.ASSISTANT if h.role == Role.ASSISTANT.value else Role.USER,
                content=h.content,
                streaming_state=StreamingState.COMPLETE,
            )
            for h in history
            if h.role in (Role.USER.value, Role.ASSISTANT.value)
        ]
        self._notify("switched", session_id=session_id)

    def activate_empty(self, session_id: str) -> None:
        """Make a just-created session active with no history."""
        self._active = session_id
        self._messages = []
        self._notify("switched", session_id=session_id)

    def append_message(
        self,
        session_id: str,
        role: Role,
        content: str = "",
        state: StreamingState = StreamingState.COMPLETE,
    ) -> Optional[Message]:
        """Append to the active session's transcript. Returns None if `session_id` is not active."""
        if session_id != self._active:
            return None
        message = Message(
            id=next(self._ids), session_id=session_id, role=role,
            content=content, streaming_state=state,
        )
        self._messages.append(message)
        self._notify("message", message_id=message.id)
        return message

    def find(self, message_id: int) -> Optional[Message]:
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def owns(self, message_id: int, session_id: str) -> bool:
        """True while the message is still part of `session_id`'s active view."""
        if session_id != self._active:
            return False
        message = self.find(message_id)
        return message is not None and message.session_id == session_id

    def set_state(self, message_id: int, state: StreamingState) -> None:
        message = self.find(message_id)
        if message is not None:
            message.streaming_state = state

    def apply_delta(self, message_id: int, text: str) -> bool:
        message = self.find(message_id)
        if message is None:
            return False
        message.content += text
        self._notify("delta", message_id=message_id, text=text)
        return True

    def finalize(self, message_id: int, state: StreamingState, content: Optional[str] = None) -> bool:
        """Move a message to a terminal state, optionally replacing its content."""
        message = self.find(message_id)
        if message is None:
            return False
        if content is not None:
            message.content = content
        message.streaming_state = state
        self._notify("finalized", message_id=message_id, state=state.value)
        return True

    def is_typing(self, session_id: Optional[str] = None) -> bool:
        sid = session_id or self._active
        return sid is not None and sid in self._typing

    def set_typing(self, session_id: str, typing: bool) -> None:
        if typing:
            self._typing.add(session_id)
        else:
            self._typing.discard(session_id)
        self._notify("typing", session_id=session_id, typing=typing)
