"""
Turn controller — runs one user turn end to end.

Idle -> Uploading -> Sending -> Streaming -> Completed | Failed -> Idle

A session has at most one turn outstanding. Whatever happens on the way,
the outstanding flag is cleared, the ids uploaded for the turn are released
and the session list is refreshed before the controller goes back to Idle.
Files staged after the upload belong to a later turn and are left alone.

Deltas are applied only while the assistant message is still in the
active view. If the user switched away or deleted the session, the turn
is abandoned: its remaining deltas are discarded and the response body is
closed. The backend may still finish the turn on its side.
"""

import asyncio
import logging
from typing import Optional

import httpx

from llmchat.attachments import AttachmentStager
from llmchat.directory import DirectoryClient
from llmchat.errors import DirectoryUnavailable, StreamAbortedByServer, TransportError
from llmchat.models.attachment import FlushResult
from llmchat.models.message import Role, StreamingState, TurnResult, TurnState
from llmchat.store import SessionStore
from llmchat.transport import sse
from llmchat.transport.http import HttpClient

logger = logging.getLogger(__name__)

STREAM_PATH = "/chat/message/stream"
ERROR_PREFIX = "Sorry, an error occurred: "


def attachment_summary(names: list[str]) -> str:
    """Display-only suffix for the user message; never sent to the backend."""
    if not names:
        return ""
    return f" [Attachments: {', '.join(names)}]"


class TurnController:
    def __init__(
        self,
        http: HttpClient,
        store: SessionStore,
        stager: AttachmentStager,
        directory: DirectoryClient,
    ):
        self._http = http
        self._store = store
        self._stager = stager
        self._directory = directory
        self._states: dict[str, TurnState] = {}
        self._uploaded: dict[str, list[str]] = {}

    def state(self, session_id: str) -> TurnState:
        return self._states.get(session_id, TurnState.IDLE)

    def _enter(self, session_id: str, state: TurnState) -> None:
        self._states[session_id] = state
        logger.debug(f"Turn {session_id}: {state.value}")

    async def send(
        self,
        text: str,
        *,
        model_name: Optional[str] = None,
        persona: Optional[str] = None,
    ) -> Optional[TurnResult]:
        """Send a turn on the active session. Returns None if the turn was not accepted.

        Rejected when there is neither text nor a staged attachment, when no
        session is active, or when the active session already has a turn
        outstanding.
        """
        message = text.strip()
        session_id = self._store.active_session_id
        if (not message and not len(self._stager)) or not session_id or self._store.is_typing(session_id):
            return None

        session = self._store.get_session(session_id)
        if model_name is None:
            model_name = session.model_name if session else ""
        if persona is None and session is not None:
            persona = session.persona

        # No await between the guard and this flag.
        self._store.set_typing(session_id, True)
        cancelled = False
        try:
            return await self._run(session_id, message, model_name, persona)
        except asyncio.CancelledError:
            cancelled = True
            raise
        finally:
            self._stager.release(self._uploaded.pop(session_id, []))
            self._store.set_typing(session_id, False)
            self._enter(session_id, TurnState.IDLE)
            if not cancelled:
                await self._refresh_sessions()

    async def _run(
        self, session_id: str, message: str, model_name: str, persona: Optional[str],
    ) -> TurnResult:
        flushed = FlushResult()
        if len(self._stager):
            self._enter(session_id, TurnState.UPLOADING)
            flushed = await self._stager.flush(session_id)
            self._uploaded[session_id] = flushed.file_ids

        self._enter(session_id, TurnState.SENDING)
        result = TurnResult(
            session_id=session_id,
            state=TurnState.SENDING,
            uploaded=flushed.uploaded,
            failed_uploads=flushed.failed,
        )
        self._store.append_message(
            session_id, Role.USER, message + attachment_summary(flushed.uploaded),
        )
        reply = self._store.append_message(
            session_id, Role.ASSISTANT, "", StreamingState.PENDING,
        )
        if reply is None:
            # Switched away while uploading.
            result.state = TurnState.ABANDONED
            return result

        body = {
            "session_id": session_id,
            "model_name": model_name,
            "message": message,
            "persona": persona or "",
            "file_ids": flushed.file_ids,
        }
        try:
            await self._stream(session_id, reply.id, body, result)
        except asyncio.CancelledError:
            self._store.finalize(reply.id, StreamingState.ERRORED, ERROR_PREFIX + "cancelled")
            raise
        except StreamAbortedByServer as e:
            logger.warning(f"Server aborted turn on {session_id}: {e}")
            self._fail(reply.id, result, str(e))
        except TransportError as e:
            logger.error(f"Turn on {session_id} failed: {e}")
            self._fail(reply.id, result, str(e))
        return result

    async def _stream(self, session_id: str, message_id: int, body: dict, result: TurnResult) -> None:
        try:
            async with self._http.stream_post(STREAM_PATH, body) as resp:
                if resp.status_code >= 400:
                    detail = (await resp.aread()).decode("utf-8", errors="replace")[:200]
                    raise TransportError(f"HTTP {resp.status_code}: {detail}", resp.status_code)

                self._enter(session_id, TurnState.STREAMING)
                self._store.set_state(message_id, StreamingState.STREAMING)
                decoder = sse.StreamDecoder()
                async for event in decoder.decode(resp.aiter_bytes()):
                    if not self._store.owns(message_id, session_id):
                        logger.info(f"Session {session_id} left mid-stream; abandoning turn")
                        result.state = TurnState.ABANDONED
                        return
                    if event.type == sse.DELTA:
                        self._store.apply_delta(message_id, event.content)
                    elif event.type == sse.ERROR:
                        raise StreamAbortedByServer(event.error or "stream aborted")
                    elif event.type == sse.DONE:
                        break
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        message = self._store.find(message_id)
        self._store.finalize(message_id, StreamingState.COMPLETE)
        self._enter(session_id, TurnState.COMPLETED)
        result.state = TurnState.COMPLETED
        result.content = message.content if message else ""

    def _fail(self, message_id: int, result: TurnResult, reason: str) -> None:
        content = ERROR_PREFIX + reason
        self._store.finalize(message_id, StreamingState.ERRORED, content)
        self._enter(result.session_id, TurnState.FAILED)
        result.state = TurnState.FAILED
        result.error = reason
        result.content = content

    async def _refresh_sessions(self) -> None:
        try:
            sessions = await self._directory.list_sessions()
        except DirectoryUnavailable as e:
            logger.warning(f"Session list refresh after turn failed: {e}")
            return
        self._store.replace_sessions(sessions)
