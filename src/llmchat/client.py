"""
ChatClient / AsyncChatClient — main entry points wiring the engine together.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx

from llmchat.attachments import AttachmentStager
from llmchat.chat import TurnController
from llmchat.config import ClientSettings
from llmchat.directory import DirectoryClient
from llmchat.errors import DirectoryUnavailable
from llmchat.models.attachment import StagedAttachment
from llmchat.models.message import StoreSnapshot, TurnResult
from llmchat.models.session import ModelInfo, Persona, Session
from llmchat.store import Handler, SessionStore
from llmchat.transport.http import HttpClient

logger = logging.getLogger(__name__)


class AsyncChatClient:
    """Async chat client (primary)."""

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or ClientSettings()
        self.http = HttpClient(
            base_url=self.settings.base_url,
            token=self.settings.token,
            timeout=self.settings.timeout,
            stream_timeout=self.settings.stream_timeout,
            transport=transport,
        )
        self.directory = DirectoryClient(self.http)
        self.store = SessionStore(self.directory)
        self.attachments = AttachmentStager(
            self.http,
            max_bytes=self.settings.max_attachment_bytes,
            allowed_extensions=self.settings.allowed_extensions,
        )
        self.turns = TurnController(self.http, self.store, self.attachments, self.directory)

        self.selected_model: Optional[str] = self.settings.default_model
        self.selected_persona: Optional[str] = self.settings.default_persona

    async def __aenter__(self) -> "AsyncChatClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.http.close()

    def snapshot(self) -> StoreSnapshot:
        return self.store.snapshot()

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        return self.store.subscribe(handler)

    @property
    def is_typing(self) -> bool:
        return self.store.is_typing()

    async def list_models(self) -> list[ModelInfo]:
        return await self.directory.list_models()

    async def list_personas(self) -> list[Persona]:
        return await self.directory.list_personas()

    async def refresh_sessions(self) -> list[Session]:
        sessions = await self.directory.list_sessions()
        self.store.replace_sessions(sessions)
        return self.store.list_sessions()

    async def create_session(self, model_name: Optional[str] = None, persona: Optional[str] = None) -> Session:
        """Create a session with the selected model/persona and make it active."""
        model = model_name or self.selected_model
        if not model:
            raise ValueError("No model selected")
        session = await self.directory.create_session(model, persona or self.selected_persona)
        self.store.upsert_session(session)
        self.store.activate_empty(session.id)
        self.selected_model = model
        await self._refresh_quietly()
        logger.info(f"Created session {session.id} ({model})")
        return session

    async def switch_session(self, session_id: str) -> None:
        await self.store.switch_to(session_id)
        session = self.store.get_session(session_id)
        if session is not None and session.model_name:
            self.selected_model = session.model_name

    async def delete_session(self, session_id: str) -> None:
        """Delete on the backend first; local state only changes once the backend confirmed."""
        await self.directory.delete_session(session_id)
        self.store.remove_session(session_id)
        await self._refresh_quietly()

    async def _refresh_quietly(self) -> None:
        try:
            await self.refresh_sessions()
        except DirectoryUnavailable as e:
            logger.warning(f"Session list refresh failed: {e}")

    def stage(self, source: Union[str, Path, bytes], name: Optional[str] = None) -> StagedAttachment:
        return self.attachments.stage(source, name=name)

    def unstage(self, attachment_id: str) -> None:
        self.attachments.unstage(attachment_id)

    async def send(self, text: str) -> Optional[TurnResult]:
        """Send a turn on the active session; None if the turn was not accepted."""
        return await self.turns.send(text, model_name=self.selected_model, persona=self.selected_persona)

    async def recover_stream(self, session_id: Optional[str] = None) -> Optional[str]:
        sid = session_id or self.store.active_session_id
        if not sid:
            return None
        return await self.directory.recover_stream(sid)


class ChatClient:
    """Sync wrapper around AsyncChatClient. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncChatClient(**kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def store(self) -> SessionStore:
        return self._async.store

    def snapshot(self) -> StoreSnapshot:
        return self._async.snapshot()

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        return self._async.subscribe(handler)

    def list_models(self) -> list[ModelInfo]:
        return self._run(self._async.list_models())

    def list_personas(self) -> list[Persona]:
        return self._run(self._async.list_personas())

    def refresh_sessions(self) -> list[Session]:
        return self._run(self._async.refresh_sessions())

    def create_session(self, model_name: Optional[str] = None, persona: Optional[str] = None) -> Session:
        return self._run(self._async.create_session(model_name, persona))

    def switch_session(self, session_id: str) -> None:
        self._run(self._async.switch_session(session_id))

    def delete_session(self, session_id: str) -> None:
        self._run(self._async.delete_session(session_id))

    def stage(self, source: Union[str, Path, bytes], name: Optional[str] = None) -> StagedAttachment:
        return self._async.stage(source, name=name)

    def unstage(self, attachment_id: str) -> None:
        self._async.unstage(attachment_id)

    def send(self, text: str) -> Optional[TurnResult]:
        return self._run(self._async.send(text))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
