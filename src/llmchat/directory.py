"""
Directory REST API — models, personas, session CRUD and stored history.

Every failure surfaces as DirectoryUnavailable; nothing here retries.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx

from llmchat.errors import DirectoryUnavailable, LLMChatError
from llmchat.models.session import HistoryMessage, ModelInfo, Persona, Session
from llmchat.transport.http import HttpClient

logger = logging.getLogger(__name__)


def _data(json_data: Any) -> Any:
    """Unwrap the backend's `{"data": ...}` envelope."""
    if isinstance(json_data, dict) and "data" in json_data:
        return json_data["data"] or []
    return json_data


class DirectoryClient:
    def __init__(self, http: HttpClient):
        self._http = http

    async def _call(self, what: str, coro: Any, parse: Optional[Callable[[Any], Any]] = None) -> Any:
        # pydantic.ValidationError is a ValueError, so a malformed body lands here too
        try:
            result = await coro
            return parse(result) if parse else result
        except (LLMChatError, httpx.HTTPError, ValueError, TypeError) as e:
            logger.warning(f"Failed to {what}: {e}")
            raise DirectoryUnavailable(f"Failed to {what}: {e}") from e

    async def list_models(self) -> list[ModelInfo]:
        return await self._call(
            "list models", self._http.get("/models"),
            lambda r: [ModelInfo.model_validate(m) for m in _data(r)],
        )

    async def list_personas(self) -> list[Persona]:
        return await self._call(
            "list personas", self._http.get("/personas"),
            lambda r: [Persona.model_validate(p) for p in _data(r)],
        )

    async def list_sessions(self) -> list[Session]:
        """List sessions in the order the backend returns them."""
        return await self._call(
            "list sessions", self._http.get("/chat/sessions"),
            lambda r: [Session.model_validate(s) for s in _data(r)],
        )

    async def create_session(self, model_name: str, persona: Optional[str] = None) -> Session:
        result = await self._call("create session", self._http.post("/chat/session", {
            "model_name": model_name,
            "persona": persona or "",
        }))
        session_id = result.get("session_id") if isinstance(result, dict) else None
        if not session_id:
            raise DirectoryUnavailable(f"Failed to create session: no session_id in {result!r}")
        return Session(id=session_id, model_name=model_name, persona=persona or None)

    async def delete_session(self, session_id: str) -> None:
        await self._call("delete session", self._http.delete(f"/chat/sessions/{session_id}"))

    async def fetch_messages(self, session_id: str) -> list[HistoryMessage]:
        """Stored history for a session, oldest first."""
        return await self._call(
            "fetch messages", self._http.get(f"/chat/sessions/{session_id}/messages"),
            lambda r: [HistoryMessage.model_validate(m) for m in _data(r)],
        )

    async def recover_stream(self, session_id: str) -> Optional[str]:
        """Partial response cached by the backend for an interrupted turn, if any."""
        try:
            result = await self._http.get("/chat/stream/recover", params={"session_id": session_id})
        except LLMChatError as e:
            if (e.details or {}).get("status_code") == 404:
                return None
            raise DirectoryUnavailable(f"Failed to recover stream: {e}") from e
        except httpx.HTTPError as e:
            raise DirectoryUnavailable(f"Failed to recover stream: {e}") from e
        if not isinstance(result, dict):
            return None
        return result.get("cached_response") or None

    async def delete_file(self, file_id: str) -> None:
        """Delete an uploaded attachment."""
        await self._call("delete file", self._http.delete(f"/files/{file_id}"))
