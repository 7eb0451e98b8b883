"""In-process fake chat backend and stream helpers shared by the tests."""

import asyncio
import json
from typing import Any, AsyncIterator, Callable, Optional, Union

import httpx

from llmchat.client import AsyncChatClient
from llmchat.config import ClientSettings

BASE_URL = "http://chat.test"

StreamBody = Union[list[bytes], Callable[[], AsyncIterator[bytes]]]

async def iter_chunks(chunks: list[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk

def frames(*payloads: Any) -> bytes:
    """Encode payloads the way the backend does: `data: <json>` plus a blank line."""
    return b"".join(b"data: " + json.dumps(p).encode() + b"\n\n" for p in payloads)

class FakeBackend:
    """In-process stand-in for the chat backend, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.sessions: list[dict[str, Any]] = [
            {"SessionID": "s1", "ModelName": "gpt-4o", "Title": "First", "PersonaName": "",
             "LastMessageAt": "2024-05-01T10:00:00Z", "MessageCount": 0},
            {"SessionID": "s2", "ModelName": "qwen", "Title": "Second", "PersonaName": "pirate",
             "LastMessageAt": "2024-05-01T09:00:00Z", "MessageCount": 2},
        ]
        self.history: dict[str, list[dict[str, Any]]] = {
            "s1": [],
            "s2": [
                {"id": 7, "role": "user", "content": "old question"},
                {"id": 8, "role": "assistant", "content": "old answer"},
            ],
        }
        self.models: list[Any] = ["gpt-4o", {"name": "qwen", "description": "local"}]
        self.personas = [{"name": "pirate", "content": "Talk like a pirate."}]
        self.stream: StreamBody = [frames({"content": "ok", "done": False}, {"content": "", "done": True})]
        self.stream_status = 200
        self.failing_uploads: set[str] = set()
        self.failing_paths: set[str] = set()
        self.connect_error = False
        self.next_file_id = 100
        self.created = 0

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def requests_to(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def stream_bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests_to("POST", "/api/chat/message/stream")]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.failing_paths:
            return httpx.Response(500, json={"error": "boom"})

        if request.method == "GET" and path == "/api/models":
            return httpx.Response(200, json={"data": self.models})
        if request.method == "GET" and path == "/api/personas":
            return httpx.Response(200, json={"data": self.personas})
        if request.method == "GET" and path == "/api/chat/sessions":
            return httpx.Response(200, json={"data": self.sessions, "pagination": {"page": 1}})
        if request.method == "GET" and path.startswith("/api/chat/sessions/") and path.endswith("/messages"):
            sid = path.split("/")[4]
            return httpx.Response(200, json={"data": self.history.get(sid, []), "has_more": False})
        if request.method == "POST" and path == "/api/chat/session":
            body = json.loads(request.content)
            self.created += 1
            sid = f"new{self.created}"
            self.sessions.insert(0, {"SessionID": sid, "ModelName": body["model_name"],
                                     "PersonaName": body["persona"]})
            return httpx.Response(200, json={"session_id": sid})
        if request.method == "DELETE" and path.startswith("/api/chat/sessions/"):
            sid = path.rsplit("/", 1)[1]
            self.sessions = [s for s in self.sessions if s["SessionID"] != sid]
            return httpx.Response(200, json={"message": "deleted"})
        if request.method == "POST" and path == "/api/files/upload":
            for name in self.failing_uploads:
                if f'filename="{name}"'.encode() in request.content:
                    return httpx.Response(500, json={"error": f"cannot save {name}"})
            self.next_file_id += 1
            return httpx.Response(200, json={"message": "ok", "file_id": self.next_file_id})
        if request.method == "DELETE" and path.startswith("/api/files/"):
            return httpx.Response(200, json={"message": "file deleted"})
        if request.method == "GET" and path == "/api/chat/stream/recover":
            if request.url.params.get("session_id") == "s1":
                return httpx.Response(200, json={"cached_response": "partial text"})
            return httpx.Response(404, json={"error": "no cached response"})
        if request.method == "POST" and path == "/api/chat/message/stream":
            if self.connect_error:
                raise httpx.ConnectError("Connection refused", request=request)
            if self.stream_status != 200:
                return httpx.Response(self.stream_status, json={"error": "bad request"})
            body = self.stream() if callable(self.stream) else iter_chunks(self.stream)
            return httpx.Response(200, headers={"Content-Type": "text/event-stream"}, content=body)
        return httpx.Response(404, json={"error": "not found"})

class Gate:
    """Stream body that pauses after the first chunks until released."""

    def __init__(self, before: list[bytes], after: list[bytes]):
        self.before = before
        self.after = after
        self.released = asyncio.Event()

    async def __call__(self) -> AsyncIterator[bytes]:
        for chunk in self.before:
            yield chunk
        await self.released.wait()
        for chunk in self.after:
            yield chunk


def make_client(backend: FakeBackend, settings: Optional[ClientSettings] = None) -> AsyncChatClient:
    return AsyncChatClient(
        settings=settings or ClientSettings(base_url=BASE_URL),
        transport=backend.transport(),
    )
