"""AsyncChatClient session lifecycle."""

import pytest

from llmchat.config import ClientSettings
from llmchat.errors import DirectoryUnavailable
from fakes import BASE_URL, make_client


class TestSessionLifecycle:

    @pytest.mark.asyncio
    async def test_create_session_becomes_active(self, backend):
        async with make_client(backend, ClientSettings(base_url=BASE_URL, default_model="gpt-4o")) as client:
            session = await client.create_session(persona="pirate")
            snap = client.snapshot()
            assert snap.active_session_id == session.id
            assert snap.messages == []
            assert snap.sessions[0].id == session.id
            assert backend.requests_to("POST", "/api/chat/session")

    @pytest.mark.asyncio
    async def test_create_session_requires_model(self, backend):
        async with make_client(backend) as client:
            with pytest.raises(ValueError):
                await client.create_session()

    @pytest.mark.asyncio
    async def test_switch_selects_session_model(self, client):
        await client.switch_session("s2")
        assert client.selected_model == "qwen"
        assert client.snapshot().active_session_id == "s2"

    @pytest.mark.asyncio
    async def test_delete_inactive_session_keeps_view(self, client):
        await client.delete_session("s2")
        snap = client.snapshot()
        assert snap.active_session_id == "s1"
        assert [s.id for s in snap.sessions] == ["s1"]

    @pytest.mark.asyncio
    async def test_failed_delete_changes_nothing(self, client, backend):
        backend.failing_paths.add("/api/chat/sessions/s1")
        before = client.snapshot()
        with pytest.raises(DirectoryUnavailable):
            await client.delete_session("s1")
        assert client.snapshot() == before

    @pytest.mark.asyncio
    async def test_recover_stream_for_active_session(self, client):
        assert await client.recover_stream() == "partial text"


class TestAuth:

    @pytest.mark.asyncio
    async def test_token_sent_as_bearer(self, backend):
        async with make_client(backend, ClientSettings(base_url=BASE_URL, token="t0k")) as client:
            await client.list_models()
        assert backend.requests[-1].headers["Authorization"] == "Bearer t0k"


def test_sync_client_round_trip(backend):
    from llmchat.client import ChatClient

    backend.stream = [b'data: {"content":"H"}\n', b'data: {"content":"i"}\n', b'data: {"done":true}\n']
    client = ChatClient(settings=ClientSettings(base_url=BASE_URL), transport=backend.transport())
    try:
        assert [s.id for s in client.refresh_sessions()] == ["s1", "s2"]
        client.switch_session("s1")
        result = client.send("hi")
        assert result.content == "Hi"
        assert client.snapshot().messages[-1].content == "Hi"
    finally:
        client.close()
