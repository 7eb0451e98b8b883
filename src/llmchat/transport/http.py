"""
REST HTTP client for the chat backend — JSON calls, multipart upload, streaming POST.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from llmchat.config import DEFAULT_BASE_URL
from llmchat.errors import LLMChatError

USER_AGENT = "llmchat-client/0.1.0"


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = 30.0,
        stream_timeout: float = 130.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._stream_timeout = stream_timeout
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api",
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def set_token(self, token: str) -> None:
        self._token = token

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _check(resp: httpx.Response) -> None:
        if resp.status_code >= 400:
            raise LLMChatError(
                "http_error",
                f"HTTP {resp.status_code}: {resp.text[:200]}",
                {"status_code": resp.status_code},
            )

    async def get(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        resp = await self._client.get(path, params=params, headers=self._auth_headers())
        self._check(resp)
        return resp.json()

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        resp = await self._client.post(path, json=body, headers=self._auth_headers())
        self._check(resp)
        return resp.json()

    async def delete(self, path: str) -> Any:
        resp = await self._client.delete(path, headers=self._auth_headers())
        self._check(resp)
        return resp.json() if resp.content else None

    async def upload(
        self,
        path: str,
        filename: str,
        payload: bytes,
        content_type: Optional[str] = None,
        data: Optional[dict[str, str]] = None,
    ) -> Any:
        """Multipart form upload with the file under the `file` field."""
        files = {"file": (filename, payload, content_type or "application/octet-stream")}
        resp = await self._client.post(path, files=files, data=data, headers=self._auth_headers())
        self._check(resp)
        return resp.json()

    @asynccontextmanager
    async def stream_post(self, path: str, body: dict[str, Any]) -> AsyncIterator[httpx.Response]:
        """Open a long-lived POST and hand back the response with its body unread.

        The status is not checked here; the caller decides how a failed
        status ends its turn. Leaving the block closes the body.
        """
        headers = {**self._auth_headers(), "Accept": "text/event-stream"}
        timeout = httpx.Timeout(self._client.timeout.connect, read=self._stream_timeout)
        async with self._client.stream("POST", path, json=body, headers=headers, timeout=timeout) as resp:
            yield resp

    async def close(self) -> None:
        await self._client.aclose()
