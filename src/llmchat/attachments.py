"""
Attachment staging — files picked for the next turn, validated up front and
uploaded one at a time when the turn is sent.
"""

import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional, Sequence, Union

import httpx

from llmchat.config import ALLOWED_EXTENSIONS, MAX_ATTACHMENT_BYTES
from llmchat.errors import LLMChatError, UploadError, ValidationError
from llmchat.models.attachment import FlushResult, StagedAttachment
from llmchat.transport.http import HttpClient

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/files/upload"


class AttachmentStager:
    def __init__(
        self,
        http: HttpClient,
        max_bytes: int = MAX_ATTACHMENT_BYTES,
        allowed_extensions: Sequence[str] = ALLOWED_EXTENSIONS,
    ):
        self._http = http
        self._max_bytes = max_bytes
        self._allowed = {ext.lower() for ext in allowed_extensions}
        self._staged: list[StagedAttachment] = []
        self._in_flight: list[str] = []

    @property
    def staged(self) -> list[StagedAttachment]:
        return list(self._staged)

    @property
    def in_flight_ids(self) -> list[str]:
        """Remote ids of the attachments uploaded for the turn currently being sent."""
        return list(self._in_flight)

    def __len__(self) -> int:
        return len(self._staged)

    def stage(self, source: Union[str, Path, bytes], name: Optional[str] = None) -> StagedAttachment:
        """Validate and stage a file (path, or raw bytes with a name). Raises ValidationError."""
        if isinstance(source, bytes):
            if not name:
                raise ValidationError("A name is required when staging raw bytes")
        else:
            path = Path(source)
            name = name or path.name

        ext = Path(name).suffix.lower()
        if ext not in self._allowed:
            raise ValidationError(f"Unsupported file type: {ext or name}", name)

        payload: Optional[bytes] = None
        if isinstance(source, bytes):
            payload = source
            size = len(source)
        else:
            try:
                size = path.stat().st_size
            except OSError as e:
                raise ValidationError(f"Cannot read file {name}: {e}", name) from e
        if size > self._max_bytes:
            raise ValidationError(
                f"File too large: {name} ({size} bytes, limit {self._max_bytes})", name,
            )
        if payload is None:
            payload = path.read_bytes()

        attachment = StagedAttachment(
            id=uuid.uuid4().hex,
            name=name,
            size=size,
            mime_hint=mimetypes.guess_type(name)[0],
            payload=payload,
        )
        self._staged.append(attachment)
        return attachment

    def unstage(self, attachment_id: str) -> None:
        self._staged = [a for a in self._staged if a.id != attachment_id]

    async def flush(self, session_id: str) -> FlushResult:
        """Upload every staged file in order. Failures are collected, not raised.

        The staged list is emptied whatever the outcome; attachments are single-use.
        """
        staged, self._staged = self._staged, []
        result = FlushResult()
        for attachment in staged:
            try:
                file_id = await self._upload(session_id, attachment)
            except UploadError as e:
                logger.warning(f"Upload failed for {attachment.name}: {e}")
                result.failed.append(attachment.name)
                result.errors.append(e)
            else:
                result.file_ids.append(file_id)
                result.uploaded.append(attachment.name)
            finally:
                attachment.payload = None
        self._in_flight.extend(result.file_ids)
        return result

    def release(self, file_ids: Sequence[str]) -> None:
        """Forget the in-flight ids of a finished turn. Staged files are untouched."""
        self._in_flight = [i for i in self._in_flight if i not in file_ids]

    async def _upload(self, session_id: str, attachment: StagedAttachment) -> str:
        try:
            resp = await self._http.upload(
                UPLOAD_PATH,
                attachment.name,
                attachment.payload or b"",
                content_type=attachment.mime_hint,
                data={"session_id": session_id},
            )
        except (LLMChatError, httpx.HTTPError, ValueError) as e:
            raise UploadError(attachment.name, str(e)) from e
        file_id = resp.get("file_id") if isinstance(resp, dict) else None
        if file_id in (None, ""):
            raise UploadError(attachment.name, f"No file_id in upload response: {resp!r}")
        return str(file_id)
