"""
Attachment models — files staged for the next turn and the outcome of uploading them.
"""

from typing import Optional

from pydantic import BaseModel, Field

from llmchat.errors import UploadError


class StagedAttachment(BaseModel):
    id: str
    name: str
    size: int
    mime_hint: Optional[str] = None
    payload: Optional[bytes] = Field(default=None, repr=False)


class FlushResult(BaseModel):
    model_config = {"arbitrary_types_allowed": True}

    file_ids: list[str] = Field(default_factory=list)
    uploaded: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    errors: list[UploadError] = Field(default_factory=list, repr=False)

    @property
    def partial(self) -> bool:
        return bool(self.failed)
