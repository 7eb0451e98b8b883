"""
Conversation state models — local messages, turn states and the store snapshot.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from llmchat.models.session import Session


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class StreamingState(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    ERRORED = "errored"


TERMINAL_MESSAGE_STATES = {StreamingState.COMPLETE, StreamingState.ERRORED}


class Message(BaseModel):
    id: int  # local, never the backend's message id
    session_id: str
    role: Role
    content: str = ""
    streaming_state: StreamingState = StreamingState.COMPLETE


class TurnState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


class TurnResult(BaseModel):
    session_id: str
    state: TurnState
    content: str = ""
    error: Optional[str] = None
    uploaded: list[str] = Field(default_factory=list)
    failed_uploads: list[str] = Field(default_factory=list)


class StoreSnapshot(BaseModel):
    sessions: list[Session] = Field(default_factory=list)
    active_session_id: Optional[str] = None
    messages: list[Message] = Field(default_factory=list)
    is_typing: bool = False
