"""
llmchat — streaming chat client for an LLM chat backend.

Sessions, file attachments and incremental (event-stream) assistant replies.
"""

from llmchat.client import ChatClient, AsyncChatClient
from llmchat.config import ClientSettings, load_settings
from llmchat.errors import (
    LLMChatError,
    ValidationError,
    UploadError,
    DirectoryUnavailable,
    TransportError,
    StreamAbortedByServer,
    ProtocolDecodeWarning,
)
from llmchat.models.message import Message, Role, StreamingState, TurnResult, TurnState
from llmchat.transport.sse import StreamDecoder, StreamEvent

__version__ = "0.1.0"
__all__ = [
    "ChatClient",
    "AsyncChatClient",
    "ClientSettings",
    "load_settings",
    "LLMChatError",
    "ValidationError",
    "UploadError",
    "DirectoryUnavailable",
    "TransportError",
    "StreamAbortedByServer",
    "ProtocolDecodeWarning",
    "Message",
    "Role",
    "StreamingState",
    "TurnResult",
    "TurnState",
    "StreamDecoder",
    "StreamEvent",
]
