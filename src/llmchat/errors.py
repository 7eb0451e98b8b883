"""
llmchat error types — one class per failure kind a turn can run into.
"""

from typing import Any, Optional


class LLMChatError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ValidationError(LLMChatError):
    """A file was rejected at staging time (extension or size)."""

    def __init__(self, message: str, name: str = ""):
        super().__init__("validation_error", message, {"name": name})
        self.name = name


class UploadError(LLMChatError):
    """One attachment failed to upload. Remaining uploads and the turn continue."""

    def __init__(self, name: str, message: str):
        super().__init__("upload_error", message, {"name": name})
        self.name = name


class DirectoryUnavailable(LLMChatError):
    def __init__(self, message: str):
        super().__init__("directory_unavailable", message)


class TransportError(LLMChatError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("transport_error", message, {"status_code": status_code})
        self.status_code = status_code


class StreamAbortedByServer(LLMChatError):
    def __init__(self, message: str):
        super().__init__("stream_aborted", message)


class ProtocolDecodeWarning(LLMChatError):
    """A single event line could not be decoded. Recorded, never raised."""

    def __init__(self, message: str, line: str):
        super().__init__("protocol_decode_warning", message, {"line": line})
        self.line = line
