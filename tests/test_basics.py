"""Basic unit tests for the llmchat package."""

from llmchat import (
    AsyncChatClient,
    ChatClient,
    LLMChatError,
    ValidationError,
    UploadError,
    DirectoryUnavailable,
    TransportError,
    StreamAbortedByServer,
    ProtocolDecodeWarning,
    __version__,
)


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert ChatClient is not None
    assert AsyncChatClient is not None


def test_error_hierarchy():
    for cls in (ValidationError, UploadError, DirectoryUnavailable, TransportError,
                StreamAbortedByServer, ProtocolDecodeWarning):
        assert issubclass(cls, LLMChatError)


def test_error_attributes():
    err = LLMChatError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    upload = UploadError("a.txt", "HTTP 500")
    assert upload.code == "upload_error"
    assert upload.name == "a.txt"
    assert upload.details == {"name": "a.txt"}

    transport = TransportError("HTTP 502: bad gateway", 502)
    assert transport.status_code == 502
