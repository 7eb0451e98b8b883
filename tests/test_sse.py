"""Event-stream decoder: framing, chunk boundaries, malformed input."""

import random

import pytest

from llmchat.errors import ProtocolDecodeWarning
from llmchat.transport.sse import StreamDecoder, delta, done, error
from fakes import iter_chunks

STREAM = (
    b": heartbeat\n\n"
    b'data: {"content": "He", "done": false}\n\n'
    b'data: {"content": "llo, \xe4\xb8\x96\xe7\x95\x8c", "done": false}\n\n'
    b"data: {not json\n\n"
    b'data: {"content": "!", "done": false}\n\n'
    b'data: {"content": "", "done": true}\n\n'
)

EXPECTED = [delta("He"), delta("llo, 世界"), delta("!"), delta(""), done()]


def decode_all(chunks: list[bytes]) -> list:
    decoder = StreamDecoder()
    events = []
    for chunk in chunks:
        events.extend(decoder.feed(chunk))
    events.extend(decoder.close())
    return events


class TestChunkBoundaries:

    def test_single_chunk(self):
        assert decode_all([STREAM]) == EXPECTED

    def test_byte_by_byte(self):
        assert decode_all([STREAM[i:i + 1] for i in range(len(STREAM))]) == EXPECTED

    def test_every_two_way_split(self):
        for i in range(len(STREAM) + 1):
            assert decode_all([STREAM[:i], STREAM[i:]]) == EXPECTED, f"split at {i}"

    def test_random_splits(self):
        rng = random.Random(1234)
        for _ in range(200):
            cuts = sorted(rng.sample(range(1, len(STREAM)), rng.randint(1, 12)))
            bounds = [0, *cuts, len(STREAM)]
            chunks = [STREAM[a:b] for a, b in zip(bounds, bounds[1:])]
            assert decode_all(chunks) == EXPECTED

    def test_split_inside_prefix_and_json(self):
        chunks = [b"da", b'ta: {"con', b'tent": "x"}', b"\n"]
        assert decode_all(chunks) == [delta("x"), done(implicit=True)]

    def test_crlf_split_between_cr_and_lf(self):
        assert decode_all([b'data: {"content": "x"}\r', b"\n"]) == [delta("x"), done(implicit=True)]

    def test_incomplete_tail_is_not_emitted(self):
        decoder = StreamDecoder()
        assert decoder.feed(b'data: {"content": "x"}') == []
        assert decoder.close() == [done(implicit=True)]


class TestPayloads:

    def test_malformed_line_between_valid_lines(self):
        decoder = StreamDecoder()
        events = decoder.feed(b'data: {"content":"x"}\ndata: {not json\ndata: {"content":"y"}\n')
        assert events == [delta("x"), delta("y")]
        assert len(decoder.warnings) == 1
        assert isinstance(decoder.warnings[0], ProtocolDecodeWarning)
        assert decoder.warnings[0].line == "{not json"

    def test_malformed_line_logs_warning(self, caplog):
        decoder = StreamDecoder()
        with caplog.at_level("WARNING", logger="llmchat.transport.sse"):
            decoder.feed(b"data: {not json\n")
        assert "dropped line" in caplog.text

    def test_non_data_lines_ignored(self):
        decoder = StreamDecoder()
        assert decoder.feed(b": heartbeat\n\nevent: message\nid: 3\n") == []
        assert decoder.warnings == []

    def test_empty_payload_ignored(self):
        assert StreamDecoder().feed(b"data: \ndata:    \n") == []

    def test_non_object_payload_is_a_warning(self):
        decoder = StreamDecoder()
        assert decoder.feed(b"data: [1, 2]\n") == []
        assert len(decoder.warnings) == 1

    def test_empty_content_is_a_delta(self):
        assert StreamDecoder().feed(b'data: {"content": ""}\n') == [delta("")]

    def test_absent_content_is_not_a_delta(self):
        assert StreamDecoder().feed(b'data: {"done": false}\n') == []

    def test_done_stops_decoding(self):
        decoder = StreamDecoder()
        events = decoder.feed(b'data: {"done": true}\ndata: {"content": "late"}\n')
        assert events == [done()]
        assert decoder.finished
        assert decoder.feed(b'data: {"content": "later"}\n') == []
        assert decoder.close() == []

    def test_error_is_terminal(self):
        decoder = StreamDecoder()
        events = decoder.feed(b'data: {"error": "model overloaded", "done": true}\ndata: {"content": "x"}\n')
        assert events == [error("model overloaded")]
        assert decoder.finished

    def test_end_of_transport_is_implicit_done(self):
        decoder = StreamDecoder()
        decoder.feed(b'data: {"content": "x"}\n')
        [event] = decoder.close()
        assert event.type == "done"
        assert event.implicit

    def test_utf8_split_across_chunks(self):
        encoded = 'data: {"content": "é"}\n'.encode()
        cut = encoded.index(b"\xc3") + 1
        assert decode_all([encoded[:cut], encoded[cut:]]) == [delta("é"), done(implicit=True)]


class TestAsyncDecode:

    @pytest.mark.asyncio
    async def test_stops_at_done(self):
        decoder = StreamDecoder()
        chunks = [b'data: {"content": "H"}\n', b'data: {"content": "i"}\n', b'data: {"done": true}\n']
        events = [e async for e in decoder.decode(iter_chunks(chunks))]
        assert events == [delta("H"), delta("i"), done()]

    @pytest.mark.asyncio
    async def test_implicit_done_at_end(self):
        decoder = StreamDecoder()
        events = [e async for e in decoder.decode(iter_chunks([b'data: {"content": "H"}\n']))]
        assert events == [delta("H"), done(implicit=True)]
