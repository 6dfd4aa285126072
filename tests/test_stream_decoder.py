# tests/test_stream_decoder.py
import json

import pytest

from nanocode.data_models import ContentDelta, StreamEnd, StreamError, ToolCallFragment
from nanocode.errors import DecodeError
from nanocode.stream_decoder import StreamDecoder, parse_frame


def frame(delta=None, finish_reason=None) -> bytes:
    payload = {"choices": [{"index": 0, "delta": delta or {}, "finish_reason": finish_reason}]}
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")


def decode_all(chunks):
    return list(StreamDecoder().decode(chunks))


# --- Tests for parse_frame ---

def test_parse_frame_content_and_finish_reason():
    """A frame with content yields one ContentDelta and reports its finish reason."""
    events, finish = parse_frame(json.dumps({"choices": [{"delta": {"content": "hi"}, "finish_reason": "stop"}]}))
    assert events == [ContentDelta(text="hi")]
    assert finish == "stop"


def test_parse_frame_tool_call_fragments():
    """Tool call entries become fragments; missing indices fall back to the entry position."""
    payload = {"choices": [{"delta": {"tool_calls": [
        {"index": 0, "id": "a", "function": {"name": "read", "arguments": "{\"pa"}},
        {"id": "b", "function": {"name": "glob", "arguments": {"pattern": "*.go"}}},
    ]}}]}
    events, _ = parse_frame(json.dumps(payload))
    assert events == [
        ToolCallFragment(index=0, id_if_new="a", name_if_new="read", arguments_chunk="{\"pa"),
        ToolCallFragment(index=1, id_if_new="b", name_if_new="glob", arguments_chunk="{\"pattern\": \"*.go\"}"),
    ]


def test_parse_frame_error_object():
    """An error object in a frame becomes a StreamError."""
    events, _ = parse_frame(json.dumps({"error": {"message": "rate limited"}}))
    assert events == [StreamError(message="rate limited")]


def test_parse_frame_rejects_non_json():
    """Malformed payloads raise DecodeError."""
    with pytest.raises(DecodeError):
        parse_frame("{not json")


def test_parse_frame_empty_choices():
    """Usage-only frames carry no events."""
    assert parse_frame(json.dumps({"choices": [], "usage": {"total_tokens": 3}})) == ([], None)


# --- Tests for StreamDecoder.decode ---

def test_decode_content_and_sentinel():
    """Content deltas are emitted in order and the sentinel ends the stream."""
    chunks = [frame({"content": "Hel"}), frame({"content": "lo"}), b"data: [DONE]\n\n"]
    assert decode_all(chunks) == [ContentDelta(text="Hel"), ContentDelta(text="lo"), StreamEnd()]


def test_decode_frames_split_across_chunks():
    """A frame split at arbitrary byte offsets decodes exactly as if it arrived whole."""
    body = frame({"content": "héllo wörld"}) + frame({}, finish_reason="stop") + b"data: [DONE]\n\n"
    whole = decode_all([body])
    for size in (1, 2, 3, 7, 13):
        pieces = [body[i:i + size] for i in range(0, len(body), size)]
        assert decode_all(pieces) == whole
    assert whole == [ContentDelta(text="héllo wörld"), StreamEnd(finish_reason="stop")]


def test_decode_skips_non_data_lines_and_keepalives():
    """Comment lines, event names and blank lines are ignored."""
    chunks = [b": keep-alive\n\n", b"event: message\n", frame({"content": "x"}), b"\n\n", b"data: [DONE]\n"]
    assert decode_all(chunks) == [ContentDelta(text="x"), StreamEnd()]


def test_decode_skips_malformed_frame_and_continues():
    """A frame that is not JSON is dropped; later frames still decode."""
    chunks = [b"data: {broken\n\n", frame({"content": "ok"}), b"data: [DONE]\n\n"]
    assert decode_all(chunks) == [ContentDelta(text="ok"), StreamEnd()]


def test_decode_crlf_line_endings():
    """CRLF-terminated frames decode like LF-terminated ones."""
    body = frame({"content": "a"}).replace(b"\n", b"\r\n") + b"data: [DONE]\r\n\r\n"
    assert decode_all([body]) == [ContentDelta(text="a"), StreamEnd()]


def test_decode_ignores_everything_after_sentinel():
    """Frames after [DONE] are never read."""
    chunks = [frame({"content": "a"}), b"data: [DONE]\n\n", frame({"content": "late"})]
    assert decode_all(chunks) == [ContentDelta(text="a"), StreamEnd()]


def test_decode_without_sentinel_ends_at_eof():
    """A stream that closes without [DONE] still ends with StreamEnd, including an unterminated last frame."""
    body = frame({"content": "a"}) + frame({"content": "b"}, finish_reason="stop").rstrip(b"\n")
    assert decode_all([body]) == [ContentDelta(text="a"), ContentDelta(text="b"), StreamEnd(finish_reason="stop")]


def test_decode_stops_on_error_frame():
    """An error frame yields StreamError and nothing after it."""
    error = b'data: {"error": {"message": "boom"}}\n\n'
    assert decode_all([frame({"content": "a"}), error, frame({"content": "b"})]) == [
        ContentDelta(text="a"),
        StreamError(message="boom"),
    ]


def test_decode_tool_call_fragments_in_order():
    """Fragments of several tool calls keep their frame order."""
    chunks = [
        frame({"tool_calls": [{"index": 0, "id": "c1", "function": {"name": "read", "arguments": ""}}]}),
        frame({"tool_calls": [{"index": 0, "function": {"arguments": "{\"path\":\"a\"}"}}]}),
        frame({"tool_calls": [{"index": 1, "id": "c2", "function": {"name": "bash", "arguments": "{}"}}]}),
        frame({}, finish_reason="tool_calls"),
        b"data: [DONE]\n\n",
    ]
    events = decode_all(chunks)
    assert [type(e) for e in events] == [ToolCallFragment, ToolCallFragment, ToolCallFragment, StreamEnd]
    assert events[1].arguments_chunk == "{\"path\":\"a\"}"
    assert events[1].starts_invocation is False
    assert events[-1] == StreamEnd(finish_reason="tool_calls")


def test_decode_is_lazy():
    """Events are produced before the transport is exhausted."""
    def chunks():
        yield frame({"content": "first"})
        raise AssertionError("decoder read past the first event")

    events = StreamDecoder().decode(chunks())
    assert next(events) == ContentDelta(text="first")
