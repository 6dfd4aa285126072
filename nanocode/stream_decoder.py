# nanocode/stream_decoder.py
"""
Decoder for chat-completion streams delivered as server-sent frames.

Every frame is a line ``data: <json>``; the response ends with ``data: [DONE]``.
The decoder turns the raw bytes into StreamEvent records. It keeps no state
between calls to ``decode``, so one instance can serve every request of a
session.
"""
import json
import logging
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from nanocode.data_models import (
    ContentDelta,
    StreamEnd,
    StreamError,
    StreamEvent,
    ToolCallFragment,
)
from nanocode.errors import DecodeError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def _content_text(content: Any) -> str:
    # Some providers send content as a list of typed chunks instead of a string.
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "") for part in content
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
    return ""


def _fragment_from_entry(position: int, entry: Any) -> ToolCallFragment:
    if not isinstance(entry, dict):
        raise DecodeError(f"tool call entry is not an object: {entry!r}")

    index = entry.get("index")
    if not isinstance(index, int) or isinstance(index, bool):
        index = position

    function = entry.get("function") or {}
    if not isinstance(function, dict):
        raise DecodeError(f"tool call function is not an object: {function!r}")

    arguments = function.get("arguments")
    if arguments is None:
        arguments = ""
    elif not isinstance(arguments, str):
        arguments = json.dumps(arguments)

    return ToolCallFragment(
        index=index,
        id_if_new=entry.get("id") or None,
        name_if_new=function.get("name") or None,
        arguments_chunk=arguments,
    )


def parse_frame(payload: str) -> Tuple[List[StreamEvent], Optional[str]]:
    """
    Parses the JSON payload of one frame.
    Returns the events it carries and its finish reason, if any.
    Raises DecodeError when the payload is not a usable frame.
    """
    try:
        frame = json.loads(payload)
    except json.JSONDecodeError as e:
        raise DecodeError(f"malformed frame: {e}") from e
    if not isinstance(frame, dict):
        raise DecodeError("frame is not a JSON object")

    error = frame.get("error")
    if error:
        if isinstance(error, dict):
            message = error.get("message") or json.dumps(error)
        else:
            message = str(error)
        return [StreamError(message=message)], None

    choices = frame.get("choices") or []
    if not isinstance(choices, list):
        raise DecodeError("'choices' is not a list")
    if not choices:
        return [], None
    choice = choices[0]
    if not isinstance(choice, dict):
        raise DecodeError("choice is not an object")

    events: List[StreamEvent] = []
    delta = choice.get("delta") or {}
    if not isinstance(delta, dict):
        raise DecodeError("'delta' is not an object")

    text = _content_text(delta.get("content"))
    if text:
        events.append(ContentDelta(text=text))

    tool_calls = delta.get("tool_calls")
    if tool_calls is None:
        tool_calls = delta.get("toolCalls")
    if tool_calls:
        if not isinstance(tool_calls, list):
            raise DecodeError("'tool_calls' is not a list")
        events.extend(_fragment_from_entry(position, entry) for position, entry in enumerate(tool_calls))

    finish_reason = choice.get("finish_reason") or choice.get("finishReason") or None
    return events, finish_reason


class StreamDecoder:
    """Turns an iterable of raw byte chunks into a lazy sequence of StreamEvent."""

    def decode(self, chunks: Iterable[bytes]) -> Iterator[StreamEvent]:
        buffer = bytearray()
        finish_reason: Optional[str] = None

        for chunk in chunks:
            if not chunk:
                continue
            buffer.extend(chunk)
            while True:
                newline_at = buffer.find(b"\n")
                if newline_at < 0:
                    break
                raw_line = bytes(buffer[:newline_at])
                del buffer[:newline_at + 1]

                events, line_finish, done = self._decode_line(raw_line)
                finish_reason = line_finish or finish_reason
                for event in events:
                    yield event
                    if isinstance(event, StreamError):
                        return
                if done:
                    yield StreamEnd(finish_reason=finish_reason)
                    return

        # Transport closed without the sentinel: decode whatever is left.
        if buffer:
            events, line_finish, _ = self._decode_line(bytes(buffer))
            finish_reason = line_finish or finish_reason
            for event in events:
                yield event
                if isinstance(event, StreamError):
                    return
        yield StreamEnd(finish_reason=finish_reason)

    def _decode_line(self, raw_line: bytes) -> Tuple[List[StreamEvent], Optional[str], bool]:
        """Returns (events, finish_reason, reached_sentinel) for one line."""
        try:
            line = raw_line.decode("utf-8").strip()
        except UnicodeDecodeError:
            logger.debug("Skipping frame with invalid UTF-8: %r", raw_line[:80])
            return [], None, False

        if not line.startswith(DATA_PREFIX):
            return [], None, False
        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            return [], None, True
        if not payload:
            return [], None, False

        try:
            events, finish_reason = parse_frame(payload)
        except DecodeError as e:
            logger.debug("Skipping frame: %s", e)
            return [], None, False
        return events, finish_reason, False
