# nanocode/conversation.py
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from nanocode.data_models import Message, ToolInvocation

logger = logging.getLogger(__name__)


class ConversationStore:
    """
    Ordered, append-only list of the messages of one session.

    The first message is always the system message. Tool results are only
    accepted for invocation ids an earlier assistant message announced.
    rollback() is the only way to drop messages besides reset(); the
    orchestrator uses it to discard a round that was interrupted midway.
    """

    def __init__(self, system_prompt: str = ""):
        self._messages: List[Message] = []
        self._announced_call_ids: Set[str] = set()
        self.reset(system_prompt)

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def system_prompt(self) -> str:
        return self._messages[0].text

    def reset(self, system_prompt: str) -> None:
        """Drops everything and starts over with just the system message."""
        self._messages = [Message(role="system", text=system_prompt)]
        self._announced_call_ids = set()
        logger.debug("Conversation reset (system prompt: %d chars)", len(system_prompt))

    def append_user(self, text: str) -> Message:
        return self._append(Message(role="user", text=text))

    def append_assistant(self, text: str, tool_calls: Sequence[ToolInvocation] = ()) -> Message:
        message = self._append(Message(role="assistant", text=text, tool_calls=list(tool_calls)))
        self._announced_call_ids.update(call.id for call in message.tool_calls)
        return message

    def append_tool(self, invocation: ToolInvocation, result: str) -> Message:
        if invocation.id not in self._announced_call_ids:
            raise ValueError(f"tool result for unknown call id '{invocation.id}'")
        return self._append(Message(
            role="tool",
            text=result,
            tool_call_id=invocation.id,
            tool_name=invocation.name,
        ))

    def _append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def mark(self) -> int:
        return len(self._messages)

    def rollback(self, mark: int) -> None:
        """Truncates the store back to a length returned by mark()."""
        mark = max(mark, 1)
        if mark >= len(self._messages):
            return
        logger.debug("Rolling back %d message(s)", len(self._messages) - mark)
        del self._messages[mark:]
        self._announced_call_ids = {
            call.id for message in self._messages for call in message.tool_calls
        }

    # --- wire formats ---

    def to_openai_messages(self) -> List[Dict[str, Any]]:
        """Messages in the chat-completions format."""
        wire: List[Dict[str, Any]] = []
        for message in self._messages:
            if message.role == "system" and not message.text:
                continue
            entry: Dict[str, Any] = {"role": message.role, "content": message.text}
            if message.tool_calls:
                entry["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": call.arguments_json},
                    }
                    for call in message.tool_calls
                ]
            if message.role == "tool":
                entry["tool_call_id"] = message.tool_call_id
                entry["name"] = message.tool_name or ""
            wire.append(entry)
        return wire

    def to_gemini_contents(self) -> Tuple[Optional[Dict[str, Any]], List[Dict[str, Any]]]:
        """Returns (systemInstruction, contents) in the generateContent format.

        Consecutive tool results are grouped into one user turn, the way the
        API expects function responses to follow a model turn.
        """
        system_instruction = None
        contents: List[Dict[str, Any]] = []
        for message in self._messages:
            if message.role == "system":
                if message.text:
                    system_instruction = {"parts": [{"text": message.text}]}
            elif message.role == "user":
                contents.append({"role": "user", "parts": [{"text": message.text}]})
            elif message.role == "assistant":
                parts: List[Dict[str, Any]] = []
                if message.text:
                    parts.append({"text": message.text})
                for call in message.tool_calls:
                    parts.append({"functionCall": {"name": call.name, "args": _decode_args(call.arguments_json)}})
                contents.append({"role": "model", "parts": parts or [{"text": ""}]})
            else:
                response_part = {"functionResponse": {
                    "name": message.tool_name or "",
                    "response": {"result": message.text},
                }}
                previous = contents[-1] if contents else None
                if previous and previous["role"] == "user" and "functionResponse" in previous["parts"][0]:
                    previous["parts"].append(response_part)
                else:
                    contents.append({"role": "user", "parts": [response_part]})
        return system_instruction, contents


def _decode_args(arguments_json: str) -> Dict[str, Any]:
    try:
        args = json.loads(arguments_json) if arguments_json else {}
    except json.JSONDecodeError:
        return {}
    return args if isinstance(args, dict) else {}
