# nanocode/llm_interaction.py
"""
HTTP transport to the model endpoint.

Two dialects are spoken:
  * 'stream': chat completions with ``stream: true``; the response body is
    handed out as raw bytes for StreamDecoder.
  * 'gemini': a single generateContent call returning the whole answer.

Every connection problem and every non-success status becomes a
TransportError; nothing httpx-specific leaks to the caller.
"""
import json
import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

import httpx

from nanocode.config_utils import AgentConfig
from nanocode.conversation import ConversationStore
from nanocode.data_models import ToolInvocation
from nanocode.errors import TransportError
from nanocode.tool_defs import gemini_tools, openai_tools

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 10.0


def _error_detail(body: bytes) -> str:
    """Pulls a human readable message out of an error response body."""
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return body.decode("utf-8", errors="replace").strip()[:300]
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        for key in ("message", "detail", "error"):
            if data.get(key):
                return str(data[key])
    return json.dumps(data)[:300]


class ModelClient:
    def __init__(self, config: AgentConfig, http_client: Optional[httpx.Client] = None):
        self.config = config
        self._http = http_client or httpx.Client(
            timeout=httpx.Timeout(config.request_timeout, connect=CONNECT_TIMEOUT_SECONDS)
        )

    def close(self) -> None:
        self._http.close()

    # --- 'stream' dialect ---

    def build_stream_payload(self, store: ConversationStore, with_tools: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": store.to_openai_messages(),
            "temperature": self.config.temperature,
            "stream": True,
        }
        if with_tools:
            payload["tools"] = openai_tools()
            payload["tool_choice"] = "auto"
        return payload

    @contextmanager
    def open_stream(self, store: ConversationStore, with_tools: bool = True) -> Iterator[Iterator[bytes]]:
        """
        Sends the conversation and yields an iterator over the raw response bytes.
        Transport failures, also those raised while the caller drains the
        iterator, surface as TransportError.
        """
        payload = self.build_stream_payload(store, with_tools)
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        logger.debug("POST %s (model=%s, %d messages)", self.config.api_base, self.config.model, len(payload["messages"]))
        try:
            with self._http.stream("POST", self.config.api_base, json=payload, headers=headers) as response:
                if not response.is_success:
                    detail = _error_detail(response.read())
                    raise TransportError(
                        f"API Error {response.status_code} {response.reason_phrase}: {detail}",
                        status_code=response.status_code,
                    )
                yield response.iter_bytes()
        except httpx.HTTPError as e:
            raise TransportError(f"Connection error: {e}") from e

    # --- 'gemini' dialect ---

    def build_generate_content_payload(self, store: ConversationStore, with_tools: bool = True) -> Dict[str, Any]:
        system_instruction, contents = store.to_gemini_contents()
        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {"temperature": self.config.temperature},
        }
        if with_tools:
            payload["tools"] = gemini_tools()
        if system_instruction:
            payload["systemInstruction"] = system_instruction
        return payload

    def generate_content(self, store: ConversationStore, with_tools: bool = True) -> Dict[str, Any]:
        url = f"{self.config.api_base.rstrip('/')}/models/{self.config.model}:generateContent"
        payload = self.build_generate_content_payload(store, with_tools)

        logger.debug("POST %s (%d contents)", url, len(payload["contents"]))
        try:
            response = self._http.post(url, params={"key": self.config.api_key or ""}, json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"Connection error: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"API Error: {response.status_code} {response.reason_phrase} - {_error_detail(response.content)}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"API returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise TransportError("API returned an unexpected response shape")
        return data


def parse_generate_content(data: Dict[str, Any]) -> Tuple[List[str], List[ToolInvocation]]:
    """
    Splits a generateContent response into its text parts and function calls.
    The API assigns no call ids, so each call gets a synthesized one.
    """
    error = data.get("error")
    if isinstance(error, dict):
        raise TransportError(
            f"API Error: {error.get('status', '')} - {error.get('message', '')}".strip(),
            status_code=error.get("code"),
        )

    candidates = data.get("candidates") or []
    if not candidates:
        raise TransportError("No response from model.")
    if not isinstance(candidates, list) or not isinstance(candidates[0], dict):
        raise TransportError("API returned an unexpected response shape")
    content = candidates[0].get("content") or {}
    if not isinstance(content, dict):
        raise TransportError("API returned an unexpected response shape")
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        raise TransportError("API returned an unexpected response shape")

    texts: List[str] = []
    invocations: List[ToolInvocation] = []
    stamp = int(time.time() * 1000)
    for part in parts:
        if not isinstance(part, dict):
            continue
        if part.get("text"):
            texts.append(part["text"])
        function_call = part.get("functionCall")
        if isinstance(function_call, dict):
            invocations.append(ToolInvocation(
                id=f"call_{len(invocations)}_{stamp}",
                name=function_call.get("name") or "",
                arguments_json=json.dumps(function_call.get("args") or {}),
            ))
    return texts, invocations
