# nanocode/orchestrator.py
"""
The turn loop: send the conversation, drain the answer, run the requested
tools, append their results and ask again until the model answers without
tool calls.

A round is one request plus the tool calls it produced. Rounds are atomic
with respect to the ConversationStore: when a round is interrupted or its
transport fails, everything it appended is rolled back, so the store never
holds an assistant tool call without its results.
"""
import logging
import time
import unicodedata
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape

from nanocode.config_utils import AgentConfig
from nanocode.conversation import ConversationStore
from nanocode.data_models import (
    ContentDelta,
    StreamEnd,
    StreamError,
    ToolCallFragment,
    ToolInvocation,
)
from nanocode.errors import TransportError
from nanocode.llm_interaction import ModelClient, parse_generate_content
from nanocode.stream_decoder import StreamDecoder
from nanocode.tool_call_assembler import ToolCallAssembler
from nanocode.tool_executor import ToolExecutor, is_failure

logger = logging.getLogger(__name__)

ELLIPSIS_MARKER = "..."
_JOINERS = ("\u200d", "\ufe0e", "\ufe0f")  # zero width joiner, variation selectors
_SKIN_TONES = range(0x1F3FB, 0x1F400)
_REGIONAL_INDICATORS = range(0x1F1E6, 0x1F200)


def _is_regional_indicator(char: str) -> bool:
    return ord(char) in _REGIONAL_INDICATORS


def _splits_cluster(text: str, cut: int) -> bool:
    """True when cutting text before index 'cut' would break a user-perceived character."""
    char = text[cut]
    if unicodedata.combining(char) or char in _JOINERS or ord(char) in _SKIN_TONES:
        return True
    if text[cut - 1] == "\u200d":
        return True
    if _is_regional_indicator(char):
        # flags are pairs of regional indicators; an odd run before the cut means a pair is split
        run = 0
        while cut - run - 1 >= 0 and _is_regional_indicator(text[cut - run - 1]):
            run += 1
        return run % 2 == 1
    return False


class LoopState(str, Enum):
    AWAITING_USER_INPUT = "awaiting_user_input"
    SENDING = "sending"
    STREAMING = "streaming"
    TOOLS_PENDING = "tools_pending"
    IDLE = "idle"


class TurnResult(BaseModel):
    rounds: int = 0
    text: str = ""
    aborted: bool = False
    capped: bool = False
    error: Optional[str] = None


def make_preview(result: str, budget: int) -> str:
    """One-line preview of a tool result, at most 'budget' characters plus the ellipsis.

    The cut never separates a combining mark, joiner or skin-tone modifier from
    the character it attaches to, and never splits a regional-indicator flag.
    """
    flat = result.replace("\r", "").replace("\n", " ")
    if len(flat) <= budget:
        return flat
    cut = max(budget, 0)
    while cut > 0 and _splits_cluster(flat, cut):
        cut -= 1
    return flat[:cut] + ELLIPSIS_MARKER


class OrchestratorLoop:
    def __init__(
        self,
        config: AgentConfig,
        store: ConversationStore,
        client: ModelClient,
        executor: ToolExecutor,
        console: Console,
        decoder: Optional[StreamDecoder] = None,
    ):
        self.config = config
        self.store = store
        self.client = client
        self.executor = executor
        self.console = console
        self.decoder = decoder or StreamDecoder()
        self.state = LoopState.AWAITING_USER_INPUT

    @classmethod
    def from_config(cls, config: AgentConfig, store: ConversationStore, console: Console) -> "OrchestratorLoop":
        return cls(config, store, ModelClient(config), ToolExecutor(config), console)

    def close(self) -> None:
        self.client.close()

    # --- turn driver ---

    def run_turn(self, user_text: str) -> TurnResult:
        """Runs one user turn to completion, including every tool round."""
        self.store.append_user(user_text)
        rounds = 0
        texts: List[str] = []
        aborted, capped = False, False
        error: Optional[str] = None

        try:
            while True:
                if self.config.max_tool_rounds and rounds >= self.config.max_tool_rounds:
                    capped = True
                    logger.warning("Tool round cap of %d reached; ending turn", self.config.max_tool_rounds)
                    self.console.print(
                        f"[bold yellow]⚠ Stopped after {rounds} tool rounds (max_tool_rounds). "
                        f"Send a message to let the model continue.[/bold yellow]"
                    )
                    break

                round_start = self.store.mark()
                try:
                    text, invocations = self._request(self.store, with_tools=True)
                    self.store.append_assistant(text, invocations)
                    if text:
                        texts.append(text)
                    if not invocations:
                        self.state = LoopState.IDLE
                        break

                    self.state = LoopState.TOOLS_PENDING
                    self._run_tools(invocations)
                except TransportError as e:
                    self.store.rollback(round_start)
                    aborted, error = True, str(e)
                    logger.warning("Turn aborted: %s", e)
                    self.console.print(f"\n[bold red]❌ {escape(str(e))}[/bold red]")
                    break
                except KeyboardInterrupt:
                    self.store.rollback(round_start)
                    aborted, error = True, "interrupted"
                    logger.warning("Turn interrupted by user")
                    self.console.print("\n[bold yellow]⏹ Interrupted. Partial answer discarded.[/bold yellow]")
                    break

                rounds += 1
                self.console.print("[yellow](🔄 Orchestrator analyzing result...)[/yellow]")
        finally:
            self.state = LoopState.AWAITING_USER_INPUT

        return TurnResult(rounds=rounds, text="\n".join(texts), aborted=aborted, capped=capped, error=error)

    def ask_without_tools(self, prompt: str) -> str:
        """One tool-less request outside the session conversation. Raises TransportError."""
        scratch = ConversationStore("")
        scratch.append_user(prompt)
        try:
            text, _ = self._request(scratch, with_tools=False)
        finally:
            self.state = LoopState.AWAITING_USER_INPUT
        return text

    # --- rounds ---

    def _request(self, store: ConversationStore, with_tools: bool) -> Tuple[str, List[ToolInvocation]]:
        self.state = LoopState.SENDING
        if self.config.protocol == "gemini":
            return self._single_shot_round(store, with_tools)
        return self._streaming_round(store, with_tools)

    def _streaming_round(self, store: ConversationStore, with_tools: bool) -> Tuple[str, List[ToolInvocation]]:
        deadline = time.monotonic() + self.config.request_timeout
        assembler = ToolCallAssembler()
        text_parts: List[str] = []

        with self.client.open_stream(store, with_tools=with_tools) as chunks:
            self.state = LoopState.STREAMING
            for event in self.decoder.decode(self._until_deadline(chunks, deadline)):
                self._check_deadline(deadline)
                if isinstance(event, ContentDelta):
                    if not text_parts:
                        self.console.print("\n[cyan]⏺[/cyan] ", end="")
                    text_parts.append(event.text)
                    self.console.print(event.text, end="", markup=False, highlight=False)
                elif isinstance(event, ToolCallFragment):
                    assembler.add(event)
                elif isinstance(event, StreamError):
                    raise TransportError(f"Stream error: {event.message}")
                elif isinstance(event, StreamEnd):
                    logger.debug("Stream finished (finish_reason=%s)", event.finish_reason)

        if text_parts:
            self.console.print()
        return "".join(text_parts), assembler.finish()

    def _check_deadline(self, deadline: float) -> None:
        if time.monotonic() > deadline:
            raise TransportError(f"Stream exceeded request_timeout of {self.config.request_timeout:g}s")

    def _until_deadline(self, chunks: Iterable[bytes], deadline: float) -> Iterator[bytes]:
        # Keep-alive lines decode to no events, so the deadline is enforced per raw chunk.
        for chunk in chunks:
            self._check_deadline(deadline)
            yield chunk

    def _single_shot_round(self, store: ConversationStore, with_tools: bool) -> Tuple[str, List[ToolInvocation]]:
        data = self.client.generate_content(store, with_tools=with_tools)
        self.state = LoopState.STREAMING
        texts, invocations = parse_generate_content(data)
        for text in texts:
            self.console.print("\n[cyan]⏺[/cyan] ", end="")
            self.console.print(text, markup=False, highlight=False)
        return "".join(texts), invocations

    def _run_tools(self, invocations: List[ToolInvocation]) -> None:
        for invocation in invocations:
            self.console.print(f"\n[green]⏺ {escape(invocation.name.upper() or '?')}[/green]")
            result = self.executor.execute(invocation.name, invocation.arguments_json)
            preview = escape(make_preview(result, self.config.preview_chars))
            if is_failure(result):
                self.console.print(f"  [red]⎿ {preview}[/red]")
            else:
                self.console.print(f"  [dim]⎿ {preview}[/dim]")
            self.store.append_tool(invocation, result)
